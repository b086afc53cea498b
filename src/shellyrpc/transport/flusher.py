"""Stale frame flushing before a new request."""

from __future__ import annotations

import asyncio
import logging

from ..exceptions import MalformedLengthError
from ..protocol import decode_length
from .characteristic import ByteCharacteristic

_LOGGER = logging.getLogger(__name__)


async def flush_channels(
        rx_control: ByteCharacteristic,
        data: ByteCharacteristic,
        timeout: float = 1.0,
) -> int:
    """Drain one pending response left over from an interrupted exchange.

    Best effort: never raises (cancellation excepted).

    Args:
        rx_control: RX control characteristic (pending response length)
        data: Data characteristic
        timeout: Budget in seconds for the length read and the drain together

    Returns:
        Number of stale bytes drained
    """
    drained = 0
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    try:
        try:
            pending = decode_length(await asyncio.wait_for(rx_control.read(), timeout=timeout))
        except MalformedLengthError:
            return 0
        if pending == 0:
            return 0

        _LOGGER.debug("Flushing stale frame of %d bytes", pending)
        while drained < pending and loop.time() < deadline:
            chunk = await asyncio.wait_for(data.read(), timeout=max(deadline - loop.time(), 0))
            if not chunk:
                break
            drained += len(chunk)
    except asyncio.TimeoutError:
        _LOGGER.warning("Flush timed out after %.1fs (%d bytes drained)", timeout, drained)
        return drained
    except Exception as e:
        _LOGGER.warning("Flush failed after %d bytes: %s", drained, e)
        return drained

    if drained:
        _LOGGER.info("Flushed %d stale bytes", drained)
    return drained
