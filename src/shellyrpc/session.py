"""One RPC exchange: flush, transmit, receive, decode, with a single retry."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any, Protocol

from .exceptions import WriteFailedError
from .models.profile import PRIMARY_PROFILE, RETRY_PROFILE, ReceiveTimings, TransmissionProfile
from .models.rpc import RpcResponse
from .models.transfer import Attempt
from .protocol import DEFAULT_SOURCE, build_request, decode_response, serialize_request, timestamp_id
from .protocol.constants import RAW_PREVIEW_CHARS
from .transport.connection import PeerConnection
from .transport.flusher import flush_channels
from .transport.receiver import ResponseReceiver
from .transport.transmitter import send_payload

_LOGGER = logging.getLogger(__name__)


class RpcConnection(Protocol):
    """What execute needs from the connection collaborator."""

    async def open_rpc_channel(self) -> PeerConnection:
        ...

    async def disconnect(self) -> None:
        ...


async def execute(
        connection: RpcConnection,
        method: str,
        params: Any = None,
        *,
        profiles: tuple[TransmissionProfile, TransmissionProfile] = (PRIMARY_PROFILE, RETRY_PROFILE),
        timings: ReceiveTimings | None = None,
        id_source: Callable[[], int] = timestamp_id,
        source: str = DEFAULT_SOURCE,
) -> RpcResponse:
    """Run one RPC call over an already connected peer.

    The connection is always disconnected on exit, whatever the outcome,
    including cancellation. Disconnect is bounded by timings.teardown_timeout.

    Args:
        connection: Connected peer (see RpcConnection)
        method: RPC method, e.g. "Shelly.GetStatus"
        params: JSON-serializable params (None becomes {})
        profiles: Primary and retry transmission profiles
        timings: Receive budgets, applied in full to each attempt
        id_source: Callable returning fresh request ids
        source: Value of the request "src" member

    Returns:
        RpcResponse holding the decoded JSON payload

    Raises:
        ServiceNotFoundError: If the RPC service is missing (no retry)
        CharacteristicsMissingError: If an RPC characteristic is missing (no retry)
        WriteFailedError: If writes fail on both attempts
        EmptyPayloadError: If nothing was received on either attempt
        InvalidJsonError: If the response is not valid JSON (no retry)
        ParamsNotJsonError: If params cannot be serialized
    """
    timings = timings or ReceiveTimings()
    try:
        peer = await connection.open_rpc_channel()
        return await run_exchange(
            peer,
            method,
            params,
            profiles=profiles,
            timings=timings,
            id_source=id_source,
            source=source,
        )
    finally:
        await _disconnect(connection, timings.teardown_timeout)


async def _disconnect(connection: RpcConnection, timeout: float) -> None:
    """Disconnect within timeout; failures are logged, not raised."""
    try:
        await asyncio.wait_for(connection.disconnect(), timeout=timeout)
    except asyncio.TimeoutError:
        _LOGGER.warning("Timed out disconnecting after %.1fs", timeout)
    except Exception as e:
        _LOGGER.warning("Error during disconnect: %s", e)


async def run_exchange(
        peer: PeerConnection,
        method: str,
        params: Any = None,
        *,
        profiles: tuple[TransmissionProfile, TransmissionProfile] = (PRIMARY_PROFILE, RETRY_PROFILE),
        timings: ReceiveTimings | None = None,
        id_source: Callable[[], int] = timestamp_id,
        source: str = DEFAULT_SOURCE,
) -> RpcResponse:
    """Exchange one request/response on open characteristics.

    The retry profile is used at most once: when the primary attempt saw
    neither a length signal nor any data, or when one of its writes failed.
    """
    timings = timings or ReceiveTimings()
    receiver = ResponseReceiver(peer.rx_control, peer.data, timings)
    attempts = ((Attempt.PRIMARY, profiles[0]), (Attempt.RETRY, profiles[1]))

    raw = b""
    used = 0
    for attempt, profile in attempts:
        used += 1
        request = build_request(method, params, id_source, source)
        payload = serialize_request(request)

        await flush_channels(peer.rx_control, peer.data, timings.flush_timeout)

        _LOGGER.info(
            "Sending %s (%d bytes, %s attempt)",
            request.method,
            len(payload),
            attempt.value,
        )
        _LOGGER.debug("Request: %s", payload.decode("utf-8"))

        try:
            async with receiver.listen(attempt) as state:
                await send_payload(peer.tx_control, peer.data, payload, profile)
                raw = await receiver.receive(state)
        except WriteFailedError as e:
            if attempt is Attempt.RETRY:
                raise
            _LOGGER.warning("Request write failed, retrying once with %s profile: %s", profiles[1].name, e)
            continue

        if attempt is Attempt.PRIMARY and state.got_nothing:
            _LOGGER.info(
                "No response length and no data; retrying once with %s profile",
                profiles[1].name,
            )
            continue
        break

    _LOGGER.info("Received response: %d bytes", len(raw))
    _LOGGER.debug(
        "Raw response (first %d chars): %s",
        RAW_PREVIEW_CHARS,
        raw.decode("utf-8", errors="replace")[:RAW_PREVIEW_CHARS],
    )

    return RpcResponse(
        request=request,
        payload=decode_response(raw),
        raw=raw,
        attempts=used,
    )
