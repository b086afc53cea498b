"""Request transmission: length prefix, settle, chunked data."""

from __future__ import annotations

import asyncio
import logging

from ..models.profile import PRIMARY_PROFILE, TransmissionProfile
from ..protocol import chunk_count, encode_length, split_chunks
from .characteristic import ByteCharacteristic

_LOGGER = logging.getLogger(__name__)


async def send_payload(
        tx_control: ByteCharacteristic,
        data: ByteCharacteristic,
        payload: bytes,
        profile: TransmissionProfile = PRIMARY_PROFILE,
) -> None:
    """Send one request payload.

    1. Write the 4-byte length to TX control (acknowledged)
    2. Wait settle_delay so the peer can allocate its receive buffer
    3. Write the payload to data in order, chunk_size bytes at a time,
       waiting inter_chunk_delay after each write

    Raises:
        WriteFailedError: If the length write or any chunk write fails
    """
    length_prefix = encode_length(len(payload))
    _LOGGER.debug(
        "Writing length to TX_CTL: %d (0x%s)",
        len(payload),
        length_prefix.hex(),
    )
    await tx_control.write_ack(length_prefix)
    await asyncio.sleep(profile.settle_delay)

    write = data.write_ack if profile.ack else data.write_no_ack
    total = chunk_count(len(payload), profile.chunk_size)
    _LOGGER.debug(
        "Writing %d bytes in %d chunks of %d (%s profile, %s)",
        len(payload),
        total,
        profile.chunk_size,
        profile.name,
        "with response" if profile.ack else "without response",
    )

    for index, chunk in enumerate(split_chunks(payload, profile.chunk_size), start=1):
        await write(chunk)
        _LOGGER.debug("  Chunk %d/%d: %d bytes", index, total, len(chunk))
        await asyncio.sleep(profile.inter_chunk_delay)
