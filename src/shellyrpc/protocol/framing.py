"""Length prefix framing for the RPC control characteristics.

Both control characteristics carry exactly one value::

    +----------------------+
    | length (uint32, BE)  |
    +----------------------+

The length is the number of payload bytes that travel (or will travel) on
the data characteristic.
"""

from __future__ import annotations

import struct

from ..exceptions import MalformedLengthError
from .constants import LENGTH_PREFIX_SIZE

_LENGTH_STRUCT = struct.Struct(">I")


def encode_length(length: int) -> bytes:
    """Encode a payload length as a 4-byte big-endian prefix.

    Args:
        length: Payload length in bytes (0 to 2**32 - 1)

    Returns:
        4 bytes, big-endian

    Raises:
        ValueError: If length does not fit in an unsigned 32-bit integer
    """
    if not 0 <= length <= 0xFFFFFFFF:
        raise ValueError(f"Length out of range: {length} (must fit in uint32)")
    return _LENGTH_STRUCT.pack(length)


def decode_length(data: bytes) -> int:
    """Decode a 4-byte big-endian length prefix.

    Extra trailing bytes are ignored.

    Raises:
        MalformedLengthError: If fewer than 4 bytes are supplied
    """
    if data is None or len(data) < LENGTH_PREFIX_SIZE:
        size = 0 if data is None else len(data)
        raise MalformedLengthError(
            f"Length prefix too short: {size} bytes (need {LENGTH_PREFIX_SIZE})"
        )
    return _LENGTH_STRUCT.unpack_from(data, 0)[0]
