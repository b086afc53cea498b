"""Shelly BLE RPC protocol implementation."""

from .chunking import chunk_count, split_chunks
from .constants import (
    CHUNK_SIZE,
    DATA_CHAR_UUID,
    DEFAULT_SOURCE,
    LENGTH_PREFIX_SIZE,
    RX_CTL_CHAR_UUID,
    SERVICE_UUID,
    TX_CTL_CHAR_UUID,
)
from .framing import decode_length, encode_length
from .messages import (
    build_request,
    decode_response,
    encode_request,
    parse_params,
    serialize_request,
    timestamp_id,
)

__all__ = [
    "SERVICE_UUID",
    "DATA_CHAR_UUID",
    "TX_CTL_CHAR_UUID",
    "RX_CTL_CHAR_UUID",
    "CHUNK_SIZE",
    "DEFAULT_SOURCE",
    "LENGTH_PREFIX_SIZE",
    "encode_length",
    "decode_length",
    "split_chunks",
    "chunk_count",
    "build_request",
    "encode_request",
    "serialize_request",
    "decode_response",
    "parse_params",
    "timestamp_id",
]
