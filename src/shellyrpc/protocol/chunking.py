"""Chunk splitting for the data characteristic."""

from __future__ import annotations

from collections.abc import Iterator

from .constants import CHUNK_SIZE


def split_chunks(payload: bytes, chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
    """Split payload into consecutive chunks of at most chunk_size bytes.

    Chunks carry no header; concatenating them in order yields the payload.

    Raises:
        ValueError: If chunk_size is not positive
    """
    if chunk_size < 1:
        raise ValueError(f"Chunk size must be positive, got {chunk_size}")
    for offset in range(0, len(payload), chunk_size):
        yield payload[offset:offset + chunk_size]


def chunk_count(payload_length: int, chunk_size: int = CHUNK_SIZE) -> int:
    """Number of chunks needed for payload_length bytes."""
    return -(-payload_length // chunk_size)
