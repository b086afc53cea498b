"""Transmission profiles and receive timing budgets."""

from __future__ import annotations

from dataclasses import dataclass


def _check_non_negative(name: str, value: float) -> None:
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")


@dataclass(frozen=True, slots=True)
class TransmissionProfile:
    """Chunk size and pacing for one request transmission.

    Attributes:
        chunk_size: Data bytes per write
        inter_chunk_delay: Seconds to wait after each chunk write
        settle_delay: Seconds to wait after the length write, before data
        ack: Use acknowledged writes (write request) for data chunks
        name: Label used in logs
    """

    chunk_size: int = 20
    inter_chunk_delay: float = 0.015
    settle_delay: float = 1.0
    ack: bool = True
    name: str = "primary"

    def __post_init__(self) -> None:
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
        _check_non_negative("inter_chunk_delay", self.inter_chunk_delay)
        _check_non_negative("settle_delay", self.settle_delay)


PRIMARY_PROFILE = TransmissionProfile()

# Shorter settle, slower pacing, unacknowledged data writes
RETRY_PROFILE = TransmissionProfile(
    chunk_size=20,
    inter_chunk_delay=0.025,
    settle_delay=0.5,
    ack=False,
    name="retry",
)


@dataclass(frozen=True, slots=True)
class ReceiveTimings:
    """Per-phase time budgets, in seconds.

    Every attempt (primary and retry) gets the full set of budgets.
    control_read_timeout bounds each RX control poll read; teardown_timeout
    bounds unsubscribe and disconnect.
    """

    flush_timeout: float = 1.0
    poll_attempts: int = 30
    poll_interval: float = 0.25
    known_length_timeout: float = 20.0
    best_effort_timeout: float = 5.0
    backoff_base: float = 0.2
    backoff_step: float = 0.05
    backoff_max: float = 0.5
    read_error_delay: float = 0.25
    control_read_timeout: float = 1.0
    teardown_timeout: float = 2.0

    def __post_init__(self) -> None:
        if self.poll_attempts < 0:
            raise ValueError(f"poll_attempts must be non-negative, got {self.poll_attempts}")
        for name in (
            "flush_timeout",
            "poll_interval",
            "known_length_timeout",
            "best_effort_timeout",
            "backoff_base",
            "backoff_step",
            "backoff_max",
            "read_error_delay",
            "control_read_timeout",
            "teardown_timeout",
        ):
            _check_non_negative(name, getattr(self, name))

    def backoff_delay(self, consecutive_empty: int) -> float:
        """Delay before the next data read after consecutive empty reads."""
        return min(self.backoff_base + self.backoff_step * consecutive_empty, self.backoff_max)
