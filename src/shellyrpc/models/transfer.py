"""Per-exchange transfer state."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum

from ..exceptions import MalformedLengthError
from ..protocol.framing import decode_length

_LOGGER = logging.getLogger(__name__)


class Attempt(Enum):
    """Which transmission attempt an exchange belongs to."""

    PRIMARY = "primary"
    RETRY = "retry"


class ReceivePhase(Enum):
    """Receiver state within one exchange.

    AWAITING_LENGTH -> RECEIVING_KNOWN_LENGTH | RECEIVING_BEST_EFFORT -> COMPLETE | TIMED_OUT
    """

    AWAITING_LENGTH = "awaiting_length"
    RECEIVING_KNOWN_LENGTH = "receiving_known_length"
    RECEIVING_BEST_EFFORT = "receiving_best_effort"
    COMPLETE = "complete"
    TIMED_OUT = "timed_out"

    @property
    def is_final(self) -> bool:
        return self in (ReceivePhase.COMPLETE, ReceivePhase.TIMED_OUT)


class LengthSignal:
    """Single-assignment cell for the expected response length.

    Two producers feed it: RX control notifications and RX control reads.
    The first positive length wins; later offers are ignored.
    """

    def __init__(self) -> None:
        self._value = 0
        self._source: str | None = None
        self._event = asyncio.Event()

    def offer(self, data: bytes | None, source: str) -> bool:
        """Offer a raw RX control value.

        Values shorter than 4 bytes and zero lengths are "no signal yet".

        Returns:
            True if this offer set the length
        """
        if self._value > 0:
            return False
        try:
            length = decode_length(bytes(data or b""))
        except MalformedLengthError:
            return False
        if length == 0:
            return False
        self._value = length
        self._source = source
        self._event.set()
        _LOGGER.debug("Response length %d signaled via %s", length, source)
        return True

    async def wait(self, timeout: float) -> bool:
        """Wait up to timeout seconds for a length. Returns is_set."""
        if self.is_set:
            return True
        try:
            await asyncio.wait_for(self._event.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            pass
        return self.is_set

    @property
    def value(self) -> int:
        return self._value

    @property
    def source(self) -> str | None:
        return self._source

    @property
    def is_set(self) -> bool:
        return self._value > 0


@dataclass
class TransferState:
    """State of one request/response exchange; discarded when it ends."""

    attempt: Attempt = Attempt.PRIMARY
    length: LengthSignal = field(default_factory=LengthSignal)
    received: bytearray = field(default_factory=bytearray)
    deadline: float | None = None
    best_effort: bool = False
    phase: ReceivePhase = ReceivePhase.AWAITING_LENGTH

    @property
    def expected_length(self) -> int:
        return self.length.value

    @property
    def received_length(self) -> int:
        return len(self.received)

    @property
    def is_complete(self) -> bool:
        return self.length.is_set and len(self.received) >= self.length.value

    @property
    def got_nothing(self) -> bool:
        """No length was ever signaled and no data arrived."""
        return not self.length.is_set and not self.received

    def append(self, chunk: bytes) -> None:
        self.received.extend(chunk)
