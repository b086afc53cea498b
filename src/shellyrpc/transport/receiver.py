"""Response reception over the RX control and data characteristics.

Phases of one receive::

    AWAITING_LENGTH --(length > 0)--> RECEIVING_KNOWN_LENGTH --> COMPLETE | TIMED_OUT
          |
          +--(poll budget spent)--> RECEIVING_BEST_EFFORT --> COMPLETE (data) | TIMED_OUT (none)

The expected length arrives either as an RX control notification or as the
answer to an explicit RX control read. Whichever comes first is kept.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from ..exceptions import TransportIOError
from ..models.profile import ReceiveTimings
from ..models.transfer import Attempt, ReceivePhase, TransferState
from .characteristic import ByteCharacteristic

_LOGGER = logging.getLogger(__name__)


class ResponseReceiver:
    """Reads one response per exchange from a peer's RPC characteristics."""

    def __init__(
            self,
            rx_control: ByteCharacteristic,
            data: ByteCharacteristic,
            timings: ReceiveTimings | None = None,
    ):
        self._rx_control = rx_control
        self._data = data
        self.timings = timings or ReceiveTimings()

    @asynccontextmanager
    async def listen(self, attempt: Attempt = Attempt.PRIMARY) -> AsyncIterator[TransferState]:
        """Subscribe to RX control notifications for one exchange.

        Enter before transmitting so no notification is missed. The
        subscription is always torn down on exit, including cancellation.
        Peers that do not support notifications fall back to polling.
        """
        state = TransferState(attempt=attempt)

        def _on_length(data: bytes) -> None:
            state.length.offer(data, "notify")

        unsubscribe = None
        try:
            unsubscribe = await self._rx_control.subscribe(_on_length)
        except TransportIOError as e:
            _LOGGER.warning("RX_CTL notifications unavailable, polling only: %s", e)

        try:
            yield state
        finally:
            if unsubscribe is not None:
                await self._unsubscribe(unsubscribe)

    async def _unsubscribe(self, unsubscribe) -> None:
        """Remove the notification subscription within teardown_timeout."""
        try:
            await asyncio.wait_for(unsubscribe(), timeout=self.timings.teardown_timeout)
        except asyncio.TimeoutError:
            _LOGGER.warning(
                "Timed out removing RX_CTL subscription after %.1fs",
                self.timings.teardown_timeout,
            )
        except Exception as e:
            _LOGGER.warning("Error removing RX_CTL subscription: %s", e)

    async def receive(self, state: TransferState) -> bytes:
        """Discover the response length, then read the data characteristic.

        Returns:
            Whatever bytes arrived, complete or not
        """
        await self.discover_length(state)

        if state.length.is_set:
            state.phase = ReceivePhase.RECEIVING_KNOWN_LENGTH
            _LOGGER.info(
                "Reading %d bytes from data characteristic...",
                state.expected_length,
            )
            await self._read_data(state, self.timings.known_length_timeout)
            if not state.is_complete:
                _LOGGER.warning(
                    "Response incomplete after %.1fs: %d/%d bytes",
                    self.timings.known_length_timeout,
                    state.received_length,
                    state.expected_length,
                )
        else:
            _LOGGER.info(
                "No length on RX_CTL; best-effort read from data characteristic for up to %.1fs",
                self.timings.best_effort_timeout,
            )
            state.best_effort = True
            state.phase = ReceivePhase.RECEIVING_BEST_EFFORT
            await self._read_data(state, self.timings.best_effort_timeout)

        _LOGGER.debug(
            "Received %d bytes (%s attempt, %s)",
            state.received_length,
            state.attempt.value,
            state.phase.value,
        )
        return bytes(state.received)

    async def discover_length(self, state: TransferState) -> int:
        """Poll RX control until a length is known or the poll budget is spent.

        A notification arriving between polls ends the wait early. Each read is
        bounded by control_read_timeout; a read that times out is "no signal yet".

        Returns:
            The expected length, or 0 if none was signaled
        """
        timings = self.timings
        for attempt in range(1, timings.poll_attempts + 1):
            if state.length.is_set:
                break
            try:
                raw = await asyncio.wait_for(
                    self._rx_control.read(),
                    timeout=timings.control_read_timeout,
                )
                state.length.offer(raw, "poll")
                _LOGGER.debug("RX_CTL read %d: %s", attempt, raw.hex() if raw else "(empty)")
            except asyncio.TimeoutError:
                _LOGGER.debug("RX_CTL read %d timed out", attempt)
            except TransportIOError as e:
                _LOGGER.debug("RX_CTL read %d failed: %s", attempt, e)
            if await state.length.wait(timings.poll_interval):
                break
        return state.expected_length

    async def _read_data(self, state: TransferState, budget: float) -> None:
        """Read data chunks until complete or budget seconds elapse.

        Leaves state.phase at COMPLETE when the known length arrived, or when
        the best-effort window closed with data; TIMED_OUT otherwise.
        """
        loop = asyncio.get_running_loop()
        state.deadline = loop.time() + budget
        reads = 0
        consecutive_empty = 0

        while not state.is_complete:
            remaining = state.deadline - loop.time()
            if remaining <= 0:
                break
            reads += 1
            try:
                chunk = await asyncio.wait_for(self._data.read(), timeout=remaining)
            except asyncio.TimeoutError:
                break
            except TransportIOError as e:
                _LOGGER.debug("Read attempt %d failed: %s", reads, e)
                await self._sleep_until(state.deadline, self.timings.read_error_delay)
                continue

            if chunk:
                state.append(chunk)
                consecutive_empty = 0
                _LOGGER.debug(
                    "Read chunk %d: %d bytes (total: %d/%s)",
                    reads,
                    len(chunk),
                    state.received_length,
                    state.expected_length or "?",
                )
            else:
                consecutive_empty += 1
                await self._sleep_until(
                    state.deadline,
                    self.timings.backoff_delay(consecutive_empty),
                )

        if state.is_complete or (state.best_effort and state.received):
            state.phase = ReceivePhase.COMPLETE
        else:
            state.phase = ReceivePhase.TIMED_OUT

    @staticmethod
    async def _sleep_until(deadline: float, delay: float) -> None:
        remaining = deadline - asyncio.get_running_loop().time()
        await asyncio.sleep(max(min(delay, remaining), 0))
