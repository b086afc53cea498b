"""Test response length discovery and chunked reception."""

from __future__ import annotations

import asyncio

import pytest

from shellyrpc.exceptions import ReadFailedError
from shellyrpc.models import Attempt, ReceivePhase, ReceiveTimings
from shellyrpc.protocol import encode_length
from shellyrpc.transport import ResponseReceiver

RESPONSE = b'{"id":1,"source":"shelly","result":{"ok":true}}'


def _serve(chunks: list[bytes]):
    """Read handler returning the given chunks, then empty reads."""
    queue = list(chunks)
    return lambda: queue.pop(0) if queue else b""


@pytest.mark.asyncio
async def test_length_from_notification(make_characteristic, fast_timings) -> None:
    rx_control = make_characteristic("rx_ctl")
    data = make_characteristic("data", _serve([RESPONSE[:20], RESPONSE[20:40], RESPONSE[40:]]))
    receiver = ResponseReceiver(rx_control, data, fast_timings)

    async with receiver.listen() as state:
        rx_control.notify(encode_length(len(RESPONSE)))
        raw = await receiver.receive(state)

    assert raw == RESPONSE
    assert state.length.source == "notify"
    assert not state.best_effort
    assert rx_control.reads == 0  # notification arrived before the first poll
    assert state.phase is ReceivePhase.COMPLETE


@pytest.mark.asyncio
async def test_length_from_polling(make_characteristic, fast_timings) -> None:
    reads = iter([b"", encode_length(0), encode_length(len(RESPONSE))])
    rx_control = make_characteristic("rx_ctl", lambda: next(reads, encode_length(999)))
    data = make_characteristic("data", _serve([RESPONSE]))
    receiver = ResponseReceiver(rx_control, data, fast_timings)

    async with receiver.listen() as state:
        raw = await receiver.receive(state)

    assert raw == RESPONSE
    assert state.expected_length == len(RESPONSE)
    assert state.length.source == "poll"
    assert rx_control.reads == 3


@pytest.mark.asyncio
async def test_notification_wakes_polling_early(make_characteristic) -> None:
    timings = ReceiveTimings(poll_attempts=30, poll_interval=5.0, known_length_timeout=1.0)
    rx_control = make_characteristic("rx_ctl")
    data = make_characteristic("data", _serve([b"{}"]))
    receiver = ResponseReceiver(rx_control, data, timings)
    loop = asyncio.get_running_loop()

    async with receiver.listen() as state:
        loop.call_later(0.01, rx_control.notify, encode_length(2))
        started = loop.time()
        raw = await receiver.receive(state)

    assert raw == b"{}"
    assert loop.time() - started < 1.0
    assert rx_control.reads == 1


@pytest.mark.asyncio
async def test_length_is_never_overwritten(make_characteristic, fast_timings) -> None:
    rx_control = make_characteristic("rx_ctl", lambda: encode_length(3))
    data = make_characteristic("data", _serve([b"abcdef"]))
    receiver = ResponseReceiver(rx_control, data, fast_timings)

    async with receiver.listen() as state:
        rx_control.notify(encode_length(6))
        await receiver.receive(state)
        rx_control.notify(encode_length(1))
        await receiver.discover_length(state)

    assert state.expected_length == 6
    assert bytes(state.received) == b"abcdef"


@pytest.mark.asyncio
async def test_known_length_times_out_with_partial_data(make_characteristic) -> None:
    timings = ReceiveTimings(
        poll_attempts=1, poll_interval=0, known_length_timeout=0.05,
        backoff_base=0.001, backoff_step=0.001, backoff_max=0.005,
    )
    rx_control = make_characteristic("rx_ctl", lambda: encode_length(100))
    data = make_characteristic("data", _serve([b"partial"]))
    receiver = ResponseReceiver(rx_control, data, timings)

    async with receiver.listen() as state:
        raw = await receiver.receive(state)

    assert raw == b"partial"
    assert not state.is_complete
    assert state.phase is ReceivePhase.TIMED_OUT


@pytest.mark.asyncio
async def test_best_effort_when_no_length(make_characteristic, fast_timings) -> None:
    rx_control = make_characteristic("rx_ctl", lambda: encode_length(0))
    data = make_characteristic("data", _serve([b'{"ok":', b"true}"]))
    receiver = ResponseReceiver(rx_control, data, fast_timings)

    async with receiver.listen() as state:
        raw = await receiver.receive(state)

    assert raw == b'{"ok":true}'
    assert state.best_effort
    assert rx_control.reads == fast_timings.poll_attempts
    assert state.phase is ReceivePhase.COMPLETE


@pytest.mark.asyncio
async def test_best_effort_terminates_within_budget(make_characteristic) -> None:
    """Endless empty reads cannot keep the best-effort window open."""
    timings = ReceiveTimings(
        poll_attempts=0, best_effort_timeout=0.1,
        backoff_base=0, backoff_step=0, backoff_max=0,
    )
    rx_control = make_characteristic("rx_ctl")
    data = make_characteristic("data")
    receiver = ResponseReceiver(rx_control, data, timings)
    loop = asyncio.get_running_loop()

    async with receiver.listen() as state:
        started = loop.time()
        raw = await receiver.receive(state)

    assert raw == b""
    assert loop.time() - started < 0.5
    assert data.reads > 1
    assert state.phase is ReceivePhase.TIMED_OUT


@pytest.mark.asyncio
async def test_hung_read_cannot_exceed_budget(make_characteristic) -> None:
    class _HangingData:
        async def read(self) -> bytes:
            await asyncio.sleep(10)
            return b""

    timings = ReceiveTimings(poll_attempts=0, best_effort_timeout=0.05)
    receiver = ResponseReceiver(make_characteristic("rx_ctl"), _HangingData(), timings)

    async with receiver.listen() as state:
        raw = await asyncio.wait_for(receiver.receive(state), timeout=1.0)

    assert raw == b""


@pytest.mark.asyncio
async def test_read_errors_are_retried(make_characteristic, fast_timings) -> None:
    rx_control = make_characteristic("rx_ctl", lambda: encode_length(2))
    rx_control.read_errors = 1
    data = make_characteristic("data", _serve([b"{}"]))
    data.read_errors = 2
    receiver = ResponseReceiver(rx_control, data, fast_timings)

    async with receiver.listen() as state:
        raw = await receiver.receive(state)

    assert raw == b"{}"
    assert data.reads == 3


@pytest.mark.asyncio
async def test_subscription_torn_down(make_characteristic, fast_timings) -> None:
    rx_control = make_characteristic("rx_ctl")
    receiver = ResponseReceiver(rx_control, make_characteristic("data"), fast_timings)

    async with receiver.listen(Attempt.RETRY) as state:
        assert len(rx_control.subscribers) == 1
        await receiver.receive(state)

    assert state.attempt is Attempt.RETRY
    assert rx_control.subscribers == []
    assert rx_control.unsubscribe_count == 1


@pytest.mark.asyncio
async def test_subscription_torn_down_on_error(make_characteristic, fast_timings) -> None:
    rx_control = make_characteristic("rx_ctl")
    receiver = ResponseReceiver(rx_control, make_characteristic("data"), fast_timings)

    with pytest.raises(RuntimeError):
        async with receiver.listen():
            raise RuntimeError("boom")

    assert rx_control.unsubscribe_count == 1


@pytest.mark.asyncio
async def test_polling_only_when_subscribe_unsupported(make_characteristic, fast_timings) -> None:
    rx_control = make_characteristic("rx_ctl", lambda: encode_length(2))
    rx_control.subscribe_error = ReadFailedError("notify not supported")
    data = make_characteristic("data", _serve([b"[]"]))
    receiver = ResponseReceiver(rx_control, data, fast_timings)

    async with receiver.listen() as state:
        raw = await receiver.receive(state)

    assert raw == b"[]"
    assert rx_control.unsubscribe_count == 0


@pytest.mark.asyncio
async def test_phase_starts_awaiting_length(make_characteristic, fast_timings) -> None:
    receiver = ResponseReceiver(make_characteristic("rx_ctl"), make_characteristic("data"), fast_timings)

    async with receiver.listen() as state:
        assert state.phase is ReceivePhase.AWAITING_LENGTH
        assert not state.phase.is_final


@pytest.mark.asyncio
async def test_hung_length_read_cannot_exceed_budget(make_characteristic) -> None:
    rx_control = make_characteristic("rx_ctl", lambda: encode_length(5))
    rx_control.read_delay = 30
    timings = ReceiveTimings(
        poll_attempts=2, poll_interval=0.01, control_read_timeout=0.01,
        best_effort_timeout=0.05,
    )
    receiver = ResponseReceiver(rx_control, make_characteristic("data"), timings)

    async with receiver.listen() as state:
        raw = await asyncio.wait_for(receiver.receive(state), timeout=1.0)

    assert raw == b""
    assert rx_control.reads == 2
    assert state.best_effort
    assert state.phase is ReceivePhase.TIMED_OUT


@pytest.mark.asyncio
async def test_hung_unsubscribe_is_abandoned(make_characteristic, caplog) -> None:
    rx_control = make_characteristic("rx_ctl")
    rx_control.unsubscribe_delay = 30
    timings = ReceiveTimings(poll_attempts=0, best_effort_timeout=0.01, teardown_timeout=0.05)
    receiver = ResponseReceiver(rx_control, make_characteristic("data"), timings)

    async def _exchange() -> None:
        async with receiver.listen() as state:
            await receiver.receive(state)

    await asyncio.wait_for(_exchange(), timeout=1.0)

    assert rx_control.unsubscribe_count == 0
    assert "Timed out removing RX_CTL subscription" in caplog.text
