"""In-memory fakes for the Shelly RPC characteristics and peer firmware."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable

import pytest

from shellyrpc.exceptions import ReadFailedError, WriteFailedError
from shellyrpc.models import ReceiveTimings, TransmissionProfile
from shellyrpc.protocol import decode_length, encode_length
from shellyrpc.transport import PeerConnection


class FakeCharacteristic:
    """Scripted ByteCharacteristic."""

    def __init__(self, label: str, read_handler: Callable[[], bytes] | None = None):
        self.label = label
        self.read_handler = read_handler or (lambda: b"")
        self.write_handler: Callable[[bytes], None] | None = None
        self.writes: list[tuple[bytes, bool]] = []
        self.reads = 0
        self.fail_writes = 0
        self.read_errors = 0
        self.subscribe_error: Exception | None = None
        self.subscribers: list[Callable[[bytes], None]] = []
        self.unsubscribe_count = 0
        self.read_delay = 0.0
        self.unsubscribe_delay = 0.0

    async def read(self) -> bytes:
        self.reads += 1
        if self.read_delay:
            await asyncio.sleep(self.read_delay)
        if self.read_errors:
            self.read_errors -= 1
            raise ReadFailedError(f"{self.label} read failed")
        return self.read_handler()

    async def write_ack(self, data: bytes) -> None:
        self._write(data, True)

    async def write_no_ack(self, data: bytes) -> None:
        self._write(data, False)

    def _write(self, data: bytes, ack: bool) -> None:
        if self.fail_writes:
            self.fail_writes -= 1
            raise WriteFailedError(f"{self.label} write failed")
        self.writes.append((bytes(data), ack))
        if self.write_handler:
            self.write_handler(bytes(data))

    async def subscribe(self, on_data):
        if self.subscribe_error:
            raise self.subscribe_error
        self.subscribers.append(on_data)

        async def unsubscribe() -> None:
            if self.unsubscribe_delay:
                await asyncio.sleep(self.unsubscribe_delay)
            self.subscribers.remove(on_data)
            self.unsubscribe_count += 1

        return unsubscribe

    def notify(self, data: bytes) -> None:
        for callback in list(self.subscribers):
            callback(data)


class FakeShellyPeer:
    """Simulates the firmware side of the BLE RPC service.

    Each complete request pops the next entry of responses: bytes are
    served as the response, None means the peer stays silent.
    """

    def __init__(
            self,
            responses: list[bytes | None] | None = None,
            *,
            notify: bool = True,
            poll: bool = True,
            chunk_size: int = 20,
    ):
        self.responses = list(responses or [])
        self.notify = notify
        self.poll = poll
        self.chunk_size = chunk_size

        self.data = FakeCharacteristic("data", self._read_data)
        self.data.write_handler = self._on_data
        self.tx_control = FakeCharacteristic("tx_ctl")
        self.tx_control.write_handler = self._on_length
        self.rx_control = FakeCharacteristic("rx_ctl", self._read_rx_control)

        self.raw_requests: list[bytes] = []
        self.requests: list[dict] = []
        self._incoming_length: int | None = None
        self._incoming = bytearray()
        self._outgoing = bytearray()
        self._signal = 0

    def connection(self) -> PeerConnection:
        return PeerConnection(data=self.data, tx_control=self.tx_control, rx_control=self.rx_control)

    def queue_stale(self, payload: bytes) -> None:
        """Leave an unread response behind, as after an interrupted exchange."""
        self._outgoing = bytearray(payload)
        self._signal = len(payload)

    @property
    def pending(self) -> int:
        return len(self._outgoing)

    def _on_length(self, data: bytes) -> None:
        self._incoming_length = decode_length(data)
        self._incoming = bytearray()

    def _on_data(self, data: bytes) -> None:
        self._incoming.extend(data)
        if self._incoming_length is None or len(self._incoming) < self._incoming_length:
            return
        raw = bytes(self._incoming)
        self.raw_requests.append(raw)
        self.requests.append(json.loads(raw))
        self._incoming_length = None
        self._incoming = bytearray()
        self._respond(self.responses.pop(0) if self.responses else None)

    def _respond(self, response: bytes | None) -> None:
        if response is None:
            return
        self._outgoing = bytearray(response)
        self._signal = len(response)
        if self.notify:
            self.rx_control.notify(encode_length(len(response)))

    def _read_rx_control(self) -> bytes:
        return encode_length(self._signal if self.poll else 0)

    def _read_data(self) -> bytes:
        chunk = bytes(self._outgoing[:self.chunk_size])
        del self._outgoing[:self.chunk_size]
        if not self._outgoing:
            self._signal = 0
        return chunk


class FakeConnection:
    """Connection collaborator handing out a FakeShellyPeer."""

    def __init__(self, peer: FakeShellyPeer | None = None, error: Exception | None = None):
        self.peer = peer
        self.error = error
        self.connects = 0
        self.opened = 0
        self.disconnects = 0
        self.disconnect_delay = 0.0

    async def connect(self) -> None:
        self.connects += 1

    async def open_rpc_channel(self) -> PeerConnection:
        self.opened += 1
        if self.error:
            raise self.error
        return self.peer.connection()

    async def disconnect(self) -> None:
        self.disconnects += 1
        if self.disconnect_delay:
            await asyncio.sleep(self.disconnect_delay)


@pytest.fixture
def make_peer():
    return FakeShellyPeer


@pytest.fixture
def make_characteristic():
    return FakeCharacteristic


@pytest.fixture
def make_connection():
    return FakeConnection


@pytest.fixture
def fast_timings() -> ReceiveTimings:
    return ReceiveTimings(
        flush_timeout=0.2,
        poll_attempts=3,
        poll_interval=0.005,
        known_length_timeout=1.0,
        best_effort_timeout=0.05,
        backoff_base=0.001,
        backoff_step=0.001,
        backoff_max=0.005,
        read_error_delay=0.001,
        control_read_timeout=0.2,
        teardown_timeout=0.2,
    )


@pytest.fixture
def fast_profiles() -> tuple[TransmissionProfile, TransmissionProfile]:
    return (
        TransmissionProfile(settle_delay=0, inter_chunk_delay=0),
        TransmissionProfile(settle_delay=0, inter_chunk_delay=0, ack=False, name="retry"),
    )
