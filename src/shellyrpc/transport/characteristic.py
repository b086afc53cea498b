"""Byte-oriented GATT characteristic capability."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Protocol

from ..exceptions import ReadFailedError, WriteFailedError

if TYPE_CHECKING:
    from bleak import BleakClient
    from bleak.backends.characteristic import BleakGATTCharacteristic

_LOGGER = logging.getLogger(__name__)

NotifyCallback = Callable[[bytes], None]
Unsubscribe = Callable[[], Awaitable[None]]


class ByteCharacteristic(Protocol):
    """Read/write/notify access to one characteristic, no protocol knowledge."""

    async def read(self) -> bytes:
        ...

    async def write_ack(self, data: bytes) -> None:
        ...

    async def write_no_ack(self, data: bytes) -> None:
        ...

    async def subscribe(self, on_data: NotifyCallback) -> Unsubscribe:
        ...


class BleakCharacteristic:
    """ByteCharacteristic backed by a connected BleakClient.

    bleak errors are wrapped in ReadFailedError / WriteFailedError.
    """

    def __init__(self, client: BleakClient, characteristic: BleakGATTCharacteristic, label: str):
        self._client = client
        self._characteristic = characteristic
        self.label = label

    @property
    def uuid(self) -> str:
        return self._characteristic.uuid

    async def read(self) -> bytes:
        try:
            return bytes(await self._client.read_gatt_char(self._characteristic))
        except Exception as e:
            raise ReadFailedError(f"Read from {self.label} failed: {e}") from e

    async def write_ack(self, data: bytes) -> None:
        await self._write(data, response=True)

    async def write_no_ack(self, data: bytes) -> None:
        await self._write(data, response=False)

    async def _write(self, data: bytes, response: bool) -> None:
        try:
            await self._client.write_gatt_char(self._characteristic, data, response=response)
        except Exception as e:
            raise WriteFailedError(f"Write to {self.label} failed: {e}") from e

    async def subscribe(self, on_data: NotifyCallback) -> Unsubscribe:
        """Start notifications; returns a coroutine function that stops them.

        Raises:
            ReadFailedError: If notifications cannot be started
        """

        def _notification_callback(sender, data: bytearray) -> None:
            on_data(bytes(data))

        try:
            await self._client.start_notify(self._characteristic, _notification_callback)
        except Exception as e:
            raise ReadFailedError(f"Subscribe to {self.label} failed: {e}") from e

        _LOGGER.debug("Notifications started on %s", self.label)

        async def unsubscribe() -> None:
            if not self._client.is_connected:
                return
            try:
                await self._client.stop_notify(self._characteristic)
            except Exception as e:
                _LOGGER.warning("Error stopping notifications on %s: %s", self.label, e)

        return unsubscribe
