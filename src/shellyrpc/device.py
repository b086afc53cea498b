"""Main Shelly BLE RPC device class."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .models.profile import PRIMARY_PROFILE, RETRY_PROFILE, ReceiveTimings, TransmissionProfile
from .models.rpc import RpcResponse
from .protocol import DEFAULT_SOURCE
from .session import execute
from .transport import BLEConnection

if TYPE_CHECKING:
    from bleak.backends.device import BLEDevice

_LOGGER = logging.getLogger(__name__)


class ShellyRpcDevice:
    """Shelly Gen2+ device reached over BLE RPC.

    Each call connects, runs one exchange and disconnects, so calls made on
    the same device are serialized by the caller awaiting them.

    Usage:
        async with ShellyRpcDevice("AA:BB:CC:DD:EE:FF") as device:
            status = await device.get_status()
            info = await device.call("Shelly.GetDeviceInfo", {"ident": True})
    """

    def __init__(
            self,
            mac_address: str,
            ble_device: BLEDevice | None = None,
            timeout: float = 10.0,
            source: str = DEFAULT_SOURCE,
            profiles: tuple[TransmissionProfile, TransmissionProfile] = (PRIMARY_PROFILE, RETRY_PROFILE),
            timings: ReceiveTimings | None = None,
    ):
        """Initialize Shelly device.

        Args:
            mac_address: Device MAC address
            ble_device: Optional BLEDevice from a previous scan
            timeout: BLE connection timeout in seconds (default: 10)
            source: Value of the request "src" member (default: "user_1")
            profiles: Primary and retry transmission profiles
            timings: Receive budgets (default: ReceiveTimings())
        """
        self.mac_address = mac_address
        self.source = source
        self.profiles = profiles
        self.timings = timings or ReceiveTimings()
        self._connection = BLEConnection(mac_address, ble_device, timeout)

    async def __aenter__(self) -> ShellyRpcDevice:
        await self._connection.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Disconnect from device."""
        await self._connection.disconnect()

    async def call(self, method: str, params: Any = None) -> Any:
        """Call an RPC method and return the decoded response payload.

        Raises:
            ShellyRpcError: Any transport, protocol or connection error
        """
        response = await self.call_raw(method, params)
        if response.is_error:
            _LOGGER.warning("%s returned error: %s", method, response.error)
        return response.payload

    async def call_raw(self, method: str, params: Any = None) -> RpcResponse:
        """Call an RPC method and return the full RpcResponse."""
        await self._connection.connect()
        return await execute(
            self._connection,
            method,
            params,
            profiles=self.profiles,
            timings=self.timings,
            source=self.source,
        )

    async def get_status(self) -> Any:
        return await self.call("Shelly.GetStatus")

    async def get_device_info(self) -> Any:
        return await self.call("Shelly.GetDeviceInfo")

    async def list_methods(self) -> Any:
        return await self.call("Shelly.ListMethods")
