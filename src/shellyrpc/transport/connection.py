"""BLE connection management."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from bleak import BleakClient, BleakScanner
from bleak.exc import BleakBluetoothNotAvailableError
from bleak_retry_connector import BleakClientWithServiceCache, establish_connection

from ..exceptions import (
    AdapterNotReadyError,
    BLEConnectionError,
    BLETimeoutError,
    CharacteristicsMissingError,
    ServiceNotFoundError,
)
from ..protocol import DATA_CHAR_UUID, RX_CTL_CHAR_UUID, SERVICE_UUID, TX_CTL_CHAR_UUID
from .characteristic import BleakCharacteristic, ByteCharacteristic

if TYPE_CHECKING:
    from bleak.backends.device import BLEDevice

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class PeerConnection:
    """The three RPC characteristics of a connected peer."""

    data: ByteCharacteristic
    tx_control: ByteCharacteristic
    rx_control: ByteCharacteristic


class BLEConnection:
    """Manages BLE connection to a Shelly device.

    Features:
    - Automatic retry logic with bleak-retry-connector
    - Service caching for faster reconnections
    - Context manager for automatic cleanup
    - Idempotent disconnect
    """

    def __init__(
            self,
            mac_address: str,
            ble_device: BLEDevice | None = None,
            timeout: float = 10.0,
            max_attempts: int = 4,
            use_services_cache: bool = True,
            connect_settle_delay: float = 0.5,
    ):
        """Initialize BLE connection manager.

        Args:
            mac_address: Device MAC address
            ble_device: Optional BLEDevice from a previous scan
            timeout: Connection timeout in seconds (default: 10)
            max_attempts: Maximum connection attempts for bleak-retry-connector (default: 4)
            use_services_cache: Enable GATT service caching for faster reconnections (default: True)
            connect_settle_delay: Pause after connecting before GATT access, in seconds (default: 0.5)
        """
        self.mac_address = mac_address
        self.ble_device = ble_device
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.use_services_cache = use_services_cache
        self.connect_settle_delay = connect_settle_delay

        self._client: BleakClient | None = None

    async def __aenter__(self) -> BLEConnection:
        """Connect to device (context manager entry)."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Disconnect from device (context manager exit)."""
        await self.disconnect()

    async def connect(self) -> None:
        """Establish BLE connection to device.

        Uses bleak-retry-connector for automatic retry logic and service caching.

        Raises:
            AdapterNotReadyError: If the Bluetooth adapter is unavailable
            BLEConnectionError: If connection fails
            BLETimeoutError: If connection times out
        """
        if self._client and self._client.is_connected:
            return  # Already connected

        try:
            _LOGGER.debug(
                "Connecting to %s with bleak-retry-connector (max_attempts=%d)",
                self.mac_address,
                self.max_attempts
            )

            # Resolve MAC to BLEDevice if not provided
            if self.ble_device:
                device = self.ble_device
            else:
                device = await BleakScanner.find_device_by_address(
                    self.mac_address,
                    timeout=self.timeout
                )
                if device is None:
                    raise BLEConnectionError(
                        f"Device {self.mac_address} not found during scan"
                    )

            self._client = await establish_connection(
                client_class=BleakClientWithServiceCache,
                device=device,
                name=device.name or self.mac_address,
                max_attempts=self.max_attempts,
                use_services_cache=self.use_services_cache,
                timeout=self.timeout,
            )

            _LOGGER.debug("Connected to %s", self.mac_address)
            if self.connect_settle_delay > 0:
                await asyncio.sleep(self.connect_settle_delay)

        except BLEConnectionError:
            raise
        except BleakBluetoothNotAvailableError as e:
            raise AdapterNotReadyError(
                f"Bluetooth adapter not ready: {e}"
            ) from e
        except asyncio.TimeoutError as e:
            raise BLETimeoutError(
                f"Connection timeout after {self.timeout}s"
            ) from e
        except Exception as e:
            raise BLEConnectionError(
                f"Failed to connect: {e}"
            ) from e

    async def open_rpc_channel(self) -> PeerConnection:
        """Look up the RPC service and its three characteristics.

        Raises:
            BLEConnectionError: If not connected
            ServiceNotFoundError: If the RPC service is missing
            CharacteristicsMissingError: If any RPC characteristic is missing
        """
        if not self._client or not self._client.is_connected:
            raise BLEConnectionError("Not connected")

        service = self._client.services.get_service(SERVICE_UUID)
        if not service:
            raise ServiceNotFoundError(SERVICE_UUID)

        _LOGGER.debug(
            "Using service %s with %d characteristics",
            service.uuid,
            len(service.characteristics),
        )
        for index, char in enumerate(service.characteristics, start=1):
            _LOGGER.debug("Characteristic %d: %s", index, char.uuid)

        wanted = {
            "data": DATA_CHAR_UUID,
            "tx_ctl": TX_CTL_CHAR_UUID,
            "rx_ctl": RX_CTL_CHAR_UUID,
        }
        found = {label: service.get_characteristic(uuid) for label, uuid in wanted.items()}
        missing = [wanted[label] for label, char in found.items() if char is None]
        if missing:
            raise CharacteristicsMissingError(missing)

        return PeerConnection(
            data=BleakCharacteristic(self._client, found["data"], "data"),
            tx_control=BleakCharacteristic(self._client, found["tx_ctl"], "tx_ctl"),
            rx_control=BleakCharacteristic(self._client, found["rx_ctl"], "rx_ctl"),
        )

    async def disconnect(self) -> None:
        """Disconnect from device. Safe to call repeatedly."""
        if self._client and self._client.is_connected:
            try:
                _LOGGER.debug("Disconnecting from %s", self.mac_address)
                await self._client.disconnect()
            except Exception as e:
                _LOGGER.warning("Error during disconnect: %s", e)
        self._client = None

    @property
    def is_connected(self) -> bool:
        """Check if currently connected to device."""
        return self._client is not None and self._client.is_connected
