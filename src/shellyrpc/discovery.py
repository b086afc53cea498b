"""BLE scanning for Shelly devices."""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from bleak import BleakScanner
from bleak.exc import BleakBluetoothNotAvailableError

from .exceptions import AdapterNotReadyError, BLEConnectionError

if TYPE_CHECKING:
    from bleak.backends.device import BLEDevice
    from bleak.backends.scanner import AdvertisementData

_LOGGER = logging.getLogger(__name__)

_SHELLY_NAME = re.compile("shelly", re.IGNORECASE)


@dataclass(frozen=True)
class DiscoveredDevice:
    """One advertising Shelly device."""

    address: str
    name: str
    rssi: int
    ble_device: BLEDevice


def is_shelly_name(name: str | None) -> bool:
    return bool(name and _SHELLY_NAME.search(name))


def _advertised_name(device: BLEDevice, adv: AdvertisementData) -> str:
    return adv.local_name or device.name or ""


async def discover_devices(timeout: float = 15.0) -> list[DiscoveredDevice]:
    """Scan for Shelly devices.

    Args:
        timeout: Scan duration in seconds (default: 15)

    Returns:
        Devices whose advertised name contains "shelly", strongest first

    Raises:
        AdapterNotReadyError: If the Bluetooth adapter is unavailable
    """
    try:
        results = await BleakScanner.discover(timeout=timeout, return_adv=True)
    except BleakBluetoothNotAvailableError as e:
        raise AdapterNotReadyError(f"Bluetooth adapter not ready: {e}") from e

    found: dict[str, DiscoveredDevice] = {}
    for device, adv in results.values():
        name = _advertised_name(device, adv)
        address = device.address.lower()
        if not is_shelly_name(name) or address in found:
            continue
        found[address] = DiscoveredDevice(address, name, adv.rssi, device)
        _LOGGER.debug("Found: %s [%s] (RSSI: %d)", name, address, adv.rssi)

    return sorted(found.values(), key=lambda d: d.rssi, reverse=True)


async def find_device(
        address: str | None = None,
        name: str | None = None,
        timeout: float = 20.0,
) -> BLEDevice:
    """Find one device by address or exact name.

    With neither given, the first device that looks like a Shelly is returned.

    Raises:
        AdapterNotReadyError: If the Bluetooth adapter is unavailable
        BLEConnectionError: If no matching device advertises within timeout
    """

    def _matches(device: BLEDevice, adv: AdvertisementData) -> bool:
        advertised = _advertised_name(device, adv)
        if address:
            return device.address.lower() == address.lower()
        if name:
            return advertised == name
        return is_shelly_name(advertised)

    try:
        device = await BleakScanner.find_device_by_filter(_matches, timeout=timeout)
    except BleakBluetoothNotAvailableError as e:
        raise AdapterNotReadyError(f"Bluetooth adapter not ready: {e}") from e
    except asyncio.TimeoutError as e:
        raise BLEConnectionError("Scan timeout: Shelly device not found") from e

    if device is None:
        raise BLEConnectionError("Scan timeout: Shelly device not found")
    return device
