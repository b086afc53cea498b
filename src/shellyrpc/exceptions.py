"""Exceptions raised by the Shelly BLE RPC transport."""

from __future__ import annotations


class ShellyRpcError(Exception):
    """Base exception for all Shelly BLE RPC errors."""


class AdapterNotReadyError(ShellyRpcError):
    """Bluetooth adapter is missing or not powered on."""


class BLEConnectionError(ShellyRpcError):
    """Connection to the device failed or was lost."""


class BLETimeoutError(ShellyRpcError):
    """A BLE operation timed out."""


class ServiceNotFoundError(BLEConnectionError):
    """The RPC GATT service is not exposed by the peer."""

    def __init__(self, service_uuid: str):
        super().__init__(f"Service {service_uuid} not found")
        self.service_uuid = service_uuid


class CharacteristicsMissingError(BLEConnectionError):
    """One or more RPC characteristics are not exposed by the peer."""

    def __init__(self, missing: list[str]):
        super().__init__(f"Required characteristics not found: {', '.join(missing)}")
        self.missing = missing


class TransportIOError(ShellyRpcError):
    """A single characteristic read or write failed."""


class WriteFailedError(TransportIOError):
    """Writing to a characteristic failed."""


class ReadFailedError(TransportIOError):
    """Reading from a characteristic failed."""


class ProtocolError(ShellyRpcError):
    """Framing or payload does not follow the RPC protocol."""


class MalformedLengthError(ProtocolError):
    """Length prefix is shorter than 4 bytes."""


class EmptyPayloadError(ProtocolError):
    """Response payload is empty or whitespace only."""


class InvalidJsonError(ProtocolError):
    """Response payload is not valid JSON.

    The raw text (and bytes) are kept for diagnostics.
    """

    def __init__(self, raw_text: str, detail: str, raw_bytes: bytes = b""):
        super().__init__(f"Failed to parse JSON response: {detail}")
        self.raw_text = raw_text
        self.detail = detail
        self.raw_bytes = raw_bytes


class ParamsNotJsonError(ShellyRpcError):
    """Request params are not valid JSON."""
