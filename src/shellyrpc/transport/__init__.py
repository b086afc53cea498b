"""BLE transport: characteristics, connection, and exchange phases."""

from .characteristic import BleakCharacteristic, ByteCharacteristic
from .connection import BLEConnection, PeerConnection
from .flusher import flush_channels
from .receiver import ResponseReceiver
from .transmitter import send_payload

__all__ = [
    "BLEConnection",
    "BleakCharacteristic",
    "ByteCharacteristic",
    "PeerConnection",
    "ResponseReceiver",
    "flush_channels",
    "send_payload",
]
