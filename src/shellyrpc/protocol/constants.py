"""Shelly BLE RPC protocol constants."""

from __future__ import annotations

# Shelly Gen2 RPC-over-GATT service and characteristics
SERVICE_UUID = "5f6d4f53-5f52-5043-5f53-56435f49445f"
DATA_CHAR_UUID = "5f6d4f53-5f52-5043-5f64-6174615f5f5f"   # Chunked JSON payload
TX_CTL_CHAR_UUID = "5f6d4f53-5f52-5043-5f74-785f63746c5f"  # Request length (we write)
RX_CTL_CHAR_UUID = "5f6d4f53-5f52-5043-5f72-785f63746c5f"  # Response length (read/notify)

# Framing constants
LENGTH_PREFIX_SIZE = 4  # uint32, big-endian
CHUNK_SIZE = 20  # Default ATT payload for a 23-byte MTU

# Envelope constants
DEFAULT_SOURCE = "user_1"

# Number of response characters echoed to the debug log
RAW_PREVIEW_CHARS = 200
