"""Shelly BLE RPC Package.

  JSON-RPC calls to Shelly devices over the BLE GATT RPC service.
  """

from .device import ShellyRpcDevice
from .discovery import DiscoveredDevice, discover_devices, find_device
from .exceptions import (
    AdapterNotReadyError,
    BLEConnectionError,
    BLETimeoutError,
    CharacteristicsMissingError,
    EmptyPayloadError,
    InvalidJsonError,
    MalformedLengthError,
    ParamsNotJsonError,
    ProtocolError,
    ReadFailedError,
    ServiceNotFoundError,
    ShellyRpcError,
    TransportIOError,
    WriteFailedError,
)
from .models import (
    PRIMARY_PROFILE,
    RETRY_PROFILE,
    ReceivePhase,
    ReceiveTimings,
    RpcRequest,
    RpcResponse,
    TransmissionProfile,
)
from .protocol import SERVICE_UUID, decode_response, encode_request, parse_params
from .session import execute, run_exchange
from .transport import BLEConnection, PeerConnection

__version__ = "0.1.0"

__all__ = [
    # Main API
    "ShellyRpcDevice",
    "execute",
    "run_exchange",
    "discover_devices",
    "find_device",
    "DiscoveredDevice",
    "BLEConnection",
    "PeerConnection",
    # Exceptions
    "ShellyRpcError",
    "AdapterNotReadyError",
    "BLEConnectionError",
    "BLETimeoutError",
    "ServiceNotFoundError",
    "CharacteristicsMissingError",
    "TransportIOError",
    "WriteFailedError",
    "ReadFailedError",
    "ProtocolError",
    "MalformedLengthError",
    "EmptyPayloadError",
    "InvalidJsonError",
    "ParamsNotJsonError",
    # Models
    "RpcRequest",
    "RpcResponse",
    "TransmissionProfile",
    "ReceiveTimings",
    "PRIMARY_PROFILE",
    "RETRY_PROFILE",
    # Utilities
    "encode_request",
    "decode_response",
    "parse_params",
    # Constants
    "SERVICE_UUID",
]
