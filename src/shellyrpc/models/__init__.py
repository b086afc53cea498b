"""Data models for Shelly BLE RPC exchanges."""

from .profile import PRIMARY_PROFILE, RETRY_PROFILE, ReceiveTimings, TransmissionProfile
from .rpc import RpcRequest, RpcResponse
from .transfer import Attempt, LengthSignal, ReceivePhase, TransferState

__all__ = [
    "Attempt",
    "LengthSignal",
    "PRIMARY_PROFILE",
    "RETRY_PROFILE",
    "ReceivePhase",
    "ReceiveTimings",
    "RpcRequest",
    "RpcResponse",
    "TransferState",
    "TransmissionProfile",
]
