"""RPC request and response records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class RpcRequest:
    """One outgoing RPC call.

    The id is never matched against the response; one request is in flight
    per connection at a time.
    """

    id: int
    src: str
    method: str
    params: Any

    def to_dict(self) -> dict[str, Any]:
        """Envelope in wire member order."""
        return {
            "id": self.id,
            "src": self.src,
            "method": self.method,
            "params": self.params,
        }


@dataclass(frozen=True, slots=True)
class RpcResponse:
    """Decoded response of one exchange.

    payload is whatever JSON value the peer sent; it is commonly an object
    with either a "result" or an "error" member.
    """

    request: RpcRequest
    payload: Any
    raw: bytes
    attempts: int = 1

    @property
    def result(self) -> Any:
        if isinstance(self.payload, dict):
            return self.payload.get("result")
        return None

    @property
    def error(self) -> Any:
        if isinstance(self.payload, dict):
            return self.payload.get("error")
        return None

    @property
    def is_error(self) -> bool:
        return self.error is not None
