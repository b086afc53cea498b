"""RPC envelope encoding and response decoding.

Requests are JSON objects of the form::

    {"id": <int>, "src": "user_1", "method": "<Namespace.Method>", "params": {...}}

There is deliberately no ``jsonrpc`` member; Shelly firmware rejects or
ignores requests that carry one on the BLE transport.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from typing import Any

from ..exceptions import EmptyPayloadError, InvalidJsonError, ParamsNotJsonError
from ..models.rpc import RpcRequest
from .constants import DEFAULT_SOURCE

_LOGGER = logging.getLogger(__name__)


def timestamp_id() -> int:
    """Request id derived from the current time in milliseconds."""
    return int(time.time() * 1000)


def build_request(
        method: str,
        params: Any = None,
        id_source: Callable[[], int] = timestamp_id,
        source: str = DEFAULT_SOURCE,
) -> RpcRequest:
    """Build an immutable request with a fresh id."""
    return RpcRequest(
        id=id_source(),
        src=source,
        method=method,
        params=params if params is not None else {},
    )


def encode_request(
        method: str,
        params: Any = None,
        id_source: Callable[[], int] = timestamp_id,
        source: str = DEFAULT_SOURCE,
) -> bytes:
    """Build a request and serialize it to compact UTF-8 JSON.

    Args:
        method: RPC method, e.g. "Shelly.GetStatus"
        params: JSON-serializable params (None becomes {})
        id_source: Callable returning the request id
        source: Value of the "src" member

    Raises:
        ParamsNotJsonError: If params cannot be serialized to JSON
    """
    return serialize_request(build_request(method, params, id_source, source))


def serialize_request(request: RpcRequest) -> bytes:
    """Serialize a request to compact UTF-8 JSON bytes.

    Raises:
        ParamsNotJsonError: If params cannot be serialized to JSON
    """
    try:
        text = json.dumps(
            request.to_dict(),
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        )
    except (TypeError, ValueError) as e:
        raise ParamsNotJsonError(f"Params are not JSON serializable: {e}") from e
    return text.encode("utf-8")


def decode_response(data: bytes) -> Any:
    """Decode an assembled response payload.

    Args:
        data: Raw bytes read from the data characteristic

    Returns:
        Parsed JSON value (shape is defined by the peer)

    Raises:
        EmptyPayloadError: If payload is empty or whitespace only
        InvalidJsonError: If payload is not valid JSON (raw text preserved)
    """
    text = bytes(data).decode("utf-8", errors="replace")
    if not text.strip():
        raise EmptyPayloadError("Received empty response")

    try:
        return json.loads(text)
    except ValueError as e:
        _LOGGER.error("JSON parse error. Full response text: %r", text)
        raise InvalidJsonError(text, str(e), bytes(data)) from e


def parse_params(text: str | None) -> Any:
    """Parse user-supplied params text.

    Empty or missing text means no params ({}).

    Raises:
        ParamsNotJsonError: If text is not valid JSON
    """
    if text is None or not text.strip():
        return {}
    try:
        return json.loads(text)
    except ValueError as e:
        raise ParamsNotJsonError(f"Failed to parse params as JSON: {e}") from e
