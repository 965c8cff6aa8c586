"""
Signal message codec.

Payloads are opaque JSON values: they are parsed only to check they are JSON
and re-serialized compactly with key order and non-ASCII text preserved.
Only strict JSON is accepted, so every relayed event can be read back by a
browser's JSON.parse.
"""
import json
import math
from typing import Any

from .exceptions import MalformedPayloadError


def _reject_constant(name: str) -> Any:
    raise MalformedPayloadError(f"Invalid JSON constant: {name}")


def _finite_float(text: str) -> float:
    value = float(text)
    if math.isinf(value):
        raise MalformedPayloadError(f"Number out of range: {text}")
    return value


def parse_signal(body: bytes) -> Any:
    """Decode a relay request body."""
    try:
        return json.loads(body, parse_constant=_reject_constant, parse_float=_finite_float)
    except ValueError as e:
        raise MalformedPayloadError(str(e)) from e


def encode_event(message: Any) -> str:
    """Frame a message as a single server-sent event."""
    data = json.dumps(message, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    return f"data: {data}\n\n"
