"""
Signaling Module

Session registry, event channels and the relay used by the /events and
/signal endpoints.
"""
from .exceptions import (
    SignalingError,
    InvalidSubscriptionError,
    SessionNotFoundError,
    PeerNotFoundError,
    MalformedPayloadError,
    PayloadTooLargeError,
)
from .messages import encode_event, parse_signal
from .models import CHANNEL_CLOSED, EventChannel, Role, Session
from .registry import SessionRegistry
from .stream import event_stream, subscription

# Singleton instance
session_registry = SessionRegistry()

__all__ = [
    "CHANNEL_CLOSED",
    "EventChannel",
    "Role",
    "Session",
    "SessionRegistry",
    "SignalingError",
    "InvalidSubscriptionError",
    "SessionNotFoundError",
    "PeerNotFoundError",
    "MalformedPayloadError",
    "PayloadTooLargeError",
    "encode_event",
    "event_stream",
    "parse_signal",
    "session_registry",
    "subscription",
]
