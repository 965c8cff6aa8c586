"""
Signaling Exceptions

Custom exceptions for relay and subscription errors.
"""


class SignalingError(Exception):
    """Base exception for signaling errors"""
    pass


class InvalidSubscriptionError(SignalingError):
    """Raised when the session id or role is missing or not recognised"""
    pass


class SessionNotFoundError(SignalingError):
    """Raised when no stream is open for the target session"""

    def __init__(self, message: str = "session not found"):
        super().__init__(message)


class PeerNotFoundError(SignalingError):
    """Raised when the opposite role has no active stream"""

    def __init__(self, message: str = "peer not found"):
        super().__init__(message)


class MalformedPayloadError(SignalingError):
    """Raised when a relay body is not valid JSON"""
    pass


class PayloadTooLargeError(SignalingError):
    """Raised when a relay body exceeds the configured size limit"""
    pass
