"""
Application-wide constants for the signaling relay and image bridge.

Environment-dependent settings (ports, storage root, limits) belong in settings.py.
This file is for protocol values that never change between environments.
"""

# ==============================================================================
# SIGNALING EVENTS
# ==============================================================================

# Pushed to both streams once a session has a receiver and a sender
PEER_JOINED_EVENT: dict[str, str] = {"type": "peer-joined"}

# Pushed to a stream that was displaced by a newer subscription for its role
SUPERSEDED_EVENT: dict[str, str] = {"type": "superseded"}

# ==============================================================================
# SERVER-SENT EVENTS
# ==============================================================================

SSE_MEDIA_TYPE: str = "text/event-stream"

SSE_HEADERS: dict[str, str] = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}

# Comment frames (ignored by EventSource clients)
SSE_CONNECTED_COMMENT: str = ": connected\n\n"
SSE_KEEPALIVE_COMMENT: str = ": keep-alive\n\n"

# ==============================================================================
# CORS
# ==============================================================================

CORS_ALLOW_METHODS: list[str] = ["GET", "POST", "OPTIONS"]
CORS_ALLOW_HEADERS: list[str] = ["Content-Type"]

# ==============================================================================
# IMAGE STORAGE
# ==============================================================================

# Prefix of every saved asset, followed by a timestamp and a random token
SAVED_IMAGE_PREFIX: str = "phone-bridge"

# Sub-directory of the graph where assets are written
ASSETS_DIR_NAME: str = "assets"

# Characters outside this class are replaced with "_"
FILENAME_UNSAFE_PATTERN: str = r"[^a-zA-Z0-9._-]"

# ==============================================================================
# TLS
# ==============================================================================

SSL_KEY_FILENAME: str = "key.pem"
SSL_CERT_FILENAME: str = "cert.pem"

SSL_HELP_COMMAND: str = (
    'openssl req -x509 -newkey rsa:2048 -keyout .ssl/key.pem -out .ssl/cert.pem '
    '-days 365 -nodes -subj "/CN=phone-bridge"'
)
