"""
Signaling API - Peer-to-peer handshake relay

Implements:
- GET /events: server-sent event stream for one role of a session
- POST /signal: relay of an opaque JSON message to the opposite role

Errors are plain-text bodies, the same content type as the "ok" reply.
"""
from typing import Optional
import logging

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import PlainTextResponse, StreamingResponse

from phone_bridge.api.deps import get_session_registry
from phone_bridge.config.constants import SSE_HEADERS, SSE_MEDIA_TYPE
from phone_bridge.config.settings import settings
from phone_bridge.services.metrics import messages_relayed
from phone_bridge.services.signaling import (
    InvalidSubscriptionError,
    MalformedPayloadError,
    PayloadTooLargeError,
    PeerNotFoundError,
    Role,
    SessionNotFoundError,
    SessionRegistry,
    event_stream,
    parse_signal,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["signaling"])


def _error(status_code: int, message: str) -> PlainTextResponse:
    return PlainTextResponse(message, status_code=status_code)


def _require_subscriber(session_id: Optional[str], role: Optional[str]) -> Role:
    if not session_id or not role:
        raise InvalidSubscriptionError("Missing id or role")
    return Role.parse(role)


async def _read_body(request: Request, limit: int) -> bytes:
    """Read the request body, failing as soon as it exceeds limit bytes."""
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > limit:
        raise PayloadTooLargeError(f"Signal body exceeds {limit} bytes")

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            raise PayloadTooLargeError(f"Signal body exceeds {limit} bytes")
    return bytes(body)


@router.get("/events")
async def events(
    session_id: Optional[str] = Query(None, alias="id"),
    role: Optional[str] = Query(None),
    registry: SessionRegistry = Depends(get_session_registry)
):
    """
    Subscribe to signaling events for one role of a session.

    The stream emits {"type": "peer-joined"} once both roles are connected,
    {"type": "superseded"} if a newer subscription replaces this one, and
    every message relayed by the peer, one JSON object per event.
    """
    try:
        subscriber_role = _require_subscriber(session_id, role)
    except InvalidSubscriptionError as e:
        return _error(400, str(e))

    return StreamingResponse(
        event_stream(
            registry,
            session_id,
            subscriber_role,
            keepalive_sec=settings.SSE_KEEPALIVE_SEC,
            max_pending=settings.EVENT_QUEUE_MAX_SIZE,
        ),
        media_type=SSE_MEDIA_TYPE,
        headers=SSE_HEADERS,
    )


@router.post("/signal", response_class=PlainTextResponse)
async def signal(
    request: Request,
    session_id: Optional[str] = Query(None, alias="id"),
    role: Optional[str] = Query(None),
    registry: SessionRegistry = Depends(get_session_registry)
):
    """
    Relay a JSON message to the opposite role of the session.

    The payload is forwarded without interpretation; delivery is not
    acknowledged by the peer.
    """
    try:
        sender_role = _require_subscriber(session_id, role)
        body = await _read_body(request, settings.MAX_SIGNAL_BODY_BYTES)
        message = parse_signal(body)
        registry.relay(session_id, sender_role, message)
    except InvalidSubscriptionError as e:
        return _error(400, str(e))
    except PayloadTooLargeError as e:
        messages_relayed.labels(outcome="too_large").inc()
        return _error(413, str(e))
    except MalformedPayloadError as e:
        messages_relayed.labels(outcome="malformed").inc()
        logger.warning(f"[Signaling] Malformed message for session {session_id}: {e}")
        return _error(settings.SIGNAL_PARSE_ERROR_STATUS, str(e))
    except SessionNotFoundError as e:
        messages_relayed.labels(outcome="session_not_found").inc()
        return _error(404, str(e))
    except PeerNotFoundError as e:
        messages_relayed.labels(outcome="peer_not_found").inc()
        logger.debug(f"[Signaling] Peer not found for {session_id}")
        return _error(404, str(e))

    messages_relayed.labels(outcome="delivered").inc()
    return PlainTextResponse("ok")
