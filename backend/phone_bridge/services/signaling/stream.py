"""
Event Stream

Lifecycle of one subscribed role:
- Registration into the session registry
- peer-joined / superseded notifications
- Server-sent event framing with keep-alive comments
- Guarded removal however the stream ends
"""
import asyncio
from contextlib import contextmanager
from typing import AsyncIterator, Iterator, Optional
import logging

from phone_bridge.config.constants import (
    PEER_JOINED_EVENT,
    SSE_CONNECTED_COMMENT,
    SSE_KEEPALIVE_COMMENT,
    SUPERSEDED_EVENT,
)
from .messages import encode_event
from .models import CHANNEL_CLOSED, EventChannel, Role
from .registry import SessionRegistry

logger = logging.getLogger(__name__)


@contextmanager
def subscription(
    registry: SessionRegistry,
    session_id: str,
    role: Role,
    max_pending: int = 0
) -> Iterator[EventChannel]:
    """
    Register a new channel for (session_id, role) for the duration of the block.

    On exit the channel is closed and its slot removed, unless a newer
    subscription for the same role has already replaced it.
    """
    channel = EventChannel(session_id, role, max_pending=max_pending)
    displaced = registry.register(session_id, role, channel)
    logger.info(f"[Signaling] {role.value} connected to session {session_id}")

    if displaced is not None:
        registry.deliver(session_id, role, displaced, SUPERSEDED_EVENT)

    # A peer that cannot take the notice is dropped, so this side is not paired
    peer = registry.lookup_peer(session_id, role)
    if peer is not None and registry.deliver(session_id, role.peer, peer, PEER_JOINED_EVENT):
        registry.deliver(session_id, role, channel, PEER_JOINED_EVENT)

    try:
        yield channel
    finally:
        channel.close()
        if registry.unregister(session_id, role, channel):
            logger.info(f"[Signaling] {role.value} disconnected from {session_id}")
        else:
            logger.debug(f"[Signaling] Stale {role.value} stream of {session_id} closed")


async def event_stream(
    registry: SessionRegistry,
    session_id: str,
    role: Role,
    keepalive_sec: Optional[float] = None,
    max_pending: int = 0
) -> AsyncIterator[str]:
    """Server-sent event body for one subscriber. Ends when its channel closes."""
    with subscription(registry, session_id, role, max_pending=max_pending) as channel:
        yield SSE_CONNECTED_COMMENT

        while True:
            try:
                message = await asyncio.wait_for(channel.receive(), timeout=keepalive_sec or None)
            except asyncio.TimeoutError:
                yield SSE_KEEPALIVE_COMMENT
                continue

            if message is CHANNEL_CLOSED:
                break
            yield encode_event(message)
