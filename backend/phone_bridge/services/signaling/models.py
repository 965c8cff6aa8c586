"""
Signaling Models

Roles, per-stream event channels and the session routing record.
"""
import asyncio
from enum import Enum
from typing import Any, Dict, Optional
import logging

from .exceptions import InvalidSubscriptionError

logger = logging.getLogger(__name__)

# Queued after the last message of a closed channel
CHANNEL_CLOSED = object()


class Role(str, Enum):
    """The two participant types of a session."""

    RECEIVER = "receiver"
    SENDER = "sender"

    @property
    def peer(self) -> "Role":
        return Role.SENDER if self is Role.RECEIVER else Role.RECEIVER

    @classmethod
    def parse(cls, value: Optional[str]) -> "Role":
        try:
            return cls(value)
        except ValueError:
            raise InvalidSubscriptionError(f"Invalid role: {value!r}") from None


class EventChannel:
    """
    Server-side handle of one open event stream.

    Single producer (the relay) and single consumer (the stream response).
    Messages are delivered in the order they were sent.
    """

    def __init__(self, session_id: str, role: Role, max_pending: int = 0):
        self.session_id = session_id
        self.role = role
        self.max_pending = max_pending
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send_json(self, message: Any) -> bool:
        """Queue a JSON value for this stream. Returns False if it cannot be delivered."""
        if self._closed:
            return False
        if self.max_pending and self._queue.qsize() >= self.max_pending:
            logger.warning(
                f"[Signaling] {self.role.value} stream of session {self.session_id} "
                f"is saturated ({self.max_pending} pending)"
            )
            return False
        self._queue.put_nowait(message)
        return True

    def close(self) -> None:
        """Stop accepting messages; the consumer drains what is queued, then ends."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(CHANNEL_CLOSED)

    async def receive(self) -> Any:
        """Next queued message, or CHANNEL_CLOSED once the channel is drained."""
        return await self._queue.get()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<EventChannel {self.session_id}/{self.role.value} {state}>"


class Session:
    """Routing entry of a session: at most one open channel per role."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        self.slots: Dict[Role, EventChannel] = {}

    def is_empty(self) -> bool:
        return not self.slots
