"""
Session Registry

Core signaling state:
- Session membership (one channel per role)
- Guarded removal on disconnect
- Message relay to the opposite role
"""
import threading
from typing import Any, Dict, List, Optional
import logging

from .exceptions import PeerNotFoundError, SessionNotFoundError
from .models import EventChannel, Role, Session
from phone_bridge.services.metrics import active_sessions_gauge, open_streams_gauge

logger = logging.getLogger(__name__)


class SessionRegistry:
    """
    Maps session ids to their receiver/sender channels.

    Every critical section is short and free of suspension points, so the
    lock is never held across a stream's idle time and a cancelled stream
    always completes its removal.
    """

    def __init__(self):
        # session_id -> Session
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    # === Membership ===

    def register(self, session_id: str, role: Role, channel: EventChannel) -> Optional[EventChannel]:
        """Store channel as the role's slot, creating the session if needed.

        Returns the channel it displaced, if any.
        """
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                session = Session(session_id)
                self._sessions[session_id] = session

            displaced = session.slots.get(role)
            session.slots[role] = channel
            self._update_gauges()

        if displaced is not None and displaced is not channel:
            logger.info(f"[Signaling] {role.value} reconnected to session {session_id}, replacing previous stream")
            return displaced
        return None

    def unregister(self, session_id: str, role: Role, expected_channel: EventChannel) -> bool:
        """Remove the role's slot only if it still holds expected_channel."""
        with self._lock:
            removed = self._remove_slot(session_id, role, expected_channel)
            self._update_gauges()
        return removed

    def lookup_peer(self, session_id: str, role: Role) -> Optional[EventChannel]:
        """Channel of the opposite role, if one is open."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            return session.slots.get(role.peer)

    # === Relay ===

    def relay(self, session_id: str, role: Role, message: Any) -> None:
        """Push message onto the peer's stream.

        Raises SessionNotFoundError or PeerNotFoundError. A peer stream that
        can no longer accept messages is dropped and reported as missing.
        """
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError()

            peer_role = role.peer
            peer = session.slots.get(peer_role)
            if peer is None:
                raise PeerNotFoundError()

            if not self._deliver(session_id, peer_role, peer, message):
                raise PeerNotFoundError()

    def deliver(self, session_id: str, role: Role, channel: EventChannel, message: Any) -> bool:
        """Push message onto one channel.

        A channel that refuses it is closed and, if it still holds the
        role's slot, removed as on disconnect. Returns whether it was queued.
        """
        with self._lock:
            return self._deliver(session_id, role, channel, message)

    # === Shutdown ===

    def close_all(self) -> int:
        """Close every open channel so its stream ends. Returns how many were closed."""
        with self._lock:
            channels = [
                channel
                for session in self._sessions.values()
                for channel in session.slots.values()
            ]

        for channel in channels:
            channel.close()

        if channels:
            logger.info(f"[Signaling] Closed {len(channels)} open stream(s)")
        return len(channels)

    # === Query Methods ===

    def has_session(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    def get_channel(self, session_id: str, role: Role) -> Optional[EventChannel]:
        """Channel currently stored for the role."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            return session.slots.get(role)

    def get_session_roles(self, session_id: str) -> List[Role]:
        with self._lock:
            session = self._sessions.get(session_id)
            return list(session.slots) if session else []

    def active_session_count(self) -> int:
        with self._lock:
            return len(self._sessions)

    def total_streams(self) -> int:
        with self._lock:
            return sum(len(session.slots) for session in self._sessions.values())

    # === Internals (lock held) ===

    def _remove_slot(self, session_id: str, role: Role, expected_channel: EventChannel) -> bool:
        session = self._sessions.get(session_id)
        if session is None or session.slots.get(role) is not expected_channel:
            return False

        del session.slots[role]
        if session.is_empty():
            del self._sessions[session_id]
            logger.info(f"[Signaling] Session {session_id} removed")
        return True

    def _deliver(self, session_id: str, role: Role, channel: EventChannel, message: Any) -> bool:
        if channel.send_json(message):
            return True

        self._remove_slot(session_id, role, channel)
        self._update_gauges()
        channel.close()
        logger.warning(f"[Signaling] Dropped dead {role.value} stream of session {session_id}")
        return False

    def _update_gauges(self) -> None:
        active_sessions_gauge.set(len(self._sessions))
        open_streams_gauge.set(sum(len(session.slots) for session in self._sessions.values()))
