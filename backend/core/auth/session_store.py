"""In-memory session store keyed by opaque random tokens."""

from __future__ import annotations

import secrets
import time

import structlog

from core.auth.models import Session

DEFAULT_SESSION_TTL_SECONDS = 86400  # 24 hours of inactivity
TOKEN_BYTES = 32

logger = structlog.get_logger()


class SessionStore:
    """Session tokens with inactivity expiry.

    A session expires once ``last_activity`` is more than ``ttl_seconds`` in
    the past. Expired sessions are dropped on lookup and by ``sweep_expired``,
    which the maintenance scheduler runs periodically.
    Sessions are ephemeral: a server restart means re-login.
    """

    def __init__(self, ttl_seconds: float = DEFAULT_SESSION_TTL_SECONDS) -> None:
        self._sessions: dict[str, Session] = {}
        self._ttl_seconds = ttl_seconds

    @property
    def active_count(self) -> int:
        return len(self._sessions)

    def create_session(self, user_id: str) -> Session:
        """Create a session for an authenticated user."""
        now = time.time()
        session = Session(
            token=secrets.token_hex(TOKEN_BYTES),
            user_id=user_id,
            login_time=now,
            last_activity=now,
        )
        self._sessions[session.token] = session
        return session

    def get_session(self, token: str | None) -> Session | None:
        """Return a live (non-expired) session, or None."""
        if not token:
            return None
        session = self._sessions.get(token)
        if session is None:
            return None
        if self._is_expired(session, time.time()):
            del self._sessions[token]
            return None
        return session

    def touch(self, token: str) -> None:
        """Mark the session as active now. Unknown tokens are ignored."""
        session = self._sessions.get(token)
        if session is not None:
            session.last_activity = time.time()

    def delete_session(self, token: str | None) -> bool:
        """Remove a session (logout). Return True if it existed."""
        if not token:
            return False
        return self._sessions.pop(token, None) is not None

    def sweep_expired(self) -> int:
        """Remove all expired sessions. Return count of removed sessions."""
        now = time.time()
        expired = [token for token, s in self._sessions.items() if self._is_expired(s, now)]
        for token in expired:
            del self._sessions[token]
        if expired:
            logger.info("cleaned up expired sessions", count=len(expired))
        return len(expired)

    def _is_expired(self, session: Session, now: float) -> bool:
        return now - session.last_activity > self._ttl_seconds
