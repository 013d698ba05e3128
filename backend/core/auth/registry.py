"""User registry coordinating registration, login, sessions and per-user error logs."""

from __future__ import annotations

import asyncio
import secrets
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from anyio import to_thread

from core.auth.models import ErrorRecord, User, UserSettings
from core.auth.password import generate_salt
from core.errors import AuthError, MissingFieldsError, NotFoundError, UsernameTakenError

if TYPE_CHECKING:
    from core.auth.models import Session, UserProfile
    from core.auth.password import PasswordHasher
    from core.auth.session_store import SessionStore
    from core.storage import UserFileStorage

USER_ID_PREFIX = "user_"
USER_ID_BYTES = 16

logger = structlog.get_logger()


def _new_user_id() -> str:
    return USER_ID_PREFIX + secrets.token_hex(USER_ID_BYTES)


def _format_error_entry(error: ErrorRecord) -> str:
    return f"[{error.time or ''}] [{error.code or ''}] {error.message or ''}\n{error.stack or ''}\n---\n"


def _append_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as f:
        f.write(text)


class UserRegistry:
    """In-memory user records plus the session lifecycle that authenticates them.

    Usernames are unique (case-sensitive, first registration wins). Users
    are never deleted. Mutations take the shared lock so they serialize with
    the maintenance jobs.
    """

    def __init__(
        self,
        session_store: SessionStore,
        storage: UserFileStorage,
        *,
        password_hasher: PasswordHasher,
        lock: asyncio.Lock | None = None,
        error_log_dir: str | Path | None = None,
    ) -> None:
        self._users: dict[str, User] = {}  # keyed by user_id
        self._session_store = session_store
        self._storage = storage
        self._hasher = password_hasher
        self._lock = lock or asyncio.Lock()
        self._error_log_dir = Path(error_log_dir) if error_log_dir is not None else None

    @property
    def user_count(self) -> int:
        return len(self._users)

    @property
    def session_store(self) -> SessionStore:
        return self._session_store

    def users(self) -> list[User]:
        return list(self._users.values())

    async def register(
        self,
        username: str,
        password: str,
        email: str | None = None,
        theme: str | None = None,
    ) -> User:
        """Create a user record and provision its file directory."""
        if not username or not password:
            logger.warning("registration failed: missing fields", username=username)
            raise MissingFieldsError("Username and password required")

        async with self._lock:
            if self.get_by_username(username) is not None:
                logger.warning("registration failed: username exists", username=username)
                raise UsernameTakenError("Username already exists")

            salt = generate_salt()
            digest = await self._hasher.hash(password, salt)
            user = User(
                user_id=_new_user_id(),
                username=username,
                email=email,
                theme=theme,
                salt=salt,
                password_hash=digest,
                settings=UserSettings(theme=theme),
            )
            await to_thread.run_sync(self._storage.provision, user.user_id)
            self._users[user.user_id] = user

        logger.info("user registered", user_id=user.user_id, username=username)
        return user

    async def login(self, username: str, password: str) -> tuple[Session, User]:
        """Validate credentials and open a new session."""
        user = self.get_by_username(username)
        if user is None:
            logger.warning("login failed: user not found", username=username)
            raise AuthError("Invalid credentials")
        if not await self._hasher.verify(password, user.salt, user.password_hash):
            logger.warning("login failed: invalid password", username=username)
            raise AuthError("Invalid credentials")

        async with self._lock:
            session = self._session_store.create_session(user.user_id)
            user.last_login = datetime.now(tz=UTC)
            user.stats.sessions += 1

        logger.info("user logged in", user_id=user.user_id, username=username)
        return session, user

    def logout(self, token: str | None) -> bool:
        """Destroy a session. Unknown tokens are ignored."""
        removed = self._session_store.delete_session(token)
        if removed:
            logger.info("user logged out")
        return removed

    def validate_session(self, token: str | None) -> Session:
        session = self._session_store.get_session(token)
        if session is None:
            raise AuthError("Invalid session")
        return session

    def authenticate(self, token: str | None, user_id: str) -> tuple[Session, User]:
        """Check that ``token`` is a live session belonging to ``user_id``."""
        session = self.validate_session(token)
        user = self.get_user(user_id)
        if session.user_id != user.user_id:
            logger.warning("session used for another user", session_user=session.user_id, user_id=user_id)
            raise AuthError("Invalid session")
        return session, user

    def get_user(self, user_id: str) -> User:
        user = self._users.get(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def get_by_username(self, username: str) -> User | None:
        return next((u for u in self._users.values() if u.username == username), None)

    def get_profile(self, user_id: str) -> UserProfile:
        return self.get_user(user_id).profile()

    async def record_error(self, user_id: str | None, error: ErrorRecord) -> bool:
        """Append a client-reported error to the user's log. Never raises.

        Returns False when the user is unknown. Failures writing the log
        file are logged and swallowed.
        """
        user = self._users.get(user_id) if user_id else None
        if user is None:
            return False
        user.error_log.append(error)

        if self._error_log_dir is not None:
            log_file = self._error_log_dir / f"{user.user_id}.log"
            try:
                await to_thread.run_sync(_append_text, log_file, _format_error_entry(error))
            except OSError as e:
                logger.error("error writing client error log", user_id=user.user_id, error=str(e))
        return True
