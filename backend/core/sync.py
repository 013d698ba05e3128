"""Authenticated file sync operations over the user registry and file storage."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog
from anyio import to_thread

if TYPE_CHECKING:
    import asyncio

    from core.auth.models import ErrorRecord, UserProfile
    from core.auth.registry import UserRegistry
    from core.storage import FileEntry, UserFileStorage

logger = structlog.get_logger()


@dataclass(frozen=True)
class SyncSnapshot:
    """Everything the desktop shell needs to rebuild a user's workspace."""

    profile: UserProfile
    files: list[FileEntry]
    installed_apps: list[str]
    error_log: list[ErrorRecord]


class FileSyncService:
    """Sync, save and read files for an authenticated user.

    Directory walks and file I/O run in worker threads. A session may be
    destroyed while one of those is in flight, so it is checked again
    before the result is returned.
    """

    def __init__(self, users: UserRegistry, storage: UserFileStorage, *, lock: asyncio.Lock) -> None:
        self._users = users
        self._storage = storage
        self._lock = lock

    async def sync(self, token: str | None, user_id: str) -> SyncSnapshot:
        self._users.authenticate(token, user_id)

        files = await to_thread.run_sync(self._storage.list_files, user_id)

        session, user = self._users.authenticate(token, user_id)
        self._users.session_store.touch(session.token)
        logger.info("data synced", user_id=user_id, files=len(files))
        return SyncSnapshot(
            profile=user.profile(),
            files=files,
            installed_apps=list(user.installed_apps),
            error_log=list(user.error_log),
        )

    async def save_file(self, token: str | None, user_id: str, path: str, content: str) -> None:
        self._users.authenticate(token, user_id)
        async with self._lock:
            # session may have ended while waiting for the lock
            self._users.authenticate(token, user_id)
            await to_thread.run_sync(self._storage.write_file, user_id, path, content)

    async def read_file(self, token: str | None, user_id: str, path: str) -> bytes:
        self._users.authenticate(token, user_id)
        return await to_thread.run_sync(self._storage.read_file, user_id, path)
