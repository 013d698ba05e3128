"""Background maintenance: periodic session sweep and daily user-data backup.

Both jobs run as asyncio tasks owned by MaintenanceScheduler and take the
shared mutation lock, so they never observe a request handler halfway
through a change. Either job can also be run directly.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import shutil
import tempfile
from datetime import UTC, date, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
from anyio import to_thread

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from core.auth.session_store import SessionStore
    from core.storage import UserFileStorage

SESSION_SWEEP_INTERVAL_SECONDS = 3600  # 1 hour
BACKUP_INTERVAL_SECONDS = 86400  # 24 hours
BACKUP_DATE_FORMAT = "%Y-%m-%d"
BACKUP_STATE_FILE = "state.json"
BACKUP_USER_DATA_DIR = "user_data"

logger = structlog.get_logger()


def backup_dir_for(backup_root: Path, day: date) -> Path:
    return backup_root / day.strftime(BACKUP_DATE_FORMAT)


class MaintenanceScheduler:
    """Owns the session-sweep and backup loops.

    Call start() on app startup and stop() on shutdown.
    """

    def __init__(
        self,
        session_store: SessionStore,
        storage: UserFileStorage,
        backup_root: str | Path,
        *,
        lock: asyncio.Lock,
        snapshot: Callable[[], dict[str, Any]],
        sweep_interval: float = SESSION_SWEEP_INTERVAL_SECONDS,
        backup_interval: float = BACKUP_INTERVAL_SECONDS,
    ) -> None:
        self._session_store = session_store
        self._storage = storage
        self._backup_root = Path(backup_root)
        self._lock = lock
        self._snapshot = snapshot
        self._sweep_interval = sweep_interval
        self._backup_interval = backup_interval
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    async def sweep_sessions(self) -> int:
        """Remove sessions idle past their TTL. Return the number removed."""
        async with self._lock:
            return self._session_store.sweep_expired()

    async def create_backup(self, today: date | None = None) -> Path | None:
        """Write today's backup unless it already exists.

        The backup is assembled in a temp directory next to the final one and
        renamed into place, so a crash never leaves a half-written day that
        would block later attempts. Returns the backup directory, or None
        when today's backup was already taken.
        """
        day = today or datetime.now(tz=UTC).date()
        target = backup_dir_for(self._backup_root, day)

        async with self._lock:
            if target.exists():
                logger.debug("backup already exists", path=str(target))
                return None
            state = self._snapshot()
            copied = await to_thread.run_sync(self._write_backup, target, state)

        logger.info("backup created", path=str(target), users=copied)
        return target

    def _write_backup(self, target: Path, state: dict[str, Any]) -> int:
        self._backup_root.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(dir=self._backup_root, prefix=".backup_"))
        try:
            copied = self._storage.copy_all(staging / BACKUP_USER_DATA_DIR)
            (staging / BACKUP_STATE_FILE).write_text(json.dumps(state, indent=2), encoding="utf-8")
            staging.rename(target)
        except BaseException:
            shutil.rmtree(staging, ignore_errors=True)
            raise
        return copied

    def start(self) -> None:
        """Start both periodic loops. Idempotent."""
        if self.running:
            return
        self._tasks = [
            asyncio.create_task(self._run_periodically("session sweep", self._sweep_interval, self.sweep_sessions)),
            asyncio.create_task(self._run_periodically("backup", self._backup_interval, self.create_backup)),
        ]

    async def stop(self) -> None:
        """Cancel both loops and wait for them to finish."""
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _run_periodically(
        self,
        name: str,
        interval: float,
        job: Callable[[], Awaitable[object]],
    ) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await job()
            except Exception:
                logger.exception("maintenance job failed", job=name)
