"""The desktop server's in-memory state, wired together in one place.

A DesktopState is created per application (and per test). It owns the user
registry, sessions, file storage, package catalog, request statistics, the
maintenance scheduler, and the single lock that serializes mutations
between request handlers and the background jobs.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from core.auth.password import Pbkdf2Hasher
from core.auth.registry import UserRegistry
from core.auth.session_store import DEFAULT_SESSION_TTL_SECONDS, SessionStore
from core.maintenance import BACKUP_INTERVAL_SECONDS, SESSION_SWEEP_INTERVAL_SECONDS, MaintenanceScheduler
from core.packages.registry import PackageRegistry, load_catalog
from core.storage import UserFileStorage
from core.sync import FileSyncService

if TYPE_CHECKING:
    from core.auth.password import PasswordHasher


@dataclass
class ServerStats:
    started_at: float = field(default_factory=time.time)
    total_requests: int = 0

    @property
    def uptime_seconds(self) -> int:
        return int(time.time() - self.started_at)


class DesktopState:
    def __init__(
        self,
        *,
        data_dir: str | Path,
        backup_dir: str | Path,
        log_dir: str | Path | None = None,
        catalog_path: Path | None = None,
        session_ttl_seconds: float = DEFAULT_SESSION_TTL_SECONDS,
        sweep_interval_seconds: float = SESSION_SWEEP_INTERVAL_SECONDS,
        backup_interval_seconds: float = BACKUP_INTERVAL_SECONDS,
        password_hasher: PasswordHasher | None = None,
    ) -> None:
        self.lock = asyncio.Lock()
        self.stats = ServerStats()
        self.sessions = SessionStore(ttl_seconds=session_ttl_seconds)
        self.storage = UserFileStorage(data_dir)
        self.users = UserRegistry(
            self.sessions,
            self.storage,
            password_hasher=password_hasher or Pbkdf2Hasher(),
            lock=self.lock,
            error_log_dir=log_dir,
        )
        self.files = FileSyncService(self.users, self.storage, lock=self.lock)
        self.packages = PackageRegistry(load_catalog(catalog_path), self.users, lock=self.lock)
        self.scheduler = MaintenanceScheduler(
            self.sessions,
            self.storage,
            backup_dir,
            lock=self.lock,
            snapshot=self.snapshot,
            sweep_interval=sweep_interval_seconds,
            backup_interval=backup_interval_seconds,
        )

    def counters(self) -> dict[str, Any]:
        return {
            "startTime": datetime.fromtimestamp(self.stats.started_at, tz=UTC).isoformat(),
            "totalRequests": self.stats.total_requests,
            "activeSessions": self.sessions.active_count,
            "totalUsers": self.users.user_count,
        }

    def snapshot(self) -> dict[str, Any]:
        """Serializable copy of the registry and counters, as stored in backups."""
        return {
            "timestamp": datetime.now(tz=UTC).isoformat(),
            "users": [[u.user_id, u.model_dump(mode="json", by_alias=True)] for u in self.users.users()],
            "stats": self.counters(),
        }

    def start(self) -> None:
        self.scheduler.start()

    async def stop(self) -> None:
        await self.scheduler.stop()
