"""Per-user file storage on the local filesystem.

Every user owns one directory under the storage root, named by user id.
All paths coming from clients are resolved to canonical absolute paths and
must have the user's directory as an ancestor; anything else is rejected
before the filesystem is touched.

The methods here are blocking. Async callers run them through
anyio.to_thread.run_sync().
"""

from __future__ import annotations

import contextlib
import os
import shutil
import stat
import tempfile
from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path

import structlog
from pydantic import BaseModel

from core.errors import ForbiddenError, InvalidInputError, NotFoundError, StorageError

logger = structlog.get_logger()

TEMPLATE_FOLDERS = ("Documents", "Downloads", "Pictures", "Music", "Videos")
README_NAME = "README.txt"
README_CONTENT = "Welcome to SoinLinkx OS!"


class EntryType(StrEnum):
    FILE = "file"
    FOLDER = "folder"


class FileEntry(BaseModel, frozen=True):
    """One item of a user's file inventory. Derived from disk, never stored."""

    name: str
    path: str  # relative to the user's root, "/"-separated
    type: EntryType
    size: int
    modified: datetime
    created: datetime


def _timestamp(value: float) -> datetime:
    return datetime.fromtimestamp(value, tz=UTC)


class UserFileStorage:
    """Directory-per-user storage with containment checks on every path."""

    def __init__(self, root_dir: str | Path) -> None:
        self._root = Path(root_dir).resolve()

    @property
    def root(self) -> Path:
        return self._root

    def user_root(self, user_id: str) -> Path:
        """Return the directory owned by ``user_id``.

        The id must name a direct child of the storage root.
        """
        target = (self._root / user_id).resolve()
        if target.parent != self._root:
            raise ForbiddenError("Access denied")
        return target

    def resolve(self, user_id: str, relative_path: str) -> Path:
        """Resolve a client path inside the user's directory.

        A leading separator addresses the user's root, so ``/Documents/a.txt``
        and ``Documents/a.txt`` name the same file. Raises ForbiddenError when
        the canonical path escapes the directory, via ``..`` segments or symlinks.
        """
        user_dir = self.user_root(user_id)
        target = (user_dir / relative_path.lstrip("/\\")).resolve()
        if not target.is_relative_to(user_dir):
            logger.warning("path traversal rejected", user_id=user_id, path=relative_path)
            raise ForbiddenError("Access denied")
        if target == user_dir:
            raise InvalidInputError("File path required")
        return target

    def provision(self, user_id: str) -> bool:
        """Create the user's directory from the template.

        Does nothing when the directory already exists, so retries never
        clobber user data. Returns True if the directory was created.
        """
        user_dir = self.user_root(user_id)
        if user_dir.exists():
            return False
        try:
            user_dir.mkdir(parents=True)
            for folder in TEMPLATE_FOLDERS:
                (user_dir / folder).mkdir(exist_ok=True)
            (user_dir / README_NAME).write_text(README_CONTENT, encoding="utf-8")
        except OSError as e:
            logger.error("failed to provision user directory", user_id=user_id, error=str(e))
            raise StorageError("Error creating user directory") from e
        logger.info("provisioned user directory", user_id=user_id, path=str(user_dir))
        return True

    def list_files(self, user_id: str) -> list[FileEntry]:
        """Return the flattened inventory of the user's directory.

        Entries are depth-first with siblings sorted by name. A missing
        directory yields an empty inventory. Symlinks are skipped.
        """
        user_dir = self.user_root(user_id)
        entries: list[FileEntry] = []
        if user_dir.is_dir():
            self._walk(user_dir, user_dir, entries)
        return entries

    def _walk(self, directory: Path, user_dir: Path, entries: list[FileEntry]) -> None:
        try:
            children = sorted(directory.iterdir(), key=lambda p: p.name)
        except FileNotFoundError:
            return
        for child in children:
            try:
                st = child.lstat()
            except FileNotFoundError:
                continue  # removed while walking
            if stat.S_ISLNK(st.st_mode):
                continue
            is_dir = stat.S_ISDIR(st.st_mode)
            entries.append(
                FileEntry(
                    name=child.name,
                    path=child.relative_to(user_dir).as_posix(),
                    type=EntryType.FOLDER if is_dir else EntryType.FILE,
                    size=st.st_size,
                    modified=_timestamp(st.st_mtime),
                    created=_timestamp(getattr(st, "st_birthtime", st.st_ctime)),
                ),
            )
            if is_dir:
                self._walk(child, user_dir, entries)

    def write_file(self, user_id: str, relative_path: str, content: str) -> Path:
        """Write text content, creating parent directories and replacing any existing file.

        Writes go through a temp file in the target directory and are renamed
        into place, so readers never observe a partial file.
        """
        target = self.resolve(user_id, relative_path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=target.parent, prefix=".save_", suffix=".tmp")
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(content.encode("utf-8"))
                    f.flush()
                Path(tmp_path).replace(target)
            except BaseException:
                with contextlib.suppress(OSError):
                    Path(tmp_path).unlink()
                raise
        except OSError as e:
            logger.error("error saving file", user_id=user_id, path=relative_path, error=str(e))
            raise StorageError("Error saving file") from e
        logger.info("file saved", user_id=user_id, path=relative_path)
        return target

    def read_file(self, user_id: str, relative_path: str) -> bytes:
        """Return the raw bytes of a file in the user's directory."""
        target = self.resolve(user_id, relative_path)
        if not target.is_file():
            raise NotFoundError("File not found")
        try:
            return target.read_bytes()
        except FileNotFoundError as e:
            raise NotFoundError("File not found") from e
        except OSError as e:
            logger.error("error reading file", user_id=user_id, path=relative_path, error=str(e))
            raise StorageError("Error reading file") from e

    def copy_all(self, destination: Path) -> int:
        """Copy every user directory under ``destination``. Return the number copied."""
        if not self._root.is_dir():
            return 0
        copied = 0
        for user_dir in sorted(self._root.iterdir()):
            if not user_dir.is_dir() or user_dir.is_symlink():
                continue
            shutil.copytree(user_dir, destination / user_dir.name, symlinks=True, dirs_exist_ok=True)
            copied += 1
        return copied
