"""
Session Store for session hooks.

One JSON record per session in ~/.claude/sessions/{session_id}.json,
guarded by a sibling .lock file so concurrent hook processes for the
same session serialize their read-modify-write.
"""

from __future__ import annotations

import fcntl
import hashlib
import logging
import os
import re
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from pydantic import ValidationError

from .errors import PersistenceError
from .session_schema import SessionRecord

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")
MAX_ID_LENGTH = 64


def sanitize_session_id(session_id: str) -> str:
    """
    Turn an untrusted session id into a safe filename stem.

    Ids that had to be altered get a short digest of the original
    appended so two different ids never share a file.

    Raises:
        ValueError: If session_id is empty
    """
    if not session_id:
        raise ValueError("session_id must not be empty")

    cleaned = _UNSAFE_CHARS.sub("-", session_id).lstrip(".")
    if cleaned == session_id and len(cleaned) <= MAX_ID_LENGTH:
        return cleaned

    digest = hashlib.sha256(session_id.encode("utf-8")).hexdigest()[:12]
    stem = cleaned[:MAX_ID_LENGTH].strip("-.")
    return f"{stem}-{digest}" if stem else digest


class SessionStore:
    """
    File-backed key-value store of SessionRecords.

    load() never fails on a missing record; save() overwrites the whole
    record atomically. Use transaction() for read-modify-write.
    """

    def __init__(self, base_dir: Path | None = None):
        """
        Initialize session store.

        Args:
            base_dir: Base directory for session files (default: ~/.claude/sessions)
        """
        self.base_dir = Path(base_dir) if base_dir else (Path.home() / ".claude" / "sessions")

    def record_path(self, session_id: str) -> Path:
        """Get the record file path for a session."""
        return self.base_dir / f"{sanitize_session_id(session_id)}.json"

    def lock_path(self, session_id: str) -> Path:
        return self.base_dir / f"{sanitize_session_id(session_id)}.lock"

    def exists(self, session_id: str) -> bool:
        return self.record_path(session_id).exists()

    def load(self, session_id: str) -> SessionRecord:
        """
        Load a session record.

        Args:
            session_id: Session to load

        Returns:
            Stored record, or a zero-valued record if none exists

        Raises:
            PersistenceError: If the file exists but cannot be read or parsed
        """
        path = self.record_path(session_id)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return SessionRecord(session_id=session_id)
        except OSError as e:
            raise PersistenceError(f"Cannot read {path}: {e}", session_id, path) from e

        try:
            record = SessionRecord.model_validate_json(raw)
        except ValidationError as e:
            raise PersistenceError(f"Invalid session record {path}: {e}", session_id, path) from e

        if record.session_id != session_id:
            raise PersistenceError(
                f"Session record {path} belongs to {record.session_id!r}", session_id, path
            )
        return record

    def save(self, record: SessionRecord) -> Path:
        """
        Persist a session record, overwriting prior content.

        Uses write-to-temp-then-rename so readers never see a partial file.

        Returns:
            Path to the saved record

        Raises:
            PersistenceError: On any filesystem failure
        """
        path = self.record_path(record.session_id)
        record.touch()

        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(
                suffix=".tmp",
                prefix="session_",
                dir=self.base_dir,
            )
        except OSError as e:
            raise PersistenceError(f"Cannot write {path}: {e}", record.session_id, path) from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(record.model_dump_json(indent=2))
            os.replace(temp_path, path)
        except OSError as e:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise PersistenceError(f"Cannot write {path}: {e}", record.session_id, path) from e

        logger.debug(f"Saved session {record.session_id} to {path}")
        return path

    @contextmanager
    def lock(self, session_id: str) -> Iterator[None]:
        """
        Hold an exclusive lock on a session for the duration of the block.

        Raises:
            PersistenceError: If the lock file cannot be opened
        """
        lock_path = self.lock_path(session_id)
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            lock_fh = open(lock_path, "a+")
        except OSError as e:
            raise PersistenceError(f"Cannot open lock {lock_path}: {e}", session_id, lock_path) from e

        with lock_fh:
            fcntl.flock(lock_fh.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock_fh.fileno(), fcntl.LOCK_UN)

    @contextmanager
    def transaction(self, session_id: str) -> Iterator[SessionRecord]:
        """
        Locked load -> mutate -> save.

        If the stored record cannot be read, a fresh record is yielded and
        nothing is written back, so a damaged file is never clobbered.
        Exceptions raised inside the block skip the save.

        Raises:
            PersistenceError: If locking or saving fails
        """
        with self.lock(session_id):
            try:
                record = self.load(session_id)
                persist = True
            except PersistenceError as e:
                logger.warning(f"Using in-memory session state: {e}")
                record = SessionRecord(session_id=session_id)
                persist = False

            yield record

            if persist:
                self.save(record)


__all__ = [
    "SessionStore",
    "sanitize_session_id",
]
