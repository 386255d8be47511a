"""Error taxonomy for session hooks.

None of these ever become a non-zero exit status; the hook runner
catches them, logs a diagnostic and lets the host continue.
"""

from __future__ import annotations

from pathlib import Path


class HookError(Exception):
    """Base class for hook failures."""


class MalformedEvent(HookError):
    """Hook payload is not parseable or lacks a session_id."""


class PersistenceError(HookError):
    """Session store read or write failed."""

    def __init__(self, message: str, session_id: str | None = None, path: Path | None = None):
        super().__init__(message)
        self.session_id = session_id
        self.path = path


class DecodeSkip(HookError):
    """A single transcript line could not be decoded."""

    def __init__(self, message: str, line_number: int):
        super().__init__(message)
        self.line_number = line_number


class SummaryAlreadyWritten(HookError):
    """Session summary was already recorded for this session."""


__all__ = [
    "HookError",
    "MalformedEvent",
    "PersistenceError",
    "DecodeSkip",
    "SummaryAlreadyWritten",
]
