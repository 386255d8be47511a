"""
Session schema models for session hooks.

Pydantic models for the per-session record persisted under the
sessions directory as <session_id>.json.
"""

from __future__ import annotations

import time

from pydantic import BaseModel, Field, field_serializer

from .errors import SummaryAlreadyWritten


class SessionSummary(BaseModel):
    """What happened in a session, extracted from its transcript."""

    user_messages: list[str] = Field(default_factory=list)
    files_modified: set[str] = Field(default_factory=set)
    tools_used: dict[str, int] = Field(default_factory=dict)

    @field_serializer("files_modified")
    def _sorted_files(self, files: set[str]) -> list[str]:
        return sorted(files)


class SessionRecord(BaseModel):
    """
    Persistent bookkeeping for one host session.

    tool_call_count only grows, last_suggested_at_count never moves
    backwards, and summary is written at most once.
    """

    session_id: str
    tool_call_count: int = Field(default=0, ge=0)
    last_suggested_at_count: int | None = None
    compaction_events: list[float] = Field(default_factory=list)
    summary: SessionSummary | None = None
    message_count: int = Field(default=0, ge=0)
    created_at: float | None = None
    updated_at: float | None = None
    ended_at: float | None = None

    model_config = {
        "extra": "ignore",
    }

    def record_tool_call(self) -> int:
        """Count one tool invocation and return the new total."""
        self.tool_call_count += 1
        return self.tool_call_count

    def mark_suggested(self, at_count: int) -> None:
        """
        Remember the threshold a compaction suggestion was based on.

        Raises:
            ValueError: If at_count is lower than the previous mark
        """
        if self.last_suggested_at_count is not None and at_count < self.last_suggested_at_count:
            raise ValueError(
                f"last_suggested_at_count cannot move back from "
                f"{self.last_suggested_at_count} to {at_count}"
            )
        self.last_suggested_at_count = at_count

    def record_compaction(self, timestamp: float | None = None) -> float:
        """Append a compaction timestamp (epoch seconds)."""
        ts = time.time() if timestamp is None else timestamp
        self.compaction_events.append(ts)
        return ts

    def set_summary(self, summary: SessionSummary, message_count: int) -> None:
        """
        Record the end-of-session summary.

        Raises:
            SummaryAlreadyWritten: If the session already has a summary
        """
        if self.summary is not None:
            raise SummaryAlreadyWritten(f"Session {self.session_id} already summarized")
        self.summary = summary
        self.message_count = message_count
        self.ended_at = time.time()

    def touch(self) -> None:
        now = time.time()
        if self.created_at is None:
            self.created_at = now
        self.updated_at = now


__all__ = [
    "SessionSummary",
    "SessionRecord",
]
