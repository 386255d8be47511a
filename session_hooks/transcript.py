"""
Transcript summarizer for session-end bookkeeping.

Reads the JSONL transcript the host appends to during a session
(one JSON object per line, chronological) and reduces it to the
user messages, modified files and tool usage counts.

Two line shapes are understood:
- host entries: {"type": "user"|"assistant", "message": {"content": ...}}
  where content is a string or a list of text/tool_use/tool_result blocks
- flat entries: {"type": "user", "content": "..."} and
  {"type": "tool_use", "tool_name": "...", "tool_input": {...}}
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .errors import DecodeSkip
from .session_schema import SessionSummary

logger = logging.getLogger(__name__)

MODIFYING_TOOLS = frozenset({"Edit", "Write", "MultiEdit", "NotebookEdit"})

USER_MESSAGE = "user_message"
ASSISTANT_MESSAGE = "assistant_message"
TOOL_USE = "tool_use"


@dataclass
class TranscriptEvent:
    """A normalized transcript event."""

    kind: str  # user_message | assistant_message | tool_use
    text: str = ""
    tool_name: str | None = None
    file_path: str | None = None


@dataclass
class TranscriptSummary:
    """Summarized transcript."""

    user_messages: list[str] = field(default_factory=list)
    files_modified: set[str] = field(default_factory=set)
    tools_used: dict[str, int] = field(default_factory=dict)
    decode_errors: int = 0

    @property
    def message_count(self) -> int:
        return len(self.user_messages)

    def to_session_summary(self) -> SessionSummary:
        return SessionSummary(
            user_messages=list(self.user_messages),
            files_modified=set(self.files_modified),
            tools_used=dict(self.tools_used),
        )


def _block_text(blocks: list[Any]) -> str:
    """Extract text from content blocks."""
    parts = []
    for block in blocks:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            text = block.get("text", "")
            if isinstance(text, str):
                parts.append(text)
    return "\n".join(p for p in parts if p)


def _tool_event(name: Any, tool_input: Any) -> TranscriptEvent:
    tool_name = name if isinstance(name, str) and name else "unknown"
    file_path = None
    if isinstance(tool_input, dict):
        candidate = tool_input.get("file_path") or tool_input.get("notebook_path")
        if isinstance(candidate, str) and candidate:
            file_path = candidate
    return TranscriptEvent(kind=TOOL_USE, tool_name=tool_name, file_path=file_path)


class TranscriptSummarizer:
    """
    Turn transcript lines into events and a summary.

    Lines that fail to decode are skipped and counted in decode_errors;
    nothing here raises on bad input.
    """

    def __init__(self) -> None:
        self.decode_errors = 0

    def decode_line(self, line: str, line_number: int) -> dict[str, Any] | None:
        """
        Decode one line.

        Returns:
            Entry dict, or None for blank lines

        Raises:
            DecodeSkip: If the line is not a JSON object
        """
        line = line.strip()
        if not line:
            return None
        try:
            entry = json.loads(line)
        except json.JSONDecodeError as e:
            raise DecodeSkip(f"Line {line_number}: {e.msg}", line_number) from e
        except (ValueError, RecursionError) as e:
            # Oversized integer literals or nesting past the recursion limit
            raise DecodeSkip(f"Line {line_number}: {type(e).__name__}", line_number) from e
        if not isinstance(entry, dict):
            raise DecodeSkip(f"Line {line_number}: not an object", line_number)
        return entry

    def iter_events(self, lines: Iterable[str]) -> Iterator[TranscriptEvent]:
        """Lazily yield normalized events, skipping undecodable lines."""
        for line_number, line in enumerate(lines, start=1):
            try:
                entry = self.decode_line(line, line_number)
            except DecodeSkip as e:
                self.decode_errors += 1
                logger.debug(f"Skipping transcript line: {e}")
                continue
            if entry is None:
                continue
            yield from self._entry_events(entry)

    def _entry_events(self, entry: dict[str, Any]) -> Iterator[TranscriptEvent]:
        entry_type = entry.get("type", "")

        if entry_type == TOOL_USE:
            yield _tool_event(entry.get("tool_name") or entry.get("name"), entry.get("tool_input") or entry.get("input"))
            return

        if entry_type not in ("user", "assistant"):
            return

        message = entry.get("message")
        if isinstance(message, dict):
            content = message.get("content", "")
        else:
            content = entry.get("content", "")

        if entry_type == "user":
            text = _block_text(content) if isinstance(content, list) else content
            # A user entry holding only tool_result blocks is not a message
            if isinstance(text, str) and text.strip():
                yield TranscriptEvent(kind=USER_MESSAGE, text=text)
            return

        if isinstance(content, list):
            text = _block_text(content)
            if text.strip():
                yield TranscriptEvent(kind=ASSISTANT_MESSAGE, text=text)
            for block in content:
                if isinstance(block, dict) and block.get("type") == "tool_use":
                    yield _tool_event(block.get("name"), block.get("input"))
        elif isinstance(content, str) and content.strip():
            yield TranscriptEvent(kind=ASSISTANT_MESSAGE, text=content)

    def summarize(self, lines: Iterable[str]) -> TranscriptSummary:
        """
        Summarize transcript lines.

        Args:
            lines: Transcript lines in chronological order

        Returns:
            TranscriptSummary (empty for empty input)
        """
        self.decode_errors = 0
        summary = TranscriptSummary()

        for event in self.iter_events(lines):
            if event.kind == USER_MESSAGE:
                summary.user_messages.append(event.text)
            elif event.kind == TOOL_USE and event.tool_name:
                summary.tools_used[event.tool_name] = summary.tools_used.get(event.tool_name, 0) + 1
                if event.tool_name in MODIFYING_TOOLS and event.file_path:
                    summary.files_modified.add(event.file_path)

        summary.decode_errors = self.decode_errors
        if summary.decode_errors:
            logger.info(f"Skipped {summary.decode_errors} undecodable transcript lines")
        return summary

    def summarize_file(self, path: str | Path | None) -> TranscriptSummary:
        """Summarize a transcript file; missing or unreadable files give an empty summary."""
        if not path:
            return TranscriptSummary()

        transcript_path = Path(path).expanduser()
        try:
            with open(transcript_path, encoding="utf-8", errors="replace") as f:
                return self.summarize(f)
        except OSError as e:
            logger.info(f"Transcript unavailable ({transcript_path}): {e}")
            return TranscriptSummary()


__all__ = [
    "TranscriptEvent",
    "TranscriptSummary",
    "TranscriptSummarizer",
    "MODIFYING_TOOLS",
]
