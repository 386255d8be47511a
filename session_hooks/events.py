"""
Hook event payloads.

The host writes one JSON object to the hook's stdin per invocation.
Fields vary by hook; session_id is always required.
"""

from __future__ import annotations

import json
import os
from typing import Any, TextIO

from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import MalformedEvent


class HookEvent(BaseModel):
    """One lifecycle notification from the host."""

    session_id: str
    hook_event_name: str | None = None
    tool_name: str | None = None
    tool_input: dict[str, Any] = Field(default_factory=dict)
    file_path: str | None = None
    transcript_path: str | None = None
    cwd: str | None = None

    model_config = {
        "extra": "ignore",
    }

    @field_validator("session_id")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("session_id must not be blank")
        return value

    @field_validator("tool_input", mode="before")
    @classmethod
    def _input_mapping(cls, value: Any) -> Any:
        # Some hosts send tool_input as a JSON string or null
        if value is None:
            return {}
        if isinstance(value, str):
            try:
                decoded = json.loads(value)
            except (ValueError, RecursionError):
                return {"raw": value}
            return decoded if isinstance(decoded, dict) else {"raw": value}
        return value

    @property
    def target_file(self) -> str | None:
        """File the event refers to, from file_path or the tool input."""
        if self.file_path:
            return self.file_path
        for key in ("file_path", "path", "notebook_path"):
            value = self.tool_input.get(key)
            if isinstance(value, str) and value:
                return value
        return None

    @property
    def target_path(self) -> str | None:
        """target_file, with relative paths resolved against the event cwd."""
        path = self.target_file
        if path and self.cwd and not os.path.isabs(path):
            return os.path.join(self.cwd, path)
        return path


def parse_event(raw: str) -> HookEvent:
    """
    Decode a hook payload.

    Raises:
        MalformedEvent: If raw is empty, not a JSON object, or has no session_id
    """
    if not raw or not raw.strip():
        raise MalformedEvent("Empty hook payload")

    try:
        data = json.loads(raw)
    except (ValueError, RecursionError) as e:
        raise MalformedEvent(f"Hook payload is not JSON: {e}") from e

    if not isinstance(data, dict):
        raise MalformedEvent(f"Hook payload is a {type(data).__name__}, expected an object")

    try:
        return HookEvent.model_validate(data)
    except ValidationError as e:
        raise MalformedEvent(f"Invalid hook payload: {e.errors()[0]['msg']}") from e


def read_event(stream: TextIO) -> HookEvent:
    """Read and decode a single hook payload from a text stream."""
    try:
        raw = stream.read()
    except (OSError, UnicodeDecodeError) as e:
        raise MalformedEvent(f"Cannot read hook payload: {e}") from e
    return parse_event(raw)


__all__ = [
    "HookEvent",
    "parse_event",
    "read_event",
]
