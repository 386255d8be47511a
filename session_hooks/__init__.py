"""Session hooks: lifecycle bookkeeping for the Claude CLI.

Short-lived hook processes share per-session state through a locked,
file-backed Session Store:

- pre-tool-use: count tool calls, suggest /compact at thresholds
- pre-compact: record compaction events
- post-edit / stop: warn about leftover debug statements
- session-end: summarize the transcript, flag long sessions for
  pattern extraction
"""

__version__ = "0.1.0"

from .config import CompactConfig, HooksConfig, LearningConfig, ScanConfig
from .dispatcher import HOOKS, HookResult, HookRunner
from .errors import DecodeSkip, HookError, MalformedEvent, PersistenceError, SummaryAlreadyWritten
from .events import HookEvent, parse_event, read_event
from .policy import compaction_thresholds, should_suggest, suggestion_point
from .session_schema import SessionRecord, SessionSummary
from .session_store import SessionStore, sanitize_session_id
from .transcript import TranscriptEvent, TranscriptSummarizer, TranscriptSummary

__all__ = [
    # Config
    "HooksConfig",
    "CompactConfig",
    "ScanConfig",
    "LearningConfig",
    # Errors
    "HookError",
    "MalformedEvent",
    "PersistenceError",
    "DecodeSkip",
    "SummaryAlreadyWritten",
    # Core
    "HookEvent",
    "parse_event",
    "read_event",
    "SessionRecord",
    "SessionSummary",
    "SessionStore",
    "sanitize_session_id",
    "suggestion_point",
    "should_suggest",
    "compaction_thresholds",
    "TranscriptEvent",
    "TranscriptSummarizer",
    "TranscriptSummary",
    # Dispatch
    "HOOKS",
    "HookResult",
    "HookRunner",
]
