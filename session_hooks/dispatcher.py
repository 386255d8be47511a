"""
Hook entry points and the runner that drives them.

Each entry point is a function of (event, session record, config) that
returns a HookResult; none of them touch the filesystem for session
state. HookRunner owns I/O: it decodes the payload, runs the entry point
inside the store's locked transaction, writes side files, prints the
advisory and always returns exit code 0.
"""

from __future__ import annotations

import logging
import sys
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import TextIO

from .config import HooksConfig
from .errors import HookError, MalformedEvent, PersistenceError, SummaryAlreadyWritten
from .events import HookEvent, read_event
from .policy import compaction_thresholds, suggestion_point
from .scan import MarkerHit, git_toplevel, modified_files, scan_files
from .session_schema import SessionRecord
from .session_store import SessionStore, sanitize_session_id
from .transcript import TranscriptSummarizer, TranscriptSummary

logger = logging.getLogger(__name__)

EXIT_OK = 0
MAX_REPORTED_LINES = 5


@dataclass
class HookResult:
    """Outcome of one hook entry point."""

    record: SessionRecord | None
    advisory: str | None = None
    exit_code: int = EXIT_OK


# =========================================================================
# Entry points
# =========================================================================


def pre_tool_use_counter(event: HookEvent, record: SessionRecord, config: HooksConfig) -> HookResult:
    """Count the tool call and suggest /compact at threshold crossings."""
    count = record.record_tool_call()
    try:
        thresholds = compaction_thresholds(count, config.compact.threshold, config.compact.interval)
        point = suggestion_point(count, record.last_suggested_at_count, thresholds)
    except (TypeError, ValueError) as e:
        # The count still has to be saved
        logger.warning(f"Compaction thresholds unavailable: {e}")
        return HookResult(record)
    if point is None:
        return HookResult(record)

    record.mark_suggested(point)
    if point == config.compact.threshold:
        advisory = (
            f"[StrategicCompact] {count} tool calls reached - "
            "consider /compact if you are transitioning between phases"
        )
    else:
        advisory = (
            f"[StrategicCompact] {count} tool calls - "
            "good checkpoint, consider /compact if context is stale"
        )
    return HookResult(record, advisory)


def pre_compact_notice(
    event: HookEvent,
    record: SessionRecord,
    config: HooksConfig,
    now: float | None = None,
) -> HookResult:
    """Record that the host is about to compact context."""
    ts = record.record_compaction(now)
    stamp = datetime.fromtimestamp(ts).strftime("%Y-%m-%d %H:%M:%S")
    advisory = (
        f"[PreCompact] State saved before compaction at {stamp} "
        f"(compaction #{len(record.compaction_events)}, {record.tool_call_count} tool calls)"
    )
    return HookResult(record, advisory)


def _format_hit(hit: MarkerHit) -> str:
    shown = hit.lines[:MAX_REPORTED_LINES]
    lines = [f"  {hit.path}"]
    lines += [f"    {number}: {text}" for number, text in shown]
    if len(hit.lines) > MAX_REPORTED_LINES:
        lines.append(f"    ... and {len(hit.lines) - MAX_REPORTED_LINES} more")
    return "\n".join(lines)


def post_edit_scan(event: HookEvent, config: HooksConfig) -> HookResult:
    """Warn when an edited source file contains the debug marker."""
    path = event.target_path
    if not path:
        return HookResult(None)

    hits = scan_files([path], config.scan, skip_excluded=False)
    if not hits:
        return HookResult(None)

    hit = hits[0]
    numbers = ", ".join(str(n) for n in hit.line_numbers)
    advisory = (
        f"[Hook] WARNING: {config.scan.debug_marker} found in {path} (line {numbers})\n"
        f"{_format_hit(hit)}\n"
        f"[Hook] Remove {config.scan.debug_marker} before committing"
    )
    return HookResult(None, advisory)


def stop_scan(paths: list[str], config: HooksConfig, root: Path | None = None) -> HookResult:
    """Consolidated warning over modified source files containing the debug marker."""
    hits = scan_files(paths, config.scan, root=root)
    if not hits:
        return HookResult(None)

    body = "\n".join(_format_hit(hit) for hit in hits)
    advisory = (
        f"[Hook] WARNING: {config.scan.debug_marker} found in {len(hits)} modified file(s):\n"
        f"{body}\n"
        f"[Hook] Remove debug statements before committing"
    )
    return HookResult(None, advisory)


def session_end_summarize(
    event: HookEvent,
    record: SessionRecord,
    summary: TranscriptSummary,
) -> HookResult:
    """Attach the transcript summary to the record, once."""
    try:
        record.set_summary(summary.to_session_summary(), summary.message_count)
    except SummaryAlreadyWritten:
        logger.info(f"Session {record.session_id} already summarized; keeping first summary")
    return HookResult(record)


def session_end_eligibility(record: SessionRecord, config: HooksConfig) -> HookResult:
    """Flag sessions long enough for later pattern extraction."""
    minimum = config.learning.min_session_messages
    if record.message_count < minimum:
        logger.debug(f"Session {record.session_id} too short for extraction ({record.message_count} messages)")
        return HookResult(record)

    advisory = (
        f"[ContinuousLearning] Session has {record.message_count} messages - "
        "eligible for pattern extraction"
    )
    return HookResult(record, advisory)


# =========================================================================
# Side files
# =========================================================================


def render_summary_markdown(record: SessionRecord) -> str:
    """Human-readable session summary."""
    summary = record.summary
    ended = datetime.fromtimestamp(record.ended_at or time.time()).strftime("%Y-%m-%d %H:%M")
    lines = [
        f"# Session: {record.session_id}",
        f"**Ended:** {ended}",
        f"**Messages:** {record.message_count}",
        f"**Tool calls:** {record.tool_call_count}",
        f"**Compactions:** {len(record.compaction_events)}",
        "",
    ]
    if summary is None:
        return "\n".join(lines) + "\n"

    lines.append("## Tasks")
    lines += [f"- {msg.splitlines()[0][:200]}" for msg in summary.user_messages[:10]] or ["- (none)"]
    lines += ["", "## Files Modified"]
    lines += [f"- {path}" for path in sorted(summary.files_modified)] or ["- (none)"]
    lines += ["", "## Tools Used"]
    tools = sorted(summary.tools_used.items(), key=lambda item: (-item[1], item[0]))
    lines += [f"- {name}: {count}" for name, count in tools] or ["- (none)"]
    return "\n".join(lines) + "\n"


# =========================================================================
# Runner
# =========================================================================


class HookRunner:
    """
    Execute a named hook for one host invocation.

    Advisories go to the advisory stream (stderr by default); diagnostics
    go through logging. run() never raises and always returns 0.
    """

    def __init__(
        self,
        config: HooksConfig,
        store: SessionStore | None = None,
        advisory_stream: TextIO | None = None,
    ):
        self.config = config
        self.store = store or SessionStore(config.sessions_dir)
        self.advisory_stream = advisory_stream
        self.summarizer = TranscriptSummarizer()

    def run(self, hook_name: str, stdin: TextIO) -> int:
        handler = HOOKS.get(hook_name)
        if handler is None:
            logger.error(f"Unknown hook: {hook_name}")
            return EXIT_OK

        try:
            event = read_event(stdin)
        except MalformedEvent as e:
            logger.error(f"{hook_name}: skipping malformed event: {e}")
            return EXIT_OK

        try:
            advisory = handler(self, event)
        except HookError as e:
            logger.error(f"{hook_name}: {e}")
            return EXIT_OK
        except Exception:
            logger.exception(f"{hook_name}: unexpected failure")
            return EXIT_OK

        if advisory:
            self.emit(advisory)
        return EXIT_OK

    def emit(self, advisory: str) -> None:
        stream = self.advisory_stream or sys.stderr
        print(advisory, file=stream)

    def with_record(
        self,
        event: HookEvent,
        apply: Callable[[SessionRecord], HookResult],
    ) -> HookResult:
        """
        Run apply inside the session's locked transaction.

        Store failures degrade to an in-memory record for this invocation.
        """
        result: HookResult | None = None
        try:
            with self.store.transaction(event.session_id) as record:
                result = apply(record)
        except PersistenceError as e:
            logger.warning(f"Session {event.session_id} not persisted: {e}")

        if result is None:
            result = apply(SessionRecord(session_id=event.session_id))
        return result

    # --- hook handlers -----------------------------------------------------

    def pre_tool_use(self, event: HookEvent) -> str | None:
        result = self.with_record(event, lambda rec: pre_tool_use_counter(event, rec, self.config))
        return result.advisory

    def pre_compact(self, event: HookEvent) -> str | None:
        result = self.with_record(event, lambda rec: pre_compact_notice(event, rec, self.config))
        self._append_compaction_log(event, result.record)
        return result.advisory

    def post_edit(self, event: HookEvent) -> str | None:
        return post_edit_scan(event, self.config).advisory

    def stop(self, event: HookEvent) -> str | None:
        repo = git_toplevel(event.cwd)
        if repo is None:
            return None
        return stop_scan(modified_files(repo), self.config, root=repo).advisory

    def session_end_summary(self, event: HookEvent) -> str | None:
        self._summarize(event)
        return None

    def session_end_eligible(self, event: HookEvent) -> str | None:
        def apply(record: SessionRecord) -> HookResult:
            if record.summary is not None:
                return session_end_eligibility(record, self.config)
            # Not summarized yet: count from the transcript without storing it
            summary = self.summarizer.summarize_file(event.transcript_path)
            counted = record.model_copy(update={"message_count": summary.message_count})
            return HookResult(record, session_end_eligibility(counted, self.config).advisory)

        return self.with_record(event, apply).advisory

    def session_end(self, event: HookEvent) -> str | None:
        """Summarize, then check eligibility on the summarized record."""
        record = self._summarize(event)
        return session_end_eligibility(record, self.config).advisory

    def _summarize(self, event: HookEvent) -> SessionRecord:
        summary = self.summarizer.summarize_file(event.transcript_path)
        result = self.with_record(event, lambda rec: session_end_summarize(event, rec, summary))
        self._write_summary_file(result.record)
        return result.record

    def _write_summary_file(self, record: SessionRecord) -> None:
        path = self.store.base_dir / f"{sanitize_session_id(record.session_id)}-summary.md"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(render_summary_markdown(record), encoding="utf-8")
        except OSError as e:
            logger.warning(f"Cannot write session summary {path}: {e}")

    def _append_compaction_log(self, event: HookEvent, record: SessionRecord) -> None:
        path = self.store.base_dir / "compaction-log.txt"
        stamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "a", encoding="utf-8") as f:
                f.write(f"[{stamp}] Context compaction triggered session={event.session_id} "
                        f"tool_calls={record.tool_call_count}\n")
        except OSError as e:
            logger.warning(f"Cannot append compaction log {path}: {e}")


HOOKS: dict[str, Callable[[HookRunner, HookEvent], str | None]] = {
    "pre-tool-use": HookRunner.pre_tool_use,
    "pre-compact": HookRunner.pre_compact,
    "post-edit": HookRunner.post_edit,
    "stop": HookRunner.stop,
    "session-end": HookRunner.session_end,
    "session-end-summarize": HookRunner.session_end_summary,
    "session-end-eligibility": HookRunner.session_end_eligible,
}


__all__ = [
    "HookResult",
    "HookRunner",
    "HOOKS",
    "pre_tool_use_counter",
    "pre_compact_notice",
    "post_edit_scan",
    "stop_scan",
    "session_end_summarize",
    "session_end_eligibility",
    "render_summary_markdown",
]
