"""Tests for hook event decoding."""

import io
import json

import pytest

from session_hooks.errors import MalformedEvent
from session_hooks.events import HookEvent, parse_event, read_event


class TestParseEvent:
    """Tests for parse_event."""

    def test_minimal_payload(self):
        event = parse_event('{"session_id": "abc"}')
        assert event.session_id == "abc"
        assert event.tool_input == {}
        assert event.target_file is None

    def test_full_payload(self):
        payload = {
            "session_id": "abc",
            "hook_event_name": "PostToolUse",
            "tool_name": "Edit",
            "tool_input": {"file_path": "/repo/src/app.ts", "old_string": "a"},
            "transcript_path": "/tmp/t.jsonl",
            "cwd": "/repo",
            "permission_mode": "default",
        }
        event = parse_event(json.dumps(payload))

        assert event.tool_name == "Edit"
        assert event.transcript_path == "/tmp/t.jsonl"
        assert event.cwd == "/repo"
        assert event.target_file == "/repo/src/app.ts"

    def test_top_level_file_path_wins(self):
        event = HookEvent(session_id="s", file_path="/a.ts", tool_input={"file_path": "/b.ts"})
        assert event.target_file == "/a.ts"

    def test_target_path_joins_relative_to_cwd(self):
        event = HookEvent(session_id="s", cwd="/repo", tool_input={"file_path": "src/app.ts"})
        assert event.target_path == "/repo/src/app.ts"

    def test_target_path_keeps_absolute(self):
        event = HookEvent(session_id="s", cwd="/repo", file_path="/other/app.ts")
        assert event.target_path == "/other/app.ts"

    def test_target_path_without_cwd(self):
        assert HookEvent(session_id="s", file_path="app.ts").target_path == "app.ts"

    def test_tool_input_as_json_string(self):
        event = parse_event(json.dumps({"session_id": "s", "tool_input": '{"path": "x.js"}'}))
        assert event.target_file == "x.js"

    def test_tool_input_null(self):
        event = parse_event('{"session_id": "s", "tool_input": null}')
        assert event.tool_input == {}

    @pytest.mark.parametrize(
        "raw",
        [
            "",
            "   \n",
            "not json",
            "[1, 2, 3]",
            '"just a string"',
            "{}",
            '{"session_id": ""}',
            '{"session_id": "   "}',
            '{"session_id": 42}',
            '{"tool_name": "Edit"}',
            '{"session_id": ' + "9" * 5000 + "}",
            "[" * 100000 + "]" * 100000,
        ],
    )
    def test_malformed(self, raw):
        with pytest.raises(MalformedEvent):
            parse_event(raw)


class TestReadEvent:
    """Tests for read_event."""

    def test_reads_stream(self):
        event = read_event(io.StringIO('{"session_id": "from-stdin"}\n'))
        assert event.session_id == "from-stdin"

    def test_empty_stream(self):
        with pytest.raises(MalformedEvent):
            read_event(io.StringIO(""))
