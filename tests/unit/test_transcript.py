"""Tests for the transcript summarizer."""

import json

import pytest

from session_hooks.transcript import (
    ASSISTANT_MESSAGE,
    TOOL_USE,
    USER_MESSAGE,
    TranscriptSummarizer,
)


def user(text):
    return json.dumps({"type": "user", "message": {"role": "user", "content": text}})


def assistant(*blocks):
    return json.dumps({"type": "assistant", "message": {"role": "assistant", "content": list(blocks)}})


def tool_use(name, **tool_input):
    return {"type": "tool_use", "id": f"toolu_{name}", "name": name, "input": tool_input}


def tool_result(tool_use_id="toolu_x", content="ok"):
    return json.dumps({
        "type": "user",
        "message": {"role": "user", "content": [{"type": "tool_result", "tool_use_id": tool_use_id, "content": content}]},
    })


@pytest.fixture
def summarizer():
    return TranscriptSummarizer()


class TestIterEvents:
    """Tests for iter_events."""

    def test_normalizes_host_entries(self, summarizer):
        lines = [
            user("Fix the login bug"),
            assistant({"type": "text", "text": "Looking"}, tool_use("Read", file_path="/a.ts")),
            tool_result(),
        ]
        events = list(summarizer.iter_events(lines))

        assert [e.kind for e in events] == [USER_MESSAGE, ASSISTANT_MESSAGE, TOOL_USE]
        assert events[0].text == "Fix the login bug"
        assert events[2].tool_name == "Read"
        assert events[2].file_path == "/a.ts"

    def test_flat_entries(self, summarizer):
        lines = [
            json.dumps({"type": "user", "content": "hello"}),
            json.dumps({"type": "tool_use", "tool_name": "Write", "tool_input": {"file_path": "b.py"}}),
        ]
        events = list(summarizer.iter_events(lines))

        assert events[0].kind == USER_MESSAGE
        assert events[1].tool_name == "Write"
        assert events[1].file_path == "b.py"

    def test_user_text_blocks(self, summarizer):
        line = json.dumps({
            "type": "user",
            "message": {"content": [{"type": "text", "text": "part one"}, {"type": "text", "text": "part two"}]},
        })
        events = list(summarizer.iter_events([line]))
        assert events[0].text == "part one\npart two"

    def test_is_lazy(self, summarizer):
        def lines():
            yield user("first")
            raise AssertionError("read too far")

        first = next(summarizer.iter_events(lines()))
        assert first.text == "first"

    def test_decode_errors_counted(self, summarizer):
        lines = ["{broken", user("ok"), "[1, 2]", "", "   "]
        events = list(summarizer.iter_events(lines))

        assert len(events) == 1
        assert summarizer.decode_errors == 2

    def test_ignores_other_entry_types(self, summarizer):
        lines = [
            json.dumps({"type": "system", "content": "x"}),
            json.dumps({"type": "progress"}),
            json.dumps({"type": "summary", "summary": "y"}),
        ]
        assert list(summarizer.iter_events(lines)) == []


class TestSummarize:
    """Tests for summarize and summarize_file."""

    def test_summary_contents(self, summarizer):
        lines = [
            user("Add dark mode"),
            assistant(tool_use("Edit", file_path="src/theme.ts"), tool_use("Bash", command="npm test")),
            tool_result(),
            user("Also the header"),
            assistant(tool_use("Edit", file_path="src/theme.ts"), tool_use("Write", file_path="src/header.tsx")),
            assistant(tool_use("Read", file_path="src/readonly.ts")),
        ]
        summary = summarizer.summarize(lines)

        assert summary.user_messages == ["Add dark mode", "Also the header"]
        assert summary.message_count == 2
        assert summary.files_modified == {"src/theme.ts", "src/header.tsx"}
        assert summary.tools_used == {"Edit": 2, "Bash": 1, "Write": 1, "Read": 1}
        assert summary.decode_errors == 0

    def test_tool_results_are_not_messages(self, summarizer):
        summary = summarizer.summarize([tool_result(), tool_result()])
        assert summary.message_count == 0

    def test_empty_input(self, summarizer):
        summary = summarizer.summarize([])
        assert summary.user_messages == []
        assert summary.files_modified == set()
        assert summary.tools_used == {}

    @pytest.mark.parametrize(
        "lines",
        [
            ["not json", "{", "}", "null", "42"],
            [json.dumps({"type": "user", "message": "string message"})],
            [json.dumps({"type": "user", "message": {"content": 12}})],
            [json.dumps({"type": "assistant", "message": {"content": [None, 3, "x", {"type": "tool_use"}]}})],
            [json.dumps({"type": ["odd"]})],
            [json.dumps({"type": "tool_use", "tool_name": None, "tool_input": "oops"})],
            ['{"n": ' + "1" * 5000 + "}"],
            ["[" * 100000 + "]" * 100000],
        ],
    )
    def test_total_on_garbage(self, summarizer, lines):
        """Never raises, whatever the lines contain."""
        summary = summarizer.summarize(lines)
        assert summary.message_count >= 0

    def test_oversized_lines_are_skipped(self, summarizer):
        lines = [
            user("before"),
            '{"n": ' + "1" * 5000 + "}",
            "[" * 100000 + "]" * 100000,
            user("after"),
        ]

        summary = summarizer.summarize(lines)
        assert summary.user_messages == ["before", "after"]
        assert summary.decode_errors == 2

    def test_decode_errors_reset_between_runs(self, summarizer):
        summarizer.summarize(["bad"])
        summary = summarizer.summarize([user("fine")])
        assert summary.decode_errors == 0

    def test_missing_file(self, summarizer, tmp_path):
        summary = summarizer.summarize_file(tmp_path / "missing.jsonl")
        assert summary.message_count == 0

    def test_no_path(self, summarizer):
        assert summarizer.summarize_file(None).message_count == 0

    def test_reads_file(self, summarizer, tmp_path):
        path = tmp_path / "t.jsonl"
        path.write_text("\n".join([user("one"), "garbage", user("two")]) + "\n")

        summary = summarizer.summarize_file(path)
        assert summary.user_messages == ["one", "two"]
        assert summary.decode_errors == 1

    def test_to_session_summary(self, summarizer):
        summary = summarizer.summarize([user("hi"), assistant(tool_use("Edit", file_path="a.ts"))])
        session_summary = summary.to_session_summary()

        assert session_summary.user_messages == ["hi"]
        assert session_summary.files_modified == {"a.ts"}
        assert session_summary.tools_used == {"Edit": 1}
