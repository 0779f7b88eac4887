"""Tests for the dify-ai command line."""

import json

import pytest
from rich.console import Console
import responses

from dify_ai._types import GenerateResult, Usage
from dify_ai.cli.display import CompactDisplay, JsonDisplay, VerboseDisplay, create_display
from dify_ai.cli.main import _real_main, build_parser
from dify_ai.cli.util import CANCELLED_EXIT, graceful_main, parse_inputs
from dify_ai.streaming import ErrorPart, FinishPart, TextDeltaPart
from tests.utils.sse import sse

BASE = ["--api-key", "app-k", "--base-url", "https://mock.api"]


class TestParser:
    def test_chat_arguments(self):
        args = build_parser().parse_args(
            ["chat", "Hi", "--user", "u1", "--input", "a=1", "--conversation-id", "c1"]
        )
        assert args.command == "chat"
        assert args.prompt == "Hi"
        assert args.input == ["a=1"]
        assert args.conversation_id == "c1"
        assert args.format == "verbose"

    def test_parse_inputs(self):
        assert parse_inputs(["a=1", "b=x=y"]) == {"a": "1", "b": "x=y"}
        assert parse_inputs(None) == {}
        with pytest.raises(ValueError):
            parse_inputs(["novalue"])


class TestDisplays:
    def test_create_display(self):
        assert isinstance(create_display("compact"), CompactDisplay)
        assert isinstance(create_display("json"), JsonDisplay)
        assert isinstance(create_display("anything"), VerboseDisplay)

    def test_compact_prints_text(self, capsys):
        display = CompactDisplay()
        display.on_part(TextDeltaPart(id="g", delta="Hel"))
        display.on_part(TextDeltaPart(id="g", delta="lo"))
        display.finish()
        assert capsys.readouterr().out == "Hello\n"
        assert display.get_final_text() == "Hello"

    def test_verbose_reports_usage(self):
        console = Console(record=True, width=120)
        display = VerboseDisplay(console)
        display.on_part(TextDeltaPart(id="g", delta="Hi"))
        display.on_part(
            FinishPart(
                finish_reason="stop",
                usage=Usage(1, 2, 3),
                provider_metadata={"difyWorkflowData": {"taskId": "t1"}},
            )
        )
        display.finish()
        output = console.export_text()
        assert "Hi" in output
        assert "total 3 tokens" in output
        assert "taskId=t1" in output

    def test_verbose_prints_brackets_literally(self):
        console = Console(record=True, width=120)
        display = VerboseDisplay(console)
        display.on_part(TextDeltaPart(id="g", delta="use [/INST] tokens, "))
        display.on_part(TextDeltaPart(id="g", delta="list[bold] x"))
        display.on_part(ErrorPart(error=RuntimeError("bad [/red] tag")))
        output = console.export_text()
        assert "use [/INST] tokens, list[bold] x" in output
        assert "bad [/red] tag" in output

    def test_compact_error_with_brackets(self):
        console = Console(record=True, width=120)
        CompactDisplay(console).on_part(ErrorPart(error=RuntimeError("[/INST] failed")))
        assert "[/INST] failed" in console.export_text()

    def test_verbose_notes_missing_finish(self):
        console = Console(record=True, width=120)
        display = VerboseDisplay(console)
        display.finish()
        assert "without a finish event" in console.export_text()

    def test_json_skips_nothing_in_v2(self, capsys):
        display = JsonDisplay()
        display.on_part(TextDeltaPart(id="g", delta="x"))
        display.on_part(ErrorPart(error=RuntimeError("boom")))
        lines = capsys.readouterr().out.splitlines()
        assert json.loads(lines[0]) == {"type": "text-delta", "id": "g", "delta": "x"}
        assert json.loads(lines[1])["error"] == "boom"

    def test_json_blocking_result(self, capsys):
        result = GenerateResult(
            content=[{"type": "text", "text": "ok"}],
            usage=Usage(),
            finish_reason="stop",
            provider_metadata={"difyWorkflowData": {}},
        )
        JsonDisplay().show_result(result)
        assert json.loads(capsys.readouterr().out)["content"] == [{"type": "text", "text": "ok"}]


class TestMain:
    def test_no_command_prints_help(self, capsys):
        assert _real_main([]) == 0
        assert "dify-ai" in capsys.readouterr().out

    @responses.activate
    def test_chat_stream_compact(self, capsys):
        responses.add(
            responses.POST,
            "https://mock.api/chat-messages",
            body=sse(
                {"event": "message", "answer": "Hi there"},
                {"event": "message_end", "metadata": {}},
            ),
            content_type="text/event-stream; charset=utf-8",
        )
        code = _real_main([*BASE, "chat", "Hello", "--user", "u1", "--format", "compact"])
        assert code == 0
        assert "Hi there" in capsys.readouterr().out
        body = json.loads(responses.calls[0].request.body)
        assert body["user"] == "u1"
        assert body["query"] == "Hello"

    @responses.activate
    def test_chat_stream_verbose_with_markup_like_text(self, capsys):
        responses.add(
            responses.POST,
            "https://mock.api/chat-messages",
            body=sse(
                {"event": "message", "answer": "close [/INST] here"},
                {"event": "message_end", "metadata": {}},
            ),
            content_type="text/event-stream",
        )
        code = _real_main([*BASE, "chat", "Hello"])
        assert code == 0
        assert "close [/INST] here" in capsys.readouterr().out

    @responses.activate
    def test_run_blocking_json(self, capsys, workflow_blocking_body):
        responses.add(
            responses.POST, "https://mock.api/workflows/run", json=workflow_blocking_body
        )
        code = _real_main(
            [*BASE, "run", "Go", "--blocking", "--format", "json", "--input", "k=v"]
        )
        assert code == 0
        out = json.loads(capsys.readouterr().out)
        assert out["content"] == [{"type": "text", "text": "Workflow says hi"}]
        body = json.loads(responses.calls[0].request.body)
        assert body["inputs"] == {"query": "Go", "k": "v"}

    @responses.activate
    def test_api_error_exit_code(self, capsys):
        responses.add(
            responses.POST,
            "https://mock.api/chat-messages",
            json={"message": "Bad Request: Invalid input parameters"},
            status=400,
        )
        assert _real_main([*BASE, "chat", "Hello"]) == 1
        assert "Dify API error: Bad Request" in capsys.readouterr().out

    def test_bad_input_exit_code(self, capsys):
        assert _real_main([*BASE, "chat", "Hello", "--input", "broken"]) == 2

    def test_graceful_main_handles_interrupt(self):
        def _interrupt(_argv):
            raise KeyboardInterrupt()

        assert graceful_main(_interrupt, []) == CANCELLED_EXIT

