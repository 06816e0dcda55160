"""Tests for the translation CLI commands."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any
from unittest.mock import patch

from click.testing import CliRunner

from chatbridge.cli import main
from chatbridge.core.interface.sanitizer import sanitize_history

if TYPE_CHECKING:
    from pathlib import Path


def _write(tmp_path: Path, name: str, data: Any) -> Path:
    f = tmp_path / name
    f.write_text(json.dumps(data), encoding="utf-8")
    return f


def _parse(output: str) -> Any:
    return json.loads(output)


class TestRequestCommand:
    def test_translates_request(self, tmp_path: Path) -> None:
        f = _write(
            tmp_path,
            "req.json",
            {
                "contents": [
                    {"role": "user", "parts": [{"text": "Hello"}]},
                    {"role": "model", "parts": [{"text": "Hi"}]},
                ],
                "config": {"temperature": 0.2},
            },
        )
        result = CliRunner().invoke(main, ["request", str(f), "--model", "gpt-4o"])

        assert result.exit_code == 0, result.output
        payload = _parse(result.output)
        assert payload["model"] == "gpt-4o"
        assert payload["temperature"] == 0.2
        assert [m["role"] for m in payload["messages"]] == ["user", "assistant"]

    def test_yaml_input(self, tmp_path: Path) -> None:
        f = tmp_path / "req.yaml"
        f.write_text(
            "model: gemini-pro\ncontents:\n  - role: user\n    parts:\n      - text: hi\n",
            encoding="utf-8",
        )
        result = CliRunner().invoke(main, ["request", str(f)])

        assert result.exit_code == 0, result.output
        assert _parse(result.output)["model"] == "gemini-pro"

    def test_unsupported_role_fails(self, tmp_path: Path) -> None:
        f = _write(
            tmp_path,
            "req.json",
            {"contents": [{"role": "system", "parts": [{"text": "x"}]}]},
        )
        result = CliRunner().invoke(main, ["request", str(f), "-m", "m"])

        assert result.exit_code == 1
        assert "Unsupported turn role" in result.output

    def test_missing_model_fails(self, tmp_path: Path) -> None:
        f = _write(tmp_path, "req.json", {"contents": []})
        result = CliRunner().invoke(main, ["request", str(f)])

        assert result.exit_code == 1
        assert "Translation failed" in result.output

    def test_invalid_yaml_fails(self, tmp_path: Path) -> None:
        f = tmp_path / "bad.yaml"
        f.write_text("contents: [unclosed", encoding="utf-8")
        result = CliRunner().invoke(main, ["request", str(f)])

        assert result.exit_code == 1
        assert "Error loading input" in result.output


class TestResponseCommand:
    def test_translates_response(self, tmp_path: Path) -> None:
        f = _write(
            tmp_path,
            "resp.json",
            {
                "choices": [{"message": {"content": "hi"}, "finish_reason": "length"}],
                "usage": {"prompt_tokens": 1, "completion_tokens": 2, "total_tokens": 3},
            },
        )
        result = CliRunner().invoke(main, ["response", str(f)])

        assert result.exit_code == 0, result.output
        payload = _parse(result.output)
        assert payload["candidates"][0]["finishReason"] == "MAX_TOKENS"
        assert payload["candidates"][0]["content"]["parts"] == [{"text": "hi"}]
        assert payload["usageMetadata"]["totalTokenCount"] == 3

    def test_empty_choices_fail(self, tmp_path: Path) -> None:
        f = _write(tmp_path, "resp.json", {"choices": []})
        result = CliRunner().invoke(main, ["response", str(f)])

        assert result.exit_code == 1
        assert "No choices" in result.output

    def test_skip_malformed(self, tmp_path: Path) -> None:
        f = _write(
            tmp_path,
            "resp.json",
            {
                "choices": [
                    {
                        "message": {
                            "content": None,
                            "tool_calls": [
                                {"id": "c1", "type": "function", "function": {"name": "f", "arguments": "{oops"}}
                            ],
                        },
                        "finish_reason": "tool_calls",
                    }
                ]
            },
        )
        failed = CliRunner().invoke(main, ["response", str(f)])
        skipped = CliRunner().invoke(main, ["response", str(f), "--skip-malformed"])

        assert failed.exit_code == 1
        assert "Malformed arguments" in failed.output
        assert skipped.exit_code == 0
        # The skip warning is logged to stderr, which may share the captured output.
        assert '"parts": []' in skipped.output


class TestChunkCommand:
    def _stream(self) -> list[dict[str, Any]]:
        return [
            {"choices": [{"delta": {"content": "wor"}}]},
            {
                "choices": [
                    {
                        "delta": {
                            "tool_calls": [
                                {"index": 0, "id": "c1", "type": "function", "function": {"name": "f", "arguments": '{"a"'}}
                            ]
                        }
                    }
                ]
            },
            {"choices": [{"delta": {"tool_calls": [{"index": 0, "function": {"arguments": ": 1}"}}]}}]},
            {"choices": [{"delta": {}, "finish_reason": "tool_calls"}]},
        ]

    def test_assembled_stream(self, tmp_path: Path) -> None:
        f = _write(tmp_path, "stream.json", self._stream())
        result = CliRunner().invoke(main, ["chunk", str(f)])

        assert result.exit_code == 0, result.output
        fragments = _parse(result.output)
        assert len(fragments) == 4
        assert fragments[0]["candidates"][0]["content"]["parts"] == [{"text": "wor"}]
        assert "finishReason" not in fragments[0]["candidates"][0]
        last = fragments[-1]["candidates"][0]
        assert last["finishReason"] == "STOP"
        assert last["content"]["parts"][0]["functionCall"]["args"] == {"a": 1}

    def test_no_assemble_fails_on_fragment(self, tmp_path: Path) -> None:
        f = _write(tmp_path, "stream.json", self._stream())
        result = CliRunner().invoke(main, ["chunk", str(f), "--no-assemble"])

        assert result.exit_code == 1
        assert "Malformed arguments" in result.output

    def test_single_chunk(self, tmp_path: Path) -> None:
        f = _write(tmp_path, "chunk.json", {"choices": []})
        result = CliRunner().invoke(main, ["chunk", str(f)])

        assert result.exit_code == 0, result.output
        assert _parse(result.output) == [{"candidates": []}]


class TestSanitizeCommand:
    def _messages(self) -> list[dict[str, Any]]:
        return [
            {"role": "user", "content": "q"},
            {"role": "assistant", "content": "Checking."},
            {
                "role": "assistant",
                "content": None,
                "tool_calls": [
                    {"id": "a", "type": "function", "function": {"name": "f", "arguments": "{}"}},
                    {"id": "b", "type": "function", "function": {"name": "g", "arguments": "{}"}},
                ],
            },
            {"role": "tool", "tool_call_id": "a", "content": "{}"},
            {"role": "tool", "tool_call_id": "zzz", "content": "{}"},
        ]

    def test_sanitize(self, tmp_path: Path) -> None:
        f = _write(tmp_path, "messages.json", self._messages())
        result = CliRunner().invoke(main, ["sanitize", str(f)])

        assert result.exit_code == 0, result.output
        messages = _parse(result.output)
        assert [m["role"] for m in messages] == ["user", "assistant", "tool"]
        assert messages[1]["content"] == "Checking."
        assert [tc["id"] for tc in messages[1]["tool_calls"]] == ["a"]

    def test_no_merge(self, tmp_path: Path) -> None:
        f = _write(tmp_path, "request.json", {"messages": self._messages()})
        result = CliRunner().invoke(main, ["sanitize", str(f), "--no-merge"])

        assert result.exit_code == 0, result.output
        assert [m["role"] for m in _parse(result.output)] == ["user", "assistant", "assistant", "tool"]

    def test_table(self, tmp_path: Path) -> None:
        f = _write(tmp_path, "messages.json", self._messages())
        result = CliRunner().invoke(main, ["sanitize", str(f), "--table"])

        assert result.exit_code == 0, result.output
        assert "Messages" in result.output
        assert "Checking." in result.output

    def test_invalid_messages(self, tmp_path: Path) -> None:
        f = _write(tmp_path, "messages.json", [{"role": "narrator", "content": "x"}])
        result = CliRunner().invoke(main, ["sanitize", str(f)])

        assert result.exit_code == 1
        assert "Invalid message list" in result.output

    def test_tool_calls_on_user_message_rejected(self, tmp_path: Path) -> None:
        bad = [
            {
                "role": "user",
                "content": "q",
                "tool_calls": [{"id": "a", "type": "function", "function": {"name": "f"}}],
            }
        ]
        f = _write(tmp_path, "messages.json", bad)
        result = CliRunner().invoke(main, ["sanitize", str(f)])

        assert result.exit_code == 1
        assert "Invalid message list" in result.output

    def test_uses_shared_sanitize_path(self, tmp_path: Path) -> None:
        f = _write(tmp_path, "messages.json", self._messages())
        with patch(
            "chatbridge.cli_commands.translate.sanitize_history", wraps=sanitize_history
        ) as spy:
            result = CliRunner().invoke(main, ["sanitize", str(f), "--no-merge"])

        assert result.exit_code == 0, result.output
        spy.assert_called_once()
        assert spy.call_args.kwargs == {"merge": False}
