"""Tests for the inbound (flat -> turn-structured) response and chunk translator."""

from typing import Any

import pytest

from chatbridge.core.interface.config import TranslatorOptions
from chatbridge.core.interface.errors import EmptyResponseError, MalformedArgumentsError
from chatbridge.core.interface.transpilers.inbound import (
    convert_chunk,
    convert_response,
    map_finish_reason,
    parse_arguments,
)
from chatbridge.core.interface.turns import FinishReason, FunctionCallPart, TextPart

SKIP = TranslatorOptions(malformed_arguments="skip")


def _tool_call(id: str, name: str, arguments: str, type: str = "function") -> dict[str, Any]:
    return {"id": id, "type": type, "function": {"name": name, "arguments": arguments}}


def _completion(
    content: str | None = None,
    tool_calls: list[dict[str, Any]] | None = None,
    finish_reason: str = "stop",
    usage: dict[str, int] | None = None,
) -> dict[str, Any]:
    response: dict[str, Any] = {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "model": "gpt-4o",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content, "tool_calls": tool_calls},
                "finish_reason": finish_reason,
            }
        ],
    }
    if usage is not None:
        response["usage"] = usage
    return response


def _chunk(delta: dict[str, Any], finish_reason: str | None = None) -> dict[str, Any]:
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion.chunk",
        "choices": [{"index": 0, "delta": delta, "finish_reason": finish_reason}],
    }


# ---------------------------------------------------------------------------
# Finish reasons
# ---------------------------------------------------------------------------


class TestMapFinishReason:
    @pytest.mark.parametrize(
        ("reason", "expected"),
        [
            ("stop", FinishReason.STOP),
            ("length", FinishReason.MAX_TOKENS),
            ("tool_calls", FinishReason.STOP),
            ("content_filter", FinishReason.SAFETY),
            ("function_call", FinishReason.OTHER),
            ("", FinishReason.OTHER),
            ("STOP", FinishReason.OTHER),
            (None, FinishReason.OTHER),
        ],
    )
    def test_mapping(self, reason: str | None, expected: FinishReason) -> None:
        assert map_finish_reason(reason) is expected

    def test_deterministic(self) -> None:
        assert {map_finish_reason("weird") for _ in range(10)} == {FinishReason.OTHER}


# ---------------------------------------------------------------------------
# Complete responses
# ---------------------------------------------------------------------------


class TestConvertResponse:
    def test_text_response(self) -> None:
        resp = convert_response(
            {"choices": [{"message": {"content": "hi", "tool_calls": None}, "finish_reason": "stop"}]}
        )
        assert len(resp.candidates) == 1
        candidate = resp.candidates[0]
        assert candidate.content.role == "model"
        assert candidate.content.parts == [TextPart(text="hi")]
        assert candidate.finish_reason is FinishReason.STOP
        assert resp.usage_metadata is None
        assert "usageMetadata" not in resp.to_wire()

    def test_empty_choices_raise(self) -> None:
        with pytest.raises(EmptyResponseError):
            convert_response({"choices": []})

    def test_only_first_choice_used(self) -> None:
        data = _completion(content="first")
        data["choices"].append(
            {"index": 1, "message": {"role": "assistant", "content": "second"}, "finish_reason": "length"}
        )
        resp = convert_response(data)
        assert len(resp.candidates) == 1
        assert resp.text == "first"
        assert resp.finish_reason is FinishReason.STOP

    def test_empty_content_has_no_text_part(self) -> None:
        resp = convert_response(_completion(content=""))
        assert resp.candidates[0].content.parts == []

    def test_tool_calls_follow_text(self) -> None:
        resp = convert_response(
            _completion(
                content="Let me look.",
                tool_calls=[
                    _tool_call("call_1", "search", '{"q": "cats"}'),
                    _tool_call("call_2", "fetch", ""),
                ],
                finish_reason="tool_calls",
            )
        )
        parts = resp.candidates[0].content.parts
        assert isinstance(parts[0], TextPart)
        assert isinstance(parts[1], FunctionCallPart)
        assert parts[1].function_call.name == "search"
        assert parts[1].function_call.args == {"q": "cats"}
        assert parts[1].function_call.id == "call_1"
        assert isinstance(parts[2], FunctionCallPart)
        assert parts[2].function_call.args == {}
        assert resp.finish_reason is FinishReason.STOP

    def test_non_function_tool_call_skipped(self) -> None:
        resp = convert_response(
            _completion(tool_calls=[_tool_call("call_1", "x", "{}", type="custom")])
        )
        assert resp.candidates[0].content.parts == []

    def test_usage_renamed(self) -> None:
        resp = convert_response(
            _completion(
                content="ok",
                usage={"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
            )
        )
        assert resp.usage_metadata is not None
        assert resp.usage_metadata.to_wire() == {
            "promptTokenCount": 10,
            "candidatesTokenCount": 5,
            "totalTokenCount": 15,
        }

    def test_finish_length(self) -> None:
        resp = convert_response(_completion(content="trunc", finish_reason="length"))
        assert resp.finish_reason is FinishReason.MAX_TOKENS


class TestMalformedArguments:
    def test_raises_by_default(self) -> None:
        with pytest.raises(MalformedArgumentsError) as excinfo:
            convert_response(_completion(tool_calls=[_tool_call("call_1", "search", "{not json")]))
        assert excinfo.value.name == "search"
        assert excinfo.value.arguments == "{not json"

    def test_non_object_json_rejected(self) -> None:
        with pytest.raises(MalformedArgumentsError, match="expected an object"):
            convert_response(_completion(tool_calls=[_tool_call("call_1", "f", "[1, 2]")]))

    def test_skip_policy_drops_only_bad_call(self, caplog: pytest.LogCaptureFixture) -> None:
        resp = convert_response(
            _completion(
                tool_calls=[
                    _tool_call("call_1", "bad", '{"a": '),
                    _tool_call("call_2", "good", '{"a": 1}'),
                ]
            ),
            options=SKIP,
        )
        assert [fc.name for fc in resp.function_calls] == ["good"]
        assert "call_1" in caplog.text

    def test_parse_arguments_empty(self) -> None:
        assert parse_arguments("f", "") == {}
        assert parse_arguments("f", None) == {}


# ---------------------------------------------------------------------------
# Streaming chunks
# ---------------------------------------------------------------------------


class TestConvertChunk:
    def test_text_fragment(self) -> None:
        resp = convert_chunk({"choices": [{"delta": {"content": "wor"}, "finish_reason": None}]})
        assert len(resp.candidates) == 1
        assert resp.candidates[0].content.parts == [TextPart(text="wor")]
        assert resp.candidates[0].finish_reason is None

    def test_no_choices_is_not_an_error(self) -> None:
        resp = convert_chunk({"choices": []})
        assert resp.candidates == []

    def test_finish_reason_mapped_on_terminal_chunk(self) -> None:
        resp = convert_chunk(_chunk({}, finish_reason="length"))
        assert resp.finish_reason is FinishReason.MAX_TOKENS
        assert resp.candidates[0].content.parts == []

    def test_never_carries_usage(self) -> None:
        data = _chunk({"content": "x"}, finish_reason="stop")
        data["usage"] = {"prompt_tokens": 1, "completion_tokens": 1, "total_tokens": 2}
        assert convert_chunk(data).usage_metadata is None

    def test_complete_tool_call(self) -> None:
        resp = convert_chunk(
            _chunk(
                {
                    "tool_calls": [
                        {
                            "index": 0,
                            "id": "call_1",
                            "type": "function",
                            "function": {"name": "search", "arguments": '{"q": "x"}'},
                        }
                    ]
                }
            )
        )
        assert resp.function_calls[0].name == "search"
        assert resp.function_calls[0].args == {"q": "x"}
        assert resp.function_calls[0].id == "call_1"

    def test_missing_name_and_arguments(self) -> None:
        resp = convert_chunk(
            _chunk({"tool_calls": [{"index": 0, "type": "function", "function": {}}]})
        )
        assert resp.function_calls[0].name == ""
        assert resp.function_calls[0].args == {}

    def test_partial_arguments_raise(self) -> None:
        data = _chunk(
            {
                "tool_calls": [
                    {"index": 0, "type": "function", "function": {"name": "f", "arguments": '{"q": "'}}
                ]
            }
        )
        with pytest.raises(MalformedArgumentsError):
            convert_chunk(data)

    def test_partial_arguments_skipped_with_skip_policy(self) -> None:
        data = _chunk(
            {
                "content": "hi",
                "tool_calls": [
                    {"index": 0, "type": "function", "function": {"name": "f", "arguments": '{"q": "'}}
                ],
            }
        )
        resp = convert_chunk(data, options=SKIP)
        assert resp.candidates[0].content.parts == [TextPart(text="hi")]

    def test_fragment_without_type_skipped(self) -> None:
        resp = convert_chunk(
            _chunk({"tool_calls": [{"index": 0, "function": {"arguments": '"}'}}]})
        )
        assert resp.function_calls == []
