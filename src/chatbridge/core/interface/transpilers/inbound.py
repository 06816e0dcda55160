"""Inbound translator — flat responses and chunks -> turn-structured responses.

Only choice 0 is translated; multi-choice responses are not supported. Tool
call ids from the flat side are carried on ``FunctionCall.id`` so that a
later request can echo them back exactly.
"""

import json
import logging
from typing import Any

from chatbridge.core.interface.config import TranslatorOptions
from chatbridge.core.interface.errors import EmptyResponseError, MalformedArgumentsError
from chatbridge.core.interface.flat import ChatCompletion, ChatCompletionChunk
from chatbridge.core.interface.turns import (
    Candidate,
    FinishReason,
    FunctionCall,
    FunctionCallPart,
    GenerateContentResponse,
    Part,
    TextPart,
    Turn,
    UsageMetadata,
)

logger = logging.getLogger(__name__)

_FINISH_REASONS: dict[str, FinishReason] = {
    "stop": FinishReason.STOP,
    "length": FinishReason.MAX_TOKENS,
    "tool_calls": FinishReason.STOP,
    "content_filter": FinishReason.SAFETY,
}

_DEFAULT_OPTIONS = TranslatorOptions()


def map_finish_reason(reason: str | None) -> FinishReason:
    """Map a flat finish string onto the closed turn-side enum.

    Total: any unrecognised value, including ``""``, maps to OTHER.
    """
    return _FINISH_REASONS.get(reason or "", FinishReason.OTHER)


def convert_response(
    completion: ChatCompletion | dict[str, Any],
    *,
    options: TranslatorOptions | None = None,
) -> GenerateContentResponse:
    """Convert a complete chat-completions response.

    Raises:
        EmptyResponseError: The response has no choices.
        MalformedArgumentsError: A tool call's arguments are not valid JSON
            and the ``raise`` policy is active.
    """
    opts = options or _DEFAULT_OPTIONS
    resp = ChatCompletion.model_validate(completion)
    if not resp.choices:
        raise EmptyResponseError()

    choice = resp.choices[0]
    message = choice.message
    parts: list[Part] = []

    if message.content:
        parts.append(TextPart(text=message.content))

    for tc in message.tool_calls or []:
        if tc.type != "function":
            logger.debug("Skipping non-function tool call %s (type=%s)", tc.id, tc.type)
            continue
        part = _function_call_part(tc.function.name, tc.function.arguments, tc.id, opts)
        if part is not None:
            parts.append(part)

    usage: UsageMetadata | None = None
    if resp.usage is not None:
        usage = UsageMetadata(
            prompt_token_count=resp.usage.prompt_tokens,
            candidates_token_count=resp.usage.completion_tokens,
            total_token_count=resp.usage.total_tokens,
        )

    candidate = Candidate(
        content=Turn(role="model", parts=parts),
        finish_reason=map_finish_reason(choice.finish_reason),
    )
    return GenerateContentResponse(candidates=[candidate], usage_metadata=usage)


def convert_chunk(
    chunk: ChatCompletionChunk | dict[str, Any],
    *,
    options: TranslatorOptions | None = None,
) -> GenerateContentResponse:
    """Convert one streamed chunk.

    A chunk without choices yields a response with no candidates; that means
    "nothing in this tick", not an error. Text is a fragment, never the
    accumulated text. Tool-call arguments are parsed as they arrive, so a
    fragmented ``arguments`` string must be assembled by the stream driver
    (see :class:`~chatbridge.core.interface.streaming.ToolCallAssembler`)
    before it reaches this function.
    """
    opts = options or _DEFAULT_OPTIONS
    parsed = ChatCompletionChunk.model_validate(chunk)
    if not parsed.choices:
        return GenerateContentResponse(candidates=[])

    choice = parsed.choices[0]
    delta = choice.delta
    parts: list[Part] = []

    if delta.content:
        parts.append(TextPart(text=delta.content))

    for tc in delta.tool_calls or []:
        if tc.type != "function" or tc.function is None:
            logger.debug("Skipping tool call fragment at index %d (type=%s)", tc.index, tc.type)
            continue
        part = _function_call_part(tc.function.name or "", tc.function.arguments, tc.id, opts)
        if part is not None:
            parts.append(part)

    finish_reason = map_finish_reason(choice.finish_reason) if choice.finish_reason else None
    candidate = Candidate(content=Turn(role="model", parts=parts), finish_reason=finish_reason)
    return GenerateContentResponse(candidates=[candidate])


def parse_arguments(name: str, raw: str | None) -> dict[str, Any]:
    """Parse a JSON ``arguments`` string. Empty or missing parses to ``{}``.

    Raises:
        MalformedArgumentsError: ``raw`` is not JSON, or not a JSON object.
    """
    if not raw:
        return {}
    try:
        result = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise MalformedArgumentsError(name, raw, str(exc)) from exc
    if not isinstance(result, dict):
        raise MalformedArgumentsError(name, raw, f"expected an object, got {type(result).__name__}")
    return result


def _function_call_part(
    name: str,
    raw: str | None,
    call_id: str | None,
    options: TranslatorOptions,
) -> FunctionCallPart | None:
    try:
        args = parse_arguments(name, raw)
    except MalformedArgumentsError as exc:
        if options.malformed_arguments == "raise":
            raise
        logger.warning("Skipping tool call %s: %s", call_id or name, exc)
        return None
    return FunctionCallPart(function_call=FunctionCall(name=name, args=args, id=call_id))
