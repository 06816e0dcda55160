"""History sanitizer — repairs flat message lists before resubmission.

The flat protocol rejects tool calls without responses and tool responses
without calls. Truncated history (for example after context compression)
can strand one side of a pair, and some emission paths leave adjacent
assistant messages that consumers expect collapsed into one. Both passes
return new lists; the input is never mutated.
"""

import logging
from collections.abc import Sequence

from chatbridge.core.interface.flat import FlatMessage, FlatToolCall

logger = logging.getLogger(__name__)


def clean_orphaned_tool_calls(messages: Sequence[FlatMessage]) -> list[FlatMessage]:
    """Drop tool calls and tool messages that have no counterpart.

    A ``tool`` message survives only if some assistant message issued its
    ``tool_call_id``. An assistant message keeps only the tool calls answered
    by a ``tool`` message in the original list; when none remain the field
    is removed rather than left empty, and a message left with neither
    content nor tool calls is dropped.
    """
    issued: set[str] = set()
    for msg in messages:
        if msg.role == "assistant" and msg.tool_calls:
            issued.update(tc.id for tc in msg.tool_calls)

    answered = {msg.tool_call_id for msg in messages if msg.role == "tool" and msg.tool_call_id}

    cleaned: list[FlatMessage] = []
    for msg in messages:
        if msg.role == "tool":
            if msg.tool_call_id in issued:
                cleaned.append(msg)
            else:
                logger.debug("Dropping tool message for unknown call %r", msg.tool_call_id)
        elif msg.role == "assistant" and msg.tool_calls:
            valid = [tc for tc in msg.tool_calls if tc.id in answered]
            if len(valid) != len(msg.tool_calls):
                logger.debug(
                    "Dropping %d unanswered tool call(s)", len(msg.tool_calls) - len(valid)
                )
            if not valid and msg.content is None:
                logger.debug("Dropping assistant message left empty")
                continue
            cleaned.append(msg.model_copy(update={"tool_calls": valid or None}))
        else:
            cleaned.append(msg)
    return cleaned


def merge_consecutive_assistant_messages(messages: Sequence[FlatMessage]) -> list[FlatMessage]:
    """Coalesce runs of adjacent assistant messages into one.

    Non-null contents are joined with a newline and tool calls are
    concatenated in order. An empty join becomes ``None`` when the merged
    message carries tool calls and stays ``""`` otherwise. Any other message
    ends the run and passes through unchanged.
    """
    merged: list[FlatMessage] = []
    run: list[FlatMessage] = []

    for msg in messages:
        if msg.role == "assistant":
            run.append(msg)
            continue
        if run:
            merged.append(_merge_run(run))
            run = []
        merged.append(msg)

    if run:
        merged.append(_merge_run(run))
    return merged


def sanitize_history(messages: Sequence[FlatMessage], *, merge: bool = True) -> list[FlatMessage]:
    """Clean orphaned tool calls, then optionally merge assistant runs."""
    cleaned = clean_orphaned_tool_calls(messages)
    if merge:
        cleaned = merge_consecutive_assistant_messages(cleaned)
    return cleaned


def _merge_run(run: list[FlatMessage]) -> FlatMessage:
    if len(run) == 1:
        return run[0]
    text = "\n".join(m.content for m in run if m.content)
    tool_calls: list[FlatToolCall] = []
    for m in run:
        tool_calls.extend(m.tool_calls or [])
    if not tool_calls:
        return FlatMessage.assistant(text)
    return FlatMessage.assistant(text or None, tool_calls=tool_calls)
