"""Outbound translator — turn-structured request -> flat chat-completions request.

Key differences between the schemas:
- Role "model" becomes "assistant"; the system instruction becomes a
  leading "system" message.
- All function calls of a turn collapse into ONE assistant message with
  ``content: null``; each function response becomes its own "tool" message.
- Tool calls need ids. Calls that carry an id keep it, the rest get a fresh
  one, and responses are correlated back to those ids.
"""

import json
import logging
from collections import defaultdict, deque
from collections.abc import Callable, Iterable
from typing import Any
from uuid import uuid4

from chatbridge.core.interface.errors import UnsupportedRoleError
from chatbridge.core.interface.flat import FlatMessage, FlatRequest, FlatToolCall
from chatbridge.core.interface.turns import (
    FunctionResponse,
    GenerateContentRequest,
    TextPart,
    Tool,
    Turn,
)

logger = logging.getLogger(__name__)

_ROLE_MAP: dict[str, str] = {"user": "user", "model": "assistant"}


def new_call_id() -> str:
    """Return a fresh tool-call id."""
    return f"call_{uuid4().hex[:24]}"


def convert_tools(tools: Iterable[Tool | dict[str, Any]]) -> list[dict[str, Any]]:
    """Flatten tool groups into chat-completions function tools.

    Each function declaration becomes one ``{"type": "function", ...}`` entry,
    in group order then declaration order. Groups without declarations
    contribute nothing.
    """
    result: list[dict[str, Any]] = []
    for raw in tools:
        group = Tool.model_validate(raw)
        for decl in group.function_declarations or []:
            result.append(
                {
                    "type": "function",
                    "function": {
                        "name": decl.name,
                        "description": decl.description,
                        "parameters": decl.parameters,
                    },
                }
            )
    return result


class _CallLedger:
    """Tracks ids issued to function calls so responses can find them.

    Without explicit ids, a response is matched to the oldest unanswered
    call with the same function name. Two calls to one function whose
    responses come back in a different order are therefore paired by
    position, not by identity.
    """

    def __init__(self, id_factory: Callable[[], str]) -> None:
        self._id_factory = id_factory
        self._pending: defaultdict[str, deque[str]] = defaultdict(deque)

    def issue(self, name: str, call_id: str | None) -> str:
        resolved = call_id or self._id_factory()
        self._pending[name].append(resolved)
        return resolved

    def resolve(self, response: FunctionResponse) -> str:
        pending = self._pending[response.name]
        if response.id is not None:
            if response.id in pending:
                pending.remove(response.id)
            return response.id
        if pending:
            return pending.popleft()
        logger.warning(
            "No earlier call found for function response %r; using name-derived id",
            response.name,
        )
        return f"call_{response.name}"


def convert_request(
    request: GenerateContentRequest | dict[str, Any],
    model: str | None = None,
    *,
    id_factory: Callable[[], str] | None = None,
) -> FlatRequest:
    """Convert a turn-structured request into a flat chat-completions request.

    Args:
        request: The request, as a model or its wire dict.
        model: Target model id. Defaults to ``request.model``.
        id_factory: Produces ids for calls that do not carry one.

    Raises:
        UnsupportedRoleError: A turn has a role other than ``user``/``model``.
        ValueError: No target model was given.
    """
    req = GenerateContentRequest.model_validate(request)
    target = model or req.model
    if not target:
        raise ValueError("A target model is required")

    ledger = _CallLedger(id_factory or new_call_id)
    messages: list[FlatMessage] = []

    system = _system_message(req.effective_system_instruction)
    if system is not None:
        messages.append(system)

    for turn in req.contents:
        messages.extend(_turn_to_flat(turn, ledger))

    fields: dict[str, Any] = {"model": target, "messages": messages}
    config = req.config
    if config is not None:
        if config.temperature is not None:
            fields["temperature"] = config.temperature
        if config.top_p is not None:
            fields["top_p"] = config.top_p
        if config.max_output_tokens is not None:
            fields["max_tokens"] = config.max_output_tokens
    tools = req.all_tools
    if tools:
        fields["tools"] = convert_tools(tools)

    return FlatRequest(**fields)


def _flat_role(role: str) -> str:
    try:
        return _ROLE_MAP[role]
    except KeyError:
        raise UnsupportedRoleError(role) from None


def _system_message(instruction: str | Turn | None) -> FlatMessage | None:
    if instruction is None:
        return None
    text = instruction if isinstance(instruction, str) else _joined_text(instruction)
    if not text:
        return None
    return FlatMessage.system(text)


def _joined_text(turn: Turn) -> str:
    return "\n".join(p.text for p in turn.parts if isinstance(p, TextPart))


def _turn_to_flat(turn: Turn, ledger: _CallLedger) -> list[FlatMessage]:
    """Translate one turn: text message, then call message, then tool messages."""
    role = _flat_role(turn.role)
    result: list[FlatMessage] = []

    text = _joined_text(turn)
    if text:
        result.append(FlatMessage(role=role, content=text))

    calls = turn.function_calls
    if calls:
        tool_calls = [
            FlatToolCall.create(
                id=ledger.issue(fc.name, fc.id),
                name=fc.name,
                arguments=json.dumps(fc.args),
            )
            for fc in calls
        ]
        result.append(FlatMessage.assistant(None, tool_calls=tool_calls))

    for fr in turn.function_responses:
        result.append(FlatMessage.tool(ledger.resolve(fr), json.dumps(fr.response)))

    return result
