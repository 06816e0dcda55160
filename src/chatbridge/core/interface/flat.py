"""Flat message-list schema — the chat-completions side of the bridge.

A conversation is a flat list of messages with roles ``system``, ``user``,
``assistant`` and ``tool``. Tool calls live on assistant messages and are
answered by tool messages that reference them through ``tool_call_id``.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, model_validator

FlatRole = Literal["system", "user", "assistant", "tool"]


class _FlatModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


class FlatFunction(_FlatModel):
    name: str
    arguments: str = ""


class FlatToolCall(_FlatModel):
    """A tool invocation on an assistant message."""

    id: str
    type: str = "function"
    function: FlatFunction

    @classmethod
    def create(cls, id: str, name: str, arguments: str = "{}") -> "FlatToolCall":
        return cls(id=id, function=FlatFunction(name=name, arguments=arguments))


class FlatMessage(_FlatModel):
    """A single message in the flat list.

    ``content`` may only be ``None`` on an assistant message that carries
    ``tool_calls``. ``tool_calls`` belong to assistant messages and
    ``tool_call_id`` to tool messages; anything else fails validation.
    """

    role: FlatRole
    content: str | None = None
    tool_calls: list[FlatToolCall] | None = None
    tool_call_id: str | None = None

    @model_validator(mode="after")
    def _check_role_fields(self) -> "FlatMessage":
        if self.tool_calls is not None and self.role != "assistant":
            raise ValueError(f"tool_calls are only allowed on assistant messages, not {self.role!r}")
        if self.tool_call_id is not None and self.role != "tool":
            raise ValueError(f"tool_call_id is only allowed on tool messages, not {self.role!r}")
        if self.content is None and not self.tool_calls:
            raise ValueError("content may only be null on an assistant message with tool_calls")
        return self

    def to_wire(self) -> dict[str, Any]:
        """Dump for the transport. ``content`` is always present, possibly null."""
        result: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_calls is not None:
            result["tool_calls"] = [tc.model_dump() for tc in self.tool_calls]
        if self.tool_call_id is not None:
            result["tool_call_id"] = self.tool_call_id
        return result

    @classmethod
    def system(cls, text: str) -> "FlatMessage":
        return cls(role="system", content=text)

    @classmethod
    def user(cls, text: str) -> "FlatMessage":
        return cls(role="user", content=text)

    @classmethod
    def assistant(
        cls,
        text: str | None = None,
        tool_calls: list[FlatToolCall] | None = None,
    ) -> "FlatMessage":
        return cls(role="assistant", content=text, tool_calls=tool_calls)

    @classmethod
    def tool(cls, tool_call_id: str, content: str) -> "FlatMessage":
        return cls(role="tool", content=content, tool_call_id=tool_call_id)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class FlatRequest(_FlatModel):
    """A chat-completions request body."""

    model: str
    messages: list[FlatMessage]
    temperature: float | None = None
    top_p: float | None = None
    max_tokens: int | None = None
    tools: list[dict[str, Any]] | None = None

    def to_wire(self) -> dict[str, Any]:
        """Dump for the transport; sampling fields appear only when set."""
        result: dict[str, Any] = {
            "model": self.model,
            "messages": [m.to_wire() for m in self.messages],
        }
        for key in ("temperature", "top_p", "max_tokens", "tools"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        return result


# ---------------------------------------------------------------------------
# Complete responses
# ---------------------------------------------------------------------------


class FlatUsage(_FlatModel):
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


class ResponseMessage(_FlatModel):
    """The message of a response choice. Providers may omit the role."""

    role: str = "assistant"
    content: str | None = None
    tool_calls: list[FlatToolCall] | None = None


class FlatChoice(_FlatModel):
    index: int = 0
    message: ResponseMessage = ResponseMessage()
    finish_reason: str | None = None


class ChatCompletion(_FlatModel):
    """A complete chat-completions response."""

    id: str | None = None
    model: str | None = None
    choices: list[FlatChoice] = []
    usage: FlatUsage | None = None


# ---------------------------------------------------------------------------
# Streaming chunks
# ---------------------------------------------------------------------------


class DeltaFunction(_FlatModel):
    name: str | None = None
    arguments: str | None = None


class DeltaToolCall(_FlatModel):
    """A tool-call fragment. Only ``index`` is guaranteed on every fragment."""

    index: int = 0
    id: str | None = None
    type: str | None = None
    function: DeltaFunction | None = None


class Delta(_FlatModel):
    role: str | None = None
    content: str | None = None
    tool_calls: list[DeltaToolCall] | None = None


class ChunkChoice(_FlatModel):
    index: int = 0
    delta: Delta = Delta()
    finish_reason: str | None = None


class ChatCompletionChunk(_FlatModel):
    """One incremental unit of a streamed response."""

    id: str | None = None
    model: str | None = None
    choices: list[ChunkChoice] = []
