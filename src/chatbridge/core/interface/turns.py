"""Turn-structured schema — the ``generateContent`` side of the bridge.

Turns carry a ``user`` or ``model`` role and an ordered list of typed parts.
Models accept and emit the camelCase wire names (``functionCall``,
``finishReason``, ``usageMetadata``) while exposing snake_case attributes.
"""

import logging
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class _TurnModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_wire(self) -> dict[str, Any]:
        """Dump using wire (camelCase) names, omitting unset optional fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Parts
# ---------------------------------------------------------------------------


class FunctionCall(_TurnModel):
    """A model-issued function invocation.

    ``id`` is the opaque correlation id of the call. It is optional on the
    wire; when present it is echoed back by the matching FunctionResponse.
    """

    name: str
    args: dict[str, Any] = {}
    id: str | None = None


class FunctionResponse(_TurnModel):
    """The result of a function invocation, sent back on a user turn."""

    name: str
    response: dict[str, Any] = {}
    id: str | None = None


class TextPart(_TurnModel):
    text: str


class FunctionCallPart(_TurnModel):
    function_call: FunctionCall


class FunctionResponsePart(_TurnModel):
    function_response: FunctionResponse


Part = TextPart | FunctionCallPart | FunctionResponsePart

# Wire and attribute names of the part kinds that carry meaning here.
_PART_KEYS = frozenset(
    {"text", "functionCall", "function_call", "functionResponse", "function_response"}
)


# ---------------------------------------------------------------------------
# Turns
# ---------------------------------------------------------------------------


class Turn(_TurnModel):
    """One exchange unit: a role plus ordered parts.

    Only ``user`` and ``model`` are legal roles on the wire. The role is kept
    as a plain string so that translation, not parsing, decides how an
    unknown role is reported. A missing role means ``user``, as in the SDK.
    """

    role: str = "user"
    parts: list[Part] = []

    @field_validator("parts", mode="before")
    @classmethod
    def _drop_unknown_parts(cls, value: Any) -> Any:
        """Skip parts of kinds the flat protocol cannot carry (``inlineData``, ...)."""
        if not isinstance(value, list):
            return value
        kept: list[Any] = []
        for part in value:
            if isinstance(part, dict) and not _PART_KEYS.intersection(part):
                logger.debug("Skipping unsupported part with keys %s", sorted(part))
                continue
            kept.append(part)
        return kept

    @property
    def text(self) -> str:
        """Concatenated text of all text parts."""
        return "".join(p.text for p in self.parts if isinstance(p, TextPart))

    @property
    def function_calls(self) -> list[FunctionCall]:
        return [p.function_call for p in self.parts if isinstance(p, FunctionCallPart)]

    @property
    def function_responses(self) -> list[FunctionResponse]:
        return [p.function_response for p in self.parts if isinstance(p, FunctionResponsePart)]

    @classmethod
    def user(cls, text: str) -> "Turn":
        """Create a user turn with a single text part."""
        return cls(role="user", parts=[TextPart(text=text)])

    @classmethod
    def model(cls, text: str) -> "Turn":
        """Create a model turn with a single text part."""
        return cls(role="model", parts=[TextPart(text=text)])


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class FunctionDeclaration(_TurnModel):
    """A callable function advertised to the model."""

    name: str
    description: str | None = None
    parameters: dict[str, Any] | None = None


class Tool(_TurnModel):
    """A tool group. Groups without function declarations are allowed."""

    function_declarations: list[FunctionDeclaration] | None = None


class GenerationConfig(_TurnModel):
    """Sampling parameters plus the out-of-band system instruction.

    ``tools`` and ``system_instruction`` may sit here (SDK style) or at the
    top level of the request (REST style). Other generation settings such
    as ``topK`` or ``stopSequences`` have no flat counterpart and are
    ignored.
    """

    temperature: float | None = None
    top_p: float | None = None
    max_output_tokens: int | None = None
    system_instruction: str | Turn | None = None
    tools: list[Tool] | None = None


class GenerateContentRequest(_TurnModel):
    """A turn-structured request: contents, optional config and tools.

    ``contents`` accepts a single turn as well as a list; a single turn is
    normalised to a one-element list. ``model`` is the default target model
    when the translator is not given one explicitly.
    """

    contents: list[Turn]
    config: GenerationConfig | None = None
    tools: list[Tool] | None = None
    system_instruction: str | Turn | None = None
    model: str | None = None

    @property
    def all_tools(self) -> list[Tool]:
        """Top-level tool groups followed by those nested in ``config``."""
        nested = self.config.tools if self.config is not None else None
        return [*(self.tools or []), *(nested or [])]

    @property
    def effective_system_instruction(self) -> str | Turn | None:
        """The system instruction; the one in ``config`` wins over the top level."""
        if self.config is not None and self.config.system_instruction is not None:
            return self.config.system_instruction
        return self.system_instruction

    @field_validator("contents", mode="before")
    @classmethod
    def _wrap_single_turn(cls, value: Any) -> Any:
        if isinstance(value, (Turn, dict)):
            return [value]
        return value


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class FinishReason(str, Enum):
    """Closed set of turn-side finish reasons."""

    STOP = "STOP"
    MAX_TOKENS = "MAX_TOKENS"
    SAFETY = "SAFETY"
    OTHER = "OTHER"


class UsageMetadata(_TurnModel):
    prompt_token_count: int
    candidates_token_count: int
    total_token_count: int


class Candidate(_TurnModel):
    content: Turn
    finish_reason: FinishReason | None = None


class GenerateContentResponse(_TurnModel):
    """A turn-structured response (complete, or one streamed fragment)."""

    candidates: list[Candidate] = []
    usage_metadata: UsageMetadata | None = None

    @property
    def text(self) -> str:
        """Text of the first candidate, or an empty string."""
        if not self.candidates:
            return ""
        return self.candidates[0].content.text

    @property
    def function_calls(self) -> list[FunctionCall]:
        """Function calls of the first candidate."""
        if not self.candidates:
            return []
        return self.candidates[0].content.function_calls

    @property
    def finish_reason(self) -> FinishReason | None:
        if not self.candidates:
            return None
        return self.candidates[0].finish_reason
