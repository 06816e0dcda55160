"""Model and translator configuration."""

from typing import Any, Literal

from pydantic import BaseModel, Field


class ModelConfig(BaseModel):
    """Configuration for the transport target.

    The ``model`` field uses LiteLLM's naming convention:
    ``provider/model_name`` (e.g. ``openai/gpt-4o``, ``ollama/qwen3:14b``).
    """

    model: str
    api_key: str | None = None
    api_base: str | None = None
    extra: dict[str, Any] = Field(default_factory=lambda: dict[str, Any]())

    @property
    def provider(self) -> str:
        """Extract the provider prefix from the model string."""
        if "/" in self.model:
            return self.model.split("/", 1)[0]
        return "openai"

    @property
    def model_name(self) -> str:
        """The model string without its provider prefix."""
        return self.model.split("/", 1)[1] if "/" in self.model else self.model


class TranslatorOptions(BaseModel):
    """Policies shared by the translators and the history sanitizer.

    ``malformed_arguments`` decides what happens when a tool call's
    ``arguments`` is not valid JSON: ``raise`` fails the whole translation
    with :class:`MalformedArgumentsError`, ``skip`` drops that one call and
    logs a warning. The policy is the same for complete responses and chunks.
    """

    malformed_arguments: Literal["raise", "skip"] = "raise"
    merge_assistant_messages: bool = True
