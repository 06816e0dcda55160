"""Model preset lookup.

Maps model identifiers to sampling presets through an ordered list of
predicates. The first matching predicate wins; unmatched models get the
registry's default preset.
"""

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel

from chatbridge.core.interface.config import ModelConfig
from chatbridge.core.interface.turns import GenerationConfig

ModelPredicate = Callable[[str], bool]


class GenerationPreset(BaseModel):
    """Sampling defaults for a model family.

    ``max_tokens``, ``temperature`` and ``top_p`` fill the request config.
    ``repeat_penalty`` and ``context_window`` have no turn-side field and go
    to the provider as Ollama options (see :meth:`provider_options`).
    """

    max_tokens: int = 8192
    temperature: float = 0.1
    top_p: float = 0.9
    repeat_penalty: float = 1.1
    context_window: int = 32768

    def fill(self, config: GenerationConfig | None) -> GenerationConfig:
        """Return *config* with unset sampling fields taken from this preset.

        Values already present in *config* always win.
        """
        base = config or GenerationConfig()
        return base.model_copy(
            update={
                "temperature": base.temperature if base.temperature is not None else self.temperature,
                "top_p": base.top_p if base.top_p is not None else self.top_p,
                "max_output_tokens": (
                    base.max_output_tokens if base.max_output_tokens is not None else self.max_tokens
                ),
            }
        )

    def provider_options(self) -> dict[str, Any]:
        """Ollama runtime options passed through LiteLLM as extra call kwargs."""
        return {"repeat_penalty": self.repeat_penalty, "num_ctx": self.context_window}


def name_contains(*fragments: str) -> ModelPredicate:
    """Predicate matching model names that contain every fragment."""

    def _match(model: str) -> bool:
        return all(fragment in model for fragment in fragments)

    return _match


class PresetRegistry:
    """Ordered (predicate, preset) pairs with a default fallback."""

    def __init__(self, default: GenerationPreset | None = None) -> None:
        self._entries: list[tuple[ModelPredicate, GenerationPreset]] = []
        self.default = default or GenerationPreset()

    def register(self, predicate: ModelPredicate, preset: GenerationPreset) -> None:
        """Append a rule; earlier rules take precedence."""
        self._entries.append((predicate, preset))

    def __len__(self) -> int:
        return len(self._entries)

    def resolve(self, model: ModelConfig | str) -> GenerationPreset:
        """Return the preset of the first rule matching *model*.

        For a :class:`ModelConfig` the provider prefix is stripped before
        matching (``ollama/qwen3:14b`` matches as ``qwen3:14b``).
        """
        name = model.model_name if isinstance(model, ModelConfig) else model
        for predicate, preset in self._entries:
            if predicate(name):
                return preset
        return self.default
