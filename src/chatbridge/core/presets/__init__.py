"""Per-model sampling presets."""

from chatbridge.core.presets.registry import GenerationPreset, PresetRegistry

__all__ = ["GenerationPreset", "PresetRegistry"]
