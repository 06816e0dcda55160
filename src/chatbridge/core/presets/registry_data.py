"""Static preset data.

Contains known local-model presets and a helper to build a pre-loaded
``PresetRegistry``.
"""

from chatbridge.core.presets.registry import GenerationPreset, PresetRegistry, name_contains

# ---------------------------------------------------------------------------
# Known model presets, most specific first
# ---------------------------------------------------------------------------

KNOWN_PRESETS: list[tuple[tuple[str, ...], GenerationPreset]] = [
    (
        ("qwen3", "14b"),
        GenerationPreset(
            max_tokens=8192,
            temperature=0.1,
            top_p=0.9,
            repeat_penalty=1.1,
            context_window=32768,
        ),
    ),
    (
        ("qwen3", "32b"),
        GenerationPreset(
            max_tokens=12288,
            temperature=0.15,
            top_p=0.9,
            repeat_penalty=1.1,
            context_window=32768,
        ),
    ),
    (
        ("llama3.1", "8b"),
        GenerationPreset(
            max_tokens=4096,
            temperature=0.1,
            top_p=0.85,
            repeat_penalty=1.15,
            context_window=131072,
        ),
    ),
    (
        ("llama3.3", "70b"),
        GenerationPreset(
            max_tokens=16384,
            temperature=0.2,
            top_p=0.95,
            repeat_penalty=1.05,
            context_window=131072,
        ),
    ),
]


def build_default_registry() -> PresetRegistry:
    """Create a ``PresetRegistry`` pre-loaded with all known presets."""
    registry = PresetRegistry()
    for fragments, preset in KNOWN_PRESETS:
        registry.register(name_contains(*fragments), preset)
    return registry
