"""BridgeClient — turn-structured requests over a chat-completions transport.

Translates a turn-structured request into a flat one, sanitises the message
list, sends it through LiteLLM and translates the response (or each chunk
of a stream) back into turn-structured form.
"""

import logging
from collections.abc import AsyncIterator
from typing import Any

import litellm

from chatbridge.core.interface.config import ModelConfig, TranslatorOptions
from chatbridge.core.interface.flat import FlatRequest
from chatbridge.core.interface.sanitizer import sanitize_history
from chatbridge.core.interface.streaming import ToolCallAssembler
from chatbridge.core.interface.transpilers.inbound import convert_chunk, convert_response
from chatbridge.core.interface.transpilers.outbound import convert_request
from chatbridge.core.interface.turns import GenerateContentRequest, GenerateContentResponse
from chatbridge.core.presets.registry import PresetRegistry
from chatbridge.utils.telemetry import (
    ATTR_CHUNK_COUNT,
    ATTR_FINISH_REASON,
    ATTR_MESSAGE_COUNT,
    ATTR_MODEL,
    ATTR_PROVIDER,
    ATTR_STREAM,
    ATTR_TOKENS_COMPLETION,
    ATTR_TOKENS_PROMPT,
    ATTR_TOKENS_TOTAL,
    get_tracer,
)

logger = logging.getLogger(__name__)

_tracer = get_tracer(__name__)

# Providers whose models get sampling presets when no registry is passed.
_PRESET_PROVIDERS = frozenset({"ollama", "ollama_chat"})

_default_presets: PresetRegistry | None = None


def _get_default_presets() -> PresetRegistry:
    """Return (and cache) the default preset registry."""
    global _default_presets
    if _default_presets is None:
        from chatbridge.core.presets.registry_data import build_default_registry

        _default_presets = build_default_registry()
    return _default_presets


class BridgeClient:
    """Async client speaking the turn-structured protocol to any LiteLLM model.

    Usage::

        client = BridgeClient(ModelConfig(model="ollama/qwen3:14b"))
        response = await client.generate(request)
        async for fragment in client.stream(request):
            ...
    """

    def __init__(
        self,
        config: ModelConfig,
        *,
        options: TranslatorOptions | None = None,
        presets: PresetRegistry | None = None,
    ) -> None:
        self.config = config
        self.options = options or TranslatorOptions()
        if presets is None and config.provider in _PRESET_PROVIDERS:
            presets = _get_default_presets()
        self.presets = presets

    def build_request(self, request: GenerateContentRequest | dict[str, Any]) -> FlatRequest:
        """Translate *request* into the flat request this client would send."""
        req = GenerateContentRequest.model_validate(request)
        if self.presets is not None:
            preset = self.presets.resolve(self.config)
            req = req.model_copy(update={"config": preset.fill(req.config)})

        flat = convert_request(req, self.config.model)
        messages = sanitize_history(flat.messages, merge=self.options.merge_assistant_messages)
        return flat.model_copy(update={"messages": messages})

    async def generate(
        self,
        request: GenerateContentRequest | dict[str, Any],
        **kwargs: Any,
    ) -> GenerateContentResponse:
        """Send *request* and return the translated complete response.

        Raises:
            EmptyResponseError: The provider returned no choices.
            MalformedArgumentsError: A tool call carried invalid JSON
                arguments under the ``raise`` policy.
        """
        with _tracer.start_as_current_span("bridge.generate") as span:
            flat = self.build_request(request)
            self._annotate(span, flat, stream=False)

            # LiteLLM type stubs are incomplete
            raw = await litellm.acompletion(**self._call_kwargs(flat, kwargs))  # pyright: ignore[reportUnknownMemberType]
            result = convert_response(_as_dict(raw), options=self.options)

            usage = result.usage_metadata
            if usage is not None:
                span.set_attribute(ATTR_TOKENS_PROMPT, usage.prompt_token_count)
                span.set_attribute(ATTR_TOKENS_COMPLETION, usage.candidates_token_count)
                span.set_attribute(ATTR_TOKENS_TOTAL, usage.total_token_count)
            if result.finish_reason is not None:
                span.set_attribute(ATTR_FINISH_REASON, result.finish_reason.value)
            return result

    async def stream(
        self,
        request: GenerateContentRequest | dict[str, Any],
        **kwargs: Any,
    ) -> AsyncIterator[GenerateContentResponse]:
        """Send *request* as a stream and yield one translated response per chunk.

        Chunks are translated strictly in arrival order. Tool-call argument
        fragments are assembled before translation, so function calls are
        yielded complete on the terminal chunk.
        """
        with _tracer.start_as_current_span("bridge.stream") as span:
            flat = self.build_request(request)
            self._annotate(span, flat, stream=True)

            call_kwargs = self._call_kwargs(flat, kwargs)
            call_kwargs["stream"] = True
            chunks = await litellm.acompletion(**call_kwargs)  # pyright: ignore[reportUnknownMemberType]

            assembler = ToolCallAssembler()
            count = 0
            async for raw in chunks:
                count += 1
                fragment = convert_chunk(assembler.feed(_as_dict(raw)), options=self.options)
                if fragment.finish_reason is not None:
                    span.set_attribute(ATTR_FINISH_REASON, fragment.finish_reason.value)
                yield fragment

            tail = assembler.flush()
            if tail is not None:
                yield convert_chunk(tail, options=self.options)
            span.set_attribute(ATTR_CHUNK_COUNT, count)

    def _annotate(self, span: Any, flat: FlatRequest, *, stream: bool) -> None:
        span.set_attribute(ATTR_MODEL, self.config.model)
        span.set_attribute(ATTR_PROVIDER, self.config.provider)
        span.set_attribute(ATTR_STREAM, stream)
        span.set_attribute(ATTR_MESSAGE_COUNT, len(flat.messages))

    def _call_kwargs(self, flat: FlatRequest, overrides: dict[str, Any]) -> dict[str, Any]:
        call_kwargs: dict[str, Any] = flat.to_wire()
        # Preset runtime options only mean something to Ollama.
        if self.presets is not None and self.config.provider in _PRESET_PROVIDERS:
            call_kwargs.update(self.presets.resolve(self.config).provider_options())
        call_kwargs.update(self.config.extra)
        call_kwargs.update(overrides)
        if self.config.api_key:
            call_kwargs["api_key"] = self.config.api_key
        if self.config.api_base:
            call_kwargs["api_base"] = self.config.api_base
        return call_kwargs


def _as_dict(payload: Any) -> dict[str, Any]:
    """Normalise a LiteLLM response object (or plain dict) to a dict."""
    if isinstance(payload, dict):
        return payload
    dump = getattr(payload, "model_dump", None)
    if callable(dump):
        result: dict[str, Any] = dump()
        return result
    raise TypeError(f"Unsupported response payload: {type(payload).__name__}")
