"""OpenTelemetry tracing helpers for chatbridge.

Only the OpenTelemetry API is a hard dependency. Until
:func:`configure_telemetry` installs an SDK provider, every tracer handed out
by :func:`get_tracer` is a no-op.

Usage::

    from chatbridge.utils.telemetry import ATTR_MODEL, get_tracer

    _tracer = get_tracer(__name__)

    with _tracer.start_as_current_span("bridge.generate") as span:
        span.set_attribute(ATTR_MODEL, "ollama/qwen3:14b")

Exporting spans needs the ``otel`` extra: ``pip install chatbridge[otel]``.
"""

from __future__ import annotations

from typing import Any

from opentelemetry import trace
from pydantic import BaseModel

# ---------------------------------------------------------------------------
# Span attribute keys recorded by the bridge client
# ---------------------------------------------------------------------------

ATTR_MODEL = "chatbridge.model"
ATTR_PROVIDER = "chatbridge.provider"
ATTR_STREAM = "chatbridge.stream"
ATTR_MESSAGE_COUNT = "chatbridge.messages"
ATTR_CHUNK_COUNT = "chatbridge.chunks"
ATTR_TOKENS_PROMPT = "chatbridge.tokens.prompt"
ATTR_TOKENS_COMPLETION = "chatbridge.tokens.completion"
ATTR_TOKENS_TOTAL = "chatbridge.tokens.total"
ATTR_FINISH_REASON = "chatbridge.finish_reason"

_INSTRUMENTATION_NAME = "chatbridge"


class TelemetrySettings(BaseModel):
    """Where finished spans go."""

    service_name: str = "chatbridge"
    console: bool = True
    otlp_endpoint: str | None = None


def get_tracer(name: str | None = None) -> trace.Tracer:
    """Return a tracer for *name* (no-op until telemetry is configured)."""
    return trace.get_tracer(name or _INSTRUMENTATION_NAME)


def configure_telemetry(settings: TelemetrySettings | None = None) -> None:
    """Install an SDK tracer provider with the exporters *settings* asks for.

    Raises:
        ImportError: ``opentelemetry-sdk`` (or, for OTLP export,
            ``opentelemetry-exporter-otlp``) is not installed.
    """
    settings = settings or TelemetrySettings()
    sdk = _import_sdk()

    provider = sdk["TracerProvider"](
        resource=sdk["Resource"].create({"service.name": settings.service_name})
    )
    if settings.console:
        provider.add_span_processor(sdk["SimpleSpanProcessor"](sdk["ConsoleSpanExporter"]()))
    if settings.otlp_endpoint:
        exporter_cls = _import_otlp_exporter()
        provider.add_span_processor(
            sdk["BatchSpanProcessor"](exporter_cls(endpoint=settings.otlp_endpoint))
        )

    trace.set_tracer_provider(provider)


def _import_sdk() -> dict[str, Any]:
    try:
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import (
            BatchSpanProcessor,
            ConsoleSpanExporter,
            SimpleSpanProcessor,
        )
    except ImportError as exc:
        msg = (
            "opentelemetry-sdk is required for configure_telemetry(). "
            "Install it with: pip install chatbridge[otel]"
        )
        raise ImportError(msg) from exc
    return {
        "Resource": Resource,
        "TracerProvider": TracerProvider,
        "BatchSpanProcessor": BatchSpanProcessor,
        "ConsoleSpanExporter": ConsoleSpanExporter,
        "SimpleSpanProcessor": SimpleSpanProcessor,
    }


def _import_otlp_exporter() -> Any:
    try:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
    except ImportError as exc:
        msg = (
            "opentelemetry-exporter-otlp is required for OTLP export. "
            "Install it with: pip install chatbridge[otel]"
        )
        raise ImportError(msg) from exc
    return OTLPSpanExporter
