"""OpenTelemetry tracing configuration for ricesync.

Environment Variables:
    RICESYNC_OTEL_ENABLED: Set to "1" to enable tracing (default: disabled)
    RICESYNC_REQUIRE_OTEL: Set to "1" to fail start-up if tracing cannot initialize
    RICESYNC_OTEL_SERVICE_NAME: Service name for spans (default: "ricesync")
    RICESYNC_OTEL_TEST_CAPTURE: Set to "1" to use the in-memory exporter for tests

Never export tokens or Authorization headers in span attributes.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

if TYPE_CHECKING:
    from opentelemetry.sdk.trace import ReadableSpan

logger = logging.getLogger(__name__)

RICESYNC_OTEL_ENABLED_ENV = "RICESYNC_OTEL_ENABLED"
RICESYNC_REQUIRE_OTEL_ENV = "RICESYNC_REQUIRE_OTEL"
RICESYNC_OTEL_SERVICE_NAME_ENV = "RICESYNC_OTEL_SERVICE_NAME"
RICESYNC_OTEL_TEST_CAPTURE_ENV = "RICESYNC_OTEL_TEST_CAPTURE"

_tracer_provider: TracerProvider | None = None
_test_exporter: InMemorySpanExporter | None = None


class TracingConfigError(Exception):
    """Raised when tracing configuration fails and RICESYNC_REQUIRE_OTEL=1."""

    pass


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean from environment variable."""
    val = os.environ.get(key, "").strip().lower()
    if val in ("1", "true", "yes"):
        return True
    if val in ("0", "false", "no"):
        return False
    return default


def is_tracing_enabled() -> bool:
    return get_env_bool(RICESYNC_OTEL_ENABLED_ENV, False)


def configure_tracing() -> bool:
    """Configure OpenTelemetry tracing for ricesync.

    Idempotent - safe to call multiple times. The global TracerProvider can
    only be set once per process, so a configured provider is reused.

    Returns:
        True if tracing is enabled and configured, False otherwise.

    Raises:
        TracingConfigError: If RICESYNC_REQUIRE_OTEL=1 and configuration fails.
    """
    global _tracer_provider, _test_exporter

    if not is_tracing_enabled():
        logger.debug("OpenTelemetry tracing disabled (%s not set)", RICESYNC_OTEL_ENABLED_ENV)
        return False

    if _tracer_provider is not None:
        return True

    test_capture = get_env_bool(RICESYNC_OTEL_TEST_CAPTURE_ENV, False)
    service_name = os.environ.get(RICESYNC_OTEL_SERVICE_NAME_ENV, "ricesync").strip()

    try:
        provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
        if test_capture:
            _test_exporter = InMemorySpanExporter()
            provider.add_span_processor(SimpleSpanProcessor(_test_exporter))
        else:
            provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
        trace.set_tracer_provider(provider)
        _tracer_provider = provider
    except Exception as e:
        logger.error("Failed to configure OpenTelemetry tracing: %s", e)
        if get_env_bool(RICESYNC_REQUIRE_OTEL_ENV, False):
            raise TracingConfigError(
                f"OpenTelemetry tracing required but configuration failed: {e}"
            ) from e
        return False

    logger.info(
        "OpenTelemetry tracing configured: service=%s, exporter=%s",
        service_name,
        "in-memory" if test_capture else "console",
    )
    return True


def get_test_spans() -> list[ReadableSpan]:
    """Get captured spans from the in-memory exporter (for testing)."""
    if _test_exporter is None:
        return []
    return list(_test_exporter.get_finished_spans())


def clear_test_spans() -> None:
    """Clear captured spans from the in-memory exporter (for testing)."""
    if _test_exporter is not None:
        _test_exporter.clear()


def set_span_attributes(span: Any, attributes: dict[str, Any]) -> None:
    """Set non-None attributes on a span."""
    for key, value in attributes.items():
        if value is not None:
            span.set_attribute(key, value)
