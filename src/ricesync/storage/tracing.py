"""OpenTelemetry spans for remote file-store operations.

Attributes carry repository paths and the branch only; the access token and
request headers are never recorded.
"""

from __future__ import annotations

import functools
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar, cast

from opentelemetry import trace

from ricesync.observability.tracing import is_tracing_enabled, set_span_attributes

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def traced_store_operation(operation: str) -> Callable[[F], F]:
    """Decorator to trace an async store method taking a path first.

    Args:
        operation: Operation name (e.g., "read", "write", "delete").

    Returns:
        Decorated coroutine function that emits a span when tracing is enabled.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(self: Any, path: str, *args: Any, **kwargs: Any) -> Any:
            if not is_tracing_enabled():
                return await func(self, path, *args, **kwargs)

            tracer = trace.get_tracer("ricesync.store")
            with tracer.start_as_current_span(f"ricesync.store.{operation}") as span:
                set_span_attributes(
                    span,
                    {
                        "ricesync.path": path,
                        "ricesync.branch": getattr(self, "branch", None),
                        "storage.backend": getattr(self, "backend_name", "unknown"),
                    },
                )
                try:
                    return await func(self, path, *args, **kwargs)
                except Exception as e:
                    span.set_attribute("error", True)
                    span.set_attribute("error.type", type(e).__name__)
                    raise

        return cast(F, wrapper)

    return decorator
