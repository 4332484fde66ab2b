"""Tracing helpers: async span decorator and current-span setters."""

from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, ParamSpec, TypeVar

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

P = ParamSpec("P")
T = TypeVar("T")

# Keyword arguments recorded as span attributes. Tokens, credentials and
# message content are never in this set.
_SAFE_SPAN_ATTR_KEYS = frozenset({
    "tenant_id", "integration_id", "provider_type", "message_id",
    "max_count", "since", "limit", "status",
})


def _record_failure(span: trace.Span, e: BaseException) -> None:
    span.set_status(Status(StatusCode.ERROR, str(e)))
    span.record_exception(e)


def traced(
    operation_name: str | None = None,
    attributes: dict[str, Any] | None = None,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Run the decorated coroutine function inside a span named operation_name.

    Exceptions mark the span as error and propagate unchanged.
    """

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        tracer = trace.get_tracer(func.__module__)
        span_name = operation_name or f"{func.__module__}.{func.__qualname__}"

        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            with tracer.start_as_current_span(span_name) as span:
                for key, value in (attributes or {}).items():
                    span.set_attribute(key, value)
                for key, value in kwargs.items():
                    if key in _SAFE_SPAN_ATTR_KEYS:
                        span.set_attribute(f"arg.{key}", str(value))
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    _record_failure(span, e)
                    raise

        return wrapper

    return decorator


def add_span_attributes(**attributes: str | int | float | bool) -> None:
    span = trace.get_current_span()
    if span.is_recording():
        for key, value in attributes.items():
            span.set_attribute(key, value)


def set_span_error(exception: Exception) -> None:
    """Mark the current span as failed without raising (contained errors)."""
    span = trace.get_current_span()
    if span.is_recording():
        _record_failure(span, exception)
