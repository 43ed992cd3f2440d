"""Tracing for storage and processing calls.

`traced` opens a span around a sync or async function. Arguments are bound
to the signature so positional calls such as store("Local", path, data)
still record the adapter and path. File arguments contribute their id and
adapter; byte payloads and anything not allowlisted are never recorded.
"""

import inspect
from collections.abc import Callable
from functools import wraps
from typing import Any

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

# Argument names recorded as span attributes.
_RECORDED_ARGS = frozenset({"adapter", "path", "local_path", "name", "variant", "variants", "stage"})


def _describe(value: Any) -> str:
    if isinstance(value, (list, tuple, set, frozenset)):
        return ",".join(str(v) for v in value)
    return str(value)


def _argument_attributes(signature: inspect.Signature, args: tuple, kwargs: dict) -> dict[str, str]:
    try:
        bound = signature.bind_partial(*args, **kwargs)
    except TypeError:
        return {}
    attributes: dict[str, str] = {}
    for key, value in bound.arguments.items():
        if value is None or key == "self":
            continue
        if key in _RECORDED_ARGS:
            attributes[f"storage.{key}"] = _describe(value)
        elif hasattr(value, "uuid") and hasattr(value, "storage"):
            # File value object
            attributes["file.id"] = str(value.uuid)
            attributes["file.adapter"] = str(value.storage)
    return attributes


def _finish(span: trace.Span, error: Exception | None) -> None:
    if error is None:
        span.set_status(Status(StatusCode.OK))
    else:
        span.set_status(Status(StatusCode.ERROR, str(error)))
        span.record_exception(error)


def traced(operation_name: str | None = None, attributes: dict | None = None) -> Callable:
    """Wrap a function (sync or async) in a span.

    Spans are no-ops until a tracer provider is installed, see
    file_storage.shared.telemetry.telemetry.setup_telemetry.

    Args:
        operation_name: Span name, defaults to module.qualname.
        attributes: Static attributes added to every span.
    """

    def decorator(func: Callable) -> Callable:
        tracer = trace.get_tracer(__name__)
        span_name = operation_name or f"{func.__module__}.{func.__qualname__}"
        signature = inspect.signature(func)

        def _start(args: tuple, kwargs: dict):
            return tracer.start_as_current_span(
                span_name,
                attributes={**(attributes or {}), **_argument_attributes(signature, args, kwargs)},
                record_exception=False,
                set_status_on_exception=False,
            )

        if inspect.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                with _start(args, kwargs) as span:
                    try:
                        result = await func(*args, **kwargs)
                    except Exception as e:
                        _finish(span, e)
                        raise
                    _finish(span, None)
                    return result

            return async_wrapper

        @wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            with _start(args, kwargs) as span:
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    _finish(span, e)
                    raise
                _finish(span, None)
                return result

        return sync_wrapper

    return decorator


def add_span_attributes(**attributes: str | int | float | bool) -> None:
    """Add attributes to the current span, if one is recording."""
    span = trace.get_current_span()
    if span.is_recording():
        for key, value in attributes.items():
            span.set_attribute(key, value)
