"""OpenTelemetry tracing decorators."""

import contextlib
import functools
import inspect
from collections.abc import Callable, Iterator, Mapping
from typing import Any, TypeVar

from opentelemetry import trace

F = TypeVar("F", bound=Callable[..., Any])

SERVICE_NAME = "ordering-svc"


@contextlib.contextmanager
def _operation_span(
    tracer: trace.Tracer, name: str, attributes: Mapping[str, Any]
) -> Iterator[trace.Span]:
    with tracer.start_as_current_span(name, attributes=dict(attributes)) as span:
        try:
            yield span
        except Exception as e:
            span.set_attribute("success", False)
            span.set_attribute("error.type", type(e).__name__)
            span.set_attribute("error.message", str(e))
            span.record_exception(e)
            raise
        span.set_attribute("success", True)


def traced(
    span_name: str | None = None,
    service_name: str = SERVICE_NAME,
    attributes: Mapping[str, Any] | None = None,
) -> Callable[[F], F]:
    """Wrap a function or coroutine function in an OpenTelemetry span.

    The span is marked ``success`` True or False; on failure the exception
    type and message are attached and the exception is re-raised unchanged.

    Args:
        span_name: Span name, the function name when omitted
        service_name: Tracer name, also set as the ``service.name`` attribute
        attributes: Extra static attributes set on every span

    Example:
        @traced("checkout_submit", attributes={"ordering.operation": "checkout"})
        async def submit(self, cart_store, customer, contact_phone):
            ...
    """

    def decorator(func: F) -> F:
        name = span_name or func.__name__
        tracer = trace.get_tracer(service_name)
        span_attributes: dict[str, Any] = {"service.name": service_name}
        if span_name:
            span_attributes["function.name"] = func.__name__
        span_attributes.update(attributes or {})

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                with _operation_span(tracer, name, span_attributes):
                    return await func(*args, **kwargs)

            return async_wrapper  # type: ignore

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            with _operation_span(tracer, name, span_attributes):
                return func(*args, **kwargs)

        return sync_wrapper  # type: ignore

    return decorator
