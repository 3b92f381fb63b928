"""Span helpers used by the workflow engine and step executor."""

from collections.abc import Iterator
from contextlib import contextmanager

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

AttributeValue = str | int | float | bool


@contextmanager
def traced_operation(
    tracer: trace.Tracer,
    name: str,
    attributes: dict[str, AttributeValue] | None = None,
) -> Iterator[trace.Span]:
    """Run the enclosed block inside a span; record exceptions and re-raise.

    Exceptions listed as control flow by the caller should be caught
    inside the block, so that only genuine failures mark the span as error.
    """
    with tracer.start_as_current_span(name, record_exception=False) as span:
        for key, value in (attributes or {}).items():
            span.set_attribute(key, value)
        try:
            yield span
        except Exception as e:
            set_span_error(e, span)
            raise
        else:
            span.set_status(Status(StatusCode.OK))


def add_span_event(name: str, attributes: dict | None = None) -> None:
    """Add an event to the current span."""
    span = trace.get_current_span()
    if span and span.is_recording():
        span.add_event(name, attributes=attributes or {})


def set_span_error(exception: Exception, span: trace.Span | None = None) -> None:
    """Mark the given (or current) span as error and record the exception."""
    span = span or trace.get_current_span()
    if span and span.is_recording():
        span.set_status(Status(StatusCode.ERROR, str(exception)))
        span.record_exception(exception)


def get_trace_id() -> str | None:
    """Return the current trace ID as 32-char hex, or None."""
    span = trace.get_current_span()
    if span:
        ctx = span.get_span_context()
        if ctx.is_valid:
            return format(ctx.trace_id, "032x")
    return None
