"""Continue an externally managed trace instead of starting a new one."""

from __future__ import annotations
import logging
import re
from opentelemetry import trace
from opentelemetry.context import Context
from opentelemetry.sdk.trace.id_generator import IdGenerator
from opentelemetry.trace import NonRecordingSpan, SpanContext, TraceFlags


logger = logging.getLogger(__name__)
_TRACE_ID_RE = re.compile(r"[0-9a-fA-F]{32}")


class InvalidParentTraceIdError(ValueError):
    """Raised when a supplied parent trace id is not 32 hexadecimal digits."""

    def __init__(self, parent_trace_id: str) -> None:
        """Record the offending identifier in the error message."""
        super().__init__(
            f'Invalid parentTraceId format: "{parent_trace_id}". '
            "Expected 32 hexadecimal characters."
        )
        self.parent_trace_id = parent_trace_id


def is_valid_trace_id(trace_id: str) -> bool:
    """Return ``True`` when ``trace_id`` is exactly 32 hex digits."""
    return _TRACE_ID_RE.fullmatch(trace_id) is not None


def link_parent(parent_trace_id: str | None, id_generator: IdGenerator) -> Context:
    """Build the context the workflow root span is started in.

    Without a parent id the returned context is empty, which makes the root
    span the root of a brand new trace. With a parent id the context carries a
    sampled, remote span under which the whole workflow trace is attached.
    """
    if not parent_trace_id:
        return Context()

    if not is_valid_trace_id(parent_trace_id):
        raise InvalidParentTraceIdError(parent_trace_id)

    span_context = SpanContext(
        trace_id=int(parent_trace_id, 16),
        span_id=id_generator.generate_span_id(),
        is_remote=True,
        trace_flags=TraceFlags(TraceFlags.SAMPLED),
    )
    logger.debug("Continuing parent trace %s", parent_trace_id.lower())
    return trace.set_span_in_context(NonRecordingSpan(span_context), Context())


__all__ = ["InvalidParentTraceIdError", "is_valid_trace_id", "link_parent"]
