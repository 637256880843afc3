"""Map a job step to a leaf span."""

from __future__ import annotations
import logging
from opentelemetry.trace import Status, StatusCode, Tracer
from otel_cicd.models import Step
from otel_cicd.tracing.attributes import step_attributes
from otel_cicd.tracing.timing import clamped_end_time, to_nanoseconds


logger = logging.getLogger(__name__)


def trace_step(tracer: Tracer, step: Step) -> None:
    """Emit one span for ``step`` under the current job span, if it ran."""
    if step.started_at is None or step.completed_at is None:
        logger.info("Step %s is not completed yet.", step.name)
        return

    if step.conclusion == "skipped":
        logger.info("Step %s did not run.", step.name)
        return

    with tracer.start_as_current_span(
        step.name,
        attributes=step_attributes(step).build(),
        start_time=to_nanoseconds(step.started_at),
        end_on_exit=False,
    ) as span:
        code = StatusCode.ERROR if step.conclusion == "failure" else StatusCode.OK
        span.set_status(Status(code))
        span.end(end_time=clamped_end_time(step.started_at, step.completed_at))


__all__ = ["trace_step"]
