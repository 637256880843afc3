"""Map a workflow job to a span with one child span per step."""

from __future__ import annotations
import logging
from collections.abc import Sequence
from opentelemetry.trace import Status, StatusCode, Tracer
from otel_cicd.models import CheckAnnotation, Job
from otel_cicd.tracing.attributes import annotations_attributes, job_attributes
from otel_cicd.tracing.step import trace_step
from otel_cicd.tracing.timing import clamped_end_time, to_nanoseconds


logger = logging.getLogger(__name__)


def trace_job(
    tracer: Tracer,
    job: Job,
    annotations: Sequence[CheckAnnotation] | None = None,
) -> None:
    """Emit the span of ``job`` and its steps under the current workflow span.

    Jobs without a completion time are still queued or running at snapshot
    time and produce no span. Steps are traced in the order GitHub lists them.
    """
    if job.completed_at is None:
        logger.info("Job %s is not completed yet", job.id)
        return

    attributes = job_attributes(job).merge(annotations_attributes(annotations))

    with tracer.start_as_current_span(
        job.name,
        attributes=attributes.build(),
        start_time=to_nanoseconds(job.started_at),
        end_on_exit=False,
    ) as span:
        code = StatusCode.ERROR if job.conclusion == "failure" else StatusCode.OK
        span.set_status(Status(code))

        for step in job.steps or []:
            trace_step(tracer, step)

        span.end(end_time=clamped_end_time(job.started_at, job.completed_at))


__all__ = ["trace_job"]
