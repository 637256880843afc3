"""Map a GitHub Actions workflow run to a complete OpenTelemetry trace."""

from __future__ import annotations
import logging
from collections.abc import Mapping, Sequence
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.trace import Status, StatusCode
from opentelemetry.trace.span import format_trace_id
from otel_cicd.models import CheckAnnotation, Job, WorkflowRun
from otel_cicd.tracing.attributes import workflow_run_attributes
from otel_cicd.tracing.job import trace_job
from otel_cicd.tracing.linker import link_parent
from otel_cicd.tracing.timing import to_nanoseconds


logger = logging.getLogger(__name__)
TRACER_NAME = "otel-cicd"
QUEUED_SPAN_NAME = "Queued"


def trace_workflow_run(
    provider: TracerProvider,
    run: WorkflowRun,
    jobs: Sequence[Job],
    job_annotations: Mapping[int, Sequence[CheckAnnotation]],
    pr_labels: Mapping[int, Sequence[str]],
    parent_trace_id: str | None = None,
) -> str:
    """Record ``run`` and its jobs as one trace and return the trace id.

    The root span covers ``run_started_at`` (or ``created_at``) to
    ``updated_at``. A ``Queued`` child span covers the wait between the run
    start and the first listed job's start. Each completed job becomes a
    child span holding its steps.

    When ``parent_trace_id`` is given the trace continues that external trace
    and the returned id is the parent id, lower-cased. An invalid parent id
    raises :class:`~otel_cicd.tracing.linker.InvalidParentTraceIdError`
    before any span is started.
    """
    parent_context = link_parent(parent_trace_id, provider.id_generator)
    tracer = provider.get_tracer(TRACER_NAME)

    start_time = to_nanoseconds(run.start_time)
    attributes = workflow_run_attributes(run, pr_labels)

    with tracer.start_as_current_span(
        run.span_name,
        context=parent_context,
        attributes=attributes.build(),
        start_time=start_time,
        end_on_exit=False,
    ) as root_span:
        code = StatusCode.ERROR if run.conclusion == "failure" else StatusCode.OK
        root_span.set_status(Status(code))

        if jobs:
            # Time between the run start and a runner picking up the first job.
            queued_span = tracer.start_span(QUEUED_SPAN_NAME, start_time=start_time)
            queued_span.end(end_time=to_nanoseconds(jobs[0].started_at))

        for job in jobs:
            trace_job(tracer, job, job_annotations.get(job.id))

        # Unlike jobs and steps, the root end time is not clamped to its start.
        root_span.end(end_time=to_nanoseconds(run.updated_at))
        trace_id = format_trace_id(root_span.get_span_context().trace_id)

    logger.info("Traced workflow run %s as trace %s", run.id, trace_id)
    return trace_id


__all__ = ["QUEUED_SPAN_NAME", "TRACER_NAME", "trace_workflow_run"]
