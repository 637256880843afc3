"""Fetch a workflow run from GitHub and export it as a trace."""

from __future__ import annotations
import logging
import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from opentelemetry.sdk.trace.export import SpanExporter
from opentelemetry.semconv._incubating.attributes.service_attributes import (
    SERVICE_INSTANCE_ID,
    SERVICE_NAMESPACE,
)
from opentelemetry.semconv.attributes.service_attributes import (
    SERVICE_NAME,
    SERVICE_VERSION,
)
from opentelemetry.util.types import AttributeValue
from otel_cicd.config import ActionSettings
from otel_cicd.github import GitHubAPIError, GitHubClient
from otel_cicd.models import CheckAnnotation, Job, WorkflowRun
from otel_cicd.tracing.provider import create_tracer_provider
from otel_cicd.tracing.workflow import trace_workflow_run


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class WorkflowData:
    """Everything fetched from GitHub for one workflow run."""

    workflow_run: WorkflowRun
    jobs: Sequence[Job]
    job_annotations: Mapping[int, Sequence[CheckAnnotation]] = field(
        default_factory=dict
    )
    pr_labels: Mapping[int, Sequence[str]] = field(default_factory=dict)


def fetch_github(client: GitHubClient, run_id: int) -> WorkflowData:
    """Fetch the run, its jobs, their annotations and the PR labels.

    Failures fetching annotations or labels are logged and leave that data
    empty; failures fetching the run or its jobs propagate.
    """
    logger.info("Get workflow run for %s", run_id)
    workflow_run = client.get_workflow_run(run_id)

    logger.info("Get jobs")
    jobs = client.list_jobs_for_workflow_run(run_id)

    logger.info("Get job annotations")
    job_annotations: Mapping[int, Sequence[CheckAnnotation]] = {}
    try:
        job_annotations = client.get_jobs_annotations(job.id for job in jobs)
    except GitHubAPIError as exc:
        logger.warning("Failed to get job annotations: %s", exc)

    logger.info("Get PRs labels")
    pr_numbers = [pr.number for pr in workflow_run.pull_requests or []]
    pr_labels: Mapping[int, Sequence[str]] = {}
    try:
        pr_labels = client.get_prs_labels(pr_numbers)
    except GitHubAPIError as exc:
        logger.warning("Failed to get PRs labels: %s", exc)

    return WorkflowData(workflow_run, jobs, job_annotations, pr_labels)


def build_resource_attributes(
    settings: ActionSettings, workflow_run: WorkflowRun
) -> dict[str, AttributeValue]:
    """Describe the exporting service; extra attributes override the defaults."""
    repository = (
        workflow_run.repository.full_name
        if workflow_run.repository is not None
        else settings.repository or ""
    )
    attributes: dict[str, AttributeValue] = {
        SERVICE_NAME: settings.service_name
        or workflow_run.name
        or str(workflow_run.workflow_id),
        SERVICE_INSTANCE_ID: "/".join(
            [
                repository,
                str(workflow_run.workflow_id),
                str(workflow_run.id),
                str(workflow_run.attempt),
            ]
        ),
        SERVICE_NAMESPACE: repository,
        SERVICE_VERSION: workflow_run.head_sha,
    }
    attributes.update(settings.extra_attributes)
    return attributes


def write_output(
    name: str, value: str, *, env: Mapping[str, str] | None = None
) -> bool:
    """Append ``name=value`` to the step output file when running in Actions."""
    environ = os.environ if env is None else env
    output_path = environ.get("GITHUB_OUTPUT")
    if not output_path:
        return False
    with Path(output_path).open("a", encoding="utf-8") as handle:
        handle.write(f"{name}={value}\n")
    return True


def run(
    settings: ActionSettings,
    *,
    client: GitHubClient | None = None,
    exporter: SpanExporter | None = None,
) -> str:
    """Export the configured workflow run and return its trace id."""
    if settings.run_id is None:
        msg = "A run id is required (OTEL_CICD_RUN_ID or GITHUB_RUN_ID)."
        raise ValueError(msg)

    if settings.parent_trace_id:
        logger.info("Parent traceId provided: %s", settings.parent_trace_id)

    owns_client = client is None
    if client is None:
        if settings.owner is None or settings.repo is None:
            msg = (
                "A repository is required "
                "(OTEL_CICD_REPOSITORY or GITHUB_REPOSITORY)."
            )
            raise ValueError(msg)
        client = GitHubClient(
            owner=settings.owner,
            repo=settings.repo,
            token=settings.github_token,
            base_url=settings.github_api_url,
        )

    try:
        logger.info("Use Github API to fetch workflow data")
        data = fetch_github(client, settings.run_id)
    finally:
        if owns_client:
            client.close()

    endpoint = settings.otlp_endpoint or "console"
    logger.info("Create tracer provider for %s", endpoint)
    provider = create_tracer_provider(
        settings,
        build_resource_attributes(settings, data.workflow_run),
        exporter=exporter,
    )
    try:
        logger.info(
            "Trace workflow run for %s and export to %s", settings.run_id, endpoint
        )
        trace_id = trace_workflow_run(
            provider,
            data.workflow_run,
            data.jobs,
            data.job_annotations,
            data.pr_labels,
            settings.parent_trace_id,
        )
        write_output("traceId", trace_id)
        logger.info("traceId: %s", trace_id)
    finally:
        logger.info("Flush and shutdown tracer provider")
        provider.force_flush()
        provider.shutdown()
        logger.info("Provider shutdown")
    return trace_id


__all__ = [
    "WorkflowData",
    "build_resource_attributes",
    "fetch_github",
    "run",
    "write_output",
]
