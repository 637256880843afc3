"""Span attribute mappings for workflow runs, jobs, steps and annotations."""

from __future__ import annotations
from collections.abc import Iterator, Mapping, Sequence
from opentelemetry.semconv._incubating.attributes.cicd_attributes import (
    CICD_PIPELINE_NAME,
    CICD_PIPELINE_RUN_ID,
    CICD_PIPELINE_TASK_NAME,
    CICD_PIPELINE_TASK_RUN_ID,
    CICD_PIPELINE_TASK_RUN_URL_FULL,
    CICD_PIPELINE_TASK_TYPE,
    CicdPipelineTaskTypeValues,
)
from opentelemetry.util.types import AttributeValue
from otel_cicd.models import (
    CheckAnnotation,
    HeadCommit,
    Job,
    PullRequest,
    ReferencedWorkflow,
    Step,
    WorkflowRun,
    format_timestamp,
)


_TASK_TYPE_KEYWORDS: tuple[tuple[str, CicdPipelineTaskTypeValues], ...] = (
    ("build", CicdPipelineTaskTypeValues.BUILD),
    ("test", CicdPipelineTaskTypeValues.TEST),
    ("deploy", CicdPipelineTaskTypeValues.DEPLOY),
)


class AttributeBuilder:
    """Ordered collection of span attributes merged with later-wins precedence.

    Pairs are kept in insertion order. ``None`` values are dropped on entry so
    that an absent upstream field never shadows an earlier value. When the same
    key is set twice, :meth:`build` keeps the first position and the last value.
    """

    def __init__(self) -> None:
        """Create an empty builder."""
        self._pairs: list[tuple[str, AttributeValue]] = []

    def set(self, key: str, value: AttributeValue | None) -> AttributeBuilder:
        """Append ``key`` unless ``value`` is ``None``."""
        if value is not None:
            self._pairs.append((key, value))
        return self

    def merge(self, other: AttributeBuilder) -> AttributeBuilder:
        """Append all pairs of ``other``; its values win on key collisions."""
        self._pairs.extend(other._pairs)
        return self

    def __iter__(self) -> Iterator[tuple[str, AttributeValue]]:
        return iter(self._pairs)

    def __len__(self) -> int:
        return len(self._pairs)

    def build(self) -> dict[str, AttributeValue]:
        """Collapse the pairs into the flat mapping handed to the tracer."""
        attributes: dict[str, AttributeValue] = {}
        for key, value in self._pairs:
            attributes[key] = value
        return attributes


def task_type(job_name: str) -> str | None:
    """Guess the CI task type from a job name; the first keyword match wins."""
    lowered = job_name.lower()
    for keyword, value in _TASK_TYPE_KEYWORDS:
        if keyword in lowered:
            return value.value
    return None


def workflow_run_attributes(
    run: WorkflowRun, pr_labels: Mapping[int, Sequence[str]]
) -> AttributeBuilder:
    """Map a workflow run to the attributes of the root span."""
    # https://opentelemetry.io/docs/specs/semconv/attributes-registry/cicd/
    builder = AttributeBuilder()
    builder.set(CICD_PIPELINE_NAME, run.name)
    builder.set(CICD_PIPELINE_RUN_ID, run.id)
    builder.set("github.workflow_id", run.workflow_id)
    builder.set("github.run_id", run.id)
    builder.set("github.run_number", run.run_number)
    builder.set("github.run_attempt", run.attempt)
    builder.merge(referenced_workflows_attributes(run.referenced_workflows))
    builder.set("github.url", run.url)
    builder.set("github.html_url", run.html_url)
    builder.set("github.workflow_url", run.workflow_url)
    builder.set("github.event", run.event)
    builder.set("github.status", run.status)
    builder.set("github.workflow", run.name)
    builder.set("github.node_id", run.node_id)
    builder.set("github.check_suite_id", run.check_suite_id)
    builder.set("github.check_suite_node_id", run.check_suite_node_id)
    builder.set("github.conclusion", run.conclusion)
    builder.set("github.created_at", format_timestamp(run.created_at))
    builder.set("github.updated_at", format_timestamp(run.updated_at))
    builder.set("github.run_started_at", format_timestamp(run.run_started_at))
    builder.set("github.jobs_url", run.jobs_url)
    builder.set("github.logs_url", run.logs_url)
    builder.set("github.check_suite_url", run.check_suite_url)
    builder.set("github.artifacts_url", run.artifacts_url)
    builder.set("github.cancel_url", run.cancel_url)
    builder.set("github.rerun_url", run.rerun_url)
    builder.set("github.previous_attempt_url", run.previous_attempt_url)
    builder.merge(head_commit_attributes(run.head_commit))
    builder.set("github.head_branch", run.head_branch)
    builder.set("github.head_sha", run.head_sha)
    builder.set("github.path", run.path)
    builder.set("github.display_title", run.display_title)
    builder.set("error", run.conclusion == "failure")
    builder.merge(pull_requests_attributes(run.pull_requests, pr_labels))
    return builder


def referenced_workflows_attributes(
    refs: Sequence[ReferencedWorkflow] | None,
) -> AttributeBuilder:
    builder = AttributeBuilder()
    for index, ref in enumerate(refs or ()):
        prefix = f"github.referenced_workflows.{index}"
        builder.set(f"{prefix}.path", ref.path)
        builder.set(f"{prefix}.sha", ref.sha)
        builder.set(f"{prefix}.ref", ref.ref)
    return builder


def head_commit_attributes(head_commit: HeadCommit | None) -> AttributeBuilder:
    builder = AttributeBuilder()
    if head_commit is None:
        return builder
    author = head_commit.author
    committer = head_commit.committer
    builder.set("github.head_commit.id", head_commit.id)
    builder.set("github.head_commit.tree_id", head_commit.tree_id)
    builder.set("github.head_commit.author.name", author and author.name)
    builder.set("github.head_commit.author.email", author and author.email)
    builder.set("github.head_commit.committer.name", committer and committer.name)
    builder.set("github.head_commit.committer.email", committer and committer.email)
    builder.set("github.head_commit.message", head_commit.message)
    builder.set(
        "github.head_commit.timestamp", format_timestamp(head_commit.timestamp)
    )
    return builder


def pull_requests_attributes(
    pull_requests: Sequence[PullRequest] | None,
    pr_labels: Mapping[int, Sequence[str]],
) -> AttributeBuilder:
    """Flatten the run's pull requests into ``github.pull_requests.<i>.*`` keys."""
    builder = AttributeBuilder()
    pull_requests = pull_requests or []
    if pull_requests:
        first = pull_requests[0]
        builder.set("github.head_ref", first.head.ref)
        builder.set("github.base_ref", first.base.ref)
        builder.set("github.base_sha", first.base.sha)

    for index, pr in enumerate(pull_requests):
        prefix = f"github.pull_requests.{index}"
        labels = pr_labels.get(pr.number)
        builder.set(f"{prefix}.id", pr.id)
        builder.set(f"{prefix}.url", pr.url)
        builder.set(f"{prefix}.number", pr.number)
        builder.set(f"{prefix}.labels", list(labels) if labels is not None else None)
        builder.set(f"{prefix}.head.sha", pr.head.sha)
        builder.set(f"{prefix}.head.ref", pr.head.ref)
        builder.set(f"{prefix}.head.repo.id", pr.head.repo.id)
        builder.set(f"{prefix}.head.repo.url", pr.head.repo.url)
        builder.set(f"{prefix}.head.repo.name", pr.head.repo.name)
        builder.set(f"{prefix}.base.ref", pr.base.ref)
        builder.set(f"{prefix}.base.sha", pr.base.sha)
        builder.set(f"{prefix}.base.repo.id", pr.base.repo.id)
        builder.set(f"{prefix}.base.repo.url", pr.base.repo.url)
        builder.set(f"{prefix}.base.repo.name", pr.base.repo.name)
    return builder


def job_attributes(job: Job) -> AttributeBuilder:
    """Map a job to the attributes of its span."""
    builder = AttributeBuilder()
    builder.set(CICD_PIPELINE_TASK_NAME, job.name)
    builder.set(CICD_PIPELINE_TASK_RUN_ID, job.id)
    builder.set(CICD_PIPELINE_TASK_RUN_URL_FULL, job.html_url)
    builder.set(CICD_PIPELINE_TASK_TYPE, task_type(job.name))
    builder.set("github.job.id", job.id)
    builder.set("github.job.name", job.name)
    builder.set("github.job.run_id", job.run_id)
    builder.set("github.job.run_url", job.run_url)
    builder.set("github.job.run_attempt", job.attempt)
    builder.set("github.job.node_id", job.node_id)
    builder.set("github.job.head_sha", job.head_sha)
    builder.set("github.job.url", job.url)
    builder.set("github.job.html_url", job.html_url)
    builder.set("github.job.status", job.status)
    builder.set("github.job.runner_id", job.runner_id)
    builder.set("github.job.runner_group_id", job.runner_group_id)
    builder.set("github.job.runner_group_name", job.runner_group_name)
    builder.set("github.job.runner_name", job.runner_name)
    builder.set("github.job.conclusion", job.conclusion)
    builder.set("github.job.labels", ", ".join(job.labels))
    builder.set("github.job.created_at", format_timestamp(job.created_at))
    builder.set("github.job.started_at", format_timestamp(job.started_at))
    builder.set("github.job.completed_at", format_timestamp(job.completed_at))
    # FIXME: shares its key with the run conclusion, so backends that fold
    # parent attributes into children see the job value instead.
    builder.set("github.conclusion", job.conclusion)
    builder.set("github.job.check_run_url", job.check_run_url)
    builder.set("github.job.workflow_name", job.workflow_name)
    builder.set("github.job.head_branch", job.head_branch)
    # Same collision as above: "error" here aliases the run-level flag.
    builder.set("error", job.conclusion == "failure")
    return builder


def annotations_attributes(
    annotations: Sequence[CheckAnnotation] | None,
) -> AttributeBuilder:
    """Flatten job annotations into ``github.job.annotations.<i>.*`` keys."""
    builder = AttributeBuilder()
    for index, annotation in enumerate(annotations or ()):
        prefix = f"github.job.annotations.{index}"
        builder.set(f"{prefix}.level", annotation.annotation_level)
        builder.set(f"{prefix}.message", annotation.message)
    return builder


def step_attributes(step: Step) -> AttributeBuilder:
    """Map a step to the attributes of its span."""
    builder = AttributeBuilder()
    builder.set("github.job.step.status", step.status)
    builder.set("github.job.step.conclusion", step.conclusion)
    builder.set("github.job.step.name", step.name)
    builder.set("github.job.step.number", step.number)
    builder.set("github.job.step.started_at", format_timestamp(step.started_at))
    builder.set("github.job.step.completed_at", format_timestamp(step.completed_at))
    builder.set("error", step.conclusion == "failure")
    return builder


__all__ = [
    "AttributeBuilder",
    "annotations_attributes",
    "job_attributes",
    "pull_requests_attributes",
    "step_attributes",
    "task_type",
    "workflow_run_attributes",
]
