"""GitHub REST resources consumed by the workflow tracer."""

from __future__ import annotations
from datetime import UTC, datetime
from typing import Annotated
from pydantic import AfterValidator, BaseModel, ConfigDict, Field


__all__ = [
    "CheckAnnotation",
    "CommitActor",
    "HeadCommit",
    "Job",
    "MinimalRepository",
    "PullRequest",
    "PullRequestRef",
    "PullRequestRepo",
    "ReferencedWorkflow",
    "Step",
    "WorkflowRun",
    "format_timestamp",
]


def _ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


Timestamp = Annotated[datetime, AfterValidator(_ensure_utc)]
"""Timezone-aware timestamp; naive values are assumed to be UTC."""


def format_timestamp(value: datetime | None) -> str | None:
    """Render a timestamp the way the GitHub API reports it."""
    if value is None:
        return None
    text = value.isoformat()
    if text.endswith("+00:00"):
        return text[: -len("+00:00")] + "Z"
    return text


class GitHubModel(BaseModel):
    """Base model tolerating the extra fields GitHub payloads carry."""

    model_config = ConfigDict(extra="ignore")


class MinimalRepository(GitHubModel):
    """Repository reference embedded in workflow runs."""

    id: int
    name: str
    full_name: str
    url: str | None = None


class CommitActor(GitHubModel):
    """Author or committer of the head commit."""

    name: str | None = None
    email: str | None = None


class HeadCommit(GitHubModel):
    """Commit that triggered the workflow run."""

    id: str
    tree_id: str | None = None
    message: str | None = None
    timestamp: Timestamp | None = None
    author: CommitActor | None = None
    committer: CommitActor | None = None


class PullRequestRepo(GitHubModel):
    id: int
    url: str
    name: str


class PullRequestRef(GitHubModel):
    ref: str
    sha: str
    repo: PullRequestRepo


class PullRequest(GitHubModel):
    """Minimal pull request reference attached to a workflow run."""

    id: int
    number: int
    url: str
    head: PullRequestRef
    base: PullRequestRef


class ReferencedWorkflow(GitHubModel):
    """Reusable workflow called by the run."""

    path: str
    sha: str
    ref: str | None = None


class WorkflowRun(GitHubModel):
    """One execution of a GitHub Actions workflow."""

    id: int
    workflow_id: int
    name: str | None = None
    display_title: str = ""
    run_number: int | None = None
    run_attempt: int | None = None
    event: str | None = None
    status: str | None = None
    conclusion: str | None = None
    node_id: str | None = None
    check_suite_id: int | None = None
    check_suite_node_id: str | None = None
    created_at: Timestamp
    updated_at: Timestamp
    run_started_at: Timestamp | None = None
    url: str | None = None
    html_url: str | None = None
    workflow_url: str | None = None
    jobs_url: str | None = None
    logs_url: str | None = None
    check_suite_url: str | None = None
    artifacts_url: str | None = None
    cancel_url: str | None = None
    rerun_url: str | None = None
    previous_attempt_url: str | None = None
    head_branch: str | None = None
    head_sha: str = ""
    path: str | None = None
    head_commit: HeadCommit | None = None
    repository: MinimalRepository | None = None
    pull_requests: list[PullRequest] | None = None
    referenced_workflows: list[ReferencedWorkflow] | None = None

    @property
    def attempt(self) -> int:
        """Return the run attempt, defaulting to the first attempt."""
        return self.run_attempt if self.run_attempt is not None else 1

    @property
    def span_name(self) -> str:
        """Return the display name used for the root span."""
        return self.name if self.name is not None else self.display_title

    @property
    def start_time(self) -> datetime:
        """Return when the run started, falling back to its creation time."""
        return self.run_started_at or self.created_at


class Step(GitHubModel):
    """One action executed within a job."""

    name: str
    number: int
    status: str | None = None
    conclusion: str | None = None
    started_at: Timestamp | None = None
    completed_at: Timestamp | None = None


class Job(GitHubModel):
    """A unit of execution in a workflow run, containing ordered steps."""

    id: int
    run_id: int
    name: str
    status: str | None = None
    conclusion: str | None = None
    started_at: Timestamp
    completed_at: Timestamp | None = None
    created_at: Timestamp | None = None
    run_url: str | None = None
    run_attempt: int | None = None
    node_id: str | None = None
    head_sha: str | None = None
    head_branch: str | None = None
    url: str | None = None
    html_url: str | None = None
    check_run_url: str | None = None
    workflow_name: str | None = None
    steps: list[Step] | None = None
    labels: list[str] = Field(default_factory=list)
    runner_id: int | None = None
    runner_name: str | None = None
    runner_group_id: int | None = None
    runner_group_name: str | None = None

    @property
    def attempt(self) -> int:
        """Return the job attempt, defaulting to the first attempt."""
        return self.run_attempt if self.run_attempt is not None else 1


class CheckAnnotation(GitHubModel):
    """Severity-leveled message reported by the checks API for a job."""

    annotation_level: str | None = None
    message: str | None = None
    title: str | None = None
    path: str | None = None
    start_line: int | None = None
    end_line: int | None = None
