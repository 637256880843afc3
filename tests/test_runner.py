"""Tests for fetching a workflow run and exporting it end to end."""

from __future__ import annotations
import logging
from collections.abc import Iterator
from pathlib import Path
import httpx
import pytest
import respx
from opentelemetry.sdk.trace.export.in_memory_span_exporter import (
    InMemorySpanExporter,
)
from otel_cicd.config import ActionSettings
from otel_cicd.github import GitHubAPIError, GitHubClient
from otel_cicd.models import WorkflowRun
from otel_cicd.runner import build_resource_attributes, fetch_github, run, write_output
from tests.factories import (
    RUN_ID,
    job_payload,
    pull_request_payload,
    run_payload,
    step_payload,
)


REPO = "https://api.github.com/repos/test/repo"


def _mock_github(
    router: respx.MockRouter,
    *,
    annotations: httpx.Response | None = None,
    labels: httpx.Response | None = None,
) -> None:
    router.get(f"{REPO}/actions/runs/{RUN_ID}").mock(
        return_value=httpx.Response(
            200, json=run_payload(pull_requests=[pull_request_payload(42)])
        )
    )
    router.get(f"{REPO}/actions/runs/{RUN_ID}/jobs").mock(
        return_value=httpx.Response(
            200,
            json={"total_count": 1, "jobs": [job_payload(steps=[step_payload()])]},
        )
    )
    router.get(f"{REPO}/check-runs/1/annotations").mock(
        return_value=annotations
        or httpx.Response(
            200, json=[{"annotation_level": "warning", "message": "Deprecated"}]
        )
    )
    router.get(f"{REPO}/issues/42/labels").mock(
        return_value=labels or httpx.Response(200, json=[{"name": "ci"}])
    )


@pytest.fixture()
def client() -> Iterator[GitHubClient]:
    with GitHubClient(owner="test", repo="repo", token="ghs_token") as github:
        yield github


@pytest.fixture()
def settings() -> ActionSettings:
    return ActionSettings(run_id=RUN_ID, repository="test/repo", id_seed=123)


def test_fetch_github_collects_everything(client: GitHubClient) -> None:
    with respx.mock(assert_all_called=True) as router:
        _mock_github(router)

        data = fetch_github(client, RUN_ID)

    assert data.workflow_run.id == RUN_ID
    assert [job.id for job in data.jobs] == [1]
    assert data.job_annotations[1][0].message == "Deprecated"
    assert data.pr_labels == {42: ["ci"]}


def test_fetch_github_tolerates_annotation_and_label_failures(
    client: GitHubClient, caplog: pytest.LogCaptureFixture
) -> None:
    with respx.mock(assert_all_called=True) as router:
        _mock_github(
            router,
            annotations=httpx.Response(403, json={"message": "Forbidden"}),
            labels=httpx.Response(500, json={"message": "Server Error"}),
        )

        with caplog.at_level(logging.WARNING, logger="otel_cicd"):
            data = fetch_github(client, RUN_ID)

    assert data.job_annotations == {}
    assert data.pr_labels == {}
    assert "Failed to get job annotations" in caplog.text
    assert "Failed to get PRs labels" in caplog.text


def test_fetch_github_propagates_run_failures(client: GitHubClient) -> None:
    with respx.mock(assert_all_called=True) as router:
        router.get(f"{REPO}/actions/runs/{RUN_ID}").mock(
            return_value=httpx.Response(404, json={"message": "Not Found"})
        )

        with pytest.raises(GitHubAPIError) as excinfo:
            fetch_github(client, RUN_ID)

    assert excinfo.value.status_code == 404


def test_build_resource_attributes(settings: ActionSettings) -> None:
    workflow_run = WorkflowRun.model_validate(run_payload(run_attempt=2))

    attributes = build_resource_attributes(settings, workflow_run)

    assert attributes == {
        "service.name": "Test Workflow",
        "service.instance.id": "test/repo/789/123456/2",
        "service.namespace": "test/repo",
        "service.version": "abc123",
    }


def test_extra_attributes_override_resource_defaults(
    settings: ActionSettings,
) -> None:
    settings = settings.with_overrides(
        service_name="checkout", extra_attributes="service.namespace=acme,team=ci"
    )
    workflow_run = WorkflowRun.model_validate(run_payload())

    attributes = build_resource_attributes(settings, workflow_run)

    assert attributes["service.name"] == "checkout"
    assert attributes["service.namespace"] == "acme"
    assert attributes["team"] == "ci"


def test_write_output_appends_to_github_output(tmp_path: Path) -> None:
    output = tmp_path / "output"
    output.write_text("existing=1\n", encoding="utf-8")

    assert write_output("traceId", "abc", env={"GITHUB_OUTPUT": str(output)})
    assert output.read_text(encoding="utf-8") == "existing=1\ntraceId=abc\n"


def test_write_output_outside_actions_is_a_no_op() -> None:
    assert write_output("traceId", "abc", env={}) is False


def test_run_exports_trace_and_writes_output(
    client: GitHubClient,
    settings: ActionSettings,
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    output = tmp_path / "output"
    monkeypatch.setenv("GITHUB_OUTPUT", str(output))
    exporter = InMemorySpanExporter()

    with respx.mock(assert_all_called=True) as router:
        _mock_github(router)

        trace_id = run(settings, client=client, exporter=exporter)

    assert trace_id == "329e58aa53cec7a2beadd2fd0a85c388"
    assert output.read_text(encoding="utf-8") == f"traceId={trace_id}\n"
    spans = {span.name: span for span in exporter.get_finished_spans()}
    assert set(spans) == {"Test Workflow", "Queued", "test-job", "Run tests"}
    root = spans["Test Workflow"]
    assert root.resource.attributes["service.instance.id"] == (
        "test/repo/789/123456/1"
    )
    assert root.attributes["github.pull_requests.0.labels"] == ("ci",)
    assert spans["test-job"].attributes["github.job.annotations.0.message"] == (
        "Deprecated"
    )


def test_run_links_parent_trace(client: GitHubClient, settings: ActionSettings) -> None:
    settings = settings.with_overrides(
        parent_trace_id="329E58AA53CEC7A2BEADD2FD0A85C388"
    )
    exporter = InMemorySpanExporter()

    with respx.mock(assert_all_called=True) as router:
        _mock_github(router)

        trace_id = run(settings, client=client, exporter=exporter)

    assert trace_id == "329e58aa53cec7a2beadd2fd0a85c388"


def test_run_requires_run_id() -> None:
    with pytest.raises(ValueError, match="run id is required"):
        run(ActionSettings(repository="test/repo"))


def test_run_requires_repository_without_client() -> None:
    with pytest.raises(ValueError, match="repository is required"):
        run(ActionSettings(run_id=RUN_ID))


def test_run_builds_its_own_client(settings: ActionSettings) -> None:
    settings = settings.with_overrides(github_token="ghs_env")
    exporter = InMemorySpanExporter()

    with respx.mock(assert_all_called=True) as router:
        _mock_github(router)

        trace_id = run(settings, exporter=exporter)

        request = router.calls[0].request
        assert request.headers["Authorization"] == "Bearer ghs_env"

    assert len(trace_id) == 32
