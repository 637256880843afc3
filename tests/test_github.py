"""Tests for the GitHub REST client."""

from __future__ import annotations
from collections.abc import Iterator
import httpx
import pytest
import respx
from otel_cicd.github import GitHubAPIError, GitHubClient
from tests.factories import RUN_ID, job_payload, pull_request_payload, run_payload


API = "https://api.github.com"
REPO = f"{API}/repos/test/repo"


@pytest.fixture()
def client() -> Iterator[GitHubClient]:
    with GitHubClient(owner="test", repo="repo", token="ghs_token") as github:
        yield github


def test_get_workflow_run_sends_auth_headers(client: GitHubClient) -> None:
    with respx.mock(assert_all_called=True) as router:
        route = router.get(f"{REPO}/actions/runs/{RUN_ID}").mock(
            return_value=httpx.Response(200, json=run_payload())
        )

        run = client.get_workflow_run(RUN_ID)

    assert run.id == RUN_ID
    assert run.name == "Test Workflow"
    request = route.calls.last.request
    assert request.headers["Authorization"] == "Bearer ghs_token"
    assert request.headers["Accept"] == "application/vnd.github+json"
    assert request.headers["X-GitHub-Api-Version"] == "2022-11-28"


def test_client_without_token_sends_no_authorization() -> None:
    with respx.mock(assert_all_called=True) as router:
        route = router.get(f"{REPO}/actions/runs/{RUN_ID}").mock(
            return_value=httpx.Response(200, json=run_payload())
        )
        with GitHubClient(owner="test", repo="repo", token=None) as github:
            github.get_workflow_run(RUN_ID)

    assert "Authorization" not in route.calls.last.request.headers


def test_list_jobs_follows_pagination(client: GitHubClient) -> None:
    next_url = f"{API}/repositories/1/actions/runs/{RUN_ID}/jobs?page=2"
    with respx.mock(assert_all_called=True) as router:
        first = router.get(f"{REPO}/actions/runs/{RUN_ID}/jobs").mock(
            return_value=httpx.Response(
                200,
                json={"total_count": 2, "jobs": [job_payload(id=1)]},
                headers={"Link": f'<{next_url}>; rel="next", <{next_url}>; rel="last"'},
            )
        )
        second = router.get(f"{API}/repositories/1/actions/runs/{RUN_ID}/jobs").mock(
            return_value=httpx.Response(
                200, json={"total_count": 2, "jobs": [job_payload(id=2)]}
            )
        )

        jobs = client.list_jobs_for_workflow_run(RUN_ID)

    assert [job.id for job in jobs] == [1, 2]
    params = first.calls.last.request.url.params
    assert params["filter"] == "latest"
    assert params["per_page"] == "100"
    assert second.calls.last.request.url.params["page"] == "2"


def test_jobs_annotations_are_keyed_by_job_id(client: GitHubClient) -> None:
    with respx.mock(assert_all_called=True) as router:
        router.get(f"{REPO}/check-runs/1/annotations").mock(
            return_value=httpx.Response(
                200,
                json=[
                    {
                        "annotation_level": "failure",
                        "message": "Process completed with exit code 1.",
                        "path": ".github",
                    }
                ],
            )
        )
        router.get(f"{REPO}/check-runs/2/annotations").mock(
            return_value=httpx.Response(200, json=[])
        )

        annotations = client.get_jobs_annotations([1, 2])

    assert set(annotations) == {1, 2}
    assert annotations[1][0].annotation_level == "failure"
    assert annotations[2] == []


def test_prs_labels_are_keyed_by_number(client: GitHubClient) -> None:
    pr = pull_request_payload(42)
    with respx.mock(assert_all_called=True) as router:
        router.get(f"{REPO}/issues/{pr['number']}/labels").mock(
            return_value=httpx.Response(
                200, json=[{"id": 1, "name": "bug"}, {"id": 2, "name": "ci"}]
            )
        )

        labels = client.get_prs_labels([pr["number"]])

    assert labels == {42: ["bug", "ci"]}


def test_error_status_raises_github_api_error(client: GitHubClient) -> None:
    with respx.mock(assert_all_called=True) as router:
        router.get(f"{REPO}/actions/runs/{RUN_ID}").mock(
            return_value=httpx.Response(
                404,
                json={
                    "message": "Not Found",
                    "documentation_url": "https://docs.github.com/rest",
                },
            )
        )

        with pytest.raises(GitHubAPIError) as excinfo:
            client.get_workflow_run(RUN_ID)

    assert excinfo.value.status_code == 404
    assert str(excinfo.value) == (
        "GitHub API request failed (404): Not Found - https://docs.github.com/rest"
    )


def test_error_without_json_body_uses_text(client: GitHubClient) -> None:
    with respx.mock(assert_all_called=True) as router:
        router.get(f"{REPO}/issues/7/labels").mock(
            return_value=httpx.Response(502, text="Bad gateway")
        )

        with pytest.raises(GitHubAPIError, match=r"\(502\): Bad gateway"):
            client.list_labels_on_issue(7)
