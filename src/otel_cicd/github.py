"""GitHub REST client fetching the records a workflow trace is built from."""

from __future__ import annotations
import logging
from collections.abc import Iterable, Iterator
from typing import Any
import httpx
from otel_cicd.models import CheckAnnotation, Job, WorkflowRun


logger = logging.getLogger(__name__)
_PER_PAGE = 100


class GitHubAPIError(RuntimeError):
    """Raised when the GitHub API answers with an error status."""

    def __init__(self, message: str, *, response: httpx.Response | None = None) -> None:
        """Initialise the error with optional HTTP response context."""
        super().__init__(message)
        self.response = response

    @property
    def status_code(self) -> int | None:
        return self.response.status_code if self.response is not None else None


class GitHubClient:
    """Small wrapper around :class:`httpx.Client` for one repository."""

    def __init__(
        self,
        *,
        owner: str,
        repo: str,
        token: str | None,
        base_url: str = "https://api.github.com",
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Create a client bound to ``owner/repo``."""
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "otel-cicd",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.Client(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )
        self._repo_path = f"/repos/{owner}/{repo}"

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def __enter__(self) -> GitHubClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def get_workflow_run(self, run_id: int) -> WorkflowRun:
        """Return the workflow run ``run_id``."""
        data = self._get_json(f"{self._repo_path}/actions/runs/{run_id}")
        return WorkflowRun.model_validate(data)

    def list_jobs_for_workflow_run(self, run_id: int) -> list[Job]:
        """Return the jobs of the latest attempt of ``run_id``."""
        # filter=latest may miss a re-run started after this run was triggered
        items = self._paginate(
            f"{self._repo_path}/actions/runs/{run_id}/jobs",
            params={"filter": "latest"},
            key="jobs",
        )
        return [Job.model_validate(item) for item in items]

    def list_annotations(self, check_run_id: int) -> list[CheckAnnotation]:
        items = self._paginate(
            f"{self._repo_path}/check-runs/{check_run_id}/annotations"
        )
        return [CheckAnnotation.model_validate(item) for item in items]

    def list_labels_on_issue(self, issue_number: int) -> list[str]:
        items = self._paginate(f"{self._repo_path}/issues/{issue_number}/labels")
        return [str(item["name"]) for item in items]

    def get_jobs_annotations(
        self, job_ids: Iterable[int]
    ) -> dict[int, list[CheckAnnotation]]:
        """Return the check annotations of each job, keyed by job id."""
        return {job_id: self.list_annotations(job_id) for job_id in job_ids}

    def get_prs_labels(self, pr_numbers: Iterable[int]) -> dict[int, list[str]]:
        """Return the label names of each pull request, keyed by PR number."""
        return {number: self.list_labels_on_issue(number) for number in pr_numbers}

    def _paginate(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        key: str | None = None,
    ) -> Iterator[Any]:
        url: str | None = path
        query: dict[str, Any] | None = {**(params or {}), "per_page": _PER_PAGE}
        while url is not None:
            response = self._request(url, params=query)
            payload = response.json()
            yield from payload[key] if key is not None else payload
            url = response.links.get("next", {}).get("url")
            # The next link already carries the query string.
            query = None

    def _get_json(self, path: str) -> Any:
        return self._request(path).json()

    def _request(
        self, url: str, *, params: dict[str, Any] | None = None
    ) -> httpx.Response:
        logger.debug("GET %s", url)
        response = self._client.get(url, params=params)
        if response.is_error:
            detail = _error_detail(response)
            msg = f"GitHub API request failed ({response.status_code}): {detail}"
            raise GitHubAPIError(msg, response=response)
        return response


def _error_detail(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(payload, dict) and "message" in payload:
        documentation = payload.get("documentation_url")
        message = str(payload["message"])
        return f"{message} - {documentation}" if documentation else message
    return response.text


__all__ = ["GitHubAPIError", "GitHubClient"]
