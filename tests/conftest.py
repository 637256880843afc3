"""Shared fixtures for otel-cicd tests."""

from __future__ import annotations
import os
import pytest
from otel_cicd.config.defaults import _FALLBACK_ENV
from otel_cicd.models import Job, WorkflowRun
from tests.factories import job_payload, run_payload


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Hide CI and collector variables of the machine running the tests."""
    for name in list(os.environ):
        if name.startswith(("OTEL_CICD_", "OTEL_EXPORTER_OTLP_")):
            monkeypatch.delenv(name)
    for names in _FALLBACK_ENV.values():
        for name in names:
            monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv("GITHUB_OUTPUT", raising=False)


@pytest.fixture()
def workflow_run() -> WorkflowRun:
    return WorkflowRun.model_validate(run_payload())


@pytest.fixture()
def jobs() -> list[Job]:
    return [Job.model_validate(job_payload())]
