"""Public tracing utilities for otel-cicd."""

from otel_cicd.tracing.ids import DeterministicIdGenerator, build_id_generator
from otel_cicd.tracing.job import trace_job
from otel_cicd.tracing.linker import InvalidParentTraceIdError, link_parent
from otel_cicd.tracing.provider import create_tracer_provider
from otel_cicd.tracing.step import trace_step
from otel_cicd.tracing.workflow import trace_workflow_run


__all__ = [
    "DeterministicIdGenerator",
    "InvalidParentTraceIdError",
    "build_id_generator",
    "create_tracer_provider",
    "link_parent",
    "trace_job",
    "trace_step",
    "trace_workflow_run",
]
