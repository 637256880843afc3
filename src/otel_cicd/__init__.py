"""Export GitHub Actions workflow runs as OpenTelemetry traces."""

from otel_cicd.tracing import InvalidParentTraceIdError, trace_workflow_run


__all__ = ["InvalidParentTraceIdError", "trace_workflow_run"]
