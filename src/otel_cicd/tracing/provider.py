"""Helpers for building the OpenTelemetry tracer provider of one export."""

from __future__ import annotations
import logging
import os
from collections.abc import Mapping
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
    OTLPSpanExporter as GrpcOTLPSpanExporter,
)
from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
    OTLPSpanExporter as HttpOTLPSpanExporter,
)
from opentelemetry.sdk.environment_variables import (
    OTEL_EXPORTER_OTLP_ENDPOINT,
    OTEL_EXPORTER_OTLP_TRACES_ENDPOINT,
)
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
)
from opentelemetry.util.types import AttributeValue
from otel_cicd.config import ActionSettings
from otel_cicd.tracing.ids import build_id_generator


logger = logging.getLogger(__name__)


def is_http_endpoint(endpoint: str) -> bool:
    """Return ``True`` for endpoints served over OTLP/HTTP."""
    return endpoint.startswith(("https://", "http://"))


def create_tracer_provider(
    settings: ActionSettings,
    resource_attributes: Mapping[str, AttributeValue],
    *,
    exporter: SpanExporter | None = None,
) -> TracerProvider:
    """Build a tracer provider exporting spans as configured.

    The provider is not registered globally; callers pass it to
    :func:`~otel_cicd.tracing.workflow.trace_workflow_run` and are responsible
    for flushing and shutting it down.
    """
    provider = TracerProvider(
        resource=Resource.create(dict(resource_attributes)),
        id_generator=build_id_generator(settings.id_seed),
    )
    if settings.id_seed:
        logger.debug("Using deterministic span ids with seed %s", settings.id_seed)

    span_exporter = exporter or _build_exporter(settings)
    provider.add_span_processor(BatchSpanProcessor(span_exporter))
    return provider


def _build_exporter(settings: ActionSettings) -> SpanExporter:
    """Instantiate the exporter selected by the settings."""
    if settings.console_only:
        return ConsoleSpanExporter()

    headers = settings.otlp_headers or None
    endpoint = settings.otlp_endpoint
    if endpoint:
        if is_http_endpoint(endpoint):
            return HttpOTLPSpanExporter(endpoint=endpoint, headers=headers)
        return GrpcOTLPSpanExporter(endpoint=endpoint, headers=headers, insecure=False)

    sdk_endpoint = _sdk_endpoint()
    if not sdk_endpoint:
        logger.warning(
            "No OTLP endpoint configured; spans will be printed to the console."
        )
        return ConsoleSpanExporter()

    # Leave the endpoint unset so the exporter applies the OTEL_EXPORTER_OTLP_*
    # rules itself (signal path suffix, header decoding, TLS).
    logger.debug("Using OTLP endpoint from the SDK environment: %s", sdk_endpoint)
    if is_http_endpoint(sdk_endpoint):
        return HttpOTLPSpanExporter(headers=headers)
    return GrpcOTLPSpanExporter(headers=headers)


def _sdk_endpoint() -> str | None:
    """Return the traces endpoint set through the standard SDK variables."""
    return os.environ.get(OTEL_EXPORTER_OTLP_TRACES_ENDPOINT) or os.environ.get(
        OTEL_EXPORTER_OTLP_ENDPOINT
    )


__all__ = ["create_tracer_provider", "is_http_endpoint"]
