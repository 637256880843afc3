"""Default configuration values for otel-cicd."""

_DEFAULTS: dict[str, object] = {
    "OTLP_ENDPOINT": None,
    "OTLP_HEADERS": "",
    "SERVICE_NAME": None,
    "RUN_ID": None,
    "REPOSITORY": None,
    "GITHUB_TOKEN": None,
    "GITHUB_API_URL": "https://api.github.com",
    "EXTRA_ATTRIBUTES": "",
    "PARENT_TRACE_ID": None,
    "CONSOLE_ONLY": False,
    "ID_SEED": None,
    "LOG_LEVEL": "INFO",
}

# Variables set by the CI platform or the OpenTelemetry SDK conventions,
# consulted in order when the OTEL_CICD_* variable is absent. The
# OTEL_EXPORTER_OTLP_* variables are left to the exporters themselves.
_FALLBACK_ENV: dict[str, tuple[str, ...]] = {
    "OTLP_ENDPOINT": ("INPUT_OTLPENDPOINT",),
    "OTLP_HEADERS": ("INPUT_OTLPHEADERS",),
    "SERVICE_NAME": ("INPUT_OTELSERVICENAME", "OTEL_SERVICE_NAME"),
    "RUN_ID": ("INPUT_RUNID", "GITHUB_RUN_ID"),
    "REPOSITORY": ("GITHUB_REPOSITORY",),
    "GITHUB_TOKEN": ("INPUT_GITHUBTOKEN", "GITHUB_TOKEN"),
    "GITHUB_API_URL": ("GITHUB_API_URL",),
    "EXTRA_ATTRIBUTES": ("INPUT_EXTRAATTRIBUTES",),
    "PARENT_TRACE_ID": ("INPUT_PARENTTRACEID",),
    "CONSOLE_ONLY": ("OTEL_CONSOLE_ONLY",),
    "ID_SEED": ("OTEL_ID_SEED",),
    "LOG_LEVEL": ("LOG_LEVEL",),
}

# Read verbatim from OTEL_CICD_* variables; Dynaconf parses values as TOML,
# which turns a hex id such as ``123e45...`` into a float.
_RAW_ENV_KEYS: frozenset[str] = frozenset({"PARENT_TRACE_ID"})
