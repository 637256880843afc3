"""Configuration model describing one otel-cicd invocation."""

from __future__ import annotations
import os
import re
from collections.abc import Mapping
from typing import Any
from pydantic import BaseModel, Field, field_validator
from otel_cicd.config.defaults import _DEFAULTS, _FALLBACK_ENV, _RAW_ENV_KEYS


_REPOSITORY_RE = re.compile(r"[^/\s]+/[^/\s]+")


def _coerce_bool(value: object, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    candidate = str(value).strip().lower()
    if candidate in {"1", "true", "yes", "on"}:
        return True
    if candidate in {"0", "false", "no", "off"}:
        return False
    return default


def parse_key_value_pairs(value: object | None) -> dict[str, str]:
    """Parse ``key=value,key2=value2`` into a mapping.

    Each pair is split on its first ``=`` so values may themselves contain
    ``=`` (base64 tokens, for instance). Pairs without a key or value are
    dropped.
    """
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return {str(key): str(val) for key, val in value.items()}
    pairs: dict[str, str] = {}
    for entry in str(value).split(","):
        key, _, val = entry.partition("=")
        key = key.strip()
        val = val.strip()
        if key and val:
            pairs[key] = val
    return pairs


class ActionSettings(BaseModel):
    """Resolved settings for exporting one workflow run."""

    otlp_endpoint: str | None = Field(
        default=None, description="OTLP collector endpoint; http(s) URLs use HTTP."
    )
    otlp_headers: dict[str, str] = Field(default_factory=dict)
    service_name: str | None = None
    run_id: int | None = None
    repository: str | None = Field(default=None, description="owner/repo")
    github_token: str | None = None
    github_api_url: str = Field(default=str(_DEFAULTS["GITHUB_API_URL"]))
    extra_attributes: dict[str, str] = Field(default_factory=dict)
    parent_trace_id: str | None = None
    console_only: bool = False
    id_seed: int | None = None
    log_level: str = Field(default=str(_DEFAULTS["LOG_LEVEL"]))

    @field_validator(
        "otlp_endpoint",
        "service_name",
        "github_token",
        "parent_trace_id",
        mode="before",
    )
    @classmethod
    def _coerce_optional_str(cls, value: object | None) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @field_validator("otlp_headers", "extra_attributes", mode="before")
    @classmethod
    def _coerce_pairs(cls, value: object | None) -> dict[str, str]:
        return parse_key_value_pairs(value)

    @field_validator("console_only", mode="before")
    @classmethod
    def _coerce_console_only(cls, value: object) -> bool:
        return _coerce_bool(value, bool(_DEFAULTS["CONSOLE_ONLY"]))

    @field_validator("run_id", mode="before")
    @classmethod
    def _coerce_run_id(cls, value: object | None) -> int | None:
        if value is None or value == "":
            return None
        try:
            return int(str(value).strip())
        except ValueError as exc:
            msg = f"OTEL_CICD_RUN_ID must be an integer, got {value!r}."
            raise ValueError(msg) from exc

    @field_validator("id_seed", mode="before")
    @classmethod
    def _coerce_id_seed(cls, value: object | None) -> int | None:
        if value is None or value == "":
            return None
        try:
            seed = int(str(value).strip())
        except ValueError as exc:
            msg = f"OTEL_CICD_ID_SEED must be an integer, got {value!r}."
            raise ValueError(msg) from exc
        return seed or None

    @field_validator("repository", mode="before")
    @classmethod
    def _validate_repository(cls, value: object | None) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        if not text:
            return None
        if _REPOSITORY_RE.fullmatch(text) is None:
            msg = f"OTEL_CICD_REPOSITORY must look like 'owner/repo', got {text!r}."
            raise ValueError(msg)
        return text

    @field_validator("github_api_url", mode="before")
    @classmethod
    def _coerce_api_url(cls, value: object | None) -> str:
        if value is None or not str(value).strip():
            return str(_DEFAULTS["GITHUB_API_URL"])
        return str(value).strip().rstrip("/")

    @field_validator("log_level", mode="before")
    @classmethod
    def _coerce_log_level(cls, value: object | None) -> str:
        if value is None or not str(value).strip():
            return str(_DEFAULTS["LOG_LEVEL"])
        return str(value).strip().upper()

    @property
    def owner(self) -> str | None:
        return self.repository.split("/", 1)[0] if self.repository else None

    @property
    def repo(self) -> str | None:
        return self.repository.split("/", 1)[1] if self.repository else None

    def with_overrides(self, **overrides: Any) -> ActionSettings:
        """Return a copy with every non-``None`` override applied and validated."""
        updates = {key: value for key, value in overrides.items() if value is not None}
        if not updates:
            return self
        return ActionSettings.model_validate({**self.model_dump(), **updates})

    @classmethod
    def from_mapping(
        cls,
        source: Mapping[str, Any],
        env: Mapping[str, str] | None = None,
    ) -> ActionSettings:
        """Build settings from the Dynaconf mapping and platform variables."""
        environ = os.environ if env is None else env
        values: dict[str, Any] = {}
        for key, default in _DEFAULTS.items():
            value = source.get(key)
            raw = environ.get(f"OTEL_CICD_{key}") if key in _RAW_ENV_KEYS else None
            if raw:
                value = raw
            if value is None:
                value = next(
                    (
                        environ[name]
                        for name in _FALLBACK_ENV.get(key, ())
                        if environ.get(name)
                    ),
                    default,
                )
            values[key.lower()] = value
        return cls(**values)


__all__ = ["ActionSettings", "parse_key_value_pairs"]
