"""Runtime configuration helpers for otel-cicd."""

from __future__ import annotations
from functools import lru_cache
from dynaconf import Dynaconf
from otel_cicd.config.action_settings import ActionSettings, parse_key_value_pairs


def _build_loader() -> Dynaconf:
    """Create a Dynaconf loader wired to environment variables only."""
    return Dynaconf(
        envvar_prefix="OTEL_CICD",
        settings_files=[],  # No config files, env vars only
        load_dotenv=True,
        environments=False,
    )


@lru_cache(maxsize=1)
def _load_settings() -> Dynaconf:
    """Load settings once and cache the Dynaconf instance."""
    return _build_loader()


def get_settings(*, refresh: bool = False) -> Dynaconf:
    """Return the cached Dynaconf settings, reloading them if requested."""
    if refresh:
        _load_settings.cache_clear()
    return _load_settings()


def load_action_settings(*, refresh: bool = False) -> ActionSettings:
    """Resolve :class:`ActionSettings` from the environment."""
    return ActionSettings.from_mapping(get_settings(refresh=refresh))


__all__ = [
    "ActionSettings",
    "get_settings",
    "load_action_settings",
    "parse_key_value_pairs",
]
