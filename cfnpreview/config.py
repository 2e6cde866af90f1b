"""Configuration loading from environment variables."""

from __future__ import annotations

import os
import re

from cfnpreview.models.config import (
    DEFAULT_NO_CHANGES_PATTERN,
    AWSConfig,
    ChangesetConfig,
    DifferConfig,
    LogConfig,
    PreviewConfig,
)
from cfnpreview.observability.logging import LOG_FORMATS


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"CFNPREVIEW_{key}", default)


def _env_float(
    key: str, default: float, min_val: float | None = None, max_val: float | None = None
) -> float:
    val = float(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _env_list(key: str, default: list[str]) -> list[str]:
    raw = _env(key, ",".join(default))
    return [item.strip() for item in raw.split(",") if item.strip()]


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def _validate_log_format(value: str) -> str:
    if value.lower() not in LOG_FORMATS:
        raise ValueError(f"Invalid log format: {value}. Must be one of {set(LOG_FORMATS)}")
    return value.lower()


def _validate_pattern(value: str) -> re.Pattern[str]:
    try:
        return re.compile(value, re.IGNORECASE)
    except re.error as exc:
        raise ValueError(f"Invalid no-changes pattern {value!r}: {exc}") from exc


def _validate_prefix(value: str) -> str:
    # Changeset names: letters, digits and hyphens, starting with a letter.
    if not re.match(r"^[A-Za-z][A-Za-z0-9-]{0,114}$", value):
        raise ValueError(f"Invalid changeset name prefix: {value}")
    return value


def load_config() -> PreviewConfig:
    """Load configuration from CFNPREVIEW_* environment variables."""
    return PreviewConfig(
        differ=DifferConfig(
            command=_env("DIFFER", "").strip(),
        ),
        changeset=ChangesetConfig(
            name_prefix=_validate_prefix(_env("CHANGESET_PREFIX", "cfnpreview")),
            capabilities=_env_list("CAPABILITIES", ["CAPABILITY_IAM", "CAPABILITY_NAMED_IAM"]),
            poll_interval=_env_float("POLL_INTERVAL", 0.5, min_val=0.1, max_val=30.0),
            timeout_seconds=_env_float("CHANGESET_TIMEOUT", 300.0, min_val=1.0, max_val=3600.0),
            no_changes_pattern=_validate_pattern(
                _env("NO_CHANGES_PATTERN", DEFAULT_NO_CHANGES_PATTERN)
            ),
        ),
        aws=AWSConfig(
            region=_env("REGION", ""),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "warning")),
            format=_validate_log_format(_env("LOG_FORMAT", "json")),
        ),
    )
