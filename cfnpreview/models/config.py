"""Configuration data structures."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

DEFAULT_NO_CHANGES_PATTERN = (
    r"didn't contain changes|No updates are to be performed"
)


@dataclass
class DifferConfig:
    """Template differ configuration."""

    # Empty command means the built-in unified diff.
    command: str = ""


@dataclass
class ChangesetConfig:
    """Changeset creation and polling configuration."""

    name_prefix: str = "cfnpreview"
    capabilities: list[str] = field(
        default_factory=lambda: ["CAPABILITY_IAM", "CAPABILITY_NAMED_IAM"]
    )
    poll_interval: float = 0.5
    timeout_seconds: float = 300.0
    no_changes_pattern: re.Pattern[str] = field(
        default_factory=lambda: re.compile(DEFAULT_NO_CHANGES_PATTERN, re.IGNORECASE)
    )


@dataclass
class AWSConfig:
    """Remote client configuration.  Credentials come from the ambient chain."""

    region: str = ""


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "warning"
    format: str = "json"


@dataclass
class PreviewConfig:
    """Top-level cfnpreview configuration."""

    differ: DifferConfig = field(default_factory=DifferConfig)
    changeset: ChangesetConfig = field(default_factory=ChangesetConfig)
    aws: AWSConfig = field(default_factory=AWSConfig)
    log: LogConfig = field(default_factory=LogConfig)
