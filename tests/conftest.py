"""Shared fixtures for all cfnpreview tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
import structlog


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    """Undo any setup_logging() a test triggered (the CLI configures stderr)."""
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
