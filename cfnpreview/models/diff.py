"""Template diff data structures."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class DiffStatus(StrEnum):
    """Exit indicator of a template comparison."""

    IDENTICAL = "identical"
    DIFFERENT = "different"
    TOOL_ERROR = "tool_error"


@dataclass(frozen=True)
class TemplateDiff:
    """Textual diff between the deployed and the local template.

    ``text`` is opaque: either the built-in unified diff or whatever the
    external tool wrote to stdout.  ``stderr`` is only populated for
    external tools.
    """

    status: DiffStatus
    text: str = ""
    exit_code: int = 0
    stderr: str = ""

    @property
    def is_empty(self) -> bool:
        return self.status is DiffStatus.IDENTICAL and not self.text.strip()
