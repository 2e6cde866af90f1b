"""Changeset data structures and enumerations."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class ChangeAction(StrEnum):
    """What the service predicts will happen to a resource."""

    ADD = "Add"
    MODIFY = "Modify"
    REMOVE = "Remove"
    IMPORT = "Import"


class Replacement(StrEnum):
    """Whether a Modify needs the resource destroyed and recreated."""

    TRUE = "True"
    FALSE = "False"
    CONDITIONAL = "Conditional"


class ChangesetStatus(StrEnum):
    """Outcome of computing a changeset, resolved once after polling."""

    HAS_CHANGES = "has_changes"
    NO_CHANGES = "no_changes"
    FAILED = "failed"


@dataclass(frozen=True)
class ChangeRecord:
    """One predicted resource-level change.

    Produced by the gateway from the service's description; immutable.
    """

    logical_id: str
    resource_type: str
    action: ChangeAction
    replacement: Replacement | None = None
    physical_id: str = ""
    scope: tuple[str, ...] = ()

    @property
    def requires_replacement(self) -> bool:
        return self.replacement is Replacement.TRUE

    @property
    def may_require_replacement(self) -> bool:
        return self.replacement is Replacement.CONDITIONAL


@dataclass(frozen=True)
class ChangesetResult:
    """Status plus the ordered changes of one changeset.

    ``reason`` carries the service's status reason for FAILED and
    NO_CHANGES outcomes.
    """

    status: ChangesetStatus
    changes: tuple[ChangeRecord, ...] = field(default_factory=tuple)
    reason: str = ""

    @property
    def has_changes(self) -> bool:
        return self.status is ChangesetStatus.HAS_CHANGES and bool(self.changes)
