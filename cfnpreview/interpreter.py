"""Changeset interpretation.

Resolves the service's overloaded status model into a ChangesetStatus,
orders ChangeRecords deterministically and renders them as report lines.

Status resolution happens exactly once, right after the remote call that
produced the status (poll result or synchronous rejection).  Downstream
code only ever looks at ChangesetResult.status.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

import click

from cfnpreview.errors import RemoteRejected
from cfnpreview.models.changeset import (
    ChangeAction,
    ChangeRecord,
    ChangesetResult,
    ChangesetStatus,
)
from cfnpreview.observability.logging import get_logger

_logger = get_logger("interpreter")

AVAILABLE_STATUS = "CREATE_COMPLETE"
FAILED_STATUS = "FAILED"

_ACTION_STYLE: dict[ChangeAction, tuple[str, str]] = {
    ChangeAction.ADD: ("+", "bright_green"),
    ChangeAction.MODIFY: ("~", "bright_yellow"),
    ChangeAction.REMOVE: ("-", "bright_red"),
    ChangeAction.IMPORT: ("<", "bright_cyan"),
}


def is_in_progress(status: str) -> bool:
    """True while the service is still computing (or deleting) the changeset."""
    return status.endswith("_PENDING") or status.endswith("_IN_PROGRESS")


def matches_no_changes(reason: str, pattern: re.Pattern[str]) -> bool:
    return bool(reason) and pattern.search(reason) is not None


def resolve_status(status: str, reason: str, pattern: re.Pattern[str]) -> ChangesetStatus:
    """Map a terminal service status onto a ChangesetStatus.

    FAILED is ambiguous on the service side: it is also how an update with
    nothing to change is reported.  Only a reason matching ``pattern`` makes
    it NO_CHANGES.
    """
    if status == AVAILABLE_STATUS:
        return ChangesetStatus.HAS_CHANGES
    if status == FAILED_STATUS and matches_no_changes(reason, pattern):
        return ChangesetStatus.NO_CHANGES
    return ChangesetStatus.FAILED


def result_from_rejection(exc: RemoteRejected, pattern: re.Pattern[str]) -> ChangesetResult:
    """Turn a synchronous creation refusal into a result, or re-raise it."""
    if matches_no_changes(exc.reason, pattern):
        _logger.info("changeset_rejected_no_changes", reason=exc.reason)
        return ChangesetResult(status=ChangesetStatus.NO_CHANGES, reason=exc.reason)
    raise exc


def sort_changes(changes: Iterable[ChangeRecord]) -> tuple[ChangeRecord, ...]:
    """Order by logical id; the remaining fields only break ties."""
    return tuple(
        sorted(
            changes,
            key=lambda c: (
                c.logical_id,
                c.action.value,
                c.resource_type,
                c.physical_id,
                c.replacement.value if c.replacement else "",
                c.scope,
            ),
        )
    )


def interpret(
    status: ChangesetStatus,
    changes: Iterable[ChangeRecord] = (),
    reason: str = "",
) -> ChangesetResult:
    """Build the normalized ChangesetResult for a resolved status.

    A HAS_CHANGES status with an empty change list (the service sometimes
    completes a changeset that only touches parameters or outputs) is
    reported as NO_CHANGES.
    """
    ordered = sort_changes(changes)
    if status is ChangesetStatus.HAS_CHANGES and not ordered:
        return ChangesetResult(status=ChangesetStatus.NO_CHANGES, reason=reason)
    if status is not ChangesetStatus.HAS_CHANGES:
        ordered = ()
    return ChangesetResult(status=status, changes=ordered, reason=reason)


def render_change(change: ChangeRecord, color: bool = False) -> str:
    """Render one change as a single report line."""
    glyph, fg = _ACTION_STYLE[change.action]

    def style(text: str, **attrs: bool) -> str:
        return click.style(text, fg=fg, **attrs) if color else text

    parts = [
        style(glyph),
        style(change.action.value, bold=True),
        style(change.resource_type, dim=True),
        style(change.logical_id, bold=True),
    ]
    if change.physical_id:
        parts.append(style(change.physical_id, dim=True))
    if change.scope:
        parts.append(style(f"[{', '.join(change.scope)}]"))
    if change.requires_replacement:
        parts.append(style("!! requires replacement", bold=True))
    elif change.may_require_replacement:
        parts.append(style("! may require replacement"))
    return " ".join(parts)


def render_changeset(result: ChangesetResult, color: bool = False) -> list[str]:
    """Render every change of *result*, one line each, in result order."""
    return [render_change(change, color=color) for change in result.changes]
