"""Tests for changeset interpretation.

Covers status resolution (including the no-changes sentinel), ordering
stability and line rendering.
"""

from __future__ import annotations

import re

import click
import pytest
from hypothesis import given
from hypothesis import strategies as st

from cfnpreview.errors import RemoteRejected
from cfnpreview.interpreter import (
    interpret,
    is_in_progress,
    render_change,
    render_changeset,
    resolve_status,
    result_from_rejection,
    sort_changes,
)
from cfnpreview.models.changeset import (
    ChangeAction,
    ChangeRecord,
    ChangesetStatus,
    Replacement,
)
from cfnpreview.models.config import DEFAULT_NO_CHANGES_PATTERN

_PATTERN = re.compile(DEFAULT_NO_CHANGES_PATTERN, re.IGNORECASE)
_NO_CHANGES_REASON = (
    "The submitted information didn't contain changes. "
    "Submit different information to create a change set."
)


def _make_change(
    logical_id: str = "Table",
    action: ChangeAction = ChangeAction.MODIFY,
    resource_type: str = "AWS::DynamoDB::Table",
    replacement: Replacement | None = Replacement.FALSE,
    physical_id: str = "",
    scope: tuple[str, ...] = (),
) -> ChangeRecord:
    return ChangeRecord(
        logical_id=logical_id,
        resource_type=resource_type,
        action=action,
        replacement=replacement,
        physical_id=physical_id,
        scope=scope,
    )


_changes = st.lists(
    st.builds(
        _make_change,
        logical_id=st.text(alphabet="ABCabc123", min_size=1, max_size=6),
        action=st.sampled_from(list(ChangeAction)),
        resource_type=st.sampled_from(["AWS::S3::Bucket", "AWS::SQS::Queue", "AWS::IAM::Role"]),
        replacement=st.sampled_from([None, *Replacement]),
    ),
    max_size=10,
)


# =====================================================================
# Status resolution
# =====================================================================


class TestIsInProgress:
    @pytest.mark.parametrize(
        "status",
        ["CREATE_PENDING", "CREATE_IN_PROGRESS", "DELETE_PENDING", "DELETE_IN_PROGRESS"],
    )
    def test_in_progress(self, status: str) -> None:
        assert is_in_progress(status) is True

    @pytest.mark.parametrize("status", ["CREATE_COMPLETE", "FAILED", "DELETE_COMPLETE", "DELETE_FAILED"])
    def test_terminal(self, status: str) -> None:
        assert is_in_progress(status) is False


class TestResolveStatus:
    def test_complete_has_changes(self) -> None:
        assert resolve_status("CREATE_COMPLETE", "", _PATTERN) is ChangesetStatus.HAS_CHANGES

    def test_failed_with_sentinel_is_no_changes(self) -> None:
        assert resolve_status("FAILED", _NO_CHANGES_REASON, _PATTERN) is ChangesetStatus.NO_CHANGES

    def test_failed_no_updates_sentinel(self) -> None:
        reason = "No updates are to be performed."
        assert resolve_status("FAILED", reason, _PATTERN) is ChangesetStatus.NO_CHANGES

    def test_failed_other_reason_is_failure(self) -> None:
        reason = "Template format error: Unresolved resource dependencies [Foo]"
        assert resolve_status("FAILED", reason, _PATTERN) is ChangesetStatus.FAILED

    def test_failed_empty_reason_is_failure(self) -> None:
        assert resolve_status("FAILED", "", _PATTERN) is ChangesetStatus.FAILED

    def test_unexpected_terminal_status_is_failure(self) -> None:
        assert resolve_status("DELETE_COMPLETE", "", _PATTERN) is ChangesetStatus.FAILED

    def test_custom_pattern(self) -> None:
        pattern = re.compile(r"nothing to do", re.IGNORECASE)
        assert resolve_status("FAILED", "Nothing to do here", pattern) is ChangesetStatus.NO_CHANGES
        assert resolve_status("FAILED", _NO_CHANGES_REASON, pattern) is ChangesetStatus.FAILED


class TestResultFromRejection:
    def test_sentinel_rejection_becomes_no_changes(self) -> None:
        result = result_from_rejection(RemoteRejected("No updates are to be performed."), _PATTERN)
        assert result.status is ChangesetStatus.NO_CHANGES
        assert result.changes == ()

    def test_other_rejection_reraised(self) -> None:
        exc = RemoteRejected("Template format error: YAML not well-formed")
        with pytest.raises(RemoteRejected) as excinfo:
            result_from_rejection(exc, _PATTERN)
        assert excinfo.value is exc


# =====================================================================
# Interpretation and ordering
# =====================================================================


class TestInterpret:
    def test_sorted_by_logical_id(self) -> None:
        result = interpret(
            ChangesetStatus.HAS_CHANGES,
            [_make_change("Zeta"), _make_change("Alpha"), _make_change("Mid")],
        )
        assert [c.logical_id for c in result.changes] == ["Alpha", "Mid", "Zeta"]

    def test_complete_without_changes_is_no_changes(self) -> None:
        result = interpret(ChangesetStatus.HAS_CHANGES, [])
        assert result.status is ChangesetStatus.NO_CHANGES

    def test_non_change_status_drops_changes(self) -> None:
        result = interpret(ChangesetStatus.NO_CHANGES, [_make_change()], reason="x")
        assert result.changes == ()
        assert result.reason == "x"

    @given(_changes, st.randoms(use_true_random=False))
    def test_ordering_stable_under_permutation(self, changes, rnd) -> None:
        permuted = list(changes)
        rnd.shuffle(permuted)
        first = render_changeset(interpret(ChangesetStatus.HAS_CHANGES, changes))
        second = render_changeset(interpret(ChangesetStatus.HAS_CHANGES, permuted))
        assert first == second

    @given(_changes)
    def test_sort_is_by_logical_id(self, changes) -> None:
        ordered = sort_changes(changes)
        ids = [c.logical_id for c in ordered]
        assert ids == sorted(ids)


# =====================================================================
# Rendering
# =====================================================================


class TestRenderChange:
    def test_plain_line(self) -> None:
        line = render_change(_make_change("Table", ChangeAction.MODIFY))
        assert line == "~ Modify AWS::DynamoDB::Table Table"

    def test_add_glyph(self) -> None:
        line = render_change(_make_change("Queue", ChangeAction.ADD, "AWS::SQS::Queue", None))
        assert line.startswith("+ Add AWS::SQS::Queue Queue")

    def test_remove_glyph(self) -> None:
        assert render_change(_make_change(action=ChangeAction.REMOVE)).startswith("- Remove")

    def test_import_glyph(self) -> None:
        assert render_change(_make_change(action=ChangeAction.IMPORT)).startswith("< Import")

    def test_replacement_marker(self) -> None:
        line = render_change(_make_change(replacement=Replacement.TRUE))
        assert line.endswith("!! requires replacement")

    def test_conditional_replacement_marker(self) -> None:
        line = render_change(_make_change(replacement=Replacement.CONDITIONAL))
        assert line.endswith("! may require replacement")

    def test_no_marker_without_replacement(self) -> None:
        assert "replacement" not in render_change(_make_change(replacement=Replacement.FALSE))

    def test_physical_id_and_scope(self) -> None:
        line = render_change(
            _make_change(physical_id="prod-table", scope=("Properties", "Tags"))
        )
        assert line == "~ Modify AWS::DynamoDB::Table Table prod-table [Properties, Tags]"

    def test_color_adds_ansi_and_keeps_text(self) -> None:
        line = render_change(_make_change(), color=True)
        assert "\x1b[" in line
        assert click.unstyle(line) == render_change(_make_change())
