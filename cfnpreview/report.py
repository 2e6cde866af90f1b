"""Report rendering.

Composes the changeset summary and the template diff into the text
written to stdout.  Detecting differences is never an error: the exit
code only reflects failures raised earlier in the pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass

import click

from cfnpreview.interpreter import render_changeset
from cfnpreview.models.changeset import ChangesetResult, ChangesetStatus
from cfnpreview.models.diff import DiffStatus, TemplateDiff
from cfnpreview.models.parameters import StackIdentity


@dataclass(frozen=True)
class PreviewReport:
    """Everything one run produced, ready for rendering."""

    stack: StackIdentity
    changeset: ChangesetResult
    diff: TemplateDiff

    @property
    def is_unchanged(self) -> bool:
        return self.changeset.status is ChangesetStatus.NO_CHANGES and self.diff.is_empty


def _style_diff_line(line: str) -> str:
    if line.startswith(("+++", "---")):
        return click.style(line, bold=True)
    if line.startswith("@@"):
        return click.style(line, fg="cyan")
    if line.startswith("+"):
        return click.style(line, fg="green")
    if line.startswith("-"):
        return click.style(line, fg="red")
    return line


def render_diff(diff: TemplateDiff, color: bool = False) -> list[str]:
    lines = diff.text.rstrip("\n").split("\n") if diff.text.strip() else []
    if color:
        lines = [_style_diff_line(line) for line in lines]
    if diff.status is DiffStatus.TOOL_ERROR:
        lines.append(f"differ exited with status {diff.exit_code}")
        lines.extend(diff.stderr.rstrip("\n").split("\n") if diff.stderr.strip() else [])
    return lines


def render_report(report: PreviewReport, color: bool = False) -> str:
    """Render *report* as the final console text (no trailing newline)."""
    if report.is_unchanged:
        return f"No changes detected for stack {report.stack.name}"

    sections: list[str] = []
    if report.changeset.has_changes:
        count = len(report.changeset.changes)
        header = f"Changes for stack {report.stack.name} ({count}):"
        sections.append("\n".join([header, *render_changeset(report.changeset, color=color)]))
    else:
        sections.append(f"No resource changes for stack {report.stack.name}")

    diff_lines = render_diff(report.diff, color=color)
    if diff_lines:
        sections.append("\n".join(diff_lines))
    return "\n\n".join(sections)
