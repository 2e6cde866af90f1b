"""Template differ.

Compares the deployed template text with the local template.  With no
external command configured the comparison is a unified diff computed in
process; otherwise the command is run as a subprocess and its stdout is
taken verbatim.
"""

from __future__ import annotations

import difflib
import os
import shlex
import subprocess
import tempfile
from pathlib import Path

from cfnpreview.errors import DiffToolError
from cfnpreview.models.diff import DiffStatus, TemplateDiff
from cfnpreview.observability.logging import get_logger

_logger = get_logger("differ")

NO_NEWLINE_MARKER = "\\ No newline at end of file\n"

# diff(1) convention: 0 identical, 1 different, anything else trouble.
_EXIT_IDENTICAL = 0
_EXIT_DIFFERENT = 1


def _diff_lines(text: str) -> list[str]:
    if not text:
        return []
    lines = [line + "\n" for line in text.split("\n")]
    if text.endswith("\n"):
        lines.pop()
    else:
        lines[-1] += NO_NEWLINE_MARKER
    return lines


def unified_diff(
    remote_text: str,
    local_text: str,
    remote_label: str = "remote",
    local_label: str = "local",
    context: int = 3,
) -> str:
    """Unified diff of two texts; empty string when they are identical."""
    return "".join(
        difflib.unified_diff(
            _diff_lines(remote_text),
            _diff_lines(local_text),
            fromfile=remote_label,
            tofile=local_label,
            n=context,
        )
    )


class TemplateDiffer:
    """Produces a TemplateDiff between the remote and local template.

    Args:
        command: External diff command line.  Empty means built-in diff.
    """

    def __init__(self, command: str = "") -> None:
        self._command = command

    @property
    def external(self) -> bool:
        return bool(self._command)

    def diff(
        self,
        remote_text: str,
        local_text: str,
        local_path: Path,
        stack_name: str,
    ) -> TemplateDiff:
        if not self._command:
            text = unified_diff(
                remote_text,
                local_text,
                remote_label=f"remote:{stack_name}",
                local_label=f"local:{local_path}",
            )
            status = DiffStatus.DIFFERENT if text else DiffStatus.IDENTICAL
            return TemplateDiff(status=status, text=text, exit_code=1 if text else 0)
        return self._run_external(remote_text, local_path)

    def _run_external(self, remote_text: str, local_path: Path) -> TemplateDiff:
        try:
            argv = shlex.split(self._command)
        except ValueError as exc:
            raise DiffToolError(f"invalid differ command {self._command!r}: {exc}") from exc
        if not argv:
            raise DiffToolError(f"invalid differ command {self._command!r}")

        fd, remote_path = tempfile.mkstemp(prefix="remote-", suffix=local_path.suffix)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(remote_text)
            _logger.debug("differ_launch", argv=argv, remote=remote_path, local=str(local_path))
            try:
                completed = subprocess.run(
                    [*argv, remote_path, str(local_path)],
                    capture_output=True,
                    encoding="utf-8",
                    errors="replace",
                    check=False,
                )
            except OSError as exc:
                raise DiffToolError(f"cannot run differ {argv[0]!r}: {exc}") from exc
        finally:
            os.unlink(remote_path)

        if completed.returncode == _EXIT_IDENTICAL:
            status = DiffStatus.IDENTICAL
        elif completed.returncode == _EXIT_DIFFERENT:
            status = DiffStatus.DIFFERENT
        else:
            status = DiffStatus.TOOL_ERROR
            _logger.warning(
                "differ_exit_error",
                command=argv[0],
                exit_code=completed.returncode,
                stderr=completed.stderr[:500],
            )
        return TemplateDiff(
            status=status,
            text=completed.stdout,
            exit_code=completed.returncode,
            stderr=completed.stderr,
        )
