"""Error taxonomy for cfnpreview.

Every failure that terminates a preview run is a ``PreviewError``.  The
``stage`` attribute names the pipeline stage that failed so the CLI can
report it without inspecting the concrete type.
"""

from __future__ import annotations


class PreviewError(Exception):
    """Base class for all errors surfaced to the top level."""

    stage = "preview"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidParameterFormat(PreviewError):
    """A parameter override is not of the form ``key=value``."""

    stage = "parameters"

    def __init__(self, argument: str, detail: str = "expected KEY=value") -> None:
        super().__init__(f"invalid parameter override {argument!r}: {detail}")
        self.argument = argument


class LocalTemplateError(PreviewError):
    """The local template file could not be read."""

    stage = "template"


class StackNotFound(PreviewError):
    """The named stack does not exist."""

    stage = "gateway"

    def __init__(self, stack_name: str) -> None:
        super().__init__(f"stack {stack_name!r} does not exist")
        self.stack_name = stack_name


class RemoteRejected(PreviewError):
    """The remote service refused to compute a changeset.

    ``reason`` is the service-provided explanation; it is matched against
    the no-changes pattern before this error is allowed to propagate.
    """

    stage = "changeset"

    def __init__(self, reason: str) -> None:
        super().__init__(f"changeset rejected: {reason}")
        self.reason = reason


class ChangesetTimeout(PreviewError):
    """The changeset did not reach a terminal status in time."""

    stage = "changeset"

    def __init__(self, handle: str, waited: float) -> None:
        super().__init__(f"changeset {handle} still in progress after {waited:.1f}s")
        self.handle = handle
        self.waited = waited


class DiffToolError(PreviewError):
    """The external diff tool could not be located or launched."""

    stage = "diff"


class RemoteTransientError(PreviewError):
    """Network or service error during a remote call."""

    stage = "gateway"

    def __init__(self, operation: str, cause: Exception) -> None:
        super().__init__(f"{operation} failed: {cause}")
        self.operation = operation
        self.cause = cause
