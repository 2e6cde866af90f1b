"""Preview pipeline for cfnpreview.

Wires the stages in control-flow order:
    local template → current state → reconcile
              → changeset (create, await, describe, delete) → template diff

Overrides are parsed when the request is built and the local template is
read before any remote call, so malformed input never creates remote
state.  The changeset lives inside ``open_changeset`` and is deleted on
every exit path.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from cfnpreview.differ import TemplateDiffer
from cfnpreview.errors import LocalTemplateError, RemoteRejected
from cfnpreview.gateway.base import StackGateway, await_changeset, open_changeset
from cfnpreview.interpreter import interpret, result_from_rejection
from cfnpreview.models.changeset import ChangesetResult, ChangesetStatus
from cfnpreview.models.config import PreviewConfig
from cfnpreview.models.parameters import EffectiveParameterSet, ParameterOverride, StackIdentity
from cfnpreview.observability.logging import get_logger
from cfnpreview.parameters import parse_overrides, reconcile
from cfnpreview.report import PreviewReport

_log = get_logger("app")


@dataclass(frozen=True)
class PreviewRequest:
    """What the invoker asked for, with overrides already parsed."""

    stack_name: str
    template_path: Path
    overrides: Sequence[ParameterOverride] = field(default_factory=tuple)

    @classmethod
    def from_arguments(
        cls,
        stack_name: str,
        template_path: Path,
        parameters: Iterable[str] = (),
    ) -> PreviewRequest:
        """Build a request from raw ``key=value`` arguments.

        Raises InvalidParameterFormat for malformed or conflicting overrides.
        """
        return cls(
            stack_name=stack_name,
            template_path=template_path,
            overrides=tuple(parse_overrides(parameters)),
        )


def read_template(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise LocalTemplateError(f"cannot read template {path}: {exc}") from exc


class Previewer:
    """Runs one preview against a gateway.

    ``clock`` and ``sleep`` drive changeset polling and can be replaced for
    deterministic tests.
    """

    def __init__(
        self,
        gateway: StackGateway,
        config: PreviewConfig,
        differ: TemplateDiffer | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._gateway = gateway
        self._config = config
        self._differ = differ or TemplateDiffer(config.differ.command)
        self._clock = clock
        self._sleep = sleep

    def run(self, request: PreviewRequest) -> PreviewReport:
        stack = StackIdentity(request.stack_name)
        local_text = read_template(request.template_path)

        log = _log.bind(stack=stack.name)
        log.info("preview_started", template=str(request.template_path))

        current_text = self._gateway.fetch_current_template(stack)
        deployed = self._gateway.fetch_deployed_parameters(stack)
        effective = reconcile(deployed, request.overrides)

        changeset = self._compute_changeset(stack, local_text, effective)
        if changeset.status is ChangesetStatus.FAILED:
            raise RemoteRejected(changeset.reason or "changeset failed without a reason")

        diff = self._differ.diff(
            current_text,
            local_text,
            local_path=request.template_path,
            stack_name=stack.name,
        )
        log.info(
            "preview_finished",
            changeset_status=changeset.status.value,
            changes=len(changeset.changes),
            diff_status=diff.status.value,
        )
        return PreviewReport(stack=stack, changeset=changeset, diff=diff)

    def _compute_changeset(
        self,
        stack: StackIdentity,
        template_body: str,
        parameters: EffectiveParameterSet,
    ) -> ChangesetResult:
        settings = self._config.changeset
        try:
            with open_changeset(self._gateway, stack, template_body, parameters) as handle:
                awaited = await_changeset(
                    self._gateway,
                    handle,
                    interval=settings.poll_interval,
                    timeout=settings.timeout_seconds,
                    no_changes_pattern=settings.no_changes_pattern,
                    clock=self._clock,
                    sleep=self._sleep,
                )
                if awaited.status is not ChangesetStatus.HAS_CHANGES:
                    return interpret(awaited.status, reason=awaited.reason)
                changes = self._gateway.describe_changeset(handle)
                return interpret(awaited.status, changes, reason=awaited.reason)
        except RemoteRejected as exc:
            return result_from_rejection(exc, settings.no_changes_pattern)
