"""Stack gateway abstraction, bounded changeset polling and scoped release.

StackGateway       -- ABC every remote backend implements.
ChangesetPoll      -- One status observation of a changeset.
await_changeset    -- Polls at a fixed interval until the changeset leaves
                      the in-progress state or the deadline passes.
open_changeset     -- Context manager that creates a changeset and always
                      deletes it on exit, including on KeyboardInterrupt.
"""

from __future__ import annotations

import re
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from cfnpreview.errors import ChangesetTimeout
from cfnpreview.interpreter import is_in_progress, resolve_status
from cfnpreview.models.changeset import ChangeRecord, ChangesetStatus
from cfnpreview.models.parameters import DeployedParameter, EffectiveParameterSet, StackIdentity
from cfnpreview.observability.logging import get_logger

_logger = get_logger("gateway")


@dataclass(frozen=True)
class ChangesetPoll:
    """Raw status of a changeset as last reported by the service."""

    status: str
    reason: str = ""


class StackGateway(ABC):
    """Typed client over the remote infrastructure-management API.

    Every method is a single blocking remote call.  Implementations must
    translate their transport errors into the cfnpreview error taxonomy.
    """

    @abstractmethod
    def fetch_current_template(self, stack: StackIdentity) -> str:
        """Return the deployed template body.  Raises StackNotFound."""

    @abstractmethod
    def fetch_deployed_parameters(self, stack: StackIdentity) -> list[DeployedParameter]:
        """Return the parameters the stack was last deployed with."""

    @abstractmethod
    def create_changeset(
        self,
        stack: StackIdentity,
        template_body: str,
        parameters: EffectiveParameterSet,
    ) -> str:
        """Request a changeset and return its handle.  Raises RemoteRejected."""

    @abstractmethod
    def poll_changeset(self, handle: str) -> ChangesetPoll:
        """Return the current status of the changeset."""

    @abstractmethod
    def describe_changeset(self, handle: str) -> list[ChangeRecord]:
        """Return every resource change of an available changeset."""

    @abstractmethod
    def delete_changeset(self, handle: str) -> None:
        """Delete the changeset."""


@dataclass(frozen=True)
class AwaitedChangeset:
    """Resolved terminal state of a changeset."""

    status: ChangesetStatus
    reason: str = ""
    remote_status: str = ""


def await_changeset(
    gateway: StackGateway,
    handle: str,
    *,
    interval: float,
    timeout: float,
    no_changes_pattern: re.Pattern[str],
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> AwaitedChangeset:
    """Poll *handle* until it reaches a terminal status.

    Polls immediately, then every ``interval`` seconds.  A poll is never
    started after ``timeout`` seconds have elapsed; the last sleep is
    shortened so the deadline is not overshot.  The terminal status is
    resolved to a ChangesetStatus here and nowhere else.
    """
    started = clock()
    deadline = started + timeout
    attempts = 0
    while True:
        attempts += 1
        poll = gateway.poll_changeset(handle)
        if not is_in_progress(poll.status):
            status = resolve_status(poll.status, poll.reason, no_changes_pattern)
            _logger.debug(
                "changeset_settled",
                changeset=handle,
                remote_status=poll.status,
                status=status.value,
                attempts=attempts,
            )
            return AwaitedChangeset(status=status, reason=poll.reason, remote_status=poll.status)

        now = clock()
        if now >= deadline:
            raise ChangesetTimeout(handle, now - started)
        _logger.debug("changeset_pending", changeset=handle, remote_status=poll.status)
        sleep(min(interval, deadline - now))


def release_changeset(gateway: StackGateway, handle: str) -> None:
    """Best-effort deletion.  Failures are logged, never raised."""
    try:
        gateway.delete_changeset(handle)
        _logger.debug("changeset_deleted", changeset=handle)
    except Exception as exc:  # noqa: BLE001
        _logger.warning("changeset_delete_failed", changeset=handle, error=str(exc))


@contextmanager
def open_changeset(
    gateway: StackGateway,
    stack: StackIdentity,
    template_body: str,
    parameters: EffectiveParameterSet,
) -> Iterator[str]:
    """Create a changeset for the duration of the ``with`` block.

    At most one changeset exists per invocation and it is deleted on every
    exit path.  If creation itself fails there is nothing to release.
    """
    handle = gateway.create_changeset(stack, template_body, parameters)
    _logger.info("changeset_created", stack=stack.name, changeset=handle)
    try:
        yield handle
    finally:
        release_changeset(gateway, handle)
