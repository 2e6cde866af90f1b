"""Shared fixtures for cfnpreview integration tests.

Provides an in-memory StackGateway with scripted changeset behaviour, a
fake clock, and template files on disk, so the full preview pipeline and
the CLI can run without touching AWS.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import pytest

from cfnpreview.app import Previewer
from cfnpreview.errors import RemoteRejected, StackNotFound
from cfnpreview.gateway.base import ChangesetPoll, StackGateway
from cfnpreview.models.changeset import ChangeAction, ChangeRecord, Replacement
from cfnpreview.models.config import PreviewConfig
from cfnpreview.models.parameters import DeployedParameter, EffectiveParameterSet, StackIdentity

# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

TEMPLATE_BEFORE = """\
Parameters:
  Foo:
    Type: String
Resources:
  Table:
    Type: AWS::DynamoDB::Table
    Properties:
      TableName: test
      BillingMode: PAY_PER_REQUEST
"""

TEMPLATE_AFTER = TEMPLATE_BEFORE.replace("TableName: test", "TableName: test2")

NO_CHANGES_REASON = (
    "The submitted information didn't contain changes. "
    "Submit different information to create a change set."
)


def make_modify_table() -> ChangeRecord:
    return ChangeRecord(
        logical_id="Table",
        resource_type="AWS::DynamoDB::Table",
        action=ChangeAction.MODIFY,
        replacement=Replacement.TRUE,
        physical_id="test",
        scope=("Properties",),
    )


# ---------------------------------------------------------------------------
# Fake gateway
# ---------------------------------------------------------------------------


@dataclass
class FakeGateway(StackGateway):
    """In-memory gateway.  Every call is appended to ``calls``."""

    template: str = TEMPLATE_BEFORE
    parameters: list[DeployedParameter] = field(
        default_factory=lambda: [DeployedParameter(key="Foo", value="baz")]
    )
    exists: bool = True
    polls: list[ChangesetPoll] = field(default_factory=lambda: [ChangesetPoll("CREATE_COMPLETE")])
    changes: list[ChangeRecord] = field(default_factory=list)
    reject_reason: str = ""
    describe_error: Exception | None = None
    delete_error: Exception | None = None

    calls: list[str] = field(default_factory=list)
    submitted: dict[str, EffectiveParameterSet] = field(default_factory=dict)
    open_handles: set[str] = field(default_factory=set)

    def _require_stack(self, stack: StackIdentity) -> None:
        if not self.exists:
            raise StackNotFound(stack.name)

    def fetch_current_template(self, stack: StackIdentity) -> str:
        self.calls.append("fetch_current_template")
        self._require_stack(stack)
        return self.template

    def fetch_deployed_parameters(self, stack: StackIdentity) -> list[DeployedParameter]:
        self.calls.append("fetch_deployed_parameters")
        self._require_stack(stack)
        return list(self.parameters)

    def create_changeset(
        self,
        stack: StackIdentity,
        template_body: str,
        parameters: EffectiveParameterSet,
    ) -> str:
        self.calls.append("create_changeset")
        self._require_stack(stack)
        if self.reject_reason:
            raise RemoteRejected(self.reject_reason)
        handle = f"cs-{len(self.submitted) + 1}"
        self.submitted[handle] = dict(parameters)
        self.open_handles.add(handle)
        return handle

    def poll_changeset(self, handle: str) -> ChangesetPoll:
        self.calls.append("poll_changeset")
        if len(self.polls) > 1:
            return self.polls.pop(0)
        return self.polls[0]

    def describe_changeset(self, handle: str) -> list[ChangeRecord]:
        self.calls.append("describe_changeset")
        if self.describe_error is not None:
            raise self.describe_error
        return list(self.changes)

    def delete_changeset(self, handle: str) -> None:
        self.calls.append("delete_changeset")
        if self.delete_error is not None:
            raise self.delete_error
        self.open_handles.discard(handle)

    @property
    def last_submitted(self) -> EffectiveParameterSet:
        return list(self.submitted.values())[-1]


class FakeClock:
    """Monotonic clock that only advances when slept on."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def config() -> PreviewConfig:
    config = PreviewConfig()
    config.changeset.timeout_seconds = 5.0
    return config


@pytest.fixture
def previewer(gateway: FakeGateway, config: PreviewConfig, clock: FakeClock) -> Previewer:
    return Previewer(gateway, config, clock=clock, sleep=clock.sleep)


@pytest.fixture
def same_template(tmp_path: Path) -> Path:
    path = tmp_path / "template.yml"
    path.write_text(TEMPLATE_BEFORE, encoding="utf-8")
    return path


@pytest.fixture
def changed_template(tmp_path: Path) -> Path:
    path = tmp_path / "template.yml"
    path.write_text(TEMPLATE_AFTER, encoding="utf-8")
    return path
