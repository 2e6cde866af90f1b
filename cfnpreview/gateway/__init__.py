"""Remote stack gateway.

Exports:
    StackGateway           -- Abstract base for remote backends.
    ChangesetPoll          -- One observed changeset status.
    AwaitedChangeset       -- Resolved terminal changeset state.
    await_changeset        -- Bounded fixed-interval poll.
    open_changeset         -- Scoped create/delete of a changeset.
    CloudFormationGateway  -- boto3-backed implementation.
"""

from cfnpreview.gateway.base import (
    AwaitedChangeset,
    ChangesetPoll,
    StackGateway,
    await_changeset,
    open_changeset,
    release_changeset,
)
from cfnpreview.gateway.cloudformation import CloudFormationGateway

__all__ = [
    "AwaitedChangeset",
    "ChangesetPoll",
    "CloudFormationGateway",
    "StackGateway",
    "await_changeset",
    "open_changeset",
    "release_changeset",
]
