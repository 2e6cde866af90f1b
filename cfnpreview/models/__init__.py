"""Core data structures for cfnpreview."""

from cfnpreview.models.changeset import (
    ChangeAction,
    ChangeRecord,
    ChangesetResult,
    ChangesetStatus,
    Replacement,
)
from cfnpreview.models.config import PreviewConfig
from cfnpreview.models.diff import DiffStatus, TemplateDiff
from cfnpreview.models.parameters import (
    DeployedParameter,
    EffectiveParameterSet,
    ParameterOverride,
    ParameterValue,
    StackIdentity,
)

__all__ = [
    "ChangeAction",
    "ChangeRecord",
    "ChangesetResult",
    "ChangesetStatus",
    "DeployedParameter",
    "DiffStatus",
    "EffectiveParameterSet",
    "ParameterOverride",
    "ParameterValue",
    "PreviewConfig",
    "Replacement",
    "StackIdentity",
    "TemplateDiff",
]
