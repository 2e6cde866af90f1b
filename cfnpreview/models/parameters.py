"""Stack identity and parameter data structures."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass


@dataclass(frozen=True)
class StackIdentity:
    """The stack a preview runs against.  Fixed for the whole run."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class ParameterOverride:
    """A ``key=value`` pair supplied by the invoker."""

    key: str
    value: str


@dataclass(frozen=True)
class DeployedParameter:
    """A parameter as currently deployed on the stack.

    The service can carry every deployed parameter forward on its own, so
    ``value`` is for display only (NoEcho values come back masked) and is
    never resubmitted.
    """

    key: str
    value: str | None = None


@dataclass(frozen=True)
class ParameterValue:
    """One entry of the parameter set submitted with a changeset.

    Exactly one of the two forms is valid: ``use_previous_value=True`` with
    no value, or a literal ``value``.
    """

    key: str
    value: str | None = None
    use_previous_value: bool = False

    def __post_init__(self) -> None:
        if self.use_previous_value and self.value is not None:
            raise ValueError(f"parameter {self.key!r} cannot both reuse and set a value")
        if not self.use_previous_value and self.value is None:
            raise ValueError(f"parameter {self.key!r} needs a value or use_previous_value")

    @classmethod
    def reuse(cls, key: str) -> ParameterValue:
        return cls(key=key, use_previous_value=True)

    @classmethod
    def literal(cls, key: str, value: str) -> ParameterValue:
        return cls(key=key, value=value)


# Derived per run, never persisted.  Keyed by parameter key.
EffectiveParameterSet = Mapping[str, ParameterValue]
