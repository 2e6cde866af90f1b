"""Parameter override parsing and reconciliation.

Decides what parameter set accompanies a changeset request: every
previously deployed parameter is carried forward with the service's
reuse marker unless the invoker overrides it, and overrides for
parameters the stack has never seen are submitted as literals.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from cfnpreview.errors import InvalidParameterFormat
from cfnpreview.models.parameters import (
    DeployedParameter,
    EffectiveParameterSet,
    ParameterOverride,
    ParameterValue,
)
from cfnpreview.observability.logging import get_logger

_logger = get_logger("parameters")


def parse_override(argument: str) -> ParameterOverride:
    """Parse one ``key=value`` argument.

    The value is everything after the first ``=`` and may be empty or
    contain further ``=`` characters.  Keys are stripped of surrounding
    whitespace; values are kept verbatim.
    """
    key, sep, value = argument.partition("=")
    if not sep:
        raise InvalidParameterFormat(argument, "no '=' found")
    key = key.strip()
    if not key:
        raise InvalidParameterFormat(argument, "empty parameter name")
    return ParameterOverride(key=key, value=value)


def parse_overrides(arguments: Iterable[str]) -> list[ParameterOverride]:
    """Parse every override argument, rejecting conflicting duplicates.

    Repeating a key with the same value is harmless and collapsed;
    repeating it with a different value is ambiguous and rejected.
    """
    seen: dict[str, ParameterOverride] = {}
    for argument in arguments:
        override = parse_override(argument)
        previous = seen.get(override.key)
        if previous is not None and previous.value != override.value:
            raise InvalidParameterFormat(
                argument, f"parameter {override.key!r} given more than once"
            )
        seen[override.key] = override
    return list(seen.values())


def reconcile(
    deployed: Sequence[DeployedParameter],
    overrides: Sequence[ParameterOverride],
) -> EffectiveParameterSet:
    """Merge overrides with the deployed parameters.

    The result contains exactly the union of both key sets, ordered by key.
    Overrides always win and are submitted as literals; every other
    deployed key is marked to reuse its previous value.
    """
    by_key = {override.key: override for override in overrides}
    effective: dict[str, ParameterValue] = {}

    for parameter in deployed:
        override = by_key.get(parameter.key)
        if override is None:
            effective[parameter.key] = ParameterValue.reuse(parameter.key)
        else:
            effective[parameter.key] = ParameterValue.literal(parameter.key, override.value)

    for key, override in by_key.items():
        if key not in effective:
            effective[key] = ParameterValue.literal(key, override.value)

    result = {key: effective[key] for key in sorted(effective)}
    _logger.debug(
        "parameters_reconciled",
        reused=sorted(k for k, v in result.items() if v.use_previous_value),
        overridden=sorted(k for k, v in result.items() if not v.use_previous_value),
    )
    return result
