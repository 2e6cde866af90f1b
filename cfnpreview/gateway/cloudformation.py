"""AWS CloudFormation implementation of StackGateway.

Each method performs exactly one API call (describe pages excepted) with
botocore's own retries disabled, and translates botocore errors into the
cfnpreview taxonomy at this seam.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

import boto3
import botocore.exceptions
import botocore.handlers
from botocore.config import Config

from cfnpreview.errors import RemoteRejected, RemoteTransientError, StackNotFound
from cfnpreview.gateway.base import ChangesetPoll, StackGateway
from cfnpreview.models.changeset import ChangeAction, ChangeRecord, Replacement
from cfnpreview.models.parameters import (
    DeployedParameter,
    EffectiveParameterSet,
    ParameterValue,
    StackIdentity,
)
from cfnpreview.observability.logging import get_logger

if TYPE_CHECKING:
    from cfnpreview.models.config import PreviewConfig

_logger = get_logger("gateway.cloudformation")

# Single attempt: a failing call is reported, not silently retried.
_CLIENT_CONFIG = Config(retries={"total_max_attempts": 1, "mode": "standard"})

_THROTTLING_CODES = frozenset({"Throttling", "ThrottlingException", "RequestLimitExceeded"})


def build_client(region: str = "") -> Any:
    """Create a CloudFormation client from the ambient credential chain."""
    session = boto3.session.Session()
    return session.client("cloudformation", region_name=region or None, config=_CLIENT_CONFIG)


def _error_code(exc: botocore.exceptions.ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


def _error_message(exc: botocore.exceptions.ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Message", "")) or str(exc)


def _is_missing_stack(exc: botocore.exceptions.ClientError) -> bool:
    return _error_code(exc) == "ValidationError" and "does not exist" in _error_message(exc)


def _to_parameter(raw: dict[str, Any]) -> DeployedParameter:
    return DeployedParameter(
        key=raw["ParameterKey"],
        value=raw.get("ResolvedValue", raw.get("ParameterValue")),
    )


def _to_api_parameter(key: str, value: ParameterValue) -> dict[str, Any]:
    if value.use_previous_value:
        return {"ParameterKey": key, "UsePreviousValue": True}
    return {"ParameterKey": key, "ParameterValue": value.value}


def to_change_record(change: dict[str, Any]) -> ChangeRecord | None:
    """Convert one entry of DescribeChangeSet ``Changes``.

    Returns None for entries that are not resource changes or carry an
    action outside the supported set.
    """
    if change.get("Type") != "Resource":
        _logger.debug("change_skipped", type=change.get("Type"))
        return None
    resource = change.get("ResourceChange", {})
    try:
        action = ChangeAction(resource.get("Action", ""))
    except ValueError:
        _logger.warning(
            "change_action_unsupported",
            action=resource.get("Action"),
            logical_id=resource.get("LogicalResourceId"),
        )
        return None
    raw_replacement = resource.get("Replacement")
    replacement = Replacement(raw_replacement) if raw_replacement in set(Replacement) else None
    return ChangeRecord(
        logical_id=resource.get("LogicalResourceId", ""),
        resource_type=resource.get("ResourceType", ""),
        action=action,
        replacement=replacement,
        physical_id=resource.get("PhysicalResourceId", ""),
        scope=tuple(resource.get("Scope", [])),
    )


class CloudFormationGateway(StackGateway):
    """StackGateway backed by a boto3 CloudFormation client.

    Args:
        client:       A boto3 ``cloudformation`` client.
        name_prefix:  Prefix of generated changeset names.
        capabilities: Capabilities acknowledged on changeset creation.
    """

    def __init__(
        self,
        client: Any,
        name_prefix: str = "cfnpreview",
        capabilities: list[str] | None = None,
    ) -> None:
        self._client = client
        # GetTemplate bodies stay the exact text the stack was deployed with.
        client.meta.events.unregister(
            "after-call.cloudformation.GetTemplate",
            botocore.handlers.json_decode_template_body,
        )
        self._name_prefix = name_prefix
        self._capabilities = list(capabilities or [])

    @classmethod
    def from_config(cls, config: PreviewConfig) -> CloudFormationGateway:
        try:
            client = build_client(config.aws.region)
        except botocore.exceptions.BotoCoreError as exc:
            raise RemoteTransientError("client setup", exc) from exc
        return cls(
            client=client,
            name_prefix=config.changeset.name_prefix,
            capabilities=config.changeset.capabilities,
        )

    def fetch_current_template(self, stack: StackIdentity) -> str:
        try:
            response = self._client.get_template(StackName=stack.name, TemplateStage="Original")
        except botocore.exceptions.ClientError as exc:
            if _is_missing_stack(exc):
                raise StackNotFound(stack.name) from exc
            raise RemoteTransientError("GetTemplate", exc) from exc
        except botocore.exceptions.BotoCoreError as exc:
            raise RemoteTransientError("GetTemplate", exc) from exc
        return str(response.get("TemplateBody", ""))

    def fetch_deployed_parameters(self, stack: StackIdentity) -> list[DeployedParameter]:
        try:
            response = self._client.describe_stacks(StackName=stack.name)
        except botocore.exceptions.ClientError as exc:
            if _is_missing_stack(exc):
                raise StackNotFound(stack.name) from exc
            raise RemoteTransientError("DescribeStacks", exc) from exc
        except botocore.exceptions.BotoCoreError as exc:
            raise RemoteTransientError("DescribeStacks", exc) from exc
        stacks = response.get("Stacks", [])
        if not stacks:
            raise StackNotFound(stack.name)
        return [_to_parameter(raw) for raw in stacks[0].get("Parameters", [])]

    def create_changeset(
        self,
        stack: StackIdentity,
        template_body: str,
        parameters: EffectiveParameterSet,
    ) -> str:
        name = f"{self._name_prefix}-{uuid.uuid4().hex[:12]}"
        try:
            response = self._client.create_change_set(
                StackName=stack.name,
                ChangeSetName=name,
                ChangeSetType="UPDATE",
                TemplateBody=template_body,
                Parameters=[_to_api_parameter(k, v) for k, v in parameters.items()],
                Capabilities=self._capabilities,
                Description="Preview only; deleted after reporting",
            )
        except botocore.exceptions.ClientError as exc:
            if _error_code(exc) in _THROTTLING_CODES:
                raise RemoteTransientError("CreateChangeSet", exc) from exc
            if _is_missing_stack(exc):
                raise StackNotFound(stack.name) from exc
            raise RemoteRejected(_error_message(exc)) from exc
        except botocore.exceptions.BotoCoreError as exc:
            raise RemoteTransientError("CreateChangeSet", exc) from exc
        return str(response["Id"])

    def poll_changeset(self, handle: str) -> ChangesetPoll:
        try:
            response = self._client.describe_change_set(ChangeSetName=handle)
        except (botocore.exceptions.ClientError, botocore.exceptions.BotoCoreError) as exc:
            raise RemoteTransientError("DescribeChangeSet", exc) from exc
        return ChangesetPoll(
            status=response.get("Status", ""),
            reason=response.get("StatusReason", ""),
        )

    def describe_changeset(self, handle: str) -> list[ChangeRecord]:
        records: list[ChangeRecord] = []
        kwargs: dict[str, str] = {"ChangeSetName": handle}
        while True:
            try:
                response = self._client.describe_change_set(**kwargs)
            except (botocore.exceptions.ClientError, botocore.exceptions.BotoCoreError) as exc:
                raise RemoteTransientError("DescribeChangeSet", exc) from exc
            for change in response.get("Changes", []):
                record = to_change_record(change)
                if record is not None:
                    records.append(record)
            next_token = response.get("NextToken")
            if not next_token:
                return records
            kwargs["NextToken"] = next_token

    def delete_changeset(self, handle: str) -> None:
        try:
            self._client.delete_change_set(ChangeSetName=handle)
        except (botocore.exceptions.ClientError, botocore.exceptions.BotoCoreError) as exc:
            raise RemoteTransientError("DeleteChangeSet", exc) from exc
