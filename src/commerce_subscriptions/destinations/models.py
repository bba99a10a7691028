"""Typed destination models — one per kind, each carrying only its own fields."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Annotated, Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

from commerce_subscriptions.destinations.errors import UnknownDestinationType
from commerce_subscriptions.destinations.kinds import DestinationKind, resolve_kind
from commerce_subscriptions.destinations.validator import check_destination

NonEmptyStr = Annotated[str, Field(min_length=1)]


class _Destination(BaseModel, ABC):
    model_config = ConfigDict(extra="ignore", frozen=True)

    kind: ClassVar[DestinationKind]

    @field_validator("*", mode="before")
    @classmethod
    def numbers_as_strings(cls, value: Any) -> Any:
        # YAML reads unquoted account ids and project numbers as ints.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @abstractmethod
    def to_draft(self, *, reveal_secrets: bool = True) -> dict[str, Any]:
        """Render the platform's destination draft (camelCase, canonical type)."""


def _secret(value: SecretStr, reveal: bool) -> str:
    return value.get_secret_value() if reveal else str(value)


class SqsDestination(_Destination):
    """AWS SQS queue."""

    kind: ClassVar[DestinationKind] = DestinationKind.QUEUE

    queue_url: NonEmptyStr
    access_key: NonEmptyStr
    access_secret: SecretStr
    region: NonEmptyStr

    def to_draft(self, *, reveal_secrets: bool = True) -> dict[str, Any]:
        return {
            "type": self.kind.value,
            "queueUrl": self.queue_url,
            "accessKey": self.access_key,
            "accessSecret": _secret(self.access_secret, reveal_secrets),
            "region": self.region,
        }


class EventGridDestination(_Destination):
    """Azure Event Grid topic."""

    kind: ClassVar[DestinationKind] = DestinationKind.EVENT_GRID

    uri: NonEmptyStr
    access_key: SecretStr

    def to_draft(self, *, reveal_secrets: bool = True) -> dict[str, Any]:
        return {
            "type": self.kind.value,
            "uri": self.uri,
            "accessKey": _secret(self.access_key, reveal_secrets),
        }


class ServiceBusDestination(_Destination):
    """Azure Service Bus queue or topic."""

    kind: ClassVar[DestinationKind] = DestinationKind.SERVICE_BUS

    connection_string: SecretStr

    def to_draft(self, *, reveal_secrets: bool = True) -> dict[str, Any]:
        return {
            "type": self.kind.value,
            "connectionString": _secret(self.connection_string, reveal_secrets),
        }


class PubSubDestination(_Destination):
    """Google Cloud Pub/Sub topic."""

    kind: ClassVar[DestinationKind] = DestinationKind.PUB_SUB

    project_id: NonEmptyStr
    topic: NonEmptyStr

    def to_draft(self, *, reveal_secrets: bool = True) -> dict[str, Any]:
        return {
            "type": self.kind.value,
            "projectId": self.project_id,
            "topic": self.topic,
        }


class EventBridgeDestination(_Destination):
    """AWS EventBridge partner event source."""

    kind: ClassVar[DestinationKind] = DestinationKind.EVENT_BUS

    region: NonEmptyStr
    account_id: NonEmptyStr

    def to_draft(self, *, reveal_secrets: bool = True) -> dict[str, Any]:
        return {
            "type": self.kind.value,
            "region": self.region,
            "accountId": self.account_id,
        }


Destination = (
    SqsDestination
    | EventGridDestination
    | ServiceBusDestination
    | PubSubDestination
    | EventBridgeDestination
)

_DESTINATION_REGISTRY: dict[DestinationKind, type[_Destination]] = {
    DestinationKind.QUEUE: SqsDestination,
    DestinationKind.EVENT_GRID: EventGridDestination,
    DestinationKind.SERVICE_BUS: ServiceBusDestination,
    DestinationKind.PUB_SUB: PubSubDestination,
    DestinationKind.EVENT_BUS: EventBridgeDestination,
}


def build_destination(config: Mapping[str, Any]) -> Destination:
    """Validate a raw destination block and build its typed model.

    Raises :class:`~commerce_subscriptions.destinations.errors.DestinationError`
    when the block is invalid.
    """
    check_destination(config)
    kind = resolve_kind(config["type"])
    if kind is None:
        raise UnknownDestinationType(config["type"])
    cls = _DESTINATION_REGISTRY[kind]
    fields = {k: v for k, v in config.items() if k != "type"}
    return cls.model_validate(fields)  # type: ignore[return-value]
