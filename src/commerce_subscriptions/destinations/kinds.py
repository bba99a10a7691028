"""Destination kinds, accepted type spellings, and required field sets."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from types import MappingProxyType


class DestinationKind(StrEnum):
    """Supported destination transports.

    Values are the platform's current wire type names.
    """

    QUEUE = "SQS"
    EVENT_GRID = "EventGrid"
    SERVICE_BUS = "AzureServiceBus"
    PUB_SUB = "GoogleCloudPubSub"
    EVENT_BUS = "EventBridge"


# Every spelling ever accepted for ``destination.type``.  The platform renamed
# several types over time; old spellings must stay here permanently.
DESTINATION_ALIASES: Mapping[str, DestinationKind] = MappingProxyType(
    {
        "SQS": DestinationKind.QUEUE,
        "azure_eventgrid": DestinationKind.EVENT_GRID,
        "EventGrid": DestinationKind.EVENT_GRID,
        "azure_servicebus": DestinationKind.SERVICE_BUS,
        "AzureServiceBus": DestinationKind.SERVICE_BUS,
        "google_pubsub": DestinationKind.PUB_SUB,
        "GoogleCloudPubSub": DestinationKind.PUB_SUB,
        "event_bridge": DestinationKind.EVENT_BUS,
        "EventBridge": DestinationKind.EVENT_BUS,
    }
)

REQUIRED_FIELDS: Mapping[DestinationKind, tuple[str, ...]] = MappingProxyType(
    {
        DestinationKind.QUEUE: ("queue_url", "access_key", "access_secret", "region"),
        DestinationKind.EVENT_GRID: ("uri", "access_key"),
        DestinationKind.SERVICE_BUS: ("connection_string",),
        DestinationKind.PUB_SUB: ("project_id", "topic"),
        DestinationKind.EVENT_BUS: ("region", "account_id"),
    }
)


def resolve_kind(type_name: str) -> DestinationKind | None:
    """Map a ``type`` spelling to its kind (exact, case-sensitive match)."""
    return DESTINATION_ALIASES.get(type_name)


def aliases_for(kind: DestinationKind) -> list[str]:
    """All accepted spellings for *kind*, in table order."""
    return [name for name, k in DESTINATION_ALIASES.items() if k == kind]
