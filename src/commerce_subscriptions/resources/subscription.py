"""Subscription resource lifecycle on top of the platform client.

Every create/update validates the destination before any request is made.
"""

from __future__ import annotations

from typing import Any

import structlog

from commerce_subscriptions.client.api import (
    ApiError,
    PlatformClient,
    RemoteSubscription,
    is_not_found,
)
from commerce_subscriptions.config.models import DestroyWaitConfig, SubscriptionConfig
from commerce_subscriptions.destinations.models import build_destination
from commerce_subscriptions.lifecycle.destroy import (
    DestroyError,
    ResourceHandle,
    confirm_destroyed,
)
from commerce_subscriptions.lifecycle.polling import wait_until_destroyed

logger = structlog.get_logger()


def build_draft(
    config: SubscriptionConfig, *, reveal_secrets: bool = True
) -> dict[str, Any]:
    """Render the platform SubscriptionDraft for *config*.

    Raises ``DestinationError`` if the destination block is invalid.
    """
    destination = build_destination(config.destination)
    draft: dict[str, Any] = {
        "destination": destination.to_draft(reveal_secrets=reveal_secrets),
        "format": config.format.to_draft(),
        "changes": [
            {"resourceTypeId": type_id}
            for change in config.changes
            for type_id in change.resource_type_ids
        ],
        "messages": [
            {"resourceTypeId": m.resource_type_id, "types": list(m.types)}
            for m in config.messages
        ],
    }
    if config.key is not None:
        draft["key"] = config.key
    return draft


def diff_actions(
    remote: RemoteSubscription, draft: dict[str, Any]
) -> list[dict[str, Any]]:
    """Update actions that move *remote* to the state described by *draft*."""
    actions: list[dict[str, Any]] = []
    if draft.get("key") != remote.key:
        actions.append({"action": "setKey", "key": draft.get("key")})
    # The platform may echo extra destination fields; compare only ours.
    declared = draft["destination"]
    if {k: remote.destination.get(k) for k in declared} != declared:
        actions.append(
            {"action": "changeDestination", "destination": draft["destination"]}
        )
    if draft["changes"] != remote.changes:
        actions.append({"action": "setChanges", "changes": draft["changes"]})
    if draft["messages"] != remote.messages:
        actions.append({"action": "setMessages", "messages": draft["messages"]})
    return actions


class SubscriptionService:
    """Create, read, update, delete and verify-destroy subscriptions."""

    def __init__(
        self,
        client: PlatformClient,
        destroy_wait: DestroyWaitConfig | None = None,
    ) -> None:
        self._client = client
        self._destroy_wait = destroy_wait or DestroyWaitConfig()

    def plan(self, config: SubscriptionConfig) -> dict[str, Any]:
        """Validate and render the draft with secrets masked.  No I/O."""
        return build_draft(config, reveal_secrets=False)

    def create(self, config: SubscriptionConfig) -> ResourceHandle:
        draft = build_draft(config)
        remote = self._client.create_subscription(draft)
        return ResourceHandle(id=remote.id, version=remote.version)

    def read(self, handle: ResourceHandle) -> RemoteSubscription | None:
        return self._client.get_subscription(handle.id)

    def update(
        self, handle: ResourceHandle, config: SubscriptionConfig
    ) -> ResourceHandle:
        draft = build_draft(config)
        remote = self._client.get_subscription_raw(handle.id)
        actions = diff_actions(remote, draft)
        if not actions:
            logger.info("subscription.up_to_date", subscription_id=handle.id)
            return ResourceHandle(id=remote.id, version=remote.version)
        if handle.version is not None and handle.version != remote.version:
            logger.warning(
                "subscription.version_drift",
                subscription_id=handle.id,
                expected=handle.version,
                actual=remote.version,
            )
        updated = self._client.update_subscription(remote.id, remote.version, actions)
        return ResourceHandle(id=updated.id, version=updated.version)

    def delete(self, handle: ResourceHandle) -> None:
        """Delete *handle*; an already-missing subscription is left alone."""
        version = handle.version
        if version is None:
            remote = self._client.get_subscription(handle.id)
            if remote is None:
                logger.info("subscription.already_gone", subscription_id=handle.id)
                return
            version = remote.version
        try:
            self._client.delete_subscription(handle.id, version)
        except ApiError as exc:
            if not is_not_found(exc):
                raise
            logger.info("subscription.already_gone", subscription_id=handle.id)

    def confirm_destroyed(self, resource_id: str) -> DestroyError | None:
        return confirm_destroyed(
            resource_id, self._client.get_subscription_raw, is_not_found
        )

    def wait_until_destroyed(
        self, resource_id: str, config: DestroyWaitConfig | None = None
    ) -> DestroyError | None:
        return wait_until_destroyed(
            resource_id,
            self._client.get_subscription_raw,
            is_not_found,
            config or self._destroy_wait,
        )
