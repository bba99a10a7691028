"""Post-delete verification.

After a delete the platform may keep reporting the object for a while, and
some backends signal absence through an error instead of an empty result.
:func:`confirm_destroyed` folds both absence signals into success while
keeping every other failure distinct, so callers can apply their own retry
policy.  It performs exactly one lookup and never sleeps.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

import structlog

logger = structlog.get_logger()


class RemoteObject(Protocol):
    """Anything the lookup returns; only ``id`` is inspected."""

    @property
    def id(self) -> str: ...


Lookup = Callable[[str], "RemoteObject | None"]
NotFoundClassifier = Callable[[BaseException], bool]


@dataclass(frozen=True)
class ResourceHandle:
    """Identifier plus last known version of a remote resource."""

    id: str
    version: int | None = None


class DestroyError(Exception):
    """Base class for destroy confirmation failures."""

    def __init__(self, resource_id: str, message: str) -> None:
        self.resource_id = resource_id
        super().__init__(message)


class StillExists(DestroyError):
    """The platform still reports the resource after the delete."""

    def __init__(self, resource_id: str) -> None:
        super().__init__(resource_id, f"subscription ({resource_id}) still exists")


class Inconclusive(DestroyError):
    """The lookup failed for a reason other than "not found"."""

    def __init__(self, resource_id: str, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(
            resource_id,
            f"could not confirm subscription ({resource_id}) was destroyed: {cause}",
        )


def confirm_destroyed(
    resource_id: str,
    lookup: Lookup,
    is_not_found: NotFoundClassifier,
) -> DestroyError | None:
    """Check once whether *resource_id* is gone.

    Returns ``None`` when the deletion is confirmed, :class:`StillExists`
    when the platform still reports the object, and :class:`Inconclusive`
    when the lookup failed with anything but a not-found error.
    """
    try:
        remote: Any = lookup(resource_id)
    except Exception as exc:
        if is_not_found(exc):
            logger.debug(
                "subscription.destroy_confirmed",
                resource_id=resource_id,
                channel="error",
            )
            return None
        logger.warning(
            "subscription.destroy_inconclusive",
            resource_id=resource_id,
            error=str(exc),
        )
        return Inconclusive(resource_id, exc)

    if remote is not None and remote.id == resource_id:
        logger.info("subscription.still_exists", resource_id=resource_id)
        return StillExists(resource_id)

    logger.debug(
        "subscription.destroy_confirmed", resource_id=resource_id, channel="empty"
    )
    return None
