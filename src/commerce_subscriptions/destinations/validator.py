"""Destination block validation.

Checks a single ``destination`` block before anything is sent to the
platform.  Validation is exhaustive: every missing required field of the
resolved kind is reported at once so the operator can fix them in one pass.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from commerce_subscriptions.destinations.errors import (
    DestinationError,
    MissingFields,
    MissingOrInvalidType,
    UnknownDestinationType,
)
from commerce_subscriptions.destinations.kinds import REQUIRED_FIELDS, resolve_kind


def _is_set(value: Any) -> bool:
    return value is not None and value != ""


def validate_destination(config: Mapping[str, Any]) -> DestinationError | None:
    """Validate one destination block.

    Returns ``None`` when the block is acceptable, otherwise the error
    describing why it is not.  Fields that don't belong to the resolved
    kind are ignored.
    """
    type_name = config.get("type")
    if not isinstance(type_name, str) or not type_name:
        return MissingOrInvalidType(type_name)

    kind = resolve_kind(type_name)
    if kind is None:
        return UnknownDestinationType(type_name)

    missing = tuple(
        field for field in REQUIRED_FIELDS[kind] if not _is_set(config.get(field))
    )
    if missing:
        return MissingFields(kind, missing, type_name=type_name)
    return None


def check_destination(config: Mapping[str, Any]) -> None:
    """Like :func:`validate_destination` but raises the error instead."""
    error = validate_destination(config)
    if error is not None:
        raise error
