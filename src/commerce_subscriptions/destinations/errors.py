"""Destination validation errors.

The validator returns these as values.  They are also ``Exception``
subclasses so a caller that prefers raising can simply ``raise`` them.
"""

from __future__ import annotations

from commerce_subscriptions.destinations.kinds import DestinationKind


class DestinationError(Exception):
    """Base class for every destination validation failure."""

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.__dict__ == other.__dict__

    def __hash__(self) -> int:
        return hash((type(self), tuple(sorted(self.__dict__.items()))))

    def messages(self) -> list[str]:
        """Human-readable diagnostics, one per problem."""
        return [str(self)]


class MissingOrInvalidType(DestinationError):
    """``destination.type`` is absent, empty, or not a string."""

    def __init__(self, given: object = None) -> None:
        self.given = given
        super().__init__(self._render())

    def _render(self) -> str:
        if self.given is None:
            return "destination requires field 'type'"
        return (
            "destination field 'type' must be a non-empty string, "
            f"got {self.given!r}"
        )

    def __hash__(self) -> int:
        return hash((type(self), repr(self.given)))


class UnknownDestinationType(DestinationError):
    """``destination.type`` does not match any accepted spelling."""

    def __init__(self, given: str) -> None:
        self.given = given
        super().__init__(f"unknown destination type '{given}'")


class MissingFields(DestinationError):
    """One or more required fields of the resolved kind are missing or empty."""

    def __init__(
        self,
        kind: DestinationKind,
        missing: tuple[str, ...],
        type_name: str | None = None,
    ) -> None:
        self.kind = kind
        self.missing = tuple(missing)
        self.type_name = type_name or kind.value
        super().__init__("; ".join(self.messages()))

    def messages(self) -> list[str]:
        return [
            f"destination type '{self.type_name}' requires field '{field}'"
            for field in self.missing
        ]
