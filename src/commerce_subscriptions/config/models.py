"""Pydantic configuration models for subscriptions and the platform client."""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Any, Self

from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator

from commerce_subscriptions.destinations.validator import validate_destination


class FormatType(StrEnum):
    """Payload formats the platform can deliver."""

    PLATFORM = "Platform"
    CLOUD_EVENTS = "CloudEvents"


class FormatConfig(BaseModel):
    """Message payload format."""

    type: FormatType = FormatType.PLATFORM
    cloud_events_version: str | None = None

    @model_validator(mode="after")
    def check_cloud_events_version(self) -> Self:
        """CloudEvents needs a spec version; Platform must not carry one."""
        if self.type == FormatType.CLOUD_EVENTS:
            if not self.cloud_events_version:
                self.cloud_events_version = "1.0"
        elif self.cloud_events_version is not None:
            msg = "cloud_events_version is only valid when format type is 'CloudEvents'"
            raise ValueError(msg)
        return self

    def to_draft(self) -> dict[str, Any]:
        draft: dict[str, Any] = {"type": self.type.value}
        if self.type == FormatType.CLOUD_EVENTS:
            draft["cloudEventsVersion"] = self.cloud_events_version
        return draft


class ChangeSubscription(BaseModel):
    """Subscribe to change notifications for the given resource types."""

    resource_type_ids: list[str] = Field(min_length=1)


class MessageSubscription(BaseModel):
    """Subscribe to messages of a resource type, optionally filtered by type."""

    resource_type_id: str = Field(min_length=1)
    types: list[str] = Field(default_factory=list)


SubscriptionKey = Annotated[str, Field(pattern=r"^[A-Za-z0-9_-]{2,256}$")]


class SubscriptionConfig(BaseModel, extra="forbid"):
    """Declared state of one subscription."""

    key: SubscriptionKey | None = None
    destination: dict[str, Any]
    format: FormatConfig = FormatConfig()
    changes: list[ChangeSubscription] = Field(default_factory=list)
    messages: list[MessageSubscription] = Field(default_factory=list)

    @field_validator("destination")
    @classmethod
    def validate_destination_block(cls, v: dict[str, Any]) -> dict[str, Any]:
        """Reject malformed destinations with the full list of problems."""
        error = validate_destination(v)
        if error is not None:
            raise ValueError("; ".join(error.messages()))
        return v

    @model_validator(mode="after")
    def check_has_subscriptions(self) -> Self:
        """A subscription without changes or messages never fires."""
        if not self.changes and not self.messages:
            msg = "at least one of 'changes' or 'messages' must be configured"
            raise ValueError(msg)
        return self


class RetryConfig(BaseModel):
    """Retry / backoff for transient API failures."""

    max_attempts: int = Field(default=3, ge=1)
    initial_wait_seconds: float = Field(default=0.5, ge=0)
    max_wait_seconds: float = Field(default=10.0, gt=0)


class ClientConfig(BaseModel):
    """Platform API endpoint and OAuth2 client credentials."""

    api_url: str = "https://api.europe-west1.gcp.commercetools.com"
    auth_url: str = "https://auth.europe-west1.gcp.commercetools.com"
    project_key: str = Field(min_length=1)
    client_id: str = Field(min_length=1)
    client_secret: SecretStr
    scopes: list[str] = Field(default_factory=list)
    timeout_seconds: float = Field(default=30.0, gt=0)
    retry: RetryConfig = RetryConfig()

    @field_validator("api_url", "auth_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class DestroyWaitConfig(BaseModel):
    """Polling budget used when waiting for a delete to become visible."""

    timeout_seconds: float = Field(default=60.0, ge=0)
    interval_seconds: float = Field(default=2.0, ge=0)


class ProviderConfig(BaseModel, extra="forbid"):
    """Everything needed to talk to the platform."""

    client: ClientConfig
    destroy_wait: DestroyWaitConfig = DestroyWaitConfig()
