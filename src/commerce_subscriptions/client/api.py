"""Thin sync wrapper around the platform's subscription endpoints."""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, Field
from tenacity import (
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from commerce_subscriptions.client.auth import TokenProvider
from commerce_subscriptions.config.models import ClientConfig

logger = structlog.get_logger()

_TRANSIENT_STATUS = frozenset({429, 500, 502, 503, 504})


class ApiError(Exception):
    """Raised when a platform API call returns a non-2xx response."""

    def __init__(
        self,
        status_code: int,
        message: str,
        errors: list[dict[str, Any]] | None = None,
    ) -> None:
        self.status_code = status_code
        self.message = message
        self.errors = errors or []
        super().__init__(f"{status_code}: {message}")

    @property
    def codes(self) -> list[str]:
        return [e["code"] for e in self.errors if "code" in e]

    @classmethod
    def from_response(cls, resp: httpx.Response) -> ApiError:
        try:
            body = resp.json()
        except ValueError:
            return cls(resp.status_code, resp.text or resp.reason_phrase)
        if not isinstance(body, dict):
            return cls(resp.status_code, resp.text)
        return cls(
            resp.status_code,
            body.get("message", resp.reason_phrase),
            body.get("errors"),
        )


def is_not_found(exc: BaseException) -> bool:
    """Whether *exc* is the platform telling us the resource does not exist."""
    if isinstance(exc, ApiError):
        return exc.status_code == 404 or "ResourceNotFound" in exc.codes
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code == 404
    return False


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, httpx.TransportError):
        return True
    return isinstance(exc, ApiError) and exc.status_code in _TRANSIENT_STATUS


class RemoteSubscription(BaseModel):
    """Subscription as returned by the platform."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    version: int
    key: str | None = None
    destination: dict[str, Any] = Field(default_factory=dict)
    format: dict[str, Any] = Field(default_factory=dict)
    changes: list[dict[str, Any]] = Field(default_factory=list)
    messages: list[dict[str, Any]] = Field(default_factory=list)
    status: str | None = None


class PlatformClient:
    """Subscription CRUD against one project of the platform API."""

    def __init__(
        self,
        config: ClientConfig,
        http: httpx.Client | None = None,
    ) -> None:
        self._config = config
        self._http = http or httpx.Client(timeout=config.timeout_seconds)
        self._auth = TokenProvider(config, self._http)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> PlatformClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # -- Transport -------------------------------------------------------------

    def _url(self, path: str) -> str:
        return f"{self._config.api_url}/{self._config.project_key}{path}"

    def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        resp = self._http.request(
            method,
            self._url(path),
            headers={"Authorization": f"Bearer {self._auth.token()}"},
            **kwargs,
        )
        if resp.status_code == 401:
            # Token revoked or expired early; fetch a new one once.
            self._auth.invalidate()
            resp = self._http.request(
                method,
                self._url(path),
                headers={"Authorization": f"Bearer {self._auth.token()}"},
                **kwargs,
            )
        if resp.is_error:
            raise ApiError.from_response(resp)
        return resp

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        retry_cfg = self._config.retry
        retrying = Retrying(
            retry=retry_if_exception(_is_transient),
            stop=stop_after_attempt(retry_cfg.max_attempts),
            wait=wait_exponential(
                multiplier=retry_cfg.initial_wait_seconds,
                max=retry_cfg.max_wait_seconds,
            ),
            reraise=True,
        )
        return retrying(self._send, method, path, **kwargs)

    # -- Subscriptions ---------------------------------------------------------

    def get_subscription_raw(self, subscription_id: str) -> RemoteSubscription:
        """Fetch a subscription; a missing one raises :class:`ApiError` (404)."""
        resp = self._request("GET", f"/subscriptions/{subscription_id}")
        return RemoteSubscription.model_validate(resp.json())

    def get_subscription(self, subscription_id: str) -> RemoteSubscription | None:
        """Fetch a subscription, returning ``None`` when it does not exist."""
        try:
            return self.get_subscription_raw(subscription_id)
        except ApiError as exc:
            if is_not_found(exc):
                return None
            raise

    def create_subscription(self, draft: dict[str, Any]) -> RemoteSubscription:
        resp = self._request("POST", "/subscriptions", json=draft)
        sub = RemoteSubscription.model_validate(resp.json())
        logger.info("subscription.created", subscription_id=sub.id, key=sub.key)
        return sub

    def update_subscription(
        self,
        subscription_id: str,
        version: int,
        actions: list[dict[str, Any]],
    ) -> RemoteSubscription:
        resp = self._request(
            "POST",
            f"/subscriptions/{subscription_id}",
            json={"version": version, "actions": actions},
        )
        sub = RemoteSubscription.model_validate(resp.json())
        logger.info(
            "subscription.updated",
            subscription_id=sub.id,
            version=sub.version,
            actions=[a["action"] for a in actions],
        )
        return sub

    def delete_subscription(self, subscription_id: str, version: int) -> None:
        self._request(
            "DELETE",
            f"/subscriptions/{subscription_id}",
            params={"version": version},
        )
        logger.info("subscription.deleted", subscription_id=subscription_id)
