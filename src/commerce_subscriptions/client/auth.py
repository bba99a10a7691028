"""OAuth2 client-credentials token provider for the platform API."""

from __future__ import annotations

import time

import httpx
import structlog

from commerce_subscriptions.config.models import ClientConfig

logger = structlog.get_logger()

# Refresh this many seconds before the token actually expires.
_EXPIRY_MARGIN_SECONDS = 60.0


class AuthError(Exception):
    """Raised when an access token cannot be obtained."""


class TokenProvider:
    """Fetches and caches a bearer token for the configured project."""

    def __init__(self, config: ClientConfig, http: httpx.Client) -> None:
        self._config = config
        self._http = http
        self._token: str | None = None
        self._expires_at = 0.0

    def _scope(self) -> str:
        if self._config.scopes:
            return " ".join(self._config.scopes)
        return f"manage_subscriptions:{self._config.project_key}"

    def token(self) -> str:
        if self._token is None or time.monotonic() >= self._expires_at:
            return self._refresh()
        return self._token

    def invalidate(self) -> None:
        self._token = None

    def _refresh(self) -> str:
        resp = self._http.post(
            f"{self._config.auth_url}/oauth/token",
            data={"grant_type": "client_credentials", "scope": self._scope()},
            auth=(
                self._config.client_id,
                self._config.client_secret.get_secret_value(),
            ),
        )
        if resp.status_code != 200:
            raise AuthError(
                f"Failed to obtain access token: {resp.status_code} {resp.text}"
            )
        body = resp.json()
        token: str = body["access_token"]
        self._token = token
        expires_in = float(body.get("expires_in", 0))
        ttl = max(expires_in - _EXPIRY_MARGIN_SECONDS, 0)
        self._expires_at = time.monotonic() + ttl
        logger.info(
            "platform_client.token_refreshed",
            project_key=self._config.project_key,
            expires_in=expires_in,
        )
        return token
