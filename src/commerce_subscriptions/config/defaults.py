"""Provider config layering: packaged defaults, ``CTP_*`` environment, file."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from commerce_subscriptions.config.models import ProviderConfig

DEFAULTS_PATH = Path(__file__).parent / "defaults" / "provider.yaml"

# (client field, environment variable)
ENV_VARS: tuple[tuple[str, str], ...] = (
    ("project_key", "CTP_PROJECT_KEY"),
    ("client_id", "CTP_CLIENT_ID"),
    ("client_secret", "CTP_CLIENT_SECRET"),
    ("api_url", "CTP_API_URL"),
    ("auth_url", "CTP_AUTH_URL"),
)


def provider_defaults() -> dict[str, Any]:
    """Packaged provider defaults (endpoints, retry and destroy-wait budgets)."""
    with DEFAULTS_PATH.open() as f:
        return yaml.safe_load(f) or {}


def env_overrides(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Client settings taken from ``CTP_*`` variables; unset or empty ones are skipped."""
    env = os.environ if environ is None else environ
    client: dict[str, Any] = {
        field: env[var] for field, var in ENV_VARS if env.get(var)
    }
    if env.get("CTP_SCOPES"):
        client["scopes"] = env["CTP_SCOPES"].split()
    return {"client": client} if client else {}


def merge_configs(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Recursively deep-merge *overrides* into *base* (non-mutating)."""
    merged: dict[str, Any] = {**base}
    for key, value in overrides.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value
    return merged


def build_provider_config(
    overrides: dict[str, Any] | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> ProviderConfig:
    """Validate defaults < environment < *overrides*, later layers winning."""
    merged = merge_configs(provider_defaults(), env_overrides(environ))
    merged = merge_configs(merged, overrides or {})
    return ProviderConfig.model_validate(merged)
