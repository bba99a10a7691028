"""Caller-side polling around :func:`confirm_destroyed`.

Eventual consistency is tolerated here, by repeating single confirmation
calls within a time budget, never inside the confirmer itself.
"""

from __future__ import annotations

import structlog
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_result,
    stop_after_delay,
    wait_fixed,
)

from commerce_subscriptions.config.models import DestroyWaitConfig
from commerce_subscriptions.lifecycle.destroy import (
    DestroyError,
    Lookup,
    NotFoundClassifier,
    confirm_destroyed,
)

logger = structlog.get_logger()


def _not_confirmed(result: DestroyError | None) -> bool:
    return result is not None


def _last_result(retry_state: RetryCallState) -> DestroyError | None:
    assert retry_state.outcome is not None
    return retry_state.outcome.result()  # type: ignore[no-any-return]


def wait_until_destroyed(
    resource_id: str,
    lookup: Lookup,
    is_not_found: NotFoundClassifier,
    config: DestroyWaitConfig | None = None,
) -> DestroyError | None:
    """Poll until the resource is confirmed gone or the budget runs out.

    Returns ``None`` once a confirmation succeeds, otherwise the result of
    the final attempt (``StillExists`` or ``Inconclusive``).
    """
    cfg = config or DestroyWaitConfig()

    def _log_attempt(retry_state: RetryCallState) -> None:
        logger.info(
            "subscription.destroy_pending",
            resource_id=resource_id,
            attempt=retry_state.attempt_number,
            result=type(retry_state.outcome.result()).__name__
            if retry_state.outcome is not None
            else None,
        )

    retrying = Retrying(
        retry=retry_if_result(_not_confirmed),
        stop=stop_after_delay(cfg.timeout_seconds),
        wait=wait_fixed(cfg.interval_seconds),
        before_sleep=_log_attempt,
        retry_error_callback=_last_result,
    )
    return retrying(confirm_destroyed, resource_id, lookup, is_not_found)
