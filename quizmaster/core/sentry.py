"""Sentry error reporting, enabled only when SENTRY_DSN is set.

sentry-sdk's httpx integration records outbound URLs as breadcrumbs and span
data, and the Gemini key is a query parameter, so events and breadcrumbs are
scrubbed before they leave the process.
"""

import logging
from typing import Any

from quizmaster.core.config import settings
from quizmaster.core.logging import redact_secrets

logger = logging.getLogger(__name__)


def scrub(value: Any) -> Any:
    """Recursively redact credentials from every string in an event payload."""
    if isinstance(value, str):
        return redact_secrets(value)
    if isinstance(value, dict):
        return {k: scrub(v) for k, v in value.items()}
    if isinstance(value, list):
        return [scrub(v) for v in value]
    return value


def _before_send(event: dict, hint: dict) -> dict:
    return scrub(event)


def _before_breadcrumb(crumb: dict, hint: dict) -> dict:
    return scrub(crumb)


def init_sentry() -> None:
    if not settings.sentry_dsn:
        logger.debug("Sentry DSN not configured, skipping")
        return

    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.app_env,
        traces_sample_rate=0.1 if settings.app_env == "production" else 1.0,
        send_default_pii=False,
        integrations=[FastApiIntegration(transaction_style="endpoint")],
        before_send=_before_send,
        before_breadcrumb=_before_breadcrumb,
        before_send_transaction=_before_send,
    )
    logger.info("Sentry initialized (env=%s)", settings.app_env)
