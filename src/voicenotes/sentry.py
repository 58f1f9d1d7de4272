"""Sentry error tracking for the voice notes service.

Usage:
    from voicenotes.sentry import init_sentry
    init_sentry(dsn=settings.sentry_dsn)

    # Capture exceptions manually
    from voicenotes.sentry import capture_exception
    try:
        risky_operation()
    except Exception as e:
        capture_exception(e)
        raise
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, cast

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

if TYPE_CHECKING:
    from sentry_sdk._types import Event, Hint

logger = logging.getLogger(__name__)

SENSITIVE_KEYS = {
    "token",
    "api_key",
    "apikey",
    "secret",
    "password",
    "authorization",
    "bearer",
    "openai_api_key",
    "anthropic_api_key",
    "gemini_api_key",
    "assemblyai_api_key",
    "notion_api_key",
    "supabase_key",
    "sentry_dsn",
}

_initialized = False


def init_sentry(
    dsn: str | None = None,
    environment: str = "production",
    release: str | None = None,
    traces_sample_rate: float = 0.1,
) -> bool:
    """Initialize the Sentry SDK.

    An empty DSN disables Sentry, which is the expected setup in development.

    Returns:
        True if Sentry was initialized, False if skipped.
    """
    global _initialized

    if _initialized:
        logger.debug("Sentry already initialized")
        return True

    if not dsn:
        logger.info("No SENTRY_DSN configured, error tracking disabled")
        return False

    if release is None:
        from voicenotes import __version__

        release = f"voicenotes@{__version__}"

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        release=release,
        traces_sample_rate=traces_sample_rate,
        integrations=[
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
        ],
        send_default_pii=False,
        attach_stacktrace=True,
        before_send=_before_send,
    )

    _initialized = True
    logger.info("Sentry initialized: environment=%s, release=%s", environment, release)
    return True


def _before_send(event: Event, hint: Hint) -> Event | None:
    # Transient network errors are retried by the clients
    if "exc_info" in hint:
        exc_type, _, _ = hint["exc_info"]
        if exc_type.__name__ in ("TimeoutError", "ConnectionError"):
            return None

    if "request" in event:
        scrub_dict(cast(dict[str, Any], event["request"]))

    if "breadcrumbs" in event:
        breadcrumbs = cast(dict[str, Any], event["breadcrumbs"])
        for breadcrumb in breadcrumbs.get("values", []):
            if "data" in breadcrumb:
                scrub_dict(breadcrumb["data"])

    return event


def scrub_dict(data: dict[str, Any]) -> None:
    """Scrub sensitive keys from a dictionary in-place."""
    for key in list(data.keys()):
        if key.lower() in SENSITIVE_KEYS:
            data[key] = "[REDACTED]"
        elif isinstance(data[key], dict):
            scrub_dict(data[key])


def add_breadcrumb(
    message: str,
    category: str = "default",
    level: str = "info",
    data: dict[str, Any] | None = None,
) -> None:
    if not _initialized:
        return
    sentry_sdk.add_breadcrumb(message=message, category=category, level=level, data=data or {})


def capture_exception(exception: BaseException | None = None) -> str | None:
    """Send an exception to Sentry. Returns the event id if captured."""
    if not _initialized:
        return None
    return sentry_sdk.capture_exception(exception)


def flush(timeout: float = 2.0) -> None:
    """Flush pending events before shutdown."""
    if not _initialized:
        return
    sentry_sdk.flush(timeout=timeout)
