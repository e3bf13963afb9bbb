"""User-facing sentences for expiry results."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone

from core.domain.models import ErrorKind, ExpiryResult

logger = logging.getLogger(__name__)

_ERROR_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.NO_SUCH_HOST: "No such host.",
    ErrorKind.NO_ROUTE: "I don't understand what you typed.",
    ErrorKind.OTHER: "Something went wrong.",
}


def days_remaining(expires_at: datetime, now: datetime | None = None) -> int:
    """Whole days until `expires_at`, floored (negative once expired)."""

    now = now or datetime.now(timezone.utc)
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return math.floor((expires_at - now).total_seconds() / 86400)


def format_expiry(host: str, result: ExpiryResult, *, now: datetime | None = None) -> str:
    if result.error is not None:
        if result.error is ErrorKind.TIMEOUT:
            return f"Timed out connecting {host}"
        if result.error is ErrorKind.OTHER:
            logger.error("Resolving %s failed: %s", host, result.detail)
        return _ERROR_MESSAGES[result.error]

    days = days_remaining(result.expires_at, now)
    if days > 1:
        return f"{host} will expire in {days} days"
    if days == 1:
        return f"{host} will expire tomorrow"
    if days == 0:
        return f"{host} expires today"
    if days == -1:
        return f"{host} expired yesterday"
    return f"{host} expired {-days} days ago"
