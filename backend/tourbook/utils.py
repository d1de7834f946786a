from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Return datetime normalized to UTC with timezone information."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_epoch_seconds(dt: datetime) -> int:
    """Whole seconds since the epoch, the granularity JWT 'iat' claims use."""
    return int(ensure_utc(dt).timestamp())


def normalize_email(value: Optional[str]) -> str:
    """Normalize an email address for storage and lookups."""
    if not value:
        return ""
    return value.strip().lower()


def redact_email(email: str) -> str:
    """Redact an email address for logging."""
    if "@" not in email:
        return "redacted"
    local, domain = email.split("@", 1)
    return f"{local[:2]}***@{domain}"
