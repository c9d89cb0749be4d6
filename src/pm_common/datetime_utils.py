"""UTC datetime helpers shared by domain models and response schemas."""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(UTC)


def isoformat_or_none(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None
