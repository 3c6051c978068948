from __future__ import annotations

from datetime import UTC, datetime


def utcnow() -> datetime:
  return datetime.now(UTC)


def utc_midnight(now: datetime) -> datetime:
  """Start of the UTC day containing `now`."""
  return now.astimezone(UTC).replace(hour=0, minute=0, second=0, microsecond=0)
