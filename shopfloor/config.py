"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class Settings:
  """Typed settings for the shopfloor service."""

  environment: str
  debug: bool
  allowed_origins: tuple[str, ...]
  log_max_bytes: int
  log_backup_count: int
  log_http_4xx: bool
  log_http_bodies: bool
  log_http_body_bytes: int
  pg_dsn: str | None
  pg_connect_timeout: int
  ws_send_timeout_seconds: float
  poll_interval_seconds: float


@dataclass(frozen=True)
class DatabaseSettings:
  """Typed settings for database connectivity."""

  debug: bool
  pg_dsn: str | None
  pg_connect_timeout: int


def _parse_origins(raw: str | None) -> tuple[str, ...]:
  if not raw:
    raise ValueError("SHOPFLOOR_ALLOWED_ORIGINS must be set to one or more origins.")

  origins = [origin.strip() for origin in raw.split(",") if origin.strip()]

  if not origins:
    raise ValueError("SHOPFLOOR_ALLOWED_ORIGINS must include at least one origin.")

  if "*" in origins:
    raise ValueError("SHOPFLOOR_ALLOWED_ORIGINS must not include wildcard origins.")

  return tuple(origins)


def _parse_bool(raw: str | None) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None:
    return False

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _parse_positive_float(name: str, default: str) -> float:
  value = float(os.getenv(name, default))
  if value <= 0:
    raise ValueError(f"{name} must be a positive number.")
  return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("SHOPFLOOR_ENV", "development").lower()

  # Verbose SQL echo and diagnostics for local runs.
  debug = _parse_bool(os.getenv("SHOPFLOOR_DEBUG"))

  log_max_bytes = int(os.getenv("SHOPFLOOR_LOG_MAX_BYTES", "5242880"))  # 5MB default
  if log_max_bytes <= 0:
    raise ValueError("SHOPFLOOR_LOG_MAX_BYTES must be a positive integer.")

  log_backup_count = int(os.getenv("SHOPFLOOR_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("SHOPFLOOR_LOG_BACKUP_COUNT must be zero or a positive integer.")

  # Allow opt-in logging of 4xx HTTPExceptions for diagnostics.
  log_http_4xx = _parse_bool(os.getenv("SHOPFLOOR_LOG_HTTP_4XX"))
  # Allow opt-in logging of HTTP request/response bodies with a size cap.
  log_http_bodies = _parse_bool(os.getenv("SHOPFLOOR_LOG_HTTP_BODIES"))
  log_http_body_bytes = int(os.getenv("SHOPFLOOR_LOG_HTTP_BODY_BYTES", "2048"))
  if log_http_body_bytes <= 0:
    raise ValueError("SHOPFLOOR_LOG_HTTP_BODY_BYTES must be a positive integer.")

  pg_connect_timeout = int(os.getenv("SHOPFLOOR_PG_CONNECT_TIMEOUT", "5"))
  if pg_connect_timeout <= 0:
    raise ValueError("SHOPFLOOR_PG_CONNECT_TIMEOUT must be a positive integer.")

  # Shop-floor terminals resync every few seconds even when pushes are missed.
  ws_send_timeout_seconds = _parse_positive_float("SHOPFLOOR_WS_SEND_TIMEOUT_SECONDS", "2.0")
  poll_interval_seconds = _parse_positive_float("SHOPFLOOR_POLL_INTERVAL_SECONDS", "5.0")

  return Settings(
    environment=environment,
    debug=debug,
    allowed_origins=_parse_origins(os.getenv("SHOPFLOOR_ALLOWED_ORIGINS")),
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    log_http_4xx=log_http_4xx,
    log_http_bodies=log_http_bodies,
    log_http_body_bytes=log_http_body_bytes,
    pg_dsn=_optional_str(os.getenv("SHOPFLOOR_PG_DSN")) or _optional_str(os.getenv("DATABASE_URL")),
    pg_connect_timeout=pg_connect_timeout,
    ws_send_timeout_seconds=ws_send_timeout_seconds,
    poll_interval_seconds=poll_interval_seconds,
  )


@lru_cache(maxsize=1)
def get_database_settings() -> DatabaseSettings:
  """Load database settings without requiring web-runtime configuration like CORS."""
  # Keep database configuration isolated so migrations and offline scripts don't require unrelated env vars.
  debug = _parse_bool(os.getenv("SHOPFLOOR_DEBUG"))
  pg_connect_timeout = int(os.getenv("SHOPFLOOR_PG_CONNECT_TIMEOUT", "5"))
  if pg_connect_timeout <= 0:
    raise ValueError("SHOPFLOOR_PG_CONNECT_TIMEOUT must be a positive integer.")

  pg_dsn = _optional_str(os.getenv("SHOPFLOOR_PG_DSN")) or _optional_str(os.getenv("DATABASE_URL"))

  return DatabaseSettings(debug=debug, pg_dsn=pg_dsn, pg_connect_timeout=pg_connect_timeout)


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  value = raw.strip()
  if value == "":
    return None
  return value
