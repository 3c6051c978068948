"""Database failure classification and read retry logic."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError, SQLAlchemyError

from shopfloor.cutting.errors import TransientIOError

logger = logging.getLogger(__name__)


class DBFailureClassification:
  """Classification result for a database failure."""

  def __init__(self, *, retryable: bool, reason: str, sqlstate: str | None, category: str) -> None:
    self.retryable = retryable
    self.reason = reason
    self.sqlstate = sqlstate
    self.category = category


def _extract_sqlstate(exc: Exception) -> str | None:
  """Extract Postgres SQLSTATE from SQLAlchemy exception."""
  if isinstance(exc, DBAPIError) and hasattr(exc, "orig"):
    if hasattr(exc.orig, "pgcode") and exc.orig.pgcode:
      return str(exc.orig.pgcode)
    # asyncpg exposes the code as sqlstate
    if hasattr(exc.orig, "sqlstate") and exc.orig.sqlstate:
      return str(exc.orig.sqlstate)
  return None


def classify_db_failure(exc: Exception) -> DBFailureClassification:
  """
  Classify database failure as retryable or non-retryable.

  Primary signal: Postgres SQLSTATE
  Fallback: Exception type and message patterns

  Retryable errors (transient):
    - 40001: serialization failure
    - 40P01: deadlock detected
    - 08xxx: connection exceptions
    - Connection drops/resets

  Non-retryable errors (permanent):
    - 23xxx: integrity violations (unique, FK, not null, check)
    - 42xxx: schema/SQL errors
    - Programming errors
  """
  sqlstate = _extract_sqlstate(exc)

  if sqlstate == "40001":
    return DBFailureClassification(retryable=True, reason="Serialization failure - transaction conflict", sqlstate=sqlstate, category="serialization_conflict")

  if sqlstate == "40P01":
    return DBFailureClassification(retryable=True, reason="Deadlock detected", sqlstate=sqlstate, category="deadlock")

  if sqlstate and sqlstate.startswith("08"):
    return DBFailureClassification(retryable=True, reason="Connection exception", sqlstate=sqlstate, category="connectivity_error")

  if sqlstate and sqlstate.startswith("23"):
    violation_types = {
      "23502": "not null violation",
      "23503": "foreign key violation",
      "23505": "unique violation",
      "23514": "check constraint violation",
    }
    specific = violation_types.get(sqlstate, "integrity constraint violation")
    return DBFailureClassification(retryable=False, reason=f"Integrity violation: {specific}", sqlstate=sqlstate, category="integrity_error")

  if sqlstate and sqlstate.startswith("42"):
    return DBFailureClassification(retryable=False, reason="Schema/SQL error (undefined table/column, syntax error)", sqlstate=sqlstate, category="schema_error")

  if isinstance(exc, IntegrityError):
    return DBFailureClassification(retryable=False, reason="Integrity constraint violation (detected by exception type)", sqlstate=sqlstate, category="integrity_error")

  if isinstance(exc, (AttributeError, TypeError, ValueError, KeyError, IndexError)):
    return DBFailureClassification(retryable=False, reason=f"Programming error: {type(exc).__name__}", sqlstate=sqlstate, category="programming_error")

  if isinstance(exc, (ConnectionError, TimeoutError, InterfaceError)):
    return DBFailureClassification(retryable=True, reason="Connection refused or dropped", sqlstate=sqlstate, category="connectivity_error")

  if isinstance(exc, OperationalError):
    error_msg = str(exc).lower()
    if any(pattern in error_msg for pattern in ["connection", "timeout", "reset", "network", "broken pipe", "lost connection"]):
      return DBFailureClassification(retryable=True, reason="Transient connection/network error", sqlstate=sqlstate, category="connectivity_error")
    return DBFailureClassification(retryable=False, reason="Operational error (unknown cause)", sqlstate=sqlstate, category="operational_error_unknown")

  return DBFailureClassification(retryable=False, reason=f"Unknown error type: {type(exc).__name__}", sqlstate=sqlstate, category="unknown_error")


@asynccontextmanager
async def translate_db_errors(operation_name: str) -> AsyncIterator[None]:
  """Re-raise retryable database failures as TransientIOError; everything else propagates unchanged."""
  try:
    yield
  except (SQLAlchemyError, ConnectionError, TimeoutError) as exc:
    classification = classify_db_failure(exc)
    if not classification.retryable:
      raise
    logger.warning("DB operation failed transiently: operation=%s, category=%s, sqlstate=%s, reason=%s", operation_name, classification.category, classification.sqlstate or "none", classification.reason)
    raise TransientIOError(f"{operation_name} failed: {classification.reason}") from exc


async def execute_with_retry(*, operation_name: str, func: Any, max_attempts: int = 2, initial_backoff_ms: int = 100, max_backoff_ms: int = 2000, jitter: bool = True) -> Any:
  """
  Execute a read-only database operation with retry logic for transient failures.

  Args:
    operation_name: Human-readable name for logging (e.g., "job_detail_load")
    func: Async callable to execute (must not mutate state)
    max_attempts: Maximum number of attempts (initial + retries)
    initial_backoff_ms: Starting backoff delay in milliseconds
    max_backoff_ms: Maximum backoff delay in milliseconds
    jitter: Add randomness to backoff to avoid thundering herd

  Returns:
    Result from func

  Raises:
    TransientIOError once attempts are exhausted; any other error immediately
  """
  attempt = 0

  while True:
    attempt += 1

    try:
      result = await func()
      if attempt > 1:
        logger.info("DB operation succeeded after retry: operation=%s, attempt=%d/%d", operation_name, attempt, max_attempts)
      return result

    except TransientIOError:
      if attempt >= max_attempts:
        logger.error("DB operation failed after %d attempts: operation=%s - giving up", max_attempts, operation_name)
        raise

      backoff_ms = min(initial_backoff_ms * (2 ** (attempt - 1)), max_backoff_ms)
      if jitter:
        jitter_range = backoff_ms * 0.25
        backoff_ms += random.uniform(-jitter_range, jitter_range)

      logger.info("Retrying DB operation after backoff: operation=%s, attempt=%d/%d, backoff_ms=%.1f", operation_name, attempt, max_attempts, backoff_ms)
      await asyncio.sleep(backoff_ms / 1000.0)
