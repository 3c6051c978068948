from shopfloor.config import Settings
from shopfloor.storage.cutting_repo import CuttingRepository
from shopfloor.storage.postgres_cutting_repo import PostgresCuttingRepository


def _get_cutting_repo(settings: Settings) -> CuttingRepository:
  """Return the active cutting repository."""

  # Enforce Postgres-backed storage for the job tree.

  if not settings.pg_dsn:
    raise ValueError("SHOPFLOOR_PG_DSN must be set to enable Postgres persistence.")

  return PostgresCuttingRepository()
