"""Database initialization helper.

For local/dev environments where the target database may not exist yet.
CREATE DATABASE cannot take a bind parameter, so the name is validated first.
"""

import asyncio
import logging
import re
import sys

from sqlalchemy import text
from sqlalchemy.engine.url import make_url
from sqlalchemy.ext.asyncio import create_async_engine

from shopfloor.config import get_database_settings

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("init_db")

_DB_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")


def _validate_database_name(db_name: str) -> str:
  if not db_name:
    raise ValueError("Target database name is empty.")
  if not _DB_NAME_PATTERN.fullmatch(db_name):
    raise ValueError("Target database name contains invalid characters (allowed: A-Z, a-z, 0-9, _).")
  return db_name


async def create_database_if_not_exists() -> int:
  """Create the configured database if it does not already exist."""
  dsn = get_database_settings().pg_dsn
  if not dsn:
    logger.error("SHOPFLOOR_PG_DSN is not set.")
    return 1

  url = make_url(dsn)
  target_db = _validate_database_name(url.database or "")
  postgres_url = url.set(database="postgres", drivername="postgresql+asyncpg")

  # CREATE DATABASE cannot run inside a transaction.
  engine = create_async_engine(postgres_url, isolation_level="AUTOCOMMIT")
  try:
    async with engine.connect() as conn:
      result = await conn.execute(text("SELECT 1 FROM pg_database WHERE datname = :name"), {"name": target_db})
      if result.scalar() == 1:
        logger.info("Database '%s' already exists.", target_db)
      else:
        await conn.execute(text(f'CREATE DATABASE "{target_db}"'))
        logger.info("Database '%s' created.", target_db)
  finally:
    await engine.dispose()
  return 0


if __name__ == "__main__":
  sys.exit(asyncio.run(create_database_if_not_exists()))
