import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from urllib.parse import urlparse

from fastapi import FastAPI

from shopfloor.core.database import get_db_engine
from shopfloor.core.logging import _initialize_logging
from shopfloor.realtime.hub import RealtimeHub


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Set up logging and the realtime hub; dispose the database engine on shutdown."""
  from shopfloor.config import get_settings

  settings = get_settings()
  logger = logging.getLogger("shopfloor.core.lifespan")

  try:
    _initialize_logging(settings)
  except RuntimeError:
    # Keep serving with default handlers when the log directory is unwritable.
    logger.warning("Logging setup failed; continuing with default handlers.", exc_info=True)

  app.state.realtime_hub = RealtimeHub(send_timeout_seconds=settings.ws_send_timeout_seconds)
  logger.info("Startup complete environment=%s pg_dsn=%s", settings.environment, _redact_dsn(settings.pg_dsn))

  yield

  engine = get_db_engine()
  if engine is not None:
    await engine.dispose()
  logger.info("Shutdown complete")


def _redact_dsn(raw: str | None) -> str:
  """Redact credentials from a DSN while keeping host/db visible."""
  if not raw:
    return "<unset>"

  parsed = urlparse(raw)
  if not parsed.scheme:
    return "<invalid>"

  user = parsed.username or ""
  host = parsed.hostname or ""
  port = f":{parsed.port}" if parsed.port else ""
  netloc = f"{user}@{host}{port}" if user else f"{host}{port}"
  database = parsed.path.lstrip("/")
  path = f"/{database}" if database else ""
  return f"{parsed.scheme}://{netloc}{path}"
