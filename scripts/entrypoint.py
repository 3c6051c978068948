import logging
import os

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("entrypoint")


def main() -> None:
  """Launch the service; migrations run as a separate deploy step."""
  logger.info("Starting shopfloor service (run `alembic upgrade head` before first start)...")
  port = os.getenv("SHOPFLOOR_PORT", "5000")
  # Replace the current process so uvicorn receives SIGTERM directly.
  os.execvp("uvicorn", ["uvicorn", "shopfloor.main:app", "--host", "0.0.0.0", "--port", port, "--no-server-header"])


if __name__ == "__main__":
  main()
