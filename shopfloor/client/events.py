"""WebSocket event stream with capped exponential reconnect."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

import websockets
from websockets.exceptions import WebSocketException

logger = logging.getLogger(__name__)

MAX_RECONNECT_ATTEMPTS = 5
BASE_RECONNECT_DELAY_SECONDS = 1.0
MAX_RECONNECT_DELAY_SECONDS = 30.0


def reconnect_delay(attempt: int, *, base: float = BASE_RECONNECT_DELAY_SECONDS, cap: float = MAX_RECONNECT_DELAY_SECONDS) -> float:
  """Delay before reconnect number `attempt` (0-based): base * 2^attempt, capped."""
  return min(base * (2**attempt), cap)


async def stream_events(url: str, *, max_attempts: int = MAX_RECONNECT_ATTEMPTS, connect: Callable[..., Any] = websockets.connect, sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep) -> AsyncIterator[dict[str, Any]]:
  """
  Yield decoded event messages from the realtime endpoint.

  Reconnects after a drop; the attempt counter resets once a connection opens.
  Gives up after `max_attempts` consecutive failed reconnects, leaving the
  polling loop as the only sync path.
  """
  attempt = 0
  while True:
    try:
      async with connect(url) as socket:
        attempt = 0
        logger.info("Realtime stream connected url=%s", url)
        async for raw in socket:
          try:
            message = json.loads(raw)
          except json.JSONDecodeError:
            logger.warning("Ignoring non-JSON realtime frame")
            continue
          if isinstance(message, dict):
            yield message
      logger.info("Realtime stream closed by server url=%s", url)
    except (OSError, WebSocketException) as exc:
      logger.warning("Realtime stream error url=%s attempt=%d: %s", url, attempt, exc)

    if attempt >= max_attempts:
      logger.error("Realtime stream giving up after %d reconnect attempts url=%s", max_attempts, url)
      return

    delay = reconnect_delay(attempt)
    attempt += 1
    logger.info("Reconnecting realtime stream in %.1fs (attempt %d/%d)", delay, attempt, max_attempts)
    await sleep(delay)
