"""In-process fan-out of change notifications to WebSocket subscribers."""

from __future__ import annotations

import asyncio
import logging

from shopfloor.realtime.contracts import RealtimeConnection, RealtimeEvent

logger = logging.getLogger(__name__)


class RealtimeHub:
  """Best-effort, at-most-once broadcaster over connected sockets."""

  def __init__(self, *, send_timeout_seconds: float) -> None:
    self._send_timeout_seconds = send_timeout_seconds
    # Maps each connection to the job it follows; None follows every job.
    self._subscribers: dict[RealtimeConnection, int | None] = {}
    self._lock = asyncio.Lock()

  @property
  def subscriber_count(self) -> int:
    return len(self._subscribers)

  async def subscribe(self, connection: RealtimeConnection, *, job_id: int | None = None) -> None:
    async with self._lock:
      self._subscribers[connection] = job_id
    logger.debug("Realtime subscriber registered: job_id=%s, total=%d", job_id, len(self._subscribers))

  async def unsubscribe(self, connection: RealtimeConnection) -> None:
    async with self._lock:
      self._subscribers.pop(connection, None)
    logger.debug("Realtime subscriber removed: total=%d", len(self._subscribers))

  async def publish(self, event: RealtimeEvent) -> None:
    """Send the event to every matching subscriber, dropping connections that fail."""
    async with self._lock:
      targets = [connection for connection, job_filter in self._subscribers.items() if job_filter is None or event.job_id is None or job_filter == event.job_id]

    if not targets:
      return

    message = event.to_message()
    results = await asyncio.gather(*(self._send(connection, message) for connection in targets))
    failed = [connection for connection, delivered in zip(targets, results) if not delivered]
    if failed:
      async with self._lock:
        for connection in failed:
          self._subscribers.pop(connection, None)
      logger.warning("Dropped %d realtime subscriber(s) after failed delivery of %s", len(failed), event.type.value)

  async def _send(self, connection: RealtimeConnection, message: dict) -> bool:
    try:
      await asyncio.wait_for(connection.send_json(message), timeout=self._send_timeout_seconds)
      return True
    except asyncio.TimeoutError:
      logger.warning("Realtime send timed out after %.1fs", self._send_timeout_seconds)
      return False
    except Exception as exc:  # noqa: BLE001
      # Delivery is best-effort; a broken socket must not fail the mutation that triggered it.
      logger.debug("Realtime send failed: %s", exc)
      return False
