from __future__ import annotations

import logging

from fastapi import APIRouter, Query, WebSocket

from shopfloor.api.deps import hub_for_app
from shopfloor.config import get_settings

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws")
async def realtime_events(websocket: WebSocket, job_id: int | None = Query(None, alias="jobId")) -> None:  # noqa: B008
  """
  Push change events to a shop-floor client.

  Pass `jobId` to receive only one job's events. Inbound text is ignored
  apart from `ping`, which is answered with a pong.
  """
  hub = hub_for_app(websocket.app)
  await websocket.accept()
  await websocket.send_json({"type": "hello", "pollIntervalSeconds": get_settings().poll_interval_seconds})
  await hub.subscribe(websocket, job_id=job_id)
  logger.info("Realtime client connected job_id=%s", job_id)
  try:
    while True:
      message = await websocket.receive()
      if message["type"] == "websocket.disconnect":
        break
      if (message.get("text") or "").strip() == "ping":
        await websocket.send_json({"type": "pong"})
  finally:
    await hub.unsubscribe(websocket)
    logger.info("Realtime client disconnected job_id=%s", job_id)
