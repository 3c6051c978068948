"""Contracts for realtime change notifications."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol


class EventType(str, Enum):
  """Change kinds pushed to connected shop-floor clients."""

  SHEET_STATUS_UPDATED = "sheet_status_updated"
  RECUT_SHEET_STATUS_UPDATED = "recut_sheet_status_updated"
  RECUT_ADDED = "recut_added"
  RECUT_DELETED = "recut_deleted"
  SHEET_DELETED = "sheet_deleted"
  MATERIAL_UPDATED = "material_updated"
  MATERIAL_ADDED = "material_added"
  MATERIAL_DELETED = "material_deleted"
  CUTLIST_CREATED = "cutlist_created"
  CUTLIST_DELETED = "cutlist_deleted"
  JOB_CREATED = "job_created"
  JOB_UPDATED = "job_updated"
  JOB_DELETED = "job_deleted"
  JOB_TIMER_STARTED = "job_timer_started"
  JOB_TIMER_STOPPED = "job_timer_stopped"
  CHECKLIST_CREATED = "checklist_created"
  CHECKLIST_DELETED = "checklist_deleted"
  CHECKLIST_ITEM_ADDED = "checklist_item_added"
  CHECKLIST_ITEM_UPDATED = "checklist_item_updated"
  CHECKLIST_ITEM_DELETED = "checklist_item_deleted"


@dataclass(frozen=True)
class RealtimeEvent:
  """Represents one change notification; payload keys are already camelCase."""

  type: EventType
  job_id: int | None
  payload: dict[str, Any] = field(default_factory=dict)

  def to_message(self) -> dict[str, Any]:
    return {"type": self.type.value, "jobId": self.job_id, **self.payload}


class RealtimeConnection(Protocol):
  """Minimal surface of a connected client socket."""

  async def send_json(self, data: Any, mode: str = "text") -> None:
    """Send one JSON message to the client."""


class EventPublisher(Protocol):
  """Delivery contract for change notifications."""

  async def publish(self, event: RealtimeEvent) -> None:
    """Deliver the event to interested subscribers without raising delivery failures."""
