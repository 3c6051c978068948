"""Part checklists: per-job preparation steps ticked off before and during cutting."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from enum import Enum
from typing import Any, TypeVar

from shopfloor.cutting.errors import NotFoundError, ValidationError
from shopfloor.cutting.models import ChecklistCategory, ChecklistItemRecord, ChecklistPriority, ChecklistRecord
from shopfloor.cutting.sheets import require_text
from shopfloor.cutting.views import checklist_item_view, checklist_view
from shopfloor.realtime.contracts import EventPublisher, EventType, RealtimeEvent
from shopfloor.storage.cutting_repo import CuttingRepository
from shopfloor.utils.clock import utcnow

logger = logging.getLogger(__name__)

DEFAULT_CHECKLIST_NAME = "Job Preparation Checklist"

_Choice = TypeVar("_Choice", bound=Enum)


def _parse_choice(choice_type: type[_Choice], raw: Any, field_name: str) -> _Choice:
  try:
    return choice_type(raw)
  except ValueError as exc:
    allowed = ", ".join(member.value for member in choice_type)
    raise ValidationError(f"Invalid {field_name} {raw!r}; expected one of {allowed}.") from exc


class ChecklistService:
  def __init__(self, *, repo: CuttingRepository, publisher: EventPublisher, clock: Callable[[], datetime] = utcnow) -> None:
    self._repo = repo
    self._publisher = publisher
    self._clock = clock

  async def list_checklists(self, job_id: int) -> list[ChecklistRecord]:
    if await self._repo.get_job(job_id) is None:
      raise NotFoundError(f"Job {job_id} not found.")
    return await self._repo.list_checklists(job_id)

  async def get_checklist(self, checklist_id: int) -> ChecklistRecord:
    checklist = await self._repo.get_checklist(checklist_id)
    if checklist is None:
      raise NotFoundError(f"Checklist {checklist_id} not found.")
    return checklist

  async def create_checklist(self, job_id: int, *, name: Any = None, category: Any = ChecklistCategory.GENERAL) -> ChecklistRecord:
    label = DEFAULT_CHECKLIST_NAME if name is None else require_text(name, "Checklist name")
    kind = _parse_choice(ChecklistCategory, category, "checklist category")
    checklist = await self._repo.create_checklist(job_id, name=label, category=kind)
    if checklist is None:
      raise NotFoundError(f"Job {job_id} not found.")
    logger.info("Checklist created: job_id=%s, checklist_id=%s, category=%s", job_id, checklist.id, kind.value)
    await self._publisher.publish(RealtimeEvent(type=EventType.CHECKLIST_CREATED, job_id=job_id, payload={"checklistId": checklist.id, "checklist": checklist_view(checklist)}))
    return checklist

  async def delete_checklist(self, checklist_id: int) -> None:
    checklist = await self.get_checklist(checklist_id)
    if not await self._repo.delete_checklist(checklist_id):
      raise NotFoundError(f"Checklist {checklist_id} not found.")
    logger.info("Checklist deleted: job_id=%s, checklist_id=%s", checklist.job_id, checklist_id)
    await self._publisher.publish(RealtimeEvent(type=EventType.CHECKLIST_DELETED, job_id=checklist.job_id, payload={"checklistId": checklist_id}))

  async def add_item(self, checklist_id: int, *, text: Any, priority: Any = ChecklistPriority.NORMAL, order_index: int | None = None, notes: str | None = None) -> ChecklistItemRecord:
    """Append a step; without an explicit order_index it goes after the last one."""
    label = require_text(text, "Checklist item text")
    level = _parse_choice(ChecklistPriority, priority, "checklist item priority")
    if order_index is not None and order_index < 0:
      raise ValidationError("Order index must be zero or greater.")
    cleaned_notes = notes.strip() if isinstance(notes, str) else None
    item = await self._repo.add_checklist_item(checklist_id, text=label, priority=level, order_index=order_index, notes=cleaned_notes or None)
    if item is None:
      raise NotFoundError(f"Checklist {checklist_id} not found.")
    logger.info("Checklist item added: checklist_id=%s, item_id=%s, priority=%s", checklist_id, item.id, level.value)
    await self._publisher.publish(RealtimeEvent(type=EventType.CHECKLIST_ITEM_ADDED, job_id=item.job_id, payload={"checklistId": checklist_id, "itemId": item.id, "item": checklist_item_view(item)}))
    return item

  async def set_item_completed(self, item_id: int, completed: bool) -> ChecklistItemRecord:
    """Tick or untick a step; completedAt is stamped on tick and cleared on untick."""
    current = await self._repo.get_checklist_item(item_id)
    if current is None:
      raise NotFoundError(f"Checklist item {item_id} not found.")
    if current.completed == completed:
      return current
    item = await self._repo.set_checklist_item_completed(item_id, completed=completed, completed_at=self._clock() if completed else None)
    if item is None:
      raise NotFoundError(f"Checklist item {item_id} not found.")
    logger.info("Checklist item updated: checklist_id=%s, item_id=%s, completed=%s", item.checklist_id, item_id, completed)
    await self._publisher.publish(RealtimeEvent(type=EventType.CHECKLIST_ITEM_UPDATED, job_id=item.job_id, payload={"checklistId": item.checklist_id, "itemId": item_id, "item": checklist_item_view(item)}))
    return item

  async def delete_item(self, item_id: int) -> None:
    item = await self._repo.get_checklist_item(item_id)
    if item is None or not await self._repo.delete_checklist_item(item_id):
      raise NotFoundError(f"Checklist item {item_id} not found.")
    logger.info("Checklist item deleted: checklist_id=%s, item_id=%s", item.checklist_id, item_id)
    await self._publisher.publish(RealtimeEvent(type=EventType.CHECKLIST_ITEM_DELETED, job_id=item.job_id, payload={"checklistId": item.checklist_id, "itemId": item_id}))
