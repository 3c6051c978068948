"""Sheet Status Store: the single writer of a material's original sheet array."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from shopfloor.cutting.errors import NotFoundError
from shopfloor.cutting.models import MaterialRecord, SheetCutLogEntry
from shopfloor.cutting.sheets import extended, normalize_statuses, parse_status, validate_index, validate_positive, with_status, without_slot
from shopfloor.cutting.views import material_view
from shopfloor.realtime.contracts import EventPublisher, EventType, RealtimeEvent
from shopfloor.storage.cutting_repo import CuttingRepository
from shopfloor.utils.clock import utcnow

logger = logging.getLogger(__name__)


class SheetStatusStore:
  """Validates and persists per-sheet statuses, then announces the change."""

  def __init__(self, *, repo: CuttingRepository, publisher: EventPublisher, clock: Callable[[], datetime] = utcnow) -> None:
    self._repo = repo
    self._publisher = publisher
    self._clock = clock

  async def get_material(self, material_id: int) -> MaterialRecord:
    material = await self._repo.get_material(material_id)
    if material is None:
      raise NotFoundError(f"Material {material_id} not found.")
    return material

  async def set_sheet_status(self, material_id: int, sheet_index: Any, status: Any) -> MaterialRecord:
    """
    Store `status` at `sheet_index` and return the updated material.

    Repeating a call with the same arguments leaves storage untouched and
    records no extra cut-log row.
    """
    target = parse_status(status)
    material = await self.get_material(material_id)
    validate_index(sheet_index, material.total_sheets)

    if normalize_statuses(material.sheet_statuses, material.total_sheets)[sheet_index] is not target:
      updated = with_status(material.sheet_statuses, sheet_index, target, material.total_sheets)
      cut_log = SheetCutLogEntry(material_id=material_id, sheet_index=sheet_index, status=target, cut_at=self._clock())
      saved = await self._repo.save_material_sheets(material_id, total_sheets=material.total_sheets, sheet_statuses=updated, cut_log=cut_log)
      if saved is None:
        raise NotFoundError(f"Material {material_id} not found.")
      material = saved
      logger.info("Sheet status set: material_id=%s, sheet_index=%s, status=%s", material_id, sheet_index, target.value)
    else:
      logger.debug("Sheet status unchanged: material_id=%s, sheet_index=%s, status=%s", material_id, sheet_index, target.value)

    await self._publisher.publish(RealtimeEvent(type=EventType.SHEET_STATUS_UPDATED, job_id=material.job_id, payload={"materialId": material_id, "sheetIndex": sheet_index, "status": target.value, "material": material_view(material)}))
    return material

  async def add_sheets(self, material_id: int, additional_count: Any) -> MaterialRecord:
    validate_positive(additional_count, "Additional sheets")
    material = await self.get_material(material_id)
    statuses = extended(material.sheet_statuses, material.total_sheets, additional_count)
    saved = await self._repo.save_material_sheets(material_id, total_sheets=material.total_sheets + additional_count, sheet_statuses=statuses)
    if saved is None:
      raise NotFoundError(f"Material {material_id} not found.")
    logger.info("Sheets added: material_id=%s, added=%s, total_sheets=%s", material_id, additional_count, saved.total_sheets)
    await self._publisher.publish(RealtimeEvent(type=EventType.MATERIAL_UPDATED, job_id=saved.job_id, payload={"materialId": material_id, "material": material_view(saved)}))
    return saved

  async def delete_sheet(self, material_id: int, sheet_index: Any) -> MaterialRecord:
    """Remove a skipped sheet slot; later sheets shift down one index."""
    material = await self.get_material(material_id)
    statuses = without_slot(material.sheet_statuses, sheet_index, material.total_sheets)
    saved = await self._repo.save_material_sheets(material_id, total_sheets=material.total_sheets - 1, sheet_statuses=statuses)
    if saved is None:
      raise NotFoundError(f"Material {material_id} not found.")
    logger.info("Skipped sheet deleted: material_id=%s, sheet_index=%s, total_sheets=%s", material_id, sheet_index, saved.total_sheets)
    await self._publisher.publish(RealtimeEvent(type=EventType.SHEET_DELETED, job_id=saved.job_id, payload={"materialId": material_id, "sheetIndex": sheet_index, "material": material_view(saved)}))
    return saved
