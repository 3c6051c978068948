"""Recut Batch Registry: extra-sheet batches tracked apart from a material's original sheets."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from shopfloor.cutting.errors import NotFoundError
from shopfloor.cutting.models import RecutRecord, SheetCutLogEntry
from shopfloor.cutting.sheets import normalize_statuses, parse_status, validate_index, validate_positive, with_status
from shopfloor.cutting.views import recut_view
from shopfloor.realtime.contracts import EventPublisher, EventType, RealtimeEvent
from shopfloor.storage.cutting_repo import CuttingRepository
from shopfloor.utils.clock import utcnow

logger = logging.getLogger(__name__)


class RecutRegistry:
  def __init__(self, *, repo: CuttingRepository, publisher: EventPublisher, clock: Callable[[], datetime] = utcnow) -> None:
    self._repo = repo
    self._publisher = publisher
    self._clock = clock

  async def get_recut(self, recut_id: int) -> RecutRecord:
    recut = await self._repo.get_recut(recut_id)
    if recut is None:
      raise NotFoundError(f"Recut {recut_id} not found.")
    return recut

  async def list_recuts(self, material_id: int) -> list[RecutRecord]:
    if await self._repo.get_material(material_id) is None:
      raise NotFoundError(f"Material {material_id} not found.")
    return await self._repo.list_recuts(material_id)

  async def add_recut(self, material_id: int, quantity: Any, reason: str | None = None) -> RecutRecord:
    """Create a batch of `quantity` pending sheets for the material."""
    validate_positive(quantity, "Recut quantity")
    cleaned_reason = reason.strip() if isinstance(reason, str) else None
    recut = await self._repo.create_recut(material_id, quantity=quantity, reason=cleaned_reason or None)
    if recut is None:
      raise NotFoundError(f"Material {material_id} not found.")
    logger.info("Recut added: material_id=%s, recut_id=%s, quantity=%s", material_id, recut.id, quantity)
    await self._publisher.publish(RealtimeEvent(type=EventType.RECUT_ADDED, job_id=recut.job_id, payload={"materialId": material_id, "recutId": recut.id, "recut": recut_view(recut)}))
    return recut

  async def set_recut_sheet_status(self, recut_id: int, sheet_index: Any, status: Any) -> RecutRecord:
    """Same contract as the material store, bounded by the batch's quantity."""
    target = parse_status(status)
    recut = await self.get_recut(recut_id)
    validate_index(sheet_index, recut.quantity)

    if normalize_statuses(recut.sheet_statuses, recut.quantity)[sheet_index] is not target:
      updated = with_status(recut.sheet_statuses, sheet_index, target, recut.quantity)
      cut_log = SheetCutLogEntry(material_id=recut.material_id, sheet_index=sheet_index, status=target, cut_at=self._clock(), recut_id=recut_id)
      saved = await self._repo.save_recut_sheets(recut_id, sheet_statuses=updated, cut_log=cut_log)
      if saved is None:
        raise NotFoundError(f"Recut {recut_id} not found.")
      recut = saved
      logger.info("Recut sheet status set: recut_id=%s, sheet_index=%s, status=%s", recut_id, sheet_index, target.value)

    await self._publisher.publish(
      RealtimeEvent(type=EventType.RECUT_SHEET_STATUS_UPDATED, job_id=recut.job_id, payload={"materialId": recut.material_id, "recutId": recut_id, "sheetIndex": sheet_index, "status": target.value, "recut": recut_view(recut)})
    )
    return recut

  async def delete_recut(self, recut_id: int) -> None:
    recut = await self.get_recut(recut_id)
    if not await self._repo.delete_recut(recut_id):
      raise NotFoundError(f"Recut {recut_id} not found.")
    logger.info("Recut deleted: material_id=%s, recut_id=%s", recut.material_id, recut_id)
    await self._publisher.publish(RealtimeEvent(type=EventType.RECUT_DELETED, job_id=recut.job_id, payload={"materialId": recut.material_id, "recutId": recut_id}))
