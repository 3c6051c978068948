"""Cutlist and material management within a job."""

from __future__ import annotations

import logging
from typing import Any

from shopfloor.cutting.errors import NotFoundError
from shopfloor.cutting.models import CutlistRecord, MaterialRecord
from shopfloor.cutting.sheets import require_text, validate_positive
from shopfloor.cutting.views import material_view
from shopfloor.realtime.contracts import EventPublisher, EventType, RealtimeEvent
from shopfloor.storage.cutting_repo import CuttingRepository

logger = logging.getLogger(__name__)


class CutlistService:
  def __init__(self, *, repo: CuttingRepository, publisher: EventPublisher) -> None:
    self._repo = repo
    self._publisher = publisher

  async def create_cutlists(self, job_id: int, count: Any) -> list[CutlistRecord]:
    """Append `count` empty cutlists, numbered after the job's existing ones."""
    validate_positive(count, "Cutlist count")
    if await self._repo.get_job(job_id) is None:
      raise NotFoundError(f"Job {job_id} not found.")
    cutlists = await self._repo.create_cutlists(job_id, count)
    logger.info("Cutlists created: job_id=%s, count=%s", job_id, count)
    await self._publisher.publish(RealtimeEvent(type=EventType.CUTLIST_CREATED, job_id=job_id, payload={"cutlistIds": [cutlist.id for cutlist in cutlists]}))
    return cutlists

  async def delete_cutlist(self, cutlist_id: int) -> None:
    cutlist = await self._repo.get_cutlist(cutlist_id)
    if cutlist is None or not await self._repo.delete_cutlist(cutlist_id):
      raise NotFoundError(f"Cutlist {cutlist_id} not found.")
    logger.info("Cutlist deleted: job_id=%s, cutlist_id=%s", cutlist.job_id, cutlist_id)
    await self._publisher.publish(RealtimeEvent(type=EventType.CUTLIST_DELETED, job_id=cutlist.job_id, payload={"cutlistId": cutlist_id}))

  async def add_material(self, cutlist_id: int, *, name: Any, total_sheets: Any) -> MaterialRecord:
    label = require_text(name, "Material name")
    validate_positive(total_sheets, "Total sheets")
    material = await self._repo.add_material(cutlist_id, name=label, total_sheets=total_sheets)
    if material is None:
      raise NotFoundError(f"Cutlist {cutlist_id} not found.")
    logger.info("Material added: cutlist_id=%s, material_id=%s, total_sheets=%s", cutlist_id, material.id, total_sheets)
    await self._publisher.publish(RealtimeEvent(type=EventType.MATERIAL_ADDED, job_id=material.job_id, payload={"cutlistId": cutlist_id, "materialId": material.id, "material": material_view(material)}))
    return material

  async def delete_material(self, material_id: int) -> None:
    material = await self._repo.get_material(material_id)
    if material is None or not await self._repo.delete_material(material_id):
      raise NotFoundError(f"Material {material_id} not found.")
    logger.info("Material deleted: cutlist_id=%s, material_id=%s", material.cutlist_id, material_id)
    await self._publisher.publish(RealtimeEvent(type=EventType.MATERIAL_DELETED, job_id=material.job_id, payload={"cutlistId": material.cutlist_id, "materialId": material_id}))
