"""Postgres-backed repository for jobs, cutlists, materials, recuts and checklists using SQLAlchemy."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from shopfloor.core.database import get_session_factory
from shopfloor.cutting.models import ChecklistCategory, ChecklistItemRecord, ChecklistPriority, ChecklistRecord, CutlistRecord, JobDetail, JobRecord, JobStatus, MaterialRecord, NewMaterial, RecutRecord, SheetCutLogEntry, SheetStatus, TimeLogRecord, TimeLogSource
from shopfloor.cutting.sheets import normalize_statuses, pending_statuses
from shopfloor.schema.cutting import ChecklistItem, Cutlist, Job, JobChecklist, JobMaterial, JobTimeLog, RecutEntry, SheetCutLog
from shopfloor.storage.cutting_repo import CuttingRepository
from shopfloor.utils.db_retry import translate_db_errors

_JOB_TREE = (selectinload(Job.cutlists).selectinload(Cutlist.materials).selectinload(JobMaterial.recut_entries), selectinload(Job.time_logs))


class PostgresCuttingRepository(CuttingRepository):
  """Persist the job tree and its timer/cut logs to Postgres using SQLAlchemy."""

  def __init__(self) -> None:
    self._session_factory = get_session_factory()
    if self._session_factory is None:
      raise RuntimeError("Database not initialized")

  async def create_job(self, *, job_number: str, customer_name: str, job_name: str, materials: list[NewMaterial]) -> JobDetail:
    async with translate_db_errors("job_create"), self._session_factory() as session:
      job = Job(job_number=job_number, customer_name=customer_name, job_name=job_name, status=JobStatus.WAITING.value)
      if materials:
        cutlist = Cutlist(name="Cutlist 1", order_index=0)
        cutlist.materials = [JobMaterial(name=item.name, total_sheets=item.total_sheets, sheet_statuses=[status.value for status in pending_statuses(item.total_sheets)]) for item in materials]
        job.cutlists = [cutlist]
      session.add(job)
      await session.commit()
      detail = await self._load_detail(session, job.id)
      if detail is None:
        raise RuntimeError(f"Job {job.id} vanished after insert.")
      return detail

  async def get_job(self, job_id: int) -> JobRecord | None:
    async with translate_db_errors("job_get"), self._session_factory() as session:
      row = await session.get(Job, job_id)
      if row is None:
        return None
      return self._job_to_record(row)

  async def get_job_detail(self, job_id: int) -> JobDetail | None:
    async with translate_db_errors("job_detail_load"), self._session_factory() as session:
      return await self._load_detail(session, job_id)

  async def list_jobs(self, *, search: str | None = None, status: JobStatus | None = None) -> list[JobDetail]:
    async with translate_db_errors("job_list"), self._session_factory() as session:
      stmt = select(Job).options(*_JOB_TREE).order_by(Job.created_at.desc(), Job.id.desc())
      if status is not None:
        stmt = stmt.where(Job.status == status.value)
      if search:
        pattern = f"%{search.strip()}%"
        stmt = stmt.where(or_(Job.customer_name.ilike(pattern), Job.job_name.ilike(pattern), Job.job_number.ilike(pattern)))
      rows = (await session.execute(stmt)).scalars().all()
      return [self._job_to_detail(row) for row in rows]

  async def update_job(self, job_id: int, *, status: JobStatus | None = None, start_time: datetime | None = None, end_time: datetime | None = None, total_duration: int | None = None, updated_at: datetime | None = None) -> JobRecord | None:
    async with translate_db_errors("job_update"), self._session_factory() as session:
      row = await session.get(Job, job_id)
      if row is None:
        return None
      if status is not None:
        row.status = status.value
      if start_time is not None:
        row.start_time = start_time
      if end_time is not None:
        row.end_time = end_time
      if total_duration is not None:
        row.total_duration = total_duration
      if updated_at is not None:
        row.updated_at = updated_at
      session.add(row)
      await session.commit()
      await session.refresh(row)
      return self._job_to_record(row)

  async def delete_job(self, job_id: int) -> bool:
    async with translate_db_errors("job_delete"), self._session_factory() as session:
      row = await session.get(Job, job_id)
      if row is None:
        return False
      await session.delete(row)
      await session.commit()
      return True

  async def create_cutlists(self, job_id: int, count: int) -> list[CutlistRecord]:
    async with translate_db_errors("cutlist_create"), self._session_factory() as session:
      existing = await session.scalar(select(func.count()).select_from(Cutlist).where(Cutlist.job_id == job_id))
      max_order = await session.scalar(select(func.max(Cutlist.order_index)).where(Cutlist.job_id == job_id))
      offset = int(existing or 0)
      next_order = int(max_order) + 1 if max_order is not None else 0
      rows = [Cutlist(job_id=job_id, name=f"Cutlist {offset + i + 1}", order_index=next_order + i) for i in range(count)]
      session.add_all(rows)
      await session.commit()
      return [CutlistRecord(id=row.id, job_id=row.job_id, name=row.name, order_index=row.order_index) for row in rows]

  async def get_cutlist(self, cutlist_id: int) -> CutlistRecord | None:
    async with translate_db_errors("cutlist_get"), self._session_factory() as session:
      stmt = select(Cutlist).options(selectinload(Cutlist.materials).selectinload(JobMaterial.recut_entries)).where(Cutlist.id == cutlist_id)
      row = (await session.execute(stmt)).scalar_one_or_none()
      if row is None:
        return None
      return self._cutlist_to_record(row)

  async def delete_cutlist(self, cutlist_id: int) -> bool:
    async with translate_db_errors("cutlist_delete"), self._session_factory() as session:
      row = await session.get(Cutlist, cutlist_id)
      if row is None:
        return False
      await session.delete(row)
      await session.commit()
      return True

  async def add_material(self, cutlist_id: int, *, name: str, total_sheets: int) -> MaterialRecord | None:
    async with translate_db_errors("material_add"), self._session_factory() as session:
      cutlist = await session.get(Cutlist, cutlist_id)
      if cutlist is None:
        return None
      row = JobMaterial(cutlist_id=cutlist_id, name=name, total_sheets=total_sheets, sheet_statuses=[status.value for status in pending_statuses(total_sheets)])
      session.add(row)
      await session.commit()
      await session.refresh(row)
      return self._material_to_record(row, job_id=cutlist.job_id, recuts=[])

  async def get_material(self, material_id: int) -> MaterialRecord | None:
    async with translate_db_errors("material_get"), self._session_factory() as session:
      return await self._load_material(session, material_id)

  async def save_material_sheets(self, material_id: int, *, total_sheets: int, sheet_statuses: list[SheetStatus], cut_log: SheetCutLogEntry | None = None) -> MaterialRecord | None:
    async with translate_db_errors("material_save_sheets"), self._session_factory() as session:
      row = await session.get(JobMaterial, material_id)
      if row is None:
        return None
      row.total_sheets = total_sheets
      # Assign a new list so the ARRAY column is flagged dirty.
      row.sheet_statuses = [SheetStatus(status).value for status in sheet_statuses]
      session.add(row)
      if cut_log is not None:
        session.add(self._cut_log_row(cut_log))
      await session.commit()
      return await self._load_material(session, material_id)

  async def delete_material(self, material_id: int) -> bool:
    async with translate_db_errors("material_delete"), self._session_factory() as session:
      row = await session.get(JobMaterial, material_id)
      if row is None:
        return False
      await session.delete(row)
      await session.commit()
      return True

  async def create_recut(self, material_id: int, *, quantity: int, reason: str | None) -> RecutRecord | None:
    async with translate_db_errors("recut_create"), self._session_factory() as session:
      job_id = await self._job_id_for_material(session, material_id)
      if job_id is None:
        return None
      row = RecutEntry(material_id=material_id, quantity=quantity, reason=reason, sheet_statuses=[status.value for status in pending_statuses(quantity)])
      session.add(row)
      await session.commit()
      await session.refresh(row)
      return self._recut_to_record(row, job_id=job_id)

  async def get_recut(self, recut_id: int) -> RecutRecord | None:
    async with translate_db_errors("recut_get"), self._session_factory() as session:
      return await self._load_recut(session, recut_id)

  async def list_recuts(self, material_id: int) -> list[RecutRecord]:
    async with translate_db_errors("recut_list"), self._session_factory() as session:
      job_id = await self._job_id_for_material(session, material_id)
      if job_id is None:
        return []
      stmt = select(RecutEntry).where(RecutEntry.material_id == material_id).order_by(RecutEntry.id.asc())
      rows = (await session.execute(stmt)).scalars().all()
      return [self._recut_to_record(row, job_id=job_id) for row in rows]

  async def save_recut_sheets(self, recut_id: int, *, sheet_statuses: list[SheetStatus], cut_log: SheetCutLogEntry | None = None) -> RecutRecord | None:
    async with translate_db_errors("recut_save_sheets"), self._session_factory() as session:
      row = await session.get(RecutEntry, recut_id)
      if row is None:
        return None
      row.sheet_statuses = [SheetStatus(status).value for status in sheet_statuses]
      session.add(row)
      if cut_log is not None:
        session.add(self._cut_log_row(cut_log))
      await session.commit()
      return await self._load_recut(session, recut_id)

  async def delete_recut(self, recut_id: int) -> bool:
    async with translate_db_errors("recut_delete"), self._session_factory() as session:
      row = await session.get(RecutEntry, recut_id)
      if row is None:
        return False
      await session.delete(row)
      await session.commit()
      return True

  async def open_time_log(self, job_id: int, *, source: TimeLogSource, start_time: datetime) -> TimeLogRecord:
    async with translate_db_errors("time_log_open"), self._session_factory() as session:
      row = JobTimeLog(job_id=job_id, source=source, start_time=start_time)
      session.add(row)
      await session.commit()
      return self._time_log_to_record(row)

  async def get_open_time_log(self, job_id: int) -> TimeLogRecord | None:
    async with translate_db_errors("time_log_get_open"), self._session_factory() as session:
      stmt = select(JobTimeLog).where(JobTimeLog.job_id == job_id, JobTimeLog.end_time.is_(None)).order_by(JobTimeLog.start_time.desc()).limit(1)
      row = (await session.execute(stmt)).scalar_one_or_none()
      if row is None:
        return None
      return self._time_log_to_record(row)

  async def close_open_time_logs(self, job_id: int, *, end_time: datetime) -> list[TimeLogRecord]:
    async with translate_db_errors("time_log_close"), self._session_factory() as session:
      await session.execute(update(JobTimeLog).where(JobTimeLog.job_id == job_id, JobTimeLog.end_time.is_(None)).values(end_time=end_time))
      await session.commit()
      stmt = select(JobTimeLog).where(JobTimeLog.job_id == job_id).order_by(JobTimeLog.start_time.asc(), JobTimeLog.id.asc())
      rows = (await session.execute(stmt)).scalars().all()
      return [self._time_log_to_record(row) for row in rows]

  async def count_jobs_by_status(self) -> dict[str, int]:
    async with translate_db_errors("dashboard_jobs_by_status"), self._session_factory() as session:
      rows = (await session.execute(select(Job.status, func.count()).group_by(Job.status))).all()
      return {str(status): int(count) for status, count in rows}

  async def count_cut_sheets_since(self, since: datetime) -> int:
    async with translate_db_errors("dashboard_sheets_cut"), self._session_factory() as session:
      stmt = select(func.count()).select_from(SheetCutLog).where(SheetCutLog.status == SheetStatus.CUT.value, SheetCutLog.cut_at >= since)
      return int(await session.scalar(stmt) or 0)

  async def job_duration_samples(self) -> list[tuple[int, int]]:
    async with translate_db_errors("dashboard_duration_samples"), self._session_factory() as session:
      stmt = select(Job).options(selectinload(Job.cutlists).selectinload(Cutlist.materials).selectinload(JobMaterial.recut_entries)).where(Job.total_duration > 0)
      rows = (await session.execute(stmt)).scalars().all()
      samples: list[tuple[int, int]] = []
      for row in rows:
        sheets = sum(material.total_sheets + sum(recut.quantity for recut in material.recut_entries) for cutlist in row.cutlists for material in cutlist.materials)
        samples.append((int(row.total_duration), sheets))
      return samples

  async def count_materials(self) -> int:
    async with translate_db_errors("dashboard_material_count"), self._session_factory() as session:
      return int(await session.scalar(select(func.count()).select_from(JobMaterial)) or 0)

  async def create_checklist(self, job_id: int, *, name: str, category: ChecklistCategory) -> ChecklistRecord | None:
    async with translate_db_errors("checklist_create"), self._session_factory() as session:
      if await session.get(Job, job_id) is None:
        return None
      row = JobChecklist(job_id=job_id, name=name, category=category.value)
      session.add(row)
      await session.commit()
      return await self._load_checklist(session, row.id)

  async def list_checklists(self, job_id: int) -> list[ChecklistRecord]:
    async with translate_db_errors("checklist_list"), self._session_factory() as session:
      stmt = select(JobChecklist).options(selectinload(JobChecklist.items)).where(JobChecklist.job_id == job_id).order_by(JobChecklist.id.asc())
      rows = (await session.execute(stmt)).scalars().all()
      return [self._checklist_to_record(row) for row in rows]

  async def get_checklist(self, checklist_id: int) -> ChecklistRecord | None:
    async with translate_db_errors("checklist_get"), self._session_factory() as session:
      return await self._load_checklist(session, checklist_id)

  async def delete_checklist(self, checklist_id: int) -> bool:
    async with translate_db_errors("checklist_delete"), self._session_factory() as session:
      row = await session.get(JobChecklist, checklist_id)
      if row is None:
        return False
      await session.delete(row)
      await session.commit()
      return True

  async def add_checklist_item(self, checklist_id: int, *, text: str, priority: ChecklistPriority, order_index: int | None, notes: str | None) -> ChecklistItemRecord | None:
    async with translate_db_errors("checklist_item_add"), self._session_factory() as session:
      checklist = await session.get(JobChecklist, checklist_id)
      if checklist is None:
        return None
      if order_index is None:
        max_order = await session.scalar(select(func.max(ChecklistItem.order_index)).where(ChecklistItem.checklist_id == checklist_id))
        order_index = int(max_order) + 1 if max_order is not None else 0
      row = ChecklistItem(checklist_id=checklist_id, text=text, priority=priority.value, order_index=order_index, notes=notes)
      session.add(row)
      await session.commit()
      await session.refresh(row)
      return self._checklist_item_to_record(row, job_id=checklist.job_id)

  async def get_checklist_item(self, item_id: int) -> ChecklistItemRecord | None:
    async with translate_db_errors("checklist_item_get"), self._session_factory() as session:
      return await self._load_checklist_item(session, item_id)

  async def set_checklist_item_completed(self, item_id: int, *, completed: bool, completed_at: datetime | None) -> ChecklistItemRecord | None:
    async with translate_db_errors("checklist_item_update"), self._session_factory() as session:
      row = await session.get(ChecklistItem, item_id)
      if row is None:
        return None
      row.completed = completed
      row.completed_at = completed_at
      session.add(row)
      await session.commit()
      return await self._load_checklist_item(session, item_id)

  async def delete_checklist_item(self, item_id: int) -> bool:
    async with translate_db_errors("checklist_item_delete"), self._session_factory() as session:
      row = await session.get(ChecklistItem, item_id)
      if row is None:
        return False
      await session.delete(row)
      await session.commit()
      return True

  async def _load_checklist(self, session: AsyncSession, checklist_id: int) -> ChecklistRecord | None:
    stmt = select(JobChecklist).options(selectinload(JobChecklist.items)).where(JobChecklist.id == checklist_id).execution_options(populate_existing=True)
    row = (await session.execute(stmt)).scalar_one_or_none()
    if row is None:
      return None
    return self._checklist_to_record(row)

  async def _load_checklist_item(self, session: AsyncSession, item_id: int) -> ChecklistItemRecord | None:
    stmt = select(ChecklistItem, JobChecklist.job_id).join(JobChecklist, JobChecklist.id == ChecklistItem.checklist_id).where(ChecklistItem.id == item_id).execution_options(populate_existing=True)
    result = (await session.execute(stmt)).one_or_none()
    if result is None:
      return None
    row, job_id = result
    return self._checklist_item_to_record(row, job_id=job_id)

  async def _load_detail(self, session: AsyncSession, job_id: int) -> JobDetail | None:
    stmt = select(Job).options(*_JOB_TREE).where(Job.id == job_id).execution_options(populate_existing=True)
    row = (await session.execute(stmt)).scalar_one_or_none()
    if row is None:
      return None
    return self._job_to_detail(row)

  async def _load_material(self, session: AsyncSession, material_id: int) -> MaterialRecord | None:
    stmt = select(JobMaterial, Cutlist.job_id).join(Cutlist, Cutlist.id == JobMaterial.cutlist_id).options(selectinload(JobMaterial.recut_entries)).where(JobMaterial.id == material_id).execution_options(populate_existing=True)
    result = (await session.execute(stmt)).one_or_none()
    if result is None:
      return None
    row, job_id = result
    return self._material_to_record(row, job_id=job_id, recuts=row.recut_entries)

  async def _load_recut(self, session: AsyncSession, recut_id: int) -> RecutRecord | None:
    stmt = select(RecutEntry, Cutlist.job_id).join(JobMaterial, JobMaterial.id == RecutEntry.material_id).join(Cutlist, Cutlist.id == JobMaterial.cutlist_id).where(RecutEntry.id == recut_id).execution_options(populate_existing=True)
    result = (await session.execute(stmt)).one_or_none()
    if result is None:
      return None
    row, job_id = result
    return self._recut_to_record(row, job_id=job_id)

  async def _job_id_for_material(self, session: AsyncSession, material_id: int) -> int | None:
    stmt = select(Cutlist.job_id).join(JobMaterial, JobMaterial.cutlist_id == Cutlist.id).where(JobMaterial.id == material_id)
    return (await session.execute(stmt)).scalar_one_or_none()

  def _cut_log_row(self, entry: SheetCutLogEntry) -> SheetCutLog:
    return SheetCutLog(material_id=entry.material_id, recut_id=entry.recut_id, sheet_index=entry.sheet_index, status=entry.status.value, is_recut=entry.is_recut, cut_at=entry.cut_at)

  def _job_to_record(self, row: Job) -> JobRecord:
    return JobRecord(
      id=row.id,
      job_number=row.job_number,
      customer_name=row.customer_name,
      job_name=row.job_name,
      status=JobStatus(row.status),
      created_at=row.created_at,
      updated_at=row.updated_at,
      start_time=row.start_time,
      end_time=row.end_time,
      total_duration=int(row.total_duration or 0),
    )

  def _job_to_detail(self, row: Job) -> JobDetail:
    return JobDetail(job=self._job_to_record(row), cutlists=[self._cutlist_to_record(cutlist) for cutlist in row.cutlists], time_logs=[self._time_log_to_record(log) for log in row.time_logs])

  def _cutlist_to_record(self, row: Cutlist) -> CutlistRecord:
    materials = [self._material_to_record(material, job_id=row.job_id, recuts=material.recut_entries) for material in row.materials]
    return CutlistRecord(id=row.id, job_id=row.job_id, name=row.name, order_index=row.order_index, materials=materials)

  def _material_to_record(self, row: JobMaterial, *, job_id: int, recuts: list[RecutEntry]) -> MaterialRecord:
    return MaterialRecord(
      id=row.id,
      cutlist_id=row.cutlist_id,
      job_id=job_id,
      name=row.name,
      total_sheets=row.total_sheets,
      sheet_statuses=normalize_statuses(row.sheet_statuses, row.total_sheets),
      created_at=row.created_at,
      recut_entries=[self._recut_to_record(recut, job_id=job_id) for recut in recuts],
    )

  def _recut_to_record(self, row: RecutEntry, *, job_id: int) -> RecutRecord:
    return RecutRecord(id=row.id, material_id=row.material_id, job_id=job_id, quantity=row.quantity, reason=row.reason, sheet_statuses=normalize_statuses(row.sheet_statuses, row.quantity), created_at=row.created_at)

  def _time_log_to_record(self, row: JobTimeLog) -> TimeLogRecord:
    return TimeLogRecord(id=row.id, job_id=row.job_id, source=row.source, start_time=row.start_time, end_time=row.end_time)  # type: ignore[arg-type]

  def _checklist_to_record(self, row: JobChecklist) -> ChecklistRecord:
    items = sorted(row.items, key=lambda item: (item.order_index, item.id))
    return ChecklistRecord(
      id=row.id,
      job_id=row.job_id,
      name=row.name,
      category=ChecklistCategory(row.category),
      created_at=row.created_at,
      items=[self._checklist_item_to_record(item, job_id=row.job_id) for item in items],
    )

  def _checklist_item_to_record(self, row: ChecklistItem, *, job_id: int) -> ChecklistItemRecord:
    return ChecklistItemRecord(
      id=row.id,
      checklist_id=row.checklist_id,
      job_id=job_id,
      text=row.text,
      priority=ChecklistPriority(row.priority),
      order_index=row.order_index,
      completed=bool(row.completed),
      completed_at=row.completed_at,
      notes=row.notes,
    )
