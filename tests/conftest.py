"""Shared fixtures: in-memory repository, recording publisher and a controllable clock."""

from __future__ import annotations

import copy
import itertools
import os
from datetime import UTC, datetime, timedelta

# Settings are read at app import time.
os.environ.setdefault("SHOPFLOOR_ALLOWED_ORIGINS", "http://localhost")

import pytest  # noqa: E402

from shopfloor.cutting.models import ChecklistCategory, ChecklistItemRecord, ChecklistPriority, ChecklistRecord, CutlistRecord, JobDetail, JobRecord, JobStatus, MaterialRecord, NewMaterial, RecutRecord, SheetCutLogEntry, SheetStatus, TimeLogRecord  # noqa: E402
from shopfloor.realtime.contracts import RealtimeEvent  # noqa: E402

BASE_TIME = datetime(2026, 3, 2, 8, 0, tzinfo=UTC)


class FakeClock:
  def __init__(self, start: datetime = BASE_TIME) -> None:
    self.now = start

  def __call__(self) -> datetime:
    return self.now

  def advance(self, seconds: float) -> None:
    self.now = self.now + timedelta(seconds=seconds)


class RecordingPublisher:
  def __init__(self) -> None:
    self.events: list[RealtimeEvent] = []

  async def publish(self, event: RealtimeEvent) -> None:
    self.events.append(event)

  def types(self) -> list[str]:
    return [event.type.value for event in self.events]


class InMemoryCuttingRepo:
  """Dict-backed repository; returns copies so callers cannot mutate stored state."""

  def __init__(self, clock: FakeClock | None = None) -> None:
    self._clock = clock or FakeClock()
    self._ids = itertools.count(1)
    self.jobs: dict[int, JobRecord] = {}
    self.cutlists: dict[int, CutlistRecord] = {}
    self.materials: dict[int, MaterialRecord] = {}
    self.recuts: dict[int, RecutRecord] = {}
    self.time_logs: dict[int, TimeLogRecord] = {}
    self.cut_logs: list[SheetCutLogEntry] = []
    self.checklists: dict[int, ChecklistRecord] = {}
    self.checklist_items: dict[int, ChecklistItemRecord] = {}
    self.save_calls = 0

  def _next_id(self) -> int:
    return next(self._ids)

  def _material_tree(self, material_id: int) -> MaterialRecord:
    material = copy.deepcopy(self.materials[material_id])
    material.recut_entries = [copy.deepcopy(recut) for recut in sorted(self.recuts.values(), key=lambda r: r.id) if recut.material_id == material_id]
    return material

  def _cutlist_tree(self, cutlist_id: int) -> CutlistRecord:
    cutlist = copy.deepcopy(self.cutlists[cutlist_id])
    cutlist.materials = [self._material_tree(material.id) for material in sorted(self.materials.values(), key=lambda m: m.id) if material.cutlist_id == cutlist_id]
    return cutlist

  def _detail(self, job_id: int) -> JobDetail:
    cutlists = sorted((c for c in self.cutlists.values() if c.job_id == job_id), key=lambda c: c.order_index)
    logs = sorted((log for log in self.time_logs.values() if log.job_id == job_id), key=lambda log: (log.start_time, log.id))
    return JobDetail(job=copy.deepcopy(self.jobs[job_id]), cutlists=[self._cutlist_tree(c.id) for c in cutlists], time_logs=copy.deepcopy(logs))

  async def create_job(self, *, job_number: str, customer_name: str, job_name: str, materials: list[NewMaterial]) -> JobDetail:
    now = self._clock()
    job_id = self._next_id()
    self.jobs[job_id] = JobRecord(id=job_id, job_number=job_number, customer_name=customer_name, job_name=job_name, status=JobStatus.WAITING, created_at=now, updated_at=now)
    if materials:
      cutlist_id = self._next_id()
      self.cutlists[cutlist_id] = CutlistRecord(id=cutlist_id, job_id=job_id, name="Cutlist 1", order_index=0)
      for item in materials:
        material_id = self._next_id()
        self.materials[material_id] = MaterialRecord(id=material_id, cutlist_id=cutlist_id, job_id=job_id, name=item.name, total_sheets=item.total_sheets, sheet_statuses=[SheetStatus.PENDING] * item.total_sheets, created_at=now)
    return self._detail(job_id)

  async def get_job(self, job_id: int) -> JobRecord | None:
    job = self.jobs.get(job_id)
    return copy.deepcopy(job) if job else None

  async def get_job_detail(self, job_id: int) -> JobDetail | None:
    if job_id not in self.jobs:
      return None
    return self._detail(job_id)

  async def list_jobs(self, *, search: str | None = None, status: JobStatus | None = None) -> list[JobDetail]:
    jobs = list(self.jobs.values())
    if status is not None:
      jobs = [job for job in jobs if job.status is status]
    if search:
      needle = search.strip().lower()
      jobs = [job for job in jobs if needle in job.customer_name.lower() or needle in job.job_name.lower() or needle in job.job_number.lower()]
    jobs.sort(key=lambda job: (job.created_at, job.id), reverse=True)
    return [self._detail(job.id) for job in jobs]

  async def update_job(self, job_id: int, **fields: object) -> JobRecord | None:
    job = self.jobs.get(job_id)
    if job is None:
      return None
    for name, value in fields.items():
      if value is not None:
        setattr(job, name, value)
    return copy.deepcopy(job)

  async def delete_job(self, job_id: int) -> bool:
    if self.jobs.pop(job_id, None) is None:
      return False
    for cutlist_id in [c.id for c in self.cutlists.values() if c.job_id == job_id]:
      await self.delete_cutlist(cutlist_id)
    self.time_logs = {key: log for key, log in self.time_logs.items() if log.job_id != job_id}
    for checklist_id in [c.id for c in self.checklists.values() if c.job_id == job_id]:
      await self.delete_checklist(checklist_id)
    return True

  async def create_cutlists(self, job_id: int, count: int) -> list[CutlistRecord]:
    existing = [c for c in self.cutlists.values() if c.job_id == job_id]
    next_order = max((c.order_index for c in existing), default=-1) + 1
    created = []
    for i in range(count):
      cutlist_id = self._next_id()
      self.cutlists[cutlist_id] = CutlistRecord(id=cutlist_id, job_id=job_id, name=f"Cutlist {len(existing) + i + 1}", order_index=next_order + i)
      created.append(self._cutlist_tree(cutlist_id))
    return created

  async def get_cutlist(self, cutlist_id: int) -> CutlistRecord | None:
    if cutlist_id not in self.cutlists:
      return None
    return self._cutlist_tree(cutlist_id)

  async def delete_cutlist(self, cutlist_id: int) -> bool:
    if self.cutlists.pop(cutlist_id, None) is None:
      return False
    for material_id in [m.id for m in self.materials.values() if m.cutlist_id == cutlist_id]:
      await self.delete_material(material_id)
    return True

  async def add_material(self, cutlist_id: int, *, name: str, total_sheets: int) -> MaterialRecord | None:
    cutlist = self.cutlists.get(cutlist_id)
    if cutlist is None:
      return None
    material_id = self._next_id()
    self.materials[material_id] = MaterialRecord(id=material_id, cutlist_id=cutlist_id, job_id=cutlist.job_id, name=name, total_sheets=total_sheets, sheet_statuses=[SheetStatus.PENDING] * total_sheets, created_at=self._clock())
    return self._material_tree(material_id)

  async def get_material(self, material_id: int) -> MaterialRecord | None:
    if material_id not in self.materials:
      return None
    return self._material_tree(material_id)

  async def save_material_sheets(self, material_id: int, *, total_sheets: int, sheet_statuses: list[SheetStatus], cut_log: SheetCutLogEntry | None = None) -> MaterialRecord | None:
    material = self.materials.get(material_id)
    if material is None:
      return None
    self.save_calls += 1
    material.total_sheets = total_sheets
    material.sheet_statuses = list(sheet_statuses)
    if cut_log is not None:
      self.cut_logs.append(cut_log)
    return self._material_tree(material_id)

  async def delete_material(self, material_id: int) -> bool:
    if self.materials.pop(material_id, None) is None:
      return False
    self.recuts = {key: recut for key, recut in self.recuts.items() if recut.material_id != material_id}
    self.cut_logs = [entry for entry in self.cut_logs if entry.material_id != material_id]
    return True

  async def create_recut(self, material_id: int, *, quantity: int, reason: str | None) -> RecutRecord | None:
    material = self.materials.get(material_id)
    if material is None:
      return None
    recut_id = self._next_id()
    self.recuts[recut_id] = RecutRecord(id=recut_id, material_id=material_id, job_id=material.job_id, quantity=quantity, reason=reason, sheet_statuses=[SheetStatus.PENDING] * quantity, created_at=self._clock())
    return copy.deepcopy(self.recuts[recut_id])

  async def get_recut(self, recut_id: int) -> RecutRecord | None:
    recut = self.recuts.get(recut_id)
    return copy.deepcopy(recut) if recut else None

  async def list_recuts(self, material_id: int) -> list[RecutRecord]:
    return [copy.deepcopy(recut) for recut in sorted(self.recuts.values(), key=lambda r: r.id) if recut.material_id == material_id]

  async def save_recut_sheets(self, recut_id: int, *, sheet_statuses: list[SheetStatus], cut_log: SheetCutLogEntry | None = None) -> RecutRecord | None:
    recut = self.recuts.get(recut_id)
    if recut is None:
      return None
    self.save_calls += 1
    recut.sheet_statuses = list(sheet_statuses)
    if cut_log is not None:
      self.cut_logs.append(cut_log)
    return copy.deepcopy(recut)

  async def delete_recut(self, recut_id: int) -> bool:
    return self.recuts.pop(recut_id, None) is not None

  async def open_time_log(self, job_id: int, *, source: str, start_time: datetime) -> TimeLogRecord:
    log_id = self._next_id()
    self.time_logs[log_id] = TimeLogRecord(id=log_id, job_id=job_id, source=source, start_time=start_time)  # type: ignore[arg-type]
    return copy.deepcopy(self.time_logs[log_id])

  async def get_open_time_log(self, job_id: int) -> TimeLogRecord | None:
    for log in self.time_logs.values():
      if log.job_id == job_id and log.is_open:
        return copy.deepcopy(log)
    return None

  async def close_open_time_logs(self, job_id: int, *, end_time: datetime) -> list[TimeLogRecord]:
    for log in self.time_logs.values():
      if log.job_id == job_id and log.is_open:
        log.end_time = end_time
    return [copy.deepcopy(log) for log in self.time_logs.values() if log.job_id == job_id]

  async def count_jobs_by_status(self) -> dict[str, int]:
    counts: dict[str, int] = {}
    for job in self.jobs.values():
      counts[job.status.value] = counts.get(job.status.value, 0) + 1
    return counts

  async def count_cut_sheets_since(self, since: datetime) -> int:
    return sum(1 for entry in self.cut_logs if entry.status is SheetStatus.CUT and entry.cut_at >= since)

  async def job_duration_samples(self) -> list[tuple[int, int]]:
    samples = []
    for job in self.jobs.values():
      if job.total_duration > 0:
        detail = self._detail(job.id)
        sheets = sum(m.total_sheets + sum(r.quantity for r in m.recut_entries) for m in detail.materials())
        samples.append((job.total_duration, sheets))
    return samples

  async def count_materials(self) -> int:
    return len(self.materials)

  def _checklist_tree(self, checklist_id: int) -> ChecklistRecord:
    checklist = copy.deepcopy(self.checklists[checklist_id])
    items = [item for item in self.checklist_items.values() if item.checklist_id == checklist_id]
    checklist.items = [copy.deepcopy(item) for item in sorted(items, key=lambda item: (item.order_index, item.id))]
    return checklist

  async def create_checklist(self, job_id: int, *, name: str, category: ChecklistCategory) -> ChecklistRecord | None:
    if job_id not in self.jobs:
      return None
    checklist_id = self._next_id()
    self.checklists[checklist_id] = ChecklistRecord(id=checklist_id, job_id=job_id, name=name, category=category, created_at=self._clock())
    return self._checklist_tree(checklist_id)

  async def list_checklists(self, job_id: int) -> list[ChecklistRecord]:
    return [self._checklist_tree(c.id) for c in sorted(self.checklists.values(), key=lambda c: c.id) if c.job_id == job_id]

  async def get_checklist(self, checklist_id: int) -> ChecklistRecord | None:
    if checklist_id not in self.checklists:
      return None
    return self._checklist_tree(checklist_id)

  async def delete_checklist(self, checklist_id: int) -> bool:
    if self.checklists.pop(checklist_id, None) is None:
      return False
    self.checklist_items = {key: item for key, item in self.checklist_items.items() if item.checklist_id != checklist_id}
    return True

  async def add_checklist_item(self, checklist_id: int, *, text: str, priority: ChecklistPriority, order_index: int | None, notes: str | None) -> ChecklistItemRecord | None:
    checklist = self.checklists.get(checklist_id)
    if checklist is None:
      return None
    if order_index is None:
      order_index = max((item.order_index for item in self.checklist_items.values() if item.checklist_id == checklist_id), default=-1) + 1
    item_id = self._next_id()
    self.checklist_items[item_id] = ChecklistItemRecord(id=item_id, checklist_id=checklist_id, job_id=checklist.job_id, text=text, priority=priority, order_index=order_index, notes=notes)
    return copy.deepcopy(self.checklist_items[item_id])

  async def get_checklist_item(self, item_id: int) -> ChecklistItemRecord | None:
    item = self.checklist_items.get(item_id)
    return copy.deepcopy(item) if item else None

  async def set_checklist_item_completed(self, item_id: int, *, completed: bool, completed_at: datetime | None) -> ChecklistItemRecord | None:
    item = self.checklist_items.get(item_id)
    if item is None:
      return None
    item.completed = completed
    item.completed_at = completed_at
    return copy.deepcopy(item)

  async def delete_checklist_item(self, item_id: int) -> bool:
    return self.checklist_items.pop(item_id, None) is not None


@pytest.fixture
def anyio_backend() -> str:
  return "asyncio"


@pytest.fixture
def clock() -> FakeClock:
  return FakeClock()


@pytest.fixture
def repo(clock: FakeClock) -> InMemoryCuttingRepo:
  return InMemoryCuttingRepo(clock)


@pytest.fixture
def publisher() -> RecordingPublisher:
  return RecordingPublisher()
