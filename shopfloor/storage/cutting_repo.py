"""Storage interface for jobs, cutlists, materials, recuts, checklists and their logs."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from shopfloor.cutting.models import ChecklistCategory, ChecklistItemRecord, ChecklistPriority, ChecklistRecord, CutlistRecord, JobDetail, JobRecord, JobStatus, MaterialRecord, NewMaterial, RecutRecord, SheetCutLogEntry, SheetStatus, TimeLogRecord, TimeLogSource


class CuttingRepository(Protocol):
  """Repository contract for cutting-progress persistence."""

  async def create_job(self, *, job_number: str, customer_name: str, job_name: str, materials: list[NewMaterial]) -> JobDetail:
    """Persist a job, plus a first cutlist holding `materials` when any are given."""

  async def get_job(self, job_id: int) -> JobRecord | None:
    """Fetch a job row without its tree."""

  async def get_job_detail(self, job_id: int) -> JobDetail | None:
    """Fetch a job with cutlists, materials, recuts and time logs."""

  async def list_jobs(self, *, search: str | None = None, status: JobStatus | None = None) -> list[JobDetail]:
    """Return jobs newest first, optionally filtered."""

  async def update_job(self, job_id: int, *, status: JobStatus | None = None, start_time: datetime | None = None, end_time: datetime | None = None, total_duration: int | None = None, updated_at: datetime | None = None) -> JobRecord | None:
    """Apply partial updates to a job."""

  async def delete_job(self, job_id: int) -> bool:
    """Delete a job and everything it owns."""

  async def create_cutlists(self, job_id: int, count: int) -> list[CutlistRecord]:
    """Append `count` cutlists after the job's existing ones."""

  async def get_cutlist(self, cutlist_id: int) -> CutlistRecord | None:
    """Fetch one cutlist with its materials."""

  async def delete_cutlist(self, cutlist_id: int) -> bool:
    """Delete a cutlist and its materials."""

  async def add_material(self, cutlist_id: int, *, name: str, total_sheets: int) -> MaterialRecord | None:
    """Add a material with an all-pending status array."""

  async def get_material(self, material_id: int) -> MaterialRecord | None:
    """Fetch a material with its recut batches."""

  async def save_material_sheets(self, material_id: int, *, total_sheets: int, sheet_statuses: list[SheetStatus], cut_log: SheetCutLogEntry | None = None) -> MaterialRecord | None:
    """Overwrite a material's sheet count and status array, committing `cut_log` in the same transaction."""

  async def delete_material(self, material_id: int) -> bool:
    """Delete a material and its recut batches."""

  async def create_recut(self, material_id: int, *, quantity: int, reason: str | None) -> RecutRecord | None:
    """Create a recut batch with an all-pending status array."""

  async def get_recut(self, recut_id: int) -> RecutRecord | None:
    """Fetch one recut batch."""

  async def list_recuts(self, material_id: int) -> list[RecutRecord]:
    """Return a material's recut batches in creation order."""

  async def save_recut_sheets(self, recut_id: int, *, sheet_statuses: list[SheetStatus], cut_log: SheetCutLogEntry | None = None) -> RecutRecord | None:
    """Overwrite a recut batch's status array, committing `cut_log` in the same transaction."""

  async def delete_recut(self, recut_id: int) -> bool:
    """Delete one recut batch."""

  async def open_time_log(self, job_id: int, *, source: TimeLogSource, start_time: datetime) -> TimeLogRecord:
    """Open a timer interval for a job."""

  async def get_open_time_log(self, job_id: int) -> TimeLogRecord | None:
    """Return the job's open timer interval, if any."""

  async def close_open_time_logs(self, job_id: int, *, end_time: datetime) -> list[TimeLogRecord]:
    """Close open intervals and return every interval for the job."""

  async def count_jobs_by_status(self) -> dict[str, int]:
    """Count jobs per status value."""

  async def count_cut_sheets_since(self, since: datetime) -> int:
    """Count sheet cut-log rows with status cut at or after `since`."""

  async def job_duration_samples(self) -> list[tuple[int, int]]:
    """Return (total_duration, sheet count incl. recuts) for jobs with a recorded duration."""

  async def count_materials(self) -> int:
    """Count material rows."""

  async def create_checklist(self, job_id: int, *, name: str, category: ChecklistCategory) -> ChecklistRecord | None:
    """Create an empty checklist for a job; None when the job is missing."""

  async def list_checklists(self, job_id: int) -> list[ChecklistRecord]:
    """Return a job's checklists with their items, oldest first."""

  async def get_checklist(self, checklist_id: int) -> ChecklistRecord | None:
    """Fetch one checklist with its items ordered by order_index."""

  async def delete_checklist(self, checklist_id: int) -> bool:
    """Delete a checklist and its items."""

  async def add_checklist_item(self, checklist_id: int, *, text: str, priority: ChecklistPriority, order_index: int | None, notes: str | None) -> ChecklistItemRecord | None:
    """Append an item; a None order_index places it after the last item."""

  async def get_checklist_item(self, item_id: int) -> ChecklistItemRecord | None:
    """Fetch one checklist item."""

  async def set_checklist_item_completed(self, item_id: int, *, completed: bool, completed_at: datetime | None) -> ChecklistItemRecord | None:
    """Mark an item done or not done."""

  async def delete_checklist_item(self, item_id: int) -> bool:
    """Delete one checklist item."""
