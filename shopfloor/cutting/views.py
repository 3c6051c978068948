"""camelCase read models shared by API responses and realtime payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from shopfloor.cutting.lifecycle import allowed_actions
from shopfloor.cutting.models import ChecklistItemRecord, ChecklistRecord, CutlistRecord, JobDetail, MaterialRecord, RecutRecord, TimeLogRecord
from shopfloor.cutting.progress import cutlist_progress, job_progress, material_combined_progress, material_progress, recut_progress


def _iso(value: datetime | None) -> str | None:
  return value.isoformat() if value is not None else None


def recut_view(recut: RecutRecord) -> dict[str, Any]:
  return {
    "id": recut.id,
    "materialId": recut.material_id,
    "jobId": recut.job_id,
    "quantity": recut.quantity,
    "reason": recut.reason,
    "sheetStatuses": [status.value for status in recut.sheet_statuses],
    "progress": recut_progress(recut).as_dict(),
    "createdAt": _iso(recut.created_at),
  }


def material_view(material: MaterialRecord) -> dict[str, Any]:
  return {
    "id": material.id,
    "cutlistId": material.cutlist_id,
    "jobId": material.job_id,
    "name": material.name,
    "totalSheets": material.total_sheets,
    "sheetStatuses": [status.value for status in material.sheet_statuses],
    "recutEntries": [recut_view(recut) for recut in material.recut_entries],
    "progress": material_progress(material).as_dict(),
    "combinedProgress": material_combined_progress(material).as_dict(),
  }


def cutlist_view(cutlist: CutlistRecord) -> dict[str, Any]:
  return {
    "id": cutlist.id,
    "jobId": cutlist.job_id,
    "name": cutlist.name,
    "orderIndex": cutlist.order_index,
    "materials": [material_view(material) for material in cutlist.materials],
    "progress": cutlist_progress(cutlist).as_dict(),
  }


def time_log_view(log: TimeLogRecord) -> dict[str, Any]:
  return {"id": log.id, "source": log.source, "startTime": _iso(log.start_time), "endTime": _iso(log.end_time), "durationSeconds": round(log.duration_seconds())}


def job_summary_view(detail: JobDetail) -> dict[str, Any]:
  """Job fields plus derived progress, without the cutlist tree."""
  job = detail.job
  progress = job_progress(detail)
  return {
    "id": job.id,
    "jobNumber": job.job_number,
    "customerName": job.customer_name,
    "jobName": job.job_name,
    "status": job.status.value,
    "createdAt": _iso(job.created_at),
    "updatedAt": _iso(job.updated_at),
    "startTime": _iso(job.start_time),
    "endTime": _iso(job.end_time),
    "totalDuration": job.total_duration,
    "cutlistCount": len(detail.cutlists),
    "materialCount": len(detail.materials()),
    "progress": progress.as_dict(),
    # Informational only; status changes stay explicit.
    "allSheetsComplete": progress.is_complete,
  }


def job_view(detail: JobDetail) -> dict[str, Any]:
  view = job_summary_view(detail)
  view["allowedActions"] = allowed_actions(detail.job.status)
  view["cutlists"] = [cutlist_view(cutlist) for cutlist in detail.cutlists]
  view["timeLogs"] = [time_log_view(log) for log in detail.time_logs]
  return view


def checklist_item_view(item: ChecklistItemRecord) -> dict[str, Any]:
  return {
    "id": item.id,
    "checklistId": item.checklist_id,
    "jobId": item.job_id,
    "text": item.text,
    "priority": item.priority.value,
    "orderIndex": item.order_index,
    "completed": item.completed,
    "completedAt": _iso(item.completed_at),
    "notes": item.notes,
  }


def checklist_view(checklist: ChecklistRecord) -> dict[str, Any]:
  return {
    "id": checklist.id,
    "jobId": checklist.job_id,
    "name": checklist.name,
    "category": checklist.category.value,
    "createdAt": _iso(checklist.created_at),
    "items": [checklist_item_view(item) for item in checklist.items],
    "completedCount": sum(1 for item in checklist.items if item.completed),
    "itemCount": len(checklist.items),
  }
