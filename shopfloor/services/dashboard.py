from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Any

from shopfloor.cutting.models import JobStatus
from shopfloor.storage.cutting_repo import CuttingRepository
from shopfloor.utils.clock import utc_midnight, utcnow
from shopfloor.utils.db_retry import execute_with_retry

_ACTIVE_STATUSES = (JobStatus.WAITING, JobStatus.IN_PROGRESS, JobStatus.PAUSED)


async def get_dashboard_stats(repo: CuttingRepository, *, clock: Callable[[], datetime] = utcnow) -> dict[str, Any]:
  """Shop-wide counters for the dashboard header."""
  by_status = await execute_with_retry(operation_name="dashboard_jobs_by_status", func=repo.count_jobs_by_status)
  jobs_by_status = {status.value: int(by_status.get(status.value, 0)) for status in JobStatus}
  since = utc_midnight(clock())
  sheets_cut_today = await execute_with_retry(operation_name="dashboard_sheets_cut", func=lambda: repo.count_cut_sheets_since(since))
  samples = await execute_with_retry(operation_name="dashboard_duration_samples", func=repo.job_duration_samples)
  material_count = await execute_with_retry(operation_name="dashboard_material_count", func=repo.count_materials)

  durations = [duration for duration, _ in samples]
  per_sheet = [duration / sheets for duration, sheets in samples if sheets > 0]

  return {
    "activeJobs": sum(jobs_by_status[status.value] for status in _ACTIVE_STATUSES),
    "sheetsCutToday": int(sheets_cut_today),
    "avgJobTime": round(sum(durations) / len(durations)) if durations else 0,
    "avgSheetTime": round(sum(per_sheet) / len(per_sheet)) if per_sheet else 0,
    "materialCount": int(material_count),
    "jobsByStatus": jobs_by_status,
  }
