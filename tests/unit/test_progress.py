from __future__ import annotations

from datetime import UTC, datetime

from shopfloor.cutting.models import CutlistRecord, JobDetail, JobRecord, JobStatus, MaterialRecord, RecutRecord, SheetStatus
from shopfloor.cutting.progress import EMPTY, Progress, aggregate, combine, job_progress, material_combined_progress, material_progress

P, C, S = SheetStatus.PENDING, SheetStatus.CUT, SheetStatus.SKIP
NOW = datetime(2026, 3, 2, tzinfo=UTC)


def _material(statuses: list[SheetStatus], recuts: list[list[SheetStatus]] | None = None) -> MaterialRecord:
  entries = [RecutRecord(id=100 + i, material_id=1, job_id=1, quantity=len(batch), reason=None, sheet_statuses=batch, created_at=NOW) for i, batch in enumerate(recuts or [])]
  return MaterialRecord(id=1, cutlist_id=1, job_id=1, name="White Oak", total_sheets=len(statuses), sheet_statuses=statuses, created_at=NOW, recut_entries=entries)


def test_percentage_excludes_skipped_sheets():
  progress = aggregate([C, C, S, P, P, P, P, P, P, P], 10)
  assert (progress.completed, progress.skipped, progress.total) == (2, 1, 10)
  assert progress.effective_total == 9
  assert progress.percentage == 22


def test_percentage_rounds_half_up():
  assert Progress(completed=1, skipped=0, total=8).percentage == 13
  assert Progress(completed=1, skipped=0, total=3).percentage == 33
  assert Progress(completed=2, skipped=0, total=3).percentage == 67


def test_zero_effective_total_is_zero_percent_and_not_complete():
  all_skipped = aggregate([S, S], 2)
  assert all_skipped.effective_total == 0
  assert all_skipped.percentage == 0
  assert all_skipped.is_complete is False
  assert EMPTY.percentage == 0


def test_aggregate_ignores_entries_beyond_logical_total():
  progress = aggregate([C, C, C], 2)
  assert progress.completed == 2
  assert progress.total == 2


def test_combine_sums_counts_instead_of_averaging_percentages():
  a = aggregate([C, P, P], 3)  # 33%
  b = aggregate([C] * 10 + [P] * 2 + [S] * 3, 15)  # 83%
  combined = combine([a, b])
  assert (combined.completed, combined.skipped, combined.total) == (11, 3, 18)
  assert combined.percentage == 73


def test_combine_of_nothing_is_empty():
  assert combine([]) == EMPTY


def test_material_progress_keeps_recuts_separate():
  material = _material([C, C, P, P], recuts=[[C, S], [P]])
  assert material_progress(material).as_dict() == {"completed": 2, "skipped": 0, "total": 4, "effectiveTotal": 4, "percentage": 50}
  combined = material_combined_progress(material)
  assert (combined.completed, combined.skipped, combined.total) == (3, 1, 7)
  assert combined.percentage == 50


def test_job_progress_counts_every_material_and_recut():
  first = _material([C, C, C])
  second = _material([P, P, S], recuts=[[C]])
  job = JobRecord(id=1, job_number="JOB-1", customer_name="Acme", job_name="Kitchen", status=JobStatus.IN_PROGRESS, created_at=NOW, updated_at=NOW)
  detail = JobDetail(job=job, cutlists=[CutlistRecord(id=1, job_id=1, name="Cutlist 1", order_index=0, materials=[first, second])])
  progress = job_progress(detail)
  assert (progress.completed, progress.skipped, progress.total) == (4, 1, 7)
  assert progress.percentage == 67
  assert progress.is_complete is False


def test_is_complete_when_every_unskipped_sheet_is_cut():
  assert aggregate([C, S, C], 3).is_complete is True
