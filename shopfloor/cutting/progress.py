"""Progress aggregation over sheet status arrays."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from shopfloor.cutting.models import CutlistRecord, JobDetail, MaterialRecord, RecutRecord, SheetStatus


@dataclass(frozen=True)
class Progress:
  """Raw counts plus the derived completion percentage."""

  completed: int
  skipped: int
  total: int

  @property
  def effective_total(self) -> int:
    return max(0, self.total - self.skipped)

  @property
  def percentage(self) -> int:
    return _percent(self.completed, self.effective_total)

  @property
  def is_complete(self) -> bool:
    # Nothing to cut is not the same as everything cut.
    return self.total > 0 and self.completed >= self.effective_total

  def as_dict(self) -> dict[str, int]:
    return {"completed": self.completed, "skipped": self.skipped, "total": self.total, "effectiveTotal": self.effective_total, "percentage": self.percentage}


EMPTY = Progress(completed=0, skipped=0, total=0)


def _percent(completed: int, effective_total: int) -> int:
  # Integer round-half-up of 100 * completed / effective_total.
  if effective_total <= 0:
    return 0
  return (200 * completed + effective_total) // (2 * effective_total)


def aggregate(statuses: Sequence[SheetStatus | str], logical_total: int) -> Progress:
  """Count cut and skipped sheets among the first `logical_total` entries."""
  total = max(logical_total, 0)
  window = list(statuses)[:total]
  completed = sum(1 for status in window if status == SheetStatus.CUT)
  skipped = sum(1 for status in window if status == SheetStatus.SKIP)
  return Progress(completed=completed, skipped=skipped, total=total)


def combine(progresses: Iterable[Progress]) -> Progress:
  """Sum raw counts; the percentage is recomputed from the sums, never averaged."""
  completed = skipped = total = 0
  for progress in progresses:
    completed += progress.completed
    skipped += progress.skipped
    total += progress.total
  return Progress(completed=completed, skipped=skipped, total=total)


def recut_progress(recut: RecutRecord) -> Progress:
  return aggregate(recut.sheet_statuses, recut.quantity)


def material_progress(material: MaterialRecord) -> Progress:
  """Progress of the material's original sheets only."""
  return aggregate(material.sheet_statuses, material.total_sheets)


def material_combined_progress(material: MaterialRecord) -> Progress:
  """Progress of the original sheets plus every recut batch."""
  return combine([material_progress(material), *(recut_progress(recut) for recut in material.recut_entries)])


def cutlist_progress(cutlist: CutlistRecord) -> Progress:
  return combine(material_combined_progress(material) for material in cutlist.materials)


def job_progress(detail: JobDetail) -> Progress:
  return combine(cutlist_progress(cutlist) for cutlist in detail.cutlists)
