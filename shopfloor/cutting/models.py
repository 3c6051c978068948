"""Domain records for jobs, cutlists, materials, recut batches and checklists."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Literal


class SheetStatus(str, Enum):
  """Closed set of per-sheet states."""

  PENDING = "pending"
  CUT = "cut"
  SKIP = "skip"


class JobStatus(str, Enum):
  """Job lifecycle states."""

  WAITING = "waiting"
  IN_PROGRESS = "in_progress"
  PAUSED = "paused"
  DONE = "done"


SheetAction = Literal["cut", "skip"]
TimeLogSource = Literal["status", "session"]


@dataclass
class RecutRecord:
  """A batch of extra sheets cut for a material, tracked independently of its original sheets."""

  id: int
  material_id: int
  job_id: int
  quantity: int
  reason: str | None
  sheet_statuses: list[SheetStatus]
  created_at: datetime


@dataclass
class MaterialRecord:
  """A colour/finish within a cutlist and its original sheet statuses."""

  id: int
  cutlist_id: int
  job_id: int
  name: str
  total_sheets: int
  sheet_statuses: list[SheetStatus]
  created_at: datetime
  recut_entries: list[RecutRecord] = field(default_factory=list)


@dataclass
class CutlistRecord:
  id: int
  job_id: int
  name: str
  order_index: int
  materials: list[MaterialRecord] = field(default_factory=list)


@dataclass
class TimeLogRecord:
  id: int
  job_id: int
  source: TimeLogSource
  start_time: datetime
  end_time: datetime | None = None

  @property
  def is_open(self) -> bool:
    return self.end_time is None

  def duration_seconds(self) -> float:
    if self.end_time is None:
      return 0.0
    return max((self.end_time - self.start_time).total_seconds(), 0.0)


@dataclass
class JobRecord:
  """A customer job and its lifecycle fields."""

  id: int
  job_number: str
  customer_name: str
  job_name: str
  status: JobStatus
  created_at: datetime
  updated_at: datetime
  start_time: datetime | None = None
  end_time: datetime | None = None
  total_duration: int = 0


@dataclass
class JobDetail:
  """A job with its full cutlist tree and timer history."""

  job: JobRecord
  cutlists: list[CutlistRecord] = field(default_factory=list)
  time_logs: list[TimeLogRecord] = field(default_factory=list)

  def materials(self) -> list[MaterialRecord]:
    return [material for cutlist in self.cutlists for material in cutlist.materials]


@dataclass(frozen=True)
class SheetCutLogEntry:
  """One recorded sheet status change."""

  material_id: int
  sheet_index: int
  status: SheetStatus
  cut_at: datetime
  recut_id: int | None = None

  @property
  def is_recut(self) -> bool:
    return self.recut_id is not None


@dataclass(frozen=True)
class NewMaterial:
  name: str
  total_sheets: int


class ChecklistCategory(str, Enum):
  SHEETS = "sheets"
  HARDWARE = "hardware"
  RODS = "rods"
  GENERAL = "general"


class ChecklistPriority(str, Enum):
  LOW = "low"
  NORMAL = "normal"
  HIGH = "high"
  CRITICAL = "critical"


@dataclass
class ChecklistItemRecord:
  """One preparation step on a job checklist."""

  id: int
  checklist_id: int
  job_id: int
  text: str
  priority: ChecklistPriority
  order_index: int
  completed: bool = False
  completed_at: datetime | None = None
  notes: str | None = None


@dataclass
class ChecklistRecord:
  """A job's part/preparation checklist and its items in display order."""

  id: int
  job_id: int
  name: str
  category: ChecklistCategory
  created_at: datetime
  items: list[ChecklistItemRecord] = field(default_factory=list)
