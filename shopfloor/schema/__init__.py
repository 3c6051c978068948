"""Schema package exports."""

from .cutting import ChecklistItem, Cutlist, Job, JobChecklist, JobMaterial, JobTimeLog, RecutEntry, SheetCutLog

__all__ = ["ChecklistItem", "Cutlist", "Job", "JobChecklist", "JobMaterial", "JobTimeLog", "RecutEntry", "SheetCutLog"]
