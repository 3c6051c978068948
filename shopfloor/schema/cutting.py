from __future__ import annotations

import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer, String, Text, func, text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shopfloor.core.database import Base


class Job(Base):
  __tablename__ = "jobs"
  __table_args__ = (CheckConstraint("status IN ('waiting', 'in_progress', 'paused', 'done')", name="ck_jobs_status"),)

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  job_number: Mapped[str] = mapped_column(String, nullable=False, unique=True)
  customer_name: Mapped[str] = mapped_column(String, nullable=False)
  job_name: Mapped[str] = mapped_column(String, nullable=False)
  status: Mapped[str] = mapped_column(String, nullable=False, server_default="waiting", index=True)
  start_time: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
  end_time: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
  total_duration: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
  created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
  updated_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

  cutlists: Mapped[list[Cutlist]] = relationship(back_populates="job", cascade="all, delete-orphan", passive_deletes=True, order_by="Cutlist.order_index")
  time_logs: Mapped[list[JobTimeLog]] = relationship(cascade="all, delete-orphan", passive_deletes=True, order_by="JobTimeLog.start_time")
  checklists: Mapped[list[JobChecklist]] = relationship(back_populates="job", cascade="all, delete-orphan", passive_deletes=True, order_by="JobChecklist.id")


class Cutlist(Base):
  __tablename__ = "cutlists"

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  job_id: Mapped[int] = mapped_column(ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
  name: Mapped[str] = mapped_column(String, nullable=False)
  order_index: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
  created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

  job: Mapped[Job] = relationship(back_populates="cutlists")
  materials: Mapped[list[JobMaterial]] = relationship(back_populates="cutlist", cascade="all, delete-orphan", passive_deletes=True, order_by="JobMaterial.id")


class JobMaterial(Base):
  __tablename__ = "job_materials"
  __table_args__ = (CheckConstraint("total_sheets >= 0", name="ck_job_materials_total_sheets"),)

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  cutlist_id: Mapped[int] = mapped_column(ForeignKey("cutlists.id", ondelete="CASCADE"), nullable=False, index=True)
  name: Mapped[str] = mapped_column(String, nullable=False)
  total_sheets: Mapped[int] = mapped_column(Integer, nullable=False)
  sheet_statuses: Mapped[list[str]] = mapped_column(ARRAY(Text), nullable=False, server_default=text("'{}'::text[]"))
  created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

  cutlist: Mapped[Cutlist] = relationship(back_populates="materials")
  recut_entries: Mapped[list[RecutEntry]] = relationship(back_populates="material", cascade="all, delete-orphan", passive_deletes=True, order_by="RecutEntry.id")


class RecutEntry(Base):
  __tablename__ = "recut_entries"
  __table_args__ = (CheckConstraint("quantity > 0", name="ck_recut_entries_quantity"),)

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  material_id: Mapped[int] = mapped_column(ForeignKey("job_materials.id", ondelete="CASCADE"), nullable=False, index=True)
  quantity: Mapped[int] = mapped_column(Integer, nullable=False)
  reason: Mapped[str | None] = mapped_column(Text, nullable=True)
  sheet_statuses: Mapped[list[str]] = mapped_column(ARRAY(Text), nullable=False, server_default=text("'{}'::text[]"))
  created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

  material: Mapped[JobMaterial] = relationship(back_populates="recut_entries")


class JobTimeLog(Base):
  __tablename__ = "job_time_logs"

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  job_id: Mapped[int] = mapped_column(ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
  source: Mapped[str] = mapped_column(String, nullable=False)
  start_time: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
  end_time: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class SheetCutLog(Base):
  __tablename__ = "sheet_cut_logs"

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  material_id: Mapped[int] = mapped_column(ForeignKey("job_materials.id", ondelete="CASCADE"), nullable=False, index=True)
  recut_id: Mapped[int | None] = mapped_column(ForeignKey("recut_entries.id", ondelete="CASCADE"), nullable=True, index=True)
  sheet_index: Mapped[int] = mapped_column(Integer, nullable=False)
  status: Mapped[str] = mapped_column(String, nullable=False)
  is_recut: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="false")
  cut_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now(), index=True)


class JobChecklist(Base):
  __tablename__ = "job_checklists"
  __table_args__ = (CheckConstraint("category IN ('sheets', 'hardware', 'rods', 'general')", name="ck_job_checklists_category"),)

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  job_id: Mapped[int] = mapped_column(ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
  name: Mapped[str] = mapped_column(Text, nullable=False, server_default="Job Preparation Checklist")
  category: Mapped[str] = mapped_column(String, nullable=False, server_default="general")
  created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

  job: Mapped[Job] = relationship(back_populates="checklists")
  items: Mapped[list[ChecklistItem]] = relationship(back_populates="checklist", cascade="all, delete-orphan", passive_deletes=True, order_by="[ChecklistItem.order_index, ChecklistItem.id]")


class ChecklistItem(Base):
  __tablename__ = "checklist_items"
  __table_args__ = (CheckConstraint("priority IN ('low', 'normal', 'high', 'critical')", name="ck_checklist_items_priority"),)

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  checklist_id: Mapped[int] = mapped_column(ForeignKey("job_checklists.id", ondelete="CASCADE"), nullable=False, index=True)
  text: Mapped[str] = mapped_column(Text, nullable=False)
  completed: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="false", index=True)
  completed_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
  order_index: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
  priority: Mapped[str] = mapped_column(String, nullable=False, server_default="normal")
  notes: Mapped[str | None] = mapped_column(Text, nullable=True)
  created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

  checklist: Mapped[JobChecklist] = relationship(back_populates="items")
