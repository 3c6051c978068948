"""Create job, cutlist, material, recut and log tables.

Revision ID: 5c1e7a2d9b40
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "5c1e7a2d9b40"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
  """Upgrade schema."""
  op.create_table(
    "jobs",
    sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
    sa.Column("job_number", sa.String(), nullable=False),
    sa.Column("customer_name", sa.String(), nullable=False),
    sa.Column("job_name", sa.String(), nullable=False),
    sa.Column("status", sa.String(), server_default="waiting", nullable=False),
    sa.Column("start_time", sa.DateTime(timezone=True), nullable=True),
    sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
    sa.Column("total_duration", sa.Integer(), server_default="0", nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.CheckConstraint("status IN ('waiting', 'in_progress', 'paused', 'done')", name="ck_jobs_status"),
    sa.PrimaryKeyConstraint("id"),
    sa.UniqueConstraint("job_number"),
  )
  op.create_index(op.f("ix_jobs_status"), "jobs", ["status"], unique=False)

  op.create_table(
    "cutlists",
    sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
    sa.Column("job_id", sa.Integer(), nullable=False),
    sa.Column("name", sa.String(), nullable=False),
    sa.Column("order_index", sa.Integer(), server_default="0", nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.ForeignKeyConstraint(["job_id"], ["jobs.id"], ondelete="CASCADE"),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(op.f("ix_cutlists_job_id"), "cutlists", ["job_id"], unique=False)

  op.create_table(
    "job_materials",
    sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
    sa.Column("cutlist_id", sa.Integer(), nullable=False),
    sa.Column("name", sa.String(), nullable=False),
    sa.Column("total_sheets", sa.Integer(), nullable=False),
    sa.Column("sheet_statuses", postgresql.ARRAY(sa.Text()), server_default=sa.text("'{}'::text[]"), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.CheckConstraint("total_sheets >= 0", name="ck_job_materials_total_sheets"),
    sa.ForeignKeyConstraint(["cutlist_id"], ["cutlists.id"], ondelete="CASCADE"),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(op.f("ix_job_materials_cutlist_id"), "job_materials", ["cutlist_id"], unique=False)

  op.create_table(
    "recut_entries",
    sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
    sa.Column("material_id", sa.Integer(), nullable=False),
    sa.Column("quantity", sa.Integer(), nullable=False),
    sa.Column("reason", sa.Text(), nullable=True),
    sa.Column("sheet_statuses", postgresql.ARRAY(sa.Text()), server_default=sa.text("'{}'::text[]"), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.CheckConstraint("quantity > 0", name="ck_recut_entries_quantity"),
    sa.ForeignKeyConstraint(["material_id"], ["job_materials.id"], ondelete="CASCADE"),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(op.f("ix_recut_entries_material_id"), "recut_entries", ["material_id"], unique=False)

  op.create_table(
    "job_time_logs",
    sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
    sa.Column("job_id", sa.Integer(), nullable=False),
    sa.Column("source", sa.String(), nullable=False),
    sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
    sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
    sa.ForeignKeyConstraint(["job_id"], ["jobs.id"], ondelete="CASCADE"),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(op.f("ix_job_time_logs_job_id"), "job_time_logs", ["job_id"], unique=False)

  op.create_table(
    "sheet_cut_logs",
    sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
    sa.Column("material_id", sa.Integer(), nullable=False),
    sa.Column("recut_id", sa.Integer(), nullable=True),
    sa.Column("sheet_index", sa.Integer(), nullable=False),
    sa.Column("status", sa.String(), nullable=False),
    sa.Column("is_recut", sa.Boolean(), server_default="false", nullable=False),
    sa.Column("cut_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.ForeignKeyConstraint(["material_id"], ["job_materials.id"], ondelete="CASCADE"),
    sa.ForeignKeyConstraint(["recut_id"], ["recut_entries.id"], ondelete="CASCADE"),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(op.f("ix_sheet_cut_logs_material_id"), "sheet_cut_logs", ["material_id"], unique=False)
  op.create_index(op.f("ix_sheet_cut_logs_recut_id"), "sheet_cut_logs", ["recut_id"], unique=False)
  op.create_index(op.f("ix_sheet_cut_logs_cut_at"), "sheet_cut_logs", ["cut_at"], unique=False)


def downgrade() -> None:
  """Downgrade schema."""
  op.drop_table("sheet_cut_logs")
  op.drop_table("job_time_logs")
  op.drop_table("recut_entries")
  op.drop_table("job_materials")
  op.drop_table("cutlists")
  op.drop_index(op.f("ix_jobs_status"), table_name="jobs")
  op.drop_table("jobs")
