"""Create job checklist and checklist item tables.

Revision ID: 8d3f4b6a1e27
Revises: 5c1e7a2d9b40
Create Date: 2026-10-18
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "8d3f4b6a1e27"
down_revision = "5c1e7a2d9b40"
branch_labels = None
depends_on = None


def upgrade() -> None:
  """Upgrade schema."""
  op.create_table(
    "job_checklists",
    sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
    sa.Column("job_id", sa.Integer(), nullable=False),
    sa.Column("name", sa.Text(), server_default="Job Preparation Checklist", nullable=False),
    sa.Column("category", sa.String(), server_default="general", nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.CheckConstraint("category IN ('sheets', 'hardware', 'rods', 'general')", name="ck_job_checklists_category"),
    sa.ForeignKeyConstraint(["job_id"], ["jobs.id"], ondelete="CASCADE"),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(op.f("ix_job_checklists_job_id"), "job_checklists", ["job_id"], unique=False)

  op.create_table(
    "checklist_items",
    sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
    sa.Column("checklist_id", sa.Integer(), nullable=False),
    sa.Column("text", sa.Text(), nullable=False),
    sa.Column("completed", sa.Boolean(), server_default="false", nullable=False),
    sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
    sa.Column("order_index", sa.Integer(), server_default="0", nullable=False),
    sa.Column("priority", sa.String(), server_default="normal", nullable=False),
    sa.Column("notes", sa.Text(), nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.CheckConstraint("priority IN ('low', 'normal', 'high', 'critical')", name="ck_checklist_items_priority"),
    sa.ForeignKeyConstraint(["checklist_id"], ["job_checklists.id"], ondelete="CASCADE"),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(op.f("ix_checklist_items_checklist_id"), "checklist_items", ["checklist_id"], unique=False)
  op.create_index(op.f("ix_checklist_items_completed"), "checklist_items", ["completed"], unique=False)


def downgrade() -> None:
  """Downgrade schema."""
  op.drop_index(op.f("ix_checklist_items_completed"), table_name="checklist_items")
  op.drop_index(op.f("ix_checklist_items_checklist_id"), table_name="checklist_items")
  op.drop_table("checklist_items")
  op.drop_index(op.f("ix_job_checklists_job_id"), table_name="job_checklists")
  op.drop_table("job_checklists")
