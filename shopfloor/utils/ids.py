"""Identifier utilities."""

from __future__ import annotations

from datetime import datetime


def generate_job_number(now: datetime) -> str:
  """Return the human-facing job number for a job created at `now`."""
  return f"JOB-{int(now.timestamp() * 1000)}"
