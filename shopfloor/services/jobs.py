"""Job creation, lookup and lifecycle transitions with timer accounting."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any

from shopfloor.cutting.errors import NotFoundError, ValidationError
from shopfloor.cutting.lifecycle import TIMER_CLOSING_ACTIONS, TIMER_OPENING_ACTIONS, next_status
from shopfloor.cutting.models import JobDetail, JobRecord, JobStatus, NewMaterial, TimeLogRecord
from shopfloor.cutting.sheets import require_text, validate_positive
from shopfloor.cutting.views import job_summary_view
from shopfloor.realtime.contracts import EventPublisher, EventType, RealtimeEvent
from shopfloor.storage.cutting_repo import CuttingRepository
from shopfloor.utils.clock import utcnow
from shopfloor.utils.db_retry import execute_with_retry
from shopfloor.utils.ids import generate_job_number

logger = logging.getLogger(__name__)


def _total_seconds(logs: Iterable[TimeLogRecord]) -> int:
  return round(sum(log.duration_seconds() for log in logs if not log.is_open))


def parse_job_status(raw: Any) -> JobStatus:
  try:
    return JobStatus(raw)
  except ValueError as exc:
    raise ValidationError(f"Invalid job status {raw!r}.") from exc


async def load_job_detail(repo: CuttingRepository, job_id: int) -> JobDetail:
  """Load a job tree, retrying transient read failures once."""
  detail = await execute_with_retry(operation_name="job_detail_load", func=lambda: repo.get_job_detail(job_id))
  if detail is None:
    raise NotFoundError(f"Job {job_id} not found.")
  return detail


class JobService:
  """Creates, lists and deletes jobs."""

  def __init__(self, *, repo: CuttingRepository, publisher: EventPublisher, clock: Callable[[], datetime] = utcnow) -> None:
    self._repo = repo
    self._publisher = publisher
    self._clock = clock

  async def create_job(self, *, customer_name: Any, job_name: Any, materials: list[NewMaterial] | None = None) -> JobDetail:
    """Create a waiting job; any materials given land in a first cutlist."""
    customer = require_text(customer_name, "Customer name")
    name = require_text(job_name, "Job name")
    cleaned = [NewMaterial(name=require_text(item.name, "Material name"), total_sheets=validate_positive(item.total_sheets, "Total sheets")) for item in materials or []]

    detail = await self._repo.create_job(job_number=generate_job_number(self._clock()), customer_name=customer, job_name=name, materials=cleaned)
    logger.info("Job created: job_id=%s, job_number=%s, materials=%d", detail.job.id, detail.job.job_number, len(cleaned))
    await self._publisher.publish(RealtimeEvent(type=EventType.JOB_CREATED, job_id=detail.job.id, payload={"job": job_summary_view(detail)}))
    return detail

  async def get_job(self, job_id: int) -> JobDetail:
    return await load_job_detail(self._repo, job_id)

  async def list_jobs(self, *, search: str | None = None, status: Any = None) -> list[JobDetail]:
    status_filter = parse_job_status(status) if status else None
    return await execute_with_retry(operation_name="job_list", func=lambda: self._repo.list_jobs(search=search or None, status=status_filter))

  async def delete_job(self, job_id: int) -> None:
    if not await self._repo.delete_job(job_id):
      raise NotFoundError(f"Job {job_id} not found.")
    logger.info("Job deleted: job_id=%s", job_id)
    await self._publisher.publish(RealtimeEvent(type=EventType.JOB_DELETED, job_id=job_id))


class JobLifecycle:
  """
  Applies job status transitions and keeps the job clock.

  At most one time log is open per job. Status changes and viewing sessions
  share that log, so a viewer opening a waiting job and the operator then
  starting it are counted once.
  """

  def __init__(self, *, repo: CuttingRepository, publisher: EventPublisher, clock: Callable[[], datetime] = utcnow) -> None:
    self._repo = repo
    self._publisher = publisher
    self._clock = clock

  async def _require_job(self, job_id: int) -> JobRecord:
    job = await self._repo.get_job(job_id)
    if job is None:
      raise NotFoundError(f"Job {job_id} not found.")
    return job

  async def apply(self, job_id: int, action: str) -> JobDetail:
    """Run `action` (start, pause, resume, complete) against the job."""
    job = await self._require_job(job_id)
    target = next_status(job.status, action)
    now = self._clock()

    total_duration: int | None = None
    if action in TIMER_OPENING_ACTIONS and await self._repo.get_open_time_log(job_id) is None:
      await self._repo.open_time_log(job_id, source="status", start_time=now)
    if action in TIMER_CLOSING_ACTIONS:
      logs = await self._repo.close_open_time_logs(job_id, end_time=now)
      total_duration = _total_seconds(logs)

    await self._repo.update_job(
      job_id,
      status=target,
      start_time=now if action == "start" else None,
      end_time=now if action == "complete" else None,
      total_duration=total_duration,
      updated_at=now,
    )
    logger.info("Job transition: job_id=%s, action=%s, %s -> %s", job_id, action, job.status.value, target.value)

    detail = await load_job_detail(self._repo, job_id)
    await self._publisher.publish(RealtimeEvent(type=EventType.JOB_UPDATED, job_id=job_id, payload={"action": action, "previousStatus": job.status.value, "status": target.value, "job": job_summary_view(detail)}))
    return detail

  async def start_session_timer(self, job_id: int) -> JobDetail:
    """Open a viewing-session log unless the job clock is already running."""
    await self._require_job(job_id)
    open_log = await self._repo.get_open_time_log(job_id)
    if open_log is None:
      open_log = await self._repo.open_time_log(job_id, source="session", start_time=self._clock())
      logger.info("Session timer started: job_id=%s", job_id)

    detail = await load_job_detail(self._repo, job_id)
    await self._publisher.publish(RealtimeEvent(type=EventType.JOB_TIMER_STARTED, job_id=job_id, payload={"startTime": open_log.start_time.isoformat()}))
    return detail

  async def stop_session_timer(self, job_id: int) -> JobDetail:
    """Close the open log when a viewer leaves, unless the job is in progress."""
    job = await self._require_job(job_id)
    if job.status is JobStatus.IN_PROGRESS:
      logger.debug("Session timer left running for in-progress job: job_id=%s", job_id)
    else:
      now = self._clock()
      logs = await self._repo.close_open_time_logs(job_id, end_time=now)
      await self._repo.update_job(job_id, total_duration=_total_seconds(logs), updated_at=now)
      logger.info("Session timer stopped: job_id=%s", job_id)

    detail = await load_job_detail(self._repo, job_id)
    await self._publisher.publish(RealtimeEvent(type=EventType.JOB_TIMER_STOPPED, job_id=job_id, payload={"totalDuration": detail.job.total_duration}))
    return detail
