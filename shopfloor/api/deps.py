"""Shared FastAPI dependencies wiring repositories, the realtime hub and services."""

from __future__ import annotations

from fastapi import Depends, FastAPI, Request

from shopfloor.config import get_settings
from shopfloor.realtime.contracts import EventPublisher
from shopfloor.realtime.hub import RealtimeHub
from shopfloor.services.checklists import ChecklistService
from shopfloor.services.cutlists import CutlistService
from shopfloor.services.jobs import JobLifecycle, JobService
from shopfloor.services.recuts import RecutRegistry
from shopfloor.services.sheets import SheetStatusStore
from shopfloor.storage.cutting_repo import CuttingRepository
from shopfloor.storage.factory import _get_cutting_repo


def hub_for_app(app: FastAPI) -> RealtimeHub:
  """Return the app's realtime hub, creating it when lifespan has not run."""
  hub = getattr(app.state, "realtime_hub", None)
  if hub is None:
    hub = RealtimeHub(send_timeout_seconds=get_settings().ws_send_timeout_seconds)
    app.state.realtime_hub = hub
  return hub


def get_cutting_repo() -> CuttingRepository:
  return _get_cutting_repo(get_settings())


def get_publisher(request: Request) -> EventPublisher:
  return hub_for_app(request.app)


def get_sheet_store(repo: CuttingRepository = Depends(get_cutting_repo), publisher: EventPublisher = Depends(get_publisher)) -> SheetStatusStore:  # noqa: B008
  return SheetStatusStore(repo=repo, publisher=publisher)


def get_recut_registry(repo: CuttingRepository = Depends(get_cutting_repo), publisher: EventPublisher = Depends(get_publisher)) -> RecutRegistry:  # noqa: B008
  return RecutRegistry(repo=repo, publisher=publisher)


def get_job_service(repo: CuttingRepository = Depends(get_cutting_repo), publisher: EventPublisher = Depends(get_publisher)) -> JobService:  # noqa: B008
  return JobService(repo=repo, publisher=publisher)


def get_job_lifecycle(repo: CuttingRepository = Depends(get_cutting_repo), publisher: EventPublisher = Depends(get_publisher)) -> JobLifecycle:  # noqa: B008
  return JobLifecycle(repo=repo, publisher=publisher)


def get_cutlist_service(repo: CuttingRepository = Depends(get_cutting_repo), publisher: EventPublisher = Depends(get_publisher)) -> CutlistService:  # noqa: B008
  return CutlistService(repo=repo, publisher=publisher)


def get_checklist_service(repo: CuttingRepository = Depends(get_cutting_repo), publisher: EventPublisher = Depends(get_publisher)) -> ChecklistService:  # noqa: B008
  return ChecklistService(repo=repo, publisher=publisher)
