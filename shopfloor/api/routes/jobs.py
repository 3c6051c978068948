from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query, Response, status

from shopfloor.api.deps import get_checklist_service, get_cutlist_service, get_job_lifecycle, get_job_service
from shopfloor.api.models import ChecklistCreateRequest, CutlistCreateRequest, JobCreateRequest
from shopfloor.cutting.models import NewMaterial
from shopfloor.cutting.views import checklist_view, cutlist_view, job_summary_view, job_view
from shopfloor.services.checklists import ChecklistService
from shopfloor.services.cutlists import CutlistService
from shopfloor.services.jobs import JobLifecycle, JobService

router = APIRouter()


@router.get("", response_model=list[dict[str, Any]])
async def list_jobs(
  search: str | None = Query(None, description="Case-insensitive match on customer, job name or job number."),  # noqa: B008
  status_filter: str | None = Query(None, alias="status"),  # noqa: B008
  service: JobService = Depends(get_job_service),  # noqa: B008
) -> list[dict[str, Any]]:
  """List jobs newest first with derived progress."""
  jobs = await service.list_jobs(search=search, status=status_filter)
  return [job_summary_view(detail) for detail in jobs]


@router.post("", response_model=dict[str, Any], status_code=status.HTTP_201_CREATED)
async def create_job(request: JobCreateRequest, service: JobService = Depends(get_job_service)) -> dict[str, Any]:  # noqa: B008
  materials = [NewMaterial(name=item.name, total_sheets=item.total_sheets) for item in request.materials]
  detail = await service.create_job(customer_name=request.customer_name, job_name=request.job_name, materials=materials)
  return job_view(detail)


@router.get("/{job_id}", response_model=dict[str, Any])
async def get_job(job_id: int, service: JobService = Depends(get_job_service)) -> dict[str, Any]:  # noqa: B008
  """Return the full job tree with progress and timer history."""
  return job_view(await service.get_job(job_id))


@router.delete("/{job_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_job(job_id: int, service: JobService = Depends(get_job_service)) -> Response:  # noqa: B008
  await service.delete_job(job_id)
  return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{job_id}/start", response_model=dict[str, Any])
async def start_job(job_id: int, lifecycle: JobLifecycle = Depends(get_job_lifecycle)) -> dict[str, Any]:  # noqa: B008
  return job_view(await lifecycle.apply(job_id, "start"))


@router.post("/{job_id}/pause", response_model=dict[str, Any])
async def pause_job(job_id: int, lifecycle: JobLifecycle = Depends(get_job_lifecycle)) -> dict[str, Any]:  # noqa: B008
  return job_view(await lifecycle.apply(job_id, "pause"))


@router.post("/{job_id}/resume", response_model=dict[str, Any])
async def resume_job(job_id: int, lifecycle: JobLifecycle = Depends(get_job_lifecycle)) -> dict[str, Any]:  # noqa: B008
  return job_view(await lifecycle.apply(job_id, "resume"))


@router.post("/{job_id}/complete", response_model=dict[str, Any])
async def complete_job(job_id: int, lifecycle: JobLifecycle = Depends(get_job_lifecycle)) -> dict[str, Any]:  # noqa: B008
  return job_view(await lifecycle.apply(job_id, "complete"))


@router.post("/{job_id}/start-timer", response_model=dict[str, Any])
async def start_timer(job_id: int, lifecycle: JobLifecycle = Depends(get_job_lifecycle)) -> dict[str, Any]:  # noqa: B008
  """Start the viewing-session clock; a no-op when a log is already open."""
  return job_view(await lifecycle.start_session_timer(job_id))


@router.post("/{job_id}/stop-timer", response_model=dict[str, Any])
async def stop_timer(job_id: int, lifecycle: JobLifecycle = Depends(get_job_lifecycle)) -> dict[str, Any]:  # noqa: B008
  """Stop the viewing-session clock unless the job is in progress."""
  return job_view(await lifecycle.stop_session_timer(job_id))


@router.post("/{job_id}/cutlists", response_model=list[dict[str, Any]])
async def create_cutlists(job_id: int, request: CutlistCreateRequest, service: CutlistService = Depends(get_cutlist_service)) -> list[dict[str, Any]]:  # noqa: B008
  cutlists = await service.create_cutlists(job_id, request.count)
  return [cutlist_view(cutlist) for cutlist in cutlists]


@router.get("/{job_id}/checklists", response_model=list[dict[str, Any]])
async def list_checklists(job_id: int, service: ChecklistService = Depends(get_checklist_service)) -> list[dict[str, Any]]:  # noqa: B008
  return [checklist_view(checklist) for checklist in await service.list_checklists(job_id)]


@router.post("/{job_id}/checklists", response_model=dict[str, Any], status_code=status.HTTP_201_CREATED)
async def create_checklist(job_id: int, request: ChecklistCreateRequest, service: ChecklistService = Depends(get_checklist_service)) -> dict[str, Any]:  # noqa: B008
  return checklist_view(await service.create_checklist(job_id, name=request.name, category=request.category))
