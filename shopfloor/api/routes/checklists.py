from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Response, status

from shopfloor.api.deps import get_checklist_service
from shopfloor.api.models import ChecklistItemCreateRequest, ChecklistItemUpdateRequest
from shopfloor.cutting.views import checklist_item_view, checklist_view
from shopfloor.services.checklists import ChecklistService

router = APIRouter()


@router.get("/{checklist_id}", response_model=dict[str, Any])
async def get_checklist(checklist_id: int, service: ChecklistService = Depends(get_checklist_service)) -> dict[str, Any]:  # noqa: B008
  """Return one checklist with its items in display order."""
  return checklist_view(await service.get_checklist(checklist_id))


@router.delete("/{checklist_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_checklist(checklist_id: int, service: ChecklistService = Depends(get_checklist_service)) -> Response:  # noqa: B008
  await service.delete_checklist(checklist_id)
  return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{checklist_id}/items", response_model=dict[str, Any], status_code=status.HTTP_201_CREATED)
async def add_item(checklist_id: int, request: ChecklistItemCreateRequest, service: ChecklistService = Depends(get_checklist_service)) -> dict[str, Any]:  # noqa: B008
  item = await service.add_item(checklist_id, text=request.text, priority=request.priority, order_index=request.order_index, notes=request.notes)
  return checklist_item_view(item)


@router.patch("/items/{item_id}", response_model=dict[str, Any])
async def update_item(item_id: int, request: ChecklistItemUpdateRequest, service: ChecklistService = Depends(get_checklist_service)) -> dict[str, Any]:  # noqa: B008
  """Tick or untick one checklist item."""
  return checklist_item_view(await service.set_item_completed(item_id, request.completed))


@router.delete("/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(item_id: int, service: ChecklistService = Depends(get_checklist_service)) -> Response:  # noqa: B008
  await service.delete_item(item_id)
  return Response(status_code=status.HTTP_204_NO_CONTENT)
