from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Response, status

from shopfloor.api.deps import get_recut_registry
from shopfloor.api.models import SheetStatusUpdateRequest
from shopfloor.cutting.views import recut_view
from shopfloor.services.recuts import RecutRegistry

router = APIRouter()


@router.put("/{recut_id}/sheet-status", response_model=dict[str, Any])
async def set_recut_sheet_status(recut_id: int, request: SheetStatusUpdateRequest, registry: RecutRegistry = Depends(get_recut_registry)) -> dict[str, Any]:  # noqa: B008
  recut = await registry.set_recut_sheet_status(recut_id, request.sheet_index, request.status)
  return recut_view(recut)


@router.delete("/{recut_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recut(recut_id: int, registry: RecutRegistry = Depends(get_recut_registry)) -> Response:  # noqa: B008
  await registry.delete_recut(recut_id)
  return Response(status_code=status.HTTP_204_NO_CONTENT)
