from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Response, status

from shopfloor.api.deps import get_cutlist_service
from shopfloor.api.models import MaterialInput
from shopfloor.cutting.views import material_view
from shopfloor.services.cutlists import CutlistService

router = APIRouter()


@router.delete("/{cutlist_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_cutlist(cutlist_id: int, service: CutlistService = Depends(get_cutlist_service)) -> Response:  # noqa: B008
  await service.delete_cutlist(cutlist_id)
  return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{cutlist_id}/materials", response_model=dict[str, Any])
async def add_material(cutlist_id: int, request: MaterialInput, service: CutlistService = Depends(get_cutlist_service)) -> dict[str, Any]:  # noqa: B008
  material = await service.add_material(cutlist_id, name=request.name, total_sheets=request.total_sheets)
  return material_view(material)
