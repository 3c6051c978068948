from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Response, status

from shopfloor.api.deps import get_cutlist_service, get_recut_registry, get_sheet_store
from shopfloor.api.models import AddSheetsRequest, RecutCreateRequest, SheetStatusUpdateRequest
from shopfloor.cutting.views import material_view, recut_view
from shopfloor.services.cutlists import CutlistService
from shopfloor.services.recuts import RecutRegistry
from shopfloor.services.sheets import SheetStatusStore

router = APIRouter()


@router.delete("/{material_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_material(material_id: int, service: CutlistService = Depends(get_cutlist_service)) -> Response:  # noqa: B008
  await service.delete_material(material_id)
  return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{material_id}/sheet-status", response_model=dict[str, Any])
async def set_sheet_status(material_id: int, request: SheetStatusUpdateRequest, store: SheetStatusStore = Depends(get_sheet_store)) -> dict[str, Any]:  # noqa: B008
  """Set one original sheet to pending, cut or skip."""
  material = await store.set_sheet_status(material_id, request.sheet_index, request.status)
  return material_view(material)


@router.post("/{material_id}/add-sheets", response_model=dict[str, Any])
async def add_sheets(material_id: int, request: AddSheetsRequest, store: SheetStatusStore = Depends(get_sheet_store)) -> dict[str, Any]:  # noqa: B008
  return material_view(await store.add_sheets(material_id, request.additional_sheets))


@router.delete("/{material_id}/sheet/{sheet_index}", response_model=dict[str, Any])
async def delete_sheet(material_id: int, sheet_index: int, store: SheetStatusStore = Depends(get_sheet_store)) -> dict[str, Any]:  # noqa: B008
  """Remove a skipped sheet; later sheets shift down one index."""
  return material_view(await store.delete_sheet(material_id, sheet_index))


@router.get("/{material_id}/recuts", response_model=list[dict[str, Any]])
async def list_recuts(material_id: int, registry: RecutRegistry = Depends(get_recut_registry)) -> list[dict[str, Any]]:  # noqa: B008
  return [recut_view(recut) for recut in await registry.list_recuts(material_id)]


@router.post("/{material_id}/recuts", response_model=dict[str, Any], status_code=status.HTTP_201_CREATED)
async def add_recut(material_id: int, request: RecutCreateRequest, registry: RecutRegistry = Depends(get_recut_registry)) -> dict[str, Any]:  # noqa: B008
  recut = await registry.add_recut(material_id, request.quantity, request.reason)
  return recut_view(recut)
