from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from shopfloor.api.deps import get_cutting_repo
from shopfloor.services.dashboard import get_dashboard_stats
from shopfloor.storage.cutting_repo import CuttingRepository

router = APIRouter()


@router.get("/stats", response_model=dict[str, Any])
async def dashboard_stats(repo: CuttingRepository = Depends(get_cutting_repo)) -> dict[str, Any]:  # noqa: B008
  """Active job count, today's cut sheets and average timings."""
  return await get_dashboard_stats(repo)
