"""Async REST client for the shopfloor API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from shopfloor.cutting.errors import ConflictError, CuttingError, NotFoundError, TransientIOError, ValidationError

logger = logging.getLogger(__name__)


def _detail(response: httpx.Response) -> str:
  try:
    body = response.json()
  except ValueError:
    return response.text or response.reason_phrase
  if isinstance(body, dict) and "detail" in body:
    return str(body["detail"])
  return str(body)


def error_for_response(response: httpx.Response) -> CuttingError:
  """Map an error response back onto the domain error taxonomy."""
  detail = _detail(response)
  status_code = response.status_code
  if status_code == 404:
    return NotFoundError(detail)
  if status_code == 409:
    return ConflictError(detail)
  if status_code >= 500:
    return TransientIOError(f"Server error {status_code}: {detail}")
  return ValidationError(detail)


class ShopfloorClient:
  """Thin wrapper over httpx that speaks the REST contract and raises CuttingError subclasses."""

  def __init__(self, base_url: str | None = None, *, http_client: httpx.AsyncClient | None = None, timeout: float = 10.0) -> None:
    if http_client is None and not base_url:
      raise ValueError("Either base_url or http_client is required.")
    self._owns_client = http_client is None
    self._client = http_client or httpx.AsyncClient(base_url=str(base_url).rstrip("/"), timeout=timeout, trust_env=False)

  async def __aenter__(self) -> ShopfloorClient:
    return self

  async def __aexit__(self, *exc_info: Any) -> None:
    await self.aclose()

  async def aclose(self) -> None:
    if self._owns_client:
      await self._client.aclose()

  async def _request(self, method: str, path: str, *, json: Any = None, params: dict[str, Any] | None = None) -> Any:
    try:
      response = await self._client.request(method, path, json=json, params=params)
    except httpx.RequestError as exc:
      logger.warning("Shopfloor request failed %s %s: %s", method, path, exc)
      raise TransientIOError(f"{method} {path} failed: {exc}") from exc

    if response.status_code >= 400:
      raise error_for_response(response)
    if response.status_code == 204 or not response.content:
      return None
    return response.json()

  async def list_jobs(self, *, search: str | None = None, status: str | None = None) -> list[dict[str, Any]]:
    params = {key: value for key, value in {"search": search, "status": status}.items() if value}
    return await self._request("GET", "/api/jobs", params=params or None)

  async def create_job(self, *, customer_name: str, job_name: str, materials: list[dict[str, Any]] | None = None) -> dict[str, Any]:
    return await self._request("POST", "/api/jobs", json={"customerName": customer_name, "jobName": job_name, "materials": materials or []})

  async def get_job(self, job_id: int) -> dict[str, Any]:
    return await self._request("GET", f"/api/jobs/{job_id}")

  async def delete_job(self, job_id: int) -> None:
    await self._request("DELETE", f"/api/jobs/{job_id}")

  async def transition_job(self, job_id: int, action: str) -> dict[str, Any]:
    """Run start, pause, resume or complete."""
    return await self._request("POST", f"/api/jobs/{job_id}/{action}")

  async def start_timer(self, job_id: int) -> dict[str, Any]:
    return await self._request("POST", f"/api/jobs/{job_id}/start-timer")

  async def stop_timer(self, job_id: int) -> dict[str, Any]:
    return await self._request("POST", f"/api/jobs/{job_id}/stop-timer")

  async def create_cutlists(self, job_id: int, count: int = 1) -> list[dict[str, Any]]:
    return await self._request("POST", f"/api/jobs/{job_id}/cutlists", json={"count": count})

  async def delete_cutlist(self, cutlist_id: int) -> None:
    await self._request("DELETE", f"/api/cutlists/{cutlist_id}")

  async def add_material(self, cutlist_id: int, *, name: str, total_sheets: int) -> dict[str, Any]:
    return await self._request("POST", f"/api/cutlists/{cutlist_id}/materials", json={"name": name, "totalSheets": total_sheets})

  async def delete_material(self, material_id: int) -> None:
    await self._request("DELETE", f"/api/materials/{material_id}")

  async def set_sheet_status(self, material_id: int, sheet_index: int, status: str) -> dict[str, Any]:
    return await self._request("PUT", f"/api/materials/{material_id}/sheet-status", json={"sheetIndex": sheet_index, "status": status})

  async def add_sheets(self, material_id: int, additional_sheets: int) -> dict[str, Any]:
    return await self._request("POST", f"/api/materials/{material_id}/add-sheets", json={"additionalSheets": additional_sheets})

  async def delete_sheet(self, material_id: int, sheet_index: int) -> dict[str, Any]:
    return await self._request("DELETE", f"/api/materials/{material_id}/sheet/{sheet_index}")

  async def list_recuts(self, material_id: int) -> list[dict[str, Any]]:
    return await self._request("GET", f"/api/materials/{material_id}/recuts")

  async def add_recut(self, material_id: int, quantity: int, reason: str | None = None) -> dict[str, Any]:
    return await self._request("POST", f"/api/materials/{material_id}/recuts", json={"quantity": quantity, "reason": reason})

  async def set_recut_sheet_status(self, recut_id: int, sheet_index: int, status: str) -> dict[str, Any]:
    return await self._request("PUT", f"/api/recuts/{recut_id}/sheet-status", json={"sheetIndex": sheet_index, "status": status})

  async def delete_recut(self, recut_id: int) -> None:
    await self._request("DELETE", f"/api/recuts/{recut_id}")

  async def dashboard_stats(self) -> dict[str, Any]:
    return await self._request("GET", "/api/dashboard/stats")
