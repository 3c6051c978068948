"""
Client-side job synchronizer.

Keeps a local copy of one job's sheet arrays, applies sheet toggles
optimistically, and reconciles with the server: forward on success by
refetching, backward on failure by restoring the value captured before the
toggle. Push events and a fixed-interval poll both trigger refetches.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field
from typing import Any, Literal

from shopfloor.client.api import ShopfloorClient
from shopfloor.cutting.errors import CuttingError, NotFoundError
from shopfloor.cutting.models import SheetAction, SheetStatus
from shopfloor.cutting.progress import Progress, aggregate, combine
from shopfloor.cutting.sheets import normalize_statuses, parse_action, toggle_target, validate_index

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 5.0

SheetKind = Literal["material", "recut"]
# (kind, material or recut id, sheet index, action); cut and skip load independently.
LoadingKey = tuple[SheetKind, int, int, str]
ErrorCallback = Callable[[str, Exception], None]

_IGNORED_MESSAGE_TYPES = frozenset({"hello", "pong"})


@dataclass
class JobView:
  """Local sheet arrays for one job, keyed by material id and recut id."""

  job: dict[str, Any]
  material_sheets: dict[int, list[SheetStatus]] = field(default_factory=dict)
  recut_sheets: dict[int, list[SheetStatus]] = field(default_factory=dict)

  @classmethod
  def from_job(cls, job: dict[str, Any]) -> JobView:
    view = cls(job=job)
    for cutlist in job.get("cutlists", []):
      for material in cutlist.get("materials", []):
        view.material_sheets[int(material["id"])] = normalize_statuses(material.get("sheetStatuses"), int(material.get("totalSheets", 0)))
        for recut in material.get("recutEntries", []):
          view.recut_sheets[int(recut["id"])] = normalize_statuses(recut.get("sheetStatuses"), int(recut.get("quantity", 0)))
    return view

  def _sheets(self, kind: SheetKind, owner_id: int) -> list[SheetStatus]:
    sheets = self.material_sheets if kind == "material" else self.recut_sheets
    if owner_id not in sheets:
      raise NotFoundError(f"{kind.capitalize()} {owner_id} is not part of this job.")
    return sheets[owner_id]

  def status_of(self, kind: SheetKind, owner_id: int, sheet_index: int) -> SheetStatus:
    sheets = self._sheets(kind, owner_id)
    validate_index(sheet_index, len(sheets))
    return sheets[sheet_index]

  def set_status(self, kind: SheetKind, owner_id: int, sheet_index: int, status: SheetStatus) -> None:
    sheets = self._sheets(kind, owner_id)
    validate_index(sheet_index, len(sheets))
    sheets[sheet_index] = status

  def has_slot(self, kind: SheetKind, owner_id: int, sheet_index: int) -> bool:
    sheets = self.material_sheets if kind == "material" else self.recut_sheets
    return owner_id in sheets and 0 <= sheet_index < len(sheets[owner_id])

  def progress(self, kind: SheetKind, owner_id: int) -> Progress:
    sheets = self._sheets(kind, owner_id)
    return aggregate(sheets, len(sheets))

  def job_progress(self) -> Progress:
    return combine(aggregate(sheets, len(sheets)) for sheets in [*self.material_sheets.values(), *self.recut_sheets.values()])


@dataclass
class OptimisticCommand:
  """One optimistic sheet change: snapshot, apply, then commit or revert."""

  kind: SheetKind
  owner_id: int
  sheet_index: int
  target: SheetStatus
  previous: SheetStatus | None = None

  def apply(self, view: JobView) -> None:
    self.previous = view.status_of(self.kind, self.owner_id, self.sheet_index)
    view.set_status(self.kind, self.owner_id, self.sheet_index, self.target)

  def reapply(self, view: JobView) -> None:
    """Carry the in-flight value onto a freshly fetched view."""
    if view.has_slot(self.kind, self.owner_id, self.sheet_index):
      view.set_status(self.kind, self.owner_id, self.sheet_index, self.target)

  def revert(self, view: JobView) -> None:
    # Leave the slot alone if a later toggle has already replaced our value.
    if self.previous is None or not view.has_slot(self.kind, self.owner_id, self.sheet_index):
      return
    if view.status_of(self.kind, self.owner_id, self.sheet_index) is self.target:
      view.set_status(self.kind, self.owner_id, self.sheet_index, self.previous)


def _log_error(message: str, exc: Exception) -> None:
  logger.warning("%s: %s", message, exc)


class JobSynchronizer:
  """Optimistic sheet toggling plus push/poll reconciliation for one job."""

  def __init__(self, client: ShopfloorClient, job_id: int, *, on_error: ErrorCallback | None = None) -> None:
    self._client = client
    self._job_id = job_id
    self._on_error = on_error or _log_error
    self._view: JobView | None = None
    self._in_flight: dict[LoadingKey, OptimisticCommand] = {}

  @property
  def job_id(self) -> int:
    return self._job_id

  @property
  def view(self) -> JobView | None:
    return self._view

  def is_loading(self, kind: SheetKind, owner_id: int, sheet_index: int, action: str) -> bool:
    return (kind, owner_id, sheet_index, action) in self._in_flight

  async def refresh(self) -> JobView:
    """Replace the local view with server state, keeping values still in flight."""
    job = await self._client.get_job(self._job_id)
    view = JobView.from_job(job)
    for command in self._in_flight.values():
      command.reapply(view)
    self._view = view
    return view

  async def toggle_sheet(self, material_id: int, sheet_index: int, action: SheetAction | str) -> bool:
    return await self._toggle("material", material_id, sheet_index, action)

  async def toggle_recut_sheet(self, recut_id: int, sheet_index: int, action: SheetAction | str) -> bool:
    return await self._toggle("recut", recut_id, sheet_index, action)

  async def _toggle(self, kind: SheetKind, owner_id: int, sheet_index: int, action: str) -> bool:
    """
    Press the cut or skip button on one sheet.

    Returns True once the server confirms. Returns False when the same
    (sheet, action) is already in flight or the request failed; failures are
    rolled back and reported through `on_error`. Any other exception, including
    cancellation, is rolled back the same way and re-raised.
    """
    parse_action(action)
    key: LoadingKey = (kind, owner_id, sheet_index, action)
    if key in self._in_flight:
      logger.debug("Ignoring repeat toggle while in flight key=%s", key)
      return False

    view = self._view or await self.refresh()
    target = toggle_target(view.status_of(kind, owner_id, sheet_index), action)
    command = OptimisticCommand(kind=kind, owner_id=owner_id, sheet_index=sheet_index, target=target)
    command.apply(view)
    self._in_flight[key] = command

    try:
      if kind == "material":
        await self._client.set_sheet_status(owner_id, sheet_index, target.value)
      else:
        await self._client.set_recut_sheet_status(owner_id, sheet_index, target.value)
    except BaseException as exc:
      # A refresh may have swapped the view while the request was out.
      command.revert(self._view or view)
      if not isinstance(exc, CuttingError):
        raise
      self._on_error(f"Could not mark sheet {sheet_index + 1} as {target.value}", exc)
      return False
    finally:
      self._in_flight.pop(key, None)

    await self._safe_refresh()
    return True

  async def _safe_refresh(self) -> None:
    try:
      await self.refresh()
    except CuttingError as exc:
      self._on_error("Could not refresh job", exc)

  async def handle_event(self, message: dict[str, Any]) -> bool:
    """Refetch when a pushed event concerns this job; returns whether it did."""
    if message.get("type") in _IGNORED_MESSAGE_TYPES:
      return False
    event_job_id = message.get("jobId")
    if event_job_id is not None and event_job_id != self._job_id:
      return False
    await self._safe_refresh()
    return True

  async def _poll_forever(self, poll_interval: float) -> None:
    while True:
      await asyncio.sleep(poll_interval)
      await self._safe_refresh()

  async def run(self, events: AsyncIterator[dict[str, Any]] | None = None, *, poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS) -> None:
    """
    Keep the view in sync until cancelled.

    Consumes pushed events when a stream is given and always polls on a
    fixed interval, so a dead stream still converges.
    """
    await self._safe_refresh()
    poller = asyncio.create_task(self._poll_forever(poll_interval))
    try:
      if events is not None:
        async for message in events:
          await self.handle_event(message)
      await poller
    finally:
      poller.cancel()
      with contextlib.suppress(asyncio.CancelledError):
        await poller
