"""Pure operations over per-sheet status arrays."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from shopfloor.cutting.errors import ValidationError
from shopfloor.cutting.models import SheetAction, SheetStatus

logger = logging.getLogger(__name__)

_ACTIONS = {"cut": SheetStatus.CUT, "skip": SheetStatus.SKIP}


def parse_status(raw: Any) -> SheetStatus:
  """Coerce caller input into a SheetStatus or raise ValidationError."""
  if isinstance(raw, SheetStatus):
    return raw
  try:
    return SheetStatus(raw)
  except ValueError as exc:
    raise ValidationError(f"Invalid sheet status {raw!r}; expected one of pending, cut, skip.") from exc


def parse_action(raw: Any) -> SheetStatus:
  """Map a toggle action ("cut" or "skip") to the status it sets."""
  status = _ACTIONS.get(raw)
  if status is None:
    raise ValidationError(f"Invalid sheet action {raw!r}; expected cut or skip.")
  return status


def normalize_statuses(raw: Iterable[Any] | None, length: int) -> list[SheetStatus]:
  """
  Return a status array of exactly `length` entries.

  Stored arrays written before sheets were pre-filled can be shorter than the
  sheet count; missing slots read as pending. Extra slots are dropped and
  unrecognized values read as pending.
  """
  statuses: list[SheetStatus] = []
  for value in list(raw or [])[:length]:
    try:
      statuses.append(SheetStatus(value))
    except ValueError:
      logger.warning("Unknown stored sheet status %r; reading as pending", value)
      statuses.append(SheetStatus.PENDING)

  statuses.extend([SheetStatus.PENDING] * (length - len(statuses)))
  return statuses


def pending_statuses(count: int) -> list[SheetStatus]:
  return [SheetStatus.PENDING] * count


def validate_index(sheet_index: Any, length: int) -> int:
  """Check that an index addresses an existing sheet slot."""
  if isinstance(sheet_index, bool) or not isinstance(sheet_index, int):
    raise ValidationError(f"Sheet index must be an integer, got {sheet_index!r}.")
  if sheet_index < 0 or sheet_index >= length:
    raise ValidationError(f"Sheet index {sheet_index} is out of range for {length} sheets.")
  return sheet_index


def validate_positive(value: Any, field_name: str) -> int:
  if isinstance(value, bool) or not isinstance(value, int) or value < 1:
    raise ValidationError(f"{field_name} must be a positive integer, got {value!r}.")
  return value


def with_status(statuses: Sequence[SheetStatus], sheet_index: int, status: SheetStatus, length: int) -> list[SheetStatus]:
  """Return a copy of the array with one slot set; the input is left untouched."""
  validate_index(sheet_index, length)
  updated = normalize_statuses(statuses, length)
  updated[sheet_index] = status
  return updated


def extended(statuses: Sequence[SheetStatus], length: int, additional: int) -> list[SheetStatus]:
  validate_positive(additional, "Additional sheets")
  return normalize_statuses(statuses, length) + pending_statuses(additional)


def without_slot(statuses: Sequence[SheetStatus], sheet_index: int, length: int) -> list[SheetStatus]:
  """
  Remove one sheet slot, shifting later sheets down.

  Only skipped sheets may be removed; a sheet that was cut or is still pending
  is part of the job's real work.
  """
  validate_index(sheet_index, length)
  current = normalize_statuses(statuses, length)
  if current[sheet_index] is not SheetStatus.SKIP:
    raise ValidationError(f"Sheet {sheet_index} is {current[sheet_index].value}; only skipped sheets can be deleted.")
  return current[:sheet_index] + current[sheet_index + 1 :]


def toggle_target(current: SheetStatus, action: SheetAction | str) -> SheetStatus:
  """
  Resolve what a button press should store.

  Pressing the action a sheet already has clears it back to pending; any other
  press sets that action, replacing the opposite mark.
  """
  target = parse_action(action)
  if current is target:
    return SheetStatus.PENDING
  return target


def require_text(value: Any, field_name: str) -> str:
  if not isinstance(value, str) or not value.strip():
    raise ValidationError(f"{field_name} is required.")
  return value.strip()
