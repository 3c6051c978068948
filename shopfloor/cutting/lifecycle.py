"""Job status state machine."""

from __future__ import annotations

from typing import Literal

from shopfloor.cutting.errors import ConflictError, ValidationError
from shopfloor.cutting.models import JobStatus

JobAction = Literal["start", "pause", "resume", "complete"]

TRANSITIONS: dict[tuple[str, JobStatus], JobStatus] = {
  ("start", JobStatus.WAITING): JobStatus.IN_PROGRESS,
  ("pause", JobStatus.IN_PROGRESS): JobStatus.PAUSED,
  ("resume", JobStatus.PAUSED): JobStatus.IN_PROGRESS,
  ("complete", JobStatus.IN_PROGRESS): JobStatus.DONE,
}

# Actions that leave the job running and therefore keep a timer open.
TIMER_OPENING_ACTIONS = frozenset({"start", "resume"})
TIMER_CLOSING_ACTIONS = frozenset({"pause", "complete"})

_KNOWN_ACTIONS = frozenset(action for action, _ in TRANSITIONS)


def next_status(current: JobStatus, action: str) -> JobStatus:
  """Return the state reached by applying `action`, or raise ConflictError."""
  if action not in _KNOWN_ACTIONS:
    raise ValidationError(f"Unknown job action {action!r}.")

  target = TRANSITIONS.get((action, current))
  if target is None:
    raise ConflictError(f"Cannot {action} a job that is {current.value}.")
  return target


def allowed_actions(current: JobStatus) -> list[str]:
  return [action for (action, source) in TRANSITIONS if source is current]
