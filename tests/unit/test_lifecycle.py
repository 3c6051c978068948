from __future__ import annotations

import pytest

from shopfloor.cutting.errors import ConflictError, ValidationError
from shopfloor.cutting.lifecycle import allowed_actions, next_status
from shopfloor.cutting.models import JobStatus


@pytest.mark.parametrize(
  ("current", "action", "expected"),
  [
    (JobStatus.WAITING, "start", JobStatus.IN_PROGRESS),
    (JobStatus.IN_PROGRESS, "pause", JobStatus.PAUSED),
    (JobStatus.PAUSED, "resume", JobStatus.IN_PROGRESS),
    (JobStatus.IN_PROGRESS, "complete", JobStatus.DONE),
  ],
)
def test_legal_transitions(current, action, expected):
  assert next_status(current, action) is expected


@pytest.mark.parametrize(
  ("current", "action"),
  [
    (JobStatus.WAITING, "pause"),
    (JobStatus.WAITING, "complete"),
    (JobStatus.PAUSED, "complete"),
    (JobStatus.PAUSED, "start"),
    (JobStatus.DONE, "start"),
    (JobStatus.DONE, "resume"),
  ],
)
def test_illegal_transitions_conflict(current, action):
  with pytest.raises(ConflictError):
    next_status(current, action)


def test_unknown_action_is_a_validation_error():
  with pytest.raises(ValidationError):
    next_status(JobStatus.WAITING, "restart")


def test_allowed_actions_per_state():
  assert allowed_actions(JobStatus.WAITING) == ["start"]
  assert sorted(allowed_actions(JobStatus.IN_PROGRESS)) == ["complete", "pause"]
  assert allowed_actions(JobStatus.PAUSED) == ["resume"]
  assert allowed_actions(JobStatus.DONE) == []
