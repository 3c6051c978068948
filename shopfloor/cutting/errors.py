"""Error taxonomy shared by the cutting services, the API layer and the client."""

from __future__ import annotations


class CuttingError(Exception):
  """Base class for all sheet, recut and job lifecycle failures."""


class ValidationError(CuttingError):
  """Raised for malformed input before any state is changed."""


class NotFoundError(CuttingError):
  """Raised when a referenced job, cutlist, material or recut does not exist."""


class ConflictError(CuttingError):
  """Raised when a job status transition is not allowed from the current state."""


class TransientIOError(CuttingError):
  """Raised when the datastore or network fails in a way that is safe to retry."""
