"""Error taxonomy for the analytics engine.

Missing diary or workout data is never an error; scoring degrades instead.
"""

from __future__ import annotations


class EngineError(Exception):
    """Base class for engine failures surfaced to callers."""


class EngineValidationError(EngineError, ValueError):
    """Malformed or out-of-range input, rejected before any computation runs."""


class NotFoundError(EngineError, LookupError):
    """A referenced athlete or scenario does not exist for the caller."""


class PersistenceError(EngineError, RuntimeError):
    """The data-access boundary failed; the transaction was rolled back."""
