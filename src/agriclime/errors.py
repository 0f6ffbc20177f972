"""Typed failures raised by the analytics core.

Soft failures (an index that cannot be computed for a given sounding) are not
exceptions; they are reported through the ``unavailable`` field of the
result models.
"""

from __future__ import annotations


class AnalysisError(Exception):
    """Base class for analytics failures surfaced to the caller."""


class ValidationError(AnalysisError, ValueError):
    """Malformed or structurally inconsistent input (never silently repaired)."""


class InsufficientDataError(AnalysisError):
    """Structurally valid input that is too small a sample to analyze.

    Callers may request more data instead of treating this as a hard failure.
    """

    def __init__(self, message: str, *, required: int, received: int):
        super().__init__(message)
        self.required = required
        self.received = received
