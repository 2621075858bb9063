"""Exceptions raised by the growth Z-score engine."""

from typing import List


class GrowthError(ValueError):
    """Base class for all growth engine errors."""


class ValidationError(GrowthError):
    """
    Raised when measurements fall outside their allowed ranges.

    Carries every violated constraint, not just the first one found.
    """

    def __init__(self, errors: List[str]) -> None:
        self.errors = list(errors)
        super().__init__(f"Invalid measurements: {', '.join(self.errors)}")


class ComputationError(GrowthError):
    """Raised when the LMS formula receives a non-positive value, M or S."""
