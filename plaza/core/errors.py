from __future__ import annotations

from typing import Optional, Tuple, Union

FieldPath = Tuple[Union[str, int], ...]


class ForecastError(Exception):
    """
    Base error of the forecasting engine.

    Always carries exactly one human-readable message; callers surface
    `message` to the user as-is.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InputValidationError(ForecastError):
    """Structural problem in the raw input (missing field, value out of range)."""

    def __init__(self, message: str, field: Optional[FieldPath] = None) -> None:
        super().__init__(message)
        self.field: FieldPath = tuple(field or ())


class BusinessRuleError(ForecastError):
    """Cross-field rule violated; raised before any monthly computation."""


UNKNOWN_ERROR_MESSAGE = "An unknown error occurred in financial calculation."
