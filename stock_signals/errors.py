"""Error taxonomy for the analysis engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


class MalformedInputError(ValueError):
    """The supplied price history cannot be analysed.

    Raised for empty series, missing fields, non-numeric or non-finite
    values, negative prices or volumes, and unordered or duplicate dates.
    """

    def __init__(self, message: str, index: Optional[int] = None, field: Optional[str] = None):
        super().__init__(message)
        self.index = index
        self.field = field

    def to_dict(self) -> dict:
        return {
            "error": "malformed_input",
            "message": str(self),
            "index": self.index,
            "field": self.field,
        }


class ComputationError(ArithmeticError):
    """A numeric result came out non-finite."""

    def to_dict(self) -> dict:
        return {"error": "computation", "message": str(self)}


@dataclass(frozen=True)
class InsufficientDataWarning:
    """Non-fatal: an indicator had less history than its lookback needs."""

    indicator: str
    required: int
    available: int

    def to_dict(self) -> dict:
        return {
            "indicator": self.indicator,
            "required": self.required,
            "available": self.available,
        }
