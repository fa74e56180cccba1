"""
Mock Data Generation - Custom Exceptions

All fatal errors inherit from MockDataError so callers can catch the whole
family with a single except clause. CoverageGap is not an exception: it is
the record a batch run keeps for variables that produced nothing.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional


class MockDataError(Exception):
    """
    Base exception for all mock data errors.

    Carries a details dict with whatever context is known when the error is
    raised (variable name, applicability window, offending expression).
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_error = original_error

    def with_context(self, variable: Optional[str] = None, window: Optional[str] = None) -> "MockDataError":
        """Attach variable/window context if not already present."""
        if variable is not None:
            self.details.setdefault("variable", variable)
        if window is not None:
            self.details.setdefault("window", window)
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }
        if self.original_error:
            result["original_error"] = str(self.original_error)
        return result


class ParseError(MockDataError):
    """
    Raised when a selector or interval expression is malformed.

    Examples:
    - Missing brackets: "18,100"
    - Single value in brackets: "[18]"
    - Empty string
    """

    def __init__(
        self,
        message: str,
        expression: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message, details, original_error)
        self.expression = expression
        if expression is not None:
            self.details["expression"] = expression


class ClassificationAmbiguityError(MockDataError):
    """
    Raised when the valid/missing partition of a variable cannot be decided.

    Examples:
    - Codes such as 96-99 present but no classification column
    - More than one else row
    - A code classified as both valid and missing
    """

    def __init__(
        self,
        message: str,
        variable: Optional[str] = None,
        codes: Optional[List[str]] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.variable = variable
        self.codes = codes or []
        if variable:
            self.details["variable"] = variable
        if codes:
            self.details["codes"] = list(codes)


class ProportionCoverageError(MockDataError):
    """
    Raised when proportions cannot be resolved over a category set.

    Examples:
    - Explicit proportions omit a category
    - Metadata proportions sum to 0.8
    """

    def __init__(
        self,
        message: str,
        variable: Optional[str] = None,
        missing_categories: Optional[List[str]] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.variable = variable
        self.missing_categories = missing_categories or []
        if variable:
            self.details["variable"] = variable
        if missing_categories:
            self.details["missing_categories"] = list(missing_categories)


class ConstraintViolationError(MockDataError):
    """
    Raised before sampling when generation parameters are inconsistent.

    Examples:
    - prop_na + prop_invalid > 1
    - Survival generation without an entry variable
    - followup_min greater than followup_max
    """

    def __init__(
        self,
        message: str,
        parameter: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.parameter = parameter
        if parameter:
            self.details["parameter"] = parameter


@dataclass(frozen=True)
class CoverageGap:
    """A variable that produced no column for a window."""

    variable: str
    window: Optional[str]
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {"variable": self.variable, "window": self.window, "reason": self.reason}
