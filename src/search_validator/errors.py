"""Error taxonomy for search validation runs."""
from __future__ import annotations

from typing import Optional

from search_validator.validation.phases import Phase


class SearchValidatorError(RuntimeError):
    """Base error that remembers which phase of a validation call failed."""

    def __init__(self, message: str, *, phase: Phase = Phase.IDLE) -> None:
        super().__init__(message)
        self.phase = phase


class NavigationError(SearchValidatorError):
    """Raised when the search page never reaches a usable state."""


class SearchError(SearchValidatorError):
    """Raised when the query input or the result container cannot be found."""


class ValidationError(SearchValidatorError):
    """Raised when the result page cannot be read during validation."""


class ResultAssertionError(SearchValidatorError, AssertionError):
    """Raised when a result count or keyword threshold is violated."""

    def __init__(
        self,
        message: str,
        *,
        phase: Phase = Phase.VALIDATING,
        expected: Optional[int] = None,
        actual: Optional[int] = None,
    ) -> None:
        super().__init__(message, phase=phase)
        self.expected = expected
        self.actual = actual


class EvidenceError(SearchValidatorError):
    """Raised when a screenshot, trace or video cannot be written."""

    def __init__(self, message: str, *, path: str) -> None:
        super().__init__(message, phase=Phase.CAPTURING_EVIDENCE)
        self.path = path


class DriverError(RuntimeError):
    """Raised by the session driver when the browser rejects an operation."""


class DriverTimeoutError(DriverError):
    """Raised when a bounded wait on the page expires."""

    def __init__(self, message: str, *, selectors: tuple[str, ...] = (), timeout_ms: Optional[float] = None) -> None:
        super().__init__(message)
        self.selectors = selectors
        self.timeout_ms = timeout_ms

    @classmethod
    def waiting_for(cls, selectors: tuple[str, ...], timeout_ms: float) -> "DriverTimeoutError":
        joined = " | ".join(selectors)
        return cls(
            f"Timed out after {timeout_ms:.0f}ms waiting for {joined}",
            selectors=selectors,
            timeout_ms=timeout_ms,
        )


__all__ = [
    "DriverError",
    "DriverTimeoutError",
    "EvidenceError",
    "NavigationError",
    "ResultAssertionError",
    "SearchError",
    "SearchValidatorError",
    "ValidationError",
]
