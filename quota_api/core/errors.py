"""Application-level exception types.

The quota tracker itself is total and raises nothing for business outcomes.
These errors belong to the HTTP boundary, which translates an exhausted
quota into ``QuotaExceededAppError`` and bad input into
``ValidationAppError``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    limit: int
    used: int
    remaining: int
    reset_at: str
    retry_after: int


@dataclass
class AppError(Exception):
    """Base error for application failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when request input fails validation."""


class QuotaExceededAppError(AppError):
    """Raised at the HTTP boundary when an identity has no quota left today."""
