from __future__ import annotations

from typing import Optional, Sequence

from .enums import PolicyDenial


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules.

    Carries the full list of field-level violations so callers can report
    every problem at once.
    """

    def __init__(self, violations: Sequence = (), message: str = "Validation failed"):
        super().__init__(message)
        self.violations = list(violations)


class PolicyDenied(DomainError):
    """Raised when the school's attendance policy forbids a modification."""

    def __init__(self, reason: PolicyDenial, message: Optional[str] = None):
        super().__init__(message or f"Attendance record cannot be modified ({reason.value})")
        self.reason = reason


class NotFoundError(DomainError):
    """Raised when a record, school or viewer does not exist."""


class AuthorizationError(DomainError):
    """Raised when the caller lacks an identity or permission for an action."""


class StoreFailure(DomainError):
    """Raised when the record store fails a read or an atomic write.

    ``partial`` holds whatever had already been committed before the failure
    (e.g. earlier periods of a bulk submission).
    """

    def __init__(self, message: str, *, partial=None):
        super().__init__(message)
        self.partial = partial
