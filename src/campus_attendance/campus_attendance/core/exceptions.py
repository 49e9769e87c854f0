from __future__ import annotations

from typing import Optional, Sequence


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    def __init__(self, message: str, *, capability: Optional[str] = None):
        super().__init__(message)
        self.capability = capability


class VerificationFailedError(DomainError):
    """A location or virtual-session check ran and did not pass."""

    def __init__(
        self,
        message: str,
        *,
        distance_meters: Optional[float] = None,
        failed_checks: Sequence[str] = (),
    ):
        super().__init__(message)
        self.distance_meters = distance_meters
        self.failed_checks = list(failed_checks)


class ConflictError(DomainError):
    """Duplicate capture, an already-decided verification, or a second open request."""


class NotFoundError(DomainError):
    """Referenced record, request or schedule does not exist."""


class AuditInconsistencyError(DomainError):
    """A transition was persisted but writing its audit entry failed."""

    def __init__(self, message: str, *, target_type: str, target_id: int):
        super().__init__(message)
        self.target_type = target_type
        self.target_id = target_id
