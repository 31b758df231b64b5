from __future__ import annotations

from typing import Optional, Sequence


class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    def __init__(self, message: str, *, required: Optional[Sequence[str]] = None):
        super().__init__(message)
        self.required = list(required) if required else None


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid or the session is missing."""

    status_code = 401


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    status_code = 403


class NotFoundError(DomainError):
    """Raised when a tenant-scoped record does not exist."""

    status_code = 404


class ConflictError(DomainError):
    """Raised on uniqueness violations (duplicate email, pay period, ...)."""

    status_code = 409
