"""Domain-level exceptions.

All expected failures are expressed as subclasses of DomainException so
the callable boundary, the HTTP API and the CLI can catch them uniformly.
Each subclass carries the error category reported to callers.
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    INVALID_ARGUMENT = "invalid-argument"
    UNAUTHENTICATED = "unauthenticated"
    PERMISSION_DENIED = "permission-denied"
    NOT_FOUND = "not-found"
    FAILED_PRECONDITION = "failed-precondition"
    DEADLINE_EXCEEDED = "deadline-exceeded"
    ALREADY_EXISTS = "already-exists"
    UNAVAILABLE = "unavailable"
    INTERNAL = "internal"


class DomainException(Exception):
    """Base class for all domain errors."""

    code: ErrorCode = ErrorCode.INTERNAL

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(DomainException):
    """Malformed or missing input, or a violated entity invariant."""

    code = ErrorCode.INVALID_ARGUMENT


class UnauthenticatedError(DomainException):
    code = ErrorCode.UNAUTHENTICATED


class PermissionDeniedError(DomainException):
    code = ErrorCode.PERMISSION_DENIED


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""

    code = ErrorCode.NOT_FOUND


class FailedPreconditionError(DomainException):
    """A business rule blocks the operation (empty cart, stale cart, ...)."""

    code = ErrorCode.FAILED_PRECONDITION


class DeadlineExceededError(DomainException):
    """An expiring credential (verification code, reset token) has expired."""

    code = ErrorCode.DEADLINE_EXCEEDED


class AlreadyExistsError(DomainException):
    code = ErrorCode.ALREADY_EXISTS


class UnavailableError(DomainException):
    """A downstream provider failed; the caller may retry."""

    code = ErrorCode.UNAVAILABLE


class InternalError(DomainException):
    code = ErrorCode.INTERNAL
