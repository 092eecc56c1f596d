from __future__ import annotations

from typing import Any, Optional


class DomainError(Exception):
    """Base exception for business rule violations.

    `details` carries extra context merged into the error envelope
    (e.g. the already active attendance on a Conflict).
    """

    kind = "DomainError"

    def __init__(self, message: str, *, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = dict(details or {})


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    kind = "ValidationFailure"


class NotFoundError(DomainError):
    """Referenced entity or target record is absent."""

    kind = "NotFound"


class InvalidStateError(DomainError):
    """Operation attempted from a state that does not permit it."""

    kind = "InvalidState"


class ConflictError(DomainError):
    """Uniqueness invariant violated."""

    kind = "Conflict"


class PreconditionError(DomainError):
    """Required companion field or condition missing."""

    kind = "Precondition"


class AlreadyDoneError(DomainError):
    """Transition already happened on this record."""

    kind = "AlreadyDone"


class AuthenticationError(DomainError):
    """Raised when credentials or bearer token are invalid."""

    kind = "Authentication"
