# src/groupboard/core/errors.py
"""Domain errors raised by services and rendered by the API layer."""

from __future__ import annotations

from fastapi import status


class GroupBoardError(Exception):
    """Base class for every error surfaced to callers."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "error"
    message: str = "Request could not be completed"

    def __init__(self, message: str | None = None, *, code: str | None = None) -> None:
        super().__init__(message or self.message)
        if message:
            self.message = message
        if code:
            self.code = code


class Unauthenticated(GroupBoardError):
    """No valid actor identity accompanies the request."""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthenticated"
    message = "You must sign in"


class PermissionDenied(GroupBoardError):
    """The actor is authenticated but lacks the role or ownership required."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "permission_denied"
    message = "You do not have permission to perform this action"


class RowSecurityViolation(PermissionDenied):
    """A row-filtering policy rejected a write at the storage layer."""

    code = "row_security"


class NotFound(GroupBoardError):
    """Missing, or present but not visible to the actor."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    message = "Not found"


class Conflict(GroupBoardError):
    """Uniqueness or state conflict."""

    status_code = status.HTTP_409_CONFLICT
    code = "conflict"
    message = "Conflicting request"


class InvariantViolation(GroupBoardError):
    """The operation would break a business invariant."""

    status_code = status.HTTP_409_CONFLICT
    code = "invariant_violation"
    message = "Operation violates a group invariant"


class StoreFailure(GroupBoardError):
    """Underlying storage failure; never retried by the core."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "store_failure"
    message = "Something went wrong, please try again"


__all__ = [
    "Conflict",
    "GroupBoardError",
    "InvariantViolation",
    "NotFound",
    "PermissionDenied",
    "RowSecurityViolation",
    "StoreFailure",
    "Unauthenticated",
]
