"""Cognito wire-format errors.

Every error raised by a handler is a ``CognitoError``; the dispatcher turns
it into ``{"__type": <code>, "message": <text>}`` with ``status``.
"""
from __future__ import annotations


class CognitoError(Exception):
    """Cognito protocol error with HTTP status and ``__type`` code."""

    code = "InternalErrorException"
    status = 500

    def __init__(self, message: str, code: str | None = None, status: int | None = None):
        self.message = message
        if code is not None:
            self.code = code
        if status is not None:
            self.status = status
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to Cognito error response format."""
        return {"__type": self.code, "message": self.message}


class ValidationError(CognitoError):
    """Missing or malformed request parameter."""

    code = "InvalidParameterException"
    status = 400


class NotFoundError(CognitoError):
    """Referenced user, group or pool does not exist (Cognito reports these as 400)."""

    code = "ResourceNotFoundException"
    status = 400


class ConflictError(CognitoError):
    """Entity with the same name already exists."""

    code = "ResourceConflictException"
    status = 400


class InternalError(CognitoError):
    """Unexpected backend or client failure."""

    code = "InternalErrorException"
    status = 500


def missing_parameter(field: str) -> ValidationError:
    return ValidationError(
        f"1 validation error detected: Value at '{field}' failed to satisfy constraint: Member must not be null"
    )


def user_not_found() -> NotFoundError:
    return NotFoundError("User does not exist.", code="UserNotFoundException")


def group_not_found() -> NotFoundError:
    return NotFoundError("Group not found.", code="ResourceNotFoundException")


def username_exists() -> ConflictError:
    return ConflictError(
        "An account with the given username already exists.",
        code="UsernameExistsException",
    )


def group_exists() -> ConflictError:
    return ConflictError(
        "A group with the name already exists in the user pool.",
        code="GroupExistsException",
    )


def user_pool_not_found(pool_id: str) -> NotFoundError:
    return NotFoundError(f"User pool {pool_id} does not exist.")
