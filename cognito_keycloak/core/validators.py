"""Input validation helpers for Cognito request payloads."""
from __future__ import annotations
from typing import Any, Optional

from .errors import ValidationError, missing_parameter

DEFAULT_PAGE_SIZE = 60
MAX_PAGE_SIZE = 60


def require_identifier(value: Any, field: str) -> str:
    """Return ``value`` if it is a non-empty string.

    Raises:
        ValidationError: If the value is absent or empty
    """
    if value is None or value == "":
        raise missing_parameter(field)
    if not isinstance(value, str):
        raise ValidationError(
            f"1 validation error detected: Value at '{field}' failed to satisfy constraint: Member must be a string"
        )
    return value


def require_username(value: Any) -> str:
    return require_identifier(value, "username")


def require_group_name(value: Any) -> str:
    return require_identifier(value, "groupName")


def require_user_pool_id(value: Any) -> str:
    return require_identifier(value, "userPoolId")


def require_password(value: Any) -> str:
    return require_identifier(value, "password")


def page_limit(limit: Any, field: str = "limit") -> int:
    """Validate ``Limit``; absent means the default page size."""
    if limit is None:
        return DEFAULT_PAGE_SIZE
    if isinstance(limit, bool) or not isinstance(limit, int) or not 0 < limit <= MAX_PAGE_SIZE:
        raise ValidationError(
            f"1 validation error detected: Value '{limit}' at '{field}' failed to satisfy constraint: "
            f"Member must have value between 1 and {MAX_PAGE_SIZE}"
        )
    return limit


def parse_pagination_token(token: Optional[str]) -> int:
    """Decode a pagination cursor (a decimal offset); absent means 0."""
    if token is None or token == "":
        return 0
    if not isinstance(token, str) or not (token.isascii() and token.isdigit()):
        raise ValidationError("Invalid pagination token.")
    return int(token)


def next_token(offset: int, limit: int, returned: int) -> Optional[str]:
    """Cursor for the next page, present only when the page came back full."""
    if returned == limit:
        return str(offset + limit)
    return None
