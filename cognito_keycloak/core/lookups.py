"""Resolve Cognito identifiers to Keycloak entities or fail with a typed error."""
from __future__ import annotations
import logging

from .errors import InternalError, group_not_found, user_not_found, user_pool_not_found
from .keycloak import GroupService, UserService

logger = logging.getLogger(__name__)


def find_user_or_fail(users: UserService, realm: str, username: str) -> dict:
    """Return the single user whose username exactly matches.

    Raises:
        NotFoundError: No such user
        InternalError: Keycloak returned more than one exact match
    """
    matches = users.find_by_exact_username(realm, username)
    if not matches or not matches[0].get("id"):
        raise user_not_found()
    if len(matches) > 1:
        logger.error("Username '%s' matched %d users in realm '%s'", username, len(matches), realm)
        raise InternalError(f"Username '{username}' is ambiguous in the backend identity store.")
    return matches[0]


def find_group_or_fail(groups: GroupService, realm: str, group_name: str) -> dict:
    """Return the group named exactly ``group_name``.

    Keycloak's group search is a substring match, so results are filtered
    client-side.

    Raises:
        NotFoundError: No group with that exact name
    """
    group = groups.find_by_exact_name(realm, group_name)
    if not group or not group.get("id"):
        raise group_not_found()
    return group


def check_user_pool(served_pool_id: str, requested_pool_id) -> None:
    """Reject a request addressed to a pool other than the one served.

    An absent or empty ``UserPoolId`` is accepted; actions that require one
    validate it themselves.

    Raises:
        NotFoundError: The request names another pool
    """
    if requested_pool_id is None or requested_pool_id == "":
        return
    if requested_pool_id != served_pool_id:
        raise user_pool_not_found(requested_pool_id)
