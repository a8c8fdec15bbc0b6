"""Cognito JSON-RPC action dispatch.

Cognito clients call a single endpoint and name the operation in the
``X-Amz-Target`` header (``AWSCognitoIdentityProviderService.<Action>``).
The dispatcher resolves the handler, decodes the body, runs the handler and
converts the outcome to the Cognito wire format: dates as integer epoch
seconds, errors as ``{"__type", "message"}``.
"""
from __future__ import annotations
import json
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from .errors import CognitoError
from .handlers import HandlerContext, groups, user_pool, users
from .lookups import check_user_pool

TARGET_PREFIX = "AWSCognitoIdentityProviderService."

logger = logging.getLogger(__name__)

Handler = Callable[[HandlerContext, dict], dict]


class CognitoAction(str, Enum):
    """Supported ``AWSCognitoIdentityProviderService`` operations."""

    ADMIN_CREATE_USER = "AdminCreateUser"
    ADMIN_DELETE_USER = "AdminDeleteUser"
    ADMIN_GET_USER = "AdminGetUser"
    ADMIN_UPDATE_USER_ATTRIBUTES = "AdminUpdateUserAttributes"
    ADMIN_DELETE_USER_ATTRIBUTES = "AdminDeleteUserAttributes"
    ADMIN_SET_USER_PASSWORD = "AdminSetUserPassword"
    ADMIN_RESET_USER_PASSWORD = "AdminResetUserPassword"
    ADMIN_ENABLE_USER = "AdminEnableUser"
    ADMIN_DISABLE_USER = "AdminDisableUser"
    ADMIN_CONFIRM_SIGN_UP = "AdminConfirmSignUp"
    ADMIN_USER_GLOBAL_SIGN_OUT = "AdminUserGlobalSignOut"
    LIST_USERS = "ListUsers"
    CREATE_GROUP = "CreateGroup"
    GET_GROUP = "GetGroup"
    UPDATE_GROUP = "UpdateGroup"
    DELETE_GROUP = "DeleteGroup"
    LIST_GROUPS = "ListGroups"
    LIST_USERS_IN_GROUP = "ListUsersInGroup"
    ADMIN_ADD_USER_TO_GROUP = "AdminAddUserToGroup"
    ADMIN_REMOVE_USER_FROM_GROUP = "AdminRemoveUserFromGroup"
    ADMIN_LIST_GROUPS_FOR_USER = "AdminListGroupsForUser"
    DESCRIBE_USER_POOL = "DescribeUserPool"


HANDLERS: Dict[CognitoAction, Handler] = {
    CognitoAction.ADMIN_CREATE_USER: users.admin_create_user,
    CognitoAction.ADMIN_DELETE_USER: users.admin_delete_user,
    CognitoAction.ADMIN_GET_USER: users.admin_get_user,
    CognitoAction.ADMIN_UPDATE_USER_ATTRIBUTES: users.admin_update_user_attributes,
    CognitoAction.ADMIN_DELETE_USER_ATTRIBUTES: users.admin_delete_user_attributes,
    CognitoAction.ADMIN_SET_USER_PASSWORD: users.admin_set_user_password,
    CognitoAction.ADMIN_RESET_USER_PASSWORD: users.admin_reset_user_password,
    CognitoAction.ADMIN_ENABLE_USER: users.admin_enable_user,
    CognitoAction.ADMIN_DISABLE_USER: users.admin_disable_user,
    CognitoAction.ADMIN_CONFIRM_SIGN_UP: users.admin_confirm_sign_up,
    CognitoAction.ADMIN_USER_GLOBAL_SIGN_OUT: users.admin_user_global_sign_out,
    CognitoAction.LIST_USERS: users.list_users,
    CognitoAction.CREATE_GROUP: groups.create_group,
    CognitoAction.GET_GROUP: groups.get_group,
    CognitoAction.UPDATE_GROUP: groups.update_group,
    CognitoAction.DELETE_GROUP: groups.delete_group,
    CognitoAction.LIST_GROUPS: groups.list_groups,
    CognitoAction.LIST_USERS_IN_GROUP: groups.list_users_in_group,
    CognitoAction.ADMIN_ADD_USER_TO_GROUP: groups.admin_add_user_to_group,
    CognitoAction.ADMIN_REMOVE_USER_FROM_GROUP: groups.admin_remove_user_from_group,
    CognitoAction.ADMIN_LIST_GROUPS_FOR_USER: groups.admin_list_groups_for_user,
    CognitoAction.DESCRIBE_USER_POOL: user_pool.describe_user_pool,
}

_unhandled = set(CognitoAction) - set(HANDLERS)
if _unhandled:
    raise RuntimeError(f"No handler registered for: {sorted(a.value for a in _unhandled)}")


def supported_actions() -> List[str]:
    return [action.value for action in CognitoAction]


def parse_target(header: Optional[str]) -> Optional[str]:
    """Action name from ``X-Amz-Target``; None when absent or malformed."""
    if not header or not header.startswith(TARGET_PREFIX):
        return None
    action = header[len(TARGET_PREFIX):]
    return action or None


def normalize(value: Any) -> Any:
    """Dates to integer epoch seconds, recursively; ``None`` members dropped."""
    if isinstance(value, datetime):
        return int(value.timestamp())
    if isinstance(value, dict):
        return {key: normalize(item) for key, item in value.items() if item is not None}
    if isinstance(value, (list, tuple)):
        return [normalize(item) for item in value]
    return value


def _error(code: str, message: str, status: int) -> Tuple[dict, int]:
    return {"__type": code, "message": message}, status


def _decode_body(raw_body: Optional[bytes]) -> dict:
    if not raw_body or not raw_body.strip():
        return {}
    try:
        body = json.loads(raw_body)
    except (UnicodeDecodeError, ValueError) as exc:
        raise CognitoError("Start of structure or map found where not expected.", code="SerializationException", status=400) from exc
    if not isinstance(body, dict):
        raise CognitoError("Start of structure or map found where not expected.", code="SerializationException", status=400)
    return body


def dispatch(ctx: HandlerContext, target: Optional[str], raw_body: Optional[bytes]) -> Tuple[dict, int]:
    """Run one Cognito action and return ``(response body, HTTP status)``.

    Never raises: every failure is converted to a Cognito error body.
    """
    name = parse_target(target)
    if name is None:
        return _error("MissingAction", "Missing Action", 400)

    try:
        action = CognitoAction(name)
    except ValueError:
        return _error("InvalidAction", f"Unknown action: {name}", 400)

    try:
        request = _decode_body(raw_body)
        check_user_pool(ctx.user_pool_id, request.get("UserPoolId"))
        result = HANDLERS[action](ctx, request)
    except CognitoError as exc:
        logger.info("%s rejected: %s %s", action.value, exc.code, exc.message)
        return exc.to_dict(), exc.status
    except Exception as exc:
        logger.exception("%s failed", action.value)
        return _error("InternalErrorException", str(exc) or exc.__class__.__name__, 500)

    return normalize(result or {}), 200
