"""User administration actions (AdminCreateUser, AdminGetUser, ListUsers, ...).

Each handler takes the ``HandlerContext`` and the decoded request body and
returns the Cognito response body. Handlers that return the mutated user
read it back after writing; that read is not transactional with the write.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, List

import requests

from ..cognito_transformer import (
    EMAIL_VERIFIED,
    STANDARD_FIELDS,
    backend_attribute_key,
    get_attribute_value,
    to_backend_attributes,
    to_external_user,
    with_last_modified,
)
from ..errors import ConflictError, InternalError, ValidationError, missing_parameter, username_exists
from ..filters import matches, parse_filter, to_query_params
from ..keycloak import KeycloakAPIError, UPDATE_PASSWORD, VERIFY_EMAIL
from ..lookups import find_user_or_fail
from ..user_pool_template import is_immutable_attribute, is_required_attribute
from ..validators import (
    next_token,
    page_limit,
    parse_pagination_token,
    require_password,
    require_username,
)
from .context import HandlerContext

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Attribute helpers
# ─────────────────────────────────────────────────────────────────────────────

def _reject_immutable(attributes: List[Dict[str, Any]]) -> None:
    for attr in attributes:
        name = attr.get("Name") if isinstance(attr, dict) else None
        if name and is_immutable_attribute(name):
            raise ValidationError(f"Cannot modify an immutable attribute: {name}")


def _standard_fields(attributes: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Top-level Keycloak fields carried by standard Cognito attributes."""
    fields: Dict[str, Any] = {}
    for cognito_name, keycloak_field in STANDARD_FIELDS.items():
        value = get_attribute_value(attributes, cognito_name)
        if value is not None:
            fields[keycloak_field] = value
    verified = get_attribute_value(attributes, EMAIL_VERIFIED)
    if verified is not None:
        fields["emailVerified"] = verified == "true"
    return fields


def _custom_attributes(attributes: List[Dict[str, Any]]) -> Dict[str, List[str]]:
    """Attributes that live in the Keycloak attribute map."""
    top_level = set(STANDARD_FIELDS) | {EMAIL_VERIFIED}
    return to_backend_attributes(
        attr for attr in attributes if isinstance(attr, dict) and attr.get("Name") not in top_level
    )


def _attribute_list(request: dict) -> List[Dict[str, Any]]:
    attributes = request.get("UserAttributes") or []
    if not isinstance(attributes, list):
        raise ValidationError("1 validation error detected: Value at 'userAttributes' must be a list")
    return attributes


# ─────────────────────────────────────────────────────────────────────────────
# Handlers
# ─────────────────────────────────────────────────────────────────────────────

def admin_create_user(ctx: HandlerContext, request: dict) -> dict:
    """Create an enabled user that must change its password on first sign-in."""
    username = require_username(request.get("Username"))
    attributes = _attribute_list(request)
    _reject_immutable(attributes)

    payload: Dict[str, Any] = {
        "username": username,
        "enabled": True,
        "emailVerified": False,
        # Mirrors Cognito's temporary-password state whether or not one was supplied
        "requiredActions": [UPDATE_PASSWORD],
        "attributes": with_last_modified(_custom_attributes(attributes)),
    }
    payload.update(_standard_fields(attributes))
    if request.get("MessageAction") == "SUPPRESS":
        payload["emailVerified"] = True

    temporary_password = request.get("TemporaryPassword")
    if temporary_password:
        payload["credentials"] = [{"type": "password", "value": temporary_password, "temporary": True}]

    try:
        user_id = ctx.users.create_user(ctx.realm, payload)
    except KeycloakAPIError as exc:
        if exc.is_conflict:
            raise username_exists() from exc
        if exc.status_code == 400 and temporary_password:
            raise ValidationError("Password does not conform to policy.", code="InvalidPasswordException") from exc
        raise

    if not user_id:
        raise InternalError("Failed to create user: no user ID returned from identity provider")

    created = ctx.users.get_user(ctx.realm, user_id)
    return {"User": to_external_user(created)}


def admin_delete_user(ctx: HandlerContext, request: dict) -> dict:
    username = require_username(request.get("Username"))
    user = find_user_or_fail(ctx.users, ctx.realm, username)
    ctx.users.delete_user(ctx.realm, user["id"])
    return {}


def admin_get_user(ctx: HandlerContext, request: dict) -> dict:
    username = require_username(request.get("Username"))
    user = find_user_or_fail(ctx.users, ctx.realm, username)
    external = to_external_user(user)
    return {
        "Username": external["Username"],
        "UserAttributes": external["Attributes"],
        "UserCreateDate": external["UserCreateDate"],
        "UserLastModifiedDate": external["UserLastModifiedDate"],
        "Enabled": external["Enabled"],
        "UserStatus": external["UserStatus"],
        "MFAOptions": [],
        "UserMFASettingList": [],
    }


def admin_update_user_attributes(ctx: HandlerContext, request: dict) -> dict:
    """Merge attributes into the user; standard ones go to top-level fields."""
    username = require_username(request.get("Username"))
    if request.get("UserAttributes") is None:
        raise missing_parameter("userAttributes")
    attributes = _attribute_list(request)
    _reject_immutable(attributes)

    user = find_user_or_fail(ctx.users, ctx.realm, username)
    representation = dict(user)
    representation.update(_standard_fields(attributes))
    representation["attributes"] = with_last_modified({
        **(user.get("attributes") or {}),
        **_custom_attributes(attributes),
    })

    try:
        ctx.users.update_user(ctx.realm, user["id"], representation)
    except KeycloakAPIError as exc:
        if exc.is_conflict:
            raise ConflictError(
                "An account with the given email already exists.",
                code="AliasExistsException",
            ) from exc
        raise
    return {"CodeDeliveryDetailsList": []}


def admin_delete_user_attributes(ctx: HandlerContext, request: dict) -> dict:
    """Clear standard attributes and drop custom ones.

    Every name is validated before anything is written.
    """
    username = require_username(request.get("Username"))
    names = request.get("UserAttributeNames")
    if not names:
        raise missing_parameter("userAttributeNames")
    if not isinstance(names, list) or not all(isinstance(name, str) for name in names):
        raise ValidationError("1 validation error detected: Value at 'userAttributeNames' must be a list of strings")

    for name in names:
        if is_immutable_attribute(name):
            raise ValidationError(f"Cannot modify an immutable attribute: {name}")
        if is_required_attribute(name):
            raise ValidationError(f"Cannot delete a required attribute: {name}")

    user = find_user_or_fail(ctx.users, ctx.realm, username)
    representation = dict(user)
    custom = dict(user.get("attributes") or {})
    for name in names:
        if name in STANDARD_FIELDS:
            representation[STANDARD_FIELDS[name]] = ""
        elif name == EMAIL_VERIFIED:
            representation["emailVerified"] = False
        else:
            custom.pop(backend_attribute_key(name), None)
    representation["attributes"] = with_last_modified(custom)

    ctx.users.update_user(ctx.realm, user["id"], representation)
    return {}


def admin_set_user_password(ctx: HandlerContext, request: dict) -> dict:
    """Set a temporary or permanent password.

    A permanent password clears the pending UPDATE_PASSWORD action so the
    user reads back as CONFIRMED; a temporary one sets it.
    """
    username = require_username(request.get("Username"))
    password = require_password(request.get("Password"))
    permanent = bool(request.get("Permanent"))

    user = find_user_or_fail(ctx.users, ctx.realm, username)
    try:
        ctx.users.reset_password(ctx.realm, user["id"], password, temporary=not permanent)
    except KeycloakAPIError as exc:
        if exc.status_code == 400:
            raise ValidationError("Password does not conform to policy.", code="InvalidPasswordException") from exc
        raise

    representation = ctx.users.get_user(ctx.realm, user["id"])
    actions = set(representation.get("requiredActions") or [])
    if permanent:
        actions.discard(UPDATE_PASSWORD)
    else:
        actions.add(UPDATE_PASSWORD)
    representation["requiredActions"] = sorted(actions)
    representation["attributes"] = with_last_modified(representation.get("attributes"))
    ctx.users.update_user(ctx.realm, user["id"], representation)
    return {}


def admin_reset_user_password(ctx: HandlerContext, request: dict) -> dict:
    """Require a password change, then try to e-mail the user about it.

    The e-mail is best effort: once UPDATE_PASSWORD is pending the reset has
    happened, so a delivery failure is only logged.
    """
    username = require_username(request.get("Username"))
    user = find_user_or_fail(ctx.users, ctx.realm, username)
    ctx.users.ensure_user_required_actions(ctx.realm, user["id"], [UPDATE_PASSWORD])

    try:
        ctx.users.execute_actions_email(ctx.realm, user["id"], [UPDATE_PASSWORD])
    except (KeycloakAPIError, requests.RequestException) as exc:
        logger.warning("Password reset e-mail for '%s' not sent: %s", username, exc)
    return {}


def _set_enabled(ctx: HandlerContext, request: dict, enabled: bool) -> dict:
    username = require_username(request.get("Username"))
    user = find_user_or_fail(ctx.users, ctx.realm, username)
    representation = dict(user)
    representation["enabled"] = enabled
    representation["attributes"] = with_last_modified(user.get("attributes"))
    ctx.users.update_user(ctx.realm, user["id"], representation)
    return {}


def admin_enable_user(ctx: HandlerContext, request: dict) -> dict:
    return _set_enabled(ctx, request, True)


def admin_disable_user(ctx: HandlerContext, request: dict) -> dict:
    return _set_enabled(ctx, request, False)


def admin_confirm_sign_up(ctx: HandlerContext, request: dict) -> dict:
    """Mark the e-mail verified and drop the pending VERIFY_EMAIL action."""
    username = require_username(request.get("Username"))
    user = find_user_or_fail(ctx.users, ctx.realm, username)
    representation = dict(user)
    representation["emailVerified"] = True
    representation["requiredActions"] = [
        action for action in (user.get("requiredActions") or []) if action != VERIFY_EMAIL
    ]
    representation["attributes"] = with_last_modified(user.get("attributes"))
    ctx.users.update_user(ctx.realm, user["id"], representation)
    return {}


def admin_user_global_sign_out(ctx: HandlerContext, request: dict) -> dict:
    username = require_username(request.get("Username"))
    user = find_user_or_fail(ctx.users, ctx.realm, username)
    ctx.sessions.revoke_user_sessions(ctx.realm, user["id"])
    return {}


def list_users(ctx: HandlerContext, request: dict) -> dict:
    """Offset-paged listing with the ``email``/``username`` filter subset.

    The cursor counts Keycloak rows, so a page narrowed by the filter can
    come back short and still carry a cursor.
    """
    limit = page_limit(request.get("Limit"))
    offset = parse_pagination_token(request.get("PaginationToken"))
    clauses = parse_filter(request.get("Filter"))

    users = ctx.users.find_users(ctx.realm, first=offset, max_results=limit, **to_query_params(clauses))
    external = [to_external_user(user) for user in users if matches(clauses, user)]

    wanted = request.get("AttributesToGet")
    if wanted:
        for user in external:
            user["Attributes"] = [attr for attr in user["Attributes"] if attr["Name"] in wanted]

    return {
        "Users": external,
        "PaginationToken": next_token(offset, limit, len(users)),
    }
