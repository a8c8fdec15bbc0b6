"""Group administration and membership actions."""
from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional

from ..cognito_transformer import (
    CREATION_DATE_KEY,
    LAST_MODIFIED_KEY,
    isoformat,
    to_external_group,
    to_external_user,
    utcnow,
    with_last_modified,
)
from ..errors import InternalError, ValidationError, group_exists
from ..keycloak import KeycloakAPIError
from ..lookups import find_group_or_fail, find_user_or_fail
from ..validators import (
    next_token,
    page_limit,
    parse_pagination_token,
    require_group_name,
    require_username,
)
from .context import HandlerContext

logger = logging.getLogger(__name__)


def _precedence(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(
            "1 validation error detected: Value at 'precedence' failed to satisfy constraint: "
            "Member must have value greater than or equal to 0"
        )
    return str(value)


def _group_response(ctx: HandlerContext, group_id: str) -> dict:
    return {"Group": to_external_group(ctx.groups.get_group(ctx.realm, group_id), ctx.user_pool_id)}


def create_group(ctx: HandlerContext, request: dict) -> dict:
    group_name = require_group_name(request.get("GroupName"))
    precedence = _precedence(request.get("Precedence"))

    if ctx.groups.find_by_exact_name(ctx.realm, group_name):
        raise group_exists()

    now = isoformat(utcnow())
    attributes: Dict[str, List[str]] = {CREATION_DATE_KEY: [now], LAST_MODIFIED_KEY: [now]}
    if request.get("Description"):
        attributes["description"] = [request["Description"]]
    if precedence is not None:
        attributes["precedence"] = [precedence]
    if request.get("RoleArn"):
        attributes["roleArn"] = [request["RoleArn"]]

    try:
        group_id = ctx.groups.create_group(ctx.realm, group_name, attributes)
    except KeycloakAPIError as exc:
        if exc.is_conflict:
            raise group_exists() from exc
        raise

    if not group_id:
        raise InternalError("Failed to create group: no group ID returned from identity provider")
    return _group_response(ctx, group_id)


def get_group(ctx: HandlerContext, request: dict) -> dict:
    group_name = require_group_name(request.get("GroupName"))
    group = find_group_or_fail(ctx.groups, ctx.realm, group_name)
    return _group_response(ctx, group["id"])


def update_group(ctx: HandlerContext, request: dict) -> dict:
    """Update description, precedence and role ARN; an empty string clears a field."""
    group_name = require_group_name(request.get("GroupName"))
    precedence = _precedence(request.get("Precedence"))

    group = find_group_or_fail(ctx.groups, ctx.realm, group_name)
    existing = ctx.groups.get_group(ctx.realm, group["id"])
    attributes = dict(existing.get("attributes") or {})

    for field, key in (("Description", "description"), ("RoleArn", "roleArn")):
        if field not in request:
            continue
        if request[field]:
            attributes[key] = [request[field]]
        else:
            attributes.pop(key, None)
    if precedence is not None:
        attributes["precedence"] = [precedence]

    ctx.groups.update_group(
        ctx.realm,
        group["id"],
        {"name": existing.get("name", group_name), "attributes": with_last_modified(attributes)},
    )
    return _group_response(ctx, group["id"])


def delete_group(ctx: HandlerContext, request: dict) -> dict:
    group_name = require_group_name(request.get("GroupName"))
    group = find_group_or_fail(ctx.groups, ctx.realm, group_name)
    ctx.groups.delete_group(ctx.realm, group["id"])
    return {}


def list_groups(ctx: HandlerContext, request: dict) -> dict:
    limit = page_limit(request.get("Limit"))
    offset = parse_pagination_token(request.get("NextToken"))
    groups = ctx.groups.find_groups(ctx.realm, first=offset, max_results=limit)
    return {
        "Groups": [to_external_group(group, ctx.user_pool_id) for group in groups],
        "NextToken": next_token(offset, limit, len(groups)),
    }


def list_users_in_group(ctx: HandlerContext, request: dict) -> dict:
    group_name = require_group_name(request.get("GroupName"))
    limit = page_limit(request.get("Limit"))
    offset = parse_pagination_token(request.get("NextToken"))

    group = find_group_or_fail(ctx.groups, ctx.realm, group_name)
    members = ctx.groups.get_group_members(ctx.realm, group["id"], first=offset, max_results=limit)
    return {
        "Users": [to_external_user(user) for user in members],
        "NextToken": next_token(offset, limit, len(members)),
    }


def admin_add_user_to_group(ctx: HandlerContext, request: dict) -> dict:
    username = require_username(request.get("Username"))
    group_name = require_group_name(request.get("GroupName"))
    user = find_user_or_fail(ctx.users, ctx.realm, username)
    group = find_group_or_fail(ctx.groups, ctx.realm, group_name)
    ctx.users.add_to_group(ctx.realm, user["id"], group["id"])
    return {}


def admin_remove_user_from_group(ctx: HandlerContext, request: dict) -> dict:
    username = require_username(request.get("Username"))
    group_name = require_group_name(request.get("GroupName"))
    user = find_user_or_fail(ctx.users, ctx.realm, username)
    group = find_group_or_fail(ctx.groups, ctx.realm, group_name)
    ctx.users.remove_from_group(ctx.realm, user["id"], group["id"])
    return {}


def admin_list_groups_for_user(ctx: HandlerContext, request: dict) -> dict:
    username = require_username(request.get("Username"))
    limit = page_limit(request.get("Limit"))
    offset = parse_pagination_token(request.get("NextToken"))

    user = find_user_or_fail(ctx.users, ctx.realm, username)
    groups = ctx.users.list_groups(ctx.realm, user["id"], first=offset, max_results=limit)
    return {
        "Groups": [to_external_group(group, ctx.user_pool_id) for group in groups],
        "NextToken": next_token(offset, limit, len(groups)),
    }
