"""User pool actions."""
from __future__ import annotations

from ..cognito_transformer import to_external_user_pool
from ..lookups import check_user_pool
from ..validators import require_user_pool_id
from .context import HandlerContext


def describe_user_pool(ctx: HandlerContext, request: dict) -> dict:
    """Static pool description plus the live Keycloak user count."""
    check_user_pool(ctx.user_pool_id, require_user_pool_id(request.get("UserPoolId")))

    user_count = ctx.users.count_users(ctx.realm)
    return {"UserPool": to_external_user_pool(ctx.user_pool_id, user_count, ctx.user_pool_name)}
