"""Cognito action handlers, one function per supported action."""
from .context import HandlerContext
from . import groups, user_pool, users

__all__ = ["HandlerContext", "groups", "user_pool", "users"]
