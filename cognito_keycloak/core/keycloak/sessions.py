"""Keycloak session management operations."""
from __future__ import annotations
import logging

from .client import KeycloakClient

logger = logging.getLogger(__name__)


class SessionService:
    """Service for managing Keycloak user sessions."""

    def __init__(self, client: KeycloakClient):
        """Initialize session service.

        Args:
            client: Authenticated Keycloak client
        """
        self.client = client

    def revoke_user_sessions(self, realm: str, user_id: str) -> None:
        """Log the user out of every active session and invalidate refresh tokens.

        Args:
            realm: Realm name
            user_id: User ID
        """
        self.client.post(f"/admin/realms/{realm}/users/{user_id}/logout")
        logger.info("Revoked all sessions for user %s", user_id)
