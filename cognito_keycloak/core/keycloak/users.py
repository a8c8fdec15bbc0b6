"""Keycloak user management operations."""
from __future__ import annotations
import logging
from typing import Optional, List, Iterable

from .client import KeycloakClient, created_resource_id

logger = logging.getLogger(__name__)

UPDATE_PASSWORD = "UPDATE_PASSWORD"
VERIFY_EMAIL = "VERIFY_EMAIL"


class UserService:
    """Service for managing Keycloak users."""

    def __init__(self, client: KeycloakClient):
        """Initialize user service.

        Args:
            client: Authenticated Keycloak client
        """
        self.client = client

    def find_users(
        self,
        realm: str,
        *,
        username: Optional[str] = None,
        email: Optional[str] = None,
        search: Optional[str] = None,
        exact: bool = False,
        first: Optional[int] = None,
        max_results: Optional[int] = None,
    ) -> List[dict]:
        """Query users with Keycloak's native search parameters."""
        params: dict = {}
        if username is not None:
            params["username"] = username
        if email is not None:
            params["email"] = email
        if search is not None:
            params["search"] = search
        if exact:
            params["exact"] = "true"
        if first is not None:
            params["first"] = first
        if max_results is not None:
            params["max"] = max_results
        resp = self.client.get(f"/admin/realms/{realm}/users", params=params)
        return resp.json() or []

    def find_by_exact_username(self, realm: str, username: str) -> List[dict]:
        """Return every user whose username exactly matches (Keycloak lowercases usernames)."""
        candidates = self.find_users(realm, username=username, exact=True)
        wanted = username.lower()
        return [user for user in candidates if (user.get("username") or "").lower() == wanted]

    def get_user(self, realm: str, user_id: str) -> dict:
        resp = self.client.get(f"/admin/realms/{realm}/users/{user_id}")
        return resp.json()

    def create_user(self, realm: str, payload: dict) -> Optional[str]:
        """Create a user and return the id Keycloak assigned.

        Raises:
            KeycloakAPIError: 409 when username or email is taken
        """
        resp = self.client.post(f"/admin/realms/{realm}/users", json=payload)
        user_id = created_resource_id(resp)
        if user_id is None:
            matches = self.find_by_exact_username(realm, payload["username"])
            user_id = matches[0]["id"] if matches else None
        logger.info("User '%s' created (id=%s)", payload.get("username"), user_id)
        return user_id

    def update_user(self, realm: str, user_id: str, representation: dict) -> None:
        self.client.put(f"/admin/realms/{realm}/users/{user_id}", json=representation)

    def delete_user(self, realm: str, user_id: str) -> None:
        self.client.delete(f"/admin/realms/{realm}/users/{user_id}")
        logger.info("User %s deleted", user_id)

    def count_users(self, realm: str) -> int:
        resp = self.client.get(f"/admin/realms/{realm}/users/count")
        return int(resp.json())

    def reset_password(self, realm: str, user_id: str, password: str, temporary: bool) -> None:
        """Set a password credential; Keycloak adds UPDATE_PASSWORD when temporary."""
        self.client.put(
            f"/admin/realms/{realm}/users/{user_id}/reset-password",
            json={"type": "password", "value": password, "temporary": temporary},
        )

    def ensure_user_required_actions(self, realm: str, user_id: str, actions: Iterable[str]) -> dict:
        """Apply required actions to a user without overwriting existing ones.

        Returns:
            The user representation as written
        """
        user_rep = self.get_user(realm, user_id)
        existing = set(user_rep.get("requiredActions") or [])
        desired = set(actions)
        if desired.issubset(existing):
            return user_rep

        user_rep["requiredActions"] = sorted(existing.union(desired))
        self.update_user(realm, user_id, user_rep)
        logger.info("Required actions for %s set to %s", user_id, user_rep["requiredActions"])
        return user_rep

    def execute_actions_email(self, realm: str, user_id: str, actions: List[str]) -> None:
        """Ask Keycloak to e-mail the user a link to perform the given actions."""
        self.client.put(f"/admin/realms/{realm}/users/{user_id}/execute-actions-email", json=actions)

    def list_groups(
        self,
        realm: str,
        user_id: str,
        first: Optional[int] = None,
        max_results: Optional[int] = None,
    ) -> List[dict]:
        """Groups the user belongs to, with their attribute bags."""
        params: dict = {"briefRepresentation": "false"}
        if first is not None:
            params["first"] = first
        if max_results is not None:
            params["max"] = max_results
        resp = self.client.get(f"/admin/realms/{realm}/users/{user_id}/groups", params=params)
        return resp.json() or []

    def add_to_group(self, realm: str, user_id: str, group_id: str) -> None:
        self.client.put(f"/admin/realms/{realm}/users/{user_id}/groups/{group_id}")

    def remove_from_group(self, realm: str, user_id: str, group_id: str) -> None:
        self.client.delete(f"/admin/realms/{realm}/users/{user_id}/groups/{group_id}")
