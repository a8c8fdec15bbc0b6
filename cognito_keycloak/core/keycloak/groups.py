"""Keycloak group management operations."""
from __future__ import annotations
import logging
from typing import Optional, List

from .client import KeycloakClient, created_resource_id

logger = logging.getLogger(__name__)


class GroupService:
    """Service for managing Keycloak groups."""

    def __init__(self, client: KeycloakClient):
        """Initialize group service.

        Args:
            client: Authenticated Keycloak client
        """
        self.client = client

    def find_groups(
        self,
        realm: str,
        search: Optional[str] = None,
        first: Optional[int] = None,
        max_results: Optional[int] = None,
    ) -> List[dict]:
        """List top-level groups; ``search`` is a substring match on the name."""
        params: dict = {"briefRepresentation": "false"}
        if search is not None:
            params["search"] = search
        if first is not None:
            params["first"] = first
        if max_results is not None:
            params["max"] = max_results
        resp = self.client.get(f"/admin/realms/{realm}/groups", params=params)
        return resp.json() or []

    def find_by_exact_name(self, realm: str, name: str) -> Optional[dict]:
        """Search by substring, then keep the exact name match."""
        for group in self.find_groups(realm, search=name):
            if group.get("name") == name:
                return group
        return None

    def get_group(self, realm: str, group_id: str) -> dict:
        resp = self.client.get(f"/admin/realms/{realm}/groups/{group_id}")
        return resp.json()

    def create_group(self, realm: str, name: str, attributes: dict) -> Optional[str]:
        """Create a top-level group and return its id.

        Raises:
            KeycloakAPIError: 409 when a sibling group has the same name
        """
        resp = self.client.post(
            f"/admin/realms/{realm}/groups",
            json={"name": name, "attributes": attributes},
        )
        group_id = created_resource_id(resp)
        if group_id is None:
            created = self.find_by_exact_name(realm, name)
            group_id = created["id"] if created else None
        logger.info("Group '%s' created (id=%s)", name, group_id)
        return group_id

    def update_group(self, realm: str, group_id: str, representation: dict) -> None:
        self.client.put(f"/admin/realms/{realm}/groups/{group_id}", json=representation)

    def delete_group(self, realm: str, group_id: str) -> None:
        self.client.delete(f"/admin/realms/{realm}/groups/{group_id}")
        logger.info("Group %s deleted", group_id)

    def get_group_members(
        self,
        realm: str,
        group_id: str,
        first: Optional[int] = None,
        max_results: Optional[int] = None,
    ) -> List[dict]:
        """Retrieve members of a group (full user representations)."""
        params: dict = {"briefRepresentation": "false"}
        if first is not None:
            params["first"] = first
        if max_results is not None:
            params["max"] = max_results
        resp = self.client.get(f"/admin/realms/{realm}/groups/{group_id}/members", params=params)
        return resp.json() or []
