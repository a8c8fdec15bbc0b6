"""Keycloak realm management operations.

One Cognito user pool maps to one Keycloak realm. ``ensure_realm`` creates
that realm together with the public ``local_client`` and the protocol
mappers that put Cognito-shaped claims into issued tokens.
"""
from __future__ import annotations
import logging
from typing import Optional

from .client import KeycloakClient, created_resource_id
from .exceptions import KeycloakAPIError

logger = logging.getLogger(__name__)

LOCAL_CLIENT_ID = "local_client"


def realm_representation(realm: str) -> dict:
    return {
        "realm": realm,
        "enabled": True,
        "displayName": f"Cognito Emulator: {realm}",
        "registrationAllowed": False,
        "resetPasswordAllowed": True,
        "editUsernameAllowed": False,
        "bruteForceProtected": False,
        "loginWithEmailAllowed": True,
        "duplicateEmailsAllowed": False,
        "verifyEmail": False,
    }


def local_client_representation() -> dict:
    return {
        "clientId": LOCAL_CLIENT_ID,
        "name": "Local Development Client",
        "enabled": True,
        "redirectUris": ["http://localhost/*"],
        "webOrigins": ["*"],
        "directAccessGrantsEnabled": True,
        "serviceAccountsEnabled": False,
        "publicClient": True,
        "protocol": "openid-connect",
        "standardFlowEnabled": True,
        "implicitFlowEnabled": False,
        "fullScopeAllowed": True,
    }


def protocol_mappers() -> list[dict]:
    """Mappers emitting ``cognito:groups`` and a fixed ``client_id`` claim."""
    return [
        {
            "name": "cognito-groups-mapper",
            "protocol": "openid-connect",
            "protocolMapper": "oidc-group-membership-mapper",
            "config": {
                "full.path": "false",
                "id.token.claim": "true",
                "access.token.claim": "true",
                "claim.name": "cognito:groups",
                "userinfo.token.claim": "true",
            },
        },
        {
            "name": "client-id-mapper",
            "protocol": "openid-connect",
            "protocolMapper": "oidc-hardcoded-claim-mapper",
            "config": {
                "claim.value": LOCAL_CLIENT_ID,
                "id.token.claim": "true",
                "access.token.claim": "true",
                "claim.name": "client_id",
                "jsonType.label": "String",
            },
        },
    ]


class RealmService:
    """Service for managing Keycloak realms."""

    def __init__(self, client: KeycloakClient):
        """Initialize realm service.

        Args:
            client: Authenticated Keycloak client
        """
        self.client = client

    def get_realm(self, realm: str) -> Optional[dict]:
        """Return the realm representation, or None when it does not exist."""
        try:
            return self.client.get(f"/admin/realms/{realm}").json()
        except KeycloakAPIError as exc:
            if exc.is_not_found:
                return None
            raise

    def realm_exists(self, realm: str) -> bool:
        return self.get_realm(realm) is not None

    def ensure_realm(self, realm: str) -> bool:
        """Create the realm, its client and mappers unless the realm exists.

        Returns:
            True if the realm was created, False if it already existed
        """
        if self.realm_exists(realm):
            logger.info("Realm '%s' already exists, skipping creation", realm)
            return False

        self.client.post("/admin/realms", json=realm_representation(realm))
        logger.info("Realm '%s' created", realm)

        resp = self.client.post(f"/admin/realms/{realm}/clients", json=local_client_representation())
        client_uuid = created_resource_id(resp)
        if client_uuid is None:
            lookup = self.client.get(f"/admin/realms/{realm}/clients", params={"clientId": LOCAL_CLIENT_ID})
            client_uuid = lookup.json()[0]["id"]

        for mapper in protocol_mappers():
            self.client.post(
                f"/admin/realms/{realm}/clients/{client_uuid}/protocol-mappers/models",
                json=mapper,
            )
        logger.info("Client '%s' and protocol mappers added to realm '%s'", LOCAL_CLIENT_ID, realm)

        self.enable_unmanaged_attributes(realm)
        return True

    def enable_unmanaged_attributes(self, realm: str) -> None:
        """Allow arbitrary user attributes so ``custom:*`` values are stored.

        Keycloak releases before the declarative user profile have no such
        endpoint and accept any attribute already.
        """
        path = f"/admin/realms/{realm}/users/profile"
        try:
            profile = self.client.get(path).json()
        except KeycloakAPIError as exc:
            if exc.is_not_found:
                logger.info("Realm '%s' has no user profile endpoint; custom attributes already allowed", realm)
                return
            raise
        if profile.get("unmanagedAttributePolicy") == "ENABLED":
            return
        profile["unmanagedAttributePolicy"] = "ENABLED"
        self.client.put(path, json=profile)
        logger.info("Unmanaged user attributes enabled on realm '%s'", realm)
