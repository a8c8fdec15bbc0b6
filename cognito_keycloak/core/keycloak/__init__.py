"""Keycloak Admin API client library.

Architecture:
- client.py: HTTP client with authentication and auto-refresh
- realm.py: Realm bootstrap (realm, local client, protocol mappers)
- users.py: User lifecycle, credentials, required actions, membership
- groups.py: Group management and membership listing
- sessions.py: Session revocation
- exceptions.py: Typed exceptions for error handling

Usage:
    from cognito_keycloak.core.keycloak import KeycloakClient, UserService

    client = KeycloakClient("http://keycloak:8080")
    client.authenticate_admin("admin", "password")

    users = UserService(client)
    matches = users.find_by_exact_username("local_pool", "alice")
"""
from .client import (
    KeycloakClient,
    create_admin_client,
    created_resource_id,
    REQUEST_TIMEOUT,
)
from .exceptions import (
    KeycloakError,
    KeycloakAPIError,
    KeycloakAuthenticationError,
)
from .realm import RealmService
from .users import UserService, UPDATE_PASSWORD, VERIFY_EMAIL
from .groups import GroupService
from .sessions import SessionService

__all__ = [
    # Client
    "KeycloakClient",
    "create_admin_client",
    "created_resource_id",
    "REQUEST_TIMEOUT",

    # Exceptions
    "KeycloakError",
    "KeycloakAPIError",
    "KeycloakAuthenticationError",

    # Services
    "RealmService",
    "UserService",
    "GroupService",
    "SessionService",

    # Required action aliases
    "UPDATE_PASSWORD",
    "VERIFY_EMAIL",
]
