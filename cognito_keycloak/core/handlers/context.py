"""Per-application state handed to every action handler."""
from __future__ import annotations
from dataclasses import dataclass, field

from ..keycloak import GroupService, KeycloakClient, SessionService, UserService


@dataclass
class HandlerContext:
    """Keycloak services bound to the realm backing the emulated user pool."""

    client: KeycloakClient
    realm: str
    user_pool_id: str
    user_pool_name: str = "Local Development Pool"
    users: UserService = field(init=False)
    groups: GroupService = field(init=False)
    sessions: SessionService = field(init=False)

    def __post_init__(self) -> None:
        self.users = UserService(self.client)
        self.groups = GroupService(self.client)
        self.sessions = SessionService(self.client)

    @classmethod
    def from_config(cls, client: KeycloakClient, cfg) -> "HandlerContext":
        return cls(
            client=client,
            realm=cfg.keycloak_realm,
            user_pool_id=cfg.user_pool_id,
            user_pool_name=cfg.user_pool_name,
        )
