"""Pytest shared fixtures: in-memory Keycloak, handler context and Flask client."""
from __future__ import annotations
import copy
import itertools
import json
import pathlib
import sys
import time
import uuid
from typing import Any, Dict, List, Optional

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
import requests

from cognito_keycloak.config import AppConfig
from cognito_keycloak.core.handlers import HandlerContext
from cognito_keycloak.core.keycloak import KeycloakAPIError, KeycloakClient, UPDATE_PASSWORD
from cognito_keycloak.flask_app import create_app

REALM = "local_pool"
TARGET_PREFIX = "AWSCognitoIdentityProviderService."


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch, request):
    """
    Prevent unit tests from reaching a real Keycloak.

    Integration tests are explicitly marked with @pytest.mark.integration and
    are allowed to perform real HTTP calls by skipping this fixture.
    """
    if request.node.get_closest_marker("integration"):
        return

    def _blocked(*args, **kwargs):
        raise RuntimeError(f"Unexpected network access in unit test: {args} {kwargs.get('url', '')}")

    monkeypatch.setattr(requests, "request", _blocked)
    monkeypatch.setattr(requests, "get", _blocked)
    monkeypatch.setattr(requests, "post", _blocked)


# ─────────────────────────────────────────────────────────────────────────────
# In-memory Keycloak Admin API
# ─────────────────────────────────────────────────────────────────────────────
class FakeResponse:
    """Subset of ``requests.Response`` used by the Keycloak services."""

    def __init__(self, status_code: int = 200, payload: Any = None, headers: Optional[dict] = None, url: str = ""):
        self.status_code = status_code
        self._payload = payload
        self.headers = headers or {}
        self.url = url
        self.text = "" if payload is None else json.dumps(payload)

    def json(self):
        return self._payload


class FakeKeycloak(KeycloakClient):
    """Keycloak Admin REST API for one realm, kept in memory.

    Implements only the paths the services call, with Keycloak's observable
    behavior: lower-cased usernames, 409 on duplicates, substring search
    unless ``exact``, ``first``/``max`` paging, Location headers on create.
    """

    def __init__(self, realm: str = REALM):
        super().__init__("http://keycloak.test")
        self.realm = realm
        self.users: Dict[str, dict] = {}
        self.groups: Dict[str, dict] = {}
        self.memberships: Dict[str, set] = {}
        self.passwords: Dict[str, str] = {}
        self.calls: List[tuple] = []
        self.emails_sent: List[tuple] = []
        self.logged_out: List[str] = []
        self.fail_execute_actions_email = False
        self._clock = itertools.count(int(time.time() * 1000))

    # -- test helpers -------------------------------------------------------
    def add_user(self, username: str, **fields) -> dict:
        user_id = str(uuid.uuid4())
        user = {
            "id": user_id,
            "username": username.lower(),
            "enabled": True,
            "emailVerified": False,
            "createdTimestamp": next(self._clock),
            "requiredActions": [],
            "attributes": {},
        }
        user.update(fields)
        self.users[user_id] = user
        self.memberships[user_id] = set()
        return user

    def add_group(self, name: str, attributes: Optional[dict] = None) -> dict:
        group_id = str(uuid.uuid4())
        group = {"id": group_id, "name": name, "path": f"/{name}", "attributes": attributes or {}, "subGroups": []}
        self.groups[group_id] = group
        return group

    def user_by_name(self, username: str) -> Optional[dict]:
        for user in self.users.values():
            if user["username"] == username.lower():
                return user
        return None

    # -- transport ----------------------------------------------------------
    def request(self, method: str, path: str, params: Optional[Dict] = None, json: Any = None, **kwargs):
        self.calls.append((method, path, dict(params or {}), copy.deepcopy(json)))
        prefix = f"/admin/realms/{self.realm}"
        if not path.startswith(prefix):
            raise KeycloakAPIError(404, "Realm not found", path)
        parts = [part for part in path[len(prefix):].split("/") if part]
        resp = self._route(method, parts, params or {}, copy.deepcopy(json), path)
        resp.url = path
        self._handle_error(resp)
        return resp

    def _route(self, method, parts, params, body, path) -> FakeResponse:
        if parts[:1] == ["users"]:
            return self._users(method, parts[1:], params, body, path)
        if parts[:1] == ["groups"]:
            return self._groups(method, parts[1:], params, body, path)
        return FakeResponse(404, {"error": "Not found"})

    @staticmethod
    def _page(items: List[dict], params: dict) -> List[dict]:
        first = int(params.get("first", 0))
        maximum = params.get("max")
        end = first + int(maximum) if maximum is not None else None
        return items[first:end]

    def _users(self, method, parts, params, body, path) -> FakeResponse:
        if not parts:
            if method == "GET":
                return FakeResponse(200, copy.deepcopy(self._page(self._search_users(params), params)))
            if method == "POST":
                return self._create_user(body, path)
            return FakeResponse(405, {"error": "Method not allowed"})
        if parts == ["count"] and method == "GET":
            return FakeResponse(200, len(self.users))

        user = self.users.get(parts[0])
        if user is None:
            return FakeResponse(404, {"error": "User not found"})
        rest = parts[1:]

        if not rest:
            if method == "GET":
                return FakeResponse(200, copy.deepcopy(user))
            if method == "PUT":
                for key, value in body.items():
                    if key not in ("id", "createdTimestamp", "credentials"):
                        user[key] = value
                return FakeResponse(204)
            if method == "DELETE":
                del self.users[user["id"]]
                self.memberships.pop(user["id"], None)
                return FakeResponse(204)
        if rest == ["reset-password"] and method == "PUT":
            self.passwords[user["id"]] = body["value"]
            actions = set(user.get("requiredActions") or [])
            if body.get("temporary"):
                actions.add(UPDATE_PASSWORD)
            user["requiredActions"] = sorted(actions)
            return FakeResponse(204)
        if rest == ["execute-actions-email"] and method == "PUT":
            if self.fail_execute_actions_email:
                return FakeResponse(500, {"errorMessage": "Failed to send execute actions email"})
            self.emails_sent.append((user["id"], body))
            return FakeResponse(204)
        if rest == ["logout"] and method == "POST":
            self.logged_out.append(user["id"])
            return FakeResponse(204)
        if rest == ["groups"] and method == "GET":
            groups = sorted(
                (self.groups[gid] for gid in self.memberships.get(user["id"], set()) if gid in self.groups),
                key=lambda group: group["name"],
            )
            return FakeResponse(200, copy.deepcopy(self._page(groups, params)))
        if len(rest) == 2 and rest[0] == "groups":
            if rest[1] not in self.groups:
                return FakeResponse(404, {"error": "Group not found"})
            if method == "PUT":
                self.memberships[user["id"]].add(rest[1])
                return FakeResponse(204)
            if method == "DELETE":
                self.memberships[user["id"]].discard(rest[1])
                return FakeResponse(204)
        return FakeResponse(405, {"error": "Method not allowed"})

    def _search_users(self, params: dict) -> List[dict]:
        exact = params.get("exact") == "true"

        def matches(value: Optional[str], wanted: Optional[str]) -> bool:
            if wanted is None:
                return True
            value = (value or "").lower()
            wanted = wanted.lower()
            return value == wanted if exact else wanted in value

        search = params.get("search")
        if search is not None:
            # ``search`` wins over the field parameters and spans several fields
            found = [
                user
                for user in self.users.values()
                if any(search.lower() in (user.get(field) or "").lower() for field in ("username", "email", "firstName", "lastName"))
            ]
        else:
            found = [
                user
                for user in self.users.values()
                if matches(user.get("username"), params.get("username")) and matches(user.get("email"), params.get("email"))
            ]
        return sorted(found, key=lambda user: user["username"])

    def _create_user(self, body: dict, path: str) -> FakeResponse:
        username = body["username"].lower()
        email = (body.get("email") or "").lower()
        for existing in self.users.values():
            if existing["username"] == username:
                return FakeResponse(409, {"errorMessage": "User exists with same username"})
            if email and (existing.get("email") or "").lower() == email:
                return FakeResponse(409, {"errorMessage": "User exists with same email"})
        fields = {key: value for key, value in body.items() if key not in ("username", "credentials")}
        user = self.add_user(username, **fields)
        for credential in body.get("credentials") or []:
            self.passwords[user["id"]] = credential["value"]
        return FakeResponse(201, headers={"Location": f"{self.base_url}{path}/{user['id']}"})

    def _groups(self, method, parts, params, body, path) -> FakeResponse:
        if not parts:
            if method == "GET":
                search = params.get("search")
                groups = sorted(
                    (g for g in self.groups.values() if search is None or search.lower() in g["name"].lower()),
                    key=lambda group: group["name"],
                )
                return FakeResponse(200, copy.deepcopy(self._page(groups, params)))
            if method == "POST":
                if any(group["name"] == body["name"] for group in self.groups.values()):
                    return FakeResponse(409, {"errorMessage": "Top level group named already exists."})
                group = self.add_group(body["name"], body.get("attributes"))
                return FakeResponse(201, headers={"Location": f"{self.base_url}{path}/{group['id']}"})
            return FakeResponse(405, {"error": "Method not allowed"})

        group = self.groups.get(parts[0])
        if group is None:
            return FakeResponse(404, {"error": "Could not find group by id"})
        rest = parts[1:]

        if not rest:
            if method == "GET":
                return FakeResponse(200, copy.deepcopy(group))
            if method == "PUT":
                group["name"] = body.get("name", group["name"])
                group["attributes"] = body.get("attributes", group["attributes"])
                return FakeResponse(204)
            if method == "DELETE":
                del self.groups[group["id"]]
                for groups in self.memberships.values():
                    groups.discard(group["id"])
                return FakeResponse(204)
        if rest == ["members"] and method == "GET":
            members = sorted(
                (self.users[uid] for uid, gids in self.memberships.items() if group["id"] in gids),
                key=lambda user: user["username"],
            )
            return FakeResponse(200, copy.deepcopy(self._page(members, params)))
        return FakeResponse(405, {"error": "Method not allowed"})


# ─────────────────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
def keycloak():
    return FakeKeycloak()


@pytest.fixture()
def ctx(keycloak):
    return HandlerContext(client=keycloak, realm=REALM, user_pool_id=REALM)


@pytest.fixture()
def app_config():
    return AppConfig(keycloak_url="http://keycloak.test", keycloak_realm=REALM, user_pool_id=REALM)


@pytest.fixture()
def app(app_config, keycloak):
    flask_app = create_app(app_config, client=keycloak)
    flask_app.config.update(TESTING=True)
    return flask_app


@pytest.fixture()
def client(app):
    """Flask test client backed by the in-memory Keycloak."""
    with app.test_client() as client:
        yield client


@pytest.fixture()
def cognito(client):
    """Call a Cognito action through the HTTP front end; returns (status, body)."""

    def _call(action: str, body: Optional[dict] = None):
        response = client.post(
            "/",
            data=json.dumps(body or {}),
            headers={
                "X-Amz-Target": f"{TARGET_PREFIX}{action}",
                "Content-Type": "application/x-amz-json-1.1",
            },
        )
        return response.status_code, response.get_json(force=True)

    return _call
