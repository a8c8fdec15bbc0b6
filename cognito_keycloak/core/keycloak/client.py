"""Low-level HTTP client for Keycloak Admin API.

Handles authentication, token management, and HTTP operations.
"""
from __future__ import annotations
import logging
import threading
import time
from typing import Optional, Dict, Any

import requests

from .exceptions import KeycloakAPIError, KeycloakAuthenticationError

REQUEST_TIMEOUT = 5
# Refresh the admin token this many seconds before Keycloak expires it
TOKEN_REFRESH_LEEWAY = 10
DEFAULT_TOKEN_LIFETIME = 60

logger = logging.getLogger(__name__)


class KeycloakClient:
    """HTTP client for Keycloak Admin API with automatic token management.

    Features:
    - Admin login against the bootstrap realm, cached until near expiry
    - Single-flight refresh: concurrent callers share one login
    - Centralized error handling

    Usage:
        client = KeycloakClient("http://keycloak:8080")
        client.authenticate_admin("admin", "password")
        response = client.get("/admin/realms/local_pool/users")
    """

    def __init__(self, base_url: str, timeout: float = REQUEST_TIMEOUT):
        """Initialize Keycloak client.

        Args:
            base_url: Keycloak base URL
            timeout: Per-request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._token: Optional[str] = None
        self._token_expires_at: float = 0.0
        self._auth_params: Dict[str, Any] = {}
        self._token_lock = threading.Lock()

    def configure_admin(
        self,
        username: str,
        password: str,
        realm: str = "master",
        client_id: str = "admin-cli",
    ) -> None:
        """Store admin credentials; the first request triggers the login."""
        self._auth_params = {
            "username": username,
            "password": password,
            "realm": realm,
            "client_id": client_id,
        }
        self._token = None
        self._token_expires_at = 0.0

    def authenticate_admin(
        self,
        username: str,
        password: str,
        realm: str = "master",
        client_id: str = "admin-cli",
    ) -> str:
        """Authenticate as admin user and store credentials for auto-refresh.

        Args:
            username: Admin username
            password: Admin password
            realm: Authentication realm (default: master)
            client_id: Public client used for the password grant

        Returns:
            Access token
        """
        self.configure_admin(username, password, realm, client_id)
        with self._token_lock:
            self._refresh_token()
        return self._token

    @property
    def has_valid_token(self) -> bool:
        return bool(self._token) and time.monotonic() < self._token_expires_at - TOKEN_REFRESH_LEEWAY

    def _ensure_authenticated(self) -> str:
        """Return a valid token, logging in again if it is missing or expiring."""
        if not self._auth_params:
            raise KeycloakAuthenticationError("Not authenticated - call configure_admin or authenticate_admin first")

        if self.has_valid_token:
            return self._token

        with self._token_lock:
            # Another thread may have refreshed while we waited
            if not self.has_valid_token:
                self._refresh_token()
        return self._token

    def _refresh_token(self) -> None:
        payload = self._get_admin_token(**self._auth_params)
        self._token = payload["access_token"]
        lifetime = payload.get("expires_in") or DEFAULT_TOKEN_LIFETIME
        self._token_expires_at = time.monotonic() + float(lifetime)
        logger.debug("Admin token refreshed (expires in %ss)", lifetime)

    def _get_admin_token(self, username: str, password: str, realm: str = "master", client_id: str = "admin-cli") -> dict:
        """Obtain an admin token via direct access grant."""
        url = f"{self.base_url}/realms/{realm}/protocol/openid-connect/token"
        data = {
            "grant_type": "password",
            "client_id": client_id,
            "username": username,
            "password": password,
        }
        try:
            resp = requests.post(url, data=data, timeout=self.timeout)
        except requests.RequestException as exc:
            raise KeycloakAuthenticationError(f"Keycloak login failed: {exc}") from exc
        if resp.status_code != 200:
            raise KeycloakAPIError(resp.status_code, resp.text, url)
        return resp.json()

    def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict] = None,
        json: Any = None,
        **kwargs,
    ) -> requests.Response:
        """Execute an authenticated request against the Admin API.

        Args:
            method: HTTP method
            path: API endpoint path (e.g., "/admin/realms/local_pool/users")
            params: Query parameters
            json: JSON payload
            **kwargs: Additional arguments for requests.request

        Returns:
            Response object

        Raises:
            KeycloakAPIError: On HTTP error
        """
        token = self._ensure_authenticated()
        url = f"{self.base_url}{path}"
        headers = kwargs.pop("headers", {})
        headers["Authorization"] = f"Bearer {token}"

        resp = requests.request(
            method,
            url,
            params=params,
            json=json,
            headers=headers,
            timeout=self.timeout,
            **kwargs,
        )
        self._handle_error(resp)
        return resp

    def get(self, path: str, params: Optional[Dict] = None, **kwargs) -> requests.Response:
        return self.request("GET", path, params=params, **kwargs)

    def post(self, path: str, json: Any = None, **kwargs) -> requests.Response:
        return self.request("POST", path, json=json, **kwargs)

    def put(self, path: str, json: Any = None, **kwargs) -> requests.Response:
        return self.request("PUT", path, json=json, **kwargs)

    def delete(self, path: str, **kwargs) -> requests.Response:
        return self.request("DELETE", path, **kwargs)

    def _handle_error(self, resp: requests.Response) -> None:
        """Centralized error handling for HTTP responses.

        Args:
            resp: Response object to check

        Raises:
            KeycloakAPIError: If response status indicates error
        """
        if resp.status_code >= 400:
            raise KeycloakAPIError(resp.status_code, resp.text, resp.url)


def created_resource_id(resp: requests.Response) -> Optional[str]:
    """Return the id Keycloak puts at the end of a 201 ``Location`` header."""
    location = resp.headers.get("Location", "")
    if not location:
        return None
    return location.rstrip("/").rsplit("/", 1)[-1] or None


def create_admin_client(cfg) -> KeycloakClient:
    """Build a client for the configured Keycloak using bootstrap admin credentials."""
    client = KeycloakClient(cfg.keycloak_url, timeout=cfg.keycloak_request_timeout)
    client.configure_admin(
        cfg.keycloak_admin,
        cfg.keycloak_admin_password,
        realm="master",
        client_id=cfg.keycloak_client_id,
    )
    return client
