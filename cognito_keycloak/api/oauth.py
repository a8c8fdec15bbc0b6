"""Cognito-style OAuth 2.0 / OIDC endpoints proxied to Keycloak.

Requests are relayed to the realm's ``openid-connect`` endpoints with a
small header allow-list. Redirects are passed back to the caller, with
Keycloak's endpoint prefix stripped from ``Location``. The discovery
document is rewritten so clients talk to this server rather than Keycloak.
"""
from __future__ import annotations
import logging
from typing import Dict, Optional

import requests
from flask import Blueprint, Response, current_app, jsonify, request

bp = Blueprint("oauth", __name__)

FORWARDED_REQUEST_HEADERS = ("content-type", "authorization", "accept", "accept-language", "cookie")

# Hop-by-hop headers plus those invalidated by requests decoding the body
DROPPED_RESPONSE_HEADERS = frozenset({
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailer",
    "trailers",
    "transfer-encoding",
    "upgrade",
    "content-encoding",
    "content-length",
})

# Discovery fields served by this proxy -> local route
DISCOVERY_ROUTES = {
    "authorization_endpoint": "/oauth2/authorize",
    "token_endpoint": "/oauth2/token",
    "userinfo_endpoint": "/oauth2/userInfo",
    "end_session_endpoint": "/logout",
    "jwks_uri": "/.well-known/jwks.json",
    "revocation_endpoint": "/oauth2/revoke",
    "introspection_endpoint": "/oauth2/introspect",
}

logger = logging.getLogger(__name__)


def _oidc_url(suffix: str = "") -> str:
    cfg = current_app.config["APP_CONFIG"]
    return f"{cfg.keycloak_url}{cfg.oidc_base_path}{suffix}"


def _public_base_url() -> str:
    proto = request.headers.get("X-Forwarded-Proto") or request.scheme or "http"
    host = request.headers.get("Host") or "localhost:3000"
    return f"{proto}://{host}"


def _forwarded_headers() -> Dict[str, str]:
    headers = {}
    for name in FORWARDED_REQUEST_HEADERS:
        value = request.headers.get(name)
        if value:
            headers[name] = value
    return headers


def rewrite_location(location: str, keycloak_prefix: str) -> str:
    """Strip the Keycloak OIDC endpoint prefix from a redirect target."""
    return location.replace(keycloak_prefix, "")


def proxy_to_keycloak(suffix: str, query_string: Optional[bytes] = None) -> Response:
    """Relay the current request to ``<realm openid-connect><suffix>``."""
    cfg = current_app.config["APP_CONFIG"]
    url = _oidc_url(suffix)
    if query_string:
        url = f"{url}?{query_string.decode('latin-1')}"

    body = None
    if request.method not in ("GET", "HEAD"):
        body = request.get_data()

    upstream = requests.request(
        request.method,
        url,
        headers=_forwarded_headers(),
        data=body,
        allow_redirects=False,
        timeout=cfg.keycloak_request_timeout,
    )
    logger.debug("Proxied %s %s -> %s", request.method, suffix, upstream.status_code)

    keycloak_prefix = _oidc_url()
    response = Response(upstream.content, status=upstream.status_code)
    for name, value in upstream.headers.items():
        lowered = name.lower()
        # requests folds repeated headers into one; cookies are relayed below
        if lowered in DROPPED_RESPONSE_HEADERS or lowered == "set-cookie":
            continue
        if lowered == "location":
            value = rewrite_location(value, keycloak_prefix)
        response.headers[name] = value
    for cookie in upstream.raw.headers.getlist("Set-Cookie"):
        response.headers.add("Set-Cookie", cookie)
    return response


# ─────────────────────────────────────────────────────────────────────────────
# OpenID Connect discovery
# ─────────────────────────────────────────────────────────────────────────────

def rewrite_discovery(document: dict, base_url: str) -> dict:
    """Point the endpoints this proxy serves at ``base_url``.

    Endpoints without a local route keep their Keycloak URL.
    """
    rewritten = dict(document)
    for field, route in DISCOVERY_ROUTES.items():
        if rewritten.get(field):
            rewritten[field] = f"{base_url}{route}"
    rewritten["issuer"] = base_url
    return rewritten


@bp.route("/.well-known/openid-configuration", methods=["GET"])
def openid_configuration():
    cfg = current_app.config["APP_CONFIG"]
    upstream = requests.get(
        f"{cfg.keycloak_url}/realms/{cfg.keycloak_realm}/.well-known/openid-configuration",
        timeout=cfg.keycloak_request_timeout,
    )
    upstream.raise_for_status()
    return jsonify(rewrite_discovery(upstream.json(), _public_base_url()))


@bp.route("/.well-known/jwks.json", methods=["GET"])
def jwks():
    return proxy_to_keycloak("/certs")


# ─────────────────────────────────────────────────────────────────────────────
# OAuth 2.0 / OIDC endpoints
# ─────────────────────────────────────────────────────────────────────────────

@bp.route("/oauth2/authorize", methods=["GET"])
def authorize():
    return proxy_to_keycloak("/auth", request.query_string)


@bp.route("/oauth2/token", methods=["POST"])
def token():
    return proxy_to_keycloak("/token")


@bp.route("/oauth2/userInfo", methods=["GET", "POST"])
def userinfo():
    return proxy_to_keycloak("/userinfo")


@bp.route("/oauth2/revoke", methods=["POST"])
def revoke():
    return proxy_to_keycloak("/revoke")


@bp.route("/logout", methods=["GET", "POST"])
def logout():
    query_string = request.query_string if request.method == "GET" else None
    return proxy_to_keycloak("/logout", query_string)


@bp.route("/oauth2/introspect", methods=["POST"])
def introspect():
    return proxy_to_keycloak("/token/introspect")
