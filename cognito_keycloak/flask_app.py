"""Flask application factory and bootstrap.

This module provides the create_app() factory function for initializing
the Flask application with all blueprints, middleware, and configuration.

Gunicorn entry point: ``cognito_keycloak.flask_app:create_app()``
"""
from __future__ import annotations
import logging
import time
import uuid
from typing import Optional

from flask import Flask, Response, g, request

from cognito_keycloak.config import AppConfig, load_settings
from cognito_keycloak.core.handlers import HandlerContext
from cognito_keycloak.core.keycloak import KeycloakClient, RealmService, create_admin_client

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": (
        "Content-Type, Authorization, X-Amz-Target, X-Amz-Date, X-Amz-Security-Token, X-Amz-Content-Sha256"
    ),
    "Access-Control-Expose-Headers": "X-Amzn-RequestId",
}

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Application Factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app(cfg: Optional[AppConfig] = None, client: Optional[KeycloakClient] = None) -> Flask:
    """Create and configure Flask application.

    Args:
        cfg: Settings; loaded from the environment when omitted
        client: Keycloak admin client; built from ``cfg`` when omitted
    """
    cfg = cfg or load_settings()
    _configure_logging(cfg.log_level)

    app = Flask(__name__)
    app.config["APP_CONFIG"] = cfg

    client = client or create_admin_client(cfg)
    app.config["HANDLER_CONTEXT"] = HandlerContext.from_config(client, cfg)

    if cfg.keycloak_bootstrap_realm:
        created = RealmService(client).ensure_realm(cfg.keycloak_realm)
        logger.info("Realm '%s' %s", cfg.keycloak_realm, "created" if created else "already present")

    # Register blueprints
    from cognito_keycloak.api import cognito, errors, health, oauth

    app.register_blueprint(health.bp)
    app.register_blueprint(oauth.bp)
    app.register_blueprint(cognito.bp)

    # Register error handlers
    errors.register_error_handlers(app)

    # Register middleware
    _register_middleware(app)

    logger.info(
        "Cognito emulation for pool '%s' backed by %s (realm '%s')",
        cfg.user_pool_id,
        cfg.keycloak_url,
        cfg.keycloak_realm,
    )
    return app


def _configure_logging(level: str) -> None:
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    root.setLevel(getattr(logging, level.upper(), logging.INFO))


def _register_middleware(app: Flask) -> None:
    """Register request id, CORS and access logging."""

    @app.before_request
    def start_request():
        g.request_id = str(uuid.uuid4())
        g.started_at = time.perf_counter()
        if request.method == "OPTIONS":
            return Response(status=204)
        return None

    @app.after_request
    def finish_request(response: Response) -> Response:
        response.headers.update(CORS_HEADERS)
        response.headers["X-Amzn-RequestId"] = g.get("request_id") or str(uuid.uuid4())

        elapsed_ms = (time.perf_counter() - g.get("started_at", time.perf_counter())) * 1000
        action = g.get("cognito_action")
        logger.info(
            "%s %s %s%s %.1fms",
            request.method,
            request.path,
            response.status_code,
            f" action={action}" if action else "",
            elapsed_ms,
        )
        return response


if __name__ == "__main__":
    settings = load_settings()
    create_app(settings).run(host="0.0.0.0", port=settings.port)
