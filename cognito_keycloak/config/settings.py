"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

SECRETS_DIR = Path("/run/secrets")


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = SECRETS_DIR / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
        except OSError as exc:
            logger.warning("Failed to read %s: %s", secret_file, exc)
        else:
            if secret_value:
                logger.info("Loaded %s from %s", secret_name, SECRETS_DIR)
                return secret_value

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            return secret_value

    return None


def _env_flag(var_name: str, default: str = "false") -> bool:
    return os.environ.get(var_name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class AppConfig:
    """Application configuration container."""
    # Keycloak
    keycloak_url: str = "http://localhost:8080"
    keycloak_realm: str = "local_pool"
    keycloak_admin: str = "admin"
    keycloak_admin_password: str = "admin"
    keycloak_client_id: str = "admin-cli"
    keycloak_request_timeout: float = 5.0
    keycloak_bootstrap_realm: bool = False

    # Cognito emulation
    user_pool_id: str = "local_pool"
    user_pool_name: str = "Local Development Pool"

    # Server
    port: int = 3000
    log_level: str = "INFO"

    @property
    def oidc_base_path(self) -> str:
        """Keycloak path prefix of the realm's OpenID Connect endpoints."""
        return f"/realms/{self.keycloak_realm}/protocol/openid-connect"


def load_settings() -> AppConfig:
    """Load application settings from environment and /run/secrets."""
    user_pool_id = os.environ.get("USER_POOL_ID", "local_pool").strip() or "local_pool"

    admin_password = _load_secret_from_file(
        "kc_bootstrap_admin_password",
        "KC_BOOTSTRAP_ADMIN_PASSWORD",
    )

    try:
        port = int(os.environ.get("PORT", "3000"))
    except ValueError as exc:
        raise RuntimeError(f"PORT must be an integer, got {os.environ['PORT']!r}") from exc

    try:
        timeout = float(os.environ.get("KEYCLOAK_REQUEST_TIMEOUT", "5"))
    except ValueError as exc:
        raise RuntimeError(
            f"KEYCLOAK_REQUEST_TIMEOUT must be a number, got {os.environ['KEYCLOAK_REQUEST_TIMEOUT']!r}"
        ) from exc

    cfg = AppConfig(
        keycloak_url=os.environ.get("KEYCLOAK_URL", "http://localhost:8080").rstrip("/"),
        keycloak_realm=os.environ.get("KEYCLOAK_REALM", user_pool_id),
        keycloak_admin=os.environ.get("KC_BOOTSTRAP_ADMIN_USERNAME", "admin"),
        keycloak_admin_password=admin_password or "admin",
        keycloak_client_id=os.environ.get("KEYCLOAK_CLIENT_ID", "admin-cli"),
        keycloak_request_timeout=timeout,
        keycloak_bootstrap_realm=_env_flag("KEYCLOAK_BOOTSTRAP_REALM"),
        user_pool_id=user_pool_id,
        user_pool_name=os.environ.get("USER_POOL_NAME", "Local Development Pool"),
        port=port,
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    )

    logger.info(
        "Settings loaded; keycloak=%s realm=%s user_pool=%s",
        cfg.keycloak_url,
        cfg.keycloak_realm,
        cfg.user_pool_id,
    )
    if admin_password is None:
        logger.warning("Using default Keycloak bootstrap admin credentials. Local development only.")

    return cfg
