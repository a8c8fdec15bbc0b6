import pytest

from cognito_keycloak.config import settings

ENV_VARS = [
    "KEYCLOAK_URL",
    "KEYCLOAK_REALM",
    "KC_BOOTSTRAP_ADMIN_USERNAME",
    "KC_BOOTSTRAP_ADMIN_PASSWORD",
    "KEYCLOAK_CLIENT_ID",
    "KEYCLOAK_REQUEST_TIMEOUT",
    "KEYCLOAK_BOOTSTRAP_REALM",
    "USER_POOL_ID",
    "USER_POOL_NAME",
    "PORT",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(settings, "SECRETS_DIR", tmp_path)


def test_defaults():
    cfg = settings.load_settings()
    assert cfg.keycloak_url == "http://localhost:8080"
    assert cfg.keycloak_realm == "local_pool"
    assert cfg.keycloak_admin == "admin"
    assert cfg.keycloak_admin_password == "admin"
    assert cfg.keycloak_client_id == "admin-cli"
    assert cfg.keycloak_bootstrap_realm is False
    assert cfg.user_pool_id == "local_pool"
    assert cfg.user_pool_name == "Local Development Pool"
    assert cfg.port == 3000
    assert cfg.oidc_base_path == "/realms/local_pool/protocol/openid-connect"


def test_realm_defaults_to_pool_id(monkeypatch):
    monkeypatch.setenv("USER_POOL_ID", "team_pool")
    assert settings.load_settings().keycloak_realm == "team_pool"

    monkeypatch.setenv("KEYCLOAK_REALM", "cognito")
    cfg = settings.load_settings()
    assert cfg.keycloak_realm == "cognito"
    assert cfg.user_pool_id == "team_pool"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("KEYCLOAK_URL", "http://keycloak:8080/")
    monkeypatch.setenv("KC_BOOTSTRAP_ADMIN_USERNAME", "root")
    monkeypatch.setenv("KC_BOOTSTRAP_ADMIN_PASSWORD", "from-env")
    monkeypatch.setenv("KEYCLOAK_REQUEST_TIMEOUT", "2.5")
    monkeypatch.setenv("KEYCLOAK_BOOTSTRAP_REALM", "true")
    monkeypatch.setenv("PORT", "4000")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    cfg = settings.load_settings()
    assert cfg.keycloak_url == "http://keycloak:8080"
    assert cfg.keycloak_admin == "root"
    assert cfg.keycloak_admin_password == "from-env"
    assert cfg.keycloak_request_timeout == 2.5
    assert cfg.keycloak_bootstrap_realm is True
    assert cfg.port == 4000
    assert cfg.log_level == "DEBUG"


def test_password_prefers_docker_secret(monkeypatch, tmp_path):
    (tmp_path / "kc_bootstrap_admin_password").write_text("from-file\n")
    monkeypatch.setenv("KC_BOOTSTRAP_ADMIN_PASSWORD", "from-env")
    assert settings.load_settings().keycloak_admin_password == "from-file"


def test_empty_secret_file_falls_back_to_env(monkeypatch, tmp_path):
    (tmp_path / "kc_bootstrap_admin_password").write_text("  ")
    monkeypatch.setenv("KC_BOOTSTRAP_ADMIN_PASSWORD", "from-env")
    assert settings.load_settings().keycloak_admin_password == "from-env"


@pytest.mark.parametrize("name, value", [("PORT", "http"), ("KEYCLOAK_REQUEST_TIMEOUT", "soon")])
def test_invalid_numbers_rejected(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(RuntimeError, match=name):
        settings.load_settings()
