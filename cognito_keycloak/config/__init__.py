"""Configuration module for the Cognito-Keycloak shim."""
from .settings import AppConfig, load_settings

__all__ = ["AppConfig", "load_settings"]
