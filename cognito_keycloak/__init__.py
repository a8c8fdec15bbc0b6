"""Cognito Identity Provider emulation over Keycloak.

To run the Flask app:
    from cognito_keycloak.flask_app import create_app
    app = create_app()

To use Keycloak services:
    from cognito_keycloak.core.keycloak import UserService, KeycloakClient
"""
# flask_app is not imported here so core.keycloak stays usable without Flask
