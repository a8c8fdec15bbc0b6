"""HTTP blueprints: Cognito actions, OAuth proxy, health and error handlers."""
