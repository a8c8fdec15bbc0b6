"""Core translation logic, independent of the HTTP layer.

Module Structure:
    - keycloak/             : Keycloak Admin API client and services
    - handlers/             : One function per Cognito action
    - dispatcher.py         : X-Amz-Target routing and wire-format conversion
    - cognito_transformer.py: Keycloak <-> Cognito representations
    - user_pool_template.py : Static user pool descriptor and attribute schema
    - filters.py            : ListUsers filter expressions
    - validators.py         : Required parameters and pagination
    - lookups.py            : Name -> entity resolution
    - errors.py             : Cognito error taxonomy

Import explicitly when needed:
    from cognito_keycloak.core.dispatcher import dispatch
    from cognito_keycloak.core.cognito_transformer import CognitoTransformer
"""
