"""Health check endpoint."""
from flask import Blueprint, jsonify

from cognito_keycloak.core.cognito_transformer import isoformat, utcnow

bp = Blueprint("health", __name__)


@bp.route("/health")
def health_check():
    """Liveness only; Keycloak is not contacted."""
    return jsonify({"status": "ok", "timestamp": isoformat(utcnow())})
