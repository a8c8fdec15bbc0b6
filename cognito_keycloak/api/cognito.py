"""Cognito Identity Provider endpoint.

All administrative actions arrive as ``POST /`` with the action named in
``X-Amz-Target``; ``GET /`` describes the service.
"""
from __future__ import annotations
import json
import logging

from flask import Blueprint, Response, current_app, g, jsonify, request

from cognito_keycloak.core import dispatcher

bp = Blueprint("cognito", __name__)

AMZ_JSON_CONTENT_TYPE = "application/x-amz-json-1.1"

logger = logging.getLogger(__name__)


@bp.route("/", methods=["POST"])
def dispatch_action():
    """Run the Cognito action named in ``X-Amz-Target``."""
    target = request.headers.get("X-Amz-Target")
    g.cognito_action = dispatcher.parse_target(target)

    payload, status = dispatcher.dispatch(
        current_app.config["HANDLER_CONTEXT"],
        target,
        request.get_data(cache=False),
    )
    return Response(json.dumps(payload), status=status, content_type=AMZ_JSON_CONTENT_TYPE)


@bp.route("/", methods=["GET"])
def service_info():
    cfg = current_app.config["APP_CONFIG"]
    return jsonify(
        {
            "service": "cognito-keycloak",
            "description": "AWS Cognito wrapper for Keycloak (local development)",
            "userPoolId": cfg.user_pool_id,
            "supportedActions": dispatcher.supported_actions(),
        }
    )
