"""Error handlers for the application.

The Cognito endpoint answers its own errors; these cover everything else
(unknown routes, wrong methods, proxy failures).
"""
import logging

import requests
from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


def register_error_handlers(app):
    """Register JSON error handlers with the Flask app."""

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"error": "Not Found", "message": "Resource not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({"error": "Method Not Allowed", "message": str(error.description)}), 405

    @app.errorhandler(requests.RequestException)
    def upstream_unavailable(error):
        logger.error("Keycloak request failed: %s", error)
        return jsonify({"error": "Bad Gateway", "message": "Identity provider unreachable"}), 502

    @app.errorhandler(500)
    def internal_error(error):
        logger.error("Internal error: %s", error, exc_info=True)
        return jsonify({"error": "Internal Server Error", "message": "An unexpected error occurred"}), 500

    @app.errorhandler(Exception)
    def handle_exception(error):
        """Handle uncaught exceptions."""
        if isinstance(error, HTTPException):
            return error
        logger.error("Unhandled exception: %s", error, exc_info=True)
        return jsonify({"error": "Internal Server Error", "message": "An unexpected error occurred"}), 500
