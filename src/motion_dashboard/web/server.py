"""Flask app for the motion dashboard: JSON API and the live SSE stream."""

import logging

from flask import Flask, jsonify

from motion_dashboard.web.routes import create_api_bp, create_stream_bp

logger = logging.getLogger("motion-dashboard")


def create_app(orchestrator):
    """Create Flask app with all blueprints. Routes close over orchestrator."""
    app = Flask(__name__)

    @app.before_request
    def _count_request():
        with orchestrator._request_count_lock:
            orchestrator._request_count += 1

    @app.errorhandler(404)
    def _not_found(e):
        return jsonify({"error": "Not found"}), 404

    app.register_blueprint(create_api_bp(orchestrator), url_prefix="/api")
    app.register_blueprint(create_stream_bp(orchestrator), url_prefix="/api")
    return app
