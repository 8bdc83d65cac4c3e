"""Flask blueprints for the web app. Each module exposes create_bp(orchestrator)."""

from motion_dashboard.web.routes.api import create_bp as create_api_bp
from motion_dashboard.web.routes.stream import create_bp as create_stream_bp

__all__ = [
    "create_api_bp",
    "create_stream_bp",
]
