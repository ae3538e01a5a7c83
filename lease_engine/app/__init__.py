"""Application factory and app-wide configuration."""

import logging

from flask import Flask, request
from flask_cors import CORS

from lease_engine.app.api.routes import api_bp
from lease_engine.config import get_settings


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app() -> Flask:
    """Build the Flask app instance."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = Flask(__name__)
    allowed_origins = settings.allowed_origins_list

    CORS(
        app,
        resources={r"/api/*": {"origins": allowed_origins}},
        supports_credentials=True,
    )

    @app.after_request
    def add_cors_headers(response):
        """Ensure all API responses include the required CORS headers."""
        origin = request.headers.get("Origin", "")
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Access-Control-Allow-Credentials"] = "true"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type, Authorization"
        response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
        return response

    app.register_blueprint(api_bp, url_prefix="/api")
    return app
