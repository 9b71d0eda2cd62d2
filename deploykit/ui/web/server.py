"""
Packaging API server — Flask app factory.

Creates the Flask application that exposes the rule engine over HTTP.
All endpoints live under ``/api`` and speak JSON.
"""

from __future__ import annotations

import logging

from flask import Flask

from deploykit.core.config.loader import DEFAULT_SETTINGS, EngineSettings

logger = logging.getLogger(__name__)


def create_app(settings: EngineSettings | None = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        settings: Engine settings (vendor, batch limit, migration defaults).

    Returns:
        Configured Flask application.
    """
    app = Flask(__name__)

    settings = settings or DEFAULT_SETTINGS
    app.config["ENGINE_SETTINGS"] = settings
    app.config["MAX_CONTENT_LENGTH"] = 5 * 1024 * 1024  # 5 MB request limit

    # Register blueprints
    from deploykit.ui.web.routes_api import api_bp
    from deploykit.ui.web.routes_migration import migration_bp
    from deploykit.ui.web.routes_packaging import packaging_bp

    app.register_blueprint(api_bp, url_prefix="/api")
    app.register_blueprint(packaging_bp, url_prefix="/api")
    app.register_blueprint(migration_bp, url_prefix="/api")

    logger.info(
        "Packaging API created (vendor=%s, max_batch_items=%d)",
        settings.registry_vendor, settings.max_batch_items,
    )
    return app


def run_server(
    app: Flask,
    host: str = "127.0.0.1",
    port: int = 8000,
    debug: bool = False,
) -> None:
    """Run the Flask development server."""
    logger.info("Starting packaging API on %s:%d", host, port)
    app.run(host=host, port=port, debug=debug, use_reloader=False)
