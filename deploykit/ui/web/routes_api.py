"""
API routes — service-level endpoints.

Blueprint: api_bp
Prefix: /api

Endpoints:
    GET  /health   — liveness and active settings
"""

from __future__ import annotations

from flask import Blueprint, jsonify

from deploykit import __version__
from deploykit.ui.web.helpers import engine_settings

api_bp = Blueprint("api", __name__)


@api_bp.route("/health")
def api_health():  # type: ignore[no-untyped-def]
    """Liveness probe."""
    settings = engine_settings()
    return jsonify({
        "status": "ok",
        "version": __version__,
        "registry_vendor": settings.registry_vendor,
        "max_batch_items": settings.max_batch_items,
    })
