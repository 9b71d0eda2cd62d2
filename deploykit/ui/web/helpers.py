"""
Shared helpers for the API blueprints.
"""

from __future__ import annotations

from typing import Any

from flask import current_app, jsonify, request

from deploykit.core.config.loader import EngineSettings
from deploykit.core.services.inputs import InputError


def engine_settings() -> EngineSettings:
    return current_app.config["ENGINE_SETTINGS"]


def json_body() -> Any:
    """The request's JSON body; raises InputError if missing or malformed."""
    data = request.get_json(silent=True)
    if data is None:
        raise InputError("Request body must be JSON")
    return data


def error_response(message: str, status: int = 400):  # type: ignore[no-untyped-def]
    return jsonify({"error": message}), status


def check_batch_size(count: int, settings: EngineSettings) -> None:
    """Raise InputError when a batch exceeds ``max_batch_items``."""
    if count > settings.max_batch_items:
        raise InputError(f"Too many items: {count} (maximum {settings.max_batch_items})")
