"""
Migration routes — preview a batch of legacy apps.

Blueprint: migration_bp
Prefix: /api

Endpoints:
    POST /migration/preview   — previews, groups and stats for a batch
                                (at most max_batch_items apps)
"""

from __future__ import annotations

from flask import Blueprint, jsonify

from deploykit.core.services.inputs import InputError, parse_migration_input
from deploykit.core.services.migration import (
    calculate_migration_stats,
    group_by_migration_status,
    prepare_migrations,
)
from deploykit.ui.web.helpers import check_batch_size, engine_settings, error_response, json_body

migration_bp = Blueprint("migration", __name__)


@migration_bp.route("/migration/preview", methods=["POST"])
def migration_preview():  # type: ignore[no-untyped-def]
    """Preview a migration batch (body: options, catalog, apps)."""
    settings = engine_settings()
    try:
        batch = parse_migration_input(json_body())
        check_batch_size(len(batch.apps), settings)
    except InputError as e:
        return error_response(str(e))

    options = batch.options or settings.migration
    preparations = prepare_migrations(
        batch.apps,
        options,
        batch.fetch_package,
        batch.fetch_installer,
        settings=settings,
    )
    groups = group_by_migration_status(preparations)

    return jsonify({
        "previews": [p.preview.model_dump(mode="json", by_alias=True) for p in preparations],
        "groups": {key: [p.app_id for p in items] for key, items in groups.items()},
        "stats": calculate_migration_stats(preparations).model_dump(),
    })
