"""
Packaging routes — build packages and validate rule sets.

Blueprint: packaging_bp
Prefix: /api

Thin HTTP wrappers over ``deploykit.core.services.packaging`` and
``deploykit.core.services.detection_rules``.

Endpoints:
    POST /package          — batch of package requests → packages
    POST /rules/validate   — validate a detection rule set
"""

from __future__ import annotations

import logging

from flask import Blueprint, jsonify

from deploykit.core.services.detection_rules import validate_rules
from deploykit.core.services.inputs import (
    InputError,
    parse_package_requests,
    parse_rule_document,
)
from deploykit.core.services.packaging import build_packages
from deploykit.ui.web.helpers import check_batch_size, engine_settings, error_response, json_body

logger = logging.getLogger(__name__)

packaging_bp = Blueprint("packaging", __name__)


@packaging_bp.route("/package", methods=["POST"])
def package():  # type: ignore[no-untyped-def]
    """Build detection rules and commands for each requested package.

    Items that fail validation are reported under ``errors``; the other
    items in the batch are still returned.
    """
    settings = engine_settings()
    try:
        requests = parse_package_requests(json_body())
        check_batch_size(len(requests), settings)
    except InputError as e:
        return error_response(str(e))

    result = build_packages(requests, settings)
    if result.errors:
        logger.warning("Package batch: %d item(s) rejected", len(result.errors))
    return jsonify(result.to_dict())


@packaging_bp.route("/rules/validate", methods=["POST"])
def rules_validate():  # type: ignore[no-untyped-def]
    """Validate a rule set; always 200 when the body parses."""
    try:
        rules = parse_rule_document(json_body())
    except InputError as e:
        return error_response(str(e))
    return jsonify(validate_rules(rules).to_dict())
