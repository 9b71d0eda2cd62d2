"""
Input documents — what the CLI and web surfaces accept.

Documents are YAML or JSON (JSON parses as YAML). Everything is
validated through the pydantic models; any failure is reported as a
single ``InputError`` carrying a readable message.

Package document: one request mapping, a list of them, or
``{"items": [...]}``::

    packageId: Contoso.App
    displayName: Contoso App
    version: 1.2.0
    installer: {type: msi, productCode: "{...}"}

Migration document::

    options: {preserve_detection: true}      # optional
    catalog:
      Contoso.App:
        package: {id: Contoso.App, name: Contoso App, version: 1.2.0}
        installer: {type: msi, productCode: "{...}"}
    apps:
      - {id: "1", display_name: Contoso, matched_package_id: Contoso.App}
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from deploykit.core.models.detection import DetectionRule, parse_rules
from deploykit.core.models.installer import InstallerDescriptor, PackageInfo
from deploykit.core.models.migration import LegacyApp, MigrationOptions
from deploykit.core.services.packaging import PackageRequest

logger = logging.getLogger(__name__)


class InputError(Exception):
    """Raised when an input document cannot be read or does not validate."""


def load_document(path: Path) -> Any:
    """Read a YAML/JSON document from disk."""
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise InputError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise InputError(f"Invalid YAML/JSON in {path}: {e}") from e

    if data is None:
        raise InputError(f"{path} is empty")
    logger.debug("Loaded input document %s", path)
    return data


def _validation_message(e: ValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "(root)"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


def parse_installer(data: Any) -> InstallerDescriptor:
    try:
        return InstallerDescriptor.model_validate(data)
    except ValidationError as e:
        raise InputError(f"Invalid installer: {_validation_message(e)}") from e


def parse_package_requests(data: Any) -> list[PackageRequest]:
    """Package document → requests, in document order."""
    if isinstance(data, dict) and "items" in data:
        data = data["items"]
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise InputError(f"Expected a mapping or a list of packages, got {type(data).__name__}")
    if not data:
        raise InputError("No packages given")

    requests = []
    seen: dict[str, int] = {}
    for index, item in enumerate(data):
        try:
            req = PackageRequest.model_validate(item)
        except ValidationError as e:
            raise InputError(f"Package #{index + 1}: {_validation_message(e)}") from e
        if req.package_id in seen:
            raise InputError(
                f"Package #{index + 1}: duplicate packageId '{req.package_id}'"
                f" (already used by package #{seen[req.package_id]})"
            )
        seen[req.package_id] = index + 1
        requests.append(req)
    return requests


def parse_rule_document(data: Any) -> list[DetectionRule]:
    """Rule list (or ``{"rules": [...]}``) → typed rules."""
    if isinstance(data, dict) and "rules" in data:
        data = data["rules"]
    if not isinstance(data, list):
        raise InputError(f"Expected a list of rules, got {type(data).__name__}")
    try:
        return parse_rules(data)
    except ValidationError as e:
        raise InputError(f"Invalid rules: {_validation_message(e)}") from e


class CatalogEntry(BaseModel):
    """A catalog package and the installer picked for it (if any)."""

    model_config = ConfigDict(frozen=True)

    package: PackageInfo
    installer: InstallerDescriptor | None = None


class MigrationInput(BaseModel):
    """A migration batch: legacy apps plus the catalog they were matched against."""

    model_config = ConfigDict(frozen=True)

    options: MigrationOptions | None = None
    catalog: dict[str, CatalogEntry] = Field(default_factory=dict)
    apps: list[LegacyApp] = Field(default_factory=list)

    def fetch_package(self, package_id: str) -> PackageInfo | None:
        entry = self.catalog.get(package_id)
        return entry.package if entry else None

    def fetch_installer(self, package: PackageInfo) -> InstallerDescriptor | None:
        entry = self.catalog.get(package.id)
        return entry.installer if entry else None


def parse_migration_input(data: Any) -> MigrationInput:
    if not isinstance(data, dict):
        raise InputError(f"Expected a mapping, got {type(data).__name__}")
    try:
        return MigrationInput.model_validate(data)
    except ValidationError as e:
        raise InputError(f"Invalid migration input: {_validation_message(e)}") from e
