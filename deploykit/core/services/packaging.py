"""
Packaging service — build the deployable package for one installer.

This is the single place that runs the rule synthesizer and the command
synthesizer together, so every caller (CLI, web, migration) gets rules
and commands that agree with each other. It depends on the engine; the
engine never depends on it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from deploykit.core.config.loader import DEFAULT_SETTINGS, EngineSettings
from deploykit.core.models.detection import ValidationResult
from deploykit.core.models.installer import InstallerDescriptor, InstallScope
from deploykit.core.models.package import DeploymentPackage
from deploykit.core.services.detection_rules import (
    build_install_command,
    build_uninstall_command,
    synthesize,
    validate_commands,
    validate_rules,
)

logger = logging.getLogger(__name__)


def build_package(
    package_id: str,
    display_name: str,
    publisher: str,
    version: str,
    installer: InstallerDescriptor,
    install_scope: InstallScope = InstallScope.MACHINE,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> DeploymentPackage:
    """Synthesize rules and commands and bundle them with installer metadata.

    Detection follows the installer's own scope; ``install_scope`` only
    selects the install command variant (e.g. ``ALLUSERS``).
    """
    rules = synthesize(
        installer, display_name, package_id, version, vendor=settings.registry_vendor,
    )
    package = DeploymentPackage(
        package_id=package_id,
        display_name=display_name,
        publisher=publisher,
        version=version,
        architecture=installer.architecture,
        install_scope=install_scope,
        installer_type=installer.type,
        installer_url=installer.url,
        installer_sha256=installer.sha256,
        install_command=build_install_command(installer, install_scope, display_name),
        uninstall_command=build_uninstall_command(installer, display_name),
        detection_rules=rules,
    )
    logger.debug(
        "Built package %s %s (%s, %s rule)",
        package_id, version, installer.type, rules[0].type,
    )
    return package


def check_package(package: DeploymentPackage) -> ValidationResult:
    """Validate a package's rules and commands together."""
    return validate_rules(list(package.detection_rules)).merge(
        validate_commands(package.install_command, package.uninstall_command)
    )


class PackageRequest(BaseModel):
    """One item of a packaging batch, as received from a caller."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    package_id: str = Field(alias="packageId", min_length=1)
    display_name: str = Field(alias="displayName", min_length=1)
    installer: InstallerDescriptor
    publisher: str = ""
    version: str = ""
    install_scope: InstallScope = Field(default=InstallScope.MACHINE, alias="installScope")

    @field_validator("install_scope", mode="before")
    @classmethod
    def _scope(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value


@dataclass
class PackageBatchResult:
    """Packages built from a batch, with per-item problems kept separate."""

    packages: list[DeploymentPackage] = field(default_factory=list)
    validations: dict[str, ValidationResult] = field(default_factory=dict)
    errors: list[dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "success": bool(self.packages),
            "packages": [p.to_payload() for p in self.packages],
            "validation": {k: v.to_dict() for k, v in self.validations.items()},
            "errors": self.errors,
        }


def build_packages(
    requests: list[PackageRequest],
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> PackageBatchResult:
    """Build a package per request.

    An item whose rules or commands fail validation is reported in
    ``errors`` and left out of ``packages``; the rest of the batch still
    builds.
    """
    result = PackageBatchResult()
    for req in requests:
        package = build_package(
            req.package_id,
            req.display_name,
            req.publisher,
            req.version,
            req.installer,
            req.install_scope,
            settings,
        )
        check = check_package(package)
        result.validations[req.package_id] = check
        if not check.valid:
            result.errors.append({"packageId": req.package_id, "error": "; ".join(check.errors)})
            continue
        result.packages.append(package)

    logger.info(
        "Packaged %d of %d item(s)", len(result.packages), len(requests),
    )
    return result
