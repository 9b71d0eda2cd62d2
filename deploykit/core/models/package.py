"""
Deployment package model — everything the packaging pipeline needs for one app.

A package is the engine's output bundled with the installer metadata it
was built from: detection rules plus install and uninstall commands.
Command strings are opaque to downstream consumers, but the
``REGISTRY_UNINSTALL:`` / ``MSIX_UNINSTALL:`` markers must reach the
execution agent unchanged.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from deploykit.core.models.detection import DetectionRule, dump_rules
from deploykit.core.models.installer import Architecture, InstallerType, InstallScope


class DeploymentPackage(BaseModel):
    """A deployable package descriptor for a single Win32 app."""

    model_config = ConfigDict(frozen=True)

    package_id: str
    display_name: str
    publisher: str = ""
    version: str = ""

    architecture: Architecture = Architecture.NEUTRAL
    install_scope: InstallScope = InstallScope.MACHINE
    installer_type: InstallerType = InstallerType.UNKNOWN
    installer_url: str = ""
    installer_sha256: str = ""

    install_command: str = ""
    uninstall_command: str = ""
    detection_rules: list[DetectionRule] = Field(default_factory=list)

    def with_overrides(self, **changes: Any) -> DeploymentPackage:
        """Copy of this package with some fields replaced."""
        return self.model_copy(update=changes)

    def to_payload(self) -> dict[str, Any]:
        """Serialise for the packaging pipeline (platform field names for rules)."""
        return {
            "packageId": self.package_id,
            "displayName": self.display_name,
            "publisher": self.publisher,
            "version": self.version,
            "architecture": str(self.architecture),
            "installScope": str(self.install_scope),
            "installerType": str(self.installer_type),
            "installerUrl": self.installer_url,
            "installerSha256": self.installer_sha256,
            "installCommand": self.install_command,
            "uninstallCommand": self.uninstall_command,
            "detectionRules": dump_rules(list(self.detection_rules)),
        }
