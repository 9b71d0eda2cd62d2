"""
Migration models — legacy app records and what the hybridizer makes of them.

A legacy record describes an app as the previous management system knew
it, including its own detection rules and commands. Previews and
preparations record which source (engine, external, hybrid) supplied the
final rules and commands, plus the reasons an app cannot move.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from deploykit.core.models.detection import DetectionRule
from deploykit.core.models.installer import InstallerDescriptor, InstallScope, PackageInfo
from deploykit.core.models.package import DeploymentPackage


class Provenance(StrEnum):
    """Which system produced a rule set or command pair."""

    ENGINE = "engine"
    EXTERNAL = "external"
    HYBRID = "hybrid"


class MatchStatus(StrEnum):
    MATCHED = "matched"
    PARTIAL = "partial"
    PENDING = "pending"
    UNMATCHED = "unmatched"
    EXCLUDED = "excluded"
    SKIPPED = "skipped"


class MigrationStatus(StrEnum):
    PENDING = "pending"
    QUEUED = "queued"
    MIGRATING = "migrating"
    COMPLETED = "completed"
    FAILED = "failed"


class MigrationOptions(BaseModel):
    """Caller choices for how legacy data is carried over."""

    model_config = ConfigDict(frozen=True)

    preserve_detection: bool = True
    preserve_install_commands: bool = False
    use_engine_defaults: bool = False


class LegacyApp(BaseModel):
    """An application record exported from the previous management system."""

    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str
    manufacturer: str | None = None
    version: str | None = None
    technology: str = "MSI"

    match_status: MatchStatus = MatchStatus.PENDING
    matched_package_id: str | None = None
    matched_package_name: str | None = None
    migration_status: MigrationStatus = MigrationStatus.PENDING

    # Raw rule records as exported; converted lazily if not pre-converted
    detection_rules: list[dict[str, Any]] = Field(default_factory=list)
    converted_detection_rules: list[DetectionRule] | None = None

    install_command: str | None = None
    uninstall_command: str | None = None
    install_behavior: str | None = None  # "InstallForUser" / "InstallForSystem"
    converted_install_behavior: InstallScope | None = None

    @property
    def install_scope(self) -> InstallScope:
        """Install scope implied by the record's install behaviour."""
        if self.converted_install_behavior is not None:
            return self.converted_install_behavior
        if self.install_behavior == "InstallForUser":
            return InstallScope.USER
        return InstallScope.MACHINE


class MigrationPreviewItem(BaseModel):
    """What migrating one app would produce, or why it cannot."""

    model_config = ConfigDict(frozen=True)

    app_id: str
    legacy_name: str
    package_id: str = ""
    package_name: str = ""
    detection_rules: list[DetectionRule] = Field(default_factory=list)
    install_command: str = ""
    uninstall_command: str = ""
    install_behavior: InstallScope = InstallScope.MACHINE
    detection_source: Provenance = Provenance.ENGINE
    command_source: Provenance = Provenance.ENGINE
    warnings: list[str] = Field(default_factory=list)
    can_migrate: bool = False
    blocking_reasons: list[str] = Field(default_factory=list)


class MigrationBuild(BaseModel):
    """Result of hybridizing one app's legacy data with engine output."""

    model_config = ConfigDict(frozen=True)

    package: DeploymentPackage
    detection_source: Provenance
    command_source: Provenance
    warnings: list[str] = Field(default_factory=list)


class MigrationPreparation(BaseModel):
    """One app's fully resolved migration state within a batch."""

    model_config = ConfigDict(frozen=True)

    app_id: str
    app: LegacyApp
    package_info: PackageInfo | None = None
    installer: InstallerDescriptor | None = None
    package: DeploymentPackage | None = None
    preview: MigrationPreviewItem
    can_migrate: bool
    errors: list[str] = Field(default_factory=list)


class BatchOutcome(BaseModel):
    """Packages ready to hand over, plus per-app failures."""

    packages: list[DeploymentPackage] = Field(default_factory=list)
    successful: list[str] = Field(default_factory=list)
    failed: list[dict[str, str]] = Field(default_factory=list)


class MigrationStats(BaseModel):
    total: int = 0
    migratable: int = 0
    blocked: int = 0
    with_external_detection: int = 0
    with_external_commands: int = 0
    warnings: int = 0
