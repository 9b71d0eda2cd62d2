"""
Domain models — Pydantic types for the deployment engine.

All models are re-exported here for convenient access:

    from deploykit.core.models import InstallerDescriptor, MsiRule, DeploymentPackage
"""

from deploykit.core.models.detection import (
    DetectionRule,
    FileDetectionType,
    FileRule,
    MsiRule,
    RegistryDetectionType,
    RegistryRule,
    RuleSet,
    ScriptRule,
    ValidationResult,
    VersionOperator,
    dump_rules,
    parse_rules,
)
from deploykit.core.models.installer import (
    INSTALLER_FAMILIES,
    Architecture,
    InstallerDescriptor,
    InstallerFamily,
    InstallerType,
    InstallScope,
    PackageInfo,
)
from deploykit.core.models.migration import (
    BatchOutcome,
    LegacyApp,
    MatchStatus,
    MigrationBuild,
    MigrationOptions,
    MigrationPreparation,
    MigrationPreviewItem,
    MigrationStats,
    MigrationStatus,
    Provenance,
)
from deploykit.core.models.package import DeploymentPackage

__all__ = [
    # installer.py
    "INSTALLER_FAMILIES",
    "Architecture",
    "InstallScope",
    "InstallerDescriptor",
    "InstallerFamily",
    "InstallerType",
    "PackageInfo",
    # detection.py
    "DetectionRule",
    "FileDetectionType",
    "FileRule",
    "MsiRule",
    "RegistryDetectionType",
    "RegistryRule",
    "RuleSet",
    "ScriptRule",
    "ValidationResult",
    "VersionOperator",
    "dump_rules",
    "parse_rules",
    # package.py
    "DeploymentPackage",
    # migration.py
    "BatchOutcome",
    "LegacyApp",
    "MatchStatus",
    "MigrationBuild",
    "MigrationOptions",
    "MigrationPreparation",
    "MigrationPreviewItem",
    "MigrationStats",
    "MigrationStatus",
    "Provenance",
]
