"""
Migration hybridizer — decide whose rules and commands a migrated app keeps.

Inputs per app: the legacy record (with its own detection rules and
commands) and the engine's output for the matched installer.

Detection provenance:
    external  legacy rules present, preservation requested, conversion ok
    engine    otherwise
    hybrid    legacy rules kept AND engine defaults requested

``hybrid`` is a label only. The legacy rules are kept as they are; the
engine's rule is NOT merged in. Callers that need a combined rule set
must build it themselves. Whichever set is kept always goes through the
validator, and its errors come back as warnings, never as failures.
"""

from __future__ import annotations

import logging

from deploykit.core.config.loader import DEFAULT_SETTINGS, EngineSettings
from deploykit.core.models.detection import DetectionRule
from deploykit.core.models.installer import InstallerDescriptor, PackageInfo
from deploykit.core.models.migration import (
    LegacyApp,
    MatchStatus,
    MigrationBuild,
    MigrationOptions,
    MigrationPreviewItem,
    MigrationStatus,
    Provenance,
)
from deploykit.core.services.detection_rules import (
    convert_legacy_rules,
    validate_commands,
    validate_rules,
)
from deploykit.core.services.packaging import build_package

logger = logging.getLogger(__name__)

UNCONVERTIBLE_RULES_WARNING = "Legacy detection rules could not be converted, using engine defaults"
HYBRID_LABEL_ONLY_WARNING = (
    "Detection marked hybrid: legacy rules kept as-is, engine rule not merged"
)

UNSUPPORTED_TECHNOLOGIES = {"appv": "App-V packages are not supported by the deployment platform"}


def external_rules(app: LegacyApp) -> list[DetectionRule]:
    """The legacy record's rules, pre-converted or converted now."""
    if app.converted_detection_rules:
        return list(app.converted_detection_rules)
    return convert_legacy_rules(app.detection_rules)


def build_migration_item(
    app: LegacyApp,
    package_info: PackageInfo,
    installer: InstallerDescriptor,
    options: MigrationOptions,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> MigrationBuild:
    """Combine legacy data with engine output into one deployable package."""
    warnings: list[str] = []
    rules: list[DetectionRule] = []
    detection_source = Provenance.ENGINE
    command_source = Provenance.ENGINE
    scope = app.install_scope

    engine = build_package(
        package_info.id,
        package_info.name,
        package_info.publisher,
        package_info.version,
        installer,
        scope,
        settings,
    )

    if options.preserve_detection and (app.detection_rules or app.converted_detection_rules):
        rules = external_rules(app)
        if rules:
            detection_source = Provenance.EXTERNAL
        else:
            warnings.append(UNCONVERTIBLE_RULES_WARNING)

    if not rules or options.use_engine_defaults:
        if not rules:
            rules = list(engine.detection_rules)
            detection_source = Provenance.ENGINE
        else:
            detection_source = Provenance.HYBRID
            warnings.append(HYBRID_LABEL_ONLY_WARNING)
        install_command = engine.install_command
        uninstall_command = engine.uninstall_command
    else:
        install_command = ""
        uninstall_command = ""
        if options.preserve_install_commands:
            install_command = (app.install_command or "").strip()
            uninstall_command = (app.uninstall_command or "").strip()
            if install_command:
                command_source = Provenance.EXTERNAL
        install_command = install_command or engine.install_command
        uninstall_command = uninstall_command or engine.uninstall_command

    check = validate_rules(rules).merge(validate_commands(install_command, uninstall_command))
    warnings.extend(check.errors)
    warnings.extend(check.warnings)

    package = engine.with_overrides(
        detection_rules=rules,
        install_command=install_command,
        uninstall_command=uninstall_command,
    )
    logger.debug(
        "Migration item %s: detection=%s commands=%s warnings=%d",
        app.id, detection_source, command_source, len(warnings),
    )
    return MigrationBuild(
        package=package,
        detection_source=detection_source,
        command_source=command_source,
        warnings=warnings,
    )


def blocking_reasons(
    app: LegacyApp,
    package_info: PackageInfo | None,
    installer: InstallerDescriptor | None,
) -> list[str]:
    """Reasons this app cannot be migrated at all (empty = migratable)."""
    reasons: list[str] = []

    if not app.matched_package_id or app.match_status == MatchStatus.UNMATCHED:
        reasons.append("No catalog package matched")
    if app.match_status in (MatchStatus.EXCLUDED, MatchStatus.SKIPPED):
        reasons.append("App is marked as excluded")

    technology = app.technology.replace("-", "").lower()
    if technology in UNSUPPORTED_TECHNOLOGIES:
        reasons.append(UNSUPPORTED_TECHNOLOGIES[technology])

    if package_info is None:
        reasons.append("Catalog package not found")
    if installer is None:
        reasons.append("No compatible installer found")
    if app.migration_status == MigrationStatus.COMPLETED:
        reasons.append("App already migrated")
    return reasons


def preview_and_build(
    app: LegacyApp,
    package_info: PackageInfo | None,
    installer: InstallerDescriptor | None,
    options: MigrationOptions,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> tuple[MigrationPreviewItem, MigrationBuild | None]:
    """Preview one app; the build is None when the app is blocked."""
    reasons = blocking_reasons(app, package_info, installer)
    if reasons or package_info is None or installer is None:
        logger.info("App %s (%s) blocked: %s", app.id, app.display_name, "; ".join(reasons))
        preview = MigrationPreviewItem(
            app_id=app.id,
            legacy_name=app.display_name,
            package_id=app.matched_package_id or "",
            package_name=app.matched_package_name or "",
            can_migrate=False,
            blocking_reasons=reasons,
        )
        return preview, None

    build = build_migration_item(app, package_info, installer, options, settings)
    package = build.package
    preview = MigrationPreviewItem(
        app_id=app.id,
        legacy_name=app.display_name,
        package_id=package_info.id,
        package_name=package_info.name,
        detection_rules=list(package.detection_rules),
        install_command=package.install_command,
        uninstall_command=package.uninstall_command,
        install_behavior=package.install_scope,
        detection_source=build.detection_source,
        command_source=build.command_source,
        warnings=list(build.warnings),
        can_migrate=True,
    )
    return preview, build


def generate_migration_preview(
    app: LegacyApp,
    package_info: PackageInfo | None,
    installer: InstallerDescriptor | None,
    options: MigrationOptions,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> MigrationPreviewItem:
    """What migrating this app would produce, or why it cannot be migrated."""
    preview, _ = preview_and_build(app, package_info, installer, options, settings)
    return preview


def convert_app_for_migration(app: LegacyApp) -> dict:
    """Legacy record reduced to what a migration needs, with rules converted."""
    return {
        "display_name": app.display_name,
        "publisher": app.manufacturer,
        "version": app.version,
        "detection_rules": external_rules(app),
        "install_behavior": app.install_scope,
    }
