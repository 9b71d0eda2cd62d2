"""
Migration orchestrator — run the hybridizer over a batch of legacy apps.

Catalog lookups are injected as callables so the batch logic stays
independent of any catalog client. One app's failure (blocked, lookup
error) is recorded on that app and never stops the batch. Progress is
reported in input order; results do not depend on it.
"""

from __future__ import annotations

import logging
from typing import Callable

from deploykit.core.config.loader import DEFAULT_SETTINGS, EngineSettings
from deploykit.core.models.installer import InstallerDescriptor, PackageInfo
from deploykit.core.models.migration import (
    BatchOutcome,
    LegacyApp,
    MigrationOptions,
    MigrationPreparation,
    MigrationStats,
    Provenance,
)
from deploykit.core.services.migration.hybridizer import preview_and_build

logger = logging.getLogger(__name__)

PackageLookup = Callable[[str], PackageInfo | None]
InstallerLookup = Callable[[PackageInfo], InstallerDescriptor | None]
ProgressCallback = Callable[[int, int, str], None]


def prepare_migrations(
    apps: list[LegacyApp],
    options: MigrationOptions,
    fetch_package: PackageLookup,
    fetch_installer: InstallerLookup,
    on_progress: ProgressCallback | None = None,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> list[MigrationPreparation]:
    """Resolve, preview and build every app in the batch.

    Args:
        apps: Legacy app records, in the order progress is reported.
        options: Migration choices applied to every app.
        fetch_package: Catalog id → package info (None if unknown).
        fetch_installer: Package → the one installer to deploy (None if none fits).
        on_progress: Called as ``(processed, total, current_name)`` before
            each app and once more with ``"Complete"`` at the end.
        settings: Engine settings.
    """
    preparations: list[MigrationPreparation] = []
    total = len(apps)

    for index, app in enumerate(apps):
        if on_progress:
            on_progress(index, total, app.display_name)

        package_info: PackageInfo | None = None
        installer: InstallerDescriptor | None = None
        lookup_errors: list[str] = []

        if app.matched_package_id:
            try:
                package_info = fetch_package(app.matched_package_id)
                if package_info is not None:
                    installer = fetch_installer(package_info)
            except Exception as e:
                logger.warning("Catalog lookup failed for %s: %s", app.id, e)
                lookup_errors.append(f"Catalog lookup failed: {e}")

        preview, build = preview_and_build(app, package_info, installer, options, settings)
        errors = [*lookup_errors, *preview.blocking_reasons]

        preparations.append(MigrationPreparation(
            app_id=app.id,
            app=app,
            package_info=package_info,
            installer=installer,
            package=build.package if build else None,
            preview=preview,
            can_migrate=preview.can_migrate,
            errors=errors,
        ))

    if on_progress:
        on_progress(total, total, "Complete")

    logger.info(
        "Prepared %d app(s): %d migratable",
        total, sum(1 for p in preparations if p.can_migrate),
    )
    return preparations


def execute_migration_batch(preparations: list[MigrationPreparation]) -> BatchOutcome:
    """Split prepared apps into packages to hand over and failures."""
    outcome = BatchOutcome()
    for prep in preparations:
        if prep.can_migrate and prep.package is not None:
            outcome.packages.append(prep.package)
            outcome.successful.append(prep.app_id)
        else:
            outcome.failed.append({
                "app_id": prep.app_id,
                "error": "; ".join(prep.errors) or "Unknown error",
            })
    return outcome


def calculate_migration_stats(preparations: list[MigrationPreparation]) -> MigrationStats:
    external = (Provenance.EXTERNAL, Provenance.HYBRID)
    return MigrationStats(
        total=len(preparations),
        migratable=sum(1 for p in preparations if p.can_migrate),
        blocked=sum(1 for p in preparations if not p.can_migrate),
        with_external_detection=sum(
            1 for p in preparations if p.preview.detection_source in external
        ),
        with_external_commands=sum(
            1 for p in preparations if p.preview.command_source == Provenance.EXTERNAL
        ),
        warnings=sum(len(p.preview.warnings) for p in preparations),
    )


def group_by_migration_status(
    preparations: list[MigrationPreparation],
) -> dict[str, list[MigrationPreparation]]:
    """``ready`` (no warnings), ``needs_review`` (warnings) and ``blocked``."""
    groups: dict[str, list[MigrationPreparation]] = {
        "ready": [],
        "needs_review": [],
        "blocked": [],
    }
    for prep in preparations:
        if not prep.can_migrate:
            groups["blocked"].append(prep)
        elif prep.preview.warnings:
            groups["needs_review"].append(prep)
        else:
            groups["ready"].append(prep)
    return groups
