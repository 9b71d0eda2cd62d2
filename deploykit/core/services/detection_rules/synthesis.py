"""
L2 Synthesizer — one canonical detection rule per installer (pure).

Tiers per installer family, strongest first; the first tier whose
inputs are present wins and nothing else is emitted:

    msi      product code            → MsiRule
    exe      identifier + version    → RegistryRule (version marker)
    msix     package family name     → ScriptRule (Get-AppxPackage)
    archive  —
    generic  —
    (all)    fallback                → FileRule (install folder exists)

The folder rule is the last resort: it cannot tell versions apart and
matches stale folders left behind by uninstalls.
"""

from __future__ import annotations

import logging
from typing import assert_never

from deploykit.core.config.loader import DEFAULT_REGISTRY_VENDOR
from deploykit.core.models.detection import (
    DetectionRule,
    FileDetectionType,
    FileRule,
    MsiRule,
    RegistryDetectionType,
    RegistryRule,
    ScriptRule,
    VersionOperator,
)
from deploykit.core.models.installer import InstallerDescriptor, InstallerFamily, InstallScope
from deploykit.core.services.detection_rules.sanitize import (
    build_registry_key_path,
    is_32bit_program_files,
    resolve_install_folder,
    sanitize_folder_name,
    sanitize_identifier_for_registry,
)

logger = logging.getLogger(__name__)


def synthesize(
    installer: InstallerDescriptor,
    display_name: str,
    identifier: str | None = None,
    version: str | None = None,
    *,
    vendor: str = DEFAULT_REGISTRY_VENDOR,
) -> list[DetectionRule]:
    """Build the detection rule set for one installer.

    Args:
        installer: The resolved installer.
        display_name: App display name; becomes the folder name on fallback.
        identifier: Catalog package identifier (e.g. ``Publisher.App``).
        version: Version the registry marker is compared against.
        vendor: Vendor segment of the registry marker key.

    Returns:
        A list holding exactly one rule.
    """
    rule = _strongest_rule(installer, identifier, version, vendor)
    if rule is None:
        rule = folder_rule(installer, display_name)
        logger.info(
            "Folder fallback for %r (%s): %s\\%s",
            display_name, installer.type, rule.path, rule.file_or_folder_name,
        )
    else:
        logger.debug("%s rule for %r (%s)", rule.type, display_name, installer.type)
    return [rule]


def _strongest_rule(
    installer: InstallerDescriptor,
    identifier: str | None,
    version: str | None,
    vendor: str,
) -> DetectionRule | None:
    family = installer.family
    match family:
        case InstallerFamily.MSI:
            if installer.has_product_code:
                return msi_rule(installer.product_code or "")
            return None
        case InstallerFamily.EXE:
            if identifier and identifier.strip() and version and version.strip():
                return registry_marker_rule(identifier, version, installer.scope, vendor)
            return None
        case InstallerFamily.MSIX:
            if installer.has_package_family_name:
                return appx_script_rule(installer.package_family_name or "", installer.scope)
            return None
        case InstallerFamily.ARCHIVE | InstallerFamily.GENERIC:
            return None
        case _:
            assert_never(family)


# ── Rule builders ───────────────────────────────────────────────


def msi_rule(product_code: str) -> MsiRule:
    return MsiRule(
        product_code=product_code,
        version_operator=VersionOperator.GREATER_THAN_OR_EQUAL,
    )


def registry_marker_rule(
    identifier: str,
    version: str,
    scope: InstallScope,
    vendor: str = DEFAULT_REGISTRY_VENDOR,
) -> RegistryRule:
    """Rule matching the ``Version`` value the installing agent writes."""
    key_path = build_registry_key_path(
        scope, sanitize_identifier_for_registry(identifier.strip()), vendor,
    )
    return RegistryRule(
        key_path=key_path,
        value_name="Version",
        detection_type=RegistryDetectionType.VERSION,
        operator=VersionOperator.GREATER_THAN_OR_EQUAL,
        detection_value=version,
    )


def folder_rule(installer: InstallerDescriptor, display_name: str) -> FileRule:
    path = resolve_install_folder(installer.architecture, installer.scope)
    return FileRule(
        path=path,
        file_or_folder_name=sanitize_folder_name(display_name),
        detection_type=FileDetectionType.EXISTS,
        check_32bit_on_64_system=is_32bit_program_files(path),
    )


def appx_script_rule(package_family_name: str, scope: InstallScope) -> ScriptRule:
    return ScriptRule(
        script_content=appx_presence_script(package_family_name, scope),
        enforce_signature_check=False,
        run_as_32_bit=False,
    )


def appx_presence_script(package_family_name: str, scope: InstallScope) -> str:
    """PowerShell that exits 0 with output when the package is installed.

    The family name is ``<Name>_<PublisherHash>``. The hash is opaque:
    it is matched as a substring of the installed family name, never
    compared token-for-token.
    """
    family = package_family_name.strip()
    name, sep, publisher_hash = family.rpartition("_")
    if not sep or not name:
        name, publisher_hash = family, ""

    all_users = " -AllUsers" if scope == InstallScope.MACHINE else ""
    lines = [
        f"$name = '{_ps_literal(name)}'",
        f"$publisherHash = '{_ps_literal(publisher_hash)}'",
        f"$packages = @(Get-AppxPackage -Name $name{all_users} -ErrorAction SilentlyContinue)",
        "$found = @($packages | Where-Object {",
        "    -not $publisherHash -or $_.PackageFamilyName -like \"*$publisherHash*\"",
        "})",
        "if ($found.Count -gt 0) {",
        "    Write-Output \"Detected $($found[0].PackageFullName)\"",
        "    exit 0",
        "}",
        "exit 1",
    ]
    return "\n".join(lines)


def _ps_literal(value: str) -> str:
    """Escape for a single-quoted PowerShell string."""
    return value.replace("'", "''")
