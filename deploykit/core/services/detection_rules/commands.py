"""
L2 Command synthesizer — unattended install / uninstall command strings (pure).

Commands are built for the management agent, which runs them from the
directory the installer was downloaded into; the installer is therefore
referenced by bare file name, derived from its URL.

Two uninstall forms are contracts with the execution agent rather than
runnable commands:

    REGISTRY_UNINSTALL:<display name>   resolve the uninstall string from
                                        the Windows uninstall key at run time
    MSIX_UNINSTALL:<family name>        remove the matching Appx package
"""

from __future__ import annotations

import logging
import re
from typing import assert_never
from urllib.parse import unquote, urlsplit

from deploykit.core.models.installer import InstallerDescriptor, InstallerFamily, InstallerType, InstallScope
from deploykit.core.services.detection_rules.sanitize import (
    resolve_install_folder,
    sanitize_folder_name,
)

logger = logging.getLogger(__name__)

REGISTRY_UNINSTALL_PREFIX = "REGISTRY_UNINSTALL:"
MSIX_UNINSTALL_PREFIX = "MSIX_UNINSTALL:"
PRODUCT_CODE_PLACEHOLDER = "{PRODUCT_CODE}"
PACKAGE_FAMILY_PLACEHOLDER = "{PACKAGE_FAMILY_NAME}"
GENERIC_UNINSTALL = "uninstall.exe /S"
DEFAULT_FILE_NAME = "installer"

DEFAULT_SILENT_ARGS: dict[InstallerType, str] = {
    InstallerType.INNO: "/VERYSILENT /SUPPRESSMSGBOXES /NORESTART",
    InstallerType.NULLSOFT: "/S",
    InstallerType.BURN: "/quiet /norestart",
    InstallerType.EXE: "/S",
    InstallerType.UNKNOWN: "/S",
}

# Extension appended when the download URL's file name has none
DEFAULT_EXTENSIONS: dict[InstallerType, str] = {
    InstallerType.MSI: ".msi",
    InstallerType.WIX: ".msi",
    InstallerType.MSIX: ".msix",
    InstallerType.APPX: ".appx",
    InstallerType.EXE: ".exe",
    InstallerType.INNO: ".exe",
    InstallerType.NULLSOFT: ".exe",
    InstallerType.BURN: ".exe",
    InstallerType.ZIP: ".zip",
    InstallerType.PORTABLE: ".zip",
    InstallerType.UNKNOWN: ".exe",
}

# Extensions a downloaded file may already carry, per family
FAMILY_EXTENSIONS: dict[InstallerFamily, tuple[str, ...]] = {
    InstallerFamily.MSI: (".msi",),
    InstallerFamily.EXE: (".exe",),
    InstallerFamily.GENERIC: (".exe",),
    InstallerFamily.MSIX: (".msix", ".appx", ".msixbundle", ".appxbundle"),
    InstallerFamily.ARCHIVE: (".zip",),
}

_FORBIDDEN_IN_QUOTES = re.compile(r'["\r\n]')


# ── File names ──────────────────────────────────────────────────


def installer_file_name(installer: InstallerDescriptor) -> str:
    """File name the installer is saved under, with a type extension if missing.

    ``https://host/download/windows_64?x=1`` for an exe → ``windows_64.exe``.
    """
    path = urlsplit(installer.url.strip()).path
    name = unquote(path.rsplit("/", 1)[-1])
    name = _FORBIDDEN_IN_QUOTES.sub("", name).replace("\\", "").strip()
    if not name:
        name = DEFAULT_FILE_NAME
    if not _family_extension(name, installer.family):
        name += DEFAULT_EXTENSIONS[installer.type]
    return name


def _family_extension(name: str, family: InstallerFamily) -> str:
    """The family extension ``name`` ends with, or ``""``."""
    lowered = name.lower()
    for ext in FAMILY_EXTENSIONS[family]:
        if lowered.endswith(ext) and len(name) > len(ext):
            return ext
    return ""


def archive_target(installer: InstallerDescriptor, display_name: str | None = None) -> str:
    """Folder an archive is expanded into.

    Same root and folder name the folder detection rule checks, so an
    extracted app is detected by the rule synthesized for it.
    """
    root = resolve_install_folder(installer.architecture, installer.scope)
    name = display_name
    if not name or not name.strip():
        file_name = installer_file_name(installer)
        name = file_name[: len(file_name) - len(_family_extension(file_name, installer.family))]
    return f"{root}\\{sanitize_folder_name(name)}"


# ── Install ─────────────────────────────────────────────────────


def build_install_command(
    installer: InstallerDescriptor,
    scope: InstallScope | None = None,
    display_name: str | None = None,
) -> str:
    """Silent install command for the agent to run.

    Args:
        installer: The resolved installer.
        scope: Install scope; defaults to the installer's own scope.
        display_name: Names the extraction folder for archive installers.
    """
    scope = scope or installer.scope
    file_name = installer_file_name(installer)
    family = installer.family

    match family:
        case InstallerFamily.MSI:
            all_users = "ALLUSERS=1" if scope == InstallScope.MACHINE else 'ALLUSERS=""'
            return f'msiexec /i "{file_name}" /qn {all_users} /norestart'
        case InstallerFamily.EXE | InstallerFamily.GENERIC:
            args = _silent_args(installer)
            return f'"{file_name}" {args}'.rstrip()
        case InstallerFamily.MSIX:
            return f'Add-AppxPackage -Path "{file_name}"'
        case InstallerFamily.ARCHIVE:
            target = archive_target(installer, display_name)
            return f'Expand-Archive -Path "{file_name}" -DestinationPath "{target}" -Force'
        case _:
            assert_never(family)


def _silent_args(installer: InstallerDescriptor) -> str:
    if installer.silent_args and installer.silent_args.strip():
        return installer.silent_args.strip()
    return DEFAULT_SILENT_ARGS.get(installer.type, DEFAULT_SILENT_ARGS[InstallerType.EXE])


# ── Uninstall ───────────────────────────────────────────────────


def build_uninstall_command(
    installer: InstallerDescriptor,
    display_name: str | None = None,
) -> str:
    """Silent uninstall command, or a marker the agent resolves at run time."""
    display_name = (display_name or "").strip()
    family = installer.family

    match family:
        case InstallerFamily.MSI:
            if installer.has_product_code:
                return f"msiexec /x {installer.product_code} /qn /norestart"
            logger.info("No product code for %s; uninstall needs manual completion", installer.url)
            return f"msiexec /x {PRODUCT_CODE_PLACEHOLDER} /qn /norestart"
        case InstallerFamily.EXE | InstallerFamily.GENERIC:
            if display_name:
                return f"{REGISTRY_UNINSTALL_PREFIX}{display_name}"
            if installer.type == InstallerType.BURN:
                return f'"{installer_file_name(installer)}" /uninstall /quiet /norestart'
            return GENERIC_UNINSTALL
        case InstallerFamily.MSIX:
            if installer.has_package_family_name:
                return f"{MSIX_UNINSTALL_PREFIX}{(installer.package_family_name or '').strip()}"
            return f"{MSIX_UNINSTALL_PREFIX}{PACKAGE_FAMILY_PLACEHOLDER}"
        case InstallerFamily.ARCHIVE:
            target = archive_target(installer, display_name)
            return f'Remove-Item -Path "{target}" -Recurse -Force'
        case _:
            assert_never(family)


# ── Switch extraction ───────────────────────────────────────────

_MSIEXEC_INSTALL = re.compile(r'^\s*msiexec(?:\.exe)?\s+/i\s+(?:"[^"]*"|\S+)\s*(?P<args>.*)$', re.IGNORECASE)
_QUOTED_EXE = re.compile(r'^\s*(?:"[^"]*"|\S+)\s*(?P<args>.*)$')


def extract_silent_switches(command: str, installer_type: InstallerType | str) -> str:
    """Switch portion of an install command, for pipelines that re-wrap the installer.

    ``msiexec /i "a.msi" /qn ALLUSERS=1 /norestart`` → ``/qn ALLUSERS=1 /norestart``;
    ``"setup.exe" /S`` → ``/S``. Command styles without switches
    (Add-AppxPackage, Expand-Archive) give ``""``.
    """
    installer = InstallerDescriptor(type=installer_type)
    family = installer.family

    match family:
        case InstallerFamily.MSI:
            m = _MSIEXEC_INSTALL.match(command)
            return m.group("args").strip() if m else ""
        case InstallerFamily.EXE | InstallerFamily.GENERIC:
            m = _QUOTED_EXE.match(command)
            return m.group("args").strip() if m else ""
        case InstallerFamily.MSIX | InstallerFamily.ARCHIVE:
            return ""
        case _:
            assert_never(family)
