"""
L1 Sanitizer — string safety for folder names, registry segments, install roots (pure).

Every function here is total: any input string yields a usable output.
No I/O.
"""

from __future__ import annotations

import re

from deploykit.core.config.loader import DEFAULT_REGISTRY_VENDOR
from deploykit.core.models.installer import Architecture, InstallScope

MAX_FOLDER_NAME_LENGTH = 64
FALLBACK_FOLDER_NAME = "Application"

PROGRAM_FILES = "%ProgramFiles%"
PROGRAM_FILES_X86 = "%ProgramFiles(x86)%"
USER_PROGRAMS = "%LOCALAPPDATA%\\Programs"

_ILLEGAL_NAME_CHARS = re.compile(r'[:<>?"/\\|*]')
_REGISTRY_SEPARATORS = re.compile(r"[.\-]")

_HIVES = {
    InstallScope.MACHINE: "HKEY_LOCAL_MACHINE",
    InstallScope.USER: "HKEY_CURRENT_USER",
}


def sanitize_folder_name(name: str | None) -> str:
    """Make a display name safe to use as a file or folder name.

    Trims, removes ``: < > ? " / \\ | *``, caps the length at 64 and
    returns ``"Application"`` if nothing printable is left.
    """
    cleaned = _ILLEGAL_NAME_CHARS.sub("", (name or "").strip())
    cleaned = cleaned[:MAX_FOLDER_NAME_LENGTH].strip()
    return cleaned or FALLBACK_FOLDER_NAME


def sanitize_identifier_for_registry(identifier: str) -> str:
    """``Publisher.App-Name`` → ``Publisher_App_Name``."""
    return _REGISTRY_SEPARATORS.sub("_", identifier)


def build_registry_key_path(
    scope: InstallScope,
    sanitized_id: str,
    vendor: str = DEFAULT_REGISTRY_VENDOR,
) -> str:
    """Key holding the version marker the installing agent writes.

    Machine installs write under HKLM, user installs under HKCU.
    """
    return f"{_HIVES[scope]}\\SOFTWARE\\{vendor}\\Apps\\{sanitized_id}"


def resolve_install_folder(architecture: Architecture, scope: InstallScope) -> str:
    """Install root an app of this architecture and scope lands under."""
    if scope == InstallScope.USER:
        return USER_PROGRAMS
    if architecture == Architecture.X86:
        return PROGRAM_FILES_X86
    return PROGRAM_FILES


def is_32bit_program_files(path: str) -> bool:
    return path == PROGRAM_FILES_X86
