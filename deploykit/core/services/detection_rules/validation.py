"""
L1 Validator — structural checks on rule sets and command pairs (pure).

Never raises. Errors mean the package cannot be deployed; warnings mean
it can, with lower confidence. Every failing rule contributes its own
error; checking does not stop at the first one.
"""

from __future__ import annotations

from typing import assert_never

from deploykit.core.models.detection import (
    DetectionRule,
    FileDetectionType,
    FileRule,
    MsiRule,
    RegistryRule,
    ScriptRule,
    ValidationResult,
)
from deploykit.core.services.detection_rules.commands import (
    GENERIC_UNINSTALL,
    PACKAGE_FAMILY_PLACEHOLDER,
    PRODUCT_CODE_PLACEHOLDER,
)

# `exit 0` and similar one-liners prove nothing
MIN_SCRIPT_LENGTH = 10

EMPTY_RULE_SET = "At least one detection rule is required"
MSI_MISSING_PRODUCT_CODE = "MSI detection rule requires a product code"
FILE_MISSING_FIELDS = "File/folder detection rule requires path and file or folder name"
REGISTRY_MISSING_KEY = "Registry detection rule requires key path"
SCRIPT_TOO_SHORT = "Script detection rule requires valid script content"
FOLDER_ONLY_WARNING = (
    "Folder existence detection for '{name}' cannot distinguish installed versions"
)


def validate_rules(rules: list[DetectionRule]) -> ValidationResult:
    """Check that a rule set is non-empty and every rule is complete."""
    if not rules:
        return ValidationResult(errors=[EMPTY_RULE_SET])

    errors: list[str] = []
    warnings: list[str] = []
    for rule in rules:
        error = _rule_error(rule)
        if error:
            errors.append(error)
        elif isinstance(rule, FileRule) and rule.detection_type == FileDetectionType.EXISTS:
            warnings.append(FOLDER_ONLY_WARNING.format(name=rule.file_or_folder_name))

    return ValidationResult(errors=errors, warnings=warnings)


def _rule_error(rule: DetectionRule) -> str | None:
    match rule:
        case MsiRule():
            return None if rule.product_code.strip() else MSI_MISSING_PRODUCT_CODE
        case FileRule():
            if rule.path.strip() and rule.file_or_folder_name.strip():
                return None
            return FILE_MISSING_FIELDS
        case RegistryRule():
            return None if rule.key_path.strip() else REGISTRY_MISSING_KEY
        case ScriptRule():
            if len(rule.script_content.strip()) >= MIN_SCRIPT_LENGTH:
                return None
            return SCRIPT_TOO_SHORT
        case _:
            assert_never(rule)


def validate_commands(install_command: str, uninstall_command: str) -> ValidationResult:
    """Check an install/uninstall pair before it is packaged.

    Placeholders and the generic uninstall fallback are deployable but
    need a human to finish them, so they are warnings.
    """
    errors: list[str] = []
    warnings: list[str] = []

    if not install_command.strip():
        errors.append("Install command is required")
    if not uninstall_command.strip():
        errors.append("Uninstall command is required")

    if PRODUCT_CODE_PLACEHOLDER in uninstall_command:
        warnings.append(
            "Uninstall command needs the MSI product code filled in manually"
        )
    if PACKAGE_FAMILY_PLACEHOLDER in uninstall_command:
        warnings.append(
            "Uninstall command needs the package family name filled in manually"
        )
    if uninstall_command.strip() == GENERIC_UNINSTALL:
        warnings.append(
            "Uninstall command is a generic fallback and may not match the installed app"
        )

    return ValidationResult(errors=errors, warnings=warnings)
