"""
L1 Legacy rules — convert externally sourced detection records to rule variants.

Migration exports describe detection in the previous system's terms
(``ProductCode``, ``FilePath`` + ``FileName``, ``RegistryHive`` +
``RegistryKey``, ``ScriptText``). Records already in deploykit's own
shape (``type`` of msi/file/registry/script with platform field names)
pass through unchanged.

Records that cannot be expressed (VBScript detection, unknown kinds,
malformed data) are skipped and logged; the caller decides what an
empty result means.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from pydantic import ValidationError

from deploykit.core.models.detection import (
    DetectionRule,
    FileDetectionType,
    FileRule,
    MsiRule,
    RegistryDetectionType,
    RegistryRule,
    ScriptRule,
    VersionOperator,
    parse_rules,
)

logger = logging.getLogger(__name__)

_NATIVE_TYPES = {"msi", "file", "registry", "script"}

_KIND_ALIASES = {
    "msi": "msi",
    "windowsinstaller": "msi",
    "productcode": "msi",
    "file": "file",
    "folder": "file",
    "filesystem": "file",
    "registry": "registry",
    "registrykey": "registry",
    "registryvalue": "registry",
    "script": "script",
    "powershell": "script",
}

_HIVES = {
    "hklm": "HKEY_LOCAL_MACHINE",
    "hkeylocalmachine": "HKEY_LOCAL_MACHINE",
    "hkcu": "HKEY_CURRENT_USER",
    "hkeycurrentuser": "HKEY_CURRENT_USER",
    "hkcr": "HKEY_CLASSES_ROOT",
    "hkeyclassesroot": "HKEY_CLASSES_ROOT",
    "hku": "HKEY_USERS",
    "hkeyusers": "HKEY_USERS",
}

_OPERATORS = {
    "equals": VersionOperator.EQUAL,
    "isequals": VersionOperator.EQUAL,
    "equal": VersionOperator.EQUAL,
    "notequals": VersionOperator.NOT_EQUAL,
    "notequal": VersionOperator.NOT_EQUAL,
    "greaterthan": VersionOperator.GREATER_THAN,
    "greaterequals": VersionOperator.GREATER_THAN_OR_EQUAL,
    "greaterthanorequal": VersionOperator.GREATER_THAN_OR_EQUAL,
    "lessthan": VersionOperator.LESS_THAN,
    "lessequals": VersionOperator.LESS_THAN_OR_EQUAL,
    "lessthanorequal": VersionOperator.LESS_THAN_OR_EQUAL,
}


def convert_legacy_rules(records: list[dict[str, Any]] | None) -> list[DetectionRule]:
    """Convert every convertible record, in order."""
    rules: list[DetectionRule] = []
    for index, record in enumerate(records or []):
        rule = convert_legacy_rule(record)
        if rule is None:
            logger.warning("Skipping unconvertible detection record #%d: %r", index, record)
            continue
        rules.append(rule)
    return rules


def convert_legacy_rule(record: dict[str, Any]) -> DetectionRule | None:
    """One record → one rule, or None if it has no equivalent."""
    if not isinstance(record, dict):
        return None

    fields = {_norm(k): v for k, v in record.items()}
    raw_type = str(fields.get("type") or fields.get("kind") or fields.get("detectiontype") or "")

    if raw_type in _NATIVE_TYPES and _looks_native(record):
        try:
            return parse_rules([record])[0]
        except ValidationError as e:
            logger.debug("Native-looking record failed validation: %s", e)
            return None

    kind = _KIND_ALIASES.get(_norm(raw_type))
    if kind == "msi":
        return _msi(fields)
    if kind == "file":
        return _file(fields)
    if kind == "registry":
        return _registry(fields)
    if kind == "script":
        return _script(fields)
    return None


def _looks_native(record: dict[str, Any]) -> bool:
    native_keys = {"productCode", "path", "fileOrFolderName", "keyPath", "scriptContent"}
    return bool(native_keys & record.keys())


def _norm(key: str) -> str:
    return re.sub(r"[^a-z0-9]", "", str(key).lower())


def _text(fields: dict[str, Any], *names: str) -> str:
    for name in names:
        value = fields.get(name)
        if value is not None and str(value).strip():
            return str(value).strip()
    return ""


def _flag(fields: dict[str, Any], name: str) -> bool | None:
    """Boolean field that exports may carry as a bool or as "true"/"false"."""
    value = fields.get(name)
    if isinstance(value, bool) or value is None:
        return value
    text = str(value).strip().lower()
    if text in ("true", "1", "yes"):
        return True
    if text in ("false", "0", "no"):
        return False
    return None


def _is_32bit_on_64(fields: dict[str, Any]) -> bool:
    """Legacy records flag 32-bit locations as Is64Bit = false."""
    return _flag(fields, "is64bit") is False


def _operator(fields: dict[str, Any]) -> VersionOperator | None:
    raw = _text(fields, "operator", "versionoperator")
    return _OPERATORS.get(_norm(raw)) if raw else None


def _msi(fields: dict[str, Any]) -> MsiRule | None:
    product_code = _text(fields, "productcode", "msiproductcode")
    if not product_code:
        return None
    version = _text(fields, "productversion", "version")
    operator = _operator(fields) or VersionOperator.GREATER_THAN_OR_EQUAL
    return MsiRule(
        product_code=product_code,
        version_operator=operator,
        product_version=version or None,
    )


def _file(fields: dict[str, Any]) -> FileRule | None:
    path = _text(fields, "filepath", "folderpath", "path")
    name = _text(fields, "filename", "foldername", "fileorfoldername", "name")
    if not path or not name:
        return None

    check_32bit = _is_32bit_on_64(fields)

    version = _text(fields, "expectedvalue", "version", "value")
    operator = _operator(fields)
    if version and operator:
        return FileRule(
            path=path,
            file_or_folder_name=name,
            detection_type=FileDetectionType.VERSION,
            check_32bit_on_64_system=check_32bit,
            operator=operator,
            detection_value=version,
        )
    return FileRule(
        path=path,
        file_or_folder_name=name,
        detection_type=FileDetectionType.EXISTS,
        check_32bit_on_64_system=check_32bit,
    )


def _registry(fields: dict[str, Any]) -> RegistryRule | None:
    key = _text(fields, "registrykey", "keypath", "key")
    if not key:
        return None
    hive = _HIVES.get(_norm(_text(fields, "registryhive", "hive")))
    if hive and not key.upper().startswith("HKEY_"):
        key = hive + "\\" + key.lstrip("\\")

    value_name = _text(fields, "valuename")
    expected = _text(fields, "expectedvalue", "detectionvalue", "value")
    operator = _operator(fields)
    check_32bit = _is_32bit_on_64(fields)

    if not expected or operator is None:
        return RegistryRule(
            key_path=key,
            value_name=value_name,
            detection_type=RegistryDetectionType.EXISTS,
            detection_value="",
            check_32bit_on_64_system=check_32bit,
        )

    data_type = _norm(_text(fields, "datatype", "propertytype"))
    detection_type = {
        "string": RegistryDetectionType.STRING,
        "integer": RegistryDetectionType.INTEGER,
        "int64": RegistryDetectionType.INTEGER,
    }.get(data_type, RegistryDetectionType.VERSION)

    return RegistryRule(
        key_path=key,
        value_name=value_name,
        detection_type=detection_type,
        operator=operator,
        detection_value=expected,
        check_32bit_on_64_system=check_32bit,
    )


def _script(fields: dict[str, Any]) -> ScriptRule | None:
    language = _norm(_text(fields, "scriptlanguage", "scripttype", "language"))
    if language and language != "powershell":
        # The platform only runs PowerShell detection scripts
        return None
    content = _text(fields, "scripttext", "scriptcontent", "script")
    if not content:
        return None
    return ScriptRule(
        script_content=content,
        enforce_signature_check=_flag(fields, "enforcesignaturecheck") is True,
        run_as_32_bit=_flag(fields, "runas32bit") is True,
    )
