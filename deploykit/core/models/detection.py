"""
Detection rule models — how the management agent proves an app is installed.

A rule set is a list of ``DetectionRule`` values. ``DetectionRule`` is a
closed union of four variants discriminated on ``type``; each variant
carries only the fields that matter to it. Field aliases are the
platform's detection-rule field names, so ``model_dump(by_alias=True)``
is the payload shape the deployment platform expects.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, computed_field


class VersionOperator(StrEnum):
    """Comparison operators accepted by version-aware rules."""

    NOT_CONFIGURED = "notConfigured"
    EQUAL = "equal"
    NOT_EQUAL = "notEqual"
    GREATER_THAN = "greaterThan"
    GREATER_THAN_OR_EQUAL = "greaterThanOrEqual"
    LESS_THAN = "lessThan"
    LESS_THAN_OR_EQUAL = "lessThanOrEqual"


class FileDetectionType(StrEnum):
    EXISTS = "exists"
    DOES_NOT_EXIST = "doesNotExist"
    MODIFIED_DATE = "modifiedDate"
    CREATED_DATE = "createdDate"
    VERSION = "version"
    SIZE_IN_MB = "sizeInMB"


class RegistryDetectionType(StrEnum):
    EXISTS = "exists"
    DOES_NOT_EXIST = "doesNotExist"
    STRING = "string"
    INTEGER = "integer"
    VERSION = "version"


class _Rule(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class MsiRule(_Rule):
    """Product-code presence, optionally constrained by product version."""

    type: Literal["msi"] = "msi"
    product_code: str = Field(default="", alias="productCode")
    version_operator: VersionOperator = Field(
        default=VersionOperator.GREATER_THAN_OR_EQUAL, alias="versionOperator",
    )
    product_version: str | None = Field(default=None, alias="productVersion")


class FileRule(_Rule):
    """File or folder condition under a known install root."""

    type: Literal["file"] = "file"
    path: str = ""
    file_or_folder_name: str = Field(default="", alias="fileOrFolderName")
    detection_type: FileDetectionType = Field(
        default=FileDetectionType.EXISTS, alias="detectionType",
    )
    check_32bit_on_64_system: bool = Field(default=False, alias="check32BitOn64System")
    operator: VersionOperator | None = None
    detection_value: str | None = Field(default=None, alias="detectionValue")


class RegistryRule(_Rule):
    """Registry value condition, typically a version marker."""

    type: Literal["registry"] = "registry"
    key_path: str = Field(default="", alias="keyPath")
    value_name: str = Field(default="Version", alias="valueName")
    detection_type: RegistryDetectionType = Field(
        default=RegistryDetectionType.VERSION, alias="detectionType",
    )
    operator: VersionOperator = VersionOperator.GREATER_THAN_OR_EQUAL
    detection_value: str = Field(default="", alias="detectionValue")
    check_32bit_on_64_system: bool = Field(default=False, alias="check32BitOn64System")


class ScriptRule(_Rule):
    """PowerShell script; the app is detected when it writes output and exits 0."""

    type: Literal["script"] = "script"
    script_content: str = Field(default="", alias="scriptContent")
    enforce_signature_check: bool = Field(default=False, alias="enforceSignatureCheck")
    run_as_32_bit: bool = Field(default=False, alias="runAs32Bit")


DetectionRule = Annotated[
    Union[MsiRule, FileRule, RegistryRule, ScriptRule],
    Field(discriminator="type"),
]

RuleSet = list[DetectionRule]

_RULE_SET_ADAPTER: TypeAdapter[list[DetectionRule]] = TypeAdapter(list[DetectionRule])


def parse_rules(data: object) -> list[DetectionRule]:
    """Validate raw (JSON/YAML-decoded) data into a rule set.

    Raises:
        pydantic.ValidationError: If any entry is not a recognisable rule.
    """
    return _RULE_SET_ADAPTER.validate_python(data)


def dump_rules(rules: list[DetectionRule]) -> list[dict]:
    """Serialise a rule set with platform field names."""
    return _RULE_SET_ADAPTER.dump_python(rules, mode="json", by_alias=True, exclude_none=True)


class ValidationResult(BaseModel):
    """Outcome of checking a rule set or a command pair.

    ``errors`` make the input undeployable; ``warnings`` only lower
    confidence. ``valid`` is always ``not errors``.
    """

    model_config = ConfigDict(frozen=True)

    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def valid(self) -> bool:
        return not self.errors

    def merge(self, other: ValidationResult) -> ValidationResult:
        """Combine two results, keeping message order."""
        return ValidationResult(
            errors=[*self.errors, *other.errors],
            warnings=[*self.warnings, *other.warnings],
        )

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }
