"""
Installer model — what the engine is told about one installer.

The descriptor arrives already chosen (architecture, locale and scope
resolution happen upstream) and is never mutated. Every installer type
belongs to exactly one family, and the family is what the detection and
command synthesizers dispatch on.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class InstallerType(StrEnum):
    """Packaging technology of an installer."""

    MSI = "msi"
    WIX = "wix"
    MSIX = "msix"
    APPX = "appx"
    EXE = "exe"
    INNO = "inno"
    NULLSOFT = "nullsoft"
    BURN = "burn"
    ZIP = "zip"
    PORTABLE = "portable"
    UNKNOWN = "unknown"


class InstallerFamily(StrEnum):
    """Dispatch class shared by installer types with identical handling."""

    MSI = "msi"
    EXE = "exe"
    MSIX = "msix"
    ARCHIVE = "archive"
    GENERIC = "generic"


class Architecture(StrEnum):
    X86 = "x86"
    X64 = "x64"
    ARM64 = "arm64"
    NEUTRAL = "neutral"


class InstallScope(StrEnum):
    MACHINE = "machine"
    USER = "user"


# Every InstallerType member must appear here; tests enforce it.
INSTALLER_FAMILIES: dict[InstallerType, InstallerFamily] = {
    InstallerType.MSI: InstallerFamily.MSI,
    InstallerType.WIX: InstallerFamily.MSI,
    InstallerType.MSIX: InstallerFamily.MSIX,
    InstallerType.APPX: InstallerFamily.MSIX,
    InstallerType.EXE: InstallerFamily.EXE,
    InstallerType.INNO: InstallerFamily.EXE,
    InstallerType.NULLSOFT: InstallerFamily.EXE,
    InstallerType.BURN: InstallerFamily.EXE,
    InstallerType.ZIP: InstallerFamily.ARCHIVE,
    InstallerType.PORTABLE: InstallerFamily.ARCHIVE,
    InstallerType.UNKNOWN: InstallerFamily.GENERIC,
}


def _coerce_enum(enum_cls: type[StrEnum], value: Any, default: StrEnum) -> Any:
    """Case-insensitive enum coercion with a fallback for unknown strings."""
    if value is None or value == "":
        return default
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().lower())
        except ValueError:
            return value
    return value


class InstallerDescriptor(BaseModel):
    """A single resolved installer for one app.

    ``product_code`` only means something for MSI-family installers and
    ``package_family_name`` only for MSIX-family ones; both are carried
    as optional strings and empty values are treated as absent.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: InstallerType = InstallerType.UNKNOWN
    architecture: Architecture = Architecture.NEUTRAL
    scope: InstallScope = InstallScope.MACHINE
    url: str = ""
    sha256: str = ""
    product_code: str | None = Field(default=None, alias="productCode")
    package_family_name: str | None = Field(default=None, alias="packageFamilyName")
    silent_args: str | None = Field(default=None, alias="silentArgs")

    @field_validator("type", mode="before")
    @classmethod
    def _type_or_unknown(cls, value: Any) -> Any:
        coerced = _coerce_enum(InstallerType, value, InstallerType.UNKNOWN)
        # Types outside the supported set fall to the generic tier
        if isinstance(coerced, str) and not isinstance(coerced, InstallerType):
            return InstallerType.UNKNOWN
        return coerced

    @field_validator("architecture", mode="before")
    @classmethod
    def _architecture(cls, value: Any) -> Any:
        return _coerce_enum(Architecture, value, Architecture.NEUTRAL)

    @field_validator("scope", mode="before")
    @classmethod
    def _scope(cls, value: Any) -> Any:
        return _coerce_enum(InstallScope, value, InstallScope.MACHINE)

    @property
    def family(self) -> InstallerFamily:
        """The dispatch family for this installer's type."""
        return INSTALLER_FAMILIES[self.type]

    @property
    def has_product_code(self) -> bool:
        return bool(self.product_code and self.product_code.strip())

    @property
    def has_package_family_name(self) -> bool:
        return bool(self.package_family_name and self.package_family_name.strip())


class PackageInfo(BaseModel):
    """Catalog identity of the package an installer belongs to."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    publisher: str = ""
    version: str = ""
