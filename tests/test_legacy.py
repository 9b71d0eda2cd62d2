"""
Tests for converting legacy detection records into rule variants.
"""

import pytest

from deploykit.core.models.detection import (
    FileDetectionType,
    FileRule,
    MsiRule,
    RegistryDetectionType,
    RegistryRule,
    ScriptRule,
    VersionOperator,
)
from deploykit.core.services.detection_rules import convert_legacy_rule, convert_legacy_rules


class TestLegacyMsi:
    def test_product_code(self):
        rule = convert_legacy_rule({"Type": "MSI", "ProductCode": "{ABC}"})
        assert rule == MsiRule(product_code="{ABC}")

    def test_product_version_and_operator(self):
        rule = convert_legacy_rule({
            "Type": "WindowsInstaller",
            "ProductCode": "{ABC}",
            "ProductVersion": "2.0",
            "Operator": "Equals",
        })
        assert isinstance(rule, MsiRule)
        assert rule.product_version == "2.0"
        assert rule.version_operator == VersionOperator.EQUAL

    def test_missing_product_code(self):
        assert convert_legacy_rule({"Type": "MSI"}) is None


class TestLegacyFile:
    def test_existence(self):
        rule = convert_legacy_rule({
            "Type": "File",
            "FilePath": "%ProgramFiles%\\Contoso",
            "FileName": "app.exe",
        })
        assert rule == FileRule(
            path="%ProgramFiles%\\Contoso",
            file_or_folder_name="app.exe",
            detection_type=FileDetectionType.EXISTS,
        )

    def test_version_comparison(self):
        rule = convert_legacy_rule({
            "Type": "File",
            "FilePath": "C:\\Tools",
            "FileName": "tool.exe",
            "Operator": "GreaterEquals",
            "ExpectedValue": "3.1",
            "Is64Bit": False,
        })
        assert isinstance(rule, FileRule)
        assert rule.detection_type == FileDetectionType.VERSION
        assert rule.operator == VersionOperator.GREATER_THAN_OR_EQUAL
        assert rule.detection_value == "3.1"
        assert rule.check_32bit_on_64_system is True

    def test_missing_name(self):
        assert convert_legacy_rule({"Type": "File", "FilePath": "C:\\Tools"}) is None


class TestLegacyRegistry:
    def test_hive_prefixed(self):
        rule = convert_legacy_rule({
            "Type": "RegistryKey",
            "RegistryHive": "HKLM",
            "RegistryKey": "SOFTWARE\\Contoso\\App",
        })
        assert isinstance(rule, RegistryRule)
        assert rule.key_path == "HKEY_LOCAL_MACHINE\\SOFTWARE\\Contoso\\App"
        assert rule.detection_type == RegistryDetectionType.EXISTS

    def test_value_comparison(self):
        rule = convert_legacy_rule({
            "Type": "Registry",
            "RegistryKey": "HKEY_CURRENT_USER\\Software\\App",
            "ValueName": "Build",
            "DataType": "Integer",
            "Operator": "GreaterThan",
            "ExpectedValue": "41",
        })
        assert isinstance(rule, RegistryRule)
        assert rule.key_path == "HKEY_CURRENT_USER\\Software\\App"
        assert rule.value_name == "Build"
        assert rule.detection_type == RegistryDetectionType.INTEGER
        assert rule.operator == VersionOperator.GREATER_THAN


class TestLegacyScript:
    def test_powershell(self):
        rule = convert_legacy_rule({
            "Type": "Script",
            "ScriptLanguage": "PowerShell",
            "ScriptText": "if (Test-Path C:\\x) { 'ok'; exit 0 }",
        })
        assert isinstance(rule, ScriptRule)

    def test_vbscript_skipped(self):
        rule = convert_legacy_rule({
            "Type": "Script",
            "ScriptLanguage": "VBScript",
            "ScriptText": "WScript.Quit 0",
        })
        assert rule is None

    @pytest.mark.parametrize("raw", ["false", "False", " FALSE ", False])
    def test_false_flags_from_exports(self, raw):
        rule = convert_legacy_rule({
            "Type": "Script",
            "ScriptText": "if (Test-Path 'C:\\x') { Write-Output ok }",
            "EnforceSignatureCheck": raw,
            "RunAs32Bit": raw,
        })
        assert isinstance(rule, ScriptRule)
        assert rule.enforce_signature_check is False
        assert rule.run_as_32_bit is False

    @pytest.mark.parametrize("raw", ["true", "True", True])
    def test_true_flags_from_exports(self, raw):
        rule = convert_legacy_rule({
            "Type": "Script",
            "ScriptText": "if (Test-Path 'C:\\x') { Write-Output ok }",
            "EnforceSignatureCheck": raw,
            "RunAs32Bit": raw,
        })
        assert rule.enforce_signature_check is True
        assert rule.run_as_32_bit is True


class TestNativeRecords:
    def test_native_shape_passes_through(self):
        rule = convert_legacy_rule({"type": "registry", "keyPath": "HKEY_LOCAL_MACHINE\\X"})
        assert rule == RegistryRule(key_path="HKEY_LOCAL_MACHINE\\X")


class TestConvertMany:
    def test_skips_unconvertible_in_order(self):
        rules = convert_legacy_rules([
            {"Type": "MSI", "ProductCode": "{A}"},
            {"Type": "WMI", "Query": "SELECT *"},
            "not a record",
            {"Type": "MSI", "ProductCode": "{B}"},
        ])
        assert [r.product_code for r in rules] == ["{A}", "{B}"]

    def test_none(self):
        assert convert_legacy_rules(None) == []
