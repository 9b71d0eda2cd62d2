"""
Tests for CLI commands — rules, migrate, and global options.
"""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from deploykit.main import cli

PACKAGES = [
    {
        "packageId": "Pub.TestApp",
        "displayName": "Test App",
        "version": "1.0.0",
        "installer": {"type": "exe", "url": "https://x/setup.exe"},
    },
    {
        "packageId": "Pub.Msi",
        "displayName": "Msi App",
        "installer": {"type": "msi", "url": "https://x/app.msi", "productCode": "{A}"},
    },
]

MIGRATION = {
    "catalog": {
        "Pub.TestApp": {
            "package": {"id": "Pub.TestApp", "name": "Test App", "version": "1.0.0"},
            "installer": {"type": "exe", "url": "https://x/setup.exe"},
        },
    },
    "apps": [
        {
            "id": "1",
            "display_name": "Legacy Test App",
            "match_status": "matched",
            "matched_package_id": "Pub.TestApp",
            "detection_rules": [{"Type": "MSI", "ProductCode": "{LEGACY}"}],
        },
        {"id": "2", "display_name": "Orphan", "match_status": "unmatched"},
    ],
}


@pytest.fixture
def no_settings(tmp_path: Path, monkeypatch):
    """Run from a directory with no deploykit.yml above it."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestCLIGlobal:
    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "deploykit" in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_bad_config(self, tmp_path: Path):
        config = tmp_path / "deploykit.yml"
        config.write_text("max_batch_items: -1\n")
        result = CliRunner().invoke(cli, ["--config", str(config), "rules", "--help"])
        assert result.exit_code == 1
        assert "Invalid settings" in result.output


class TestRulesCommands:
    def test_synthesize_json(self, no_settings, write_yaml):
        path = write_yaml("packages.yml", PACKAGES)
        result = CliRunner().invoke(cli, ["-q", "rules", "synthesize", str(path), "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data[0]["detectionRules"][0] == {
            "type": "registry",
            "keyPath": "HKEY_LOCAL_MACHINE\\SOFTWARE\\Vendor\\Apps\\Pub_TestApp",
            "valueName": "Version",
            "detectionType": "version",
            "operator": "greaterThanOrEqual",
            "detectionValue": "1.0.0",
            "check32BitOn64System": False,
        }
        assert data[1]["detectionRules"][0]["type"] == "msi"

    def test_synthesize_uses_configured_vendor(self, tmp_path: Path, write_yaml):
        config = tmp_path / "deploykit.yml"
        config.write_text("registry_vendor: Contoso\n")
        path = write_yaml("packages.yml", PACKAGES[0])
        result = CliRunner().invoke(
            cli, ["-q", "--config", str(config), "rules", "synthesize", str(path), "--json"],
        )
        assert result.exit_code == 0
        assert "\\Contoso\\" in json.loads(result.output)[0]["detectionRules"][0]["keyPath"]

    def test_synthesize_pretty(self, no_settings, write_yaml):
        path = write_yaml("packages.yml", PACKAGES)
        result = CliRunner().invoke(cli, ["rules", "synthesize", str(path)])
        assert result.exit_code == 0
        assert "Pub.TestApp" in result.output
        assert "[registry]" in result.output

    def test_commands_json(self, no_settings, write_yaml):
        path = write_yaml("packages.yml", {"items": PACKAGES})
        result = CliRunner().invoke(cli, ["-q", "rules", "commands", str(path), "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data[0]["uninstallCommand"] == "REGISTRY_UNINSTALL:Test App"
        assert data[1]["installCommand"] == 'msiexec /i "app.msi" /qn ALLUSERS=1 /norestart'

    def test_invalid_package_document(self, no_settings, write_yaml):
        path = write_yaml("packages.yml", [{"displayName": "No id", "installer": {}}])
        result = CliRunner().invoke(cli, ["rules", "commands", str(path)])
        assert result.exit_code == 1
        assert "Package #1" in result.output

    def test_validate_ok(self, no_settings, write_yaml):
        path = write_yaml("rules.yml", [{"type": "msi", "productCode": "{A}"}])
        result = CliRunner().invoke(cli, ["rules", "validate", str(path)])
        assert result.exit_code == 0
        assert "valid" in result.output

    def test_validate_empty_json(self, no_settings, write_yaml):
        path = write_yaml("rules.yml", {"rules": []})
        result = CliRunner().invoke(cli, ["-q", "rules", "validate", str(path), "--json"])
        assert result.exit_code == 1
        assert json.loads(result.output) == {
            "valid": False,
            "errors": ["At least one detection rule is required"],
            "warnings": [],
        }

    def test_validate_accumulates(self, no_settings, write_yaml):
        path = write_yaml("rules.yml", [
            {"type": "msi", "productCode": ""},
            {"type": "registry", "keyPath": ""},
        ])
        result = CliRunner().invoke(cli, ["rules", "validate", str(path)])
        assert result.exit_code == 1
        assert "product code" in result.output
        assert "key path" in result.output


class TestMigrateCommands:
    def test_preview_json(self, no_settings, write_yaml):
        path = write_yaml("batch.yml", MIGRATION)
        result = CliRunner().invoke(cli, ["-q", "migrate", "preview", str(path), "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data[0]["can_migrate"] is True
        assert data[0]["detection_source"] == "external"
        assert data[0]["detection_rules"][0]["productCode"] == "{LEGACY}"
        assert data[1]["can_migrate"] is False

    def test_preview_flag_override(self, no_settings, write_yaml):
        path = write_yaml("batch.yml", MIGRATION)
        result = CliRunner().invoke(
            cli, ["-q", "migrate", "preview", str(path), "--no-preserve-detection", "--json"],
        )
        assert result.exit_code == 0
        assert json.loads(result.output)[0]["detection_source"] == "engine"

    def test_preview_pretty(self, no_settings, write_yaml):
        path = write_yaml("batch.yml", MIGRATION)
        result = CliRunner().invoke(cli, ["migrate", "preview", str(path)])
        assert result.exit_code == 0
        assert "Ready" in result.output
        assert "Blocked" in result.output
        assert "No catalog package matched" in result.output

    def test_stats_json(self, no_settings, write_yaml):
        path = write_yaml("batch.yml", MIGRATION)
        result = CliRunner().invoke(cli, ["-q", "migrate", "stats", str(path), "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["total"] == 2
        assert data["migratable"] == 1
        assert data["with_external_detection"] == 1

    def test_invalid_batch(self, no_settings, write_yaml):
        path = write_yaml("batch.yml", ["not", "a", "mapping"])
        result = CliRunner().invoke(cli, ["migrate", "stats", str(path)])
        assert result.exit_code == 1
        assert "Expected a mapping" in result.output
