"""
Tests for the packaging service — rules and commands built together.
"""

import pytest

from deploykit.core.config.loader import EngineSettings
from deploykit.core.models.detection import MsiRule, RegistryRule
from deploykit.core.models.installer import InstallerDescriptor, InstallScope
from deploykit.core.services.inputs import InputError, parse_package_requests
from deploykit.core.services.packaging import (
    PackageRequest,
    build_package,
    build_packages,
    check_package,
)


class TestBuildPackage:
    def test_msi_package(self, msi_installer):
        package = build_package("Pub.TestApp", "Test App", "Pub", "1.0.0", msi_installer)
        assert isinstance(package.detection_rules[0], MsiRule)
        assert package.install_command.startswith("msiexec /i ")
        assert package.uninstall_command.startswith("msiexec /x {")
        assert package.installer_url == msi_installer.url

    def test_exe_package_uses_registry_marker(self, exe_installer):
        package = build_package("Pub.TestApp", "Test App", "Pub", "1.0.0", exe_installer)
        [rule] = package.detection_rules
        assert isinstance(rule, RegistryRule)
        assert rule.key_path.endswith("\\Apps\\Pub_TestApp")
        assert package.uninstall_command == "REGISTRY_UNINSTALL:Test App"

    def test_vendor_from_settings(self, exe_installer):
        settings = EngineSettings(registry_vendor="Contoso")
        package = build_package("Pub.App", "App", "", "1", exe_installer, settings=settings)
        assert "\\SOFTWARE\\Contoso\\Apps\\" in package.detection_rules[0].key_path

    def test_install_scope_only_changes_commands(self, msi_installer):
        package = build_package("a", "A", "", "1", msi_installer, InstallScope.USER)
        assert 'ALLUSERS=""' in package.install_command
        assert package.install_scope == InstallScope.USER

    def test_check_package(self, msi_installer):
        package = build_package("a", "A", "", "1", msi_installer)
        assert check_package(package).valid


class TestPackageRequest:
    def test_aliases(self):
        req = PackageRequest.model_validate({
            "packageId": "Pub.App",
            "displayName": "App",
            "installScope": "User",
            "installer": {"type": "exe"},
        })
        assert req.package_id == "Pub.App"
        assert req.install_scope == InstallScope.USER


class TestBuildPackages:
    def test_batch(self, msi_installer, exe_installer):
        result = build_packages([
            PackageRequest(package_id="a", display_name="A", installer=msi_installer),
            PackageRequest(package_id="b", display_name="B", installer=exe_installer, version="2"),
        ])
        assert [p.package_id for p in result.packages] == ["a", "b"]
        assert result.errors == []
        data = result.to_dict()
        assert data["success"] is True
        assert len(data["packages"]) == 2
        assert data["validation"]["a"]["valid"] is True

    def test_warnings_do_not_reject(self):
        installer = InstallerDescriptor(type="msi", url="https://x/a.msi")
        result = build_packages([PackageRequest(package_id="a", display_name="A", installer=installer)])
        assert len(result.packages) == 1
        assert result.validations["a"].warnings


class TestParsePackageRequests:
    def _item(self, package_id: str) -> dict:
        return {
            "packageId": package_id,
            "displayName": "App",
            "installer": {"type": "exe", "url": "https://x/setup.exe"},
        }

    def test_items_wrapper(self):
        requests = parse_package_requests({"items": [self._item("a"), self._item("b")]})
        assert [r.package_id for r in requests] == ["a", "b"]

    def test_duplicate_package_id_rejected(self):
        with pytest.raises(InputError, match="duplicate packageId 'a'"):
            parse_package_requests([self._item("a"), self._item("a")])
