"""
Tests for the packaging API — app factory and routes.
"""

from __future__ import annotations

import pytest
from flask.testing import FlaskClient

from deploykit.core.config.loader import EngineSettings
from deploykit.ui.web.server import create_app


@pytest.fixture()
def client() -> FlaskClient:
    app = create_app(EngineSettings(max_batch_items=3))
    app.config["TESTING"] = True
    return app.test_client()


def _item(package_id: str, installer: dict | None = None) -> dict:
    return {
        "packageId": package_id,
        "displayName": "Test App",
        "version": "1.0.0",
        "installer": installer or {"type": "exe", "url": "https://x/setup.exe"},
    }


class TestAppFactory:
    def test_creates_app(self):
        app = create_app()
        assert app.config["ENGINE_SETTINGS"].registry_vendor == "Vendor"

    def test_health(self, client: FlaskClient):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["status"] == "ok"
        assert data["max_batch_items"] == 3


class TestPackageRoute:
    def test_single_item(self, client: FlaskClient):
        resp = client.post("/api/package", json=_item("Pub.TestApp"))
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["success"] is True
        [package] = data["packages"]
        assert package["uninstallCommand"] == "REGISTRY_UNINSTALL:Test App"
        assert package["detectionRules"][0]["keyPath"].endswith("\\Pub_TestApp")

    def test_batch(self, client: FlaskClient):
        resp = client.post("/api/package", json={"items": [
            _item("a"),
            _item("b", {"type": "msi", "url": "https://x/b.msi"}),
        ]})
        data = resp.get_json()
        assert [p["packageId"] for p in data["packages"]] == ["a", "b"]
        # Placeholder uninstall is a warning, not a rejection
        assert data["validation"]["b"]["warnings"]
        assert data["errors"] == []

    def test_batch_limit(self, client: FlaskClient):
        resp = client.post("/api/package", json=[_item(str(i)) for i in range(4)])
        assert resp.status_code == 400
        assert "maximum 3" in resp.get_json()["error"]

    def test_invalid_item(self, client: FlaskClient):
        resp = client.post("/api/package", json=[{"displayName": "x", "installer": {}}])
        assert resp.status_code == 400
        assert "Package #1" in resp.get_json()["error"]

    def test_duplicate_package_id(self, client: FlaskClient):
        resp = client.post("/api/package", json=[_item("a"), _item("b"), _item("a")])
        assert resp.status_code == 400
        error = resp.get_json()["error"]
        assert "Package #3" in error
        assert "package #1" in error

    def test_not_json(self, client: FlaskClient):
        resp = client.post("/api/package", data="nope", content_type="text/plain")
        assert resp.status_code == 400
        assert "JSON" in resp.get_json()["error"]


class TestRulesValidateRoute:
    def test_valid(self, client: FlaskClient):
        resp = client.post("/api/rules/validate", json=[{"type": "msi", "productCode": "{A}"}])
        assert resp.status_code == 200
        assert resp.get_json()["valid"] is True

    def test_empty(self, client: FlaskClient):
        resp = client.post("/api/rules/validate", json={"rules": []})
        assert resp.status_code == 200
        assert resp.get_json()["errors"] == ["At least one detection rule is required"]

    def test_unknown_rule_type(self, client: FlaskClient):
        resp = client.post("/api/rules/validate", json=[{"type": "wmi"}])
        assert resp.status_code == 400


class TestMigrationPreviewRoute:
    def test_preview(self, client: FlaskClient):
        body = {
            "catalog": {
                "Pub.App": {
                    "package": {"id": "Pub.App", "name": "App", "version": "2.0"},
                    "installer": {"type": "exe", "url": "https://x/setup.exe"},
                },
            },
            "apps": [
                {"id": "1", "display_name": "App", "matched_package_id": "Pub.App"},
                {"id": "2", "display_name": "Gone", "matched_package_id": "Gone.App"},
            ],
        }
        resp = client.post("/api/migration/preview", json=body)
        assert resp.status_code == 200
        data = resp.get_json()
        assert [p["can_migrate"] for p in data["previews"]] == [True, False]
        assert data["groups"]["blocked"] == ["2"]
        assert data["stats"]["migratable"] == 1

    def test_invalid(self, client: FlaskClient):
        resp = client.post("/api/migration/preview", json={"apps": [{"id": "1"}]})
        assert resp.status_code == 400

    def test_batch_limit(self, client: FlaskClient):
        apps = [
            {"id": str(i), "display_name": f"App {i}", "matched_package_id": "Pub.App"}
            for i in range(4)
        ]
        resp = client.post("/api/migration/preview", json={"apps": apps})
        assert resp.status_code == 400
        assert "maximum 3" in resp.get_json()["error"]
