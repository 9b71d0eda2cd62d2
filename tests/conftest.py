"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest
import yaml

from deploykit.core.models.installer import InstallerDescriptor


@pytest.fixture
def msi_installer() -> InstallerDescriptor:
    return InstallerDescriptor(
        type="msi",
        architecture="x64",
        url="https://downloads.example.com/app/TestApp-1.0.0.msi",
        product_code="{12345678-1234-1234-1234-123456789012}",
    )


@pytest.fixture
def exe_installer() -> InstallerDescriptor:
    return InstallerDescriptor(
        type="exe",
        architecture="x64",
        url="https://downloads.example.com/app/setup.exe",
    )


@pytest.fixture
def write_yaml(tmp_path: Path):
    """Write a document to tmp_path as YAML and return its path."""

    def _write(name: str, data) -> Path:
        path = tmp_path / name
        path.write_text(yaml.safe_dump(data, sort_keys=False))
        return path

    return _write
