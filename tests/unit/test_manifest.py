"""Unit tests for the project manifest."""

from pathlib import Path

import pytest

from upgradeable_deployments.exceptions import ManifestNotFoundError, RecordFormatError
from upgradeable_deployments.manifest import Manifest


class TestManifestLoading:
    """Test reading zos.json."""

    def test_loads_sample_project(self, manifest: Manifest):
        assert manifest.name == "my-project"
        assert manifest.version == "0.1.0"
        assert manifest.contracts == {"Greeter": "Greeter", "Wallet": "Wallet"}
        assert manifest.dependencies == {"mock-dep": "^1.2.0"}
        assert manifest.is_published is False
        assert manifest.schema_version == "2.2"

    def test_publish_flag(self):
        manifest = Manifest.from_dict({"name": "lib", "version": "1.0.0", "publish": True})
        assert manifest.is_published is True

    def test_missing_sections_default_to_empty(self):
        manifest = Manifest.from_dict({"name": "empty", "version": "1.0.0"})
        assert manifest.contracts == {}
        assert manifest.dependencies == {}

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ManifestNotFoundError):
            Manifest.load(tmp_path / "zos.json")

    def test_invalid_json(self, tmp_path: Path):
        path = tmp_path / "zos.json"
        path.write_text("{")

        with pytest.raises(RecordFormatError, match="is a valid JSON file"):
            Manifest.load(path)


class TestManifestQueries:
    """Test contract and dependency lookups."""

    def test_contract_aliases_and_names(self):
        manifest = Manifest.from_dict(
            {"name": "p", "version": "1.0.0", "contracts": {"Token": "ERC20Token"}}
        )
        assert manifest.contract_aliases == ["Token"]
        assert manifest.contract_names == ["ERC20Token"]
        assert manifest.contract("Token") == "ERC20Token"
        assert manifest.contract("Missing") is None
        assert manifest.has_contract("Token")
        assert not manifest.has_contract("ERC20Token")

    def test_dependency_matches(self, manifest: Manifest):
        assert manifest.dependency_names == ["mock-dep"]
        assert manifest.has_dependency("mock-dep")
        assert manifest.dependency_matches("mock-dep", "1.2.5")
        assert not manifest.dependency_matches("mock-dep", "2.0.0")
        assert not manifest.dependency_matches("other-dep", "1.2.5")
