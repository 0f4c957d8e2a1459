"""Unit tests for contract naming and path helper functions."""

from pathlib import Path

from upgradeable_deployments.naming import (
    from_contract_full_name,
    same_address,
    to_contract_full_name,
)
from upgradeable_deployments.paths import (
    get_build_artifacts_dir,
    get_dependency_root,
    get_manifest_path,
    get_network_file_path,
    get_project_root,
)


class TestContractFullName:
    """Test the keys proxies are stored under."""

    def test_with_package(self):
        assert to_contract_full_name("my-project", "Greeter") == "my-project/Greeter"

    def test_without_package(self):
        assert to_contract_full_name(None, "Greeter") == "Greeter"
        assert to_contract_full_name("", "Greeter") == "Greeter"

    def test_split_with_package(self):
        assert from_contract_full_name("my-project/Greeter") == ("my-project", "Greeter")

    def test_split_without_package(self):
        assert from_contract_full_name("Greeter") == (None, "Greeter")

    def test_split_scoped_package(self):
        """Test that scoped package names keep their slash."""
        assert from_contract_full_name("@org/pkg/Token") == ("@org/pkg", "Token")


class TestSameAddress:
    """Test address comparison."""

    def test_ignores_case(self):
        assert same_address(
            "0xAbCdEf0000000000000000000000000000000001",
            "0xabcdef0000000000000000000000000000000001",
        )

    def test_different_addresses(self):
        assert not same_address(
            "0x0000000000000000000000000000000000000001",
            "0x0000000000000000000000000000000000000002",
        )

    def test_none_only_equals_none(self):
        assert same_address(None, None)
        assert not same_address(None, "0x0000000000000000000000000000000000000001")


class TestProjectPaths:
    """Test project file locations."""

    def test_default_root_is_cwd(self):
        assert get_project_root() == Path.cwd()

    def test_custom_root_is_absolute(self, tmp_path: Path):
        assert get_project_root(str(tmp_path)) == tmp_path.absolute()

    def test_manifest_path(self, tmp_path: Path):
        assert get_manifest_path(tmp_path) == tmp_path / "zos.json"

    def test_network_file_path(self, tmp_path: Path):
        assert get_network_file_path("mainnet", tmp_path) == tmp_path / "zos.mainnet.json"
        assert get_network_file_path("dev-1547", tmp_path).name == "zos.dev-1547.json"

    def test_build_artifacts_dir(self, tmp_path: Path):
        assert get_build_artifacts_dir(tmp_path) == tmp_path / "build" / "contracts"

    def test_dependency_root(self, tmp_path: Path):
        assert get_dependency_root("mock-dep", tmp_path) == tmp_path / "node_modules" / "mock-dep"
        assert get_dependency_root("@org/pkg", tmp_path) == tmp_path / "node_modules" / "@org" / "pkg"
