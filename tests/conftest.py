"""Shared pytest fixtures for upgradeable-deployments tests."""

import json
import shutil
from pathlib import Path
from typing import Any, Dict, Optional

import pytest
from fakes import FakeBackend, FakeChainReader, FakeOracle

from upgradeable_deployments.artifacts import BuildArtifacts
from upgradeable_deployments.manifest import Manifest
from upgradeable_deployments.paths import (
    get_build_artifacts_dir,
    get_manifest_path,
    get_network_file_path,
)
from upgradeable_deployments.reconciler import NetworkReconciler
from upgradeable_deployments.record import NetworkRecord

NETWORK = "test"
SENDER = "0x00000000000000000000000000000000000000ee"


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def project_dir(tmp_path: Path, fixtures_dir: Path) -> Path:
    """Copy the sample project to a temporary directory so tests can modify it."""
    destination = tmp_path / "project"
    shutil.copytree(fixtures_dir / "project", destination)
    return destination


@pytest.fixture
def network() -> str:
    return NETWORK


@pytest.fixture
def sender() -> str:
    return SENDER


@pytest.fixture
def manifest(project_dir: Path) -> Manifest:
    """Load the sample project manifest."""
    return Manifest.load(get_manifest_path(project_dir))


@pytest.fixture
def record(project_dir: Path) -> NetworkRecord:
    """Load (or start) the sample project's record for the test network."""
    return NetworkRecord.load(NETWORK, get_network_file_path(NETWORK, project_dir))


@pytest.fixture
def chain() -> FakeChainReader:
    return FakeChainReader()


@pytest.fixture
def backend(chain: FakeChainReader) -> FakeBackend:
    return FakeBackend(chain)


@pytest.fixture
def oracle() -> FakeOracle:
    return FakeOracle()


@pytest.fixture
def make_reconciler(project_dir: Path, backend: FakeBackend, oracle: FakeOracle, chain: FakeChainReader):
    """Factory building a reconciler on freshly loaded manifest and record, as a new pass would."""

    def _make(record: Optional[NetworkRecord] = None) -> NetworkReconciler:
        return NetworkReconciler(
            Manifest.load(get_manifest_path(project_dir)),
            record or NetworkRecord.load(NETWORK, get_network_file_path(NETWORK, project_dir)),
            backend,
            oracle,
            BuildArtifacts(get_build_artifacts_dir(project_dir)),
            chain=chain,
            project_root=project_dir,
            sender=SENDER,
        )

    return _make


@pytest.fixture
def reconciler(make_reconciler) -> NetworkReconciler:
    return make_reconciler()


@pytest.fixture
def update_manifest(project_dir: Path):
    """Rewrite fields of the sample project's zos.json."""

    def _update(**fields: Any) -> None:
        path = get_manifest_path(project_dir)
        with open(path) as f:
            data = json.load(f)
        data.update(fields)
        with open(path, "w") as f:
            json.dump(data, f, indent=2)

    return _update


@pytest.fixture
def write_artifact(project_dir: Path):
    """Write a build artifact into the sample project's build directory."""

    def _write(contract_name: str, bytecode: str, deployed_bytecode: str, abi=None) -> None:
        data: Dict[str, Any] = {
            "contractName": contract_name,
            "abi": abi or [],
            "bytecode": bytecode,
            "deployedBytecode": deployed_bytecode,
        }
        with open(get_build_artifacts_dir(project_dir) / f"{contract_name}.json", "w") as f:
            json.dump(data, f, indent=2)

    return _write


@pytest.fixture
def write_record(project_dir: Path):
    """Write raw content as the sample project's record for the test network."""

    def _write(data: Dict[str, Any]) -> Path:
        path = get_network_file_path(NETWORK, project_dir)
        with open(path, "w") as f:
            json.dump(data, f, indent=2)
        return path

    return _write
