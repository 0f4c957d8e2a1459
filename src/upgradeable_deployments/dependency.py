"""Dependency resolution and linking for upgradeable-deployments library."""

from pathlib import Path
from typing import Dict, List, Optional, Union

import structlog

from .artifacts import BuildArtifacts, link_artifact, solidity_lib_names
from .backend import DeploymentBackend, Project
from .batch import all_or_error, tag_failure
from .constants import BUILD_ARTIFACTS_DIR, MANIFEST_FILE_NAME, NETWORK_FILE_TEMPLATE
from .exceptions import (
    DependencyNotFoundError,
    DeploymentError,
    UnpublishedDependencyError,
    VersionMismatchError,
)
from .manifest import Manifest
from .paths import get_dependency_root
from .record import NetworkRecord
from .types import DependencyRecord
from .versions import coerce_version, satisfies_version, semantic_version_to_string, try_with_caret

logger = structlog.get_logger(__name__)


def _validate_satisfies_version(
    name: str, version: Optional[str], requirement: Optional[str]
) -> None:
    if not satisfies_version(version, requirement):
        raise VersionMismatchError(
            f"Dependency {name}: required version {requirement} does not match version {version}"
        )


class Dependency:
    """
    An installed dependency package and its own deployment records.

    The dependency's manifest and per-network records are read from
    node_modules/<name> under the project root.
    """

    def __init__(
        self,
        name: str,
        requirement: Optional[str] = None,
        project_root: Optional[Union[Path, str]] = None,
    ):
        """
        Args:
            name: Package name of the dependency
            requirement: npm version range the project requires (defaults to ^<installed version>)
            project_root: Project directory containing node_modules

        Raises:
            DependencyNotFoundError: If the dependency's manifest is missing
            VersionMismatchError: If the installed version does not satisfy requirement
        """
        self.name = name
        self.project_root = project_root
        self.root = get_dependency_root(name, project_root)
        self._manifest: Optional[Manifest] = None
        self._network_records: Dict[str, NetworkRecord] = {}

        package_version = self.get_manifest().version
        _validate_satisfies_version(name, package_version, requirement)
        self.version = package_version
        self.name_and_version = f"{name}@{package_version}"
        self.requirement = requirement or try_with_caret(package_version)

    @classmethod
    def from_name_with_version(
        cls, name_and_version: str, project_root: Optional[Union[Path, str]] = None
    ) -> "Dependency":
        """Build from "name@range", keeping the leading "@" of scoped package names."""
        name, separator, requirement = name_and_version.rpartition("@")
        if not separator or not name:
            return cls(name_and_version, None, project_root)
        return cls(name, requirement or None, project_root)

    def get_manifest(self) -> Manifest:
        if self._manifest is None:
            path = self.root / MANIFEST_FILE_NAME
            if not path.exists():
                raise DependencyNotFoundError(
                    f"Could not find a {MANIFEST_FILE_NAME} file for '{self.name}'. "
                    "Make sure it is provided by the installed package."
                )
            self._manifest = Manifest.load(path)
        return self._manifest

    def _network_record_path(self, network: str) -> Path:
        return self.root / NETWORK_FILE_TEMPLATE.format(network=network)

    def get_network_record(self, network: str) -> NetworkRecord:
        """
        Read the dependency's own deployment record for a network.

        Raises:
            DependencyNotFoundError: If the dependency has no record for the network
            VersionMismatchError: If the deployed version does not satisfy the requirement
        """
        if network not in self._network_records:
            path = self._network_record_path(network)
            if not path.exists():
                raise DependencyNotFoundError(
                    f"Could not find a zos file for network '{network}' for '{self.name}'"
                )
            record = NetworkRecord.load(network, path)
            _validate_satisfies_version(self.name, record.version, self.requirement)
            self._network_records[network] = record
        return self._network_records[network]

    def is_deployed_on_network(self, network: str) -> bool:
        if not self._network_record_path(network).exists():
            return False
        return bool(self.get_network_record(network).package_address)

    async def deploy(self, backend: DeploymentBackend) -> Project:
        """
        Deploy the dependency's contracts in a package project of its own.

        Libraries are deployed first, each after the libraries it links to;
        contracts are then linked against them.

        Returns:
            The package project holding the deployed implementations

        Raises:
            DeploymentError: If libraries reference each other circularly
        """
        version = str(coerce_version(self.version) or self.version)
        project = await backend.fetch_or_deploy_package_project(self.name, version)

        artifacts = BuildArtifacts(self.root.joinpath(*BUILD_ARTIFACTS_DIR))
        contracts = [
            (alias, artifacts.get(contract_name))
            for alias, contract_name in self.get_manifest().contracts.items()
        ]

        # Libraries referenced directly or through other libraries
        library_names: List[str] = []
        pending = [artifact for _, artifact in contracts]
        while pending:
            for library_name in solidity_lib_names(pending.pop(0).bytecode):
                if library_name not in library_names:
                    library_names.append(library_name)
                    pending.append(artifacts.get(library_name))

        libraries: Dict[str, str] = {}
        remaining = list(library_names)
        while remaining:
            ready = [
                name
                for name in remaining
                if all(
                    linked == name or linked not in remaining
                    for linked in solidity_lib_names(artifacts.get(name).bytecode)
                )
            ]
            if not ready:
                raise DeploymentError(
                    f"Circular library references in {self.name} between: "
                    + ", ".join(sorted(remaining))
                )
            deployed = await all_or_error(
                tag_failure(
                    name,
                    "deployment",
                    project.set_implementation(link_artifact(artifacts.get(name), libraries), name),
                )
                for name in ready
            )
            libraries.update((name, instance.address) for name, instance in zip(ready, deployed))
            remaining = [name for name in remaining if name not in ready]

        await all_or_error(
            tag_failure(
                alias, "deployment", project.set_implementation(link_artifact(artifact, libraries), alias)
            )
            for alias, artifact in contracts
        )
        return project


class DependencyLinker:
    """
    Brings the dependencies linked to a project in line with its manifest.

    Each operation mutates the network record only after the corresponding
    backend call succeeded, and only under its own dependency name.
    """

    def __init__(
        self,
        record: NetworkRecord,
        manifest: Manifest,
        project_root: Optional[Union[Path, str]] = None,
    ):
        self.record = record
        self.manifest = manifest
        self.project_root = project_root

    @property
    def network(self) -> str:
        return self.record.network

    def dependency(self, name: str, requirement: Optional[str] = None) -> Dependency:
        return Dependency(name, requirement, self.project_root)

    async def link_dependencies(self, project: Project) -> None:
        """Link every manifest dependency and unlink the ones the manifest dropped."""
        operations = [
            self.link_dependency(project, name, requirement)
            for name, requirement in self.manifest.dependencies.items()
        ]
        operations += [
            self.unlink_dependency(project, name)
            for name in self.record.dependencies_names_missing_from(self.manifest)
        ]
        await all_or_error(operations)

    async def link_dependency(self, project: Project, name: str, requirement: Optional[str]) -> bool:
        """
        Link one dependency if the record does not already satisfy the requirement.

        Returns:
            True if the project was (re)linked, False if nothing had to be done

        Raises:
            UnpublishedDependencyError: If the dependency has no package on this network
            BackendOperationError: If the backend failed to link it
        """
        return await tag_failure(
            f"Dependency {name}@{requirement}", "linking", self._link(project, name, requirement)
        )

    async def _link(self, project: Project, name: str, requirement: Optional[str]) -> bool:
        if self.record.dependency_has_matching_custom_deploy(name, self.manifest):
            linked = self.record.get_dependency(name)
            logger.debug("Using custom deployment of dependency", dependency=name)
            await project.set_dependency(name, linked.package, linked.version)
            return True

        if self.record.dependency_satisfies_version_requirement(name, self.manifest):
            return False

        published = self.dependency(name, requirement).get_network_record(self.network)
        if not published.package_address:
            raise UnpublishedDependencyError(
                f"Dependency '{name}' has not been published to network '{self.network}', "
                "so it cannot be linked. Hint: you can create a custom deployment of all "
                "unpublished dependencies by deploying dependencies explicitly first."
            )

        logger.info("Linking dependency", dependency=name, version=published.version)
        await project.set_dependency(name, published.package_address, published.version)
        self.record.set_dependency(
            name, DependencyRecord(package=published.package_address, version=published.version)
        )
        logger.info("Linked dependency", dependency=name, version=published.version)
        return True

    async def unlink_dependency(self, project: Project, name: str) -> None:
        """Unlink a dependency from the project, if linked, and drop it from the record."""
        await tag_failure(f"Dependency {name}", "unlinking", self._unlink(project, name))

    async def _unlink(self, project: Project, name: str) -> None:
        if await project.unset_dependency(name):
            logger.info("Unlinked dependency", dependency=name)
        self.record.unset_dependency(name)

    def dependencies_for_deploy(self) -> List[str]:
        """Manifest dependencies that are neither published on the network nor custom deployed."""
        return [
            name
            for name, requirement in self.manifest.dependencies.items()
            if not self.dependency(name, requirement).is_deployed_on_network(self.network)
            and not self.record.dependency_has_matching_custom_deploy(name, self.manifest)
        ]

    async def deploy_dependencies(self, backend: DeploymentBackend) -> None:
        """Custom-deploy every dependency not published to the network."""
        await all_or_error(
            self.deploy_dependency_if_needed(backend, name, requirement)
            for name, requirement in self.manifest.dependencies.items()
        )

    async def deploy_dependency_if_needed(
        self, backend: DeploymentBackend, name: str, requirement: Optional[str]
    ) -> bool:
        """
        Custom-deploy a dependency unless it is published or already custom deployed.

        Returns:
            True if the dependency was deployed
        """
        return await tag_failure(
            f"Dependency {name}", "deployment", self._deploy_if_needed(backend, name, requirement)
        )

    async def _deploy_if_needed(
        self, backend: DeploymentBackend, name: str, requirement: Optional[str]
    ) -> bool:
        dependency = self.dependency(name, requirement)
        if dependency.is_deployed_on_network(
            self.network
        ) or self.record.dependency_has_matching_custom_deploy(name, self.manifest):
            return False

        logger.info("Deploying dependency", dependency=name, network=self.network)
        project = await dependency.deploy(backend)
        self.record.set_dependency(
            name,
            DependencyRecord(
                package=project.addresses.package or "",
                version=semantic_version_to_string(dependency.version),
                custom_deploy=True,
            ),
        )
        logger.info("Deployed dependency", dependency=name, network=self.network)
        return True
