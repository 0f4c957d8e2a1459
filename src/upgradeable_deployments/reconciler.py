"""Main API for upgradeable-deployments library."""

import asyncio
from dataclasses import asdict, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import structlog

from .artifacts import (
    BuildArtifacts,
    body_code,
    constructor_code,
    initializer_methods,
    link_artifact,
    solidity_lib_names,
)
from .backend import (
    ChainReader,
    DeploymentBackend,
    Project,
    ProjectAddresses,
    ProxyCall,
    ValidationOracle,
)
from .batch import all_or_error, tag_failure
from .constants import BUILD_ARTIFACTS_DIR
from .dependency import Dependency, DependencyLinker
from .exceptions import (
    AddressInUseError,
    ContractNotFoundError,
    DeploymentError,
    FrozenProjectError,
    NamingCollisionError,
    ProxyKindError,
    ValidationError,
)
from .manifest import Manifest
from .migration import SchemaMigrator
from .naming import same_address, to_contract_full_name
from .ownership import owned_proxies
from .paths import get_build_artifacts_dir, get_manifest_path, get_network_file_path
from .record import NetworkRecord
from .rpc import RpcChainReader
from .types import (
    ContractArtifact,
    ContractRecord,
    DeployedContract,
    ProxyKind,
    ProxyRecord,
    SolidityLibRecord,
    ValidationWarning,
)
from .versions import semantic_version_to_string

logger = structlog.get_logger(__name__)

ContractsToPush = List[Tuple[str, ContractArtifact]]


def new_validation_errors(
    warnings: Sequence[ValidationWarning], previous: Optional[List[Dict[str, Any]]]
) -> List[ValidationWarning]:
    """Warnings not already reported when the contract was last deployed."""
    known = {(item.get("kind"), item.get("message")) for item in previous or []}
    return [warning for warning in warnings if (warning.kind, warning.message) not in known]


class NetworkReconciler:
    """
    Reconciles a project manifest with its deployment record on one network.

    The reconciler owns the record for the duration of a pass: it decides what
    has to be deployed, upgraded, linked or removed, drives the deployment
    backend accordingly and mutates the record only after each backend call
    succeeded. Persisting the record is left to write_record_if_needed().
    """

    def __init__(
        self,
        manifest: Manifest,
        record: NetworkRecord,
        backend: DeploymentBackend,
        oracle: ValidationOracle,
        artifacts: BuildArtifacts,
        chain: Optional[ChainReader] = None,
        project_root: Optional[Union[Path, str]] = None,
        sender: Optional[str] = None,
        rpc_url: Optional[str] = None,
    ):
        """
        Args:
            manifest: Desired state of the project
            record: Deployment record of the target network
            backend: Deployment backend submitting transactions
            oracle: Bytecode digests and upgrade-safety validation
            artifacts: Build artifacts of the project's contracts
            chain: Read-only chain access (defaults to an RpcChainReader on rpc_url)
            project_root: Project directory, used to locate installed dependencies
            sender: Account sending transactions; legacy owner of pre-migration proxies
            rpc_url: JSON-RPC endpoint for the default chain reader
        """
        self.manifest = manifest
        self.record = record
        self.backend = backend
        self.oracle = oracle
        self.artifacts = artifacts
        self.project_root = project_root
        self.sender = sender
        self.project: Optional[Project] = None

        self._chain = chain
        self._rpc_url = rpc_url
        self._migrator: Optional[SchemaMigrator] = None
        self._validations: Dict[str, Tuple[List[ValidationWarning], Dict[str, Any]]] = {}

        self.linker = DependencyLinker(record, manifest, project_root)

    @property
    def chain(self) -> ChainReader:
        if self._chain is None:
            self._chain = RpcChainReader(self._rpc_url)
        return self._chain

    @property
    def migrator(self) -> SchemaMigrator:
        if self._migrator is None:
            self._migrator = SchemaMigrator(
                self.record, self.manifest, self.backend, self._chain, self.sender, self._rpc_url
            )
        return self._migrator

    @property
    def network(self) -> str:
        return self.record.network

    @property
    def package_version(self) -> str:
        return self.manifest.version

    @property
    def current_version(self) -> str:
        return self.record.version or self.manifest.version

    @property
    def is_published(self) -> bool:
        return self.manifest.is_published or self.record.app_address is not None

    def check_not_frozen(self) -> None:
        if self.record.frozen:
            raise FrozenProjectError(
                "Cannot modify contracts in a frozen version. "
                "Bump the project version to create a new version first."
            )

    # Project

    def _project_addresses(self) -> ProjectAddresses:
        return ProjectAddresses(
            app=self.record.app_address,
            package=self.record.package_address,
            provider=self.record.provider_address,
            proxy_admin=self.record.proxy_admin_address,
            proxy_factory=self.record.proxy_factory_address,
        )

    def _register_project(self, project: Project, version: str) -> None:
        addresses = project.addresses
        if addresses.app:
            self.record.app_address = addresses.app
        if addresses.package:
            self.record.package_address = addresses.package
        if addresses.provider:
            self.record.provider_address = addresses.provider
        if addresses.proxy_admin and not self.record.proxy_admin_address:
            self.record.proxy_admin_address = addresses.proxy_admin
        if addresses.proxy_factory and not self.record.proxy_factory_address:
            self.record.proxy_factory_address = addresses.proxy_factory
        self.record.version = version

    async def fetch_or_deploy(self, version: Optional[str] = None) -> Project:
        """
        Fetch the project at a version, deploying it if needed.

        Published projects are handled through an App project, unpublished ones
        through a ProxyAdmin project; the variant is chosen once here.
        """
        version = version or self.package_version
        if self.is_published:
            project = await self.backend.fetch_or_deploy_app_project(
                self.manifest.name, version, self._project_addresses()
            )
        else:
            project = await self.backend.fetch_or_deploy_proxy_admin_project(
                self.manifest.name, version, self._project_addresses()
            )
        self._register_project(project, version)
        self.project = project
        return project

    async def deploy_proxy_admin(self) -> None:
        project = await self.fetch_or_deploy(self.package_version)
        await project.ensure_proxy_admin()
        await self._try_register_proxy_admin()

    async def deploy_proxy_factory(self) -> None:
        project = await self.fetch_or_deploy(self.package_version)
        await project.ensure_proxy_factory()
        await self._try_register_proxy_factory()

    async def freeze(self) -> None:
        """Freeze the current version so its contracts can no longer change."""
        if not self.record.package_address:
            raise DeploymentError("Cannot freeze an unpublished project")
        project = await self.fetch_or_deploy(self.current_version)
        if self.is_published:
            await project.freeze()
        self.record.frozen = True

    async def publish(self) -> bool:
        """
        Promote an unpublished project into a published App project.

        Returns:
            False if the project was already published on this network
        """
        if self.record.app_address:
            logger.info("Project is already published", network=self.network)
            return False

        await self.migrator.migrate_if_needed()
        proxy_admin_project = await self.backend.fetch_or_deploy_proxy_admin_project(
            self.manifest.name, self.current_version, self._project_addresses()
        )
        self.project = await self.backend.publish_project(
            proxy_admin_project, self.manifest.name, self.package_version
        )
        self._register_project(self.project, self.package_version)
        logger.info(f"Published to {self.network}!")
        return True

    # Push

    def _new_version_required(self) -> bool:
        return self.package_version != self.record.version and self.is_published

    def _check_version(self) -> None:
        if self._new_version_required():
            self.record.frozen = False
            self.record.clear_contracts()

    def _bytecode_hash(self, artifact: ContractArtifact) -> str:
        return self.oracle.bytecode_hash(artifact.bytecode)

    async def push(
        self, reupload: bool = False, force: bool = False, deploy_dependencies: bool = False
    ) -> None:
        """
        Deploy new and changed contracts and libraries, and remove dropped ones.

        Args:
            reupload: Redeploy every contract and library, changed or not
            force: Push even if validation reports blocking warnings
            deploy_dependencies: Custom-deploy dependencies not published to the network

        Raises:
            NamingCollisionError: If a library is named like a contract alias
            ValidationError: If validation fails and force is not set
            FrozenProjectError: If the version is frozen
            BackendOperationError, BatchError: If deployments fail
        """
        changed_libraries = self._solidity_libs_for_push(only_changed=not reupload)
        contracts = self._contracts_for_push(
            only_changed=not reupload, changed_libraries=changed_libraries
        )

        if not self.validate_contracts(contracts) and not force:
            raise ValidationError(
                "One or more contracts have validation errors. Please review the items "
                "listed above and fix them, or push again with the force option."
            )

        self._check_version()
        project = await self.fetch_or_deploy(self.package_version)
        if deploy_dependencies:
            await self.linker.deploy_dependencies(self.backend)
        await self.linker.link_dependencies(project)

        self.check_not_frozen()
        await self.upload_solidity_libs(changed_libraries)
        await all_or_error(
            [self.upload_contract(alias, artifact) for alias, artifact in contracts]
            + [
                self.unset_contract(alias)
                for alias in self.record.contract_aliases_missing_from(self.manifest)
            ]
        )
        await self._unset_solidity_libs()

        if not contracts and not changed_libraries:
            logger.info("All contracts are up to date", network=self.network)
        else:
            logger.info("All contracts have been deployed", network=self.network)

    def _all_solidity_lib_names(self, contract_names: Sequence[str]) -> List[str]:
        """Libraries referenced by the contracts, directly or through other libraries."""
        names: List[str] = []
        pending = [self.artifacts.get(name) for name in contract_names]
        while pending:
            artifact = pending.pop(0)
            for library_name in solidity_lib_names(artifact.bytecode):
                if library_name not in names:
                    names.append(library_name)
                    pending.append(self.artifacts.get(library_name))
        return names

    def _has_solidity_lib_changed(self, library: ContractArtifact) -> bool:
        return not self.record.has_same_bytecode(
            library.contract_name, self._bytecode_hash(library)
        )

    def _has_changed_libraries(
        self, artifact: ContractArtifact, changed_libraries: Sequence[ContractArtifact]
    ) -> bool:
        changed_names = {library.contract_name for library in changed_libraries}
        return any(name in changed_names for name in solidity_lib_names(artifact.bytecode))

    def _solidity_libs_for_push(self, only_changed: bool = False) -> List[ContractArtifact]:
        library_names = self._all_solidity_lib_names(self.manifest.contract_names)

        clashes = [name for name in library_names if name in self.manifest.contract_aliases]
        if clashes:
            raise NamingCollisionError(
                "Cannot upload libraries with the same name as a contract alias: "
                + ", ".join(clashes)
            )

        libraries = [self.artifacts.get(name) for name in library_names]
        changed = [
            library
            for library in libraries
            if not self.record.has_solidity_lib(library.contract_name)
            or not only_changed
            or self._has_solidity_lib_changed(library)
        ]

        # Libraries linking a changed library get new bytecode too
        while True:
            dependents = [
                library
                for library in libraries
                if library not in changed and self._has_changed_libraries(library, changed)
            ]
            if not dependents:
                return changed
            changed += dependents

    def _contracts_for_push(
        self, only_changed: bool = False, changed_libraries: Sequence[ContractArtifact] = ()
    ) -> ContractsToPush:
        new_version = self._new_version_required()
        contracts: ContractsToPush = []
        for alias, contract_name in self.manifest.contracts.items():
            artifact = self.artifacts.get(contract_name)
            if (
                new_version
                or not only_changed
                or self.has_contract_changed(alias, artifact)
                or self._has_changed_libraries(artifact, changed_libraries)
            ):
                contracts.append((alias, artifact))
        return contracts

    def validate_contracts(self, contracts: ContractsToPush) -> bool:
        results = [self.validate_contract(alias, artifact) for alias, artifact in contracts]
        return all(results)

    def validate_contract(self, alias: str, artifact: ContractArtifact) -> bool:
        """
        Validate a contract against its previously deployed version.

        Warnings and storage layout are kept to be stored with the contract
        once deployed. Only warnings that were not already reported for the
        deployed version can block the push.

        Returns:
            True if no new blocking warning was found
        """
        try:
            existing = self.record.get_contract(alias)
            warnings = self.oracle.validate(artifact, existing)
            fresh = new_validation_errors(warnings, existing.warnings if existing else None)
            for warning in fresh:
                logger.warning(
                    warning.message,
                    contract=artifact.contract_name,
                    kind=warning.kind,
                    blocking=warning.blocking,
                )
            self._validations[alias] = (warnings, self.oracle.storage_layout(artifact))
            return not any(warning.blocking for warning in fresh)
        except Exception as e:
            logger.error(
                f"Error while validating contract {artifact.contract_name}: {e}", alias=alias
            )
            return False

    def _link_solidity_libs(self, artifact: ContractArtifact) -> ContractArtifact:
        libraries = self.record.get_solidity_libs(solidity_lib_names(artifact.bytecode))
        return link_artifact(artifact, libraries)

    def _implementation_hashes(self, instance: DeployedContract) -> Dict[str, str]:
        artifact = instance.artifact
        return {
            "address": instance.address,
            "local_bytecode_hash": self.oracle.bytecode_hash(artifact.bytecode),
            "deployed_bytecode_hash": self.oracle.bytecode_hash(
                artifact.linked_bytecode or artifact.bytecode
            ),
            "body_bytecode_hash": self.oracle.bytecode_hash(body_code(artifact)),
            "constructor_code": constructor_code(artifact),
        }

    async def upload_solidity_libs(self, libraries: Sequence[ContractArtifact]) -> None:
        """
        Deploy libraries, each after the libraries it links to.

        Independent libraries are deployed concurrently, one layer at a time.
        """
        pending = list(libraries)
        while pending:
            pending_names = {library.contract_name for library in pending}
            ready = [
                library
                for library in pending
                if not any(
                    name in pending_names and name != library.contract_name
                    for name in solidity_lib_names(library.bytecode)
                )
            ]
            if not ready:
                raise DeploymentError(
                    "Circular library references between: " + ", ".join(sorted(pending_names))
                )
            await all_or_error(self._upload_solidity_lib(library) for library in ready)
            pending = [library for library in pending if library not in ready]

    async def _upload_solidity_lib(self, library: ContractArtifact) -> None:
        name = library.contract_name
        await tag_failure(name, "deployment", self._set_solidity_lib(name, library))

    async def _set_solidity_lib(self, name: str, library: ContractArtifact) -> None:
        logger.info(f"Uploading {name} library", network=self.network)
        instance = await self.project.set_implementation(self._link_solidity_libs(library), name)
        self.record.set_solidity_lib(name, SolidityLibRecord(**self._implementation_hashes(instance)))
        logger.info(f"{name} library uploaded", address=instance.address)

    async def upload_contract(self, alias: str, artifact: ContractArtifact) -> None:
        """Deploy a contract implementation and record it under its alias."""
        await tag_failure(alias, "deployment", self._set_contract(alias, artifact))

    async def _set_contract(self, alias: str, artifact: ContractArtifact) -> None:
        linked = self._link_solidity_libs(artifact)
        logger.info(f"Validating and deploying contract {artifact.contract_name}", alias=alias)
        instance = await self.project.set_implementation(linked, alias)

        warnings, layout = self._validations.get(alias, ([], {}))
        self.record.set_contract(
            alias,
            ContractRecord(
                **self._implementation_hashes(instance),
                types=layout.get("types"),
                storage=layout.get("storage"),
                warnings=[asdict(warning) for warning in warnings],
            ),
        )
        logger.info(f"Contract {artifact.contract_name} deployed", address=instance.address)

    async def unset_contract(self, alias: str) -> None:
        """Remove a contract the manifest no longer declares."""
        await tag_failure(alias, "removal", self._unset_implementation(alias, is_library=False))

    async def _unset_solidity_libs(self) -> None:
        library_names = self._all_solidity_lib_names(self.manifest.contract_names)
        await all_or_error(
            tag_failure(name, "removal", self._unset_implementation(name, is_library=True))
            for name in self.record.solidity_libs_missing(library_names)
        )

    async def _unset_implementation(self, name: str, is_library: bool) -> None:
        logger.info(f"Removing {name} {'library' if is_library else 'contract'}")
        await self.project.unset_implementation(name)
        if is_library:
            self.record.unset_solidity_lib(name)
        else:
            self.record.unset_contract(name)
        logger.info(f"{name} removed")

    # Deployment checks

    def is_local_contract(self, alias: str) -> bool:
        return self.manifest.has_contract(alias)

    def is_contract_deployed(self, alias: str) -> bool:
        return not self.is_local_contract(alias) or self.record.has_contract(alias)

    def has_contract_changed(self, alias: str, artifact: Optional[ContractArtifact] = None) -> bool:
        """True if a manifest contract is undeployed or its bytecode differs from the deployed one."""
        if not self.is_local_contract(alias):
            return False
        if not self.is_contract_deployed(alias):
            return True
        if artifact is None:
            artifact = self.artifacts.get(self.manifest.contract(alias))
        return not self.record.has_same_bytecode(alias, self._bytecode_hash(artifact))

    def _error_for_local_contract_deployed(self, alias: str) -> Optional[str]:
        if not self.is_local_contract(alias):
            return f"Contract {alias} not found in this project"
        if not self.is_contract_deployed(alias):
            return f"Contract {alias} is not deployed to {self.network}."
        if self.has_contract_changed(alias):
            return f"Contract {alias} has changed locally since the last deploy, consider pushing again."
        return None

    def _error_for_local_contracts_deployed(self) -> Optional[str]:
        aliases = self.manifest.contract_aliases
        missing = [alias for alias in aliases if not self.is_contract_deployed(alias)]
        if missing:
            return f"Contracts {', '.join(missing)} are not deployed."
        changed = [alias for alias in aliases if self.has_contract_changed(alias)]
        if changed:
            return f"Contracts {', '.join(changed)} have changed since the last deploy."
        return None

    def _error_for_contract_deployed(self, package_name: str, alias: str) -> Optional[str]:
        if package_name == self.manifest.name:
            return self._error_for_local_contract_deployed(alias)
        if not self.manifest.has_dependency(package_name):
            return f"Dependency {package_name} not found in project."
        if not self.record.has_dependency(package_name):
            return f"Dependency {package_name} has not been linked yet. Please push first."
        dependency = Dependency(
            package_name, self.manifest.dependencies[package_name], self.project_root
        )
        if not dependency.get_manifest().contract(alias):
            return f"Contract {alias} is not provided by {package_name}."
        return None

    def _handle_error_message(self, message: Optional[str], throw_if_fail: bool) -> None:
        if not message:
            return
        if throw_if_fail:
            raise ContractNotFoundError(message)
        logger.warning(message, network=self.network)

    def check_contract_deployed(
        self, package_name: Optional[str], alias: str, throw_if_fail: bool = False
    ) -> None:
        package_name = package_name or self.manifest.name
        self._handle_error_message(
            self._error_for_contract_deployed(package_name, alias), throw_if_fail
        )

    def check_local_contract_deployed(self, alias: str, throw_if_fail: bool = False) -> None:
        self._handle_error_message(self._error_for_local_contract_deployed(alias), throw_if_fail)

    def check_local_contracts_deployed(self, throw_if_fail: bool = False) -> None:
        self._handle_error_message(self._error_for_local_contracts_deployed(), throw_if_fail)

    # Proxies

    def get_contract_artifact(self, package_name: str, alias: str) -> ContractArtifact:
        """
        Artifact of a contract provided by the project or one of its dependencies.

        Raises:
            ContractNotFoundError: If the package does not declare the alias
        """
        if package_name == self.manifest.name:
            contract_name = self.manifest.contract(alias)
            if contract_name is None:
                raise ContractNotFoundError(f"Contract {alias} not found in this project")
            return self.artifacts.get(contract_name)

        dependency = Dependency(
            package_name, self.manifest.dependencies.get(package_name), self.project_root
        )
        contract_name = dependency.get_manifest().contract(alias)
        if contract_name is None:
            raise ContractNotFoundError(f"Contract {alias} is not provided by {package_name}.")
        return BuildArtifacts(dependency.root.joinpath(*BUILD_ARTIFACTS_DIR)).get(contract_name)

    def check_initialization(self, artifact: ContractArtifact, init_method: Optional[str]) -> None:
        """Warn when a contract has an initializer but the proxy will not call one."""
        if init_method:
            return
        initializers = initializer_methods(artifact.abi)
        if not initializers:
            return
        logger.warning(
            f"Possible initialization method ({', '.join(initializers)}) found in contract. "
            "Make sure you initialize your instance.",
            contract=artifact.contract_name,
        )

    async def _package_version(self, package_name: str) -> str:
        if package_name == self.manifest.name:
            return self.current_version
        return semantic_version_to_string(await self.project.get_dependency_version(package_name))

    async def _try_register_proxy_admin(self, address: Optional[str] = None) -> None:
        if self.record.proxy_admin_address:
            return
        if address is None and self.project is not None:
            address = await self.project.get_admin_address()
        if address:
            self.record.proxy_admin_address = address

    async def _try_register_proxy_factory(self, address: Optional[str] = None) -> None:
        if self.record.proxy_factory_address:
            return
        if address is None and self.project is not None:
            address = self.project.addresses.proxy_factory
        if address:
            self.record.proxy_factory_address = address

    async def get_proxy_deployment_address(self, salt: str, sender: Optional[str] = None) -> str:
        """Address a salted upgradeable proxy will be deployed at."""
        await self.migrator.migrate_if_needed()
        project = await self.fetch_or_deploy(self.current_version)
        address = await project.get_proxy_deployment_address(salt, sender)
        await self._try_register_proxy_factory()
        return address

    async def _check_deployment_address(self, salt: str) -> None:
        address = await self.project.get_proxy_deployment_address(salt, None)
        if await self.chain.has_code(address):
            raise AddressInUseError(f"Deployment address for salt {salt} is already in use")

    async def _create_proxy_instance(
        self,
        kind: ProxyKind,
        salt: Optional[str],
        artifact: ContractArtifact,
        signature: Optional[str],
        call: ProxyCall,
    ) -> DeployedContract:
        if kind is ProxyKind.UPGRADEABLE:
            if salt:
                return await self.project.create_proxy_with_salt(artifact, salt, signature, call)
            return await self.project.create_proxy(artifact, call)
        if kind is ProxyKind.MINIMAL:
            return await self.project.create_minimal_proxy(artifact, call)
        raise ProxyKindError(f"Unknown proxy type {kind}")

    async def create_proxy(
        self,
        contract_alias: str,
        package_name: Optional[str] = None,
        init_method: Optional[str] = None,
        init_args: Optional[List[Any]] = None,
        admin: Optional[str] = None,
        salt: Optional[str] = None,
        signature: Optional[str] = None,
        kind: ProxyKind = ProxyKind.UPGRADEABLE,
    ) -> DeployedContract:
        """
        Create a proxy of a contract and record it.

        Args:
            contract_alias: Alias of the contract in its package
            package_name: Package providing the contract (defaults to this project)
            init_method: Initializer to call on creation
            init_args: Initializer arguments
            admin: Admin of the new proxy (defaults to the project's ProxyAdmin)
            salt: Salt for a deterministic address (upgradeable proxies only)
            signature: Signature authorizing a salted deployment on behalf of its signer
            kind: Proxy kind

        Returns:
            The proxy instance

        Raises:
            ProxyKindError: If a salt is given for a minimal proxy
            AddressInUseError: If the salted deployment address already holds code
        """
        if kind is ProxyKind.MINIMAL and salt:
            raise ProxyKindError(
                "Cannot create a minimal proxy with a precomputed address, "
                "use an Upgradeable proxy instead."
            )
        try:
            await self.migrator.migrate_if_needed()
            await self.fetch_or_deploy(self.current_version)
            package_name = package_name or self.manifest.name
            artifact = self._link_solidity_libs(
                self.get_contract_artifact(package_name, contract_alias)
            )
            self.check_initialization(artifact, init_method)
            if salt:
                await self._check_deployment_address(salt)

            call = ProxyCall(
                package_name=package_name,
                contract_name=contract_alias,
                init_method=init_method,
                init_args=list(init_args or []),
                admin=admin,
            )
            instance = await self._create_proxy_instance(kind, salt, artifact, signature, call)
            await self._try_register_proxy_admin()

            implementation = await self.chain.proxy_implementation(instance.address, kind)
            self.record.add_proxy(
                ProxyRecord(
                    address=instance.address,
                    contract=contract_alias,
                    package=package_name,
                    version=await self._package_version(package_name),
                    implementation=implementation,
                    admin=(admin or self.record.proxy_admin_address)
                    if kind is ProxyKind.UPGRADEABLE
                    else None,
                    kind=kind,
                )
            )
            logger.info(
                "Proxy created",
                contract=to_contract_full_name(package_name, contract_alias),
                address=instance.address,
                kind=kind.value,
            )
            return instance
        finally:
            await self._try_register_proxy_admin()
            await self._try_register_proxy_factory()

    def _fetch_owned_proxies(
        self,
        package_name: Optional[str] = None,
        contract_alias: Optional[str] = None,
        proxy_address: Optional[str] = None,
    ) -> List[ProxyRecord]:
        package_name = package_name or (self.manifest.name if contract_alias else None)
        return owned_proxies(self.record, package_name, contract_alias, proxy_address)

    async def set_proxies_admin(
        self,
        package_name: Optional[str],
        contract_alias: Optional[str],
        proxy_address: Optional[str],
        new_admin: str,
    ) -> List[ProxyRecord]:
        """
        Hand matching owned proxies over to a new admin.

        Returns:
            The proxies whose admin was changed
        """
        await self.migrator.migrate_if_needed()
        proxies = self._fetch_owned_proxies(package_name, contract_alias, proxy_address)
        if not proxies:
            return []
        await self.fetch_or_deploy(self.current_version)
        await self._change_proxies_admin(proxies, new_admin)
        return proxies

    async def _change_proxies_admin(self, proxies: Sequence[ProxyRecord], new_admin: str) -> None:
        await all_or_error(
            tag_failure(
                f"Proxy {to_contract_full_name(proxy.package, proxy.contract)} at {proxy.address}",
                "admin change",
                self._change_proxy_admin(proxy, new_admin),
            )
            for proxy in proxies
        )

    async def _change_proxy_admin(self, proxy: ProxyRecord, new_admin: str) -> None:
        await self.project.change_proxy_admin(proxy.address, new_admin)
        self.record.update_proxy(proxy, lambda p: replace(p, admin=new_admin))

    async def set_proxy_admin_owner(self, new_owner: str) -> None:
        """Transfer ownership of the project's ProxyAdmin."""
        await self.migrator.migrate_if_needed()
        project = await self.fetch_or_deploy(self.current_version)
        await project.transfer_admin_ownership(new_owner)

    async def upgrade_proxies(
        self,
        package_name: Optional[str] = None,
        contract_alias: Optional[str] = None,
        proxy_address: Optional[str] = None,
        init_method: Optional[str] = None,
        init_args: Optional[List[Any]] = None,
    ) -> List[ProxyRecord]:
        """
        Point matching owned proxies at the current implementation of their contract.

        Returns:
            The proxies that were checked (upgraded or already up to date)
        """
        await self.migrator.migrate_if_needed()
        proxies = self._fetch_owned_proxies(package_name, contract_alias, proxy_address)
        if not proxies:
            return []
        await self.fetch_or_deploy(self.current_version)

        await all_or_error(
            tag_failure(
                f"Proxy {to_contract_full_name(proxy.package, proxy.contract)} at {proxy.address}",
                "upgrade",
                self._upgrade_proxy(proxy, init_method, init_args),
            )
            for proxy in proxies
        )
        return proxies

    async def _upgrade_proxy(
        self, proxy: ProxyRecord, init_method: Optional[str], init_args: Optional[List[Any]]
    ) -> None:
        package_name = proxy.package or self.manifest.name
        artifact = self._link_solidity_libs(self.get_contract_artifact(package_name, proxy.contract))
        current_implementation = await self.chain.proxy_implementation(proxy.address, proxy.kind)
        contract_implementation = await self.project.get_implementation(package_name, proxy.contract)
        package_version = await self._package_version(package_name)

        if not same_address(current_implementation, contract_implementation):
            await self.project.upgrade_proxy(
                proxy.address,
                artifact,
                ProxyCall(
                    package_name=package_name,
                    contract_name=proxy.contract,
                    init_method=init_method,
                    init_args=list(init_args or []),
                ),
            )
            new_implementation = contract_implementation
            logger.info(
                f"Contract {proxy.contract} at {proxy.address} upgraded",
                implementation=new_implementation,
            )
        else:
            logger.info(f"Contract {proxy.contract} at {proxy.address} is up to date.")
            new_implementation = current_implementation

        self.record.update_proxy(
            proxy,
            lambda p: replace(p, implementation=new_implementation, version=package_version),
        )

    # Persistence

    def write_record_if_needed(self) -> bool:
        return self.record.write()


async def push(
    network: str,
    backend: DeploymentBackend,
    oracle: ValidationOracle,
    project_root: Optional[Union[Path, str]] = None,
    chain: Optional[ChainReader] = None,
    sender: Optional[str] = None,
    reupload: bool = False,
    force: bool = False,
    deploy_dependencies: bool = False,
    timeout: Optional[float] = None,
) -> NetworkRecord:
    """
    Run one reconciliation pass of a project against a network and persist the result.

    The record is written only if the pass succeeds and changed it. On failure
    or timeout the file keeps the state of the last successful pass.

    Args:
        network: Network name
        backend: Deployment backend
        oracle: Validation oracle
        project_root: Project directory holding zos.json (defaults to the current directory)
        chain: Read-only chain access (defaults to an RpcChainReader on $DEPLOYMENTS_RPC_URL)
        sender: Account sending transactions
        reupload: Redeploy every contract and library
        force: Push despite blocking validation warnings
        deploy_dependencies: Custom-deploy dependencies not published to the network
        timeout: Seconds after which the whole pass is cancelled

    Returns:
        The reconciled network record

    Raises:
        asyncio.TimeoutError: If the pass exceeds timeout
    """
    manifest = Manifest.load(get_manifest_path(project_root))
    record = NetworkRecord.load(network, get_network_file_path(network, project_root))
    reconciler = NetworkReconciler(
        manifest,
        record,
        backend,
        oracle,
        BuildArtifacts(get_build_artifacts_dir(project_root)),
        chain=chain,
        project_root=project_root,
        sender=sender,
    )

    await asyncio.wait_for(
        reconciler.push(reupload=reupload, force=force, deploy_dependencies=deploy_dependencies),
        timeout=timeout,
    )
    reconciler.write_record_if_needed()
    return record
