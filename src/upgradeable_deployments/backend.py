"""Interfaces of the external collaborators driven by the reconciler.

The deployment backend submits transactions, the validation oracle inspects
compiled contracts and the chain reader answers read-only questions about
on-chain state. Only their interfaces live here; implementations are
provided by the caller (see rpc.RpcChainReader for a JSON-RPC chain reader).
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from .types import (
    ContractArtifact,
    ContractRecord,
    DeployedContract,
    ProxyKind,
    ValidationWarning,
)
from .versions import VersionLike


@dataclass(frozen=True)
class ProjectAddresses:
    """Singleton addresses already known for a project on a network."""

    app: Optional[str] = None
    package: Optional[str] = None
    provider: Optional[str] = None
    proxy_admin: Optional[str] = None
    proxy_factory: Optional[str] = None


@dataclass(frozen=True)
class ProxyCall:
    """Which contract a proxy points to and how to initialize it."""

    package_name: str
    contract_name: str
    init_method: Optional[str] = None
    init_args: List[Any] = field(default_factory=list)
    admin: Optional[str] = None


class Project(Protocol):
    """
    A project deployed on a network.

    Published projects are backed by an App contract, unpublished ones by a
    ProxyAdmin only; the reconciler picks the variant once per pass and both
    answer the same calls.
    """

    @property
    def addresses(self) -> ProjectAddresses: ...

    async def set_implementation(self, artifact: ContractArtifact, alias: str) -> DeployedContract: ...

    async def unset_implementation(self, alias: str) -> None: ...

    async def get_implementation(self, package_name: str, contract_name: str) -> Optional[str]: ...

    async def create_proxy(self, artifact: ContractArtifact, call: ProxyCall) -> DeployedContract: ...

    async def create_proxy_with_salt(
        self, artifact: ContractArtifact, salt: str, signature: Optional[str], call: ProxyCall
    ) -> DeployedContract: ...

    async def create_minimal_proxy(self, artifact: ContractArtifact, call: ProxyCall) -> DeployedContract: ...

    async def get_proxy_deployment_address(self, salt: str, sender: Optional[str] = None) -> str: ...

    async def upgrade_proxy(self, proxy_address: str, artifact: ContractArtifact, call: ProxyCall) -> None: ...

    async def change_proxy_admin(self, proxy_address: str, new_admin: str) -> None: ...

    async def transfer_admin_ownership(self, new_owner: str) -> None: ...

    async def set_dependency(self, name: str, package_address: str, version: str) -> None: ...

    async def unset_dependency(self, name: str) -> bool:
        """Unlink a dependency; returns False when it was not linked."""
        ...

    async def get_dependency_version(self, name: str) -> VersionLike: ...

    async def ensure_proxy_admin(self) -> str: ...

    async def ensure_proxy_factory(self) -> str: ...

    async def get_admin_address(self) -> Optional[str]: ...

    async def freeze(self) -> None: ...


class DeploymentBackend(Protocol):
    """Factory of projects plus the few operations that act outside a project."""

    async def fetch_or_deploy_app_project(
        self, name: str, version: str, addresses: ProjectAddresses
    ) -> Project: ...

    async def fetch_or_deploy_proxy_admin_project(
        self, name: str, version: str, addresses: ProjectAddresses
    ) -> Project: ...

    async def fetch_or_deploy_package_project(self, name: str, version: str) -> Project: ...

    async def publish_project(self, project: Project, name: str, version: str) -> Project: ...

    async def fetch_or_deploy_proxy_admin(self, address: Optional[str]) -> str: ...

    async def migrate_app_proxy(self, app_address: str, proxy_address: str, new_admin: str) -> None: ...

    async def change_simple_proxy_admin(
        self, package_name: str, proxy_address: str, new_admin: str
    ) -> None: ...


class ValidationOracle(Protocol):
    """Bytecode digests, upgrade-safety validation and storage layouts."""

    def bytecode_hash(self, bytecode: str) -> str: ...

    def validate(
        self, artifact: ContractArtifact, prior: Optional[ContractRecord]
    ) -> List[ValidationWarning]: ...

    def storage_layout(self, artifact: ContractArtifact) -> Dict[str, Any]: ...


class ChainReader(Protocol):
    """Read-only view of on-chain state."""

    async def has_code(self, address: str) -> bool: ...

    async def proxy_implementation(self, address: str, kind: ProxyKind) -> Optional[str]: ...

    async def proxy_admin(self, address: str) -> Optional[str]: ...
