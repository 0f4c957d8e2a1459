"""Data types and dataclasses for upgradeable-deployments library."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ProxyKind(Enum):
    """
    Kinds of proxies a project can create.

    Value strings define de/serialization law (the "kind" field of a proxy in
    a network record). Records written before kinds existed hold upgradeable
    proxies only, so a missing kind loads as UPGRADEABLE.
    """

    UPGRADEABLE = "Upgradeable"
    MINIMAL = "Minimal"


@dataclass(frozen=True)
class ContractArtifact:
    """Compiled contract as produced by the build step."""

    contract_name: str
    bytecode: str  # Creation code, library placeholders left unlinked
    deployed_bytecode: str  # Runtime code, library placeholders left unlinked
    abi: List[Dict[str, Any]] = field(default_factory=list)

    # Set once libraries are linked in (see artifacts.link_artifact)
    linked_bytecode: Optional[str] = None
    linked_deployed_bytecode: Optional[str] = None


@dataclass(frozen=True)
class DeployedContract:
    """A contract instance returned by the deployment backend."""

    address: str
    artifact: ContractArtifact


@dataclass(frozen=True)
class ValidationWarning:
    """A single finding reported by the validation oracle."""

    kind: str  # e.g. "hasConstructor", "hasSelfDestruct", "storageDiff"
    message: str
    blocking: bool = True


@dataclass
class ContractRecord:
    """Deployed implementation of a contract alias."""

    address: str
    local_bytecode_hash: str
    deployed_bytecode_hash: str
    body_bytecode_hash: str
    constructor_code: str

    # Storage layout reported by the validation oracle
    types: Optional[Dict[str, Any]] = None
    storage: Optional[List[Dict[str, Any]]] = None
    warnings: Optional[List[Dict[str, Any]]] = None


@dataclass
class SolidityLibRecord:
    """Deployed solidity library."""

    address: str
    local_bytecode_hash: str
    deployed_bytecode_hash: str
    body_bytecode_hash: str
    constructor_code: str


@dataclass
class ProxyRecord:
    """
    A proxy instance of a contract.

    package and contract are derived from the bucket the proxy is stored under
    and are not serialized with the proxy itself.
    """

    address: str
    contract: str
    package: Optional[str] = None
    version: Optional[str] = None
    implementation: Optional[str] = None
    admin: Optional[str] = None
    kind: ProxyKind = ProxyKind.UPGRADEABLE


@dataclass
class DependencyRecord:
    """A dependency package linked to the project on a network."""

    package: str  # Address of the dependency's on-chain package
    version: str
    custom_deploy: bool = False
