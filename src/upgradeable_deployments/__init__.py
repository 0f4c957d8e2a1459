"""
upgradeable-deployments: Python library reconciling upgradeable contract projects with their on-chain deployments
"""

from importlib.metadata import PackageNotFoundError, version

from .backend import (
    ChainReader,
    DeploymentBackend,
    Project,
    ProjectAddresses,
    ProxyCall,
    ValidationOracle,
)
from .batch import all_or_error
from .dependency import Dependency, DependencyLinker
from .exceptions import (
    AddressInUseError,
    BackendOperationError,
    BatchError,
    ContractNotFoundError,
    DependencyNotFoundError,
    DeploymentError,
    FrozenProjectError,
    ManifestNotFoundError,
    NamingCollisionError,
    ProxyKindError,
    ProxyNotFoundError,
    RecordFormatError,
    UnpublishedDependencyError,
    ValidationError,
    VersionMismatchError,
)
from .manifest import Manifest
from .reconciler import NetworkReconciler, push
from .record import NetworkRecord
from .rpc import RpcChainReader
from .types import (
    ContractArtifact,
    ContractRecord,
    DependencyRecord,
    DeployedContract,
    ProxyKind,
    ProxyRecord,
    SolidityLibRecord,
    ValidationWarning,
)

try:
    __version__ = version("upgradeable-deployments")
except PackageNotFoundError:
    __version__ = None

__all__ = [
    "NetworkReconciler",
    "push",
    "Manifest",
    "NetworkRecord",
    "Dependency",
    "DependencyLinker",
    "all_or_error",
    "RpcChainReader",
    "ChainReader",
    "DeploymentBackend",
    "Project",
    "ProjectAddresses",
    "ProxyCall",
    "ValidationOracle",
    "ContractArtifact",
    "ContractRecord",
    "DependencyRecord",
    "DeployedContract",
    "ProxyKind",
    "ProxyRecord",
    "SolidityLibRecord",
    "ValidationWarning",
    "DeploymentError",
    "ManifestNotFoundError",
    "RecordFormatError",
    "ValidationError",
    "NamingCollisionError",
    "DependencyNotFoundError",
    "UnpublishedDependencyError",
    "VersionMismatchError",
    "ContractNotFoundError",
    "ProxyNotFoundError",
    "FrozenProjectError",
    "AddressInUseError",
    "ProxyKindError",
    "BackendOperationError",
    "BatchError",
]
