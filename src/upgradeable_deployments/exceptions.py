"""Custom exception classes for upgradeable-deployments library."""

from typing import List, Optional, Sequence


class DeploymentError(Exception):
    """Base exception for deployment-related errors."""

    pass


class ManifestNotFoundError(DeploymentError, FileNotFoundError):
    """Raised when the project manifest (zos.json) is not found."""

    pass


class RecordFormatError(DeploymentError, ValueError):
    """Raised when a manifest or network record cannot be parsed or has an unsupported schema version."""

    pass


class ValidationError(DeploymentError, ValueError):
    """Raised when contracts to push have blocking validation warnings."""

    pass


class NamingCollisionError(DeploymentError, ValueError):
    """Raised when a solidity library shares its name with a contract alias."""

    pass


class DependencyNotFoundError(DeploymentError, FileNotFoundError):
    """Raised when a dependency's manifest or network record is missing on disk."""

    pass


class UnpublishedDependencyError(DeploymentError, ValueError):
    """Raised when a dependency has no package deployed on the target network."""

    pass


class VersionMismatchError(DeploymentError, ValueError):
    """Raised when a dependency version does not satisfy the required range."""

    pass


class ContractNotFoundError(DeploymentError, LookupError):
    """Raised when a contract is referenced but missing from the manifest or record."""

    pass


class ProxyNotFoundError(DeploymentError, LookupError):
    """Raised when a proxy is referenced but missing from the network record."""

    pass


class FrozenProjectError(DeploymentError, RuntimeError):
    """Raised when contracts are modified in a frozen version."""

    pass


class AddressInUseError(DeploymentError, RuntimeError):
    """Raised when a salted proxy deployment address already holds code."""

    pass


class ProxyKindError(DeploymentError, ValueError):
    """Raised for unknown proxy kinds or options a proxy kind does not support."""

    pass


class BackendOperationError(DeploymentError, RuntimeError):
    """
    Raised when a deployment backend call fails for a given entity.

    Attributes:
        entity: Identity of the item the call was made for (alias, library,
                dependency or proxy)
        action: Short description of the failed operation ("deployment",
                "removal", "upgrade", ...)
        cause: Underlying exception raised by the backend
    """

    def __init__(self, entity: str, action: str, cause: Optional[BaseException] = None):
        self.entity = entity
        self.action = action
        self.cause = cause
        detail = str(cause) if cause is not None else "unknown error"
        super().__init__(f"{entity} {action} failed with error: {detail}")


class BatchError(DeploymentError, RuntimeError):
    """
    Raised when two or more operations of a concurrent batch fail.

    Attributes:
        errors: Every individual failure, in submission order
    """

    def __init__(self, errors: Sequence[BaseException]):
        self.errors: List[BaseException] = list(errors)
        lines = "\n".join(f"- {error}" for error in self.errors)
        super().__init__(f"Multiple errors were found:\n{lines}")
