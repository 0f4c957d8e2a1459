"""Per-network deployment record (zos.<network>.json) for upgradeable-deployments library."""

import copy
import json
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import structlog

from .constants import SCHEMA_VERSION
from .exceptions import FrozenProjectError, ProxyNotFoundError, RecordFormatError
from .manifest import Manifest
from .naming import from_contract_full_name, same_address, to_contract_full_name
from .types import (
    ContractRecord,
    DependencyRecord,
    ProxyKind,
    ProxyRecord,
    SolidityLibRecord,
)
from .versions import check_schema_version

logger = structlog.get_logger(__name__)

# Singleton address entries, serialized as {"address": ...}
_ADDRESS_KEYS = ("proxyAdmin", "proxyFactory", "app", "package", "provider")


def _contract_from_dict(data: Dict[str, Any]) -> ContractRecord:
    return ContractRecord(
        address=data.get("address", ""),
        local_bytecode_hash=data.get("localBytecodeHash", ""),
        deployed_bytecode_hash=data.get("deployedBytecodeHash", ""),
        body_bytecode_hash=data.get("bodyBytecodeHash", ""),
        constructor_code=data.get("constructorCode", ""),
        types=data.get("types"),
        storage=data.get("storage"),
        warnings=data.get("warnings"),
    )


def _contract_to_dict(contract: ContractRecord) -> Dict[str, Any]:
    result = _solidity_lib_to_dict(contract)
    # Optional fields
    for key in ("types", "storage", "warnings"):
        value = getattr(contract, key)
        if value is not None:
            result[key] = value
    return result


def _solidity_lib_from_dict(data: Dict[str, Any]) -> SolidityLibRecord:
    return SolidityLibRecord(
        address=data.get("address", ""),
        local_bytecode_hash=data.get("localBytecodeHash", ""),
        deployed_bytecode_hash=data.get("deployedBytecodeHash", ""),
        body_bytecode_hash=data.get("bodyBytecodeHash", ""),
        constructor_code=data.get("constructorCode", ""),
    )


def _solidity_lib_to_dict(lib: Union[ContractRecord, SolidityLibRecord]) -> Dict[str, Any]:
    return {
        "address": lib.address,
        "constructorCode": lib.constructor_code,
        "bodyBytecodeHash": lib.body_bytecode_hash,
        "localBytecodeHash": lib.local_bytecode_hash,
        "deployedBytecodeHash": lib.deployed_bytecode_hash,
    }


def _proxy_from_dict(full_name: str, data: Dict[str, Any]) -> ProxyRecord:
    package_name, contract_name = from_contract_full_name(full_name)
    try:
        kind = ProxyKind(data["kind"]) if data.get("kind") else ProxyKind.UPGRADEABLE
    except ValueError as e:
        raise RecordFormatError(f"Unknown proxy kind {data['kind']!r} for {full_name}") from e
    return ProxyRecord(
        address=data.get("address", ""),
        contract=contract_name,
        package=package_name,
        version=data.get("version"),
        implementation=data.get("implementation"),
        admin=data.get("admin"),
        kind=kind,
    )


def _proxy_to_dict(proxy: ProxyRecord) -> Dict[str, Any]:
    result: Dict[str, Any] = {"address": proxy.address}
    for key in ("version", "implementation", "admin"):
        value = getattr(proxy, key)
        if value is not None:
            result[key] = value
    result["kind"] = proxy.kind.value
    return result


def _dependency_from_dict(data: Dict[str, Any]) -> DependencyRecord:
    return DependencyRecord(
        package=data.get("package", ""),
        version=data.get("version", ""),
        custom_deploy=bool(data.get("customDeploy", False)),
    )


def _dependency_to_dict(dependency: DependencyRecord) -> Dict[str, Any]:
    result: Dict[str, Any] = {"package": dependency.package, "version": dependency.version}
    if dependency.custom_deploy:
        result["customDeploy"] = True
    return result


class NetworkRecord:
    """
    Deployment ledger of a project on one network.

    Holds deployed contracts and libraries, proxies, linked dependencies and
    the project's singleton addresses. Pure data: nothing here talks to the
    chain. Contract and library entries cannot be created or removed while
    the record is frozen.
    """

    def __init__(
        self,
        network: str,
        path: Optional[Union[Path, str]] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        """
        Build a record from parsed file content.

        Args:
            network: Network name
            path: File the record is persisted to (None for read-only records)
            data: Parsed JSON content, or None for a new record with defaults

        Raises:
            RecordFormatError: If the schema version is missing or unsupported
        """
        self.network = network
        self.path = Path(path) if path is not None else None

        # Last durable content; None when nothing has been written yet
        self._snapshot: Optional[Dict[str, Any]] = copy.deepcopy(data)

        if data is None:
            data = {"zosversion": SCHEMA_VERSION}
        check_schema_version(data.get("zosversion"), str(self.path or f"{network} record"))

        self.schema_version: str = data["zosversion"]
        self.version: Optional[str] = data.get("version")
        self.frozen: bool = bool(data.get("frozen", False))

        self.contracts: Dict[str, ContractRecord] = {
            alias: _contract_from_dict(entry)
            for alias, entry in (data.get("contracts") or {}).items()
        }
        self.solidity_libs: Dict[str, SolidityLibRecord] = {
            name: _solidity_lib_from_dict(entry)
            for name, entry in (data.get("solidityLibs") or {}).items()
        }
        self.proxies: Dict[str, List[ProxyRecord]] = {
            full_name: [_proxy_from_dict(full_name, entry) for entry in entries]
            for full_name, entries in (data.get("proxies") or {}).items()
        }
        self.dependencies: Dict[str, DependencyRecord] = {
            name: _dependency_from_dict(entry)
            for name, entry in (data.get("dependencies") or {}).items()
        }

        self._addresses: Dict[str, Optional[str]] = {
            key: (data.get(key) or {}).get("address") for key in _ADDRESS_KEYS
        }

    @classmethod
    def load(cls, network: str, path: Union[Path, str]) -> "NetworkRecord":
        """
        Load the record of a network, or start an empty one if the file does not exist.

        Args:
            network: Network name
            path: Path to zos.<network>.json

        Raises:
            RecordFormatError: If the file is not valid JSON or has an unsupported schema version
        """
        record_path = Path(path)
        data = None
        if record_path.exists():
            try:
                with open(record_path) as f:
                    data = json.load(f)
            except json.JSONDecodeError as e:
                raise RecordFormatError(
                    f"Failed to parse '{record_path.absolute()}' file. Please make sure that "
                    f"{record_path.name} is a valid JSON file. Details: {e}."
                ) from e
        return cls(network, record_path, data)

    # Singleton addresses

    def _set_address(self, key: str, address: Optional[str]) -> None:
        self._addresses[key] = address

    @property
    def proxy_admin_address(self) -> Optional[str]:
        return self._addresses["proxyAdmin"]

    @proxy_admin_address.setter
    def proxy_admin_address(self, address: Optional[str]) -> None:
        self._set_address("proxyAdmin", address)

    @property
    def proxy_factory_address(self) -> Optional[str]:
        return self._addresses["proxyFactory"]

    @proxy_factory_address.setter
    def proxy_factory_address(self, address: Optional[str]) -> None:
        self._set_address("proxyFactory", address)

    @property
    def app_address(self) -> Optional[str]:
        return self._addresses["app"]

    @app_address.setter
    def app_address(self, address: Optional[str]) -> None:
        self._set_address("app", address)

    @property
    def package_address(self) -> Optional[str]:
        return self._addresses["package"]

    @package_address.setter
    def package_address(self, address: Optional[str]) -> None:
        self._set_address("package", address)

    @property
    def provider_address(self) -> Optional[str]:
        return self._addresses["provider"]

    @provider_address.setter
    def provider_address(self, address: Optional[str]) -> None:
        self._set_address("provider", address)

    # Contracts

    def _check_not_frozen(self, entity: str) -> None:
        if self.frozen:
            raise FrozenProjectError(
                f"Cannot modify {entity} in a frozen version. "
                "Bump the project version to create a new version first."
            )

    @property
    def contract_aliases(self) -> List[str]:
        return list(self.contracts.keys())

    def get_contract(self, alias: str) -> Optional[ContractRecord]:
        return self.contracts.get(alias)

    def has_contract(self, alias: str) -> bool:
        return alias in self.contracts

    def set_contract(self, alias: str, contract: ContractRecord) -> None:
        self._check_not_frozen(f"contract {alias}")
        self.contracts[alias] = contract

    def unset_contract(self, alias: str) -> None:
        self._check_not_frozen(f"contract {alias}")
        self.contracts.pop(alias, None)

    def clear_contracts(self) -> None:
        """Forget every deployed contract, as done when a new version is required."""
        self._check_not_frozen("contracts")
        self.contracts = {}

    def contract_aliases_missing_from(self, manifest: Manifest) -> List[str]:
        """Deployed aliases the manifest no longer declares."""
        return [alias for alias in self.contracts if not manifest.has_contract(alias)]

    def has_same_bytecode(self, alias: str, bytecode_hash: str) -> bool:
        """
        Check whether a contract or library was deployed from the given bytecode.

        Args:
            alias: Contract alias or library name
            bytecode_hash: Digest of the current local (unlinked) bytecode

        Returns:
            True if the recorded localBytecodeHash matches, False if it differs or
            nothing is recorded under that name
        """
        entry = self.contracts.get(alias) or self.solidity_libs.get(alias)
        if entry is None:
            return False
        return entry.local_bytecode_hash == bytecode_hash

    # Solidity libraries

    def solidity_lib(self, name: str) -> Optional[SolidityLibRecord]:
        return self.solidity_libs.get(name)

    def has_solidity_lib(self, name: str) -> bool:
        return name in self.solidity_libs

    def set_solidity_lib(self, name: str, lib: SolidityLibRecord) -> None:
        self._check_not_frozen(f"library {name}")
        self.solidity_libs[name] = lib

    def unset_solidity_lib(self, name: str) -> None:
        self._check_not_frozen(f"library {name}")
        self.solidity_libs.pop(name, None)

    def solidity_libs_missing(self, names: List[str]) -> List[str]:
        """Recorded libraries not in the given list of names."""
        return [name for name in self.solidity_libs if name not in names]

    def get_solidity_libs(self, names: List[str]) -> Dict[str, str]:
        """Addresses of the recorded libraries among names, for linking."""
        return {
            name: lib.address for name, lib in self.solidity_libs.items() if name in names
        }

    # Proxies

    def get_proxies(
        self,
        package: Optional[str] = None,
        contract: Optional[str] = None,
        address: Optional[str] = None,
        kind: Optional[ProxyKind] = None,
    ) -> List[ProxyRecord]:
        """
        List proxies across all contracts, optionally filtered.

        Criteria are AND-combined; a criterion left as None matches everything.

        Returns:
            Copies of the matching proxy records
        """
        return [
            replace(proxy)
            for proxies in self.proxies.values()
            for proxy in proxies
            if (package is None or proxy.package == package)
            and (contract is None or proxy.contract == contract)
            and (address is None or same_address(proxy.address, address))
            and (kind is None or proxy.kind == kind)
        ]

    def get_proxy(self, address: str) -> Optional[ProxyRecord]:
        matches = self.get_proxies(address=address)
        return matches[0] if matches else None

    def has_proxies(self, **criteria: Any) -> bool:
        return bool(self.get_proxies(**criteria))

    def add_proxy(self, proxy: ProxyRecord) -> None:
        full_name = to_contract_full_name(proxy.package, proxy.contract)
        self.proxies.setdefault(full_name, []).append(replace(proxy))

    def _index_of_proxy(self, full_name: str, address: str) -> int:
        for index, proxy in enumerate(self.proxies.get(full_name, [])):
            if same_address(proxy.address, address):
                return index
        return -1

    def remove_proxy(self, package: Optional[str], contract: str, address: str) -> None:
        full_name = to_contract_full_name(package, contract)
        index = self._index_of_proxy(full_name, address)
        if index < 0:
            return
        del self.proxies[full_name][index]
        if not self.proxies[full_name]:
            del self.proxies[full_name]

    def update_proxy(self, proxy: ProxyRecord, fn: Callable[[ProxyRecord], ProxyRecord]) -> None:
        """
        Replace a proxy with the result of fn applied to its current record.

        The proxy is located by (package, contract, address).

        Raises:
            ProxyNotFoundError: If no such proxy is recorded
        """
        full_name = to_contract_full_name(proxy.package, proxy.contract)
        index = self._index_of_proxy(full_name, proxy.address)
        if index < 0:
            raise ProxyNotFoundError(
                f"Proxy {full_name} at {proxy.address} not found in network file"
            )
        self.proxies[full_name][index] = fn(replace(self.proxies[full_name][index]))

    # Dependencies

    @property
    def dependencies_names(self) -> List[str]:
        return list(self.dependencies.keys())

    def get_dependency(self, name: str) -> Optional[DependencyRecord]:
        return self.dependencies.get(name)

    def has_dependency(self, name: str) -> bool:
        return name in self.dependencies

    def set_dependency(self, name: str, dependency: DependencyRecord) -> None:
        self.dependencies[name] = dependency

    def unset_dependency(self, name: str) -> None:
        self.dependencies.pop(name, None)

    def dependencies_names_missing_from(self, manifest: Manifest) -> List[str]:
        """Linked dependencies the manifest no longer declares."""
        return [name for name in self.dependencies if not manifest.has_dependency(name)]

    def dependency_has_custom_deploy(self, name: str) -> bool:
        dependency = self.get_dependency(name)
        return dependency is not None and dependency.custom_deploy

    def dependency_satisfies_version_requirement(self, name: str, manifest: Manifest) -> bool:
        dependency = self.get_dependency(name)
        return dependency is not None and manifest.dependency_matches(name, dependency.version)

    def dependency_has_matching_custom_deploy(self, name: str, manifest: Manifest) -> bool:
        return self.dependency_has_custom_deploy(
            name
        ) and self.dependency_satisfies_version_requirement(name, manifest)

    # Persistence

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the record to its JSON file layout."""
        data: Dict[str, Any] = {
            "contracts": {alias: _contract_to_dict(c) for alias, c in self.contracts.items()},
            "solidityLibs": {
                name: _solidity_lib_to_dict(lib) for name, lib in self.solidity_libs.items()
            },
            "proxies": {
                full_name: [_proxy_to_dict(proxy) for proxy in proxies]
                for full_name, proxies in self.proxies.items()
            },
            "zosversion": self.schema_version,
        }
        for key in _ADDRESS_KEYS:
            if self._addresses[key]:
                data[key] = {"address": self._addresses[key]}
        if self.version is not None:
            data["version"] = self.version
        data["frozen"] = self.frozen
        if self.dependencies:
            data["dependencies"] = {
                name: _dependency_to_dict(dep) for name, dep in self.dependencies.items()
            }
        return data

    def has_changed(self) -> bool:
        """True if the in-memory record differs from the last durable content."""
        return self.to_dict() != self._snapshot

    def write(self) -> bool:
        """
        Persist the record if it changed since it was last read or written.

        Returns:
            True if the file was written
        """
        if self.path is None:
            raise RecordFormatError(f"Record of network '{self.network}' has no file to write to")
        if not self.has_changed():
            return False

        existed = self.path.exists()
        data = self.to_dict()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(data, f, indent=2)
        self._snapshot = copy.deepcopy(data)

        logger.debug(
            "Updated network record" if existed else "Created network record",
            path=str(self.path),
            network=self.network,
        )
        return True
