"""Build artifact parsing and bytecode helpers for upgradeable-deployments library."""

import json
import re
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from .exceptions import ContractNotFoundError, RecordFormatError
from .types import ContractArtifact

# Unlinked library reference: "__" + library name padded with "_" to 40 characters
_LIB_PLACEHOLDER = re.compile(r"__[A-Za-z0-9_]{36}__")
_PLACEHOLDER_LENGTH = 40

# First byte of the CBOR map solc appends as contract metadata
_METADATA_MARKERS = ("a1", "a2", "a3")


def parse_build_artifact(file_path: Path) -> ContractArtifact:
    """
    Parse a truffle-style JSON build artifact.

    Args:
        file_path: Path to build/contracts/<ContractName>.json

    Returns:
        ContractArtifact with unlinked creation and runtime bytecode

    Raises:
        RecordFormatError: If the file is not valid JSON or lacks bytecode
    """
    try:
        with open(file_path) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise RecordFormatError(f"Failed to parse build artifact {file_path}: {e}") from e

    if "bytecode" not in data:
        raise RecordFormatError(f"Missing bytecode in build artifact {file_path}")

    return ContractArtifact(
        contract_name=data.get("contractName", file_path.stem),
        bytecode=data["bytecode"],
        deployed_bytecode=data.get("deployedBytecode", ""),
        abi=data.get("abi", []),
    )


class BuildArtifacts:
    """Reads compiled contracts from a build directory, caching parsed artifacts."""

    def __init__(self, directory: Union[Path, str]):
        self.directory = Path(directory)
        self._cache: Dict[str, ContractArtifact] = {}

    def has(self, contract_name: str) -> bool:
        return (self.directory / f"{contract_name}.json").exists()

    def get(self, contract_name: str) -> ContractArtifact:
        """
        Get the artifact of a contract.

        Raises:
            ContractNotFoundError: If no artifact exists for the contract
        """
        if contract_name not in self._cache:
            path = self.directory / f"{contract_name}.json"
            if not path.exists():
                raise ContractNotFoundError(
                    f"Contract {contract_name} not found in {self.directory}"
                )
            self._cache[contract_name] = parse_build_artifact(path)
        return self._cache[contract_name]


def solidity_lib_names(bytecode: str) -> List[str]:
    """
    List the libraries an unlinked bytecode refers to, in order of first appearance.

    Args:
        bytecode: Unlinked creation bytecode

    Returns:
        Unique library names
    """
    names: List[str] = []
    for placeholder in _LIB_PLACEHOLDER.findall(bytecode):
        name = placeholder[2:].rstrip("_")
        if name not in names:
            names.append(name)
    return names


def link_bytecode(bytecode: str, libraries: Mapping[str, str]) -> str:
    """
    Replace library placeholders with deployed library addresses.

    Args:
        bytecode: Unlinked bytecode
        libraries: Maps library name -> address

    Returns:
        Bytecode with every known placeholder replaced
    """
    for name, address in libraries.items():
        link_id = f"__{name}"
        placeholder = link_id + "_" * (_PLACEHOLDER_LENGTH - len(link_id))
        bytecode = bytecode.replace(placeholder, address.lower().removeprefix("0x"))
    return bytecode


def link_artifact(artifact: ContractArtifact, libraries: Mapping[str, str]) -> ContractArtifact:
    """Return a copy of the artifact with its linked bytecode filled in."""
    return replace(
        artifact,
        linked_bytecode=link_bytecode(artifact.bytecode, libraries),
        linked_deployed_bytecode=link_bytecode(artifact.deployed_bytecode, libraries),
    )


def _strip_metadata(code: str) -> str:
    # Metadata length (in bytes) is encoded in the last two bytes of the code
    if len(code) < 4:
        return code
    try:
        length = int(code[-4:], 16)
    except ValueError:
        return code
    start = len(code) - 4 - 2 * length
    if start >= 0 and code[start:start + 2] in _METADATA_MARKERS:
        return code[:start]
    return code


def body_code(artifact: ContractArtifact) -> str:
    """Runtime code of an artifact without its trailing metadata hash."""
    deployed = (artifact.linked_deployed_bytecode or artifact.deployed_bytecode).removeprefix("0x")
    return "0x" + _strip_metadata(deployed)


def constructor_code(artifact: ContractArtifact) -> str:
    """Creation code of an artifact up to where its runtime body starts."""
    bytecode = (artifact.linked_bytecode or artifact.bytecode).removeprefix("0x")
    body = body_code(artifact).removeprefix("0x")
    index = bytecode.find(body) if body else -1
    if index < 0:
        return "0x" + bytecode
    return "0x" + bytecode[:index]


def initializer_methods(abi: List[Dict[str, Any]]) -> List[str]:
    """
    Names of functions that look like proxy initializers.

    A function qualifies when it is called "initialize" or when the build
    tooling flagged it with an "initializer" marker in the ABI entry.

    Args:
        abi: Contract ABI

    Returns:
        Unique initializer names, in ABI order
    """
    names: List[str] = []
    for item in abi:
        if item.get("type") != "function":
            continue
        name: Optional[str] = item.get("name")
        if name and (name == "initialize" or item.get("initializer")) and name not in names:
            names.append(name)
    return names
