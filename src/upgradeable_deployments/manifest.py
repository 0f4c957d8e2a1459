"""Project manifest (zos.json) for upgradeable-deployments library."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .exceptions import ManifestNotFoundError, RecordFormatError
from .versions import satisfies_version


@dataclass(frozen=True)
class Manifest:
    """Desired state of a project: its contracts and the dependencies it links."""

    name: str
    version: str
    contracts: Dict[str, str] = field(default_factory=dict)  # alias -> contract name
    dependencies: Dict[str, str] = field(default_factory=dict)  # name -> version range
    is_published: bool = False
    schema_version: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Manifest":
        return cls(
            name=data.get("name", ""),
            version=data.get("version", ""),
            contracts=dict(data.get("contracts") or {}),
            dependencies=dict(data.get("dependencies") or {}),
            is_published=bool(data.get("publish", False)),
            schema_version=data.get("zosversion"),
        )

    @classmethod
    def load(cls, path: Union[Path, str]) -> "Manifest":
        """
        Load a manifest from disk.

        Args:
            path: Path to zos.json

        Raises:
            ManifestNotFoundError: If the file does not exist
            RecordFormatError: If the file is not valid JSON
        """
        manifest_path = Path(path)
        if not manifest_path.exists():
            raise ManifestNotFoundError(f"Project manifest not found at {manifest_path}")
        try:
            with open(manifest_path) as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise RecordFormatError(
                f"Failed to parse '{manifest_path.absolute()}' file. Please make sure that "
                f"{manifest_path.name} is a valid JSON file. Details: {e}."
            ) from e
        return cls.from_dict(data)

    @property
    def contract_aliases(self) -> List[str]:
        return list(self.contracts.keys())

    @property
    def contract_names(self) -> List[str]:
        return list(self.contracts.values())

    @property
    def dependency_names(self) -> List[str]:
        return list(self.dependencies.keys())

    def contract(self, alias: str) -> Optional[str]:
        return self.contracts.get(alias)

    def has_contract(self, alias: str) -> bool:
        return alias in self.contracts

    def has_dependency(self, name: str) -> bool:
        return name in self.dependencies

    def dependency_matches(self, name: str, version: Optional[str]) -> bool:
        """Check a linked dependency version against this manifest's requirement for it."""
        return self.has_dependency(name) and satisfies_version(version, self.dependencies[name])
