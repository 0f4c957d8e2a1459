"""Path management utilities for upgradeable-deployments library."""

from pathlib import Path
from typing import Optional, Union

from .constants import (
    BUILD_ARTIFACTS_DIR,
    DEPENDENCIES_DIR_NAME,
    MANIFEST_FILE_NAME,
    NETWORK_FILE_TEMPLATE,
)

PathLike = Union[Path, str]


def get_project_root(project_root: Optional[PathLike] = None) -> Path:
    """
    Resolve the project root directory.

    Args:
        project_root: Custom project directory (defaults to the current directory)

    Returns:
        Absolute path to the project root
    """
    if project_root is None:
        return Path.cwd()
    return Path(project_root).absolute()


def get_manifest_path(project_root: Optional[PathLike] = None) -> Path:
    """Path to the project manifest (zos.json)."""
    return get_project_root(project_root) / MANIFEST_FILE_NAME


def get_network_file_path(network: str, project_root: Optional[PathLike] = None) -> Path:
    """
    Path to the deployment record of a network.

    Args:
        network: Network name, e.g. "mainnet" or "dev-1547"
        project_root: Custom project directory (defaults to the current directory)

    Returns:
        Path to zos.<network>.json
    """
    return get_project_root(project_root) / NETWORK_FILE_TEMPLATE.format(network=network)


def get_build_artifacts_dir(project_root: Optional[PathLike] = None) -> Path:
    """Directory holding compiled contract artifacts (build/contracts)."""
    return get_project_root(project_root).joinpath(*BUILD_ARTIFACTS_DIR)


def get_dependency_root(name: str, project_root: Optional[PathLike] = None) -> Path:
    """
    Directory where an installed dependency lives.

    Args:
        name: Dependency package name, possibly scoped ("@org/pkg")
        project_root: Custom project directory (defaults to the current directory)

    Returns:
        Path to node_modules/<name>
    """
    return get_project_root(project_root) / DEPENDENCIES_DIR_NAME / name
