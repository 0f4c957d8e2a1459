"""Version handling utilities for upgradeable-deployments library."""

import re
from typing import Optional, Sequence, Tuple, Union

from semantic_version import NpmSpec, Version

from .constants import OLDEST_MIGRATABLE_SCHEMA_VERSION, SCHEMA_VERSION
from .exceptions import RecordFormatError

VersionLike = Union[str, Sequence[int]]

_NUMERIC_TRIPLE = re.compile(r"(\d+)(?:\.(\d+))?(?:\.(\d+))?")


def semantic_version_to_string(version: VersionLike) -> str:
    """
    Render a version reported as a string or as a [major, minor, patch] triple.

    Raises:
        ValueError: If version is neither a string nor a sequence of integers
    """
    if isinstance(version, str):
        return version
    if isinstance(version, (list, tuple)) and all(isinstance(part, int) for part in version):
        return ".".join(str(part) for part in version)
    raise ValueError(f"Cannot handle version {version!r}")


def coerce_version(version: str) -> Optional[Version]:
    """
    Coerce a loose version string into a canonical numeric triple.

    The first run of up to three dot-separated numbers is used, so "v1.2" gives
    1.2.0 and "1.2.3-beta.1" gives 1.2.3. Returns None when no number is found.
    """
    match = _NUMERIC_TRIPLE.search(version)
    if match is None:
        return None
    major, minor, patch = (int(part or 0) for part in match.groups())
    return Version(major=major, minor=minor, patch=patch)


def satisfies_version(version: Optional[VersionLike], requirement: Optional[str]) -> bool:
    """
    Check whether a version satisfies an npm-style requirement.

    A version satisfies a requirement if the requirement is absent, both strings
    are identical, or the coerced version falls within the requirement range.

    Args:
        version: Version string or [major, minor, patch] triple
        requirement: npm range such as "^1.2.0" or "~2.0", or None

    Returns:
        True if the requirement is met
    """
    if not requirement:
        return True
    if version is None:
        return False

    version_str = semantic_version_to_string(version)
    if version_str == requirement:
        return True

    coerced = coerce_version(version_str)
    if coerced is None:
        return False
    try:
        return NpmSpec(requirement).match(coerced)
    except ValueError:
        return False


def try_with_caret(version: str) -> str:
    """Default requirement for a dependency version: "^x.y.z" when it is valid semver."""
    try:
        cleaned = Version(version.strip().lstrip("=v"))
    except ValueError:
        return version
    return f"^{cleaned}"


def _schema_tuple(version: str) -> Tuple[int, ...]:
    return tuple(int(part) for part in version.split("."))


def is_migratable_schema_version(version: Optional[str]) -> bool:
    """
    Check whether a record schema version predates SCHEMA_VERSION but can still be migrated.

    Args:
        version: Schema version stored in a network record ("zosversion")

    Returns:
        True if the record must go through proxy admin migration
    """
    if not version:
        return False
    try:
        current = _schema_tuple(version)
    except ValueError:
        return False
    return _schema_tuple(OLDEST_MIGRATABLE_SCHEMA_VERSION) <= current < _schema_tuple(SCHEMA_VERSION)


def check_schema_version(version: Optional[str], where: str) -> None:
    """
    Ensure a record's schema version is supported.

    Args:
        version: Schema version read from the file
        where: File name used in error messages

    Raises:
        RecordFormatError: If the version is missing or not recognized
    """
    if version == SCHEMA_VERSION or is_migratable_schema_version(version):
        return
    if version is None:
        raise RecordFormatError(f"zos version identifier not found in {where}")
    raise RecordFormatError(f"Unrecognized zos version identifier {version} found in {where}")
