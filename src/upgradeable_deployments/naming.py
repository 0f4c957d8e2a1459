"""Contract naming and address helpers for upgradeable-deployments library."""

from typing import Optional, Tuple


def to_contract_full_name(package_name: Optional[str], contract_name: str) -> str:
    """
    Build the key under which proxies of a contract are stored.

    Args:
        package_name: Package providing the contract (None for bare names)
        contract_name: Contract alias within the package

    Returns:
        "package/Contract", or just "Contract" when there is no package
    """
    if not package_name:
        return contract_name
    return f"{package_name}/{contract_name}"


def from_contract_full_name(full_name: str) -> Tuple[Optional[str], str]:
    """
    Split a full name back into (package, contract).

    Scoped packages keep their slash: "@org/pkg/Token" -> ("@org/pkg", "Token").
    """
    package_name, _, contract_name = full_name.rpartition("/")
    return (package_name or None, contract_name)


def same_address(first: Optional[str], second: Optional[str]) -> bool:
    """Compare two addresses ignoring checksum casing; None only equals None."""
    if first is None or second is None:
        return first is second
    return first.lower() == second.lower()
