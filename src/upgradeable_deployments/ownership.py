"""Proxy ownership filtering for upgradeable-deployments library."""

from typing import List, Optional

import structlog

from .naming import same_address, to_contract_full_name
from .record import NetworkRecord
from .types import ProxyKind, ProxyRecord

logger = structlog.get_logger(__name__)


def _criteria_description(
    package: Optional[str], contract: Optional[str], address: Optional[str]
) -> str:
    description = ""
    if package or contract:
        description += f" contract {to_contract_full_name(package, contract or '')}"
    if address:
        description += f" address {address}"
    return description


def owned_proxies(
    record: NetworkRecord,
    package: Optional[str] = None,
    contract: Optional[str] = None,
    address: Optional[str] = None,
    owner: Optional[str] = None,
) -> List[ProxyRecord]:
    """
    Upgradeable proxies matching the criteria that the expected owner administers.

    The expected owner is owner if given, else the record's ProxyAdmin. Proxies
    recorded without an admin predate explicit admins and count as owned, and
    so does every proxy when no owner is known at all.

    Args:
        record: Network record to search
        package: Package the proxied contract belongs to
        contract: Contract alias
        address: Proxy address
        owner: Expected admin address

    Returns:
        Owned proxies; unowned ones are skipped with a warning
    """
    description = _criteria_description(package, contract, address)
    proxies = record.get_proxies(
        package=package, contract=contract, address=address, kind=ProxyKind.UPGRADEABLE
    )
    if not proxies:
        logger.info(f"No contract instances that match{description} were found")
        return []

    expected_owner = owner or record.proxy_admin_address
    owned = [
        proxy
        for proxy in proxies
        if not proxy.admin or not expected_owner or same_address(proxy.admin, expected_owner)
    ]

    skipped = [proxy.address for proxy in proxies if proxy not in owned]
    if skipped:
        logger.warning(
            "Skipping proxies not owned by this project",
            owner=expected_owner,
            proxies=skipped,
        )
    if not owned:
        logger.info(f"No contract instances that match{description} are owned by this project")
    return owned
