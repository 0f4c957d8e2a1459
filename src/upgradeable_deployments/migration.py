"""Network record schema migration for upgradeable-deployments library."""

from dataclasses import replace
from typing import Optional

import structlog

from .backend import ChainReader, DeploymentBackend
from .batch import all_or_error, tag_failure
from .constants import SCHEMA_VERSION
from .manifest import Manifest
from .naming import same_address, to_contract_full_name
from .ownership import owned_proxies
from .record import NetworkRecord
from .rpc import RpcChainReader
from .types import ProxyRecord
from .versions import is_migratable_schema_version

logger = structlog.get_logger(__name__)


class SchemaMigrator:
    """
    Moves records written by older schema versions to the current one.

    Before schema 2.2 proxies were administered directly by the App contract
    (published projects) or by the deploying account. Migration hands every
    such proxy over to a ProxyAdmin contract, then bumps the schema version.
    """

    def __init__(
        self,
        record: NetworkRecord,
        manifest: Manifest,
        backend: DeploymentBackend,
        chain: Optional[ChainReader] = None,
        sender: Optional[str] = None,
        rpc_url: Optional[str] = None,
    ):
        """
        Args:
            record: Network record to migrate
            manifest: Project manifest
            backend: Deployment backend handing proxies over
            chain: Read-only chain access (defaults to an RpcChainReader on rpc_url)
            sender: Account that administered proxies of unpublished projects
            rpc_url: JSON-RPC endpoint for the default chain reader
        """
        self.record = record
        self.manifest = manifest
        self.backend = backend
        self.sender = sender
        self._chain = chain
        self._rpc_url = rpc_url

    @property
    def chain(self) -> ChainReader:
        # Only proxies being handed over need the chain
        if self._chain is None:
            self._chain = RpcChainReader(self._rpc_url)
        return self._chain

    def needs_migration(self) -> bool:
        return is_migratable_schema_version(self.record.schema_version)

    async def migrate_if_needed(self) -> bool:
        """
        Migrate proxies if the record predates the current schema, then bump its version.

        Returns:
            True if a migration ran
        """
        migrated = False
        if self.needs_migration():
            await self._migrate()
            migrated = True
        if self.record.schema_version != SCHEMA_VERSION:
            self.record.schema_version = SCHEMA_VERSION
        return migrated

    async def _migrate(self) -> None:
        is_published = self.manifest.is_published or self.record.app_address is not None
        legacy_owner = self.record.app_address if is_published else self.sender
        proxies = owned_proxies(self.record, owner=legacy_owner)

        if not proxies:
            logger.info(f"No proxies were found. Updating zosversion to {SCHEMA_VERSION}")
            return

        proxy_admin = await self.backend.fetch_or_deploy_proxy_admin(self.record.proxy_admin_address)
        if not self.record.proxy_admin_address:
            self.record.proxy_admin_address = proxy_admin

        await all_or_error(self._migrate_proxy(proxy, proxy_admin) for proxy in proxies)
        logger.info(f"Successfully migrated to zosversion {SCHEMA_VERSION}", proxies=len(proxies))

    async def _migrate_proxy(self, proxy: ProxyRecord, proxy_admin: str) -> None:
        entity = f"Proxy {to_contract_full_name(proxy.package, proxy.contract)} at {proxy.address}"
        await tag_failure(entity, "migration", self._hand_over(proxy, proxy_admin))

    async def _hand_over(self, proxy: ProxyRecord, proxy_admin: str) -> None:
        current_admin = await self.chain.proxy_admin(proxy.address)
        if not same_address(current_admin, proxy_admin):
            if self.record.app_address:
                await self.backend.migrate_app_proxy(
                    self.record.app_address, proxy.address, proxy_admin
                )
            else:
                await self.backend.change_simple_proxy_admin(
                    self.manifest.name, proxy.address, proxy_admin
                )
        self.record.update_proxy(proxy, lambda p: replace(p, admin=proxy_admin))
