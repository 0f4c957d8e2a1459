"""Integration tests for publishing, freezing and deployment checks."""

import pytest
from structlog.testing import capture_logs

from upgradeable_deployments.exceptions import ContractNotFoundError, DeploymentError


class TestPublish:
    """Test promoting a project to a published App project."""

    async def test_publish(self, make_reconciler, backend):
        reconciler = make_reconciler()
        await reconciler.push()
        backend.transactions.clear()

        assert await reconciler.publish() is True

        assert backend.transactions == [("publish", "my-project", "0.1.0")]
        record = reconciler.record
        assert record.app_address is not None
        assert record.package_address is not None
        assert record.provider_address is not None
        assert record.version == "0.1.0"
        assert reconciler.is_published

    async def test_publish_twice(self, make_reconciler, backend):
        reconciler = make_reconciler()
        await reconciler.publish()
        backend.transactions.clear()

        assert await reconciler.publish() is False
        assert backend.transactions == []

    async def test_published_project_reuses_app(self, make_reconciler, backend):
        """Test that a published project is fetched, not redeployed, on later passes."""
        first = make_reconciler()
        await first.publish()
        await first.push()
        first.write_record_if_needed()
        backend.transactions.clear()

        second = make_reconciler()
        await second.push()

        assert backend.transactions == []
        assert second.record.app_address == first.record.app_address


class TestFreeze:
    """Test freezing a version."""

    async def test_unpublished_project_cannot_be_frozen(self, reconciler, backend):
        with pytest.raises(DeploymentError, match="Cannot freeze an unpublished project"):
            await reconciler.freeze()
        assert backend.transactions == []

    async def test_freeze_published_project(self, make_reconciler, backend):
        reconciler = make_reconciler()
        await reconciler.publish()
        backend.transactions.clear()

        await reconciler.freeze()

        assert backend.transactions == [("freeze",)]
        assert reconciler.record.frozen is True


class TestDeploymentChecks:
    """Test checks of local contracts against the record."""

    def test_local_contracts_not_deployed(self, reconciler):
        with pytest.raises(ContractNotFoundError, match="Contracts Greeter, Wallet are not deployed"):
            reconciler.check_local_contracts_deployed(throw_if_fail=True)

    def test_warns_instead_of_raising(self, reconciler):
        with capture_logs() as logs:
            reconciler.check_local_contracts_deployed()

        assert [entry["log_level"] for entry in logs] == ["warning"]

    async def test_deployed_contracts_pass(self, reconciler):
        await reconciler.push()

        reconciler.check_local_contracts_deployed(throw_if_fail=True)
        reconciler.check_local_contract_deployed("Greeter", throw_if_fail=True)
        assert reconciler.is_contract_deployed("Greeter")
        assert not reconciler.has_contract_changed("Greeter")

    async def test_changed_contract(self, reconciler, make_reconciler, write_artifact):
        await reconciler.push()
        write_artifact("Greeter", "0x60016002600355fe6001", "0x6001")
        checker = make_reconciler(reconciler.record)

        assert checker.has_contract_changed("Greeter")
        with pytest.raises(ContractNotFoundError, match="Contracts Greeter have changed"):
            checker.check_local_contracts_deployed(throw_if_fail=True)
        with pytest.raises(ContractNotFoundError, match="Greeter has changed locally"):
            checker.check_local_contract_deployed("Greeter", throw_if_fail=True)

    def test_unknown_local_contract(self, reconciler):
        assert not reconciler.has_contract_changed("Missing")
        assert reconciler.is_contract_deployed("Missing")
        with pytest.raises(ContractNotFoundError, match="Contract Missing not found in this project"):
            reconciler.check_contract_deployed(None, "Missing", throw_if_fail=True)

    async def test_dependency_contracts(self, reconciler):
        with pytest.raises(ContractNotFoundError, match="has not been linked yet"):
            reconciler.check_contract_deployed("mock-dep", "Token", throw_if_fail=True)

        await reconciler.push()

        reconciler.check_contract_deployed("mock-dep", "Token", throw_if_fail=True)
        with pytest.raises(ContractNotFoundError, match="Contract Coin is not provided by mock-dep"):
            reconciler.check_contract_deployed("mock-dep", "Coin", throw_if_fail=True)
        with pytest.raises(ContractNotFoundError, match="Dependency other-dep not found in project"):
            reconciler.check_contract_deployed("other-dep", "Token", throw_if_fail=True)
