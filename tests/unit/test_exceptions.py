"""Unit tests for custom exception classes."""

import pytest

from upgradeable_deployments.exceptions import (
    AddressInUseError,
    BackendOperationError,
    BatchError,
    ContractNotFoundError,
    DependencyNotFoundError,
    DeploymentError,
    FrozenProjectError,
    ManifestNotFoundError,
    NamingCollisionError,
    ProxyKindError,
    ProxyNotFoundError,
    RecordFormatError,
    UnpublishedDependencyError,
    ValidationError,
    VersionMismatchError,
)


class TestExceptionCatching:
    """Test that exceptions can be caught as their base types."""

    def test_catch_manifest_not_found_as_file_not_found_error(self):
        """Test that ManifestNotFoundError can be caught as FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            raise ManifestNotFoundError("test")

    def test_catch_dependency_not_found_as_file_not_found_error(self):
        """Test that DependencyNotFoundError can be caught as FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            raise DependencyNotFoundError("test")

    def test_catch_record_format_as_value_error(self):
        """Test that RecordFormatError can be caught as ValueError."""
        with pytest.raises(ValueError):
            raise RecordFormatError("test")

    def test_catch_contract_not_found_as_lookup_error(self):
        """Test that ContractNotFoundError can be caught as LookupError."""
        with pytest.raises(LookupError):
            raise ContractNotFoundError("test")

    def test_catch_frozen_project_as_runtime_error(self):
        """Test that FrozenProjectError can be caught as RuntimeError."""
        with pytest.raises(RuntimeError):
            raise FrozenProjectError("test")

    def test_catch_all_as_deployment_error(self):
        """Test that all custom exceptions can be caught as DeploymentError."""
        exceptions = [
            ManifestNotFoundError("test"),
            RecordFormatError("test"),
            ValidationError("test"),
            NamingCollisionError("test"),
            DependencyNotFoundError("test"),
            UnpublishedDependencyError("test"),
            VersionMismatchError("test"),
            ContractNotFoundError("test"),
            ProxyNotFoundError("test"),
            FrozenProjectError("test"),
            AddressInUseError("test"),
            ProxyKindError("test"),
            BackendOperationError("Greeter", "deployment", RuntimeError("boom")),
            BatchError([RuntimeError("a"), RuntimeError("b")]),
        ]

        for exc in exceptions:
            with pytest.raises(DeploymentError):
                raise exc


class TestExceptionCreation:
    """Test creating exceptions with various message types."""

    def test_exceptions_accept_string_messages(self):
        """Test that message-only exceptions keep their message."""
        exceptions = [
            DeploymentError,
            ManifestNotFoundError,
            RecordFormatError,
            ValidationError,
            NamingCollisionError,
            VersionMismatchError,
            ContractNotFoundError,
            FrozenProjectError,
        ]

        for exc_class in exceptions:
            exc = exc_class("test message")
            assert str(exc) == "test message"

    def test_backend_operation_error_names_entity(self):
        """Test that a backend failure message carries the entity and the cause."""
        cause = RuntimeError("out of gas")
        exc = BackendOperationError("Wallet", "deployment", cause)

        assert str(exc) == "Wallet deployment failed with error: out of gas"
        assert exc.entity == "Wallet"
        assert exc.action == "deployment"
        assert exc.cause is cause

    def test_backend_operation_error_without_cause(self):
        """Test that a missing cause is reported as unknown."""
        exc = BackendOperationError("Dependency mock-dep", "linking")
        assert str(exc) == "Dependency mock-dep linking failed with error: unknown error"

    def test_batch_error_lists_every_failure(self):
        """Test that a batch error lists each failure on its own line."""
        errors = [RuntimeError("first"), ValueError("second")]
        exc = BatchError(errors)

        assert exc.errors == errors
        assert str(exc) == "Multiple errors were found:\n- first\n- second"
