"""Unit tests for concurrent batch execution."""

import asyncio

import pytest

from upgradeable_deployments.batch import all_or_error, tag_failure
from upgradeable_deployments.exceptions import (
    BackendOperationError,
    BatchError,
    FrozenProjectError,
)


async def succeed(value, delay: float = 0):
    await asyncio.sleep(delay)
    return value


async def fail(message: str, delay: float = 0):
    await asyncio.sleep(delay)
    raise RuntimeError(message)


class TestAllOrError:
    """Test settling independent operations."""

    async def test_returns_results_in_order(self):
        """Test that results follow submission order, not completion order."""
        results = await all_or_error([succeed("a", 0.02), succeed("b", 0), succeed("c", 0.01)])
        assert results == ["a", "b", "c"]

    async def test_empty_batch(self):
        assert await all_or_error([]) == []

    async def test_accepts_generators(self):
        assert await all_or_error(succeed(i) for i in range(3)) == [0, 1, 2]

    async def test_single_failure_is_raised_as_is(self):
        with pytest.raises(RuntimeError, match="only one"):
            await all_or_error([succeed(1), fail("only one"), succeed(3)])

    async def test_multiple_failures_are_aggregated(self):
        """Test that every operation settles and all failures are reported."""
        completed = []

        async def track(index: int):
            await asyncio.sleep(0.01)
            completed.append(index)

        operations = [
            track(1),
            fail("second failed"),
            track(3),
            fail("fourth failed", 0.02),
            track(5),
        ]

        with pytest.raises(BatchError) as excinfo:
            await all_or_error(operations)

        assert sorted(completed) == [1, 3, 5]
        assert [str(error) for error in excinfo.value.errors] == ["second failed", "fourth failed"]
        assert "second failed" in str(excinfo.value)
        assert "fourth failed" in str(excinfo.value)

    async def test_cancellation_is_not_aggregated(self):
        async def cancelled():
            raise asyncio.CancelledError()

        with pytest.raises(asyncio.CancelledError):
            await all_or_error([succeed(1), cancelled()])


class TestTagFailure:
    """Test attaching entities to backend failures."""

    async def test_passes_result_through(self):
        assert await tag_failure("Greeter", "deployment", succeed(42)) == 42

    async def test_wraps_foreign_errors(self):
        with pytest.raises(BackendOperationError) as excinfo:
            await tag_failure("Greeter", "deployment", fail("out of gas"))

        assert str(excinfo.value) == "Greeter deployment failed with error: out of gas"
        assert isinstance(excinfo.value.cause, RuntimeError)

    async def test_library_errors_pass_unchanged(self):
        async def frozen():
            raise FrozenProjectError("frozen")

        with pytest.raises(FrozenProjectError):
            await tag_failure("Greeter", "deployment", frozen())

    async def test_tagged_failures_in_batch(self):
        with pytest.raises(BatchError) as excinfo:
            await all_or_error(
                [
                    tag_failure("Greeter", "deployment", fail("boom")),
                    tag_failure("Wallet", "deployment", fail("bang")),
                ]
            )

        assert [error.entity for error in excinfo.value.errors] == ["Greeter", "Wallet"]
