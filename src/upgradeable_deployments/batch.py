"""Concurrent batch execution for upgradeable-deployments library."""

import asyncio
from typing import Awaitable, Iterable, List, TypeVar

from .exceptions import BackendOperationError, BatchError, DeploymentError

T = TypeVar("T")


async def tag_failure(entity: str, action: str, operation: Awaitable[T]) -> T:
    """
    Await an operation, attaching the entity it acts on to any backend failure.

    Errors of this library already name their entity and pass through
    unchanged; anything else is wrapped in a BackendOperationError.

    Args:
        entity: Identity of the item (alias, library, dependency, proxy)
        action: Operation name used in the error message
        operation: Awaitable performing the backend call

    Raises:
        BackendOperationError: If the operation raised a foreign exception
    """
    try:
        return await operation
    except DeploymentError:
        raise
    except Exception as e:
        raise BackendOperationError(entity, action, e) from e


async def all_or_error(operations: Iterable[Awaitable[T]]) -> List[T]:
    """
    Run independent operations concurrently and wait for all of them to settle.

    No operation is abandoned when a sibling fails. Results come back in
    submission order.

    Args:
        operations: Awaitables with no ordering requirement between them

    Returns:
        Results of every operation

    Raises:
        Exception: The single failure, when exactly one operation failed
        BatchError: Listing every failure, when two or more operations failed
    """
    results = await asyncio.gather(*operations, return_exceptions=True)

    errors: List[BaseException] = []
    for result in results:
        if isinstance(result, BaseException):
            # Cancellation and interpreter exits are not batch failures
            if not isinstance(result, Exception):
                raise result
            errors.append(result)

    if len(errors) == 1:
        raise errors[0]
    if errors:
        raise BatchError(errors)
    return list(results)  # type: ignore[arg-type]
