"""Read-only JSON-RPC chain inspection for upgradeable-deployments library."""

import asyncio
import os
from typing import Any, List, Optional

import requests

from .constants import (
    ADMIN_SLOT,
    EMPTY_CODE,
    IMPLEMENTATION_SLOT,
    MINIMAL_PROXY_PREFIX,
    MINIMAL_PROXY_SUFFIX,
    RPC_TIMEOUT_SECONDS,
    RPC_URL_ENV,
    ZERO_ADDRESS,
)
from .types import ProxyKind


def rpc_call(rpc_url: str, method: str, params: List[Any]) -> Any:
    """
    Make a single JSON-RPC call.

    Args:
        rpc_url: RPC endpoint URL
        method: JSON-RPC method name, e.g. "eth_getCode"
        params: Method parameters

    Returns:
        The "result" member of the response

    Raises:
        KeyError: If RPC response is missing required fields
        ValueError: If RPC returns an error
        RuntimeError: If network error occurs
    """
    try:
        response = requests.post(
            rpc_url,
            json={"jsonrpc": "2.0", "method": method, "params": params, "id": 1},
            timeout=RPC_TIMEOUT_SECONDS,
        )

        # Check for HTTP errors
        if response.status_code != 200:
            raise RuntimeError(f"RPC request failed with status {response.status_code}")

        result = response.json()

        # Check for RPC errors
        if "error" in result:
            raise ValueError(f"RPC error: {result['error']}")

        return result["result"]

    except requests.RequestException as e:
        raise RuntimeError(f"Network error during RPC call: {e}") from e


def get_code(address: str, rpc_url: str) -> str:
    """Runtime code at an address ("0x" when there is none)."""
    return rpc_call(rpc_url, "eth_getCode", [address, "latest"])


def get_storage_at(address: str, slot: str, rpc_url: str) -> str:
    """Raw 32-byte storage word of an address."""
    return rpc_call(rpc_url, "eth_getStorageAt", [address, slot, "latest"])


def address_from_storage_word(word: str) -> Optional[str]:
    """
    Decode an address stored right-aligned in a storage word.

    Returns:
        Lower-case 0x-prefixed address, or None for an empty slot
    """
    address = "0x" + word.removeprefix("0x").rjust(64, "0")[-40:]
    if address == ZERO_ADDRESS:
        return None
    return address


def minimal_proxy_target(code: str) -> Optional[str]:
    """Implementation address embedded in EIP-1167 minimal proxy code, if code is one."""
    body = code.removeprefix("0x").lower()
    if not (body.startswith(MINIMAL_PROXY_PREFIX) and body.endswith(MINIMAL_PROXY_SUFFIX)):
        return None
    target = body[len(MINIMAL_PROXY_PREFIX):-len(MINIMAL_PROXY_SUFFIX)]
    if len(target) != 40:
        return None
    return "0x" + target


class RpcChainReader:
    """
    Chain reader backed by a JSON-RPC endpoint.

    Blocking HTTP calls run in a worker thread so concurrent proxy
    operations are not serialized behind each other.
    """

    def __init__(self, rpc_url: Optional[str] = None):
        """
        Args:
            rpc_url: RPC endpoint URL (defaults to $DEPLOYMENTS_RPC_URL)

        Raises:
            ValueError: If no URL is given and the environment variable is unset
        """
        if rpc_url is None:
            rpc_url = os.environ.get(RPC_URL_ENV)
        if rpc_url is None:
            raise ValueError(
                f"RPC URL required: set ${RPC_URL_ENV} environment variable, or pass rpc_url parameter"
            )
        self.rpc_url = rpc_url

    async def has_code(self, address: str) -> bool:
        code = await asyncio.to_thread(get_code, address, self.rpc_url)
        return bool(code) and code != EMPTY_CODE

    async def proxy_implementation(self, address: str, kind: ProxyKind) -> Optional[str]:
        if kind is ProxyKind.MINIMAL:
            code = await asyncio.to_thread(get_code, address, self.rpc_url)
            return minimal_proxy_target(code)
        word = await asyncio.to_thread(get_storage_at, address, IMPLEMENTATION_SLOT, self.rpc_url)
        return address_from_storage_word(word)

    async def proxy_admin(self, address: str) -> Optional[str]:
        word = await asyncio.to_thread(get_storage_at, address, ADMIN_SLOT, self.rpc_url)
        return address_from_storage_word(word)
