"""
Contract call interface and its web3 adapter.

The gateway only depends on `ContractCaller`; `Web3ContractCaller` is the
production implementation over an EVM JSON-RPC endpoint.
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Optional, Protocol, Sequence

import aiohttp
import structlog
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import (
    BadFunctionCallOutput,
    ContractLogicError,
    ProviderConnectionError,
    Web3Exception,
    Web3RPCError,
)

from .config import Settings
from .errors import UpstreamCallError, UpstreamTimeout, UpstreamUnavailable

logger = structlog.get_logger()


# LockableNFT ABI (minimal)
LOCKABLE_NFT_ABI = [
    {
        "inputs": [{"name": "tokenId", "type": "uint256"}],
        "name": "isTokenLocked",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "view",
        "type": "function",
    },
]


class ContractCaller(Protocol):
    """Read-only call against one deployed contract."""

    async def call(self, method: str, args: Sequence[Any]) -> Any:
        """
        Call a view method and return its decoded result.

        Raises:
            UpstreamUnavailable: endpoint unreachable
            UpstreamTimeout: transport-level timeout
            UpstreamCallError: revert or RPC error
        """
        ...


def load_contract_abi(path: Path) -> list[dict[str, Any]]:
    """
    Load an ABI from disk.

    Accepts a bare ABI list or a Truffle/Hardhat build artifact
    (an object with an "abi" key).
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict):
        data = data.get("abi")
    if not isinstance(data, list):
        raise ValueError(f"No ABI found in {path}")
    return data


def abi_has_function(abi: list[dict[str, Any]], name: str) -> bool:
    """Check that the ABI declares a function called `name`."""
    return any(
        entry.get("type") == "function" and entry.get("name") == name
        for entry in abi
    )


class Web3ContractCaller:
    """
    Async web3 adapter implementing `ContractCaller`.
    """

    def __init__(self, settings: Settings, abi: Optional[list[dict[str, Any]]] = None):
        if not settings.contract_address:
            raise ValueError("CONTRACT_ADDRESS not configured")

        if abi is None:
            abi = (
                load_contract_abi(settings.contract_abi_path)
                if settings.contract_abi_path
                else LOCKABLE_NFT_ABI
            )
        if not abi_has_function(abi, settings.contract_method):
            raise ValueError(f"ABI has no function named {settings.contract_method!r}")

        self.timeout = settings.call_timeout_seconds
        # No provider-level retries: one HTTP request per call
        self.w3 = AsyncWeb3(
            AsyncHTTPProvider(
                settings.evm_rpc_url,
                request_kwargs={"timeout": aiohttp.ClientTimeout(total=self.timeout)},
                exception_retry_configuration=None,
            )
        )
        self.contract = self.w3.eth.contract(
            address=self.w3.to_checksum_address(settings.contract_address),
            abi=abi,
        )

    async def check_connectivity(self) -> bool:
        """Check if EVM RPC is reachable."""
        try:
            await asyncio.wait_for(self._block_number(), timeout=self.timeout)
            return True
        except Exception:
            return False

    async def _block_number(self) -> int:
        return await self.w3.eth.block_number

    async def call(self, method: str, args: Sequence[Any]) -> Any:
        """Call a view method on the contract."""
        function = getattr(self.contract.functions, method)
        try:
            return await function(*args).call()
        except asyncio.TimeoutError as e:
            raise UpstreamTimeout("EVM RPC request timed out") from e
        except (ProviderConnectionError, aiohttp.ClientError, OSError) as e:
            logger.warning("EVM RPC unreachable", method=method, error=str(e))
            raise UpstreamUnavailable("EVM RPC endpoint unreachable") from e
        except (ContractLogicError, BadFunctionCallOutput, Web3RPCError) as e:
            reason = getattr(e, "message", None) or str(e)
            raise UpstreamCallError(f"Contract call failed: {reason}") from e
        except Web3Exception as e:
            logger.error("Unexpected web3 error", method=method, error=str(e))
            raise UpstreamCallError("Contract call failed") from e
