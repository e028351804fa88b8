"""
Chain client: ERC20 contract calls, block height, address checks, unit conversion.

Wraps one pooled AsyncWeb3 handle. Build it once per application with
ChainClient.create() and hand it to the request handlers; tests pass any
object that quacks like AsyncWeb3 (``eth.contract(...)``, ``eth.block_number``).
"""

from __future__ import annotations

import json
from decimal import Decimal, localcontext
from pathlib import Path
from typing import Any, Awaitable

from eth_utils import is_0x_prefixed, is_hex_address
from web3 import AsyncWeb3

from backend_tokenlens.chain.models import TokenBalance, TokenInfo
from backend_tokenlens.core.concurrency import gather_or_fail, gather_with_fallback
from backend_tokenlens.core.exceptions import ChainCallError
from backend_tokenlens.tokenlens_logging import get_logger, short_address

logger = get_logger(__name__)

ERC20_ABI_PATH = Path(__file__).resolve().parent / "erc20_abi.json"

UNKNOWN_SYMBOL = "UNKNOWN"
UNKNOWN_NAME = "Unknown Token"
DEFAULT_DECIMALS = 18

# uint256 has at most 78 digits; keep conversions exact
_DECIMAL_PRECISION = 100


def is_valid_address(value: Any) -> bool:
    """True for a 0x-prefixed 40-hex-digit string, in any letter case (checksum not enforced)."""
    return isinstance(value, str) and is_0x_prefixed(value) and is_hex_address(value)


def from_base_units(raw: int | str, decimals: int) -> Decimal:
    """Scale a base-unit integer by the token's decimals: raw / 10**decimals, exactly."""
    with localcontext() as ctx:
        ctx.prec = _DECIMAL_PRECISION
        return Decimal(int(raw)) / (Decimal(10) ** int(decimals))


def _load_erc20_abi() -> list[dict[str, Any]]:
    with open(ERC20_ABI_PATH, "r") as f:
        return json.load(f)


def _coerce_decimals(value: Any) -> int:
    decimals = int(value)
    if not 0 <= decimals <= 255:
        raise ValueError(f"decimals out of uint8 range: {decimals}")
    return decimals


class ChainClient:
    """JSON-RPC access for the balance pipeline."""

    _w3: Any
    _erc20_abi: list[dict[str, Any]]

    def __init__(self, w3: Any, erc20_abi: list[dict[str, Any]] | None = None):
        self._w3 = w3
        self._erc20_abi = erc20_abi if erc20_abi is not None else _load_erc20_abi()

    @staticmethod
    def create(rpc_url: str, timeout_sec: float = 30.0) -> ChainClient:
        """
        Create a client backed by an AsyncHTTPProvider.

        Args:
            rpc_url: Ethereum JSON-RPC URL
            timeout_sec: total timeout for each RPC round trip

        Returns:
            An instance of :class:`ChainClient`
        """
        import aiohttp

        provider = AsyncWeb3.AsyncHTTPProvider(
            rpc_url,
            request_kwargs={"timeout": aiohttp.ClientTimeout(total=timeout_sec)},
        )
        return ChainClient(AsyncWeb3(provider))

    async def close(self) -> None:
        """Release pooled HTTP sessions held by the provider, if it keeps any."""
        provider = getattr(self._w3, "provider", None)
        disconnect = getattr(provider, "disconnect", None)
        if disconnect is not None:
            await disconnect()

    is_valid_address = staticmethod(is_valid_address)
    from_base_units = staticmethod(from_base_units)

    def _contract(self, token_address: str) -> Any:
        try:
            checksum = AsyncWeb3.to_checksum_address(token_address)
        except (TypeError, ValueError) as e:
            raise ChainCallError(f"Invalid contract address {token_address!r}: {e}") from e
        return self._w3.eth.contract(address=checksum, abi=self._erc20_abi)

    async def _call(self, fn_name: str, token_address: str, awaitable: Awaitable[Any]) -> Any:
        try:
            return await awaitable
        except ChainCallError:
            raise
        except Exception as e:
            logger.warning(
                "chain_call_failed",
                fn=fn_name,
                token=short_address(token_address),
                error=str(e),
            )
            raise ChainCallError(f"{fn_name}() call failed: {e}") from e

    async def _decimals(self, contract: Any, token_address: str) -> int:
        raw = await self._call("decimals", token_address, contract.functions.decimals().call())
        try:
            return _coerce_decimals(raw)
        except (TypeError, ValueError) as e:
            raise ChainCallError(f"decimals() returned {raw!r}: {e}") from e

    async def get_token_balance(self, token_address: str, wallet_address: str) -> TokenBalance:
        """
        Fetch balanceOf(wallet) together with symbol/name/decimals.

        The four calls run concurrently. Metadata calls are best-effort and fall
        back to UNKNOWN_SYMBOL, UNKNOWN_NAME and DEFAULT_DECIMALS.

        Raises:
            ChainCallError: balanceOf() failed.
        """
        contract = self._contract(token_address)
        try:
            wallet = AsyncWeb3.to_checksum_address(wallet_address)
        except (TypeError, ValueError) as e:
            raise ChainCallError(f"Invalid wallet address {wallet_address!r}: {e}") from e

        metadata, raw_balance = await gather_or_fail(
            gather_with_fallback(
                (self._call("symbol", token_address, contract.functions.symbol().call()), UNKNOWN_SYMBOL),
                (self._call("name", token_address, contract.functions.name().call()), UNKNOWN_NAME),
                (self._decimals(contract, token_address), DEFAULT_DECIMALS),
                label="erc20_metadata",
            ),
            self._call("balanceOf", token_address, contract.functions.balanceOf(wallet).call()),
        )
        symbol, name, decimals = metadata
        return TokenBalance(
            symbol=str(symbol),
            name=str(name),
            decimals=decimals,
            raw_balance=int(raw_balance),
        )

    async def get_token_info(self, token_address: str) -> TokenInfo:
        """
        Fetch symbol/name/decimals; every call must succeed.

        Raises:
            ChainCallError: any of the three calls failed.
        """
        contract = self._contract(token_address)
        symbol, name, decimals = await gather_or_fail(
            self._call("symbol", token_address, contract.functions.symbol().call()),
            self._call("name", token_address, contract.functions.name().call()),
            self._decimals(contract, token_address),
        )
        return TokenInfo(
            address=token_address,
            name=str(name),
            symbol=str(symbol),
            decimals=decimals,
        )

    async def get_block_height(self) -> int:
        """
        Return the latest block number.

        Raises:
            ChainCallError: eth_blockNumber failed.
        """
        try:
            return int(await self._w3.eth.block_number)
        except Exception as e:
            logger.warning("block_height_failed", error=str(e))
            raise ChainCallError(f"eth_blockNumber failed: {e}") from e
