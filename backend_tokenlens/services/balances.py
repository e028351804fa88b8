"""
Balance pipeline: token + wallet -> TokenBalanceRecord.

Validates both addresses up front, then fans out the balance bundle and the
block-height lookup concurrently. The balance is scaled by the token's own
decimals (not a fixed 18).
"""

from __future__ import annotations

import asyncio
from typing import Any

from backend_tokenlens.chain import ChainClient, TokenInfo, from_base_units, is_valid_address
from backend_tokenlens.core.concurrency import gather_or_fail
from backend_tokenlens.core.exceptions import (
    BalanceFetchError,
    ChainCallError,
    FieldError,
    PersistenceError,
    ValidationError,
)
from backend_tokenlens.database import TokenBalanceRecord, TransactionStore
from backend_tokenlens.database.models import utc_now
from backend_tokenlens.tokenlens_logging import get_logger, short_address

logger = get_logger(__name__)


def validate_balance_request(token_address: Any, wallet_address: Any) -> None:
    """Raise ValidationError naming every malformed address field."""
    errors: list[FieldError] = []
    if not is_valid_address(token_address):
        errors.append(FieldError(param="tokenAddress", msg="Invalid token address", value=token_address))
    if not is_valid_address(wallet_address):
        errors.append(FieldError(param="walletAddress", msg="Invalid wallet address", value=wallet_address))
    if errors:
        raise ValidationError(errors)


async def fetch_token_balance(
    chain: ChainClient,
    token_address: str,
    wallet_address: str,
    *,
    cache: TransactionStore | None = None,
) -> TokenBalanceRecord:
    """
    Fetch and normalize a wallet's balance of one ERC20 token.

    Metadata failures fall back to sentinel values inside the chain client;
    balanceOf() or block-height failures abort the whole request.

    Raises:
        ValidationError: either address is malformed (both are reported).
        BalanceFetchError: balanceOf() or eth_blockNumber failed.
    """
    validate_balance_request(token_address, wallet_address)
    token = token_address.lower()
    wallet = wallet_address.lower()

    try:
        balance, block = await gather_or_fail(
            chain.get_token_balance(token, wallet),
            chain.get_block_height(),
        )
    except ChainCallError as e:
        logger.warning(
            "token_balance_fetch_failed",
            token=short_address(token),
            wallet=short_address(wallet),
            error=str(e),
        )
        raise BalanceFetchError(str(e)) from e

    record = TokenBalanceRecord(
        token_address=token,
        wallet_address=wallet,
        name=balance.name,
        symbol=balance.symbol,
        decimals=balance.decimals,
        raw_balance=str(balance.raw_balance),
        formatted_balance=from_base_units(balance.raw_balance, balance.decimals),
        last_block=block,
        last_updated=utc_now(),
    )
    logger.info(
        "token_balance_fetched",
        token=short_address(token),
        wallet=short_address(wallet),
        symbol=record.symbol,
        block=block,
    )

    if cache is not None:
        try:
            await asyncio.to_thread(cache.upsert_token_balance, record)
        except PersistenceError as e:
            logger.exception("token_balance_cache_write_failed", token=short_address(token), error=str(e))
    return record


async def fetch_token_info(chain: ChainClient, token_address: str) -> TokenInfo:
    """
    Strict metadata lookup (symbol, name, decimals); no fallbacks.

    Raises:
        ValidationError: malformed token address.
        ChainCallError: any metadata call failed.
    """
    if not is_valid_address(token_address):
        raise ValidationError(
            [FieldError(param="tokenAddress", msg="Invalid token address", value=token_address, location="params")]
        )
    info = await chain.get_token_info(token_address.lower())
    logger.info("token_info_fetched", token=short_address(token_address), symbol=info.symbol)
    return info
