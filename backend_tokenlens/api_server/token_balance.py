"""
FastAPI router: POST /token-balance, GET /token-info/{token_address}.

Balances are always read live from the chain; the optional cache is write-only,
so responses carry cached=false.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from backend_tokenlens.api_server.dependencies import get_balance_cache, get_chain_client
from backend_tokenlens.api_server.responses import (
    error_response,
    success_response,
    validation_error_response,
)
from backend_tokenlens.chain import ChainClient
from backend_tokenlens.core.exceptions import TokenLensError, ValidationError
from backend_tokenlens.database import TransactionStore
from backend_tokenlens.services.balances import fetch_token_balance, fetch_token_info
from backend_tokenlens.tokenlens_logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["Token Balance"])


class TokenBalanceRequest(BaseModel):
    """POST /token-balance body. Missing or non-string fields are reported like malformed ones."""

    tokenAddress: Any = Field("", description="ERC20 contract address (0x + 40 hex)")
    walletAddress: Any = Field("", description="Wallet address (0x + 40 hex)")


@router.post("/token-balance")
async def post_token_balance(
    body: TokenBalanceRequest,
    chain: ChainClient = Depends(get_chain_client),
    cache: TransactionStore | None = Depends(get_balance_cache),
) -> Any:
    """
    Return a wallet's balance of one token with name/symbol/decimals and the current block.

    400 lists every malformed address; 500 when balanceOf or the block height fails.
    """
    try:
        record = await fetch_token_balance(chain, body.tokenAddress, body.walletAddress, cache=cache)
    except ValidationError:
        raise
    except TokenLensError as e:
        logger.warning("token_balance_error", error=str(e))
        return error_response(500, "Failed to fetch token balance", str(e))
    return success_response({**record.to_dict(), "cached": False})


@router.get("/token-info/{token_address}")
async def get_token_info(token_address: str, chain: ChainClient = Depends(get_chain_client)) -> Any:
    """Return name/symbol/decimals of a token; no fallbacks, any failed call is a 500."""
    try:
        info = await fetch_token_info(chain, token_address.strip())
    except ValidationError as e:
        return validation_error_response(e.errors, error="Invalid token address")
    except TokenLensError as e:
        logger.warning("token_info_error", error=str(e))
        return error_response(500, "Failed to fetch token info", str(e))
    return success_response(info.to_dict())
