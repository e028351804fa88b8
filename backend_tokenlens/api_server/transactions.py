"""
FastAPI router: POST /transactions/fetch, GET /transactions/{address}, GET /transactions/{address}/stats.

Fetch pulls from the explorer and upserts into the store; the GET routes read
the store only.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from backend_tokenlens.api_server.dependencies import (
    get_explorer_client,
    get_settings_dep,
    get_transaction_store,
)
from backend_tokenlens.api_server.responses import error_response, success_response
from backend_tokenlens.config import Settings
from backend_tokenlens.core.exceptions import TokenLensError, ValidationError
from backend_tokenlens.database import TransactionStore
from backend_tokenlens.explorer import EtherscanClient
from backend_tokenlens.services import transactions as txn_service
from backend_tokenlens.tokenlens_logging import get_logger, short_address

logger = get_logger(__name__)

router = APIRouter(prefix="/transactions", tags=["Transactions"])


class FetchTransactionsRequest(BaseModel):
    """POST /transactions/fetch body. Any JSON value is accepted and validated as an address."""

    address: Any = Field("", description="Wallet address (0x + 40 hex)")


@router.post("/fetch")
async def fetch_transactions(
    body: FetchTransactionsRequest,
    explorer: EtherscanClient = Depends(get_explorer_client),
    store: TransactionStore = Depends(get_transaction_store),
    settings: Settings = Depends(get_settings_dep),
) -> Any:
    """Fetch the newest transactions of a wallet from the explorer and store them."""
    try:
        records = await txn_service.fetch_and_store_transactions(
            explorer, store, body.address, page_size=settings.txn_page_size
        )
    except ValidationError:
        raise
    except TokenLensError as e:
        logger.warning("transactions_fetch_error", address=short_address(body.address), error=str(e))
        return error_response(500, "Failed to fetch transactions", str(e))
    return success_response([r.to_dict() for r in records])


@router.get("/{address}/stats")
async def get_transaction_stats(
    address: str,
    store: TransactionStore = Depends(get_transaction_store),
) -> Any:
    """Count, total value and average gas used over the stored transactions of an address."""
    try:
        stats = await txn_service.transaction_stats(store, address)
    except TokenLensError as e:
        logger.exception("transactions_stats_error", address=short_address(address), error=str(e))
        return error_response(500, "Failed to get transaction stats", str(e))
    return success_response(stats.to_dict())


@router.get("/{address}")
async def get_transactions(
    address: str,
    start_date: str | None = Query(None, alias="startDate", description="ISO-8601 lower bound (inclusive)"),
    end_date: str | None = Query(None, alias="endDate", description="ISO-8601 upper bound (inclusive)"),
    store: TransactionStore = Depends(get_transaction_store),
) -> Any:
    """Up to 100 stored transactions of an address, newest first, optionally within a date range."""
    try:
        records = await txn_service.query_transactions(store, address, start_date, end_date)
    except ValidationError:
        raise
    except TokenLensError as e:
        logger.exception("transactions_query_error", address=short_address(address), error=str(e))
        return error_response(500, "Failed to query transactions", str(e))
    return success_response([r.to_dict() for r in records])
