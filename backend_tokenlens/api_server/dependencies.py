"""
FastAPI dependencies: collaborators built once per application (see server.lifespan).

Handlers receive them through Depends(); tests inject fakes via create_app(...)
or app.dependency_overrides.
"""

from __future__ import annotations

from fastapi import Request

from backend_tokenlens.chain import ChainClient
from backend_tokenlens.config import Settings
from backend_tokenlens.database import TransactionStore
from backend_tokenlens.explorer import EtherscanClient


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_chain_client(request: Request) -> ChainClient:
    return request.app.state.chain_client


def get_explorer_client(request: Request) -> EtherscanClient:
    return request.app.state.explorer_client


def get_transaction_store(request: Request) -> TransactionStore:
    return request.app.state.transaction_store


def get_balance_cache(request: Request) -> TransactionStore | None:
    """Store used for balance snapshots, or None when TOKEN_BALANCE_CACHE is off."""
    if not request.app.state.settings.token_balance_cache:
        return None
    return request.app.state.transaction_store
