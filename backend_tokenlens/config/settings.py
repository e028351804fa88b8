"""
Application settings.

Typed, immutable view of the environment (see config/env.py) shared by the
API server, chain client, explorer client and transaction store.
"""

from __future__ import annotations

from dataclasses import dataclass

from backend_tokenlens.config.env import (
    DEFAULT_ETHERSCAN_API_URL,
    env_flag,
    env_float,
    env_int,
    env_str,
    get_database_url,
    get_eth_rpc_url,
    load_tokenlens_env,
)

DEFAULT_TXN_PAGE_SIZE = 5


@dataclass(frozen=True)
class Settings:
    """Runtime configuration; build with get_settings() or directly in tests."""

    eth_rpc_url: str
    etherscan_api_url: str = DEFAULT_ETHERSCAN_API_URL
    etherscan_api_key: str = ""
    etherscan_chain_id: int | None = None
    database_url: str = "sqlite:///tokenlens.db"
    txn_page_size: int = DEFAULT_TXN_PAGE_SIZE
    http_timeout_sec: float = 30.0
    token_balance_cache: bool = False
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_origins: tuple[str, ...] = ("*",)


def get_settings() -> Settings:
    """
    Return the current application settings from env (and .env).

    Raises:
        ValueError: a numeric variable is set to something that is not a number,
            or TXN_PAGE_SIZE is not positive.
    """
    load_tokenlens_env()
    chain_id_raw = env_str("ETHERSCAN_CHAIN_ID")
    page_size = env_int("TXN_PAGE_SIZE", DEFAULT_TXN_PAGE_SIZE)
    if page_size <= 0:
        raise ValueError(f"TXN_PAGE_SIZE must be positive, got {page_size}")
    origins = [o.strip() for o in env_str("CORS_ORIGINS", "*").split(",") if o.strip()]
    return Settings(
        eth_rpc_url=get_eth_rpc_url(),
        etherscan_api_url=env_str("ETHERSCAN_API_URL", DEFAULT_ETHERSCAN_API_URL),
        etherscan_api_key=env_str("ETHERSCAN_API_KEY"),
        etherscan_chain_id=env_int("ETHERSCAN_CHAIN_ID", 0) if chain_id_raw else None,
        database_url=get_database_url(),
        txn_page_size=page_size,
        http_timeout_sec=env_float("HTTP_TIMEOUT_SEC", 30.0),
        token_balance_cache=env_flag("TOKEN_BALANCE_CACHE"),
        api_host=env_str("API_HOST", "0.0.0.0"),
        api_port=env_int("API_PORT", env_int("PORT", 8000)),
        cors_origins=tuple(origins) or ("*",),
    )
