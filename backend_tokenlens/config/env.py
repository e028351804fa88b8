"""
Environment variable loading for TokenLens.

- ETH_RPC_URL: JSON-RPC endpoint for contract calls and block height
- ETHERSCAN_API_KEY / ETHERSCAN_API_URL / ETHERSCAN_CHAIN_ID: explorer access
- DATABASE_URL: SQLAlchemy URL for the transaction store (SQLite fallback)
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

# Project root: config is backend_tokenlens/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_BACKEND_DIR = _CONFIG_DIR.parent
_ROOT = _BACKEND_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_RPC_URL = "https://ethereum-sepolia-rpc.publicnode.com"
DEFAULT_ETHERSCAN_API_URL = "https://api.etherscan.io/api"
DEFAULT_SQLITE_PATH = "tokenlens.db"


def load_tokenlens_env() -> None:
    """Load .env from project root. Safe to call multiple times; existing env wins."""
    from dotenv import load_dotenv

    load_dotenv(_ENV_PATH, override=False)


def env_str(name: str, default: str = "") -> str:
    """Return a stripped env value, or default when unset or blank."""
    return (os.getenv(name) or "").strip() or default


def env_int(name: str, default: int) -> int:
    raw = env_str(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def env_float(name: str, default: float) -> float:
    raw = env_str(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


def env_flag(name: str) -> bool:
    return env_str(name).lower() in ("1", "true", "yes", "on")


def get_eth_rpc_url() -> str:
    """Resolve the JSON-RPC URL. Order: ETH_RPC_URL > public Sepolia default."""
    load_tokenlens_env()
    return env_str("ETH_RPC_URL", DEFAULT_RPC_URL)


def get_database_url() -> str:
    """Return DATABASE_URL if set; else SQLite from DATABASE_PATH or the default file."""
    load_tokenlens_env()
    url = env_str("DATABASE_URL")
    if url:
        return url
    return f"sqlite:///{env_str('DATABASE_PATH', DEFAULT_SQLITE_PATH)}"


def mask_url(url: str) -> str:
    """Hide credentials and API keys in a URL before logging it."""
    if "apikey=" in url:
        url = url.split("apikey=")[0] + "apikey=***"
    if "@" in url and "//" in url:
        scheme, rest = url.split("//", 1)
        url = f"{scheme}//***@{rest.split('@', 1)[1]}"
    # Infura-style keys live in the path
    if "/v3/" in url:
        url = url.split("/v3/")[0] + "/v3/***"
    return url
