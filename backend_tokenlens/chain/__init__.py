"""
Chain access: JSON-RPC contract calls against a minimal ERC20 interface.
"""

from backend_tokenlens.chain.client import (
    DEFAULT_DECIMALS,
    UNKNOWN_NAME,
    UNKNOWN_SYMBOL,
    ChainClient,
    from_base_units,
    is_valid_address,
)
from backend_tokenlens.chain.models import TokenBalance, TokenInfo

__all__ = [
    "ChainClient",
    "DEFAULT_DECIMALS",
    "UNKNOWN_NAME",
    "UNKNOWN_SYMBOL",
    "TokenBalance",
    "TokenInfo",
    "from_base_units",
    "is_valid_address",
]
