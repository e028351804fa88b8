"""
Values returned by the chain client.

Addresses are kept lowercase; raw balances stay integers until formatting.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TokenBalance:
    """balanceOf() plus best-effort token metadata for one (token, wallet) pair."""

    symbol: str
    name: str
    decimals: int
    raw_balance: int
    """Balance in base units, as returned by balanceOf()."""


@dataclass(frozen=True)
class TokenInfo:
    """Strictly fetched ERC20 metadata."""

    address: str
    name: str
    symbol: str
    decimals: int

    def to_dict(self) -> dict[str, object]:
        return {
            "address": self.address,
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
        }
