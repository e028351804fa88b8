"""
Domain models for stored and computed records.

Transaction records, their aggregate statistics, and token balance snapshots.
Used by the services and API layers; no ORM coupling (see database/tables.py).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

STATUS_SUCCESS = "success"
STATUS_FAILED = "failed"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (as returned by SQLite) and convert aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    return as_utc(value).isoformat().replace("+00:00", "Z")


@dataclass
class TransactionRecord:
    """One explorer transaction, as stored for a tracked wallet."""

    address: str
    """Tracked wallet this record was fetched for (lowercase)."""
    hash: str
    from_address: str
    to_address: str | None
    """None for contract creation."""
    value: str
    """Wei, decimal string (may exceed 64-bit range)."""
    timestamp: datetime
    block_number: int
    gas_used: str
    status: str
    """STATUS_SUCCESS or STATUS_FAILED."""
    last_updated: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "hash": self.hash,
            "from": self.from_address,
            "to": self.to_address,
            "value": self.value,
            "timestamp": _iso(self.timestamp),
            "blockNumber": self.block_number,
            "gasUsed": self.gas_used,
            "status": self.status,
            "lastUpdated": _iso(self.last_updated),
        }


@dataclass
class TransactionStats:
    """Aggregate over every stored transaction of one address."""

    total_transactions: int = 0
    total_value: Decimal = Decimal(0)
    avg_gas_used: Decimal = Decimal(0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalTransactions": self.total_transactions,
            "totalValue": float(self.total_value),
            "avgGasUsed": float(self.avg_gas_used),
        }


@dataclass
class TokenBalanceRecord:
    """Normalized balance of one wallet for one ERC20 token at a block."""

    token_address: str
    wallet_address: str
    name: str
    symbol: str
    decimals: int
    raw_balance: str
    """Base units as a decimal string."""
    formatted_balance: Decimal
    """raw_balance / 10**decimals."""
    last_block: int
    last_updated: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "tokenAddress": self.token_address,
            "walletAddress": self.wallet_address,
            "tokenDetails": {
                "name": self.name,
                "symbol": self.symbol,
                "decimals": self.decimals,
            },
            "balance": {
                "raw": self.raw_balance,
                "formatted": float(self.formatted_balance),
            },
            "lastBlock": self.last_block,
            "lastUpdated": _iso(self.last_updated),
        }
