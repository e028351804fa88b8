"""
SQLAlchemy models for the transaction store.

Datetimes are stored as naive UTC; conversion to aware datetimes happens in
to_record().
"""

from __future__ import annotations

from sqlalchemy import BigInteger, Column, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base

from backend_tokenlens.database.models import TransactionRecord, as_utc

Base = declarative_base()


class TransactionLog(Base):
    """
    One transaction per (tracked address, hash). The same hash may appear once
    for each tracked wallet it was fetched for.
    """

    __tablename__ = "transactions"
    __table_args__ = (UniqueConstraint("address", "hash", name="uq_transactions_address_hash"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    address = Column(String(42), nullable=False, index=True)
    hash = Column(String(66), nullable=False, index=True)
    from_address = Column(String(42), nullable=True)
    to_address = Column(String(42), nullable=True)
    value = Column(String(80), nullable=False)  # Wei; string avoids precision loss
    timestamp = Column(DateTime, nullable=False, index=True)
    block_number = Column(BigInteger, nullable=True)
    gas_used = Column(String(80), nullable=True)
    status = Column(String(16), nullable=False)
    last_updated = Column(DateTime, nullable=False)

    def to_record(self) -> TransactionRecord:
        return TransactionRecord(
            address=self.address,
            hash=self.hash,
            from_address=self.from_address,
            to_address=self.to_address,
            value=self.value,
            timestamp=as_utc(self.timestamp),
            block_number=self.block_number,
            gas_used=self.gas_used,
            status=self.status,
            last_updated=as_utc(self.last_updated) if self.last_updated else None,
        )


class TokenBalanceCache(Base):
    """Last fetched balance per (token, wallet); only written when TOKEN_BALANCE_CACHE is on."""

    __tablename__ = "token_balances"
    __table_args__ = (
        UniqueConstraint("token_address", "wallet_address", name="uq_token_balances_token_wallet"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    token_address = Column(String(42), nullable=False, index=True)
    wallet_address = Column(String(42), nullable=False, index=True)
    name = Column(Text, nullable=True)
    symbol = Column(String(64), nullable=True)
    decimals = Column(Integer, nullable=True)
    raw_balance = Column(String(80), nullable=False)
    formatted_balance = Column(String(120), nullable=False)
    last_block = Column(BigInteger, nullable=True)
    last_updated = Column(DateTime, nullable=False)
