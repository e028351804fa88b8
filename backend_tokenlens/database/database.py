"""
Transaction store: SQLAlchemy-backed upsert, range query and aggregation.

Uses DATABASE_URL for PostgreSQL when set; otherwise SQLite. Upserts are single
INSERT ... ON CONFLICT DO UPDATE statements keyed by (address, hash), so two
concurrent fetches touching the same transaction never race a read against a write.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal, localcontext
from typing import Any, Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from backend_tokenlens.core.exceptions import PersistenceError
from backend_tokenlens.database.models import (
    TokenBalanceRecord,
    TransactionRecord,
    TransactionStats,
    utc_now,
)
from backend_tokenlens.database.tables import Base, TokenBalanceCache, TransactionLog
from backend_tokenlens.tokenlens_logging import get_logger, short_address

logger = get_logger(__name__)

DEFAULT_QUERY_LIMIT = 100

_TRANSACTION_UPDATE_COLUMNS = (
    "from_address",
    "to_address",
    "value",
    "timestamp",
    "block_number",
    "gas_used",
    "status",
    "last_updated",
)

_BALANCE_UPDATE_COLUMNS = (
    "name",
    "symbol",
    "decimals",
    "raw_balance",
    "formatted_balance",
    "last_block",
    "last_updated",
)


def _naive_utc(value: datetime) -> datetime:
    """Stored datetimes are naive UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _dialect_insert(dialect_name: str):
    if dialect_name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    elif dialect_name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    else:
        raise PersistenceError(f"Upsert not supported for database dialect {dialect_name!r}")
    return insert


class TransactionStore:
    """Persistence for transaction records and (optionally) token balance snapshots."""

    def __init__(self, database_url: str):
        self.database_url = database_url
        connect_args: dict[str, Any] = {}
        if database_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self._engine: Engine = create_engine(database_url, connect_args=connect_args, pool_pre_ping=True)
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)

    @contextmanager
    def _session_scope(self) -> Iterator[Session]:
        """Single session. Commits on success, rolls back on error; SQLAlchemy errors become PersistenceError."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise PersistenceError(str(e)) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def init_db(self) -> None:
        """Create tables if they do not exist. Safe to call on every startup."""
        try:
            Base.metadata.create_all(bind=self._engine)
        except SQLAlchemyError as e:
            logger.exception("transaction_store_init_failed", error=str(e))
            raise PersistenceError(str(e)) from e
        logger.info("transaction_store_ready", url=self.database_url.split("?")[0].split("//")[-1].split("@")[-1])

    def dispose(self) -> None:
        self._engine.dispose()

    def upsert_transaction(self, record: TransactionRecord) -> TransactionRecord:
        """
        Insert or update one transaction keyed by (address, hash).

        Returns the record with last_updated set to the write time.
        """
        now = utc_now()
        row = {
            "address": record.address,
            "hash": record.hash,
            "from_address": record.from_address,
            "to_address": record.to_address,
            "value": record.value,
            "timestamp": _naive_utc(record.timestamp),
            "block_number": record.block_number,
            "gas_used": record.gas_used,
            "status": record.status,
            "last_updated": _naive_utc(now),
        }
        insert = _dialect_insert(self._engine.dialect.name)
        stmt = insert(TransactionLog).values(**row)
        stmt = stmt.on_conflict_do_update(
            index_elements=["address", "hash"],
            set_={col: stmt.excluded[col] for col in _TRANSACTION_UPDATE_COLUMNS},
        )
        with self._session_scope() as session:
            session.execute(stmt)
        logger.debug("transaction_upserted", address=short_address(record.address), hash=short_address(record.hash))
        record.last_updated = now
        return record

    def query_transactions(
        self,
        address: str,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int = DEFAULT_QUERY_LIMIT,
    ) -> list[TransactionRecord]:
        """Return stored transactions for an address within [start, end], newest first."""
        with self._session_scope() as session:
            q = session.query(TransactionLog).filter(TransactionLog.address == address)
            if start is not None:
                q = q.filter(TransactionLog.timestamp >= _naive_utc(start))
            if end is not None:
                q = q.filter(TransactionLog.timestamp <= _naive_utc(end))
            rows = q.order_by(TransactionLog.timestamp.desc(), TransactionLog.id.desc()).limit(limit).all()
            return [r.to_record() for r in rows]

    def transaction_stats(self, address: str) -> TransactionStats:
        """
        Count, total value and mean gas used over every stored transaction of an address.

        Sums run in Decimal so wei totals stay exact. No rows -> all zeros.
        """
        with self._session_scope() as session:
            rows = (
                session.query(TransactionLog.value, TransactionLog.gas_used)
                .filter(TransactionLog.address == address)
                .all()
            )
        if not rows:
            return TransactionStats()
        with localcontext() as ctx:
            ctx.prec = 100
            total_value = sum((Decimal(value or 0) for value, _ in rows), Decimal(0))
            total_gas = sum((Decimal(gas or 0) for _, gas in rows), Decimal(0))
            avg_gas = total_gas / len(rows)
        return TransactionStats(
            total_transactions=len(rows),
            total_value=total_value,
            avg_gas_used=avg_gas,
        )

    def upsert_token_balance(self, record: TokenBalanceRecord) -> None:
        """Insert or update the cached balance keyed by (token_address, wallet_address)."""
        row = {
            "token_address": record.token_address,
            "wallet_address": record.wallet_address,
            "name": record.name,
            "symbol": record.symbol,
            "decimals": record.decimals,
            "raw_balance": record.raw_balance,
            "formatted_balance": str(record.formatted_balance),
            "last_block": record.last_block,
            "last_updated": _naive_utc(record.last_updated),
        }
        insert = _dialect_insert(self._engine.dialect.name)
        stmt = insert(TokenBalanceCache).values(**row)
        stmt = stmt.on_conflict_do_update(
            index_elements=["token_address", "wallet_address"],
            set_={col: stmt.excluded[col] for col in _BALANCE_UPDATE_COLUMNS},
        )
        with self._session_scope() as session:
            session.execute(stmt)
        logger.debug(
            "token_balance_cached",
            token=short_address(record.token_address),
            wallet=short_address(record.wallet_address),
        )
