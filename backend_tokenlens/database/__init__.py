"""
Persistence layer: transaction records and token balance snapshots.

SQLite by default via TransactionStore; any SQLAlchemy URL with ON CONFLICT
support (SQLite, PostgreSQL) works.
"""

from backend_tokenlens.database.database import DEFAULT_QUERY_LIMIT, TransactionStore
from backend_tokenlens.database.models import (
    STATUS_FAILED,
    STATUS_SUCCESS,
    TokenBalanceRecord,
    TransactionRecord,
    TransactionStats,
)

__all__ = [
    "DEFAULT_QUERY_LIMIT",
    "STATUS_FAILED",
    "STATUS_SUCCESS",
    "TokenBalanceRecord",
    "TransactionRecord",
    "TransactionStats",
    "TransactionStore",
]
