"""
Transaction pipeline: fetch from the explorer, normalize, upsert; query and stats.

Store calls are synchronous SQLAlchemy; they run in worker threads so the
per-record upserts of one fetch proceed concurrently.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any

from backend_tokenlens.chain import is_valid_address
from backend_tokenlens.core.concurrency import gather_or_fail
from backend_tokenlens.core.exceptions import FieldError, UpstreamError, ValidationError
from backend_tokenlens.database import (
    DEFAULT_QUERY_LIMIT,
    STATUS_FAILED,
    STATUS_SUCCESS,
    TransactionRecord,
    TransactionStats,
    TransactionStore,
)
from backend_tokenlens.explorer import EtherscanClient
from backend_tokenlens.tokenlens_logging import get_logger, short_address

logger = get_logger(__name__)


def _digits(raw: dict[str, Any], key: str) -> str:
    value = str(raw[key]).strip()
    if not value.isdigit():
        raise ValueError(f"{key} is not a non-negative integer: {value!r}")
    return value


def normalize_transaction(raw: dict[str, Any], address: str) -> TransactionRecord:
    """
    Map one explorer txlist entry to a TransactionRecord for ``address``.

    Raises:
        UpstreamError: a required field is missing or malformed.
    """
    try:
        to_raw = raw.get("to")
        return TransactionRecord(
            address=address.lower(),
            hash=str(raw["hash"]),
            from_address=str(raw["from"]).lower(),
            to_address=str(to_raw).lower() if to_raw else None,
            value=_digits(raw, "value"),
            timestamp=datetime.fromtimestamp(int(raw["timeStamp"]), tz=timezone.utc),
            block_number=int(raw["blockNumber"]),
            gas_used=_digits(raw, "gasUsed"),
            status=STATUS_SUCCESS if raw.get("isError") == "0" else STATUS_FAILED,
        )
    except (KeyError, TypeError, ValueError, OverflowError, OSError) as e:
        raise UpstreamError(f"Malformed transaction from explorer: {e}") from e


def parse_iso8601(value: str) -> datetime:
    """
    Parse an ISO-8601 date or datetime. A trailing Z means UTC; naive values are UTC.

    Raises:
        ValueError: not a valid calendar date/time, or not representable in UTC
            (e.g. 0001-01-01T00:00:00+01:00).
    """
    text = value.strip()
    if text[-1:] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except OverflowError as e:
        raise ValueError(f"{value!r} is out of range in UTC") from e


def parse_date_range(start_date: str | None, end_date: str | None) -> tuple[datetime | None, datetime | None]:
    """Parse optional range bounds; raise ValidationError naming every bad bound."""
    errors: list[FieldError] = []
    bounds: list[datetime | None] = []
    for param, raw, msg in (
        ("startDate", start_date, "Invalid start date format"),
        ("endDate", end_date, "Invalid end date format"),
    ):
        if raw is None or raw == "":
            bounds.append(None)
            continue
        try:
            bounds.append(parse_iso8601(raw))
        except (ValueError, OverflowError):
            errors.append(FieldError(param=param, msg=msg, value=raw, location="query"))
            bounds.append(None)
    if errors:
        raise ValidationError(errors)
    return bounds[0], bounds[1]


async def fetch_and_store_transactions(
    explorer: EtherscanClient,
    store: TransactionStore,
    address: str,
    *,
    page_size: int = 5,
) -> list[TransactionRecord]:
    """
    Pull the newest ``page_size`` transactions for a wallet and upsert them.

    Every upstream record is normalized before anything is written. Upserts run
    concurrently; the first failure fails the whole batch.

    Raises:
        ValidationError: malformed address.
        UpstreamError: explorer failure or malformed upstream record.
        PersistenceError: any upsert failed.
    """
    if not is_valid_address(address):
        raise ValidationError([FieldError(param="address", msg="Invalid Ethereum address", value=address)])
    normalized = address.lower()

    raw_transactions = await explorer.get_recent_transactions(normalized, page_size=page_size)
    records = [normalize_transaction(tx, normalized) for tx in raw_transactions]

    stored = await gather_or_fail(
        *(asyncio.to_thread(store.upsert_transaction, record) for record in records)
    )
    logger.info("transactions_upserted", address=short_address(normalized), count=len(stored))
    return stored


async def query_transactions(
    store: TransactionStore,
    address: str,
    start_date: str | None = None,
    end_date: str | None = None,
    *,
    limit: int = DEFAULT_QUERY_LIMIT,
) -> list[TransactionRecord]:
    """
    Stored transactions for an address, optionally within [start_date, end_date], newest first.

    Raises:
        ValidationError: a supplied bound is not ISO-8601.
    """
    start, end = parse_date_range(start_date, end_date)
    normalized = address.strip().lower()
    records = await asyncio.to_thread(store.query_transactions, normalized, start=start, end=end, limit=limit)
    logger.debug("transactions_queried", address=short_address(normalized), count=len(records))
    return records


async def transaction_stats(store: TransactionStore, address: str) -> TransactionStats:
    """Aggregate stats for an address; all zeros when nothing is stored."""
    normalized = address.strip().lower()
    return await asyncio.to_thread(store.transaction_stats, normalized)
