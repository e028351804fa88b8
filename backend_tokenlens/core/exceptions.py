"""
Application-level exceptions.

Each exception maps to one HTTP outcome at the request boundary:
ValidationError -> 400 with field-level detail; everything else -> 500 with
the upstream message passed through as ``details``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


class TokenLensError(Exception):
    """Base class for all TokenLens errors."""


@dataclass(frozen=True)
class FieldError:
    """One malformed input field, rendered as {msg, param, value, location} in 400 responses."""

    param: str
    msg: str
    value: Any = None
    location: str = "body"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class ValidationError(TokenLensError):
    """Malformed input; carries every failing field, not just the first."""

    def __init__(self, errors: list[FieldError]):
        self.errors = list(errors)
        super().__init__("; ".join(f"{e.param}: {e.msg}" for e in self.errors) or "invalid input")


class ChainCallError(TokenLensError):
    """A JSON-RPC call against the chain failed."""


class BalanceFetchError(TokenLensError):
    """The balance pipeline could not produce a complete record."""


class UpstreamError(TokenLensError):
    """The block explorer failed or reported a non-success status."""


class PersistenceError(TokenLensError):
    """A write or read against the transaction store failed."""
