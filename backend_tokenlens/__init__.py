"""
Backend TokenLens: read-only HTTP API over ERC20 balances and Ethereum transactions.

Reads token balances through a JSON-RPC node, pulls wallet transaction history
from a block explorer, and keeps fetched transactions in a relational store for
range queries and simple statistics.
"""

__version__ = "0.1.0"
