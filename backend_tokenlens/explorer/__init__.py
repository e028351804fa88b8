"""
Block-explorer access: wallet transaction history from an Etherscan-compatible API.
"""

from backend_tokenlens.explorer.etherscan import EtherscanClient

__all__ = ["EtherscanClient"]
