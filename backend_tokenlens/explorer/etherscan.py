"""Client for the Etherscan account API - fetches recent wallet transactions."""

from __future__ import annotations

from typing import Any

import httpx

from backend_tokenlens.config.env import DEFAULT_ETHERSCAN_API_URL
from backend_tokenlens.core.exceptions import UpstreamError
from backend_tokenlens.tokenlens_logging import get_logger, short_address

logger = get_logger(__name__)

# Explorer-side block window: everything from genesis
START_BLOCK = 0
END_BLOCK = 99999999


class EtherscanClient:
    """Client for Etherscan's ``module=account&action=txlist`` endpoint."""

    def __init__(
        self,
        api_key: str = "",
        base_url: str = DEFAULT_ETHERSCAN_API_URL,
        *,
        chain_id: int | None = None,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.chain_id = chain_id
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self):
        """Close the HTTP client."""
        await self._client.aclose()

    async def get_recent_transactions(self, address: str, page_size: int = 5) -> list[dict[str, Any]]:
        """
        Fetch the newest transactions for a wallet.

        Args:
            address: Wallet address (0x-prefixed)
            page_size: Number of transactions to return, newest first

        Returns:
            Raw upstream transaction dicts (hash, from, to, value, timeStamp, ...)

        Raises:
            UpstreamError: transport failure, non-2xx response, malformed payload,
                or a payload whose ``status`` is not "1".
        """
        params: dict[str, Any] = {
            "module": "account",
            "action": "txlist",
            "address": address,
            "startblock": START_BLOCK,
            "endblock": END_BLOCK,
            "page": 1,
            "offset": page_size,
            "sort": "desc",
            "apikey": self.api_key,
        }
        if self.chain_id is not None:
            params["chainid"] = self.chain_id

        try:
            response = await self._client.get(self.base_url, params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.warning("etherscan_http_error", status_code=e.response.status_code)
            raise UpstreamError(f"Explorer returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.warning("etherscan_request_failed", error=str(e))
            raise UpstreamError(f"Explorer request failed: {e}") from e
        except ValueError as e:
            raise UpstreamError("Explorer returned a non-JSON response") from e

        if not isinstance(data, dict):
            raise UpstreamError("Explorer returned an unexpected payload")
        if data.get("status") != "1":
            message = data.get("message") or "Failed to fetch transactions"
            # Etherscan puts the detail (rate limit, bad key) in result when status is 0
            if isinstance(data.get("result"), str) and data["result"]:
                message = f"{message}: {data['result']}"
            logger.info("etherscan_status_not_ok", address=short_address(address), message=message)
            raise UpstreamError(message)

        result = data.get("result")
        if not isinstance(result, list):
            raise UpstreamError("Explorer result is not a list")
        logger.debug("etherscan_txlist_loaded", address=short_address(address), count=len(result))
        return result
