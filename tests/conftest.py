"""
Pytest fixtures for TokenLens tests.

Temporary SQLite store per test, an in-memory stand-in for AsyncWeb3 (contract
calls + block number), and an Etherscan client on httpx.MockTransport.
"""

from __future__ import annotations

from typing import Any

import httpx
import pytest

DAI = "0x6B175474E89094C44Da98b954EedeAC495271d0F"
USDC = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
WALLET = "0x742d35Cc6634C0532925a3b844Bc454e4438f44e"
OTHER_WALLET = "0x9876543210987654321098765432109876543210"
LATEST_BLOCK = 19_000_000


# -----------------------------------------------------------------------------
# AsyncWeb3 stand-in
# -----------------------------------------------------------------------------


class FakeCall:
    def __init__(self, result: Any = None, error: Exception | None = None):
        self._result = result
        self._error = error

    async def call(self) -> Any:
        if self._error is not None:
            raise self._error
        return self._result


class FakeToken:
    """ERC20 state; any function listed in ``failing`` reverts."""

    def __init__(self, symbol: str = "DAI", name: str = "Dai Stablecoin", decimals: int = 18):
        self.symbol = symbol
        self.name = name
        self.decimals = decimals
        self.balances: dict[str, int] = {}
        self.failing: set[str] = set()
        self.balance_queries: list[str] = []

    def _call(self, fn: str, result: Any) -> FakeCall:
        if fn in self.failing:
            return FakeCall(error=RuntimeError(f"execution reverted: {fn}"))
        return FakeCall(result=result)


class FakeFunctions:
    def __init__(self, token: FakeToken):
        self._token = token

    def symbol(self) -> FakeCall:
        return self._token._call("symbol", self._token.symbol)

    def name(self) -> FakeCall:
        return self._token._call("name", self._token.name)

    def decimals(self) -> FakeCall:
        return self._token._call("decimals", self._token.decimals)

    def balanceOf(self, owner: str) -> FakeCall:
        self._token.balance_queries.append(owner)
        return self._token._call("balanceOf", self._token.balances.get(owner.lower(), 0))


class FakeContract:
    def __init__(self, address: str, token: FakeToken):
        self.address = address
        self.functions = FakeFunctions(token)


class FakeEth:
    def __init__(self):
        self.tokens: dict[str, FakeToken] = {}
        self.block = LATEST_BLOCK
        self.block_error: Exception | None = None
        self.contract_addresses: list[str] = []

    def add_token(self, address: str, token: FakeToken) -> FakeToken:
        self.tokens[address.lower()] = token
        return token

    def contract(self, address: str, abi: Any) -> FakeContract:
        self.contract_addresses.append(address)
        token = self.tokens.get(address.lower())
        if token is None:
            # Not a contract: every call reverts
            token = FakeToken()
            token.failing = {"symbol", "name", "decimals", "balanceOf"}
        return FakeContract(address, token)

    @property
    async def block_number(self) -> int:
        if self.block_error is not None:
            raise self.block_error
        return self.block


class FakeWeb3:
    def __init__(self):
        self.eth = FakeEth()


@pytest.fixture
def fake_w3():
    w3 = FakeWeb3()
    dai = w3.eth.add_token(DAI, FakeToken("DAI", "Dai Stablecoin", 18))
    dai.balances[WALLET.lower()] = 1_500_000_000_000_000_000
    usdc = w3.eth.add_token(USDC, FakeToken("USDC", "USD Coin", 6))
    usdc.balances[WALLET.lower()] = 2_500_000
    return w3


@pytest.fixture
def chain_client(fake_w3):
    from backend_tokenlens.chain import ChainClient

    return ChainClient(fake_w3)


# -----------------------------------------------------------------------------
# Explorer
# -----------------------------------------------------------------------------


def make_tx(
    n: int,
    timestamp: int,
    *,
    sender: str = WALLET,
    to: str | None = OTHER_WALLET,
    value: str = "1000000000000000000",
    gas_used: str = "21000",
    is_error: str = "0",
    block: int = 19_000_000,
) -> dict[str, Any]:
    """One txlist entry shaped like Etherscan's response."""
    return {
        "blockNumber": str(block + n),
        "timeStamp": str(timestamp),
        "hash": f"0x{n:064x}",
        "from": sender,
        "to": to if to is not None else "",
        "value": value,
        "gas": "21000",
        "gasPrice": "20000000000",
        "isError": is_error,
        "txreceipt_status": "1" if is_error == "0" else "0",
        "input": "0x",
        "contractAddress": "",
        "gasUsed": gas_used,
        "confirmations": "12",
    }


class EtherscanStub:
    """MockTransport handler; set ``payload`` (or ``status_code``) per test and inspect ``requests``."""

    def __init__(self):
        self.payload: Any = {"status": "1", "message": "OK", "result": []}
        self.status_code = 200
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.payload)


@pytest.fixture
def etherscan_stub():
    return EtherscanStub()


@pytest.fixture
def explorer_client(etherscan_stub):
    from backend_tokenlens.explorer import EtherscanClient

    return EtherscanClient(
        "test-key",
        "https://api.etherscan.test/api",
        client=httpx.AsyncClient(transport=httpx.MockTransport(etherscan_stub)),
    )


# -----------------------------------------------------------------------------
# Store, settings, app
# -----------------------------------------------------------------------------


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'tokenlens.db'}"


@pytest.fixture
def store(database_url):
    from backend_tokenlens.database import TransactionStore

    s = TransactionStore(database_url)
    s.init_db()
    yield s
    s.dispose()


def cached_balance(store, token_address: str, wallet_address: str) -> dict[str, Any] | None:
    """Read the token_balances row for (token, wallet) straight from the store's database."""
    from backend_tokenlens.database.tables import TokenBalanceCache

    with store._session_scope() as session:
        row = (
            session.query(TokenBalanceCache)
            .filter(
                TokenBalanceCache.token_address == token_address,
                TokenBalanceCache.wallet_address == wallet_address,
            )
            .first()
        )
        if row is None:
            return None
        return {
            "symbol": row.symbol,
            "raw_balance": row.raw_balance,
            "formatted_balance": row.formatted_balance,
            "last_block": row.last_block,
        }


@pytest.fixture
def settings(database_url):
    from backend_tokenlens.config import Settings

    return Settings(
        eth_rpc_url="http://localhost:8545",
        etherscan_api_url="https://api.etherscan.test/api",
        etherscan_api_key="test-key",
        database_url=database_url,
        txn_page_size=5,
    )


@pytest.fixture
def app(settings, chain_client, explorer_client, store):
    from backend_tokenlens.api_server.server import create_app

    return create_app(
        settings,
        chain_client=chain_client,
        explorer_client=explorer_client,
        transaction_store=store,
    )


@pytest.fixture
def client(app):
    """FastAPI TestClient over the app with injected fakes (lifespan not needed)."""
    from fastapi.testclient import TestClient

    return TestClient(app)
