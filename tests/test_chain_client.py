"""
Tests for the chain client: ERC20 calls with mixed fault tolerance, block height,
address validation and base-unit conversion. AsyncWeb3 is replaced by the
in-memory FakeWeb3 from conftest.
"""

from __future__ import annotations

import asyncio
from decimal import Decimal, localcontext

import pytest

from backend_tokenlens.chain import (
    DEFAULT_DECIMALS,
    UNKNOWN_NAME,
    UNKNOWN_SYMBOL,
    ChainClient,
    from_base_units,
    is_valid_address,
)
from backend_tokenlens.core.exceptions import ChainCallError
from tests.conftest import DAI, USDC, WALLET


# --- Address validation ---


@pytest.mark.parametrize(
    "value",
    [
        DAI,
        DAI.lower(),
        "0x" + DAI[2:].upper(),
        # bad checksum casing is still accepted: identity is case-insensitive
        "0x6b175474E89094C44Da98b954EedeAC495271d0F",
    ],
)
def test_is_valid_address_accepts_any_case(value):
    assert is_valid_address(value) is True
    assert ChainClient.is_valid_address(value) is True


@pytest.mark.parametrize(
    "value",
    [
        "",
        "0x",
        "not-an-address",
        DAI[2:],  # missing 0x prefix
        DAI + "00",  # too long
        DAI[:-1],  # too short
        "0x6B175474E89094C44Da98b954EedeAC495271d0G",  # non-hex digit
        None,
        123,
    ],
)
def test_is_valid_address_rejects_malformed(value):
    assert is_valid_address(value) is False


# --- Unit conversion ---


@pytest.mark.parametrize(
    "raw,decimals,expected",
    [
        (1_500_000_000_000_000_000, 18, Decimal("1.5")),
        (2_500_000, 6, Decimal("2.5")),
        (0, 18, Decimal(0)),
        (12345, 0, Decimal(12345)),
        ("1", 18, Decimal("0.000000000000000001")),
    ],
)
def test_from_base_units(raw, decimals, expected):
    assert from_base_units(raw, decimals) == expected


def test_from_base_units_is_exact_for_uint256_max():
    """raw / 10**decimals without rounding, even past float and default Decimal precision."""
    raw = 2**256 - 1
    for decimals in (0, 6, 8, 18, 24):
        formatted = from_base_units(raw, decimals)
        with localcontext() as ctx:
            ctx.prec = 100
            assert formatted * (Decimal(10) ** decimals) == Decimal(raw)


# --- get_token_balance ---


def test_get_token_balance_reads_all_fields(chain_client, fake_w3):
    balance = asyncio.run(chain_client.get_token_balance(DAI.lower(), WALLET.lower()))
    assert balance.symbol == "DAI"
    assert balance.name == "Dai Stablecoin"
    assert balance.decimals == 18
    assert balance.raw_balance == 1_500_000_000_000_000_000
    # Contract addressed by checksum, balanceOf called with checksum wallet
    assert fake_w3.eth.contract_addresses == [DAI]
    assert [q.lower() for q in fake_w3.eth.tokens[DAI.lower()].balance_queries] == [WALLET.lower()]


def test_get_token_balance_symbol_failure_falls_back(chain_client, fake_w3):
    fake_w3.eth.tokens[DAI.lower()].failing = {"symbol"}
    balance = asyncio.run(chain_client.get_token_balance(DAI, WALLET))
    assert balance.symbol == UNKNOWN_SYMBOL
    assert balance.name == "Dai Stablecoin"
    assert balance.raw_balance == 1_500_000_000_000_000_000


def test_get_token_balance_all_metadata_failures_fall_back(chain_client, fake_w3):
    fake_w3.eth.tokens[USDC.lower()].failing = {"symbol", "name", "decimals"}
    balance = asyncio.run(chain_client.get_token_balance(USDC, WALLET))
    assert (balance.symbol, balance.name, balance.decimals) == (UNKNOWN_SYMBOL, UNKNOWN_NAME, DEFAULT_DECIMALS)
    assert balance.raw_balance == 2_500_000


def test_get_token_balance_out_of_range_decimals_falls_back(chain_client, fake_w3):
    fake_w3.eth.tokens[DAI.lower()].decimals = 300
    balance = asyncio.run(chain_client.get_token_balance(DAI, WALLET))
    assert balance.decimals == DEFAULT_DECIMALS


def test_get_token_balance_balance_failure_raises(chain_client, fake_w3):
    fake_w3.eth.tokens[DAI.lower()].failing = {"balanceOf"}
    with pytest.raises(ChainCallError, match="balanceOf"):
        asyncio.run(chain_client.get_token_balance(DAI, WALLET))


def test_get_token_balance_unknown_wallet_is_zero(chain_client):
    balance = asyncio.run(chain_client.get_token_balance(DAI, "0x" + "1" * 40))
    assert balance.raw_balance == 0


def test_get_token_balance_not_a_contract_raises(chain_client):
    with pytest.raises(ChainCallError):
        asyncio.run(chain_client.get_token_balance("0x" + "2" * 40, WALLET))


# --- get_token_info ---


def test_get_token_info_strict_success(chain_client):
    info = asyncio.run(chain_client.get_token_info(USDC.lower()))
    assert info.to_dict() == {
        "address": USDC.lower(),
        "name": "USD Coin",
        "symbol": "USDC",
        "decimals": 6,
    }


@pytest.mark.parametrize("fn", ["symbol", "name", "decimals"])
def test_get_token_info_any_failure_raises(chain_client, fake_w3, fn):
    fake_w3.eth.tokens[USDC.lower()].failing = {fn}
    with pytest.raises(ChainCallError, match=fn):
        asyncio.run(chain_client.get_token_info(USDC))


# --- get_block_height ---


def test_get_block_height(chain_client, fake_w3):
    fake_w3.eth.block = 21_809_821
    assert asyncio.run(chain_client.get_block_height()) == 21_809_821


def test_get_block_height_failure_raises(chain_client, fake_w3):
    fake_w3.eth.block_error = ConnectionError("rpc down")
    with pytest.raises(ChainCallError, match="rpc down"):
        asyncio.run(chain_client.get_block_height())


def test_create_builds_async_web3_client():
    """create() wires an AsyncHTTPProvider without touching the network."""
    client = ChainClient.create("http://localhost:8545", timeout_sec=5)
    assert client._w3.provider.endpoint_uri == "http://localhost:8545"
