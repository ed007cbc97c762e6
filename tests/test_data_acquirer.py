"""
Tests for concurrent acquisition with per-source fallbacks.
"""

from __future__ import annotations

import pytest

from conftest import BONK, JUPITER, WALLET, enhanced_tx
from data_acquirer import DataAcquirer, TotalAcquisitionFailure, estimate_from_signatures
from models import BalancesResult, NFTResult, TransactionsResult


def rpc_ok(result):
    return (200, {"jsonrpc": "2.0", "id": "persona", "result": result})


BALANCES = {
    "tokens": [
        {"mint": BONK, "amount": 150_000_000, "decimals": 5, "usdValue": 3.2, "symbol": "BONK"},
        {"mint": "LPtoken", "amount": 42, "decimals": 0},
    ],
    "nativeBalance": 2_500_000_000,
}


def test_signature_estimate_ratios():
    estimate = estimate_from_signatures(200)
    assert estimate.total_transactions == 200
    assert estimate.defi_activity == 30
    assert estimate.memecoin_activity == 40
    assert estimate.volume == 100.0


@pytest.mark.asyncio
async def test_all_sources_succeed(make_provider, helius_for):
    provider = make_provider(
        rest={
            "/balances": (200, BALANCES),
            "/nfts": (200, [{"id": "n1"}, {"id": "n2"}]),
            "/transactions": (200, [enhanced_tx(programs=(JUPITER,)), enhanced_tx()]),
        },
    )
    result = await DataAcquirer(helius_for(provider)).acquire(WALLET)

    assert result.succeeded == ["balances", "nfts", "transactions"]
    assert result.balances.native_balance == 2.5
    assert result.balances.tokens[0].amount == 1500.0
    assert result.balances.tokens[0].usd_value == 3.2
    assert result.nfts.method == "helius_digital_assets"
    assert result.nfts.nft_count == 2
    assert result.transactions.method == "helius_enhanced"
    assert result.transactions.total_transactions == 2
    assert result.transactions.transactions[0].instructions[0].program_id == JUPITER


@pytest.mark.asyncio
async def test_history_failure_falls_back_to_signature_count(make_provider, helius_for):
    provider = make_provider(
        rest={
            "/balances": (200, BALANCES),
            "/nfts": (200, []),
            "/transactions": (500, {"error": "internal"}),
        },
        rpc={"getSignaturesForAddress": rpc_ok([{"signature": f"s{i}"} for i in range(200)])},
    )
    result = await DataAcquirer(helius_for(provider)).acquire(WALLET)

    txs = result.transactions
    assert txs.success
    assert txs.method == "rpc_fallback"
    assert txs.total_transactions == 200
    assert txs.estimate.defi_activity == 30
    assert txs.estimate.memecoin_activity == 40
    assert txs.estimate.volume == 100.0


@pytest.mark.asyncio
async def test_every_source_failing_raises(make_provider, helius_for):
    provider = make_provider()
    acquirer = DataAcquirer(helius_for(provider), nft_strategies=[])

    with pytest.raises(TotalAcquisitionFailure) as excinfo:
        await acquirer.acquire(WALLET)

    result = excinfo.value.result
    assert result.succeeded == []
    assert result.transactions.method == "complete_failure"
    assert result.nfts.method == "no_methods_configured"


@pytest.mark.asyncio
async def test_unexpected_exception_fails_only_its_source(make_provider, helius_for):
    provider = make_provider(
        rest={
            "/balances": RuntimeError("socket exploded"),
            "/nfts": (200, {"nfts": [{"id": "n1"}]}),
            "/transactions": (200, []),
        },
    )
    result = await DataAcquirer(helius_for(provider)).acquire(WALLET)

    assert not result.balances.success
    assert "socket exploded" in result.balances.error
    assert result.nfts.success
    assert result.transactions.success
    assert result.transactions.total_transactions == 0


@pytest.mark.asyncio
async def test_unexpected_history_error_still_reaches_signature_count(make_provider, helius_for):
    provider = make_provider(
        rest={
            "/balances": (200, {"tokens": []}),
            "/nfts": (200, []),
            "/transactions": RuntimeError("tls reset"),
        },
        rpc={"getSignaturesForAddress": rpc_ok([{"signature": f"s{i}"} for i in range(40)])},
    )
    result = await DataAcquirer(helius_for(provider)).acquire(WALLET)

    assert result.transactions.success
    assert result.transactions.method == "rpc_fallback"
    assert result.transactions.total_transactions == 40
    assert result.transactions.estimate.defi_activity == 6


@pytest.mark.parametrize("result_cls", [NFTResult, TransactionsResult])
def test_raised_sources_are_tagged_complete_failure(result_cls):
    settled = DataAcquirer._settle(RuntimeError("boom"), "source", result_cls)
    assert not settled.success
    assert settled.method == "complete_failure"
    assert settled.error == "boom"


def test_raised_balances_source_is_settled_as_failure():
    settled = DataAcquirer._settle(RuntimeError("boom"), "balances", BalancesResult)
    assert settled == BalancesResult(success=False, error="boom")
