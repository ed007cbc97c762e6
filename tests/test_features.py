"""
Tests for feature extraction: token heuristics, history scanning and the
max-not-sum combination.
"""

from __future__ import annotations

import pytest

from chain_providers import _parse_enhanced_transaction
from conftest import BONK, JUPITER, RAYDIUM, USDC, WIF, enhanced_tx
from features import FeatureExtractor
from models import (
    BalancesResult,
    DataSource,
    NFTResult,
    TokenBalance,
    TokenHoldingSignals,
    TransactionSignals,
    TransactionsResult,
)


@pytest.fixture
def extractor() -> FeatureExtractor:
    return FeatureExtractor()


def txs(*raw: dict):
    return [_parse_enhanced_transaction(r) for r in raw]


# ── Token Holdings ────────────────────────────────────────────────────────────


def test_token_balances_classification(extractor):
    tokens = [
        TokenBalance(mint=BONK, amount=1_000_000, usd_value=12.5),
        TokenBalance(mint=WIF, amount=3, usd_value=7.5),
        TokenBalance(mint=USDC, amount=50, usd_value=50),
        TokenBalance(mint="LPtoken1111111111111111111111111111111111", amount=12.3),
        TokenBalance(mint="Whale11111111111111111111111111111111111111", amount=5000),
        TokenBalance(mint="Empty11111111111111111111111111111111111111", amount=0),
    ]
    signals = extractor.analyze_token_balances(tokens)

    assert signals.memecoin_holdings == 2
    assert signals.defi_tokens == 1
    assert signals.total_value == 70.0
    assert signals.estimated_memecoin_trades == 24
    assert signals.estimated_defi_interactions == 8


def test_memecoin_with_small_balance_is_not_defi(extractor):
    signals = extractor.analyze_token_balances([TokenBalance(mint=BONK, amount=5)])
    assert signals.memecoin_holdings == 1
    assert signals.defi_tokens == 0


# ── Transaction History ───────────────────────────────────────────────────────


def test_each_transaction_counts_once(extractor):
    history = txs(
        enhanced_tx(programs=(JUPITER, RAYDIUM), mints=(BONK, WIF)),
        enhanced_tx(programs=(JUPITER,)),
        enhanced_tx(mints=(USDC,)),
        enhanced_tx(),
    )
    signals = extractor.analyze_transactions(history)

    assert signals.total_transactions == 4
    assert signals.defi_activity == 2
    assert signals.memecoin_activity == 1


def test_volume_sums_absolute_native_transfers(extractor):
    history = txs(
        enhanced_tx(lamports=(1_500_000_000, -500_000_000)),
        enhanced_tx(lamports=(250_000_000,)),
    )
    assert extractor.analyze_transactions(history).volume == 2.25


def test_only_recent_transactions_are_scanned(extractor):
    history = txs(*[enhanced_tx(timestamp=i, programs=(JUPITER,)) for i in range(150)])
    signals = extractor.analyze_transactions(history)
    assert signals.total_transactions == 150
    assert signals.defi_activity == 100


def test_failed_transactions_give_zero_signals(extractor):
    assert extractor.transaction_signals(TransactionsResult(success=False)) == TransactionSignals()


def test_signature_estimate_is_used_verbatim(extractor):
    estimate = TransactionSignals(
        total_transactions=200, defi_activity=30, memecoin_activity=40, volume=100.0
    )
    result = TransactionsResult(
        success=True, method="rpc_fallback", total_transactions=200, estimate=estimate
    )
    assert extractor.transaction_signals(result) == estimate


# ── Combination ───────────────────────────────────────────────────────────────


def test_combine_takes_larger_estimate_not_sum(extractor):
    holdings = TokenHoldingSignals(estimated_defi_interactions=6, estimated_memecoin_trades=24)
    activity = TransactionSignals(total_transactions=60, defi_activity=9, memecoin_activity=3)

    vector = extractor.combine(holdings, activity, nft_count=2, data_source=DataSource.LIVE_API)

    assert vector.defi_interaction_count == 9
    assert vector.memecoin_trade_count == 24
    assert vector.nft_count == 2


def test_combine_proxies(extractor):
    activity = TransactionSignals(total_transactions=300, defi_activity=10, volume=12.5)
    vector = extractor.combine(TokenHoldingSignals(), activity, 0, DataSource.LIVE_API)

    assert vector.account_age_days == 100
    assert vector.unique_program_count == 300 // 20 + 10 // 2 + 5
    assert vector.total_volume == 12.5
    assert not vector.is_virgin


def test_account_age_floor(extractor):
    activity = TransactionSignals(total_transactions=10)
    vector = extractor.combine(TokenHoldingSignals(), activity, 0, DataSource.LIVE_API)
    assert vector.account_age_days == 30


def test_zero_history_zeroes_every_count(extractor):
    holdings = TokenHoldingSignals(
        memecoin_holdings=3, estimated_memecoin_trades=36, estimated_defi_interactions=16
    )
    vector = extractor.combine(holdings, TransactionSignals(), 7, DataSource.LIVE_API)

    assert vector.is_virgin
    assert vector.nft_count == 0
    assert vector.memecoin_trade_count == 0
    assert vector.defi_interaction_count == 0
    assert vector.unique_program_count == 0


# ── Extraction ────────────────────────────────────────────────────────────────


def test_extract_all_sources_is_live(extractor):
    balances = BalancesResult(success=True, tokens=[TokenBalance(mint=BONK, amount=10)])
    nfts = NFTResult(success=True, nft_count=4, method="helius_rpc")
    history = TransactionsResult(
        success=True,
        method="helius_enhanced",
        total_transactions=2,
        transactions=txs(enhanced_tx(programs=(JUPITER,)), enhanced_tx()),
    )
    vector = extractor.extract(balances, nfts, history)

    assert vector.data_source == DataSource.LIVE_API
    assert vector.total_transactions == 2
    assert vector.nft_count == 4
    assert vector.memecoin_trade_count == 12
    assert vector.defi_interaction_count == 1


def test_extract_with_failed_source_is_partial(extractor):
    balances = BalancesResult(success=False, error="boom")
    nfts = NFTResult(success=False, method="all_methods_failed")
    history = TransactionsResult(
        success=True,
        method="helius_enhanced",
        total_transactions=1,
        transactions=txs(enhanced_tx()),
    )
    vector = extractor.extract(balances, nfts, history)

    assert vector.data_source == DataSource.PARTIAL_FALLBACK
    assert vector.total_transactions == 1
    assert vector.nft_count == 0
