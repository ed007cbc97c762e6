"""
Tests for the trading-performance heuristics.
"""

from __future__ import annotations

from chain_providers import _parse_enhanced_transaction
from conftest import BONK, enhanced_tx
from models import RiskProfile, TokenBalance, TradingPattern
from performance import DAY, HOUR, WEEK, PerformanceAnalyzer


analyzer = PerformanceAnalyzer()


def history(timestamps, **kwargs):
    return [_parse_enhanced_transaction(enhanced_tx(timestamp=t, **kwargs)) for t in timestamps]


def test_no_transactions_gives_none():
    assert analyzer.analyze([]) is None


def test_count_trades_detects_swaps():
    txs = [
        _parse_enhanced_transaction(enhanced_tx(tx_type="SWAP")),
        _parse_enhanced_transaction(enhanced_tx(mints=("a", "b"))),
        _parse_enhanced_transaction(enhanced_tx(tx_type="TRANSFER")),
    ]
    assert PerformanceAnalyzer.count_trades(txs) == 2


def test_no_trades_gives_neutral_win_rate():
    metrics = analyzer.analyze(history([0, DAY, 2 * DAY]))
    assert metrics.total_trades == 0
    assert metrics.win_rate_estimate == 50.0


def test_win_rate_is_capped_at_100():
    # One swap, but patience floors wins at 30% of ten transactions
    txs = history([i * 2 * WEEK for i in range(10)])
    txs[0] = txs[0].model_copy(update={"type": "SWAP"})
    metrics = analyzer.analyze(txs)
    assert metrics.total_trades == 1
    assert metrics.win_rate_estimate == 100.0


def test_wins_and_losses_from_gaps_and_fees():
    txs = history([0, 60, 120, 2 * WEEK], lamports=(10_000,), fee=5000)
    wins, losses = PerformanceAnalyzer.estimate_wins_losses(txs)
    assert wins == 1
    # Two quick gaps plus four expensive-fee transactions
    assert losses == 6


def test_pnl_sign():
    bags = [TokenBalance(mint=f"m{i}", amount=1000, usd_value=0.1) for i in range(3)]
    assert PerformanceAnalyzer.estimate_pnl_sign(bags) == -1

    winners = [TokenBalance(mint="m", amount=10, usd_value=500)]
    assert PerformanceAnalyzer.estimate_pnl_sign(winners) == 1

    assert PerformanceAnalyzer.estimate_pnl_sign([]) == 0
    assert PerformanceAnalyzer.estimate_pnl_sign([TokenBalance(mint="m", usd_value=5)]) == 0


def test_risk_profile():
    few = history(range(5))
    assert analyzer.risk_profile(few, []) == RiskProfile.CONSERVATIVE
    assert analyzer.risk_profile(history(range(25)), []) == RiskProfile.MODERATE

    memes = [TokenBalance(mint=BONK)] + [
        TokenBalance(mint=f"m{i}", symbol=f"SHIBAINU{i}") for i in range(5)
    ]
    assert analyzer.risk_profile(few, memes) == RiskProfile.DEGEN

    complex_txs = history(range(11), programs=("p1", "p2", "p3", "p4"))
    assert analyzer.risk_profile(complex_txs, []) == RiskProfile.SOPHISTICATED


def test_trading_pattern():
    assert PerformanceAnalyzer.trading_pattern(history(range(4))) == TradingPattern.HODLER
    assert (
        PerformanceAnalyzer.trading_pattern(history([i * 60 for i in range(6)]))
        == TradingPattern.HYPERACTIVE
    )
    assert (
        PerformanceAnalyzer.trading_pattern(history([i * 2 * HOUR for i in range(6)]))
        == TradingPattern.ACTIVE
    )
    assert (
        PerformanceAnalyzer.trading_pattern(history([i * 2 * DAY for i in range(6)]))
        == TradingPattern.WEEKLY
    )
    assert (
        PerformanceAnalyzer.trading_pattern(history([i * 2 * WEEK for i in range(6)]))
        == TradingPattern.HODLER
    )
