import logging
from typing import Optional, Sequence

from models import (
    EnhancedTransaction,
    PerformanceMetrics,
    RiskProfile,
    TokenBalance,
    TradingPattern,
)
from token_table import TokenClassificationTable


logger = logging.getLogger(__name__)


HOUR = 3600
DAY = 86400
WEEK = DAY * 7

# Fee above this share of the first native transfer reads as a desperate trade
FEE_RATIO_LOSS = 0.05

# Floors on win/loss estimates, as shares of all scanned transactions
WIN_FLOOR_RATIO = 0.3
LOSS_FLOOR_RATIO = 0.2

_MEMECOIN_SYMBOL_MARKERS = ("INU", "DOGE", "BONK")


class PerformanceAnalyzer:
    """Rough trading-performance read from enhanced history and current holdings."""

    def __init__(self, table: Optional[TokenClassificationTable] = None):
        self.table = table or TokenClassificationTable()

    def analyze(
        self,
        transactions: Sequence[EnhancedTransaction],
        tokens: Sequence[TokenBalance] = (),
    ) -> Optional[PerformanceMetrics]:
        """Return metrics, or None when nothing usable could be computed."""
        try:
            return self._analyze(transactions, tokens)
        except (ArithmeticError, ValueError, TypeError) as e:
            logger.warning("Performance analysis failed: %s", e)
            return None

    def _analyze(
        self,
        transactions: Sequence[EnhancedTransaction],
        tokens: Sequence[TokenBalance],
    ) -> Optional[PerformanceMetrics]:
        if not transactions:
            return None

        total_trades = self.count_trades(transactions)
        wins, losses = self.estimate_wins_losses(transactions)

        if total_trades > 0:
            win_rate = min(100.0, wins / total_trades * 100)
        else:
            win_rate = 50.0

        return PerformanceMetrics(
            total_trades=total_trades,
            win_rate_estimate=round(win_rate, 2),
            estimated_pnl_sign=self.estimate_pnl_sign(tokens),
            risk_profile=self.risk_profile(transactions, tokens),
            trading_pattern=self.trading_pattern(transactions),
        )

    @staticmethod
    def count_trades(transactions: Sequence[EnhancedTransaction]) -> int:
        def is_swap(tx: EnhancedTransaction) -> bool:
            return (
                len(tx.token_transfers) >= 2
                or "SWAP" in (tx.type or "").upper()
                or "swap" in (tx.description or "").lower()
            )

        return sum(1 for tx in transactions if is_swap(tx))

    @staticmethod
    def estimate_wins_losses(transactions: Sequence[EnhancedTransaction]) -> tuple[int, int]:
        wins = 0
        losses = 0
        previous: Optional[int] = None

        for tx in transactions:
            if previous is not None and tx.timestamp is not None:
                gap = abs(tx.timestamp - previous)
                if gap < HOUR:
                    losses += 1  # quick successive trades: panic
                elif gap > WEEK:
                    wins += 1  # patience
            if tx.timestamp is not None:
                previous = tx.timestamp

            if tx.fee and tx.native_transfers:
                reference = tx.native_transfers[0].amount or 1
                if tx.fee / abs(reference) > FEE_RATIO_LOSS:
                    losses += 1

        n = len(transactions)
        return (
            max(wins, int(n * WIN_FLOOR_RATIO)),
            max(losses, int(n * LOSS_FLOOR_RATIO)),
        )

    @staticmethod
    def estimate_pnl_sign(tokens: Sequence[TokenBalance]) -> int:
        if not tokens:
            return 0

        total_value = sum(t.usd_value for t in tokens)
        bags = sum(1 for t in tokens if t.usd_value < 1 and t.amount > 100)
        bag_ratio = bags / len(tokens)

        if bag_ratio > 0.5:
            return -1
        if bag_ratio < 0.2 and total_value > 100:
            return 1
        return 0

    def risk_profile(
        self,
        transactions: Sequence[EnhancedTransaction],
        tokens: Sequence[TokenBalance],
    ) -> RiskProfile:
        memecoins = sum(
            1 for t in tokens
            if self.table.is_memecoin(t.mint)
            or any(m in (t.symbol or "").upper() for m in _MEMECOIN_SYMBOL_MARKERS)
        )
        complex_txs = sum(1 for tx in transactions if len(tx.instructions) > 3)

        if memecoins > 5:
            return RiskProfile.DEGEN
        if complex_txs > 10:
            return RiskProfile.SOPHISTICATED
        if len(transactions) < 20:
            return RiskProfile.CONSERVATIVE
        return RiskProfile.MODERATE

    @staticmethod
    def trading_pattern(transactions: Sequence[EnhancedTransaction]) -> TradingPattern:
        times = [tx.timestamp for tx in transactions if tx.timestamp is not None]
        if len(transactions) < 5 or len(times) < 2:
            return TradingPattern.HODLER

        gaps = [abs(b - a) for a, b in zip(times, times[1:])]
        average = sum(gaps) / len(gaps)

        if average < HOUR:
            return TradingPattern.HYPERACTIVE
        if average < DAY:
            return TradingPattern.ACTIVE
        if average < WEEK:
            return TradingPattern.WEEKLY
        return TradingPattern.HODLER
