"""Heuristic feature extraction over raw provider data.

Every counter here is an estimate. The provider does not expose account
creation time or a program census, so age and program counts are proxies
derived from the transaction count.
"""

import logging
from typing import Optional, Sequence

from models import (
    BalancesResult,
    DataSource,
    EnhancedTransaction,
    NFTResult,
    TokenBalance,
    TokenHoldingSignals,
    TransactionSignals,
    TransactionsResult,
    WalletFeatureVector,
)
from token_table import TokenClassificationTable
from utils import lamports_to_sol


logger = logging.getLogger(__name__)


# ── Tunable Policies ──────────────────────────────────────────────────────────

# A token is "DeFi-adjacent" (LP / yield receipt) when its balance is small and
# positive and it is neither a stablecoin nor a memecoin. Coarse on purpose.
DEFI_ADJACENT_MAX_AMOUNT = 1000

# Holding counts -> estimated historical activity
MEMECOIN_TRADES_PER_HOLDING = 12
DEFI_INTERACTIONS_PER_TOKEN = 8

# Only the most recent transactions are scanned
TRANSACTION_SCAN_LIMIT = 100

ACCOUNT_AGE_FLOOR_DAYS = 30
TXS_PER_ACCOUNT_DAY = 3
TXS_PER_PROGRAM = 20
PROGRAM_COUNT_OFFSET = 5


class FeatureExtractor:
    def __init__(self, table: Optional[TokenClassificationTable] = None):
        self.table = table or TokenClassificationTable()

    # ── Token Holdings ─────────────────────────────────────────────────────

    def analyze_token_balances(self, tokens: Sequence[TokenBalance]) -> TokenHoldingSignals:
        memecoin_holdings = 0
        defi_tokens = 0
        total_value = 0.0

        for token in tokens:
            is_memecoin = self.table.is_memecoin(token.mint)
            if is_memecoin:
                memecoin_holdings += 1
            elif (
                0 < token.amount < DEFI_ADJACENT_MAX_AMOUNT
                and not self.table.is_stablecoin(token.mint)
            ):
                defi_tokens += 1
            total_value += token.usd_value or 0

        return TokenHoldingSignals(
            memecoin_holdings=memecoin_holdings,
            defi_tokens=defi_tokens,
            total_value=round(total_value, 2),
            estimated_memecoin_trades=memecoin_holdings * MEMECOIN_TRADES_PER_HOLDING,
            estimated_defi_interactions=defi_tokens * DEFI_INTERACTIONS_PER_TOKEN,
        )

    # ── Transaction History ────────────────────────────────────────────────

    def analyze_transactions(
        self, transactions: Sequence[EnhancedTransaction]
    ) -> TransactionSignals:
        defi_activity = 0
        memecoin_activity = 0
        volume = 0.0

        for tx in transactions[:TRANSACTION_SCAN_LIMIT]:
            defi_programs = [
                ix.program_id for ix in tx.instructions
                if self.table.is_defi_program(ix.program_id)
            ]
            if defi_programs:
                defi_activity += 1
                logger.debug(
                    "DeFi interaction: %s",
                    self.table.protocol_name(defi_programs[0]),
                )

            if any(self.table.is_memecoin(t.mint) for t in tx.token_transfers):
                memecoin_activity += 1

            volume += sum(lamports_to_sol(abs(t.amount)) for t in tx.native_transfers)

        return TransactionSignals(
            total_transactions=len(transactions),
            defi_activity=defi_activity,
            memecoin_activity=memecoin_activity,
            volume=round(volume, 2),
        )

    def transaction_signals(self, result: TransactionsResult) -> TransactionSignals:
        if not result.success:
            return TransactionSignals()
        if result.estimate is not None:
            return result.estimate
        signals = self.analyze_transactions(result.transactions)
        # The source may know of more history than it handed over
        if result.total_transactions > signals.total_transactions:
            signals = signals.model_copy(
                update={"total_transactions": result.total_transactions}
            )
        return signals

    # ── Combination ────────────────────────────────────────────────────────

    def combine(
        self,
        holdings: TokenHoldingSignals,
        activity: TransactionSignals,
        nft_count: int,
        data_source: DataSource,
    ) -> WalletFeatureVector:
        """Merge holding- and history-derived signals into one feature vector.

        Where both sources estimate the same counter, the larger estimate wins;
        they are never summed, since they describe the same underlying activity.
        """
        total = activity.total_transactions
        account_age = max(ACCOUNT_AGE_FLOOR_DAYS, total // TXS_PER_ACCOUNT_DAY)

        if total == 0:
            return WalletFeatureVector.virgin(data_source, account_age_days=account_age)

        memecoin_trades = max(holdings.estimated_memecoin_trades, activity.memecoin_activity)
        defi_count = max(holdings.estimated_defi_interactions, activity.defi_activity)

        return WalletFeatureVector(
            total_transactions=total,
            nft_count=nft_count,
            memecoin_trade_count=memecoin_trades,
            defi_interaction_count=defi_count,
            total_volume=activity.volume,
            unique_program_count=total // TXS_PER_PROGRAM + defi_count // 2 + PROGRAM_COUNT_OFFSET,
            account_age_days=account_age,
            is_virgin=False,
            data_source=data_source,
        )

    def extract(
        self,
        balances: BalancesResult,
        nfts: NFTResult,
        transactions: TransactionsResult,
    ) -> WalletFeatureVector:
        all_ok = balances.success and nfts.success and transactions.success
        data_source = DataSource.LIVE_API if all_ok else DataSource.PARTIAL_FALLBACK

        holdings = (
            self.analyze_token_balances(balances.tokens)
            if balances.success else TokenHoldingSignals()
        )
        activity = self.transaction_signals(transactions)
        nft_count = nfts.nft_count if nfts.success else 0

        return self.combine(holdings, activity, nft_count, data_source)
