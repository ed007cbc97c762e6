import asyncio
import logging
from typing import Optional, Sequence

from chain_providers import HeliusClient
from models import (
    AcquisitionResult,
    BalancesResult,
    NFTResult,
    TransactionSignals,
    TransactionsResult,
)
from nft_detection import NFTDetectionStrategy, default_strategies, detect_nfts


logger = logging.getLogger(__name__)


HISTORY_LIMIT = 100
SIGNATURE_LIMIT = 1000

# Signature-count fallback: fixed ratios, an approximation not a measurement
SIGNATURE_DEFI_RATIO = 0.15
SIGNATURE_MEMECOIN_RATIO = 0.20
SIGNATURE_VOLUME_PER_TX = 0.5  # SOL


class TotalAcquisitionFailure(Exception):
    """Every data source failed; there is nothing live to analyze."""

    def __init__(self, address: str, result: AcquisitionResult):
        self.address = address
        self.result = result
        errors = ", ".join(
            f"{name}: {src.error or 'failed'}"
            for name, src in (
                ("balances", result.balances),
                ("nfts", result.nfts),
                ("transactions", result.transactions),
            )
        )
        super().__init__(f"All data sources failed for {address} ({errors})")


def estimate_from_signatures(signature_count: int) -> TransactionSignals:
    return TransactionSignals(
        total_transactions=signature_count,
        defi_activity=int(signature_count * SIGNATURE_DEFI_RATIO),
        memecoin_activity=int(signature_count * SIGNATURE_MEMECOIN_RATIO),
        volume=float(int(signature_count * SIGNATURE_VOLUME_PER_TX)),
    )


class DataAcquirer:
    """Fetches balances, NFTs and history concurrently, each with its own fallbacks."""

    def __init__(
        self,
        helius: HeliusClient,
        nft_strategies: Optional[Sequence[NFTDetectionStrategy]] = None,
        history_limit: int = HISTORY_LIMIT,
    ):
        self.helius = helius
        self.nft_strategies = (
            list(nft_strategies) if nft_strategies is not None else default_strategies(helius)
        )
        self.history_limit = history_limit

    async def acquire(self, address: str) -> AcquisitionResult:
        # Settle-all: one source failing never cancels the others
        balances, nfts, transactions = await asyncio.gather(
            self.fetch_balances(address),
            self.fetch_nfts(address),
            self.fetch_transactions(address),
            return_exceptions=True,
        )

        result = AcquisitionResult(
            balances=self._settle(balances, "balances", BalancesResult),
            nfts=self._settle(nfts, "nfts", NFTResult),
            transactions=self._settle(transactions, "transactions", TransactionsResult),
        )

        logger.info(
            "Source summary for %s: balances=%s nfts=%s transactions=%s",
            address,
            "ok" if result.balances.success else "failed",
            "ok" if result.nfts.success else "failed",
            "ok" if result.transactions.success else "failed",
        )

        if not result.succeeded:
            raise TotalAcquisitionFailure(address, result)
        return result

    @staticmethod
    def _settle(outcome, source: str, result_cls):
        if isinstance(outcome, BaseException):
            logger.warning("%s fetch raised: %r", source, outcome)
            if result_cls is BalancesResult:
                return BalancesResult(success=False, error=str(outcome))
            return result_cls(success=False, method="complete_failure", error=str(outcome))
        return outcome

    # ── Balances (no fallback) ─────────────────────────────────────────────

    async def fetch_balances(self, address: str) -> BalancesResult:
        try:
            tokens, native = await self.helius.get_token_balances(address)
        except Exception as e:
            logger.warning("Token balances failed: %s", e)
            return BalancesResult(success=False, error=str(e))

        logger.debug("Token balances received: %d tokens", len(tokens))
        return BalancesResult(success=True, tokens=tokens, native_balance=native)

    # ── NFTs (strategy ladder) ─────────────────────────────────────────────

    async def fetch_nfts(self, address: str) -> NFTResult:
        result = await detect_nfts(self.nft_strategies, address)
        if not result.success:
            logger.warning("NFT detection failed: %s", result.error)
        return result

    # ── Transactions (enhanced history, then signature count) ──────────────

    async def fetch_transactions(self, address: str) -> TransactionsResult:
        try:
            transactions = await self.helius.get_transaction_history(
                address, limit=self.history_limit
            )
        except Exception as e:
            logger.warning("Transaction history failed (%s), trying RPC fallback", e)
            return await self._transactions_from_signatures(address)

        logger.debug("Received %d enhanced transactions", len(transactions))
        return TransactionsResult(
            success=True,
            method="helius_enhanced",
            total_transactions=len(transactions),
            transactions=transactions,
        )

    async def _transactions_from_signatures(self, address: str) -> TransactionsResult:
        try:
            signatures = await self.helius.get_signatures_for_address(
                address, limit=SIGNATURE_LIMIT
            )
        except Exception as e:
            logger.warning("RPC transaction fallback failed: %s", e)
            return TransactionsResult(success=False, method="complete_failure", error=str(e))

        estimate = estimate_from_signatures(len(signatures))
        return TransactionsResult(
            success=True,
            method="rpc_fallback",
            total_transactions=estimate.total_transactions,
            estimate=estimate,
        )
