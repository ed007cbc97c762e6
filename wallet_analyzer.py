import logging
import os
from typing import Optional

import httpx

from chain_providers import HeliusClient, SimpleHashClient
from data_acquirer import DataAcquirer, TotalAcquisitionFailure
from features import FeatureExtractor
from generator import demo_profile, generate, is_demo_identifier
from models import (
    AcquisitionResult,
    AnalysisState,
    DataSource,
    PerformanceMetrics,
    PersonaResult,
    SourceStatus,
    WalletFeatureVector,
)
from nft_detection import default_strategies
from performance import PerformanceAnalyzer
from personas import classify
from token_table import TokenClassificationTable
from utils import InvalidWalletAddress, short_address, validate_wallet_address


logger = logging.getLogger(__name__)


class _Run:
    """State trail of a single analysis."""

    def __init__(self, address: str):
        self.address = address
        self.trail = [AnalysisState.IDLE]

    @property
    def state(self) -> AnalysisState:
        return self.trail[-1]

    def enter(self, state: AnalysisState) -> None:
        logger.debug(
            "%s: %s -> %s", short_address(self.address), self.state.value, state.value
        )
        self.trail.append(state)


class WalletAnalyzer:
    """Acquire -> extract -> classify, degrading to a generated profile on failure.

    ``analyze`` never raises for a well-formed address; the only error that
    reaches the caller is ``InvalidWalletAddress``.
    """

    def __init__(
        self,
        acquirer: Optional[DataAcquirer] = None,
        extractor: Optional[FeatureExtractor] = None,
        performance_analyzer: Optional[PerformanceAnalyzer] = None,
        demo_mode: bool = False,
    ):
        # No acquirer means no credential: every analysis uses the smart fallback
        self.acquirer = acquirer
        self.extractor = extractor or FeatureExtractor()
        self.performance_analyzer = performance_analyzer or PerformanceAnalyzer(
            self.extractor.table
        )
        self.demo_mode = demo_mode

    @property
    def live(self) -> bool:
        return self.acquirer is not None

    async def analyze(self, address: str, demo: bool = False) -> PersonaResult:
        if not isinstance(address, str):
            raise InvalidWalletAddress("Wallet address must be a string")

        if demo or self.demo_mode or is_demo_identifier(address):
            run = _Run(address.strip())
            run.enter(AnalysisState.CLASSIFYING)
            return self._finish(run, demo_profile(run.address))

        run = _Run(validate_wallet_address(address))

        if not self.live:
            logger.info("No live data provider configured, using smart fallback")
            return self._fallback(run)

        try:
            run.enter(AnalysisState.ACQUIRING)
            acquired = await self.acquirer.acquire(run.address)

            run.enter(AnalysisState.EXTRACTING)
            features = self.extractor.extract(
                acquired.balances, acquired.nfts, acquired.transactions
            )
            performance = self._performance(acquired)

            run.enter(AnalysisState.CLASSIFYING)
            return self._finish(run, features, performance, self._source_status(acquired))
        except TotalAcquisitionFailure as e:
            logger.warning("%s", e)
        except Exception:
            logger.exception("Analysis of %s failed unexpectedly", short_address(run.address))

        return self._fallback(run)

    def _performance(self, acquired: AcquisitionResult) -> Optional[PerformanceMetrics]:
        # Only enhanced history carries the timestamps and fees this needs
        txs = acquired.transactions
        if not txs.success or not txs.transactions:
            return None
        tokens = acquired.balances.tokens if acquired.balances.success else []
        return self.performance_analyzer.analyze(txs.transactions, tokens)

    def _fallback(self, run: _Run) -> PersonaResult:
        run.enter(AnalysisState.FALLBACK_GENERATING)
        features = generate(run.address, data_source=DataSource.SMART_FALLBACK)
        return self._finish(run, features)

    @staticmethod
    def _finish(
        run: _Run,
        features: WalletFeatureVector,
        performance: Optional[PerformanceMetrics] = None,
        status: Optional[SourceStatus] = None,
    ) -> PersonaResult:
        persona_id = classify(features, performance)
        run.enter(AnalysisState.DONE)
        logger.info(
            "Analyzed %s -> %s (%s)",
            short_address(run.address), persona_id.value, features.data_source.value,
        )
        return PersonaResult(
            persona_id=persona_id,
            features=features,
            wallet_address=run.address,
            performance=performance,
            source_status=status,
            state_trail=run.trail,
        )

    @staticmethod
    def _source_status(acquired: AcquisitionResult) -> SourceStatus:
        return SourceStatus(
            balances=acquired.balances.success,
            nfts=acquired.nfts.success,
            transactions=acquired.transactions.success,
            token_count=acquired.balances.total_tokens,
            native_balance=acquired.balances.native_balance,
            nft_method=acquired.nfts.method,
            tx_method=acquired.transactions.method,
        )


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in {"1", "true", "yes", "on"}


def build_analyzer(transport: Optional[httpx.AsyncBaseTransport] = None) -> WalletAnalyzer:
    """Wire a WalletAnalyzer from environment configuration."""
    table = TokenClassificationTable.from_env()
    helius = HeliusClient.from_env(transport=transport)

    acquirer = None
    if helius.has_credentials:
        simplehash = SimpleHashClient.from_env(transport=transport)
        acquirer = DataAcquirer(helius, nft_strategies=default_strategies(helius, simplehash))

    return WalletAnalyzer(
        acquirer=acquirer,
        extractor=FeatureExtractor(table),
        performance_analyzer=PerformanceAnalyzer(table),
        demo_mode=_env_flag("DEMO_MODE"),
    )
