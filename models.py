from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ── Enums ─────────────────────────────────────────────────────────────────────


class DataSource(str, Enum):
    LIVE_API = "live_api"
    PARTIAL_FALLBACK = "partial_fallback"
    SMART_FALLBACK = "smart_fallback"
    DETERMINISTIC_DEMO = "deterministic_demo"


class PersonaId(str, Enum):
    VIRGIN = "diogenes"
    PESSIMIST = "schopenhauer"
    ABSURDIST = "camus"
    REVOLUTIONARY = "marx"
    UBERMENSCH = "nietzsche"


class RiskProfile(str, Enum):
    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    SOPHISTICATED = "sophisticated"
    DEGEN = "degen"


class TradingPattern(str, Enum):
    HODLER = "hodler"
    WEEKLY = "weekly"
    ACTIVE = "active"
    HYPERACTIVE = "hyperactive"


class AnalysisState(str, Enum):
    IDLE = "idle"
    ACQUIRING = "acquiring"
    EXTRACTING = "extracting"
    CLASSIFYING = "classifying"
    FALLBACK_GENERATING = "fallback_generating"
    DONE = "done"


# ── Provider Records ──────────────────────────────────────────────────────────


class TokenBalance(BaseModel):
    mint: str
    amount: float = 0.0
    decimals: int = 0
    usd_value: float = 0.0
    symbol: Optional[str] = None


class NFTAsset(BaseModel):
    mint: str
    name: str = "Unknown NFT"
    symbol: str = ""
    image: str = ""
    collection: str = ""


class Instruction(BaseModel):
    program_id: Optional[str] = None
    accounts: list[str] = []


class TokenTransfer(BaseModel):
    mint: Optional[str] = None
    token_amount: float = 0.0
    from_user_account: Optional[str] = None
    to_user_account: Optional[str] = None


class NativeTransfer(BaseModel):
    amount: int = 0  # lamports
    from_user_account: Optional[str] = None
    to_user_account: Optional[str] = None


class EnhancedTransaction(BaseModel):
    signature: str = ""
    type: Optional[str] = None
    description: Optional[str] = None
    timestamp: Optional[int] = None
    fee: Optional[int] = None
    instructions: list[Instruction] = []
    token_transfers: list[TokenTransfer] = []
    native_transfers: list[NativeTransfer] = []


# ── Source Results ────────────────────────────────────────────────────────────
# One per data source. success=False means the source failed; the result still
# carries zero values so the pipeline can proceed with whatever succeeded.


class BalancesResult(BaseModel):
    success: bool
    tokens: list[TokenBalance] = []
    native_balance: float = 0.0  # SOL
    error: Optional[str] = None

    @property
    def total_tokens(self) -> int:
        return len(self.tokens)


class NFTResult(BaseModel):
    success: bool
    nft_count: int = 0
    method: str = "unknown"
    nfts: list[NFTAsset] = []
    total_token_accounts: Optional[int] = None
    error: Optional[str] = None


class TransactionSignals(BaseModel):
    """Activity counters derived from a transaction source."""

    total_transactions: int = 0
    defi_activity: int = 0
    memecoin_activity: int = 0
    volume: float = 0.0


class TransactionsResult(BaseModel):
    success: bool
    method: str = "unknown"
    total_transactions: int = 0
    transactions: list[EnhancedTransaction] = []
    # Set when the history was only countable (signature fallback); the
    # counters are fixed-ratio estimates rather than measurements.
    estimate: Optional[TransactionSignals] = None
    error: Optional[str] = None


class AcquisitionResult(BaseModel):
    balances: BalancesResult
    nfts: NFTResult
    transactions: TransactionsResult

    @property
    def succeeded(self) -> list[str]:
        return [
            name
            for name, result in (
                ("balances", self.balances),
                ("nfts", self.nfts),
                ("transactions", self.transactions),
            )
            if result.success
        ]


class TokenHoldingSignals(BaseModel):
    memecoin_holdings: int = 0
    defi_tokens: int = 0
    total_value: float = 0.0
    estimated_memecoin_trades: int = 0
    estimated_defi_interactions: int = 0


# ── Analysis Models ───────────────────────────────────────────────────────────


class WalletFeatureVector(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_transactions: int = Field(0, ge=0)
    nft_count: int = Field(0, ge=0)
    memecoin_trade_count: int = Field(0, ge=0)
    defi_interaction_count: int = Field(0, ge=0)
    total_volume: float = Field(0.0, ge=0)
    unique_program_count: int = Field(0, ge=0)
    account_age_days: int = Field(0, ge=0)
    is_virgin: bool = False
    data_source: DataSource = DataSource.LIVE_API

    @model_validator(mode="before")
    @classmethod
    def _derive_virgin(cls, data: Any) -> Any:
        if isinstance(data, dict) and "is_virgin" not in data:
            data = {**data, "is_virgin": data.get("total_transactions", 0) == 0}
        return data

    @model_validator(mode="after")
    def _check_virgin(self) -> "WalletFeatureVector":
        if self.is_virgin != (self.total_transactions == 0):
            raise ValueError("is_virgin must be true exactly when total_transactions == 0")
        if self.is_virgin and any((
            self.nft_count,
            self.memecoin_trade_count,
            self.defi_interaction_count,
            self.total_volume,
            self.unique_program_count,
        )):
            raise ValueError("virgin wallets cannot carry activity counts or volume")
        return self

    @classmethod
    def virgin(
        cls, data_source: DataSource, account_age_days: int = 0
    ) -> "WalletFeatureVector":
        return cls(
            total_transactions=0,
            account_age_days=account_age_days,
            is_virgin=True,
            data_source=data_source,
        )


class PerformanceMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_trades: int = 0
    win_rate_estimate: float = Field(50.0, ge=0, le=100)
    estimated_pnl_sign: int = Field(0, ge=-1, le=1)
    risk_profile: RiskProfile = RiskProfile.MODERATE
    trading_pattern: TradingPattern = TradingPattern.HODLER


NEUTRAL_PERFORMANCE = PerformanceMetrics()


class SourceStatus(BaseModel):
    balances: bool = False
    nfts: bool = False
    transactions: bool = False
    token_count: int = 0
    native_balance: float = 0.0
    nft_method: str = "unknown"
    tx_method: str = "unknown"


class PersonaResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    persona_id: PersonaId
    features: WalletFeatureVector
    wallet_address: str
    performance: Optional[PerformanceMetrics] = None
    source_status: Optional[SourceStatus] = None
    state_trail: list[AnalysisState] = []
    analyzed_at: datetime = Field(default_factory=datetime.now)

    @property
    def data_source(self) -> DataSource:
        return self.features.data_source

    def to_summary(self) -> dict:
        """Caller-facing mapping of the result."""
        f = self.features
        return {
            "personaId": self.persona_id.value,
            "totalTxs": f.total_transactions,
            "nftCount": f.nft_count,
            "memecoinTrades": f.memecoin_trade_count,
            "defiCount": f.defi_interaction_count,
            "totalVolume": f.total_volume,
            "accountAge": f.account_age_days,
            "isVirgin": f.is_virgin,
            "dataSource": f.data_source.value,
            "walletAddress": self.wallet_address,
        }


# ── API Models ────────────────────────────────────────────────────────────────


class HealthResponse(BaseModel):
    status: str
    version: str
    live_data: bool = False
    helius_reachable: Optional[bool] = None


class AnalyzeRequest(BaseModel):
    address: str = Field(..., description="Public Solana wallet address")
    demo: bool = Field(
        False,
        description="Skip live data and use canned/deterministic demo profiles.",
    )


class PersonaInfo(BaseModel):
    id: PersonaId
    archetype: str
    icon: str
    title: str
    description: str
    traits: list[str]
    quote: str


class AnalyzeResponse(BaseModel):
    success: bool
    address: str
    error: Optional[str] = None
    result: Optional[dict] = None
    persona: Optional[PersonaInfo] = None
    performance: Optional[PerformanceMetrics] = None
    source_status: Optional[SourceStatus] = None
    processing_time_ms: Optional[int] = None
