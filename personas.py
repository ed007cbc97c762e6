from typing import Optional

from models import (
    NEUTRAL_PERFORMANCE,
    PerformanceMetrics,
    PersonaId,
    PersonaInfo,
    RiskProfile,
    TradingPattern,
    WalletFeatureVector,
)


# ── Catalogue ─────────────────────────────────────────────────────────────────

PERSONAS: dict[PersonaId, PersonaInfo] = {
    PersonaId.VIRGIN: PersonaInfo(
        id=PersonaId.VIRGIN,
        archetype="Virgin",
        icon="🏺",
        title="Diogenes the Cynic",
        description=(
            "You reject all material possessions and live with absolute minimalism. "
            "Your wallet contains virtually nothing because you believe true wealth "
            "comes from wanting less, not having more. You are the purest form of hodler."
        ),
        traits=["Minimalist", "Ascetic", "Anti-materialist", "Pure"],
        quote="I am looking for an honest coin.",
    ),
    PersonaId.PESSIMIST: PersonaInfo(
        id=PersonaId.PESSIMIST,
        archetype="Pessimist",
        icon="😤",
        title="Schopenhauer the Pessimist",
        description=(
            "You hate everything about crypto and DeFi, yet here you are, trapped in "
            "this miserable cycle of financial speculation. Every transaction fills you "
            "with existential dread, but you continue because suffering is the human condition."
        ),
        traits=["Pessimistic", "Suffering", "Reluctant participant", "Doomed"],
        quote="All trading is suffering.",
    ),
    PersonaId.ABSURDIST: PersonaInfo(
        id=PersonaId.ABSURDIST,
        archetype="Absurdist",
        icon="🎭",
        title="Camus the Absurdist",
        description=(
            "You embrace the fundamental absurdity of throwing money at cartoon dogs and "
            "magic internet money. Life has no meaning, so why not buy $BONK and $WIF? "
            "You find joy in the meaningless chaos of memecoin degeneracy."
        ),
        traits=["Absurdist", "Degen", "Embraces chaos", "Memecoin enthusiast"],
        quote="One must imagine $BONK holders happy.",
    ),
    PersonaId.REVOLUTIONARY: PersonaInfo(
        id=PersonaId.REVOLUTIONARY,
        archetype="Revolutionary",
        icon="☭",
        title="Marx the Revolutionary",
        description=(
            "You understand the means of production but are absolutely terrible with "
            "money. Your portfolio is a study in how someone can analyze capitalism "
            "brilliantly yet lose everything to bad DeFi trades."
        ),
        traits=["Anti-capitalist", "Bad with money", "DeFi victim", "Revolutionary"],
        quote=(
            "The philosophers have only interpreted the markets; the point is to "
            "change them... and lose money doing it."
        ),
    ),
    PersonaId.UBERMENSCH: PersonaInfo(
        id=PersonaId.UBERMENSCH,
        archetype="Ubermensch",
        icon="⚡",
        title="Nietzsche the Übermensch",
        description=(
            "You have transcended traditional financial wisdom and created your own "
            "values. You are building the future of finance through pure will to power "
            "and NFT collections."
        ),
        traits=["Übermensch", "Value creator", "Transcendent", "Builder"],
        quote="What does not destroy my portfolio, makes it stronger.",
    ),
}


def get_persona(persona_id: PersonaId) -> PersonaInfo:
    return PERSONAS[persona_id]


# ── Classification ────────────────────────────────────────────────────────────


def classify(
    features: WalletFeatureVector,
    performance: Optional[PerformanceMetrics] = None,
) -> PersonaId:
    """Ordered rules, first match wins. Missing performance means neutral defaults."""
    perf = performance or NEUTRAL_PERFORMANCE

    # Owns nothing, did nothing
    if features.is_virgin:
        return PersonaId.VIRGIN

    # Heavy DeFi, losing money
    if features.defi_interaction_count >= 5 and (
        perf.estimated_pnl_sign < 0 or perf.win_rate_estimate < 40
    ):
        return PersonaId.REVOLUTIONARY

    # Chaos embraced regardless of outcome
    if features.memecoin_trade_count >= 10 or perf.risk_profile == RiskProfile.DEGEN:
        return PersonaId.ABSURDIST

    if 20 <= features.total_transactions < 200 and (
        perf.win_rate_estimate < 50 or perf.trading_pattern == TradingPattern.HYPERACTIVE
    ):
        return PersonaId.PESSIMIST

    # Collector who also builds or wins
    if features.nft_count >= 5 and (
        features.defi_interaction_count >= 3 or perf.estimated_pnl_sign > 0
    ):
        return PersonaId.UBERMENSCH

    # The reluctant participant
    return PersonaId.PESSIMIST
