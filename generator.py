"""Deterministic wallet profiles for demos and for when live data is unavailable.

``generate`` is a pure function of the identifier: the same string always
yields the same feature vector. The string hash folds UTF-16 code units as
``hash * 31 + unit`` with 32-bit signed wraparound, so results line up with
profiles produced by the browser build.
"""

from typing import Optional

from models import DataSource, PersonaId, WalletFeatureVector


HASH_MODULUS = 10000

# (upper bound of r, band name, {field: (base, span)}); value = floor(base + r * span).
# Ranges never decrease from one band to the next for any field.
BANDS: list[tuple[float, str, Optional[dict[str, tuple[float, float]]]]] = [
    (0.10, "virgin", None),
    (0.30, "novice", {
        "total_transactions": (20, 80),
        "nft_count": (0, 12),
        "memecoin_trade_count": (0, 25),
        "defi_interaction_count": (0, 15),
        "total_volume": (0, 500),
        "unique_program_count": (5, 15),
        "account_age_days": (45, 120),
    }),
    (0.60, "active", {
        "total_transactions": (150, 350),
        "nft_count": (8, 40),
        "memecoin_trade_count": (25, 100),
        "defi_interaction_count": (15, 50),
        "total_volume": (800, 3000),
        "unique_program_count": (10, 25),
        "account_age_days": (90, 200),
    }),
    (0.85, "power_user", {
        "total_transactions": (400, 600),
        "nft_count": (15, 60),
        "memecoin_trade_count": (40, 120),
        "defi_interaction_count": (50, 100),
        "total_volume": (2500, 7500),
        "unique_program_count": (20, 40),
        "account_age_days": (120, 300),
    }),
    (1.00, "degen", {
        "total_transactions": (600, 800),
        "nft_count": (25, 50),
        "memecoin_trade_count": (150, 400),
        "defi_interaction_count": (50, 100),
        "total_volume": (5000, 15000),
        "unique_program_count": (25, 50),
        "account_age_days": (180, 250),
    }),
]


def hash_string(value: str) -> int:
    h = 0
    data = value.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def unit_interval(value: str) -> float:
    """Map an identifier to r in [0, 1)."""
    return (hash_string(value) % HASH_MODULUS) / HASH_MODULUS


def band_for(r: float) -> str:
    for upper, name, _ in BANDS:
        if r < upper:
            return name
    return BANDS[-1][1]


def generate(
    wallet_identifier: str,
    data_source: DataSource = DataSource.SMART_FALLBACK,
) -> WalletFeatureVector:
    r = unit_interval(wallet_identifier)
    ranges = next(field_ranges for upper, _, field_ranges in BANDS if r < upper)

    if ranges is None:
        return WalletFeatureVector.virgin(data_source)

    values = {field: int(base + r * span) for field, (base, span) in ranges.items()}
    values["total_volume"] = float(values["total_volume"])
    return WalletFeatureVector(**values, is_virgin=False, data_source=data_source)


# ── Demo Profiles ─────────────────────────────────────────────────────────────

DEMO_WALLETS: dict[PersonaId, str] = {
    PersonaId.VIRGIN: "Demo-Diogenes-Address-111111111111111",
    PersonaId.PESSIMIST: "Demo-Schopenhauer-Address-222222222222",
    PersonaId.ABSURDIST: "Demo-Camus-Address-333333333333333",
    PersonaId.REVOLUTIONARY: "Demo-Marx-Address-444444444444444",
    PersonaId.UBERMENSCH: "Demo-Nietzsche-Address-555555555555555",
}

# txs, nfts, memecoin trades, defi, volume, programs, age
_DEMO_PROFILES: dict[str, tuple[int, int, int, int, float, int, int]] = {
    "Diogenes": (0, 0, 0, 0, 0.0, 0, 365),
    "Schopenhauer": (75, 2, 8, 3, 200.0, 6, 180),
    "Camus": (420, 12, 69, 8, 1337.0, 15, 90),
    "Marx": (350, 5, 25, 45, 15000.0, 25, 240),
    "Nietzsche": (200, 35, 15, 20, 5000.0, 30, 300),
}


def is_demo_identifier(wallet_identifier: str) -> bool:
    return "Demo" in wallet_identifier


def demo_profile(wallet_identifier: str) -> WalletFeatureVector:
    """Canned profile for a named demo wallet, otherwise a generated one."""
    source = DataSource.DETERMINISTIC_DEMO
    for name, (txs, nfts, memes, defi, volume, programs, age) in _DEMO_PROFILES.items():
        if name in wallet_identifier:
            if txs == 0:
                return WalletFeatureVector.virgin(source, account_age_days=age)
            return WalletFeatureVector(
                total_transactions=txs,
                nft_count=nfts,
                memecoin_trade_count=memes,
                defi_interaction_count=defi,
                total_volume=volume,
                unique_program_count=programs,
                account_age_days=age,
                is_virgin=False,
                data_source=source,
            )
    return generate(wallet_identifier, data_source=source)
