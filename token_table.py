import os
from typing import Iterable, Optional


# ── Embedded Defaults ─────────────────────────────────────────────────────────

DEFAULT_MEMECOIN_MINTS: dict[str, str] = {
    "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263": "BONK",
    "EKpQGSJtjMFqKZ9KQanSqYXRcF8fBopzLHYxdM65zcjm": "WIF",
    "ukHH6c7mMyiWCf1b9pnWe25TSpkDDt3H5pQZgZ74J82": "BOME",
    "3NZ9JMVBmGAqocybic2c7LQCJScmgsAZ6vQqTDzcqmJh": "WEN",
    "HeLp6NuQkmYB4pYWo2zYs22mESHXPQYzXbB8n4V98jwC": "HELP",
}

DEFAULT_STABLECOIN_MINTS: dict[str, str] = {
    "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v": "USDC",
    "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB": "USDT",
}

DEFAULT_DEFI_PROGRAMS: dict[str, str] = {
    # DEXs
    "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM": "Serum",
    "DjVE6JNiYqPL2QXyCUUh8rNjHrbz9hXHNYt99MQ59qw1": "Orca",
    "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8": "Raydium",
    "JUP6LkbZbjS1jKKwapdHNy74zcZ3tLUZoi5QNyVTaV4": "Jupiter",
    "JUP4Fb2cqiRUcaTHdrPC8h2gNsA2ETXiPDD33WcGuJB": "Jupiter v4",
    # Lending & borrowing
    "So1endDq2YkqhipRh3WViPa8hdiSpxWy6z3Z6tMCpAo": "Solend",
    "LendZqTs7gn5CTSJU1jWKhKuVpjFGom45nnwPb2AMTi": "Port Finance",
    # Staking
    "8szGkuLTAux9XMgZ2vtY39jVSowEcpBfFfD8hXSEqdGC": "Marinade",
    "CrX7kMhLC3cSsXJdT7JDgqrRVWGnX3gfEfxxU2NVLi": "Lido",
    # Perpetuals
    "dRiftyHA39MWEi3m9aunc5MzRF1JYuBsbn6VPcn33UH": "Drift Protocol",
}


def _parse_id_list(raw: Optional[str]) -> Optional[list[str]]:
    if raw is None or not raw.strip():
        return None
    return [part.strip() for part in raw.split(",") if part.strip()]


class TokenClassificationTable:
    """Read-only lookup of memecoin mints, stablecoin mints and DeFi programs.

    Built once at startup and shared by every concurrent sub-fetch, so the
    three sets are frozen and must not overlap.
    """

    def __init__(
        self,
        memecoins: Optional[Iterable[str]] = None,
        stablecoins: Optional[Iterable[str]] = None,
        defi_programs: Optional[Iterable[str]] = None,
    ):
        self.memecoins = frozenset(
            DEFAULT_MEMECOIN_MINTS if memecoins is None else memecoins
        )
        self.stablecoins = frozenset(
            DEFAULT_STABLECOIN_MINTS if stablecoins is None else stablecoins
        )
        self.defi_programs = frozenset(
            DEFAULT_DEFI_PROGRAMS if defi_programs is None else defi_programs
        )

        overlap = (
            (self.memecoins & self.stablecoins)
            | (self.memecoins & self.defi_programs)
            | (self.stablecoins & self.defi_programs)
        )
        if overlap:
            raise ValueError(
                f"Token classification sets must be disjoint; shared ids: {sorted(overlap)}"
            )

    @classmethod
    def from_env(cls) -> "TokenClassificationTable":
        """Build the table, letting MEMECOIN_MINTS / STABLECOIN_MINTS / DEFI_PROGRAMS override defaults."""
        return cls(
            memecoins=_parse_id_list(os.getenv("MEMECOIN_MINTS")),
            stablecoins=_parse_id_list(os.getenv("STABLECOIN_MINTS")),
            defi_programs=_parse_id_list(os.getenv("DEFI_PROGRAMS")),
        )

    def is_memecoin(self, mint: Optional[str]) -> bool:
        return bool(mint) and mint in self.memecoins

    def is_stablecoin(self, mint: Optional[str]) -> bool:
        return bool(mint) and mint in self.stablecoins

    def is_defi_program(self, program_id: Optional[str]) -> bool:
        return bool(program_id) and program_id in self.defi_programs

    @staticmethod
    def protocol_name(program_id: str) -> str:
        """Readable name for a built-in DeFi program.

        Names only cover the embedded defaults; ids added through
        DEFI_PROGRAMS fall back to a truncated "Protocol (...)" label.
        """
        return DEFAULT_DEFI_PROGRAMS.get(program_id, f"Protocol ({program_id[:8]}...)")
