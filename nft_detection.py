import logging
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from chain_providers import HeliusClient, SimpleHashClient
from models import NFTResult


logger = logging.getLogger(__name__)

# How many sample assets to keep on a result
_SAMPLE_SIZE = 5


# ── Strategies ────────────────────────────────────────────────────────────────


class NFTDetectionStrategy(ABC):
    """One way of counting the NFTs a wallet holds."""

    method: str = "unknown"

    @abstractmethod
    async def attempt(self, address: str) -> NFTResult:
        ...


class HeliusDigitalAssetsStrategy(NFTDetectionStrategy):
    """Rich metadata from the Helius REST NFT endpoint."""

    method = "helius_digital_assets"

    def __init__(self, helius: HeliusClient):
        self.helius = helius

    async def attempt(self, address: str) -> NFTResult:
        nfts = await self.helius.get_nfts(address)
        return NFTResult(
            success=True,
            nft_count=len(nfts),
            method=self.method,
            nfts=nfts[:_SAMPLE_SIZE],
        )


class AssetsByOwnerStrategy(NFTDetectionStrategy):
    """DAS ``getAssetsByOwner`` on the node RPC, filtered to NFT interfaces."""

    method = "helius_rpc"

    def __init__(self, helius: HeliusClient):
        self.helius = helius

    async def attempt(self, address: str) -> NFTResult:
        nfts = await self.helius.get_assets_by_owner(address)
        return NFTResult(
            success=True,
            nft_count=len(nfts),
            method=self.method,
            nfts=nfts[:_SAMPLE_SIZE],
        )


class SimpleHashStrategy(NFTDetectionStrategy):
    method = "simplehash_api"

    def __init__(self, simplehash: SimpleHashClient):
        self.simplehash = simplehash

    async def attempt(self, address: str) -> NFTResult:
        nfts = await self.simplehash.get_nfts(address)
        return NFTResult(
            success=True,
            nft_count=len(nfts),
            method=self.method,
            nfts=nfts[:_SAMPLE_SIZE],
        )


class TokenAccountShapeStrategy(NFTDetectionStrategy):
    """Treat every token account holding exactly 1 unit with 0 decimals as an NFT."""

    method = "rpc_fallback"

    def __init__(self, helius: HeliusClient):
        self.helius = helius

    async def attempt(self, address: str) -> NFTResult:
        accounts = await self.helius.get_token_accounts_by_owner(address)
        candidates = [a for a in accounts if a.decimals == 0 and a.amount == 1]
        logger.debug(
            "Found %d potential NFTs among %d token accounts",
            len(candidates), len(accounts),
        )
        return NFTResult(
            success=True,
            nft_count=len(candidates),
            method=self.method,
            total_token_accounts=len(accounts),
        )


def default_strategies(
    helius: HeliusClient, simplehash: Optional[SimpleHashClient] = None
) -> list[NFTDetectionStrategy]:
    """Strategies in preference order: richest data first, shape heuristic last.

    The SimpleHash tier is only included when a client is supplied.
    """
    strategies: list[NFTDetectionStrategy] = [
        HeliusDigitalAssetsStrategy(helius),
        AssetsByOwnerStrategy(helius),
    ]
    if simplehash is not None:
        strategies.append(SimpleHashStrategy(simplehash))
    strategies.append(TokenAccountShapeStrategy(helius))
    return strategies


# ── Ladder ────────────────────────────────────────────────────────────────────


async def detect_nfts(
    strategies: Sequence[NFTDetectionStrategy], address: str
) -> NFTResult:
    """Try each strategy in order, one at a time, until one reports success."""
    errors: list[str] = []
    for i, strategy in enumerate(strategies, 1):
        try:
            result = await strategy.attempt(address)
        except Exception as e:  # any failure moves on to the next strategy
            logger.debug("NFT method %d (%s) failed: %s", i, strategy.method, e)
            errors.append(f"{strategy.method}: {e}")
            continue

        if result.success:
            logger.debug("NFT detection succeeded using %s", strategy.method)
            return result
        errors.append(f"{strategy.method}: unsuccessful")

    method = "all_methods_failed" if strategies else "no_methods_configured"
    return NFTResult(
        success=False,
        nft_count=0,
        method=method,
        error="; ".join(errors) or "Could not detect NFTs using any method",
    )
