import logging
import os
from typing import Any, Optional

import httpx

from models import (
    EnhancedTransaction,
    Instruction,
    NativeTransfer,
    NFTAsset,
    TokenBalance,
    TokenTransfer,
)
from utils import lamports_to_sol, redact_key


logger = logging.getLogger(__name__)


# ── Endpoints ─────────────────────────────────────────────────────────────────

HELIUS_API_BASE = "https://api.helius.xyz/v0"
HELIUS_RPC_TEMPLATE = "https://mainnet.helius-rpc.com/?api-key={api_key}"
PUBLIC_RPC_URL = "https://api.mainnet-beta.solana.com"
SIMPLEHASH_API_BASE = "https://api.simplehash.com/api/v0"

TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"

DEFAULT_TIMEOUT = 30.0

# DAS interfaces that represent a real NFT
_NFT_INTERFACES = {"V1_NFT", "PROGRAMMABLE_NFT"}


class ProviderError(Exception):
    """A provider answered, but not with something we can use."""



# ── Payload Parsing ───────────────────────────────────────────────────────────


def _parse_token_balance(raw: dict) -> TokenBalance:
    decimals = int(raw.get("decimals") or 0)
    amount = raw.get("amount") or 0
    # Helius reports raw base units; convert to UI amount
    ui_amount = int(amount) / (10 ** decimals) if decimals else float(amount)

    usd_value = raw.get("usdValue")
    if usd_value is None:
        usd_value = (raw.get("price_info") or {}).get("total_price", 0)

    return TokenBalance(
        mint=raw.get("mint") or raw.get("address") or "",
        amount=ui_amount,
        decimals=decimals,
        usd_value=float(usd_value or 0),
        symbol=raw.get("symbol"),
    )


def _parse_das_asset(item: dict) -> NFTAsset:
    content = item.get("content") or {}
    metadata = content.get("metadata") or {}
    files = content.get("files") or []
    return NFTAsset(
        mint=item.get("id") or item.get("mint") or "",
        name=metadata.get("name") or "Unknown NFT",
        symbol=metadata.get("symbol") or "",
        image=files[0].get("uri", "") if files else "",
    )


def _is_das_nft(item: dict) -> bool:
    if item.get("interface") in _NFT_INTERFACES:
        return True
    supply = item.get("supply") or {}
    return supply.get("print_max_supply") == 0


def _parse_enhanced_transaction(raw: dict) -> EnhancedTransaction:
    return EnhancedTransaction(
        signature=raw.get("signature", ""),
        type=raw.get("type"),
        description=raw.get("description"),
        timestamp=raw.get("timestamp"),
        fee=raw.get("fee"),
        instructions=[
            Instruction(
                program_id=ix.get("programId"),
                accounts=ix.get("accounts") or [],
            )
            for ix in raw.get("instructions") or []
        ],
        token_transfers=[
            TokenTransfer(
                mint=t.get("mint"),
                token_amount=float(t.get("tokenAmount") or 0),
                from_user_account=t.get("fromUserAccount"),
                to_user_account=t.get("toUserAccount"),
            )
            for t in raw.get("tokenTransfers") or []
        ],
        native_transfers=[
            NativeTransfer(
                amount=int(t.get("amount") or 0),
                from_user_account=t.get("fromUserAccount"),
                to_user_account=t.get("toUserAccount"),
            )
            for t in raw.get("nativeTransfers") or []
        ],
    )


# ── Helius (REST + JSON-RPC) ──────────────────────────────────────────────────


class HeliusClient:
    """Helius REST API for balances/NFTs/history plus a Solana JSON-RPC endpoint.

    A fresh ``httpx.AsyncClient`` is opened per call; ``transport`` lets tests
    swap the network for an ``httpx.MockTransport``.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = HELIUS_API_BASE,
        rpc_url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key or None
        self.base_url = base_url.rstrip("/")
        if rpc_url:
            self.rpc_url = rpc_url
        elif self.api_key:
            self.rpc_url = HELIUS_RPC_TEMPLATE.format(api_key=self.api_key)
        else:
            self.rpc_url = PUBLIC_RPC_URL
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_env(cls, transport: Optional[httpx.AsyncBaseTransport] = None) -> "HeliusClient":
        client = cls(
            api_key=os.getenv("HELIUS_API_KEY", ""),
            base_url=os.getenv("HELIUS_API_BASE", HELIUS_API_BASE),
            rpc_url=os.getenv("SOLANA_RPC_URL") or None,
            transport=transport,
        )
        if client.has_credentials:
            logger.info("Helius API configured with key %s", redact_key(client.api_key))
        else:
            logger.warning("No HELIUS_API_KEY found, analyses will use fallback mode")
        return client

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=self.timeout)

    # ── REST helpers ───────────────────────────────────────────────────────

    async def _get(self, path: str, params: Optional[dict] = None) -> Any:
        query = dict(params or {})
        if self.api_key:
            query["api-key"] = self.api_key
        async with self._client() as client:
            resp = await client.get(f"{self.base_url}{path}", params=query)
            resp.raise_for_status()
            return resp.json()

    async def rpc(self, method: str, params: Any) -> Any:
        async with self._client() as client:
            resp = await client.post(
                self.rpc_url,
                json={"jsonrpc": "2.0", "id": "persona", "method": method, "params": params},
            )
            resp.raise_for_status()
            data = resp.json()

        if data.get("error"):
            raise ProviderError(f"RPC {method} failed: {data['error']}")
        if "result" not in data:
            raise ProviderError(f"RPC {method} returned no result")
        return data["result"]

    # ── Token Balances ─────────────────────────────────────────────────────

    async def get_token_balances(self, address: str) -> tuple[list[TokenBalance], float]:
        """Return (token balances, native SOL balance)."""
        data = await self._get(f"/addresses/{address}/balances")
        tokens = [_parse_token_balance(t) for t in data.get("tokens") or []]
        native = lamports_to_sol(data.get("nativeBalance") or 0)
        return tokens, native

    # ── NFTs ───────────────────────────────────────────────────────────────

    async def get_nfts(self, address: str) -> list[NFTAsset]:
        data = await self._get(f"/addresses/{address}/nfts")
        items = data.get("nfts", []) if isinstance(data, dict) else data
        if not isinstance(items, list):
            raise ProviderError("Unexpected NFT payload shape")
        return [_parse_das_asset(item) for item in items]

    async def get_assets_by_owner(self, address: str, limit: int = 1000) -> list[NFTAsset]:
        result = await self.rpc(
            "getAssetsByOwner",
            {"ownerAddress": address, "page": 1, "limit": limit},
        )
        items = (result or {}).get("items")
        if items is None:
            raise ProviderError("Invalid getAssetsByOwner response format")
        return [_parse_das_asset(item) for item in items if _is_das_nft(item)]

    async def get_token_accounts_by_owner(self, address: str) -> list[TokenBalance]:
        result = await self.rpc(
            "getTokenAccountsByOwner",
            [address, {"programId": TOKEN_PROGRAM_ID}, {"encoding": "jsonParsed"}],
        )
        accounts: list[TokenBalance] = []
        for entry in (result or {}).get("value", []):
            info = entry["account"]["data"]["parsed"]["info"]
            token_amount = info.get("tokenAmount", {})
            decimals = int(token_amount.get("decimals", 0))
            raw_amount = int(token_amount.get("amount", "0"))
            accounts.append(TokenBalance(
                mint=info.get("mint", ""),
                amount=raw_amount / (10 ** decimals) if decimals else float(raw_amount),
                decimals=decimals,
            ))
        return accounts

    # ── Transaction History ────────────────────────────────────────────────

    async def get_transaction_history(
        self, address: str, limit: int = 100
    ) -> list[EnhancedTransaction]:
        data = await self._get(f"/addresses/{address}/transactions", {"limit": limit})
        if not isinstance(data, list):
            raise ProviderError("Unexpected transaction history payload shape")
        return [_parse_enhanced_transaction(tx) for tx in data]

    async def get_signatures_for_address(self, address: str, limit: int = 1000) -> list[dict]:
        result = await self.rpc("getSignaturesForAddress", [address, {"limit": limit}])
        return result or []

    # ── Health ─────────────────────────────────────────────────────────────

    async def test_connection(self) -> bool:
        if not self.api_key:
            return False
        try:
            await self.rpc("getHealth", [])
        except (httpx.HTTPError, ProviderError, ValueError) as e:
            logger.warning("Helius connection test failed: %s", e)
            return False
        return True


# ── SimpleHash (third-party NFT indexer) ──────────────────────────────────────


class SimpleHashClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = SIMPLEHASH_API_BASE,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key or None
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_env(cls, transport: Optional[httpx.AsyncBaseTransport] = None) -> "SimpleHashClient":
        return cls(api_key=os.getenv("SIMPLEHASH_API_KEY", ""), transport=transport)

    async def get_nfts(self, address: str, limit: int = 50) -> list[NFTAsset]:
        headers = {"accept": "application/json"}
        if self.api_key:
            headers["X-API-KEY"] = self.api_key

        async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
            resp = await client.get(
                f"{self.base_url}/nfts/owners",
                params={"chains": "solana", "wallet_addresses": address, "limit": limit},
                headers=headers,
            )
            resp.raise_for_status()
            data = resp.json()

        return [
            NFTAsset(
                mint=nft.get("nft_id", ""),
                name=nft.get("name") or "Unknown",
                collection=(nft.get("collection") or {}).get("name") or "",
                image=(nft.get("previews") or {}).get("image_medium_url") or "",
            )
            for nft in data.get("nfts") or []
        ]
