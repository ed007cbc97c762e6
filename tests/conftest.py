"""
Pytest fixtures for the persona analyzer. Provider traffic is served by an
httpx.MockTransport so no test touches the network.
"""

from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest

from chain_providers import HeliusClient, SimpleHashClient


WALLET = "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU"

JUPITER = "JUP6LkbZbjS1jKKwapdHNy74zcZ3tLUZoi5QNyVTaV4"
RAYDIUM = "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8"
BONK = "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"
WIF = "EKpQGSJtjMFqKZ9KQanSqYXRcF8fBopzLHYxdM65zcjm"
USDC = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"


class FakeProvider:
    """
    Route table for a MockTransport.

    ``rest`` maps a URL path suffix (e.g. "/balances") and ``rpc`` maps a
    JSON-RPC method name to either ``(status, payload)`` or an exception
    instance to raise. Unrouted requests answer 500.
    """

    def __init__(self, rest: dict | None = None, rpc: dict | None = None):
        self.rest = rest or {}
        self.rpc = rpc or {}
        self.calls: list[str] = []

    def _respond(self, request: httpx.Request, route: Any) -> httpx.Response:
        if route is None:
            return httpx.Response(500, json={"error": "unrouted"}, request=request)
        if isinstance(route, Exception):
            raise route
        status, payload = route
        return httpx.Response(status, json=payload, request=request)

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            method = json.loads(request.content)["method"]
            self.calls.append(f"rpc:{method}")
            return self._respond(request, self.rpc.get(method))

        path = request.url.path
        self.calls.append(f"get:{path}")
        for suffix, route in self.rest.items():
            if path.endswith(suffix):
                return self._respond(request, route)
        return self._respond(request, None)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def make_provider() -> Callable[..., FakeProvider]:
    return FakeProvider


@pytest.fixture
def helius_for() -> Callable[[FakeProvider], HeliusClient]:
    def build(provider: FakeProvider) -> HeliusClient:
        return HeliusClient(
            api_key="test-key",
            rpc_url="https://rpc.test",
            transport=provider.transport,
        )

    return build


@pytest.fixture
def simplehash_for() -> Callable[[FakeProvider], SimpleHashClient]:
    def build(provider: FakeProvider) -> SimpleHashClient:
        return SimpleHashClient(transport=provider.transport)

    return build


def enhanced_tx(
    timestamp: int = 1_700_000_000,
    programs: tuple[str, ...] = (),
    mints: tuple[str, ...] = (),
    lamports: tuple[int, ...] = (),
    fee: int = 5000,
    tx_type: str = "TRANSFER",
) -> dict:
    """Raw enhanced-transaction payload as the history endpoint returns it."""
    return {
        "signature": f"sig-{timestamp}",
        "type": tx_type,
        "description": "",
        "timestamp": timestamp,
        "fee": fee,
        "instructions": [{"programId": p, "accounts": []} for p in programs],
        "tokenTransfers": [{"mint": m, "tokenAmount": 1.0} for m in mints],
        "nativeTransfers": [{"amount": a} for a in lamports],
    }
