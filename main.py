import io
import logging
import os
import time
from contextlib import asynccontextmanager
from typing import Literal

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, StreamingResponse
from fastmcp import FastMCP

load_dotenv()

from exports import to_csv, to_share_text, to_text
from models import AnalyzeRequest, AnalyzeResponse, HealthResponse, PersonaInfo
from personas import PERSONAS, get_persona
from utils import InvalidWalletAddress
from wallet_analyzer import WalletAnalyzer, build_analyzer


logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("persona")

VERSION = "1.0.0"


# ── MCP Server ────────────────────────────────────────────────────────────────

mcp = FastMCP(
    name="Solana Philosopher Persona",
    instructions=(
        "Classifies a Solana wallet into one of five philosopher personas "
        "(Diogenes, Schopenhauer, Camus, Marx, Nietzsche) from its token, NFT and "
        "transaction activity. Falls back to a deterministic profile when live "
        "data is unavailable."
    ),
)


@mcp.tool()
async def analyze_wallet_mcp(address: str, demo: bool = False) -> dict:
    """
    Determine the philosopher persona of a Solana wallet.

    Args:
        address: Public Solana wallet address (Base58).
        demo:    Use canned demo profiles instead of live data.

    Returns:
        Persona summary with activity statistics and the data source used.
    """
    result = await get_analyzer().analyze(address, demo=demo)
    return {
        **result.to_summary(),
        "persona": get_persona(result.persona_id).model_dump(mode="json"),
    }


# ── Lifespan ──────────────────────────────────────────────────────────────────

analyzer: WalletAnalyzer | None = None


def get_analyzer() -> WalletAnalyzer:
    global analyzer
    if analyzer is None:
        analyzer = build_analyzer()
    return analyzer


@asynccontextmanager
async def lifespan(app: FastAPI):
    get_analyzer()
    logger.info("Solana persona analyzer ready (live data: %s)", analyzer.live)
    yield
    logger.info("Shutting down.")


# ── App ───────────────────────────────────────────────────────────────────────

app = FastAPI(
    title="Solana Philosopher Persona",
    description=(
        "Classifies a Solana wallet into a philosopher persona by aggregating "
        "heuristics over its token balances, NFTs and transaction history.\n\n"
        "Exposes **REST** (`/analyze`) and **MCP** (`/mcp`) endpoints."
    ),
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.mount("/mcp", mcp.http_app())


# ── Info ──────────────────────────────────────────────────────────────────────


@app.get("/", tags=["Info"])
def root(request: Request):
    base = str(request.base_url).rstrip("/")
    return {
        "name": "Solana Philosopher Persona",
        "version": VERSION,
        "personas": [p.title for p in PERSONAS.values()],
        "endpoints": {
            "docs": f"{base}/docs",
            "health": f"{base}/health",
            "personas": f"{base}/personas",
            "analyze": f"{base}/analyze",
            "mcp": f"{base}/mcp",
        },
    }


@app.get("/health", response_model=HealthResponse, tags=["Info"])
async def health():
    current = get_analyzer()
    reachable = None
    if current.acquirer is not None:
        reachable = await current.acquirer.helius.test_connection()
    return HealthResponse(
        status="ok", version=VERSION, live_data=current.live, helius_reachable=reachable
    )


@app.get("/personas", response_model=list[PersonaInfo], tags=["Info"])
def personas():
    return list(PERSONAS.values())


# ── Core: Analyze Wallet ──────────────────────────────────────────────────────


@app.post("/analyze", tags=["Wallet"])
async def analyze_wallet(
    req: AnalyzeRequest,
    format: Literal["json", "csv", "text", "share"] = Query(
        default="json",
        description="Output format: json (default) | csv | text | share",
    ),
):
    """
    Determine the philosopher persona of a Solana wallet.

    Balances, NFTs and transaction history are fetched concurrently; each
    source degrades independently. When no live data can be obtained the
    persona is derived from a deterministic profile and tagged
    `smart_fallback`. Addresses containing `Demo` (or `demo: true`) skip
    the network entirely.
    """
    start = time.time()

    try:
        result = await get_analyzer().analyze(req.address, demo=req.demo)
    except InvalidWalletAddress as e:
        raise HTTPException(status_code=422, detail=str(e))

    elapsed = int((time.time() - start) * 1000)

    if format == "csv":
        short = result.wallet_address[:12]
        return StreamingResponse(
            content=io.BytesIO(to_csv(result)),
            media_type="text/csv",
            headers={
                "Content-Disposition": f'attachment; filename="persona_{short}.csv"'
            },
        )

    if format == "text":
        return PlainTextResponse(to_text(result))

    if format == "share":
        return PlainTextResponse(to_share_text(result))

    return AnalyzeResponse(
        success=True,
        address=result.wallet_address,
        result=result.to_summary(),
        persona=get_persona(result.persona_id),
        performance=result.performance,
        source_status=result.source_status,
        processing_time_ms=elapsed,
    )


# ── Entry point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("APP_ENV", "development") == "development",
    )
