"""
FastAPI application for the wallet score service.

The lifespan creates one shared httpx.AsyncClient, the provider clients built
on it, the token-balance limiter and the SBT signer, and closes the HTTP client
on shutdown. Domain errors and invalid query parameters render as
{"succeeded": false, "error": {...}, "messages": [...]}.

Run: uvicorn backend_walletscore.api_server.app:app --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from backend_walletscore import __version__
from backend_walletscore.api_server.routes import router as score_router
from backend_walletscore.chains.adapter import ChainAdapter, build_chain_adapter
from backend_walletscore.chains.address import EnsResolver
from backend_walletscore.config import Settings, get_settings
from backend_walletscore.core.exceptions import WalletScoreError
from backend_walletscore.database.scoring_records import init_db
from backend_walletscore.integrations.aave import AaveClient
from backend_walletscore.integrations.cyberconnect import CyberConnectClient
from backend_walletscore.integrations.dex import DexSwapPairClient
from backend_walletscore.integrations.http import FixedDelayLimiter
from backend_walletscore.integrations.pricing import PriceOracle
from backend_walletscore.integrations.risk_lists import ChainanalysisClient, GreysafeClient, HapiClient
from backend_walletscore.integrations.snapshot import SnapshotClient
from backend_walletscore.integrations.token_balances import TokenBalanceClient
from backend_walletscore.scoring.orchestrator import ScoringClients, WalletScoringService
from backend_walletscore.signing.sbt_signer import SbtSigner
from backend_walletscore.walletscore_logging import get_logger

logger = get_logger(__name__)


def build_scoring_clients(client: httpx.AsyncClient, settings: Settings) -> ScoringClients:
    prices = PriceOracle(
        client,
        defillama_url=settings.defillama_url,
        coinbase_url=settings.coinbase_url,
        cache_ttl_sec=settings.price_cache_ttl_sec,
    )
    return ScoringClients(
        prices=prices,
        token_balances=TokenBalanceClient(prices, FixedDelayLimiter(settings.token_balance_delay_sec)),
        dex=DexSwapPairClient(client),
        aave=AaveClient(client),
        snapshot=SnapshotClient(client, settings.snapshot_url),
        cyberconnect=CyberConnectClient(client, settings.cyberconnect_url, settings.cyberconnect_api_key),
        greysafe=GreysafeClient(client, settings.greysafe_url),
        chainanalysis=ChainanalysisClient(client, settings.chainalysis_url, settings.chainalysis_api_key),
        hapi=HapiClient(client, settings.hapi_url, settings.hapi_api_key),
        ens=EnsResolver(settings.eth_rpc_url, settings.request_timeout_sec),
    )


def make_chain_factory(client: httpx.AsyncClient, settings: Settings):
    adapters: dict[str, ChainAdapter] = {}

    def factory(slug: str) -> ChainAdapter:
        key = (slug or "").strip().lower()
        if key not in adapters:
            adapters[key] = build_chain_adapter(key, client, page_delay_sec=settings.page_delay_sec)
        return adapters[key]

    return factory


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and shared clients; close the HTTP client on shutdown."""
    settings = get_settings()
    init_db()
    client = httpx.AsyncClient(timeout=settings.request_timeout_sec)
    app.state.http_client = client
    app.state.chain_factory = make_chain_factory(client, settings)
    app.state.scoring_service = WalletScoringService(
        build_scoring_clients(client, settings),
        SbtSigner(settings.signer_private_key, settings.signature_deadline_sec),
    )
    logger.info("api_started", version=__version__)
    try:
        yield
    finally:
        await client.aclose()
        logger.info("api_stopped")


def _error_body(code: str, message: str, messages: list[str]) -> dict[str, Any]:
    return {"succeeded": False, "error": {"code": code, "message": message}, "messages": messages}


async def wallet_score_error_handler(request: Request, exc: WalletScoreError) -> JSONResponse:
    logger.info("api_request_failed", path=request.url.path, code=exc.code, status=exc.status_code)
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.code, exc.message, exc.messages + [exc.message]),
    )


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        messages.append(f"{location}: {error.get('msg', 'invalid value')}")
    logger.info("api_request_invalid", path=request.url.path, errors=len(messages))
    return JSONResponse(
        status_code=422,
        content=_error_body("INVALID_REQUEST", "Request parameters are invalid", messages),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("api_unhandled_error", path=request.url.path, error=type(exc).__name__)
    return JSONResponse(
        status_code=500,
        content=_error_body("INTERNAL_ERROR", "Internal server error", ["Internal server error"]),
    )


def create_app() -> FastAPI:
    application = FastAPI(
        title="WalletScore API",
        description="Multi-chain EVM wallet scoring with signed soulbound-token attestations",
        version=__version__,
        lifespan=lifespan,
    )
    application.add_exception_handler(WalletScoreError, wallet_score_error_handler)
    application.add_exception_handler(RequestValidationError, request_validation_error_handler)
    application.add_exception_handler(Exception, unhandled_error_handler)
    application.include_router(score_router)

    @application.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    return application


app = create_app()
