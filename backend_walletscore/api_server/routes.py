"""
FastAPI router: wallet score endpoints.

GET /api/v1/chains                                   supported chains
GET /api/v1/{chain}/wallet/{address}/score           compute, record and sign a score
GET /api/v1/{chain}/wallet/{address}/score/history   recorded scores for the wallet

Query flags mirror ScoringOptions. Bodies are {"succeeded", "data", "messages"};
errors are rendered by the handlers in app.py.
"""

from __future__ import annotations

import asyncio
from typing import Any

from fastapi import APIRouter, Depends, Query, Request

from backend_walletscore.chains.address import validate_address
from backend_walletscore.chains.descriptors import ScoreType, all_descriptors, build_descriptor
from backend_walletscore.database.scoring_records import list_scoring_records
from backend_walletscore.scoring.orchestrator import WalletScoringService
from backend_walletscore.scoring.schemas import (
    DEFAULT_SWAP_PAIRS_FIRST,
    MAX_SWAP_PAIRS_FIRST,
    ScoringOptions,
    WalletScoreRequest,
)
from backend_walletscore.walletscore_logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["wallet-score"])


def get_scoring_service(request: Request) -> WalletScoringService:
    """Dependency: service built in the app lifespan."""
    return request.app.state.scoring_service


def get_chain_factory(request: Request):
    """Dependency: slug -> ChainAdapter using the app's shared httpx client."""
    return request.app.state.chain_factory


def _ok(data: Any, messages: list[str] | None = None) -> dict[str, Any]:
    return {"succeeded": True, "data": data, "messages": messages or []}


@router.get("/chains")
def list_chains() -> dict[str, Any]:
    return _ok([d.to_dict() for d in all_descriptors()])


@router.get("/{chain}/wallet/{address}/score")
async def get_wallet_score(
    chain: str,
    address: str,
    score_type: ScoreType = Query(ScoreType.FINANCE),
    token_address: str | None = Query(None, description="ERC-20 contract, required for score_type=token"),
    get_aave_data: bool = Query(False),
    get_snapshot_data: bool = Query(False),
    get_cyberconnect_data: bool = Query(False),
    use_greysafe: bool = Query(False),
    use_chainanalysis: bool = Query(False),
    use_hapi: bool = Query(False),
    use_token_balances: bool = Query(False),
    get_holder_swap_pairs: bool = Query(False),
    swap_pairs_first: int = Query(DEFAULT_SWAP_PAIRS_FIRST, ge=1, le=MAX_SWAP_PAIRS_FIRST),
    swap_pairs_skip: int = Query(0, ge=0),
    service: WalletScoringService = Depends(get_scoring_service),
    chain_factory=Depends(get_chain_factory),
) -> dict[str, Any]:
    adapter = chain_factory(chain)
    scoring_request = WalletScoreRequest(
        address=address,
        score_type=score_type,
        token_address=token_address,
        options=ScoringOptions(
            get_aave_data=get_aave_data,
            get_snapshot_data=get_snapshot_data,
            get_cyberconnect_data=get_cyberconnect_data,
            use_greysafe=use_greysafe,
            use_chainanalysis=use_chainanalysis,
            use_hapi=use_hapi,
            use_token_balances=use_token_balances,
            get_holder_swap_pairs=get_holder_swap_pairs,
            swap_pairs_first=swap_pairs_first,
            swap_pairs_skip=swap_pairs_skip,
        ),
    )
    response = await service.score_wallet(adapter, scoring_request)
    return _ok(response.to_dict(), response.messages)


@router.get("/{chain}/wallet/{address}/score/history")
async def get_wallet_score_history(
    chain: str,
    address: str,
    limit: int = Query(100, ge=1, le=1000),
) -> dict[str, Any]:
    descriptor = build_descriptor(chain)
    wallet = validate_address(address)
    records = await asyncio.to_thread(list_scoring_records, wallet, descriptor.chain_id, limit)
    return _ok(records, [f"Found {len(records)} {descriptor.name} scoring records."])
