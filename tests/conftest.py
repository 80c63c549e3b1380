"""
Pytest fixtures for WalletScore tests. Temporary SQLite DB for scoring records,
httpx.MockTransport-backed explorer adapters, and a signer with a throwaway key.
"""

from __future__ import annotations

import dataclasses
from typing import Any, Callable

import httpx
import pytest

# EIP-55 reference addresses
VALID_WALLET = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
SBT_CONTRACT = "0xfB6916095ca1df60bB79Ce92cE3Ea74c37c5d359"
TEST_PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"

NO_TRANSACTIONS = {"status": "0", "message": "No transactions found", "result": []}


@pytest.fixture
def scoring_db(tmp_path, monkeypatch):
    """
    Point scoring records at a temporary SQLite DB and create tables.
    Unset DATABASE_URL so SQLite is used.
    """
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("WALLETSCORE_DB_URL", raising=False)
    monkeypatch.setenv("WALLETSCORE_DB_PATH", str(tmp_path / "walletscore.db"))

    import backend_walletscore.database.scoring_records as db

    db.reset_engine_for_test()
    db.init_db()
    yield db
    db.reset_engine_for_test()


def _explorer_handler(
    results: dict[str, Any] | None = None,
    balance: str = "0",
    token_balance: str = "0",
    calls: list[httpx.Request] | None = None,
) -> Callable[[httpx.Request], httpx.Response]:
    """Etherscan-style handler: `results` maps action -> list of items (missing -> no transactions)."""
    results = results or {}

    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        action = request.url.params.get("action")
        if action == "balance":
            return httpx.Response(200, json={"status": "1", "message": "OK", "result": balance})
        if action == "tokenbalance":
            return httpx.Response(200, json={"status": "1", "message": "OK", "result": token_balance})
        items = results.get(action) or []
        if not items:
            return httpx.Response(200, json=NO_TRANSACTIONS)
        return httpx.Response(200, json={"status": "1", "message": "OK", "result": items})

    return handler


@pytest.fixture
def explorer_handler():
    """Factory for Etherscan-style MockTransport handlers."""
    return _explorer_handler


@pytest.fixture
def make_adapter():
    """Factory: ChainAdapter for a chain slug whose explorer is served by `handler`."""
    from backend_walletscore.chains.adapter import ChainAdapter
    from backend_walletscore.chains.descriptors import build_descriptor
    from backend_walletscore.chains.explorer_client import ExplorerClient

    def factory(handler, slug: str = "ethereum", contracts: dict[str, str] | None = None) -> ChainAdapter:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        descriptor = build_descriptor(slug)
        if contracts is None:
            contracts = {"finance": SBT_CONTRACT, "token": SBT_CONTRACT}
        descriptor = dataclasses.replace(descriptor, sbt_contract_addresses=contracts)
        explorer = ExplorerClient(client, "https://explorer.test/api", "key", page_delay_sec=0)
        return ChainAdapter(descriptor=descriptor, explorer=explorer)

    return factory


@pytest.fixture
def signer():
    from backend_walletscore.signing.sbt_signer import SbtSigner

    return SbtSigner(TEST_PRIVATE_KEY, deadline_sec=600)
