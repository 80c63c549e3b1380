"""
Tests for provider clients over httpx.MockTransport: pricing cache, token balances,
swap pairs, Aave, Snapshot and the risk lists. Documented empty answers become
NoDataError; malformed or failing responses become UpstreamUnavailableError.
"""

import asyncio
import json
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

WALLET = "0x5aaeb6053f3e94c9b9a09f33669435e7ef1beaed"


def _http(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_defillama_prices_are_cached():
    from backend_walletscore.integrations.pricing import PriceOracle

    calls = []

    def handler(request):
        calls.append(request)
        assert request.url.params["searchWidth"] == "4h"
        return httpx.Response(200, json={"coins": {"coingecko:matic-network": {"price": 0.71}}})

    oracle = PriceOracle(_http(handler), defillama_url="https://llama.test", cache_ttl_sec=60)

    async def run():
        first = await oracle.get_prices(["coingecko:matic-network", "polygon:0xunknown"])
        second = await oracle.get_prices(["coingecko:matic-network"])
        return first, second

    first, second = asyncio.run(run())
    assert first["coingecko:matic-network"] == Decimal("0.71")
    assert first["polygon:0xunknown"] == Decimal(0)
    assert second["coingecko:matic-network"] == Decimal("0.71")
    assert len(calls) == 1


def test_storing_a_price_drops_expired_entries(monkeypatch):
    from types import SimpleNamespace

    from backend_walletscore.integrations import pricing

    clock = SimpleNamespace(now=1000.0)
    monkeypatch.setattr(pricing, "time", SimpleNamespace(monotonic=lambda: clock.now))
    oracle = pricing.PriceOracle(MagicMock(), cache_ttl_sec=60)

    oracle._store("ethereum:0xaaa", Decimal("1"))
    oracle._store("ethereum:0xbbb", Decimal("2"))
    clock.now += 61
    oracle._store("ethereum:0xccc", Decimal("3"))

    assert set(oracle._cache) == {"ethereum:0xccc"}
    assert oracle._cached("ethereum:0xccc") == Decimal("3")


def test_ethereum_native_price_uses_coinbase_spot():
    from backend_walletscore.chains.descriptors import build_descriptor
    from backend_walletscore.integrations.pricing import PriceOracle

    def handler(request):
        assert request.url.path == "/v2/prices/ETH-USD/spot"
        return httpx.Response(200, json={"data": {"amount": "3150.25", "currency": "USD"}})

    oracle = PriceOracle(_http(handler), coinbase_url="https://coinbase.test")
    price = asyncio.run(oracle.get_native_price(build_descriptor("ethereum")))
    assert price == Decimal("3150.25")


def test_token_balances_keep_positive_holdings(make_adapter):
    from backend_walletscore.integrations.http import FixedDelayLimiter
    from backend_walletscore.integrations.token_balances import TokenBalanceClient

    balances = {"0xusdc": "2500000", "0xempty": "0"}

    def handler(request):
        result = balances[request.url.params["contractaddress"]]
        return httpx.Response(200, json={"status": "1", "message": "OK", "result": result})

    adapter = make_adapter(handler)
    prices = MagicMock()
    prices.get_prices = AsyncMock(return_value={"ethereum:0xusdc": Decimal("1")})
    client = TokenBalanceClient(prices, FixedDelayLimiter(0))

    result = asyncio.run(client.get_token_balances(adapter, WALLET, {"0xusdc": ("USDC", 6), "0xempty": ("NOPE", 18)}))
    assert len(result) == 1
    assert result[0].token_id == "ethereum:0xusdc"
    assert result[0].symbol == "USDC"
    assert result[0].balance == Decimal("2.5")
    assert result[0].usd_value == Decimal("2.5")


def test_token_balances_none_held_is_no_data(make_adapter, explorer_handler):
    from backend_walletscore.core.exceptions import NoDataError
    from backend_walletscore.integrations.http import FixedDelayLimiter
    from backend_walletscore.integrations.token_balances import TokenBalanceClient

    adapter = make_adapter(explorer_handler(token_balance="0"))
    client = TokenBalanceClient(MagicMock(), FixedDelayLimiter(0))
    with pytest.raises(NoDataError):
        asyncio.run(client.get_token_balances(adapter, WALLET, {"0xusdc": ("USDC", 6)}))


def test_limiter_serialises_calls():
    from backend_walletscore.integrations.http import FixedDelayLimiter

    limiter = FixedDelayLimiter(0)
    active = []
    peak = []

    async def work():
        async with limiter:
            active.append(1)
            peak.append(len(active))
            await asyncio.sleep(0)
            active.pop()

    async def run():
        await asyncio.gather(*(work() for _ in range(5)))

    asyncio.run(run())
    assert max(peak) == 1


def test_swap_pairs_grouped_per_token():
    from backend_walletscore.chains.descriptors import build_descriptor
    from backend_walletscore.integrations.dex import DexSwapPairClient

    def handler(request):
        body = json.loads(request.content)
        assert body["variables"]["tokens"] == ["0xaaa", "0xbbb"]
        assert body["variables"]["first"] == 10
        pair = {"id": "0xpair", "token0": {"id": "0xAAA", "symbol": "AAA"}, "token1": {"id": "0xweth", "symbol": "WETH"}}
        return httpx.Response(200, json={"data": {"as0": [pair], "as1": []}})

    client = DexSwapPairClient(_http(handler), {"ethereum": "https://subgraph.test"})
    result = asyncio.run(client.get_swap_pairs(build_descriptor("ethereum"), ["0xBBB", "0xaaa"], first=10))
    assert len(result) == 1
    assert result[0].token_id == "ethereum:0xaaa"
    assert result[0].pairs[0].token1_symbol == "WETH"


def test_aave_without_positions_is_no_data():
    from backend_walletscore.chains.descriptors import build_descriptor
    from backend_walletscore.core.exceptions import NoDataError
    from backend_walletscore.integrations.aave import AaveClient

    def handler(request):
        return httpx.Response(200, json={"data": {"userReserves": []}})

    client = AaveClient(_http(handler), {"ethereum": "https://aave.test"})
    with pytest.raises(NoDataError):
        asyncio.run(client.get_user_data(WALLET, build_descriptor("ethereum")))


def test_graphql_errors_are_upstream_failures():
    from backend_walletscore.core.exceptions import UpstreamUnavailableError
    from backend_walletscore.integrations.snapshot import SnapshotClient

    def handler(request):
        return httpx.Response(200, json={"errors": [{"message": "boom"}]})

    with pytest.raises(UpstreamUnavailableError):
        asyncio.run(SnapshotClient(_http(handler), "https://snapshot.test/graphql").get_votes(WALLET))


def test_snapshot_votes_parsed():
    from backend_walletscore.integrations.snapshot import SnapshotClient

    def handler(request):
        vote = {"id": "v1", "created": 1, "choice": 1, "space": {"id": "ens.eth"}, "proposal": {"id": "p1", "title": "T"}}
        return httpx.Response(200, json={"data": {"votes": [vote]}})

    votes = asyncio.run(SnapshotClient(_http(handler), "https://snapshot.test/graphql").get_votes(WALLET))
    assert votes == [
        {"id": "v1", "created": 1, "choice": 1, "space": "ens.eth", "proposal_id": "p1", "proposal_title": "T"}
    ]


def test_risk_list_404_is_no_data():
    from backend_walletscore.core.exceptions import NoDataError
    from backend_walletscore.integrations.risk_lists import ChainanalysisClient, GreysafeClient

    def handler(request):
        return httpx.Response(404, json={"message": "not found"})

    with pytest.raises(NoDataError):
        asyncio.run(GreysafeClient(_http(handler), "https://greysafe.test").get_reports(WALLET))
    with pytest.raises(NoDataError):
        asyncio.run(ChainanalysisClient(_http(handler), "https://ca.test", "k").get_identifications(WALLET))


def test_chainanalysis_identifications():
    from backend_walletscore.integrations.risk_lists import ChainanalysisClient

    def handler(request):
        assert request.headers["X-API-Key"] == "secret"
        return httpx.Response(200, json={"identifications": [{"category": "sanctions", "name": "SANCTIONS: OFAC"}]})

    found = asyncio.run(ChainanalysisClient(_http(handler), "https://ca.test", "secret").get_identifications(WALLET))
    assert found[0]["category"] == "sanctions"


def test_hapi_risk_score():
    from backend_walletscore.chains.descriptors import build_descriptor
    from backend_walletscore.core.exceptions import UpstreamUnavailableError
    from backend_walletscore.integrations.risk_lists import HapiClient

    def good(request):
        assert request.url.params["network"] == "polygon"
        return httpx.Response(200, json={"data": {"risk": "8", "category": "Scam"}})

    def malformed(request):
        return httpx.Response(200, json={"risk": "high"})

    polygon = build_descriptor("polygon")
    score = asyncio.run(HapiClient(_http(good), "https://hapi.test").get_risk_score(WALLET, polygon))
    assert score == {"network": "polygon", "risk": 8, "category": "Scam"}
    with pytest.raises(UpstreamUnavailableError):
        asyncio.run(HapiClient(_http(malformed), "https://hapi.test").get_risk_score(WALLET, polygon))


def test_provider_5xx_is_upstream_failure():
    from backend_walletscore.core.exceptions import UpstreamUnavailableError
    from backend_walletscore.integrations.risk_lists import GreysafeClient

    def handler(request):
        return httpx.Response(503)

    with pytest.raises(UpstreamUnavailableError):
        asyncio.run(GreysafeClient(_http(handler), "https://greysafe.test").get_reports(WALLET))
