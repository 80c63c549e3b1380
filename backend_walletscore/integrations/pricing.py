"""
Price oracle: USD prices from DefiLlama, with Coinbase spot for ETH.

DefiLlama ids look like "coingecko:ethereum" or "polygon:0xabc...". Prices are
cached in-process for PRICE_CACHE_TTL_SEC and DefiLlama is asked for quotes no
older than SEARCH_WIDTH. A missing quote is logged and priced at 0; transport
or HTTP failures raise UpstreamUnavailableError (pricing is required).
"""

from __future__ import annotations

import time
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

import httpx

from backend_walletscore.chains.descriptors import BlockchainDescriptor
from backend_walletscore.config.env import DEFAULT_COINBASE_URL, DEFAULT_DEFILLAMA_URL
from backend_walletscore.core.exceptions import UpstreamUnavailableError
from backend_walletscore.integrations.http import request_json
from backend_walletscore.walletscore_logging import get_logger

logger = get_logger(__name__)

SEARCH_WIDTH = "4h"
DEFAULT_CACHE_TTL_SEC = 300.0
# DefiLlama accepts long id lists but URLs have practical limits
MAX_IDS_PER_CALL = 50


def _to_decimal(raw: Any) -> Decimal | None:
    try:
        return Decimal(str(raw))
    except (InvalidOperation, ValueError, TypeError):
        return None


class PriceOracle:
    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        defillama_url: str = DEFAULT_DEFILLAMA_URL,
        coinbase_url: str = DEFAULT_COINBASE_URL,
        cache_ttl_sec: float = DEFAULT_CACHE_TTL_SEC,
    ) -> None:
        self._client = client
        self.defillama_url = defillama_url.rstrip("/")
        self.coinbase_url = coinbase_url.rstrip("/")
        self.cache_ttl_sec = cache_ttl_sec
        self._cache: dict[str, tuple[float, Decimal]] = {}

    def _cached(self, token_id: str) -> Decimal | None:
        hit = self._cache.get(token_id)
        if hit is None:
            return None
        stored_at, price = hit
        if time.monotonic() - stored_at > self.cache_ttl_sec:
            self._cache.pop(token_id, None)
            return None
        return price

    def _store(self, token_id: str, price: Decimal) -> None:
        now = time.monotonic()
        expired = [k for k, (stored_at, _) in self._cache.items() if now - stored_at > self.cache_ttl_sec]
        for key in expired:
            del self._cache[key]
        self._cache[token_id] = (now, price)

    async def get_prices(self, token_ids: Iterable[str]) -> dict[str, Decimal]:
        """Map each id to its USD price; ids DefiLlama does not know map to 0."""
        ids = list(dict.fromkeys(i for i in token_ids if i))
        prices: dict[str, Decimal] = {}
        missing: list[str] = []
        for token_id in ids:
            cached = self._cached(token_id)
            if cached is None:
                missing.append(token_id)
            else:
                prices[token_id] = cached

        for start in range(0, len(missing), MAX_IDS_PER_CALL):
            chunk = missing[start : start + MAX_IDS_PER_CALL]
            body = await request_json(
                self._client,
                "GET",
                f"{self.defillama_url}/prices/current/{','.join(chunk)}",
                provider="defillama",
                params={"searchWidth": SEARCH_WIDTH},
            )
            coins = (body or {}).get("coins") or {}
            for token_id in chunk:
                price = _to_decimal((coins.get(token_id) or {}).get("price"))
                if price is None:
                    logger.warning("price_missing", token_id=token_id)
                    prices[token_id] = Decimal(0)
                    continue
                self._store(token_id, price)
                prices[token_id] = price
        return prices

    async def get_coinbase_spot(self, pair: str) -> Decimal:
        cache_key = f"coinbase:{pair}"
        cached = self._cached(cache_key)
        if cached is not None:
            return cached
        body = await request_json(
            self._client, "GET", f"{self.coinbase_url}/v2/prices/{pair}/spot", provider="coinbase"
        )
        price = _to_decimal(((body or {}).get("data") or {}).get("amount"))
        if price is None:
            raise UpstreamUnavailableError(f"coinbase returned no {pair} spot price", provider="coinbase")
        self._store(cache_key, price)
        return price

    async def get_native_price(self, chain: BlockchainDescriptor) -> Decimal:
        """USD price of the chain's native currency."""
        pair = chain.native_currency.coinbase_pair
        if pair:
            return await self.get_coinbase_spot(pair)
        prices = await self.get_prices([chain.native_price_id])
        return prices.get(chain.native_price_id, Decimal(0))
