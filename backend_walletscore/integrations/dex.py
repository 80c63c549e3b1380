"""
DEX swap-pair discovery over a Uniswap-v2-style subgraph (one URL per chain).

For the wallet's tokens, finds pairs where the token is token0 or token1.
Tokens without any pair are dropped; nothing found raises NoDataError.
"""

from __future__ import annotations

import httpx

from backend_walletscore.chains.descriptors import BlockchainDescriptor
from backend_walletscore.config import env
from backend_walletscore.core.exceptions import NoDataError
from backend_walletscore.integrations.http import graphql_query
from backend_walletscore.scoring.schemas import DexSwapPair, DexTokenSwapPairs
from backend_walletscore.walletscore_logging import get_logger

logger = get_logger(__name__)

PAIRS_QUERY = """
query Pairs($tokens: [String!]!, $first: Int!, $skip: Int!) {
  as0: pairs(first: $first, skip: $skip, where: {token0_in: $tokens}) {
    id
    token0 { id symbol }
    token1 { id symbol }
  }
  as1: pairs(first: $first, skip: $skip, where: {token1_in: $tokens}) {
    id
    token0 { id symbol }
    token1 { id symbol }
  }
}
"""


class DexSwapPairClient:
    def __init__(self, client: httpx.AsyncClient, subgraph_urls: dict[str, str] | None = None) -> None:
        self._client = client
        self._urls = dict(subgraph_urls or {})

    def subgraph_url(self, chain: BlockchainDescriptor) -> str:
        return self._urls.get(chain.slug) or env.get_subgraph_url("dex", chain.slug)

    async def get_swap_pairs(
        self,
        chain: BlockchainDescriptor,
        contracts: list[str],
        *,
        first: int = 100,
        skip: int = 0,
    ) -> list[DexTokenSwapPairs]:
        url = self.subgraph_url(chain)
        if not url or not contracts:
            raise NoDataError(f"no swap-pair source for {chain.slug}")
        tokens = sorted({c.lower() for c in contracts})
        data = await graphql_query(
            self._client,
            url,
            PAIRS_QUERY,
            {"tokens": tokens, "first": first, "skip": skip},
            provider="dex_subgraph",
        )
        by_token: dict[str, list[DexSwapPair]] = {t: [] for t in tokens}
        for raw in (data.get("as0") or []) + (data.get("as1") or []):
            token0 = raw.get("token0") or {}
            token1 = raw.get("token1") or {}
            pair = DexSwapPair(
                pair_id=str(raw.get("id") or ""),
                dex="uniswap-v2",
                token0=str(token0.get("id") or "").lower(),
                token1=str(token1.get("id") or "").lower(),
                token0_symbol=str(token0.get("symbol") or ""),
                token1_symbol=str(token1.get("symbol") or ""),
            )
            for side in (pair.token0, pair.token1):
                if side in by_token and all(p.pair_id != pair.pair_id for p in by_token[side]):
                    by_token[side].append(pair)
        result = [
            DexTokenSwapPairs(token_id=chain.token_id(token), pairs=pairs)
            for token, pairs in by_token.items()
            if pairs
        ]
        if not result:
            raise NoDataError("no swap pairs for wallet tokens")
        logger.info("swap_pairs_fetched", chain_id=chain.chain_id, tokens=len(result))
        return result
