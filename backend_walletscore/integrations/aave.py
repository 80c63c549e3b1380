"""
Aave lending account data from the protocol subgraph of each chain.

Returns the wallet's reserves (supplied and borrowed balances). A wallet that
never used Aave, or a chain without a configured subgraph, raises NoDataError.
"""

from __future__ import annotations

from typing import Any

import httpx

from backend_walletscore.chains.descriptors import BlockchainDescriptor
from backend_walletscore.config import env
from backend_walletscore.core.exceptions import NoDataError
from backend_walletscore.integrations.http import graphql_query
from backend_walletscore.walletscore_logging import get_logger

logger = get_logger(__name__)

USER_RESERVES_QUERY = """
query UserReserves($user: String!) {
  userReserves(where: {user: $user}) {
    currentATokenBalance
    currentTotalDebt
    usageAsCollateralEnabledOnUser
    reserve { symbol decimals underlyingAsset }
  }
}
"""


class AaveClient:
    def __init__(self, client: httpx.AsyncClient, subgraph_urls: dict[str, str] | None = None) -> None:
        self._client = client
        self._urls = dict(subgraph_urls or {})

    async def get_user_data(self, address: str, chain: BlockchainDescriptor) -> dict[str, Any]:
        url = self._urls.get(chain.slug) or env.get_subgraph_url("aave", chain.slug)
        if not url:
            raise NoDataError(f"Aave is not configured for {chain.slug}")
        data = await graphql_query(
            self._client, url, USER_RESERVES_QUERY, {"user": address.lower()}, provider="aave"
        )
        reserves = []
        for raw in data.get("userReserves") or []:
            reserve = raw.get("reserve") or {}
            reserves.append(
                {
                    "symbol": reserve.get("symbol") or "",
                    "underlying_asset": (reserve.get("underlyingAsset") or "").lower(),
                    "decimals": reserve.get("decimals"),
                    "a_token_balance": str(raw.get("currentATokenBalance") or "0"),
                    "total_debt": str(raw.get("currentTotalDebt") or "0"),
                    "used_as_collateral": bool(raw.get("usageAsCollateralEnabledOnUser")),
                }
            )
        if not reserves:
            raise NoDataError("wallet has no Aave positions")
        logger.info("aave_data_fetched", wallet=address, chain_id=chain.chain_id, reserves=len(reserves))
        return {"chain_id": chain.chain_id, "reserves": reserves}
