"""
CyberConnect social graph: profile, likes, essences and subscriptions of a wallet.
"""

from __future__ import annotations

from typing import Any

import httpx

from backend_walletscore.config.env import DEFAULT_CYBERCONNECT_URL
from backend_walletscore.core.exceptions import NoDataError
from backend_walletscore.integrations.http import graphql_query
from backend_walletscore.walletscore_logging import get_logger

logger = get_logger(__name__)

PAGE_SIZE = 50

ADDRESS_QUERY = """
query Address($address: AddressEVM!, $first: Int!) {
  address(address: $address) {
    wallet {
      primaryProfile { handle profileID metadata }
      likes(first: $first) { edges { node { contentID createdAt } } }
      collectedEssences(first: $first) { edges { node { essence { essenceID name symbol } } } }
      subscribings(first: $first) { edges { node { profile { handle profileID } } } }
    }
  }
}
"""


def _nodes(connection: dict[str, Any] | None) -> list[dict[str, Any]]:
    return [edge.get("node") or {} for edge in (connection or {}).get("edges") or []]


class CyberConnectClient:
    def __init__(self, client: httpx.AsyncClient, url: str = DEFAULT_CYBERCONNECT_URL, api_key: str = "") -> None:
        self._client = client
        self.url = url
        self.api_key = api_key

    async def get_data(self, address: str) -> dict[str, Any]:
        headers = {"X-API-KEY": self.api_key} if self.api_key else None
        data = await graphql_query(
            self._client,
            self.url,
            ADDRESS_QUERY,
            {"address": address, "first": PAGE_SIZE},
            provider="cyberconnect",
            headers=headers,
        )
        wallet = ((data.get("address") or {}).get("wallet")) or {}
        result = {
            "profile": wallet.get("primaryProfile"),
            "likes": _nodes(wallet.get("likes")),
            "essences": [n.get("essence") or {} for n in _nodes(wallet.get("collectedEssences"))],
            "subscribings": [n.get("profile") or {} for n in _nodes(wallet.get("subscribings"))],
        }
        if not result["profile"] and not (result["likes"] or result["essences"] or result["subscribings"]):
            raise NoDataError("no CyberConnect activity")
        logger.debug(
            "cyberconnect_data_fetched",
            wallet=address,
            likes=len(result["likes"]),
            essences=len(result["essences"]),
            subscribings=len(result["subscribings"]),
        )
        return result
