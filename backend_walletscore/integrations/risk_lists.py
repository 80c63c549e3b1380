"""
Risk and sanctions lists: Greysafe scam reports, Chainalysis sanctions
identifications and HAPI risk score.

Empty report lists and HTTP 404 ("address unknown") raise NoDataError.
"""

from __future__ import annotations

from typing import Any

import httpx

from backend_walletscore.chains.descriptors import BlockchainDescriptor
from backend_walletscore.config.env import DEFAULT_CHAINALYSIS_URL, DEFAULT_GREYSAFE_URL, DEFAULT_HAPI_URL
from backend_walletscore.core.exceptions import NoDataError, UpstreamUnavailableError
from backend_walletscore.integrations.http import decode_json, request_response
from backend_walletscore.walletscore_logging import get_logger

logger = get_logger(__name__)

# HAPI network names by chain id
HAPI_NETWORKS = {
    1: "ethereum",
    137: "polygon",
    100: "gnosis",
    10: "optimism",
    324: "zksync",
    42161: "arbitrum",
}


async def _get_or_no_data(
    client: httpx.AsyncClient,
    url: str,
    *,
    provider: str,
    **kwargs: Any,
) -> Any:
    response = await request_response(client, "GET", url, provider=provider, allow_status=(404,), **kwargs)
    if response.status_code == 404:
        raise NoDataError(f"{provider} has no record of the address")
    return decode_json(response, provider=provider)


class GreysafeClient:
    def __init__(self, client: httpx.AsyncClient, url: str = DEFAULT_GREYSAFE_URL) -> None:
        self._client = client
        self.url = url.rstrip("/")

    async def get_reports(self, address: str) -> list[dict[str, Any]]:
        body = await _get_or_no_data(
            self._client, f"{self.url}/reports", provider="greysafe", params={"address": address}
        )
        reports = body if isinstance(body, list) else (body or {}).get("reports") or []
        if not reports:
            raise NoDataError("no Greysafe reports")
        logger.info("greysafe_reports_found", wallet=address, reports=len(reports))
        return list(reports)


class ChainanalysisClient:
    def __init__(self, client: httpx.AsyncClient, url: str = DEFAULT_CHAINALYSIS_URL, api_key: str = "") -> None:
        self._client = client
        self.url = url.rstrip("/")
        self.api_key = api_key

    async def get_identifications(self, address: str) -> list[dict[str, Any]]:
        headers = {"X-API-Key": self.api_key, "Accept": "application/json"}
        body = await _get_or_no_data(
            self._client, f"{self.url}/address/{address}", provider="chainalysis", headers=headers
        )
        identifications = (body or {}).get("identifications") or []
        if not identifications:
            raise NoDataError("address is not sanctioned")
        logger.info("chainanalysis_identifications_found", wallet=address, count=len(identifications))
        return list(identifications)


class HapiClient:
    def __init__(self, client: httpx.AsyncClient, url: str = DEFAULT_HAPI_URL, api_key: str = "") -> None:
        self._client = client
        self.url = url.rstrip("/")
        self.api_key = api_key

    async def get_risk_score(self, address: str, chain: BlockchainDescriptor) -> dict[str, Any]:
        network = HAPI_NETWORKS.get(chain.chain_id)
        if not network:
            raise NoDataError(f"HAPI does not cover {chain.slug}")
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else None
        body = await _get_or_no_data(
            self._client,
            f"{self.url}/address/{address}",
            provider="hapi",
            params={"network": network},
            headers=headers,
        )
        data = body.get("data", body) if isinstance(body, dict) else None
        if not isinstance(data, dict) or data.get("risk") is None:
            raise NoDataError("HAPI has no risk score for the address")
        try:
            risk = int(data["risk"])
        except (TypeError, ValueError) as e:
            raise UpstreamUnavailableError("hapi returned a malformed risk score", provider="hapi") from e
        return {"network": network, "risk": risk, "category": data.get("category") or ""}
