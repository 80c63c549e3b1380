"""
Explorer client for Etherscan-compatible APIs (Etherscan, Polygonscan, Gnosisscan,
Optimistic Etherscan, zkSync Era explorer, Arbiscan).

- get_balance: native balance in minor units (module=account, action=balance).
- get_transactions: paginated account lists selected by TransactionAction.
  Providers truncate at ITEMS_FETCH_LIMIT; the next page starts at the last
  item's blockNumber, after a fixed delay. Items at the boundary block can
  appear on both pages and are kept as returned.
- get_token_balance: ERC-20 balance of one contract (action=tokenbalance).

Responses look like {"status": "1", "message": "OK", "result": ...}. Status "0"
with "No transactions found" is the documented empty answer; any other "0" is an error.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any, Callable

import httpx

from backend_walletscore.chains.models import RawTransaction, TokenTransferEvent
from backend_walletscore.core.exceptions import UpstreamUnavailableError
from backend_walletscore.integrations.http import request_json
from backend_walletscore.walletscore_logging import get_logger

logger = get_logger(__name__)

ITEMS_FETCH_LIMIT = 10_000
END_BLOCK = 99_999_999
PAGE_DELAY_SEC = 0.1
NO_DATA_MESSAGES = ("no transactions found", "no records found", "no token transfers found")


class TransactionAction(str, Enum):
    NORMAL = "txlist"
    INTERNAL = "txlistinternal"
    ERC20 = "tokentx"
    ERC721 = "tokennfttx"
    ERC1155 = "token1155tx"


_PARSERS: dict[TransactionAction, Callable[[dict[str, Any]], Any]] = {
    TransactionAction.NORMAL: RawTransaction.from_api,
    TransactionAction.INTERNAL: RawTransaction.from_api,
    TransactionAction.ERC20: TokenTransferEvent.from_api,
    TransactionAction.ERC721: TokenTransferEvent.from_api,
    TransactionAction.ERC1155: TokenTransferEvent.from_api,
}


def _is_no_data(body: dict[str, Any]) -> bool:
    message = str(body.get("message") or "").strip().lower()
    result = body.get("result")
    if result == [] or result is None:
        return True
    return any(message.startswith(m) for m in NO_DATA_MESSAGES)


class ExplorerClient:
    """One client per chain explorer; the httpx client is shared and owned by the caller."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        api_key: str = "",
        *,
        provider: str = "explorer",
        items_fetch_limit: int = ITEMS_FETCH_LIMIT,
        page_delay_sec: float = PAGE_DELAY_SEC,
    ) -> None:
        self._client = client
        self.base_url = base_url
        self.api_key = api_key
        self.provider = provider
        self.items_fetch_limit = items_fetch_limit
        self.page_delay_sec = page_delay_sec

    async def _call(self, params: dict[str, Any]) -> dict[str, Any]:
        query = dict(params)
        if self.api_key:
            query["apikey"] = self.api_key
        body = await request_json(self._client, "GET", self.base_url, provider=self.provider, params=query)
        if not isinstance(body, dict) or "result" not in body:
            raise UpstreamUnavailableError(f"{self.provider} returned an unexpected body", provider=self.provider)
        return body

    async def get_balance(self, address: str) -> str:
        """Native balance in minor units, as the decimal string the explorer returns."""
        body = await self._call({"module": "account", "action": "balance", "address": address, "tag": "latest"})
        result = body.get("result")
        if str(body.get("status")) != "1" or not str(result or "").strip().isdigit():
            raise UpstreamUnavailableError(
                f"{self.provider} balance lookup failed: {body.get('message') or 'malformed result'}",
                provider=self.provider,
            )
        return str(result).strip()

    async def get_token_balance(self, address: str, contract_address: str) -> str:
        body = await self._call(
            {
                "module": "account",
                "action": "tokenbalance",
                "contractaddress": contract_address,
                "address": address,
                "tag": "latest",
            }
        )
        result = str(body.get("result") or "").strip()
        if str(body.get("status")) != "1" or not result.isdigit():
            raise UpstreamUnavailableError(
                f"{self.provider} token balance lookup failed", provider=self.provider
            )
        return result

    async def _fetch_page(self, address: str, action: TransactionAction, start_block: int) -> list[dict[str, Any]]:
        body = await self._call(
            {
                "module": "account",
                "action": action.value,
                "address": address,
                "startblock": start_block,
                "endblock": END_BLOCK,
                "sort": "asc",
            }
        )
        if str(body.get("status")) != "1":
            if _is_no_data(body):
                return []
            raise UpstreamUnavailableError(
                f"{self.provider} {action.value} failed: {body.get('message') or 'NOTOK'}",
                provider=self.provider,
            )
        result = body.get("result")
        if not isinstance(result, list):
            raise UpstreamUnavailableError(f"{self.provider} {action.value} returned no list", provider=self.provider)
        return result

    def _parse_page(self, action: TransactionAction, page: list[Any]) -> list[Any]:
        parse = _PARSERS[action]
        try:
            return [parse(raw) for raw in page]
        except (ValueError, AttributeError) as e:
            raise UpstreamUnavailableError(
                f"{self.provider} {action.value} returned a malformed item: {e}", provider=self.provider
            ) from e

    async def get_transactions(self, address: str, action: TransactionAction) -> list[Any]:
        """
        Fetch every item for an account list, paging by block number.

        A failing or malformed later page ends the loop with what was collected
        so far; a failing first page propagates. A full page that ends on its own
        start block also ends the loop.
        """
        items: list[Any] = []
        start_block = 0
        pages = 0
        while True:
            try:
                page = await self._fetch_page(address, action, start_block)
                parsed = self._parse_page(action, page)
            except UpstreamUnavailableError:
                if pages == 0:
                    raise
                logger.warning(
                    "explorer_page_failed_partial",
                    provider=self.provider,
                    action=action.value,
                    wallet=address,
                    pages=pages,
                    items=len(items),
                )
                break
            pages += 1
            items.extend(parsed)
            if len(page) < self.items_fetch_limit or not parsed:
                break
            next_block = parsed[-1].block_number
            if next_block <= start_block:
                logger.warning(
                    "explorer_cursor_stalled",
                    provider=self.provider,
                    action=action.value,
                    wallet=address,
                    block=start_block,
                    items=len(items),
                )
                break
            start_block = next_block
            await asyncio.sleep(self.page_delay_sec)
        logger.debug(
            "explorer_transactions_fetched",
            provider=self.provider,
            action=action.value,
            wallet=address,
            pages=pages,
            items=len(items),
        )
        return items
