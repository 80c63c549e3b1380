"""
Chain adapter: the capability set the scoring engine needs from one chain.

Bundles the descriptor (id, name, currency, token ids) with its explorer
client and unit conversion, so the orchestrator and calculator stay chain-agnostic.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

import httpx

from backend_walletscore.chains.descriptors import BlockchainDescriptor, build_descriptor
from backend_walletscore.chains.explorer_client import ExplorerClient, TransactionAction
from backend_walletscore.config import env
from backend_walletscore.core.units import to_native


@dataclass
class ChainAdapter:
    descriptor: BlockchainDescriptor
    explorer: ExplorerClient

    @property
    def chain_id(self) -> int:
        return self.descriptor.chain_id

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def native_decimals(self) -> int:
        return self.descriptor.native_currency.decimals

    def to_native(self, minor_units: str | int | Decimal | None) -> Decimal:
        return to_native(minor_units, self.native_decimals)

    async def get_balance(self, address: str) -> str:
        return await self.explorer.get_balance(address)

    async def get_transactions(self, address: str, action: TransactionAction) -> list:
        return await self.explorer.get_transactions(address, action)


def build_chain_adapter(
    slug: str,
    client: httpx.AsyncClient,
    *,
    page_delay_sec: float | None = None,
) -> ChainAdapter:
    """Descriptor + explorer client for a chain slug, sharing the caller's httpx client."""
    descriptor = build_descriptor(slug)
    explorer = ExplorerClient(
        client,
        descriptor.explorer_api_url,
        env.get_explorer_api_key(descriptor.slug),
        provider=f"{descriptor.slug}_explorer",
        page_delay_sec=env.get_page_delay() if page_delay_sec is None else page_delay_sec,
    )
    return ChainAdapter(descriptor=descriptor, explorer=explorer)
