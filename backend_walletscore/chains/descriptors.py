"""
Blockchain descriptors: static facts about each supported EVM chain.

A descriptor names the chain, its explorer API, its native currency and the
identifiers price and token services use for it. SBT contract addresses are
read from env per score type so deployments can point at their own contracts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from backend_walletscore.config import env
from backend_walletscore.core.exceptions import UnsupportedChainError


class ScoreType(str, Enum):
    FINANCE = "finance"
    TOKEN = "token"

    @property
    def code(self) -> int:
        """uint8 value signed into the attestation."""
        return 0 if self is ScoreType.FINANCE else 1


@dataclass(frozen=True)
class NativeCurrency:
    symbol: str
    decimals: int = 18
    coingecko_id: str = ""
    # Set only where a Coinbase spot pair is the preferred price source
    coinbase_pair: str = ""


@dataclass(frozen=True)
class BlockchainDescriptor:
    chain_id: int
    name: str
    slug: str
    explorer_api_url: str
    explorer_url: str
    native_currency: NativeCurrency
    defillama_chain: str
    is_testnet: bool = False
    supports_ens: bool = False
    sbt_contract_addresses: dict[str, str] = field(default_factory=dict)

    def sbt_contract_for(self, score_type: ScoreType) -> str:
        return self.sbt_contract_addresses.get(score_type.value, "")

    def token_id(self, contract_address: str) -> str:
        """Cross-chain token identifier used by price and swap-pair services."""
        return f"{self.defillama_chain}:{contract_address.lower()}"

    @property
    def native_price_id(self) -> str:
        return f"coingecko:{self.native_currency.coingecko_id}"

    def to_dict(self) -> dict[str, object]:
        return {
            "chain_id": self.chain_id,
            "name": self.name,
            "slug": self.slug,
            "explorer_url": self.explorer_url,
            "native_currency": self.native_currency.symbol,
            "is_testnet": self.is_testnet,
            "sbt_contract_addresses": dict(self.sbt_contract_addresses),
        }


ETH = NativeCurrency("ETH", 18, "ethereum", coinbase_pair="ETH-USD")

# slug -> (chain_id, name, explorer api, explorer site, native currency, defillama chain, ens)
_CHAIN_TABLE: dict[str, tuple[int, str, str, str, NativeCurrency, str, bool]] = {
    "ethereum": (1, "Ethereum Mainnet", "https://api.etherscan.io/api", "https://etherscan.io", ETH, "ethereum", True),
    "polygon": (
        137,
        "Polygon Mainnet",
        "https://api.polygonscan.com/api",
        "https://polygonscan.com",
        NativeCurrency("MATIC", 18, "matic-network"),
        "polygon",
        False,
    ),
    "gnosis": (
        100,
        "Gnosis",
        "https://api.gnosisscan.io/api",
        "https://gnosisscan.io",
        NativeCurrency("xDAI", 18, "xdai"),
        "xdai",
        False,
    ),
    "optimism": (
        10,
        "Optimism",
        "https://api-optimistic.etherscan.io/api",
        "https://optimistic.etherscan.io",
        NativeCurrency("ETH", 18, "ethereum"),
        "optimism",
        False,
    ),
    "zksync-era": (
        324,
        "zkSync Era Mainnet",
        "https://block-explorer-api.mainnet.zksync.io/api",
        "https://explorer.zksync.io",
        NativeCurrency("ETH", 18, "ethereum"),
        "era",
        False,
    ),
    "arbitrum": (
        42161,
        "Arbitrum One",
        "https://api.arbiscan.io/api",
        "https://arbiscan.io",
        NativeCurrency("ETH", 18, "ethereum"),
        "arbitrum",
        False,
    ),
}

SUPPORTED_CHAINS = tuple(_CHAIN_TABLE)


def build_descriptor(slug: str) -> BlockchainDescriptor:
    """Build the descriptor for a slug, applying env overrides for explorer URL and SBT contracts."""
    key = (slug or "").strip().lower()
    if key not in _CHAIN_TABLE:
        raise UnsupportedChainError(f"Chain '{slug}' is not supported")
    chain_id, name, api_url, site_url, currency, llama_chain, ens = _CHAIN_TABLE[key]
    contracts = {
        score_type.value: address
        for score_type in ScoreType
        if (address := env.get_sbt_contract_address(key, score_type.value))
    }
    return BlockchainDescriptor(
        chain_id=chain_id,
        name=name,
        slug=key,
        explorer_api_url=env.get_explorer_url(key, api_url),
        explorer_url=site_url,
        native_currency=currency,
        defillama_chain=llama_chain,
        supports_ens=ens,
        sbt_contract_addresses=contracts,
    )


def all_descriptors() -> list[BlockchainDescriptor]:
    return [build_descriptor(slug) for slug in SUPPORTED_CHAINS]
