"""
Application settings.

Collects the env getters from config.env into one typed object so the API
lifespan can build long-lived clients from a single snapshot of configuration.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from backend_walletscore.config import env


@dataclass(frozen=True)
class Settings:
    eth_rpc_url: str
    defillama_url: str
    coinbase_url: str
    snapshot_url: str
    cyberconnect_url: str
    cyberconnect_api_key: str
    greysafe_url: str
    chainalysis_url: str
    chainalysis_api_key: str
    hapi_url: str
    hapi_api_key: str
    request_timeout_sec: float
    page_delay_sec: float
    token_balance_delay_sec: float
    price_cache_ttl_sec: float
    signer_private_key: str
    signature_deadline_sec: int


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the current application settings (cached; call get_settings.cache_clear() in tests)."""
    return Settings(
        eth_rpc_url=env.get_eth_rpc_url(),
        defillama_url=env.get_provider_url("defillama", env.DEFAULT_DEFILLAMA_URL),
        coinbase_url=env.get_provider_url("coinbase", env.DEFAULT_COINBASE_URL),
        snapshot_url=env.get_provider_url("snapshot", env.DEFAULT_SNAPSHOT_URL),
        cyberconnect_url=env.get_provider_url("cyberconnect", env.DEFAULT_CYBERCONNECT_URL),
        cyberconnect_api_key=env.get_provider_api_key("cyberconnect"),
        greysafe_url=env.get_provider_url("greysafe", env.DEFAULT_GREYSAFE_URL),
        chainalysis_url=env.get_provider_url("chainalysis", env.DEFAULT_CHAINALYSIS_URL),
        chainalysis_api_key=env.get_provider_api_key("chainalysis"),
        hapi_url=env.get_provider_url("hapi", env.DEFAULT_HAPI_URL),
        hapi_api_key=env.get_provider_api_key("hapi"),
        request_timeout_sec=env.get_request_timeout(),
        page_delay_sec=env.get_page_delay(),
        token_balance_delay_sec=env.get_token_balance_delay(),
        price_cache_ttl_sec=env.get_price_cache_ttl(),
        signer_private_key=env.get_signer_private_key(),
        signature_deadline_sec=env.get_signature_deadline(),
    )
