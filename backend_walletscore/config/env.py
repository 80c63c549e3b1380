"""
Environment variable loading for WalletScore.

- {SLUG}_EXPLORER_API_KEY: explorer API key per chain (ETHEREUM_EXPLORER_API_KEY, POLYGON_EXPLORER_API_KEY, ...)
- {SLUG}_EXPLORER_URL: optional explorer base URL override per chain
- ETH_RPC_URL: Ethereum JSON-RPC endpoint used for ENS name resolution
- SBT_SIGNER_PRIVATE_KEY: hex private key used to sign minted scores
- SBT_CONTRACT_{SLUG}_{SCORE_TYPE}: soulbound token contract per chain and score type
- CHAINALYSIS_API_KEY, HAPI_API_KEY, GREYSAFE_API_URL, ...: auxiliary provider settings
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

# config is backend_walletscore/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_BACKEND_DIR = _CONFIG_DIR.parent
_ROOT = _BACKEND_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_ETH_RPC_URL = "https://cloudflare-eth.com"
DEFAULT_DEFILLAMA_URL = "https://coins.llama.fi"
DEFAULT_COINBASE_URL = "https://api.coinbase.com"
DEFAULT_SNAPSHOT_URL = "https://hub.snapshot.org/graphql"
DEFAULT_CYBERCONNECT_URL = "https://api.cyberconnect.dev/"
DEFAULT_GREYSAFE_URL = "https://api.greysafe.com/api/v1"
DEFAULT_CHAINALYSIS_URL = "https://public.chainalysis.com/api/v1"
DEFAULT_HAPI_URL = "https://research.hapi.one/v1"

DEFAULT_REQUEST_TIMEOUT_SEC = 30.0
DEFAULT_PAGE_DELAY_SEC = 0.1
DEFAULT_TOKEN_BALANCE_DELAY_SEC = 0.25
DEFAULT_PRICE_CACHE_TTL_SEC = 300.0
DEFAULT_SIGNATURE_DEADLINE_SEC = 3600


_env_loaded = False


def load_walletscore_env(force: bool = False) -> None:
    """Load .env from project root once per process; force=True reads it again."""
    global _env_loaded
    if _env_loaded and not force:
        return
    from dotenv import load_dotenv

    load_dotenv(_ENV_PATH)
    _env_loaded = True


def _get(name: str, default: str = "") -> str:
    load_walletscore_env()
    return (os.getenv(name) or default).strip()


def _get_float(name: str, default: float) -> float:
    raw = _get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_slug(slug: str) -> str:
    return slug.strip().upper().replace("-", "_")


def get_explorer_api_key(slug: str) -> str:
    """Return {SLUG}_EXPLORER_API_KEY for a chain slug ('' when unset)."""
    return _get(f"{_env_slug(slug)}_EXPLORER_API_KEY")


def get_explorer_url(slug: str, default: str) -> str:
    """Return {SLUG}_EXPLORER_URL override or the descriptor default."""
    return _get(f"{_env_slug(slug)}_EXPLORER_URL", default)


def get_sbt_contract_address(slug: str, score_type: str) -> str:
    """Return SBT_CONTRACT_{SLUG}_{SCORE_TYPE} ('' when the chain has no contract for that score type)."""
    return _get(f"SBT_CONTRACT_{_env_slug(slug)}_{score_type.strip().upper()}")


def get_subgraph_url(kind: str, slug: str) -> str:
    """Return {KIND}_SUBGRAPH_URL_{SLUG}, e.g. AAVE_SUBGRAPH_URL_POLYGON ('' when unset)."""
    return _get(f"{kind.strip().upper()}_SUBGRAPH_URL_{_env_slug(slug)}")


def get_eth_rpc_url() -> str:
    """Ethereum RPC for ENS resolution. Order: ETH_RPC_URL > default public gateway."""
    return _get("ETH_RPC_URL", DEFAULT_ETH_RPC_URL)


def get_signer_private_key() -> str:
    """Return SBT_SIGNER_PRIVATE_KEY ('' when unset; signing then fails)."""
    return _get("SBT_SIGNER_PRIVATE_KEY")


def get_request_timeout() -> float:
    return _get_float("HTTP_TIMEOUT_SEC", DEFAULT_REQUEST_TIMEOUT_SEC)


def get_page_delay() -> float:
    """Fixed delay between explorer pages (seconds)."""
    return _get_float("EXPLORER_PAGE_DELAY_SEC", DEFAULT_PAGE_DELAY_SEC)


def get_token_balance_delay() -> float:
    """Fixed delay before each per-token balance lookup (seconds)."""
    return _get_float("TOKEN_BALANCE_DELAY_SEC", DEFAULT_TOKEN_BALANCE_DELAY_SEC)


def get_price_cache_ttl() -> float:
    return _get_float("PRICE_CACHE_TTL_SEC", DEFAULT_PRICE_CACHE_TTL_SEC)


def get_signature_deadline() -> int:
    return int(_get_float("SIGNATURE_DEADLINE_SEC", float(DEFAULT_SIGNATURE_DEADLINE_SEC)))


def get_provider_url(name: str, default: str) -> str:
    """Return {NAME}_API_URL override for an auxiliary provider."""
    return _get(f"{name.strip().upper()}_API_URL", default)


def get_provider_api_key(name: str) -> str:
    """Return {NAME}_API_KEY for an auxiliary provider ('' when unset)."""
    return _get(f"{name.strip().upper()}_API_KEY")
