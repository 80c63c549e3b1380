"""
Wallet address validation and ENS name resolution.

Names ending in ".eth" are resolved once per request through web3's ENS module,
then the result goes through the same EVM format/checksum check as a raw address.
web3 is synchronous here, so resolution runs in a worker thread.
"""

from __future__ import annotations

import asyncio
import re

from web3 import Web3

from backend_walletscore.core.exceptions import InvalidAddressError
from backend_walletscore.walletscore_logging import get_logger

logger = get_logger(__name__)

ENS_SUFFIX = ".eth"
HEX_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def is_ens_name(value: str) -> bool:
    return (value or "").strip().lower().endswith(ENS_SUFFIX)


def validate_address(address: str) -> str:
    """
    Return the address stripped if it is a valid EVM address.

    Lower- or upper-case hex is accepted as is; mixed case must carry a valid
    EIP-55 checksum. Raises InvalidAddressError otherwise.
    """
    candidate = (address or "").strip()
    if not HEX_ADDRESS_RE.match(candidate):
        raise InvalidAddressError(f"Invalid address {candidate!r}: expected 0x followed by 40 hex characters")
    if not Web3.is_address(candidate):
        raise InvalidAddressError(f"Invalid address {candidate!r}: checksum mismatch")
    return candidate


class EnsResolver:
    """Resolve ENS names against an Ethereum RPC endpoint."""

    def __init__(self, rpc_url: str, timeout_sec: float = 30.0) -> None:
        self.rpc_url = rpc_url
        self._web3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout_sec}))

    def _resolve_sync(self, name: str) -> str | None:
        resolved = self._web3.ens.address(name)
        return str(resolved) if resolved else None

    async def resolve(self, name: str) -> str:
        try:
            resolved = await asyncio.to_thread(self._resolve_sync, name)
        except Exception as e:
            logger.warning("ens_resolution_failed", name=name, error=str(e))
            raise InvalidAddressError(f"Could not resolve {name!r}") from e
        if not resolved:
            raise InvalidAddressError(f"{name!r} does not resolve to an address")
        logger.info("ens_resolved", name=name, wallet=resolved)
        return resolved
