"""
Explorer records: normal/internal transactions and token transfer events.

Explorer APIs return every field as a string; from_api() parses the fields the
calculator needs and keeps values as integer minor units. A blank or malformed
timeStamp or blockNumber raises ValueError.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from backend_walletscore.core.units import parse_minor_units


def _int(raw: Any, field: str) -> int:
    """Required integer field; blank or malformed values raise ValueError."""
    try:
        return int(str(raw).strip())
    except (TypeError, ValueError):
        raise ValueError(f"malformed {field} {raw!r}") from None


def _lower(raw: Any) -> str:
    return str(raw or "").strip().lower()


@dataclass(frozen=True)
class RawTransaction:
    hash: str
    timestamp: int
    block_number: int
    from_address: str
    to_address: str
    value: int
    contract_address: str = ""
    is_error: bool = False

    @property
    def timestamp_dt(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp, tz=timezone.utc)

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> RawTransaction:
        return cls(
            hash=_lower(item.get("hash")),
            timestamp=_int(item.get("timeStamp"), "timeStamp"),
            block_number=_int(item.get("blockNumber"), "blockNumber"),
            from_address=_lower(item.get("from")),
            to_address=_lower(item.get("to")),
            value=parse_minor_units(item.get("value")),
            contract_address=_lower(item.get("contractAddress")),
            is_error=str(item.get("isError") or "0").strip() == "1",
        )


@dataclass(frozen=True)
class TokenTransferEvent:
    hash: str
    timestamp: int
    block_number: int
    from_address: str
    to_address: str
    contract_address: str
    value: int = 0
    token_id: str = ""
    token_symbol: str = ""
    token_decimal: str = ""

    @property
    def timestamp_dt(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp, tz=timezone.utc)

    @property
    def token_uid(self) -> str:
        """NFT identity: contract plus token id."""
        return f"{self.contract_address}{self.token_id}"

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> TokenTransferEvent:
        return cls(
            hash=_lower(item.get("hash")),
            timestamp=_int(item.get("timeStamp"), "timeStamp"),
            block_number=_int(item.get("blockNumber"), "blockNumber"),
            from_address=_lower(item.get("from")),
            to_address=_lower(item.get("to")),
            contract_address=_lower(item.get("contractAddress")),
            value=parse_minor_units(item.get("value") or item.get("tokenValue")),
            token_id=str(item.get("tokenID") or item.get("tokenId") or "").strip(),
            token_symbol=str(item.get("tokenSymbol") or "").strip(),
            token_decimal=str(item.get("tokenDecimal") or "").strip(),
        )
