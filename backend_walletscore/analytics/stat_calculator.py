"""
Stat calculator: pure transformation from fetched chain data to WalletStats.

- Wallet age in days (minimum 1), transaction cadence with a no_data sentinel,
  turnover intervals and balance change over the last month/year.
- NFT trade profitability from ERC-721/1155 events priced by the internal
  transactions that share their hash.
- Token holdings, deployed contracts, optional integration blocks.

No I/O; `now` is injectable so results are reproducible in tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from backend_walletscore.analytics.intervals import (
    LAST_MONTH_DAYS,
    LAST_YEAR_DAYS,
    TurnoverEntry,
    balance_change_in_last_month,
    balance_change_in_last_year,
    build_turnover_intervals,
)
from backend_walletscore.chains.models import RawTransaction, TokenTransferEvent
from backend_walletscore.core.units import NATIVE_DECIMALS, parse_decimals, sum_native, to_native
from backend_walletscore.scoring.schemas import (
    DexTokenSwapPairs,
    TokenBalanceData,
    TransactionStats,
    TurnoverInterval,
    WalletStats,
)
from backend_walletscore.walletscore_logging import get_logger

logger = get_logger(__name__)

SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 86400
DAYS_PER_MONTH = 30


@dataclass
class AuxiliaryData:
    """Optional integration payloads; None means the client was not asked or had no data."""

    token_balances: list[TokenBalanceData] | None = None
    dex_tokens_swap_pairs: list[DexTokenSwapPairs] | None = None
    aave_data: dict[str, Any] | None = None
    snapshot_votes: list[dict[str, Any]] | None = None
    snapshot_proposals: list[dict[str, Any]] | None = None
    cyberconnect_data: dict[str, Any] | None = None
    greysafe_reports: list[dict[str, Any]] | None = None
    chainanalysis_reports: list[dict[str, Any]] | None = None
    hapi_risk_score: dict[str, Any] | None = None

    def as_stats_fields(self) -> dict[str, Any]:
        # empty collections are "no data" too
        return {name: (value or None) for name, value in self.__dict__.items()}


@dataclass
class CalculatorInputs:
    address: str
    native_balance: str | int = 0
    native_decimals: int = NATIVE_DECIMALS
    native_price_usd: Decimal = Decimal(0)
    transactions: list[RawTransaction] = field(default_factory=list)
    internal_transactions: list[RawTransaction] = field(default_factory=list)
    erc20_events: list[TokenTransferEvent] = field(default_factory=list)
    nft_events: list[TokenTransferEvent] = field(default_factory=list)
    auxiliary: AuxiliaryData = field(default_factory=AuxiliaryData)


@dataclass(frozen=True)
class NftStats:
    nft_holding: int
    nft_trading: Decimal
    nft_worth: Decimal


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _from_ts(ts: int) -> datetime:
    return datetime.fromtimestamp(ts, tz=timezone.utc)


def wallet_age_days(timestamps: list[int], now: datetime | None = None) -> int:
    """Whole days since the first timestamp; 1 for an empty history or a same-day first tx."""
    if not timestamps:
        return 1
    now = now or _utc_now()
    days = (now - _from_ts(min(timestamps))).days
    return max(1, days)


def calculate_transaction_stats(
    timestamps: list[int],
    rejected: int = 0,
    now: datetime | None = None,
) -> TransactionStats:
    """
    Cadence over sorted timestamps (hours between consecutive transactions).

    Returns TransactionStats.empty() when there is nothing to measure: no
    transactions, or a single transaction (no interval).
    """
    if len(timestamps) < 2:
        return TransactionStats.empty()
    now = now or _utc_now()
    ordered = sorted(timestamps)
    deltas = [(b - a) / SECONDS_PER_HOUR for a, b in zip(ordered, ordered[1:])]
    now_ts = now.timestamp()
    month_ago = now_ts - LAST_MONTH_DAYS * SECONDS_PER_DAY
    year_ago = now_ts - LAST_YEAR_DAYS * SECONDS_PER_DAY
    days_since_last = max(0.0, (now_ts - ordered[-1]) / SECONDS_PER_DAY)
    return TransactionStats(
        no_data=False,
        total_transactions=len(ordered),
        total_rejected_transactions=rejected,
        min_transaction_time=min(deltas),
        max_transaction_time=max(deltas),
        average_transaction_time=sum(deltas) / len(deltas),
        last_month_transactions=sum(1 for t in ordered if t > month_ago),
        last_year_transactions=sum(1 for t in ordered if t > year_ago),
        time_from_last_transaction=int(days_since_last / DAYS_PER_MONTH),
    )


def calculate_nft_worth(sold_sum: Decimal, bought_resold_sum: Decimal, bought_held_sum: Decimal) -> Decimal:
    """Average realised sale ratio projected onto held tokens; 0 when nothing bought was resold. Not clamped."""
    if bought_resold_sum == 0:
        return Decimal(0)
    return sold_sum / bought_resold_sum * bought_held_sum


def calculate_nft_stats(
    address: str,
    nft_events: list[TokenTransferEvent],
    internal_transactions: list[RawTransaction],
    decimals: int = NATIVE_DECIMALS,
) -> NftStats:
    wallet = address.lower()
    sold = [e for e in nft_events if e.from_address == wallet]
    sold_uids = {e.token_uid for e in sold}
    received = [e for e in nft_events if e.to_address == wallet]
    bought_resold = [e for e in received if e.token_uid in sold_uids]
    bought_held = [e for e in received if e.token_uid not in sold_uids]

    def settled(events: list[TokenTransferEvent]) -> Decimal:
        hashes = {e.hash for e in events}
        return sum_native([tx.value for tx in internal_transactions if tx.hash in hashes], decimals)

    sold_sum = settled(sold)
    bought_resold_sum = settled(bought_resold)
    bought_held_sum = settled(bought_held)
    return NftStats(
        nft_holding=len(nft_events) - len(sold),
        nft_trading=sold_sum - bought_resold_sum,
        nft_worth=calculate_nft_worth(sold_sum, bought_resold_sum, bought_held_sum),
    )


def _turnover_entries(address: str, transactions: list[RawTransaction], decimals: int) -> list[TurnoverEntry]:
    wallet = address.lower()
    return [
        TurnoverEntry(
            timestamp=_from_ts(tx.timestamp),
            value=to_native(tx.value, decimals),
            is_outgoing=tx.from_address == wallet,
        )
        for tx in transactions
    ]


def calculate_turnover_intervals(
    address: str,
    transactions: list[RawTransaction],
    decimals: int = NATIVE_DECIMALS,
    now: datetime | None = None,
) -> list[TurnoverInterval]:
    return build_turnover_intervals(_turnover_entries(address, transactions, decimals), now or _utc_now())


def calculate_wallet_stats(inputs: CalculatorInputs, now: datetime | None = None) -> WalletStats:
    """Finance score statistics over the wallet's native activity."""
    now = now or _utc_now()
    decimals = inputs.native_decimals
    txs = inputs.transactions
    timestamps = [tx.timestamp for tx in txs]

    intervals = calculate_turnover_intervals(inputs.address, txs, decimals, now)
    tx_stats = calculate_transaction_stats(timestamps, sum(1 for tx in txs if tx.is_error), now)
    nft = calculate_nft_stats(inputs.address, inputs.nft_events, inputs.internal_transactions, decimals)

    native_balance = to_native(inputs.native_balance, decimals)
    stats = WalletStats(
        wallet_age=wallet_age_days(timestamps, now),
        native_balance=native_balance,
        native_balance_usd=native_balance * inputs.native_price_usd,
        balance_change_in_last_month=balance_change_in_last_month(intervals, now),
        balance_change_in_last_year=balance_change_in_last_year(intervals, now),
        wallet_turnover=sum_native([tx.value for tx in txs], decimals),
        tokens_holding=len({e.token_symbol for e in inputs.erc20_events if e.token_symbol}),
        deployed_contracts=sum(1 for tx in txs if tx.contract_address),
        nft_holding=nft.nft_holding,
        nft_trading=nft.nft_trading,
        nft_worth=nft.nft_worth,
        transactions=tx_stats,
        **inputs.auxiliary.as_stats_fields(),
    )
    logger.debug(
        "wallet_stats_calculated",
        wallet=inputs.address,
        transactions=len(txs),
        intervals=len(intervals),
        wallet_age=stats.wallet_age,
    )
    return stats


def calculate_token_stats(
    inputs: CalculatorInputs,
    token_address: str,
    token_balance: str | int,
    token_price_usd: Decimal = Decimal(0),
    now: datetime | None = None,
) -> WalletStats:
    """
    Token score statistics: the wallet's activity in a single ERC-20.

    Uses the ERC-20 events of that contract only; balance and turnover are in
    token units using the decimals reported by the events.
    """
    now = now or _utc_now()
    token = token_address.strip().lower()
    wallet = inputs.address.lower()
    events = [e for e in inputs.erc20_events if e.contract_address == token]
    decimals = parse_decimals(events[0].token_decimal) if events else NATIVE_DECIMALS
    timestamps = [e.timestamp for e in events]

    entries = [
        TurnoverEntry(timestamp=_from_ts(e.timestamp), value=to_native(e.value, decimals), is_outgoing=e.from_address == wallet)
        for e in events
    ]
    intervals = build_turnover_intervals(entries, now)
    tx_stats = calculate_transaction_stats(timestamps, 0, now)

    balance = to_native(token_balance, decimals)
    return WalletStats(
        wallet_age=wallet_age_days(timestamps, now),
        native_balance=balance,
        native_balance_usd=balance * token_price_usd,
        balance_change_in_last_month=balance_change_in_last_month(intervals, now),
        balance_change_in_last_year=balance_change_in_last_year(intervals, now),
        wallet_turnover=sum_native([e.value for e in events], decimals),
        tokens_holding=1,
        deployed_contracts=0,
        transactions=tx_stats,
        **inputs.auxiliary.as_stats_fields(),
    )
