"""
Pydantic models for the scoring pipeline: request options, wallet statistics and responses.

Optional integration blocks default to None and are dropped on serialization
(exclude_none), so a block whose feature flag was off never appears as null or zero.
Balances are Decimal and serialize as strings, which keeps round-trips exact.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from backend_walletscore.chains.descriptors import ScoreType

DEFAULT_SWAP_PAIRS_FIRST = 100
MAX_SWAP_PAIRS_FIRST = 1000


class ScoringOptions(BaseModel):
    """Per-request feature flags; each optional integration runs only when its flag is set."""

    get_aave_data: bool = Field(False, description="Include Aave lending account data")
    get_snapshot_data: bool = Field(False, description="Include Snapshot votes and proposals")
    get_cyberconnect_data: bool = Field(False, description="Include CyberConnect social graph data")
    use_greysafe: bool = Field(False, description="Include Greysafe scam reports")
    use_chainanalysis: bool = Field(False, description="Include Chainalysis sanctions identifications")
    use_hapi: bool = Field(False, description="Include HAPI risk score")
    use_token_balances: bool = Field(False, description="Fetch balances of every ERC-20 the wallet touched")
    get_holder_swap_pairs: bool = Field(False, description="Discover DEX swap pairs for held tokens")
    swap_pairs_first: int = Field(DEFAULT_SWAP_PAIRS_FIRST, ge=1, le=MAX_SWAP_PAIRS_FIRST)
    swap_pairs_skip: int = Field(0, ge=0)


class WalletScoreRequest(BaseModel):
    address: str = Field(..., description="0x address or ENS name; validated by the scoring service")
    score_type: ScoreType = Field(ScoreType.FINANCE, description="finance or token")
    token_address: str | None = Field(None, description="ERC-20 contract; required for token scoring")
    options: ScoringOptions = Field(default_factory=ScoringOptions)


class TokenBalanceData(BaseModel):
    token_id: str
    contract_address: str
    symbol: str = ""
    balance: Decimal
    price: Decimal = Decimal(0)
    usd_value: Decimal = Decimal(0)


class DexSwapPair(BaseModel):
    pair_id: str
    dex: str = ""
    token0: str
    token1: str
    token0_symbol: str = ""
    token1_symbol: str = ""


class DexTokenSwapPairs(BaseModel):
    token_id: str
    pairs: list[DexSwapPair] = Field(default_factory=list)


class TurnoverInterval(BaseModel):
    start_date: datetime
    end_date: datetime
    amount_sum: Decimal = Decimal(0)
    amount_in_sum: Decimal = Decimal(0)
    amount_out_sum: Decimal = Decimal(0)
    count: int = 0


class TransactionStats(BaseModel):
    """Transaction cadence. no_data=True is the sentinel for 'nothing to measure', distinct from zeros."""

    no_data: bool = False
    total_transactions: int = 0
    total_rejected_transactions: int = 0
    min_transaction_time: float = 0.0
    max_transaction_time: float = 0.0
    average_transaction_time: float = 0.0
    last_month_transactions: int = 0
    last_year_transactions: int = 0
    time_from_last_transaction: int = 0

    @classmethod
    def empty(cls) -> TransactionStats:
        return cls(no_data=True)


class WalletStats(BaseModel):
    wallet_age: int = Field(1, ge=1, description="Days since first transaction, minimum 1")
    native_balance: Decimal = Decimal(0)
    native_balance_usd: Decimal = Decimal(0)
    balance_change_in_last_month: Decimal = Decimal(0)
    balance_change_in_last_year: Decimal = Decimal(0)
    wallet_turnover: Decimal = Decimal(0)
    tokens_holding: int = 0
    deployed_contracts: int = 0
    nft_holding: int = 0
    nft_trading: Decimal = Decimal(0)
    nft_worth: Decimal = Decimal(0)
    transactions: TransactionStats = Field(default_factory=TransactionStats.empty)

    token_balances: list[TokenBalanceData] | None = None
    dex_tokens_swap_pairs: list[DexTokenSwapPairs] | None = None
    aave_data: dict[str, Any] | None = None
    snapshot_votes: list[dict[str, Any]] | None = None
    snapshot_proposals: list[dict[str, Any]] | None = None
    cyberconnect_data: dict[str, Any] | None = None
    greysafe_reports: list[dict[str, Any]] | None = None
    chainanalysis_reports: list[dict[str, Any]] | None = None
    hapi_risk_score: dict[str, Any] | None = None

    def to_json(self) -> str:
        return self.model_dump_json(exclude_none=True)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class WalletScoreResponse(BaseModel):
    address: str
    resolved_address: str
    chain_id: int
    score_type: ScoreType
    stats: WalletStats
    score: float = Field(..., ge=0, le=1)
    minted_score: int = Field(..., ge=0, le=10000)
    signature: str
    persisted: bool = True
    messages: list[str] = Field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data = self.model_dump(mode="json", exclude={"stats"})
        data["stats"] = self.stats.to_dict()
        return data
