"""
Score function: 0-1 wallet score from WalletStats.

Formula: weighted sum of saturating sub-scores, each min(metric, cap) / cap in [0, 1]:
balance (USD, native fallback), age, transactions, turnover, token diversity,
NFT holding, deployed contracts, plus small partial scores for Aave, Snapshot,
CyberConnect and priced token balances. Sub-scores are 0 at the floor of their
metric (age 1, no balance, no data), so an empty wallet scores exactly 0.
A risk multiplier applies when a risk list reports the wallet. Clamps to 0-1.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from backend_walletscore.scoring.schemas import WalletStats
from backend_walletscore.walletscore_logging import get_logger

logger = get_logger(__name__)

SCORE_MIN = 0.0
SCORE_MAX = 1.0
MINTED_SCORE_SCALE = 10000

BALANCE_WEIGHT = 0.18
AGE_WEIGHT = 0.18
TRANSACTIONS_WEIGHT = 0.15
TURNOVER_WEIGHT = 0.14
TOKENS_WEIGHT = 0.10
NFT_WEIGHT = 0.08
CONTRACTS_WEIGHT = 0.07
AAVE_WEIGHT = 0.025
SNAPSHOT_WEIGHT = 0.025
CYBERCONNECT_WEIGHT = 0.025
TOKEN_BALANCES_WEIGHT = 0.025

BALANCE_USD_CAP = 10_000.0
# used when no USD price is available
BALANCE_NATIVE_CAP = 10.0
AGE_DAYS_CAP = 730
TRANSACTIONS_CAP = 1000
TURNOVER_NATIVE_CAP = 100.0
TOKENS_CAP = 20
NFT_CAP = 50
CONTRACTS_CAP = 10
AAVE_RESERVES_CAP = 5
SNAPSHOT_VOTES_CAP = 20
CYBERCONNECT_CAP = 50
TOKEN_BALANCES_USD_CAP = 10_000.0

HAPI_HIGH_RISK = 7
RISK_MULTIPLIER = 0.5


def _saturate(value: float | int | Decimal, cap: float) -> float:
    v = float(value)
    if v <= 0:
        return 0.0
    return min(v, cap) / cap


def _aave_sub_score(aave: dict[str, Any] | None) -> float:
    if not aave:
        return 0.0
    return _saturate(len(aave.get("reserves") or []), AAVE_RESERVES_CAP)


def _cyberconnect_sub_score(data: dict[str, Any] | None) -> float:
    if not data:
        return 0.0
    activity = (
        len(data.get("likes") or [])
        + len(data.get("essences") or [])
        + len(data.get("subscribings") or [])
        + (1 if data.get("profile") else 0)
    )
    return _saturate(activity, CYBERCONNECT_CAP)


def _token_balances_sub_score(stats: WalletStats) -> float:
    if not stats.token_balances:
        return 0.0
    total = sum((b.usd_value for b in stats.token_balances), Decimal(0))
    return _saturate(total, TOKEN_BALANCES_USD_CAP)


def is_risk_flagged(stats: WalletStats) -> bool:
    """Greysafe/Chainalysis reported the wallet, or HAPI rates it high risk."""
    if stats.greysafe_reports or stats.chainanalysis_reports:
        return True
    hapi = stats.hapi_risk_score or {}
    try:
        return int(hapi.get("risk") or 0) >= HAPI_HIGH_RISK
    except (TypeError, ValueError):
        return False


def score_breakdown(stats: WalletStats) -> dict[str, float]:
    """Weighted contribution per category (before risk multiplier and clamp)."""
    if stats.native_balance_usd > 0:
        balance = _saturate(stats.native_balance_usd, BALANCE_USD_CAP)
    else:
        balance = _saturate(stats.native_balance, BALANCE_NATIVE_CAP)
    tx = stats.transactions
    total_tx = 0 if tx.no_data else tx.total_transactions
    return {
        "balance": BALANCE_WEIGHT * balance,
        "age": AGE_WEIGHT * _saturate(stats.wallet_age - 1, AGE_DAYS_CAP - 1),
        "transactions": TRANSACTIONS_WEIGHT * _saturate(total_tx, TRANSACTIONS_CAP),
        "turnover": TURNOVER_WEIGHT * _saturate(stats.wallet_turnover, TURNOVER_NATIVE_CAP),
        "tokens": TOKENS_WEIGHT * _saturate(stats.tokens_holding, TOKENS_CAP),
        "nft": NFT_WEIGHT * _saturate(stats.nft_holding, NFT_CAP),
        "contracts": CONTRACTS_WEIGHT * _saturate(stats.deployed_contracts, CONTRACTS_CAP),
        "aave": AAVE_WEIGHT * _aave_sub_score(stats.aave_data),
        "snapshot": SNAPSHOT_WEIGHT * _saturate(len(stats.snapshot_votes or []), SNAPSHOT_VOTES_CAP),
        "cyberconnect": CYBERCONNECT_WEIGHT * _cyberconnect_sub_score(stats.cyberconnect_data),
        "token_balances": TOKEN_BALANCES_WEIGHT * _token_balances_sub_score(stats),
    }


def calculate_score(stats: WalletStats) -> float:
    """
    Compute the wallet score in [0, 1].

    Deterministic and pure; raising any positive metric never lowers the result.
    """
    breakdown = score_breakdown(stats)
    score = sum(breakdown.values())
    flagged = is_risk_flagged(stats)
    if flagged:
        score *= RISK_MULTIPLIER
    score = max(SCORE_MIN, min(SCORE_MAX, score))
    logger.debug("score_calculated", score=round(score, 6), risk_flagged=flagged)
    return score


def minted_score(score: float) -> int:
    """Attested uint16 value: round(score * 10000), bounded to 0-10000."""
    return max(0, min(MINTED_SCORE_SCALE, round(score * MINTED_SCORE_SCALE)))
