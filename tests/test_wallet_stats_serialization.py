"""
WalletStats JSON: optional blocks that were not requested are omitted (not null),
and Decimal balances survive a round-trip exactly.
"""

from decimal import Decimal


def test_round_trip_preserves_decimals_and_omits_missing_blocks():
    from backend_walletscore.scoring.schemas import TokenBalanceData, WalletStats

    stats = WalletStats(
        wallet_age=42,
        native_balance=Decimal("1.123456789012345678"),
        native_balance_usd=Decimal("2469.135802469135802469"),
        balance_change_in_last_month=Decimal("-0.5"),
        token_balances=[
            TokenBalanceData(
                token_id="ethereum:0xdac17f958d2ee523a2206206994597c13d831ec7",
                contract_address="0xdac17f958d2ee523a2206206994597c13d831ec7",
                symbol="USDT",
                balance=Decimal("12.5"),
                price=Decimal("1"),
                usd_value=Decimal("12.5"),
            )
        ],
    )
    raw = stats.to_json()

    assert "aave_data" not in raw
    assert "hapi_risk_score" not in raw
    assert "null" not in raw
    assert WalletStats.model_validate_json(raw) == stats


def test_no_data_transactions_serialize_as_sentinel():
    from backend_walletscore.scoring.schemas import WalletStats

    data = WalletStats().to_dict()
    assert data["transactions"]["no_data"] is True
    assert data["wallet_age"] == 1
    assert "snapshot_votes" not in data
