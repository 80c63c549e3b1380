"""
Tests for the stat calculator: wallet age, transaction cadence, NFT profitability,
finance and token statistics. All inputs are in-memory explorer records.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

WALLET = "0x5aaeb6053f3e94c9b9a09f33669435e7ef1beaed"
OTHER = "0x0000000000000000000000000000000000000001"
NOW = datetime(2024, 6, 15, tzinfo=timezone.utc)
WEI = 10**18


def _ts(delta: timedelta) -> int:
    return int((NOW - delta).timestamp())


def _tx(hash_, when, value=0, sender=OTHER, to=WALLET, contract="", is_error=False):
    from backend_walletscore.chains.models import RawTransaction

    return RawTransaction(
        hash=hash_,
        timestamp=when,
        block_number=1,
        from_address=sender,
        to_address=to,
        value=value,
        contract_address=contract,
        is_error=is_error,
    )


def _nft(hash_, token_id, sender, to, contract="0xnft"):
    from backend_walletscore.chains.models import TokenTransferEvent

    return TokenTransferEvent(
        hash=hash_,
        timestamp=_ts(timedelta(days=10)),
        block_number=1,
        from_address=sender,
        to_address=to,
        contract_address=contract,
        token_id=token_id,
    )


def test_empty_wallet_has_age_one_and_no_data_sentinel():
    from backend_walletscore.analytics.stat_calculator import CalculatorInputs, calculate_wallet_stats

    stats = calculate_wallet_stats(CalculatorInputs(address=WALLET), now=NOW)
    assert stats.wallet_age == 1
    assert stats.transactions.no_data is True
    assert stats.native_balance == Decimal(0)
    assert stats.wallet_turnover == Decimal(0)


def test_single_transaction_has_no_cadence():
    from backend_walletscore.analytics.stat_calculator import calculate_transaction_stats

    assert calculate_transaction_stats([_ts(timedelta(days=3))], now=NOW).no_data is True


def test_transaction_cadence_in_hours():
    from backend_walletscore.analytics.stat_calculator import calculate_transaction_stats

    timestamps = [_ts(timedelta(hours=3)), _ts(timedelta(hours=2)), _ts(timedelta(0))]
    stats = calculate_transaction_stats(timestamps, rejected=1, now=NOW)
    assert stats.no_data is False
    assert stats.total_transactions == 3
    assert stats.total_rejected_transactions == 1
    assert stats.min_transaction_time == 1.0
    assert stats.max_transaction_time == 2.0
    assert stats.average_transaction_time == 1.5
    assert stats.last_month_transactions == 3
    assert stats.time_from_last_transaction == 0


def test_wallet_age_in_days():
    from backend_walletscore.analytics.stat_calculator import wallet_age_days

    assert wallet_age_days([_ts(timedelta(days=100)), _ts(timedelta(days=5))], NOW) == 100
    assert wallet_age_days([_ts(timedelta(hours=2))], NOW) == 1


def test_nft_worth_projects_sale_ratio_onto_held_tokens():
    from backend_walletscore.analytics.stat_calculator import calculate_nft_worth

    assert calculate_nft_worth(Decimal(100), Decimal(50), Decimal(40)) == Decimal(80)
    assert calculate_nft_worth(Decimal(100), Decimal(0), Decimal(40)) == Decimal(0)


def test_nft_stats_from_events_and_internal_transactions():
    """Token A bought for 1, sold for 3; token B bought for 2 and held."""
    from backend_walletscore.analytics.stat_calculator import calculate_nft_stats

    events = [
        _nft("0xbuy_a", "1", OTHER, WALLET),
        _nft("0xsell_a", "1", WALLET, OTHER),
        _nft("0xbuy_b", "2", OTHER, WALLET),
    ]
    internal = [
        _tx("0xbuy_a", _ts(timedelta(days=10)), 1 * WEI),
        _tx("0xsell_a", _ts(timedelta(days=9)), 3 * WEI),
        _tx("0xbuy_b", _ts(timedelta(days=8)), 2 * WEI),
    ]
    nft = calculate_nft_stats(WALLET, events, internal)
    assert nft.nft_holding == 2
    assert nft.nft_trading == Decimal(2)
    assert nft.nft_worth == Decimal(6)


def test_finance_stats():
    from backend_walletscore.analytics.stat_calculator import (
        AuxiliaryData,
        CalculatorInputs,
        calculate_wallet_stats,
    )
    from backend_walletscore.chains.models import TokenTransferEvent

    txs = [
        _tx("0x1", _ts(timedelta(days=400)), 5 * WEI),
        _tx("0x2", _ts(timedelta(days=10)), 2 * WEI, sender=WALLET, to=OTHER),
        _tx("0x3", _ts(timedelta(days=1)), 0, sender=WALLET, to="", contract="0xdeployed"),
        _tx("0x4", _ts(timedelta(hours=1)), 0, sender=WALLET, is_error=True),
    ]
    erc20 = [
        TokenTransferEvent(
            hash="0x5",
            timestamp=_ts(timedelta(days=3)),
            block_number=1,
            from_address=OTHER,
            to_address=WALLET,
            contract_address="0xusdc",
            value=1,
            token_symbol=symbol,
        )
        for symbol in ("USDC", "DAI", "USDC")
    ]
    inputs = CalculatorInputs(
        address=WALLET,
        native_balance=str(3 * WEI),
        native_price_usd=Decimal(2000),
        transactions=txs,
        erc20_events=erc20,
        auxiliary=AuxiliaryData(snapshot_votes=[{"id": "v1"}], greysafe_reports=[]),
    )
    stats = calculate_wallet_stats(inputs, now=NOW)

    assert stats.wallet_age == 400
    assert stats.native_balance == Decimal(3)
    assert stats.native_balance_usd == Decimal(6000)
    assert stats.wallet_turnover == Decimal(7)
    assert stats.balance_change_in_last_month == Decimal(-2)
    assert stats.balance_change_in_last_year == Decimal(-2)
    assert stats.tokens_holding == 2
    assert stats.deployed_contracts == 1
    assert stats.transactions.total_transactions == 4
    assert stats.transactions.total_rejected_transactions == 1
    assert stats.snapshot_votes == [{"id": "v1"}]
    # empty list from an integration is treated as no data
    assert stats.greysafe_reports is None
    assert stats.aave_data is None


def test_token_stats_use_only_the_selected_contract():
    from backend_walletscore.analytics.stat_calculator import CalculatorInputs, calculate_token_stats
    from backend_walletscore.chains.models import TokenTransferEvent

    def event(hash_, days, value, contract, sender=OTHER, to=WALLET):
        return TokenTransferEvent(
            hash=hash_,
            timestamp=_ts(timedelta(days=days)),
            block_number=1,
            from_address=sender,
            to_address=to,
            contract_address=contract,
            value=value,
            token_symbol="TKN",
            token_decimal="6",
        )

    events = [
        event("0x1", 60, 10_000_000, "0xtoken"),
        event("0x2", 5, 4_000_000, "0xtoken", sender=WALLET, to=OTHER),
        event("0x3", 2, 999_000_000, "0xother"),
    ]
    inputs = CalculatorInputs(address=WALLET, erc20_events=events)
    stats = calculate_token_stats(inputs, "0xTOKEN", "6000000", Decimal("2"), now=NOW)

    assert stats.wallet_age == 60
    assert stats.native_balance == Decimal(6)
    assert stats.native_balance_usd == Decimal(12)
    assert stats.wallet_turnover == Decimal(14)
    assert stats.balance_change_in_last_month == Decimal(-4)
    assert stats.tokens_holding == 1
    assert stats.deployed_contracts == 0
    assert stats.transactions.total_transactions == 2


def test_stats_are_reproducible_for_fixed_now():
    from backend_walletscore.analytics.stat_calculator import CalculatorInputs, calculate_wallet_stats

    txs = [_tx("0x1", _ts(timedelta(days=40)), WEI), _tx("0x2", _ts(timedelta(days=4)), WEI)]
    inputs = CalculatorInputs(address=WALLET, native_balance="1", transactions=txs)
    assert calculate_wallet_stats(inputs, now=NOW) == calculate_wallet_stats(inputs, now=NOW)
