"""
Token balances: per-contract ERC-20 balance lookups, priced through the oracle.

Lookups are sequential and pass through a FixedDelayLimiter shared by every
request, because explorers rate-limit per key. Only positive balances are kept.
"""

from __future__ import annotations

from decimal import Decimal

from backend_walletscore.chains.adapter import ChainAdapter
from backend_walletscore.core.exceptions import NoDataError
from backend_walletscore.core.units import to_native
from backend_walletscore.integrations.http import FixedDelayLimiter
from backend_walletscore.integrations.pricing import PriceOracle
from backend_walletscore.scoring.schemas import TokenBalanceData
from backend_walletscore.walletscore_logging import get_logger

logger = get_logger(__name__)


class TokenBalanceClient:
    def __init__(self, prices: PriceOracle, limiter: FixedDelayLimiter) -> None:
        self.prices = prices
        self.limiter = limiter

    async def get_token_balances(
        self,
        chain: ChainAdapter,
        address: str,
        contracts: dict[str, tuple[str, int]],
    ) -> list[TokenBalanceData]:
        """
        contracts maps contract address -> (symbol, decimals).

        Raises NoDataError when the wallet holds none of them.
        """
        raw: dict[str, Decimal] = {}
        for contract, (_symbol, decimals) in contracts.items():
            async with self.limiter:
                minor = await chain.explorer.get_token_balance(address, contract)
            balance = to_native(minor, decimals)
            if balance > 0:
                raw[contract] = balance
        if not raw:
            raise NoDataError("wallet holds none of its ERC-20 tokens")

        ids = {contract: chain.descriptor.token_id(contract) for contract in raw}
        prices = await self.prices.get_prices(ids.values())
        result = []
        for contract, balance in raw.items():
            price = prices.get(ids[contract], Decimal(0))
            result.append(
                TokenBalanceData(
                    token_id=ids[contract],
                    contract_address=contract,
                    symbol=contracts[contract][0],
                    balance=balance,
                    price=price,
                    usd_value=balance * price,
                )
            )
        logger.info("token_balances_fetched", wallet=address, chain_id=chain.chain_id, tokens=len(result))
        return result
