"""
Scoring orchestrator: runs one wallet-score request end to end.

States: VALIDATING -> RESOLVING_NAME (ENS only) -> FETCHING_PRIMARY ->
FETCHING_AUXILIARY -> CALCULATING -> SCORING -> PERSISTING -> SIGNING -> DONE,
with FAILED reachable from any state.

- Primary explorer data is fetched sequentially (explorers rate-limit per key)
  while pricing and the flag-gated integrations run concurrently beside it.
  A primary failure cancels the integrations still in flight.
- Token balances and swap pairs need the ERC-20 contract set, so they start
  once primary data is in.
- NoDataError from any optional integration becomes None; other failures fail the request.
- Persistence is best effort: failure sets persisted=False and adds a warning.
- Signing happens after persistence was attempted; its failure fails the request.
- Cancellation is plain asyncio task cancellation; nothing is written if it
  arrives before PERSISTING.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Awaitable, Callable

from backend_walletscore.analytics.score import calculate_score, minted_score
from backend_walletscore.analytics.stat_calculator import (
    AuxiliaryData,
    CalculatorInputs,
    calculate_token_stats,
    calculate_wallet_stats,
)
from backend_walletscore.chains.adapter import ChainAdapter
from backend_walletscore.chains.address import EnsResolver, is_ens_name, validate_address
from backend_walletscore.chains.descriptors import ScoreType
from backend_walletscore.chains.explorer_client import TransactionAction
from backend_walletscore.chains.models import RawTransaction, TokenTransferEvent
from backend_walletscore.core.exceptions import (
    InvalidAddressError,
    MissingRequiredInputError,
    NoDataError,
    SignatureFailureError,
    WalletScoreError,
)
from backend_walletscore.core.units import parse_decimals
from backend_walletscore.database.scoring_records import save_scoring_record
from backend_walletscore.integrations.aave import AaveClient
from backend_walletscore.integrations.cyberconnect import CyberConnectClient
from backend_walletscore.integrations.dex import DexSwapPairClient
from backend_walletscore.integrations.pricing import PriceOracle
from backend_walletscore.integrations.risk_lists import ChainanalysisClient, GreysafeClient, HapiClient
from backend_walletscore.integrations.snapshot import SnapshotClient
from backend_walletscore.integrations.token_balances import TokenBalanceClient
from backend_walletscore.scoring.schemas import ScoringOptions, WalletScoreRequest, WalletScoreResponse, WalletStats
from backend_walletscore.signing.sbt_signer import SbtSigner, SignatureRequest
from backend_walletscore.walletscore_logging import bind_wallet, get_logger

logger = get_logger(__name__)

PERSISTENCE_WARNING = "Score was computed but could not be saved to the scoring history."
TOKEN_ADDRESS_REQUIRED = "Token contract address should be set"


class ScoringState(str, Enum):
    VALIDATING = "validating"
    RESOLVING_NAME = "resolving_name"
    FETCHING_PRIMARY = "fetching_primary"
    FETCHING_AUXILIARY = "fetching_auxiliary"
    CALCULATING = "calculating"
    SCORING = "scoring"
    PERSISTING = "persisting"
    SIGNING = "signing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ScoringClients:
    """Long-lived clients shared by every request. Optional integrations may be None."""

    prices: PriceOracle
    token_balances: TokenBalanceClient | None = None
    dex: DexSwapPairClient | None = None
    aave: AaveClient | None = None
    snapshot: SnapshotClient | None = None
    cyberconnect: CyberConnectClient | None = None
    greysafe: GreysafeClient | None = None
    chainanalysis: ChainanalysisClient | None = None
    hapi: HapiClient | None = None
    ens: EnsResolver | None = None


@dataclass
class PrimaryData:
    balance: str = "0"
    transactions: list[RawTransaction] = field(default_factory=list)
    internal_transactions: list[RawTransaction] = field(default_factory=list)
    erc20_events: list[TokenTransferEvent] = field(default_factory=list)
    nft_events: list[TokenTransferEvent] = field(default_factory=list)


@dataclass
class IndependentData:
    price: Decimal
    auxiliary: AuxiliaryData


class ScoringRun:
    """State of one request; logs every transition."""

    def __init__(self, request: WalletScoreRequest, chain: ChainAdapter) -> None:
        self.request = request
        self.chain = chain
        self.state = ScoringState.VALIDATING
        self.history: list[ScoringState] = [self.state]
        self.messages: list[str] = []
        self.log = bind_wallet(request.address, chain.chain_id).bind(score_type=request.score_type.value)

    def transition(self, state: ScoringState) -> None:
        self.state = state
        self.history.append(state)
        self.log.info("scoring_state", state=state.value)

    def fail(self, reason: str) -> None:
        self.log.warning("scoring_failed", state=self.state.value, reason=reason)
        self.state = ScoringState.FAILED
        self.history.append(ScoringState.FAILED)


async def gather_or_cancel(*aws: Awaitable[Any]) -> list[Any]:
    """asyncio.gather that cancels the remaining awaitables when one fails or the caller is cancelled."""
    tasks = [asyncio.ensure_future(a) for a in aws]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def _optional(enabled: bool, client: Any, fetch: Callable[[], Awaitable[Any]], name: str) -> Any:
    """Run an optional integration: off or unconfigured -> None, NoDataError -> None."""
    if not enabled:
        return None
    if client is None:
        logger.warning("integration_not_configured", integration=name)
        return None
    try:
        return await fetch()
    except NoDataError as e:
        logger.debug("integration_no_data", integration=name, reason=e.message)
        return None


class WalletScoringService:
    def __init__(
        self,
        clients: ScoringClients,
        signer: SbtSigner,
        recorder: Callable[..., Any] = save_scoring_record,
    ) -> None:
        self.clients = clients
        self.signer = signer
        self.recorder = recorder

    async def score_wallet(self, chain: ChainAdapter, request: WalletScoreRequest) -> WalletScoreResponse:
        run = ScoringRun(request, chain)
        try:
            response = await self._run(run)
        except asyncio.CancelledError:
            run.fail("cancelled")
            raise
        except WalletScoreError as e:
            run.fail(e.code)
            e.messages = run.messages + e.messages
            raise
        except Exception as e:
            run.fail(type(e).__name__)
            raise
        run.transition(ScoringState.DONE)
        return response

    async def _run(self, run: ScoringRun) -> WalletScoreResponse:
        request, chain = run.request, run.chain
        is_token = request.score_type is ScoreType.TOKEN
        token_address = ""
        if is_token:
            if not (request.token_address or "").strip():
                raise MissingRequiredInputError(TOKEN_ADDRESS_REQUIRED)
            token_address = validate_address(request.token_address).lower()

        address = await self._resolve_address(run)

        independent_task = asyncio.ensure_future(self._fetch_independent(chain, address, request, token_address))
        run.transition(ScoringState.FETCHING_PRIMARY)
        try:
            if is_token:
                primary, token_balance = await self._fetch_token_primary(chain, address, token_address)
            else:
                primary, token_balance = await self._fetch_primary(chain, address), "0"
        except BaseException:
            independent_task.cancel()
            await asyncio.gather(independent_task, return_exceptions=True)
            raise

        run.transition(ScoringState.FETCHING_AUXILIARY)
        independent = await independent_task
        if not is_token:
            await self._fetch_token_dependent(chain, address, request.options, primary, independent.auxiliary)

        run.transition(ScoringState.CALCULATING)
        inputs = CalculatorInputs(
            address=address,
            native_balance=primary.balance,
            native_decimals=chain.native_decimals,
            native_price_usd=independent.price,
            transactions=primary.transactions,
            internal_transactions=primary.internal_transactions,
            erc20_events=primary.erc20_events,
            nft_events=primary.nft_events,
            auxiliary=independent.auxiliary,
        )
        if is_token:
            stats = calculate_token_stats(inputs, token_address, token_balance, independent.price)
        else:
            stats = calculate_wallet_stats(inputs)

        run.transition(ScoringState.SCORING)
        score = calculate_score(stats)
        minted = minted_score(score)

        run.transition(ScoringState.PERSISTING)
        persisted = await self._persist(run, address, score, stats)

        run.transition(ScoringState.SIGNING)
        signature = self._sign(run, address, minted, request.options)
        run.messages.append(f"Got {chain.name} wallet {request.score_type.value} score.")

        run.log.info("wallet_scored", score=round(score, 6), minted_score=minted, persisted=persisted)
        return WalletScoreResponse(
            address=request.address,
            resolved_address=address,
            chain_id=chain.chain_id,
            score_type=request.score_type,
            stats=stats,
            score=score,
            minted_score=minted,
            signature=signature,
            persisted=persisted,
            messages=run.messages,
        )

    async def _resolve_address(self, run: ScoringRun) -> str:
        raw = run.request.address.strip()
        if is_ens_name(raw):
            run.transition(ScoringState.RESOLVING_NAME)
            if self.clients.ens is None:
                raise InvalidAddressError(f"Cannot resolve {raw!r}: name resolution is not configured")
            raw = await self.clients.ens.resolve(raw)
            run.messages.append(f"Resolved {run.request.address} to {raw}.")
        return validate_address(raw).lower()

    async def _fetch_primary(self, chain: ChainAdapter, address: str) -> PrimaryData:
        balance = await chain.get_balance(address)
        transactions = await chain.get_transactions(address, TransactionAction.NORMAL)
        internal = await chain.get_transactions(address, TransactionAction.INTERNAL)
        erc20 = await chain.get_transactions(address, TransactionAction.ERC20)
        erc721 = await chain.get_transactions(address, TransactionAction.ERC721)
        erc1155 = await chain.get_transactions(address, TransactionAction.ERC1155)
        return PrimaryData(
            balance=balance,
            transactions=transactions,
            internal_transactions=internal,
            erc20_events=erc20,
            nft_events=erc721 + erc1155,
        )

    async def _fetch_token_primary(
        self, chain: ChainAdapter, address: str, token_address: str
    ) -> tuple[PrimaryData, str]:
        token_balance = await chain.explorer.get_token_balance(address, token_address)
        erc20 = await chain.get_transactions(address, TransactionAction.ERC20)
        return PrimaryData(erc20_events=erc20), token_balance

    async def _fetch_independent(
        self,
        chain: ChainAdapter,
        address: str,
        request: WalletScoreRequest,
        token_address: str,
    ) -> IndependentData:
        c = self.clients
        opts = request.options
        descriptor = chain.descriptor
        if token_address:
            price_id = descriptor.token_id(token_address)
            price_aw = self._token_price(price_id)
        else:
            price_aw = c.prices.get_native_price(descriptor)

        results = await gather_or_cancel(
            price_aw,
            _optional(opts.get_aave_data, c.aave, lambda: c.aave.get_user_data(address, descriptor), "aave"),
            _optional(opts.get_snapshot_data, c.snapshot, lambda: c.snapshot.get_votes(address), "snapshot_votes"),
            _optional(
                opts.get_snapshot_data, c.snapshot, lambda: c.snapshot.get_proposals(address), "snapshot_proposals"
            ),
            _optional(opts.get_cyberconnect_data, c.cyberconnect, lambda: c.cyberconnect.get_data(address), "cyberconnect"),
            _optional(opts.use_greysafe, c.greysafe, lambda: c.greysafe.get_reports(address), "greysafe"),
            _optional(
                opts.use_chainanalysis, c.chainanalysis, lambda: c.chainanalysis.get_identifications(address), "chainanalysis"
            ),
            _optional(opts.use_hapi, c.hapi, lambda: c.hapi.get_risk_score(address, descriptor), "hapi"),
        )
        price, aave, votes, proposals, cyber, greysafe, chainanalysis, hapi = results
        return IndependentData(
            price=price,
            auxiliary=AuxiliaryData(
                aave_data=aave,
                snapshot_votes=votes,
                snapshot_proposals=proposals,
                cyberconnect_data=cyber,
                greysafe_reports=greysafe,
                chainanalysis_reports=chainanalysis,
                hapi_risk_score=hapi,
            ),
        )

    async def _token_price(self, price_id: str) -> Decimal:
        prices = await self.clients.prices.get_prices([price_id])
        return prices.get(price_id, Decimal(0))

    async def _fetch_token_dependent(
        self,
        chain: ChainAdapter,
        address: str,
        opts: ScoringOptions,
        primary: PrimaryData,
        auxiliary: AuxiliaryData,
    ) -> None:
        contracts: dict[str, tuple[str, int]] = {}
        for event in primary.erc20_events:
            if event.contract_address and event.contract_address not in contracts:
                contracts[event.contract_address] = (event.token_symbol, parse_decimals(event.token_decimal))
        if not contracts:
            return
        c = self.clients
        balances = await _optional(
            opts.use_token_balances or opts.get_holder_swap_pairs,
            c.token_balances,
            lambda: c.token_balances.get_token_balances(chain, address, contracts),
            "token_balances",
        )
        if opts.use_token_balances:
            auxiliary.token_balances = balances
        if balances:
            held = [b.contract_address for b in balances]
            auxiliary.dex_tokens_swap_pairs = await _optional(
                opts.get_holder_swap_pairs,
                c.dex,
                lambda: c.dex.get_swap_pairs(
                    chain.descriptor, held, first=opts.swap_pairs_first, skip=opts.swap_pairs_skip
                ),
                "dex_swap_pairs",
            )

    async def _persist(self, run: ScoringRun, address: str, score: float, stats: WalletStats) -> bool:
        try:
            await asyncio.to_thread(
                self.recorder,
                run.request.address,
                address,
                run.chain.chain_id,
                run.request.score_type.value,
                score,
                stats.to_json(),
            )
        except Exception as e:
            run.log.exception("scoring_record_save_failed", error=str(e))
            run.messages.append(PERSISTENCE_WARNING)
            return False
        return True

    def _sign(self, run: ScoringRun, address: str, minted: int, opts: ScoringOptions) -> str:
        descriptor = run.chain.descriptor
        score_type = run.request.score_type
        request = SignatureRequest(
            address=address,
            minted_score=minted,
            chain_id=descriptor.chain_id,
            chain_name=descriptor.name,
            score_type=score_type.value,
            score_type_code=score_type.code,
            contract_address=descriptor.sbt_contract_for(score_type),
            greysafe=opts.use_greysafe,
            chainanalysis=opts.use_chainanalysis,
            hapi=opts.use_hapi,
        )
        try:
            result = self.signer.sign(request)
        except SignatureFailureError:
            raise
        except Exception as e:
            raise SignatureFailureError("Failed to sign wallet score") from e
        run.messages.extend(result.messages)
        return result.signature
