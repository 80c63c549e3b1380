"""
Soulbound-token score signer.

- Builds EIP-712 typed data for MintScore(wallet, score, scoreType, chainId,
  greysafe, chainanalysis, hapi, deadline) on the chain's SBT contract.
- Signs with SBT_SIGNER_PRIVATE_KEY via eth_account; the contract verifies the
  signer and mints the uint16 score.
- Missing key or contract, or any signing error, raises SignatureFailureError.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

from eth_account import Account
from eth_account.messages import encode_typed_data
from web3 import Web3

from backend_walletscore.core.exceptions import SignatureFailureError
from backend_walletscore.walletscore_logging import get_logger

logger = get_logger(__name__)

DOMAIN_NAME = "WalletScoreSBT"
DOMAIN_VERSION = "1"
DEFAULT_DEADLINE_SEC = 3600

MINT_SCORE_TYPES = {
    "EIP712Domain": [
        {"name": "name", "type": "string"},
        {"name": "version", "type": "string"},
        {"name": "chainId", "type": "uint256"},
        {"name": "verifyingContract", "type": "address"},
    ],
    "MintScore": [
        {"name": "wallet", "type": "address"},
        {"name": "score", "type": "uint16"},
        {"name": "scoreType", "type": "uint8"},
        {"name": "chainId", "type": "uint256"},
        {"name": "greysafe", "type": "bool"},
        {"name": "chainanalysis", "type": "bool"},
        {"name": "hapi", "type": "bool"},
        {"name": "deadline", "type": "uint256"},
    ],
}


@dataclass(frozen=True)
class SignatureRequest:
    address: str
    minted_score: int
    chain_id: int
    chain_name: str
    score_type: str
    score_type_code: int
    contract_address: str
    greysafe: bool = False
    chainanalysis: bool = False
    hapi: bool = False


@dataclass
class SignatureResult:
    signature: str
    signer: str
    deadline: int
    messages: list[str] = field(default_factory=list)


def build_typed_data(request: SignatureRequest, deadline: int) -> dict[str, Any]:
    return {
        "types": MINT_SCORE_TYPES,
        "primaryType": "MintScore",
        "domain": {
            "name": DOMAIN_NAME,
            "version": DOMAIN_VERSION,
            "chainId": request.chain_id,
            "verifyingContract": Web3.to_checksum_address(request.contract_address),
        },
        "message": {
            "wallet": Web3.to_checksum_address(request.address),
            "score": request.minted_score,
            "scoreType": request.score_type_code,
            "chainId": request.chain_id,
            "greysafe": request.greysafe,
            "chainanalysis": request.chainanalysis,
            "hapi": request.hapi,
            "deadline": deadline,
        },
    }


class SbtSigner:
    """EIP-712 signer for minted scores."""

    def __init__(self, private_key: str, deadline_sec: int = DEFAULT_DEADLINE_SEC) -> None:
        self._private_key = (private_key or "").strip()
        self.deadline_sec = deadline_sec

    @property
    def signer_address(self) -> str:
        if not self._private_key:
            return ""
        return Account.from_key(self._private_key).address

    def sign(self, request: SignatureRequest) -> SignatureResult:
        if not self._private_key:
            raise SignatureFailureError("Score signer is not configured")
        if not request.contract_address:
            raise SignatureFailureError(
                f"No SBT contract configured for {request.chain_name} {request.score_type} score"
            )
        if not 0 <= request.minted_score <= 0xFFFF:
            raise SignatureFailureError("Minted score out of uint16 range")
        deadline = int(time.time()) + self.deadline_sec
        try:
            encoded = encode_typed_data(full_message=build_typed_data(request, deadline))
            signed = Account.sign_message(encoded, private_key=self._private_key)
        except Exception as e:
            logger.error("sbt_signing_failed", wallet=request.address, chain_id=request.chain_id, error=str(e))
            raise SignatureFailureError("Failed to sign wallet score") from e
        signer = Account.from_key(self._private_key).address
        logger.info(
            "sbt_score_signed",
            wallet=request.address,
            chain_id=request.chain_id,
            minted_score=request.minted_score,
            deadline=deadline,
        )
        return SignatureResult(
            signature=Web3.to_hex(signed.signature),
            signer=signer,
            deadline=deadline,
            messages=[f"Signed {request.chain_name} {request.score_type} score for SBT contract {request.contract_address}."],
        )


def recover_signer(request: SignatureRequest, result: SignatureResult) -> str:
    """Address that produced `result` for `request` (what the SBT contract checks)."""
    encoded = encode_typed_data(full_message=build_typed_data(request, result.deadline))
    return Account.recover_message(encoded, signature=result.signature)
