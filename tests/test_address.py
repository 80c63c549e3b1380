"""
Tests for EVM address validation, ENS detection and chain descriptors.
"""

import asyncio
from unittest.mock import MagicMock

import pytest

CHECKSUMMED = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"


def test_valid_addresses_pass():
    from backend_walletscore.chains.address import validate_address

    assert validate_address(CHECKSUMMED) == CHECKSUMMED
    assert validate_address(CHECKSUMMED.lower()) == CHECKSUMMED.lower()
    assert validate_address(f"  {CHECKSUMMED}  ") == CHECKSUMMED


@pytest.mark.parametrize(
    "address",
    [
        "",
        "0x1234",
        "5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed",
        "0xZZZeb6053F3E94C9b9A09f33669435E7Ef1BeAed",
        # one letter's case flipped breaks the EIP-55 checksum
        "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAeD",
    ],
)
def test_invalid_addresses_rejected(address):
    from backend_walletscore.chains.address import validate_address
    from backend_walletscore.core.exceptions import InvalidAddressError

    with pytest.raises(InvalidAddressError):
        validate_address(address)


def test_ens_detection():
    from backend_walletscore.chains.address import is_ens_name

    assert is_ens_name("vitalik.eth")
    assert is_ens_name("Vitalik.ETH")
    assert not is_ens_name(CHECKSUMMED)


def test_ens_resolver_maps_failures_to_invalid_address():
    from backend_walletscore.chains.address import EnsResolver
    from backend_walletscore.core.exceptions import InvalidAddressError

    resolver = EnsResolver("http://localhost:8545")
    resolver._resolve_sync = MagicMock(return_value=CHECKSUMMED)
    assert asyncio.run(resolver.resolve("vitalik.eth")) == CHECKSUMMED

    resolver._resolve_sync = MagicMock(return_value=None)
    with pytest.raises(InvalidAddressError):
        asyncio.run(resolver.resolve("nobody.eth"))

    resolver._resolve_sync = MagicMock(side_effect=ConnectionError("rpc down"))
    with pytest.raises(InvalidAddressError):
        asyncio.run(resolver.resolve("vitalik.eth"))


def test_descriptors(monkeypatch):
    from backend_walletscore.chains.descriptors import ScoreType, build_descriptor

    monkeypatch.setenv("SBT_CONTRACT_GNOSIS_FINANCE", "0xfB6916095ca1df60bB79Ce92cE3Ea74c37c5d359")
    gnosis = build_descriptor("Gnosis")
    assert gnosis.chain_id == 100
    assert gnosis.native_currency.symbol == "xDAI"
    assert gnosis.sbt_contract_for(ScoreType.FINANCE) == "0xfB6916095ca1df60bB79Ce92cE3Ea74c37c5d359"
    assert gnosis.sbt_contract_for(ScoreType.TOKEN) == ""
    assert gnosis.token_id("0xABC") == "xdai:0xabc"
    assert build_descriptor("zksync-era").defillama_chain == "era"


def test_unknown_chain():
    from backend_walletscore.chains.descriptors import build_descriptor
    from backend_walletscore.core.exceptions import UnsupportedChainError

    with pytest.raises(UnsupportedChainError):
        build_descriptor("solana")
