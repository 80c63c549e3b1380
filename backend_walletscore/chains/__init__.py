"""
Chains: descriptors for supported EVM networks, explorer client, address checks.
"""

from backend_walletscore.chains.adapter import ChainAdapter, build_chain_adapter
from backend_walletscore.chains.descriptors import (
    SUPPORTED_CHAINS,
    BlockchainDescriptor,
    ScoreType,
    build_descriptor,
)
from backend_walletscore.chains.explorer_client import ExplorerClient, TransactionAction

__all__ = [
    "SUPPORTED_CHAINS",
    "BlockchainDescriptor",
    "ChainAdapter",
    "ExplorerClient",
    "ScoreType",
    "TransactionAction",
    "build_chain_adapter",
    "build_descriptor",
]
