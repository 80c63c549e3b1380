"""
Backend WalletScore: multi-chain EVM wallet scoring service.

Fetches explorer and protocol data for a wallet, derives wallet statistics,
computes a bounded score, records it and returns a signed attestation.
One generic engine serves every supported chain through a chain adapter.
"""

__version__ = "0.1.0"
