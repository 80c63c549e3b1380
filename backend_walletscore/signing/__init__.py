"""
Score attestation: EIP-712 signatures consumed by the soulbound-token contracts.
"""

from backend_walletscore.signing.sbt_signer import SbtSigner, SignatureRequest, SignatureResult

__all__ = ["SbtSigner", "SignatureRequest", "SignatureResult"]
