"""
Application-level exceptions.

Every error carries a stable code, an HTTP status and a message that is safe to
return to API callers. Clients convert transport failures into these at their
boundary; the API layer renders them without stack traces.
"""

from __future__ import annotations


class WalletScoreError(Exception):
    """Base class for scoring errors."""

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str, *, messages: list[str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.messages = list(messages or [])

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


class InvalidAddressError(WalletScoreError):
    """Malformed or non-resolvable wallet address."""

    code = "INVALID_ADDRESS"
    status_code = 400


class MissingRequiredInputError(WalletScoreError):
    """A request field required by the chosen score type is absent."""

    code = "MISSING_REQUIRED_INPUT"
    status_code = 400


class UnsupportedChainError(WalletScoreError):
    code = "UNSUPPORTED_CHAIN"
    status_code = 404


class UpstreamUnavailableError(WalletScoreError):
    """Explorer or provider network/parsing failure after retries."""

    code = "UPSTREAM_UNAVAILABLE"
    status_code = 502

    def __init__(self, message: str, *, provider: str = "", messages: list[str] | None = None) -> None:
        super().__init__(message, messages=messages)
        self.provider = provider


class NoDataError(WalletScoreError):
    """Documented empty response from a provider. Recovered locally, never rendered."""

    code = "NO_DATA"
    status_code = 404


class SignatureFailureError(WalletScoreError):
    """Score computed but could not be attested."""

    code = "SIGNATURE_FAILURE"
    status_code = 500
