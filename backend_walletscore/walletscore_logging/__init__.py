"""
Structured logging for Backend WalletScore.

JSON logs with timestamp, event_type, wallet and chain context.
"""

from backend_walletscore.walletscore_logging.logger import bind_wallet, get_logger

__all__ = ["bind_wallet", "get_logger"]
