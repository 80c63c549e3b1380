"""
Configuration for WalletScore.

Loads settings from environment variables and the project .env file and
exposes them as a single cached Settings object.
"""

from backend_walletscore.config.settings import Settings, get_settings  # noqa: F401

__all__ = ["Settings", "get_settings"]
