"""
Main entrypoint: run the WalletScore FastAPI server with uvicorn.

Env: API_HOST, API_PORT, LOG_LEVEL, LOG_FORMAT, explorer keys, SBT_SIGNER_PRIVATE_KEY, etc.
(see backend_walletscore/config/env.py).

Equivalent: uvicorn backend_walletscore.api_server.app:app --host 0.0.0.0 --port 8000
"""

import os

import uvicorn

# Configure structured logging before the app module logs anything
from backend_walletscore.config.env import load_walletscore_env
from backend_walletscore.walletscore_logging import get_logger

logger = get_logger("main")


def main() -> None:
    load_walletscore_env()
    api_host = os.getenv("API_HOST", "0.0.0.0").strip()
    api_port = int(os.getenv("API_PORT", "8000").strip() or "8000")
    logger.info("main_starting_api", host=api_host, port=api_port)
    uvicorn.run(
        "backend_walletscore.api_server.app:app",
        host=api_host,
        port=api_port,
        log_level=os.getenv("LOG_LEVEL", "info").strip().lower(),
    )


if __name__ == "__main__":
    main()
