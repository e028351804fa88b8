"""
Main entrypoint: FastAPI server for token balances and transaction history.

Env: ETH_RPC_URL, ETHERSCAN_API_KEY, DATABASE_URL, API_HOST, API_PORT (or PORT), etc.
See backend_tokenlens/config/env.py.

Equivalent: uvicorn backend_tokenlens.api_server.app:app --host 0.0.0.0 --port 8000
"""

import uvicorn

# Configure structured JSON logging before other imports that may log
from backend_tokenlens.tokenlens_logging import get_logger

logger = get_logger("main")


def main() -> None:
    """Load settings and run the API server in the main thread."""
    from backend_tokenlens.api_server.server import create_app
    from backend_tokenlens.config import get_settings

    settings = get_settings()
    app = create_app(settings)
    logger.info("main_api_starting", host=settings.api_host, port=settings.api_port)
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level="info")


if __name__ == "__main__":
    main()
