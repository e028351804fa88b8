"""
FastAPI server: token balances and transaction history.

Builds the chain client, explorer client and transaction store once per
application (lifespan) and exposes them to routes as dependencies. Config via
env (see config/env.py).
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend_tokenlens import __version__
from backend_tokenlens.api_server.middleware import add_request_logging
from backend_tokenlens.api_server.responses import (
    GENERIC_ERROR,
    error_response,
    validation_error_response,
)
from backend_tokenlens.api_server.token_balance import router as token_balance_router
from backend_tokenlens.api_server.transactions import router as transactions_router
from backend_tokenlens.chain import ChainClient
from backend_tokenlens.config import Settings, get_settings
from backend_tokenlens.config.env import mask_url
from backend_tokenlens.core.exceptions import FieldError, ValidationError
from backend_tokenlens.database import TransactionStore
from backend_tokenlens.explorer import EtherscanClient
from backend_tokenlens.tokenlens_logging import get_logger

logger = get_logger(__name__)


# -----------------------------------------------------------------------------
# Lifespan: build collaborators that were not injected; close what we built
# -----------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create chain client, explorer client and store on startup; release them on shutdown."""
    settings: Settings = app.state.settings
    owned: list[Any] = []

    if getattr(app.state, "transaction_store", None) is None:
        store = TransactionStore(settings.database_url)
        store.init_db()
        app.state.transaction_store = store
        owned.append(store)
    if getattr(app.state, "chain_client", None) is None:
        app.state.chain_client = ChainClient.create(settings.eth_rpc_url, timeout_sec=settings.http_timeout_sec)
        owned.append(app.state.chain_client)
        logger.info("chain_client_ready", rpc=mask_url(settings.eth_rpc_url))
    if getattr(app.state, "explorer_client", None) is None:
        app.state.explorer_client = EtherscanClient(
            settings.etherscan_api_key,
            settings.etherscan_api_url,
            chain_id=settings.etherscan_chain_id,
            timeout=settings.http_timeout_sec,
        )
        owned.append(app.state.explorer_client)
        if not settings.etherscan_api_key:
            logger.warning("etherscan_api_key_missing")

    yield

    for resource in reversed(owned):
        try:
            if isinstance(resource, TransactionStore):
                resource.dispose()
            else:
                await resource.close()
        except Exception as e:
            logger.warning("shutdown_close_failed", resource=type(resource).__name__, error=str(e))
    logger.info("api_stopped")


# -----------------------------------------------------------------------------
# Error handlers
# -----------------------------------------------------------------------------


def _field_errors_from_request(exc: RequestValidationError) -> list[FieldError]:
    errors: list[FieldError] = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ())]
        location = loc[0] if loc else "body"
        param = ".".join(loc[1:]) if len(loc) > 1 else location
        errors.append(FieldError(param=param, msg=err.get("msg", "Invalid value"), value=err.get("input"), location=location))
    return errors


async def validation_exception_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return validation_error_response(exc.errors)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Schema-level failures (wrong JSON types, unreadable body) use the same 400 envelope."""
    return validation_error_response(_field_errors_from_request(exc))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", path=request.url.path, error=str(exc))
    return error_response(500, GENERIC_ERROR, str(exc))


# -----------------------------------------------------------------------------
# App factory
# -----------------------------------------------------------------------------


def create_app(
    settings: Settings | None = None,
    *,
    chain_client: ChainClient | None = None,
    explorer_client: EtherscanClient | None = None,
    transaction_store: TransactionStore | None = None,
) -> FastAPI:
    """
    Build the FastAPI app. Collaborators passed in are used as-is (and not
    closed on shutdown); missing ones are created from ``settings`` at startup.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Backend TokenLens API",
        description="ERC20 token balances and Ethereum wallet transaction history.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.chain_client = chain_client
    app.state.explorer_client = explorer_client
    app.state.transaction_store = transaction_store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    add_request_logging(app)

    app.add_exception_handler(ValidationError, validation_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(token_balance_router, prefix="/api")
    app.include_router(transactions_router, prefix="/api")

    @app.get("/health")
    def health() -> dict[str, str]:
        """Liveness probe: API is up."""
        return {"status": "ok"}

    return app
