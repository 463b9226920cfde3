"""
Mock Payout Gateway - wallet and payout API with simulated settlement.

Users hold a wallet balance, register bank accounts and beneficiaries, and
submit payouts. A payout debits the wallet immediately and is settled a few
seconds later to SUCCESS or FAILED (refunded), with a notification either
way.

Start the server:
    uvicorn gateway.main:app --reload
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from gateway import __version__
from gateway.api.auth import router as auth_router
from gateway.api.health import router as health_router
from gateway.api.notifications import router as notifications_router
from gateway.api.payouts import router as payouts_router
from gateway.api.serializers import error_body
from gateway.api.wallet import router as wallet_router
from gateway.config import Settings, settings
from gateway.database import Database
from gateway.engine.accounts import ensure_default_user
from gateway.engine.settlement import SettlementWorker
from gateway.errors import GatewayError
from gateway.providers.base import SettlementProvider
from gateway.providers.mock_provider import MockSettlementProvider

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger("gateway.main")
request_logger = logging.getLogger("gateway.http")


def create_app(
    config: Optional[Settings] = None,
    provider: Optional[SettlementProvider] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        config: Settings; the environment-derived defaults when omitted.
        provider: Settlement strategy; a randomized mock built from the
            settings when omitted.
    """
    config = config or settings
    provider = provider or MockSettlementProvider.from_settings(config)
    db = Database(config.database_url)
    worker = SettlementWorker(
        db.session_factory,
        provider,
        currency=config.currency,
        max_retries=config.settlement_max_retries,
        timezone_offset_minutes=config.timezone_offset_minutes,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Create tables, seed the demo user, resume pending settlements."""
        await db.init()
        if config.create_default_user:
            await ensure_default_user(db.session_factory, config)
        await worker.recover()
        yield
        await worker.shutdown()
        await db.dispose()

    app = FastAPI(
        title="Mock Payout Gateway",
        description=(
            "Mock payout gateway with wallet balances, bank accounts, beneficiaries "
            "and notifications. Payouts are debited on submission and settled "
            "asynchronously to SUCCESS or FAILED, with refunds on failure."
        ),
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = config
    app.state.db = db
    app.state.settlement = worker

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        request_logger.info(
            "%s %s -> %d (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - start) * 1000,
        )
        return response

    _register_error_handlers(app)

    app.include_router(health_router)
    app.include_router(auth_router, prefix="/api")
    app.include_router(wallet_router, prefix="/api")
    app.include_router(payouts_router, prefix="/api")
    app.include_router(notifications_router, prefix="/api")
    return app


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(request.url.path, exc.status_code, exc.code, exc.message),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            first = errors[0]
            field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = f"Invalid {field}: {first.get('msg')}" if field else first.get("msg")
        else:
            message = "Invalid request"
        return JSONResponse(
            status_code=400,
            content=error_body(request.url.path, 400, "VALIDATION_ERROR", message),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            code, message = "NOT_FOUND", "Endpoint not found"
        else:
            code, message = "HTTP_ERROR", str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(request.url.path, exc.status_code, code, message),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content=error_body(request.url.path, 500, "SERVER_ERROR", "Internal server error"),
        )


app = create_app()
