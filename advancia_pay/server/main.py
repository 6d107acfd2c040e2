"""
Main Application Entry Point.

This module initializes the FastAPI application, configures middleware (CORS,
request logging), registers exception handlers and API routers, and mounts
the Socket.IO server beside it. Serve ``asgi_app`` to get both:

    uvicorn advancia_pay.server.main:asgi_app
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from advancia_pay import __version__
from advancia_pay.core.database import init_db
from advancia_pay.core.logging_config import get_logger, setup_logging
from advancia_pay.core.monitoring import initialize_logfire

from .api.v1 import ai, auth, bookings, health, ledger, notifications, payments, users, webhooks, withdrawals
from .core import constant
from .core.config import settings
from .exception_handlers import setup_exception_handlers
from .middleware import RequestLoggingMiddleware
from .services.deps import get_realtime_gateway

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    Ensures the database schema exists before the first request.
    """
    try:
        logger.info("Starting up Advancia Pay Ledger...")
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)

    yield

    logger.info("Shutting down Advancia Pay Ledger...")


app = FastAPI(
    title=constant.PROJECT_NAME,
    description="""
    Advancia Pay Ledger API

    Balances, withdrawals with admin approval, card and crypto payments with
    provider webhooks, bookings, and admin AI tooling. Balance, transaction and
    withdrawal changes are pushed to clients over Socket.IO.
    """,
    version=__version__,
    openapi_url=f"{constant.API_PREFIX}/openapi.json",
    docs_url=f"{constant.API_PREFIX}/docs",
    redoc_url=f"{constant.API_PREFIX}/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=settings.cors.allow_methods,
    allow_headers=settings.cors.allow_headers,
)
app.add_middleware(RequestLoggingMiddleware)

setup_exception_handlers(app)

app.include_router(health.router, tags=["health"])
app.include_router(auth.router, prefix=f"{constant.API_PREFIX}/auth", tags=["auth"])
app.include_router(users.router, prefix=f"{constant.API_PREFIX}/users", tags=["users"])
app.include_router(withdrawals.router, prefix=f"{constant.API_PREFIX}/withdrawals", tags=["withdrawals"])
app.include_router(payments.router, prefix=f"{constant.API_PREFIX}/payments", tags=["payments"])
app.include_router(webhooks.router, prefix=f"{constant.API_PREFIX}/webhooks", tags=["webhooks"])
app.include_router(notifications.router, prefix=f"{constant.API_PREFIX}/notifications", tags=["notifications"])
app.include_router(bookings.router, prefix=f"{constant.API_PREFIX}/bookings", tags=["bookings"])
app.include_router(ledger.router, prefix=f"{constant.API_PREFIX}/ledger", tags=["ledger"])
app.include_router(ai.router, prefix=f"{constant.API_PREFIX}/ai", tags=["ai"])

initialize_logfire(app)

asgi_app = get_realtime_gateway().asgi_app(app, socketio_path=constant.SOCKETIO_PATH)
