"""
FastAPI application factory.
create_app() is the single entry point for building the app.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Callable, Optional

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.asynchronous.mongo_client import AsyncMongoClient

from config import AppSettings
from errors import register_error_handlers
from infrastructure.delivery.log_only import LogDeliveryChannel
from infrastructure.delivery.protocol import DeliveryChannel
from infrastructure.delivery.response import ResponseDeliveryChannel
from repositories.protocol import UserRepository
from repositories.user_repository import MongoUserRepository
from routes.auth_routes import router as auth_router
from routes.health_routes import router as health_router
from services.auth_service import AuthService
from services.password_reset_service import PasswordResetService
from services.session_service import SessionIssuer
from shared.crypto import PasswordHashing
from shared.datetime_utils import utcnow
from shared.logging import get_logger, setup_logging

log = get_logger(__name__)


def build_delivery_channel(settings: AppSettings) -> DeliveryChannel:
    """Raw recovery secrets are echoed in responses only outside production."""
    if settings.is_production:
        return LogDeliveryChannel()
    return ResponseDeliveryChannel()


def install_services(
    app: FastAPI,
    settings: AppSettings,
    users: UserRepository,
    clock: Callable[[], datetime] = utcnow,
) -> None:
    """Build the credential services once and store them on app.state."""
    passwords = PasswordHashing(settings.password)
    sessions = SessionIssuer(settings.jwt, clock=clock)
    min_length = settings.password.password_min_length

    app.state.auth_service = AuthService(users, sessions, passwords, clock=clock)
    app.state.password_reset_service = PasswordResetService(
        users,
        passwords,
        build_delivery_channel(settings),
        settings.recovery,
        min_password_length=min_length,
        clock=clock,
    )


def create_app(
    settings: Optional[AppSettings] = None,
    *,
    users: Optional[UserRepository] = None,
    clock: Callable[[], datetime] = utcnow,
) -> FastAPI:
    """Create and return a fully configured FastAPI application.

    Passing *users* skips the MongoDB connection and serves credentials from
    the given repository instead.
    """
    if settings is None:
        settings = AppSettings()

    setup_logging(settings.logging, is_production=settings.is_production)

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        app.state.settings = settings
        mongo_client: Optional[AsyncMongoClient] = None
        repository = users
        if repository is None:
            mongo_client = AsyncMongoClient(settings.db.mongodb_uri, tz_aware=True)
            app.state.mongo_client = mongo_client
            app.state.db = mongo_client[settings.db.db_name]
            repository = MongoUserRepository(app.state.db)
            await repository.ensure_indexes()
        else:
            app.state.db = None

        install_services(app, settings, repository, clock=clock)
        log.info("app_started", env=settings.env)

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        if mongo_client is not None:
            await mongo_client.close()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(auth_router)

    return app
