"""Bizcore API — FastAPI application factory."""


import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bizcore.core.config import Settings, settings as default_settings
from bizcore.core.exceptions import ConfigurationError, register_exception_handlers
from bizcore.core.security import CredentialService
from bizcore.db.base import build_engine, build_session_factory
from bizcore.db.gateway import QueryGateway
from bizcore.schemas.common import HealthResponse
from bizcore.services.audit import AuditRecorder

from bizcore.routers.v1.audit import router as audit_v1_router
from bizcore.routers.v1.auth import router as auth_v1_router
from bizcore.routers.v1.customers import router as customers_v1_router
from bizcore.routers.v1.role_permissions import router as role_permissions_v1_router
from bizcore.routers.v1.users import router as users_v1_router

logger = logging.getLogger("bizcore")


def _configure_logging(settings: Settings) -> None:
    """Set up structured logging for the application."""
    level = logging.DEBUG if settings.is_development else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True,
    )
    # Quiet noisy libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)


@asynccontextmanager
async def lifespan(app: FastAPI):
    health = await app.state.gateway.health_check()
    if health["status"] != "healthy":
        raise ConfigurationError(f"Database unreachable at startup: {health['error']}")
    logger.info("Database reachable, serving traffic")
    yield
    await app.state.audit.drain()
    await app.state.gateway.engine.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or default_settings
    _configure_logging(settings)

    # Process-wide resources; a missing signing secret aborts here.
    credentials = CredentialService(
        settings.jwt_secret, settings.jwt_expires_in, settings.jwt_algorithm
    )
    engine = build_engine(settings.sqlalchemy_url)
    session_factory = build_session_factory(engine)

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.credentials = credentials
    app.state.session_factory = session_factory
    app.state.gateway = QueryGateway(engine)
    app.state.audit = AuditRecorder(session_factory)

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    # --- Global exception handlers ---
    register_exception_handlers(app)

    # --- v1 API routes (/api/v1/*) ---
    app.include_router(auth_v1_router, prefix="/api/v1")
    app.include_router(customers_v1_router, prefix="/api/v1")
    app.include_router(audit_v1_router, prefix="/api/v1")
    app.include_router(users_v1_router, prefix="/api/v1")
    app.include_router(role_permissions_v1_router, prefix="/api/v1")

    # --- Health check ---
    @app.get("/health", response_model=HealthResponse, response_model_exclude_none=True, tags=["Health"])
    async def health():
        return await app.state.gateway.health_check()

    return app
