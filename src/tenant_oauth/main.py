# TenantAuth - Multi-tenant OAuth 2.0 Authorization Server
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Authorization server application module."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from beartype import beartype
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .api.response_patterns import oauth_error_response
from .api.v1 import router as v1_router
from .core.auth.oauth2 import (
    CredentialStore,
    InMemoryCredentialStore,
    InMemoryTokenLedger,
    OAuth2Error,
    OAuth2Server,
    PostgresCredentialStore,
    PostgresTokenLedger,
    RoleResolver,
    TokenCodec,
    TokenLedger,
)
from .core.auth.oauth2.errors import ServerError, ValidationError
from .core.config import Settings, get_settings
from .core.csrf import CSRFProtect
from .core.database import Database
from .core.logging_utils import configure_logging, get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifecycle - startup and shutdown."""
    settings: Settings = app.state.settings
    database: Database | None = app.state.database

    logger.info(
        "Starting %s in %s mode (storage: %s)",
        settings.app_name,
        settings.api_env,
        settings.storage_backend,
    )
    if database is not None:
        await database.connect()

    yield

    logger.info("Shutting down %s", settings.app_name)
    if database is not None:
        await database.disconnect()


async def _oauth2_error_handler(request: Request, exc: OAuth2Error) -> JSONResponse:
    return oauth_error_response(exc)


async def _validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    return oauth_error_response(ValidationError("Malformed request parameters"))


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return oauth_error_response(ServerError())


def _build_storage(
    settings: Settings,
) -> tuple[CredentialStore, TokenLedger, Database | None]:
    if settings.storage_backend == "memory":
        return InMemoryCredentialStore(), InMemoryTokenLedger(), None

    database = Database(settings)
    return PostgresCredentialStore(database), PostgresTokenLedger(database), database


@beartype
def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    The grant engine and its collaborators are built once here and shared by
    every request through ``app.state``.

    Returns:
        FastAPI: Configured application instance
    """
    settings = settings or get_settings()
    configure_logging(level=settings.log_level)

    credentials, ledger, database = _build_storage(settings)
    codec = TokenCodec.from_settings(settings)

    app = FastAPI(
        title=settings.app_name,
        description="Multi-tenant OAuth 2.0 authorization server",
        version="0.1.0",
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        openapi_url="/openapi.json" if not settings.is_production else None,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.database = database
    app.state.credentials = credentials
    app.state.ledger = ledger
    app.state.codec = codec
    app.state.csrf = CSRFProtect.from_settings(settings)
    app.state.oauth2_server = OAuth2Server(
        credentials,
        ledger,
        codec,
        settings,
        resolver=RoleResolver(credentials),
    )

    app.add_exception_handler(OAuth2Error, _oauth2_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)

    app.include_router(v1_router)

    return app


@beartype
def main() -> None:
    """Run the main application entry point."""
    settings = get_settings()

    uvicorn.run(
        "tenant_oauth.main:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
        log_level="info" if not settings.is_production else "error",
    )


if __name__ == "__main__":
    main()
