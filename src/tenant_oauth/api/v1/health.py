# TenantAuth - Multi-tenant OAuth 2.0 Authorization Server
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Health check endpoint."""

from beartype import beartype
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from ...core.auth.oauth2.models import utcnow
from ...core.database import Database
from ...schemas.oauth import HealthResponse
from ..dependencies import get_app_settings

router = APIRouter()


@router.get("/health")
@beartype
async def health_check(request: Request) -> JSONResponse:
    """Report whether the token store is reachable.

    The in-memory backend is always healthy; the PostgreSQL backend runs a
    trivial query through the pool.
    """
    settings = get_app_settings(request)
    database: Database | None = getattr(request.app.state, "database", None)

    healthy = True
    if database is not None:
        healthy = await database.health_check()

    body = HealthResponse(
        status="healthy" if healthy else "unhealthy",
        storage_backend=settings.storage_backend,
        server_time=utcnow().isoformat(),
    )
    return JSONResponse(status_code=200 if healthy else 503, content=body.model_dump())
