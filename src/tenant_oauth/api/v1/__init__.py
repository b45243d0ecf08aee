# TenantAuth - Multi-tenant OAuth 2.0 Authorization Server
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""HTTP routers."""

from fastapi import APIRouter

from .health import router as health_router
from .oauth2 import metadata_router as oauth2_metadata_router
from .oauth2 import router as oauth2_router

router = APIRouter()

router.include_router(health_router, tags=["health"])
router.include_router(oauth2_router)
router.include_router(oauth2_metadata_router)


__all__ = ["router"]
