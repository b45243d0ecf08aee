# TenantAuth - Multi-tenant OAuth 2.0 Authorization Server
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""OAuth2 authorization endpoints."""

from typing import Annotated, Any

from beartype import beartype
from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse

from ...core.auth.oauth2 import OAuth2Server
from ...core.config import Settings
from ...core.csrf import CSRF_COOKIE_NAME, CSRFProtect
from ...schemas.oauth import (
    CSRFTokenResponse,
    IntrospectRequest,
    RefreshTokenRequest,
    RevokeRequest,
    TokenRequest,
)
from ..dependencies import (
    get_app_settings,
    get_csrf_protect,
    get_oauth2_server,
    parse_params,
    read_params,
    require_csrf_token,
)
from ..response_patterns import NO_STORE_HEADERS, handle_result, oauth_error_response

router = APIRouter(prefix="/oauth", tags=["oauth2"])
metadata_router = APIRouter(tags=["oauth2"])


@router.get("/authorize")
@beartype
async def authorize(
    oauth2_server: Annotated[OAuth2Server, Depends(get_oauth2_server)],
    response_type: Annotated[
        str | None, Query(description="OAuth2 response type (code)")
    ] = None,
    client_id: Annotated[str | None, Query(description="OAuth2 client ID")] = None,
    redirect_uri: Annotated[
        str | None, Query(description="Registered redirect URI")
    ] = None,
    scope: Annotated[str | None, Query(description="Requested scope")] = None,
    state: Annotated[
        str | None, Query(description="Opaque value echoed on the redirect")
    ] = None,
    roles: Annotated[
        str | None, Query(description="Comma-separated role names")
    ] = None,
) -> Response:
    """OAuth2 authorization endpoint.

    Redirects to the client with ``code`` (and ``state``) on success. Errors
    are returned as JSON and never redirected, since the redirect target may
    be the thing that failed validation.
    """
    result = await oauth2_server.authorize(
        response_type=response_type,
        client_id=client_id,
        redirect_uri=redirect_uri,
        scope=scope,
        state=state,
        roles=roles,
    )

    if result.is_err():
        return oauth_error_response(result.unwrap_err())

    return RedirectResponse(url=result.unwrap().url, status_code=302)


@router.post("/token", dependencies=[Depends(require_csrf_token)])
@beartype
async def token(
    params: Annotated[dict[str, Any], Depends(read_params)],
    oauth2_server: Annotated[OAuth2Server, Depends(get_oauth2_server)],
) -> JSONResponse:
    """OAuth2 token endpoint for the authorization_code grant."""
    request = parse_params(TokenRequest, params)
    result = await oauth2_server.token(
        grant_type=request.grant_type,
        code=request.code,
        redirect_uri=request.redirect_uri,
        client_id=request.client_id,
        user_id=request.user_id,
        tenant_id=request.tenant_id,
    )
    return handle_result(result, headers=NO_STORE_HEADERS)


@router.post("/token/refresh", dependencies=[Depends(require_csrf_token)])
@beartype
async def refresh_token(
    params: Annotated[dict[str, Any], Depends(read_params)],
    oauth2_server: Annotated[OAuth2Server, Depends(get_oauth2_server)],
) -> JSONResponse:
    """Rotate a refresh token into a new token pair."""
    request = parse_params(RefreshTokenRequest, params)
    result = await oauth2_server.refresh(
        grant_type=request.grant_type,
        refresh_token=request.refresh_token,
    )
    return handle_result(result, headers=NO_STORE_HEADERS)


@router.post("/introspect")
@beartype
async def introspect(
    params: Annotated[dict[str, Any], Depends(read_params)],
    oauth2_server: Annotated[OAuth2Server, Depends(get_oauth2_server)],
) -> JSONResponse:
    """OAuth2 token introspection endpoint (RFC 7662).

    Any token defect is reported as ``{"active": false}`` with status 200.
    """
    request = parse_params(IntrospectRequest, params)
    return handle_result(await oauth2_server.introspect(request.token))


@router.post("/revoke")
@beartype
async def revoke(
    params: Annotated[dict[str, Any], Depends(read_params)],
    oauth2_server: Annotated[OAuth2Server, Depends(get_oauth2_server)],
) -> JSONResponse:
    """OAuth2 token revocation endpoint (RFC 7009)."""
    request = parse_params(RevokeRequest, params)
    result = await oauth2_server.revoke(request.token, request.token_type_hint)

    if result.is_err():
        return oauth_error_response(result.unwrap_err())

    # Unknown tokens are not an error for the caller
    return JSONResponse(status_code=200, content={})


@router.get("/csrf-token")
@beartype
async def csrf_token(
    request: Request,
    csrf: Annotated[CSRFProtect, Depends(get_csrf_protect)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> JSONResponse:
    """Issue a CSRF token, setting the secret cookie it is bound to."""
    secret = request.cookies.get(CSRF_COOKIE_NAME) or csrf.new_secret()
    body = CSRFTokenResponse(csrf_token=csrf.create_token(secret))

    response = JSONResponse(content=body.model_dump())
    response.set_cookie(
        CSRF_COOKIE_NAME,
        secret,
        httponly=True,
        samesite="strict",
        secure=settings.is_production,
    )
    return response


@metadata_router.get("/.well-known/oauth-authorization-server")
@beartype
async def oauth_metadata(
    request: Request,
    oauth2_server: Annotated[OAuth2Server, Depends(get_oauth2_server)],
) -> dict[str, Any]:
    """OAuth2 authorization server metadata endpoint (RFC 8414)."""
    return oauth2_server.server_metadata(str(request.base_url))
