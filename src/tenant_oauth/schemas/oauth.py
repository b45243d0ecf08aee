# TenantAuth - Multi-tenant OAuth 2.0 Authorization Server
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""OAuth2 request and response schemas."""

from pydantic import BaseModel, ConfigDict, Field


class _RequestModel(BaseModel):
    """Incoming parameters. Unknown fields (``_csrf``, ``client_secret``) are ignored."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        str_strip_whitespace=True,
        coerce_numbers_to_str=True,
        validate_default=True,
    )


class _ResponseModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_assignment=True,
        validate_default=True,
    )


class TokenRequest(_RequestModel):
    """Authorization-code token request."""

    grant_type: str | None = None
    code: str | None = None
    redirect_uri: str | None = None
    client_id: str | None = None
    user_id: str | None = None
    tenant_id: str | None = None


class RefreshTokenRequest(_RequestModel):
    grant_type: str | None = None
    refresh_token: str | None = None


class IntrospectRequest(_RequestModel):
    token: str | None = None
    token_type_hint: str | None = None


class RevokeRequest(_RequestModel):
    token: str | None = None
    token_type_hint: str | None = None


class TokenResponse(_ResponseModel):
    """Successful token response (RFC 6749 section 5.1)."""

    access_token: str = Field(..., description="Signed bearer token")
    token_type: str = Field(default="Bearer")
    expires_in: int = Field(..., gt=0, description="Access token lifetime in seconds")
    refresh_token: str = Field(..., description="Single-use refresh token")
    scope: str = Field(..., description="Granted scope")
    roles: list[str] | None = Field(default=None, description="Assigned role ids")
    permissions: list[str] | None = Field(
        default=None, description="Union of the assigned roles' permissions"
    )


class IntrospectionResponse(_ResponseModel):
    """RFC 7662 introspection response with tenant/role extensions.

    Only ``active`` is always present on the wire; serialise with
    ``model_dump(exclude_none=True)``.
    """

    active: bool
    scope: str | None = None
    client_id: str | None = None
    client_name: str | None = None
    username: str | None = None
    token_type: str | None = None
    exp: int | None = None
    iat: int | None = None
    nbf: int | None = None
    sub: str | None = None
    aud: str | None = None
    iss: str | None = None
    jti: str | None = None
    user_id: str | None = None
    tenant_id: str | None = None
    tenant_name: str | None = None
    user_type: str | None = None
    is_admin: bool | None = None
    roles: list[str] | None = None
    permissions: list[str] | None = None


class OAuth2ErrorResponse(_ResponseModel):
    error: str = Field(..., description="RFC 6749 error code")
    error_description: str | None = Field(default=None)


class CSRFTokenResponse(_ResponseModel):
    csrf_token: str = Field(..., description="Send back in the X-CSRF-Token header")


class HealthResponse(_ResponseModel):
    status: str = Field(..., pattern=r"^(healthy|unhealthy)$")
    storage_backend: str
    server_time: str
