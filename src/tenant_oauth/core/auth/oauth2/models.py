# TenantAuth - Multi-tenant OAuth 2.0 Authorization Server
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Domain records shared by the credential store, the ledger and the engine."""

from datetime import datetime, timezone
from typing import Literal

from attrs import field, frozen
from pydantic import BaseModel, ConfigDict, Field

GrantType = Literal["authorization_code", "refresh_token"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OAuth2Model(BaseModel):
    """Base for immutable OAuth2 records."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_assignment=True,
        str_strip_whitespace=True,
        validate_default=True,
    )


class Client(OAuth2Model):
    """Registered client application. ``id`` doubles as the application id."""

    id: str = Field(..., min_length=1, description="Internal application identifier")
    client_id: str = Field(..., min_length=1, description="Public client identifier")
    client_secret: str = Field(..., description="Client secret")
    name: str = Field(..., description="Display name")
    redirect_uris: frozenset[str] = Field(default_factory=frozenset)
    grant_types: frozenset[GrantType] = Field(
        default_factory=lambda: frozenset({"authorization_code", "refresh_token"})
    )
    default_scope: str = Field(default="read")
    is_active: bool = Field(default=True)
    tenant_id: str | None = Field(default=None, description="Owning tenant")


class Role(OAuth2Model):
    id: str = Field(..., min_length=1)
    application_id: str = Field(..., min_length=1)
    role_name: str = Field(..., min_length=1)
    permissions: frozenset[str] = Field(default_factory=frozenset)
    is_active: bool = Field(default=True)


class RoleAssignment(OAuth2Model):
    """Grant of one role to one user for one application, optionally tenant-scoped."""

    id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    application_id: str = Field(..., min_length=1)
    role_id: str = Field(..., min_length=1)
    tenant_id: str | None = Field(default=None)
    expires_at: datetime | None = Field(default=None)
    is_active: bool = Field(default=True)


class AuthorizationCode(OAuth2Model):
    id: str = Field(..., min_length=1)
    code: str = Field(..., min_length=1)
    client_id: str
    redirect_uri: str
    scope: str
    requested_roles: frozenset[str] | None = Field(
        default=None, description="Role-name filter carried over from /authorize"
    )
    assigned_roles: frozenset[str] = Field(
        default_factory=frozenset, description="Role ids resolved at redemption"
    )
    used: bool = Field(default=False)
    expires_at: datetime
    created_at: datetime = Field(default_factory=utcnow)

    def is_redeemable(self, now: datetime) -> bool:
        return not self.used and now < self.expires_at


class AccessToken(OAuth2Model):
    id: str = Field(..., min_length=1, description="Row id, also the token's jti")
    token: str = Field(..., min_length=1, description="Signed bearer artifact")
    client_id: str
    scope: str
    user_id: str | None = Field(default=None)
    tenant_id: str | None = Field(default=None)
    assigned_roles: frozenset[str] = Field(default_factory=frozenset)
    revoked: bool = Field(default=False)
    expires_at: datetime
    created_at: datetime = Field(default_factory=utcnow)

    def is_active(self, now: datetime) -> bool:
        return not self.revoked and now < self.expires_at


class RefreshToken(OAuth2Model):
    id: str = Field(..., min_length=1)
    token: str = Field(..., min_length=1)
    access_token_id: str = Field(..., description="Paired access token (back-reference)")
    client_id: str
    user_id: str | None = Field(default=None)
    revoked: bool = Field(default=False)
    expires_at: datetime
    created_at: datetime = Field(default_factory=utcnow)

    def is_active(self, now: datetime) -> bool:
        return not self.revoked and now < self.expires_at


@frozen
class ResolvedRoles:
    """Role ids and the deduplicated union of their permissions."""

    role_ids: frozenset[str] = field(factory=frozenset)
    permissions: frozenset[str] = field(factory=frozenset)

    @property
    def is_empty(self) -> bool:
        return not self.role_ids


@frozen
class AuthorizationRedirect:
    """Outcome of a successful authorization request."""

    url: str = field()
    code: str = field()
    state: str | None = field(default=None)
