# TenantAuth - Multi-tenant OAuth 2.0 Authorization Server
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""OAuth2 authorization server implementation."""

import secrets
from datetime import timedelta
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit
from uuid import uuid4

from beartype import beartype

from ....schemas.oauth import IntrospectionResponse, TokenResponse
from ...config import Settings
from ...logging_utils import get_logger
from ...result_types import Err, Ok, Result
from .codec import AdminClaims, OAuthAccessClaims, TenantClaims, TokenCodec
from .errors import (
    InvalidClient,
    InvalidGrant,
    InvalidRedirectUri,
    InvalidRoles,
    OAuth2Error,
    ServerError,
    UnsupportedGrantType,
    UnsupportedResponseType,
    ValidationError,
)
from .models import (
    AccessToken,
    AuthorizationCode,
    AuthorizationRedirect,
    RefreshToken,
    ResolvedRoles,
    utcnow,
)
from .roles import RoleResolver
from .storage import CredentialStore, TokenLedger

logger = get_logger(__name__)


def _parse_role_names(roles: str | None) -> frozenset[str] | None:
    """Split a comma-separated role list; an empty string means no filter.

    A list with no names left after stripping parses to an empty set, which
    no application's roles can satisfy.
    """
    if not roles:
        return None
    return frozenset(name.strip() for name in roles.split(",") if name.strip())


def _append_query(url: str, **params: str | None) -> str:
    parts = urlsplit(url)
    query = parse_qsl(parts.query, keep_blank_values=True)
    query.extend((key, value) for key, value in params.items() if value is not None)
    return urlunsplit(parts._replace(query=urlencode(query)))


class OAuth2Server:
    """OAuth2 authorization server.

    Implements the authorization-code grant with refresh-token rotation and
    token introspection. All persistent state lives in the token ledger; the
    server itself holds only configuration, so a single instance can be shared
    by every request.
    """

    def __init__(
        self,
        credentials: CredentialStore,
        ledger: TokenLedger,
        codec: TokenCodec,
        settings: Settings,
        resolver: RoleResolver | None = None,
    ) -> None:
        """Initialize OAuth2 server."""
        self._credentials = credentials
        self._ledger = ledger
        self._codec = codec
        self._settings = settings
        self._resolver = resolver or RoleResolver(credentials)

        # Token settings
        self._access_token_expire = timedelta(hours=1)
        self._refresh_token_expire = timedelta(days=30)
        self._authorization_code_expire = timedelta(minutes=10)

        # Supported flows
        self._supported_grant_types = ["authorization_code", "refresh_token"]
        self._supported_response_types = ["code"]

    @beartype
    async def authorize(
        self,
        response_type: str | None,
        client_id: str | None,
        redirect_uri: str | None,
        scope: str | None = None,
        state: str | None = None,
        roles: str | None = None,
    ) -> Result[AuthorizationRedirect, OAuth2Error]:
        """Handle an authorization request and mint a single-use code.

        Args:
            response_type: Must be ``code``.
            client_id: Public client identifier.
            redirect_uri: Must exactly match one of the client's registered URIs.
            scope: Requested scope; the client's default scope when omitted.
            state: Opaque value echoed back on the redirect.
            roles: Optional comma-separated role names restricting what the
                code may later be exchanged for.

        Returns:
            Result containing the redirect target or an error.
        """
        try:
            if response_type not in self._supported_response_types:
                return Err(
                    UnsupportedResponseType(
                        f"Response type '{response_type}' is not supported"
                    )
                )

            client = await self._credentials.lookup_client(client_id) if client_id else None
            if client is None:
                return Err(InvalidClient("Client not found or inactive"))

            if not redirect_uri or redirect_uri not in client.redirect_uris:
                logger.warning(
                    "Rejected unregistered redirect_uri for client %s", client.client_id
                )
                return Err(
                    InvalidRedirectUri("redirect_uri is not registered for this client")
                )

            requested_roles = _parse_role_names(roles)
            if requested_roles is not None:
                available = {
                    role.role_name
                    for role in await self._credentials.lookup_roles(client.id)
                    if role.is_active
                }
                if not requested_roles:
                    return Err(InvalidRoles("Role list contains no role names"))
                unknown = requested_roles - available
                if unknown:
                    return Err(
                        InvalidRoles(
                            "Unknown or inactive roles: " + ", ".join(sorted(unknown))
                        )
                    )

            now = utcnow()
            code = AuthorizationCode(
                id=str(uuid4()),
                code=secrets.token_hex(32),
                client_id=client.client_id,
                redirect_uri=redirect_uri,
                scope=(scope or "").strip() or client.default_scope,
                requested_roles=requested_roles,
                expires_at=now + self._authorization_code_expire,
                created_at=now,
            )
            await self._ledger.insert_authorization_code(code)

            logger.info("Issued authorization code for client %s", client.client_id)
            return Ok(
                AuthorizationRedirect(
                    url=_append_query(redirect_uri, code=code.code, state=state),
                    code=code.code,
                    state=state,
                )
            )

        except Exception:
            logger.exception("Authorization request failed")
            return Err(ServerError())

    @beartype
    async def token(
        self,
        grant_type: str | None,
        code: str | None = None,
        redirect_uri: str | None = None,
        client_id: str | None = None,
        user_id: str | None = None,
        tenant_id: str | None = None,
    ) -> Result[TokenResponse, OAuth2Error]:
        """Exchange an authorization code for an access/refresh token pair.

        When ``user_id`` is given the user's roles for the client's
        application are resolved (filtered by ``tenant_id`` and by any role
        names requested at authorization time) and folded into the token.
        """
        try:
            if grant_type != "authorization_code":
                return Err(
                    UnsupportedGrantType(f"Grant type '{grant_type}' is not supported")
                )

            if not code or not redirect_uri or not client_id:
                missing = [
                    name
                    for name, value in (
                        ("code", code),
                        ("redirect_uri", redirect_uri),
                        ("client_id", client_id),
                    )
                    if not value
                ]
                return Err(
                    ValidationError("Missing required parameters: " + ", ".join(missing))
                )

            client = await self._credentials.lookup_client(client_id)
            if client is None:
                return Err(InvalidClient("Client not found or inactive", status_code=401))

            user_id = user_id or None
            tenant_id = (tenant_id or None) if user_id else None

            now = utcnow()
            pending = await self._ledger.find_authorization_code(
                code, client_id, redirect_uri, now
            )
            if pending is None:
                logger.warning("Rejected authorization code for client %s", client_id)
                return Err(InvalidGrant("Invalid or expired authorization code"))

            resolved = ResolvedRoles()
            if user_id:
                resolved = await self._resolver.resolve(
                    user_id,
                    client.id,
                    tenant_id,
                    pending.requested_roles,
                    now=now,
                )

            redeemed = await self._ledger.redeem_authorization_code(
                code, client_id, redirect_uri, resolved.role_ids, now
            )
            if redeemed is None:
                logger.warning(
                    "Authorization code for client %s was redeemed concurrently",
                    client_id,
                )
                return Err(InvalidGrant("Invalid or expired authorization code"))

            response = await self._issue_token_pair(
                client_id=client_id,
                scope=redeemed.scope,
                user_id=user_id,
                tenant_id=tenant_id,
                resolved=resolved,
            )
            logger.info(
                "Issued tokens for client %s with %d role(s)",
                client_id,
                len(resolved.role_ids),
            )
            return Ok(response)

        except Exception:
            logger.exception("Token request failed")
            return Err(ServerError())

    @beartype
    async def refresh(
        self,
        grant_type: str | None,
        refresh_token: str | None = None,
    ) -> Result[TokenResponse, OAuth2Error]:
        """Rotate a refresh token into a fresh token pair.

        The old refresh token and its paired access token are revoked. The new
        pair carries only the client and scope; user and role context is not
        carried across a refresh.
        """
        try:
            if grant_type != "refresh_token":
                return Err(
                    UnsupportedGrantType(f"Grant type '{grant_type}' is not supported")
                )
            if not refresh_token:
                return Err(ValidationError("Missing refresh_token parameter"))

            revoked = await self._ledger.rotate_refresh_token(refresh_token, utcnow())
            if revoked is None:
                logger.warning("Rejected refresh token")
                return Err(
                    InvalidGrant("Invalid or expired refresh token", status_code=401)
                )

            response = await self._issue_token_pair(
                client_id=revoked.client_id,
                scope=revoked.scope,
                user_id=None,
                tenant_id=None,
                resolved=ResolvedRoles(),
            )
            logger.info("Rotated refresh token for client %s", revoked.client_id)
            return Ok(response)

        except Exception:
            logger.exception("Refresh request failed")
            return Err(ServerError())

    @beartype
    async def introspect(
        self, token: str | None
    ) -> Result[IntrospectionResponse, OAuth2Error]:
        """Report whether a bearer token is active (RFC 7662).

        Any defect in the token itself yields ``active: false``; only a missing
        token parameter or a storage failure is an error.
        """
        if not token:
            return Err(ValidationError("Missing token parameter"))

        try:
            claims = self._codec.verify(token)
            if claims is None:
                return Ok(IntrospectionResponse(active=False))

            if isinstance(claims, (AdminClaims, TenantClaims)):
                return Ok(self._introspect_login_token(claims))

            record = await self._ledger.find_active_access_token(token, utcnow())
            if record is None:
                return Ok(IntrospectionResponse(active=False))

            client = await self._credentials.lookup_client(
                record.client_id, active_only=False
            )
            return Ok(
                IntrospectionResponse(
                    active=True,
                    scope=record.scope,
                    client_id=record.client_id,
                    client_name=client.name if client else None,
                    token_type="Bearer",
                    exp=claims.exp,
                    iat=claims.iat,
                    nbf=claims.iat,
                    sub=record.user_id or record.client_id,
                    aud=record.client_id,
                    iss=self._settings.jwt_issuer,
                    jti=record.id,
                    user_id=claims.user_id,
                    tenant_id=claims.tenant_id,
                    roles=claims.roles or None,
                    permissions=claims.permissions or None,
                )
            )

        except Exception:
            logger.exception("Introspection request failed")
            return Err(ServerError())

    @beartype
    async def revoke(
        self, token: str | None, token_type_hint: str | None = None
    ) -> Result[bool, OAuth2Error]:
        """Revoke a token and its pair (RFC 7009).

        Returns whether anything was revoked; unknown tokens are not an error.
        """
        if not token:
            return Err(ValidationError("Missing token parameter"))

        try:
            if token_type_hint == "refresh_token":
                attempts = [
                    self._ledger.revoke_by_refresh_token,
                    self._ledger.revoke_by_access_token,
                ]
            else:
                attempts = [
                    self._ledger.revoke_by_access_token,
                    self._ledger.revoke_by_refresh_token,
                ]

            for attempt in attempts:
                if await attempt(token):
                    logger.info("Revoked token pair")
                    return Ok(True)
            return Ok(False)

        except Exception:
            logger.exception("Revocation request failed")
            return Err(ServerError())

    @beartype
    def server_metadata(self, base_url: str) -> dict[str, Any]:
        """Authorization server metadata (RFC 8414)."""
        base = base_url.rstrip("/")
        return {
            "issuer": self._settings.jwt_issuer,
            "authorization_endpoint": f"{base}/oauth/authorize",
            "token_endpoint": f"{base}/oauth/token",
            "introspection_endpoint": f"{base}/oauth/introspect",
            "revocation_endpoint": f"{base}/oauth/revoke",
            "response_types_supported": list(self._supported_response_types),
            "grant_types_supported": list(self._supported_grant_types),
            "token_endpoint_auth_methods_supported": ["none"],
            "introspection_endpoint_auth_methods_supported": ["none"],
            "scopes_supported": ["read", "write"],
        }

    async def _issue_token_pair(
        self,
        *,
        client_id: str,
        scope: str,
        user_id: str | None,
        tenant_id: str | None,
        resolved: ResolvedRoles,
    ) -> TokenResponse:
        now = utcnow()
        access_id = str(uuid4())

        claims = OAuthAccessClaims(
            client_id=client_id,
            scope=scope,
            jti=access_id,
            user_id=user_id,
            tenant_id=tenant_id,
            roles=sorted(resolved.role_ids) if user_id else None,
            permissions=sorted(resolved.permissions) if user_id else None,
        )
        signed = self._codec.issue(claims, self._access_token_expire)

        access_token = AccessToken(
            id=access_id,
            token=signed,
            client_id=client_id,
            scope=scope,
            user_id=user_id,
            tenant_id=tenant_id,
            assigned_roles=resolved.role_ids,
            expires_at=now + self._access_token_expire,
            created_at=now,
        )
        refresh_token = RefreshToken(
            id=str(uuid4()),
            token=secrets.token_hex(32),
            access_token_id=access_id,
            client_id=client_id,
            user_id=user_id,
            expires_at=now + self._refresh_token_expire,
            created_at=now,
        )
        await self._ledger.store_token_pair(access_token, refresh_token)

        return TokenResponse(
            access_token=signed,
            token_type="Bearer",
            expires_in=int(self._access_token_expire.total_seconds()),
            refresh_token=refresh_token.token,
            scope=scope,
            roles=sorted(resolved.role_ids) or None,
            permissions=sorted(resolved.permissions) or None,
        )

    def _introspect_login_token(
        self, claims: AdminClaims | TenantClaims
    ) -> IntrospectionResponse:
        """Describe an admin or tenant login token; these have no ledger row."""
        fields: dict[str, Any] = {
            "active": True,
            "scope": claims.type,
            "username": claims.username,
            "token_type": "Bearer",
            "exp": claims.exp,
            "iat": claims.iat,
            "nbf": claims.iat,
            "sub": claims.id,
            "aud": self._settings.jwt_audience,
            "iss": self._settings.jwt_issuer,
            "user_type": claims.type,
            "user_id": claims.id,
            "is_admin": claims.is_admin,
        }
        if isinstance(claims, TenantClaims):
            fields["tenant_id"] = claims.tenant_id
            fields["tenant_name"] = claims.tenant_name
        return IntrospectionResponse(**fields)
