# TenantAuth - Multi-tenant OAuth 2.0 Authorization Server
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Storage contracts consumed by the grant engine.

The credential store is read-only reference data owned by the administration
surface. The token ledger is owned by the grant engine; every state transition
it exposes (code redemption, refresh rotation, revocation) is a conditional
update, so concurrent callers racing on the same code or token see at most one
winner.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from .models import (
    AccessToken,
    AuthorizationCode,
    Client,
    RefreshToken,
    Role,
    RoleAssignment,
)


class CredentialStore(ABC):
    """Lookup of clients, roles and role assignments."""

    @abstractmethod
    async def lookup_client(
        self, client_id: str, *, active_only: bool = True
    ) -> Client | None:
        """Find a client by its public ``client_id``."""

    @abstractmethod
    async def lookup_roles(self, application_id: str) -> list[Role]:
        """All roles (active or not) defined for an application."""

    @abstractmethod
    async def lookup_role_assignments(
        self, user_id: str, application_id: str
    ) -> list[RoleAssignment]:
        """All assignments of ``user_id`` for an application, unfiltered."""


class TokenLedger(ABC):
    """Persisted authorization codes, access tokens and refresh tokens."""

    @abstractmethod
    async def insert_authorization_code(self, code: AuthorizationCode) -> None:
        ...

    @abstractmethod
    async def find_authorization_code(
        self, code: str, client_id: str, redirect_uri: str, now: datetime
    ) -> AuthorizationCode | None:
        """Return the code only if it matches, is unused and unexpired."""

    @abstractmethod
    async def redeem_authorization_code(
        self,
        code: str,
        client_id: str,
        redirect_uri: str,
        assigned_roles: frozenset[str],
        now: datetime,
    ) -> AuthorizationCode | None:
        """Mark a redeemable code used and record its roles, in one step.

        Returns the updated code, or None when no unused, unexpired code
        matched (including when a concurrent caller redeemed it first).
        """

    @abstractmethod
    async def store_token_pair(
        self, access_token: AccessToken, refresh_token: RefreshToken
    ) -> None:
        """Persist both tokens or neither."""

    @abstractmethod
    async def rotate_refresh_token(
        self, refresh_token: str, now: datetime
    ) -> AccessToken | None:
        """Revoke an active refresh token together with its paired access token.

        Returns the revoked access token, or None when the refresh token was not
        active (unknown, revoked, expired, or lost a concurrent rotation).
        An active refresh token whose access token row is gone is still
        consumed and also yields None.
        """

    @abstractmethod
    async def find_active_access_token(
        self, token: str, now: datetime
    ) -> AccessToken | None:
        ...

    @abstractmethod
    async def revoke_by_access_token(self, token: str) -> bool:
        """Revoke an access token and its paired refresh token."""

    @abstractmethod
    async def revoke_by_refresh_token(self, token: str) -> bool:
        """Revoke a refresh token and its paired access token."""
