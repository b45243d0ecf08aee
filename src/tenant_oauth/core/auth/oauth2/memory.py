# TenantAuth - Multi-tenant OAuth 2.0 Authorization Server
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""In-memory credential store and token ledger.

Used by the test suite and by ``storage_backend=memory`` for local runs. State
lives in the process; conditional updates run under one ``asyncio.Lock`` so they
behave like the single-statement updates of the PostgreSQL ledger.
"""

import asyncio
from datetime import datetime

from .models import (
    AccessToken,
    AuthorizationCode,
    Client,
    RefreshToken,
    Role,
    RoleAssignment,
)
from .storage import CredentialStore, TokenLedger


class InMemoryCredentialStore(CredentialStore):
    """Clients, roles and assignments held in dictionaries."""

    def __init__(self) -> None:
        self._clients: dict[str, Client] = {}
        self._roles: dict[str, Role] = {}
        self._assignments: dict[str, RoleAssignment] = {}

    def add_client(self, client: Client) -> Client:
        self._clients[client.client_id] = client
        return client

    def add_role(self, role: Role) -> Role:
        self._roles[role.id] = role
        return role

    def add_role_assignment(self, assignment: RoleAssignment) -> RoleAssignment:
        self._assignments[assignment.id] = assignment
        return assignment

    async def lookup_client(
        self, client_id: str, *, active_only: bool = True
    ) -> Client | None:
        client = self._clients.get(client_id)
        if client is None or (active_only and not client.is_active):
            return None
        return client

    async def lookup_roles(self, application_id: str) -> list[Role]:
        return [r for r in self._roles.values() if r.application_id == application_id]

    async def lookup_role_assignments(
        self, user_id: str, application_id: str
    ) -> list[RoleAssignment]:
        return [
            a
            for a in self._assignments.values()
            if a.user_id == user_id and a.application_id == application_id
        ]


class InMemoryTokenLedger(TokenLedger):
    """Codes and tokens keyed by their opaque value."""

    def __init__(self) -> None:
        self._codes: dict[str, AuthorizationCode] = {}
        self._access_tokens: dict[str, AccessToken] = {}
        self._refresh_tokens: dict[str, RefreshToken] = {}
        self._lock = asyncio.Lock()

    def get_authorization_code(self, code: str) -> AuthorizationCode | None:
        return self._codes.get(code)

    def get_access_token(self, token: str) -> AccessToken | None:
        return self._access_tokens.get(token)

    def get_refresh_token(self, token: str) -> RefreshToken | None:
        return self._refresh_tokens.get(token)

    async def insert_authorization_code(self, code: AuthorizationCode) -> None:
        async with self._lock:
            if code.code in self._codes:
                raise ValueError("Duplicate authorization code")
            self._codes[code.code] = code

    async def find_authorization_code(
        self, code: str, client_id: str, redirect_uri: str, now: datetime
    ) -> AuthorizationCode | None:
        row = self._codes.get(code)
        if row is None or not self._code_matches(row, client_id, redirect_uri, now):
            return None
        return row

    async def redeem_authorization_code(
        self,
        code: str,
        client_id: str,
        redirect_uri: str,
        assigned_roles: frozenset[str],
        now: datetime,
    ) -> AuthorizationCode | None:
        async with self._lock:
            row = self._codes.get(code)
            if row is None or not self._code_matches(row, client_id, redirect_uri, now):
                return None
            redeemed = row.model_copy(update={"used": True, "assigned_roles": assigned_roles})
            self._codes[code] = redeemed
            return redeemed

    async def store_token_pair(
        self, access_token: AccessToken, refresh_token: RefreshToken
    ) -> None:
        async with self._lock:
            if (
                access_token.token in self._access_tokens
                or refresh_token.token in self._refresh_tokens
            ):
                raise ValueError("Duplicate token value")
            self._access_tokens[access_token.token] = access_token
            self._refresh_tokens[refresh_token.token] = refresh_token

    async def rotate_refresh_token(
        self, refresh_token: str, now: datetime
    ) -> AccessToken | None:
        async with self._lock:
            row = self._refresh_tokens.get(refresh_token)
            if row is None or not row.is_active(now):
                return None
            self._refresh_tokens[refresh_token] = row.model_copy(update={"revoked": True})
            return self._revoke_access_by_id(row.access_token_id)

    async def find_active_access_token(
        self, token: str, now: datetime
    ) -> AccessToken | None:
        row = self._access_tokens.get(token)
        if row is None or not row.is_active(now):
            return None
        return row

    async def revoke_by_access_token(self, token: str) -> bool:
        async with self._lock:
            row = self._access_tokens.get(token)
            if row is None:
                return False
            self._access_tokens[token] = row.model_copy(update={"revoked": True})
            for key, refresh in list(self._refresh_tokens.items()):
                if refresh.access_token_id == row.id:
                    self._refresh_tokens[key] = refresh.model_copy(update={"revoked": True})
            return True

    async def revoke_by_refresh_token(self, token: str) -> bool:
        async with self._lock:
            row = self._refresh_tokens.get(token)
            if row is None:
                return False
            self._refresh_tokens[token] = row.model_copy(update={"revoked": True})
            self._revoke_access_by_id(row.access_token_id)
            return True

    @staticmethod
    def _code_matches(
        row: AuthorizationCode, client_id: str, redirect_uri: str, now: datetime
    ) -> bool:
        return (
            row.client_id == client_id
            and row.redirect_uri == redirect_uri
            and row.is_redeemable(now)
        )

    def _revoke_access_by_id(self, access_token_id: str) -> AccessToken | None:
        for key, access in self._access_tokens.items():
            if access.id == access_token_id:
                revoked = access.model_copy(update={"revoked": True})
                self._access_tokens[key] = revoked
                return revoked
        return None
