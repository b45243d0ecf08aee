# TenantAuth - Multi-tenant OAuth 2.0 Authorization Server
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""PostgreSQL credential store and token ledger (asyncpg).

State transitions are single conditional ``UPDATE ... RETURNING`` statements:
the row only changes if it still satisfies the guard, and the returned row tells
the caller whether it won. Statements that must land together share one
transaction from :meth:`Database.transaction`.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from beartype import beartype

from ...database import Database
from .models import (
    AccessToken,
    AuthorizationCode,
    Client,
    RefreshToken,
    Role,
    RoleAssignment,
)
from .storage import CredentialStore, TokenLedger

_CODE_COLUMNS = """
    id, code, client_id, redirect_uri, scope, requested_roles,
    assigned_roles, used, expires_at, created_at
"""

_ACCESS_TOKEN_COLUMNS = """
    id, token, client_id, scope, user_id, tenant_id,
    assigned_roles, revoked, expires_at, created_at
"""


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


def _as_uuid(value: str) -> UUID:
    return UUID(value)


def _client_from_row(row: Any) -> Client:
    return Client(
        id=str(row["id"]),
        client_id=row["client_id"],
        client_secret=row["client_secret"],
        name=row["name"],
        redirect_uris=frozenset(row["redirect_uris"] or ()),
        grant_types=frozenset(row["grant_types"] or ()),
        default_scope=row["default_scope"],
        is_active=row["is_active"],
        tenant_id=_optional_str(row["tenant_id"]),
    )


def _code_from_row(row: Any) -> AuthorizationCode:
    requested = row["requested_roles"]
    return AuthorizationCode(
        id=str(row["id"]),
        code=row["code"],
        client_id=row["client_id"],
        redirect_uri=row["redirect_uri"],
        scope=row["scope"],
        requested_roles=None if requested is None else frozenset(requested),
        assigned_roles=frozenset(row["assigned_roles"] or ()),
        used=row["used"],
        expires_at=row["expires_at"],
        created_at=row["created_at"],
    )


def _access_token_from_row(row: Any) -> AccessToken:
    return AccessToken(
        id=str(row["id"]),
        token=row["token"],
        client_id=row["client_id"],
        scope=row["scope"],
        user_id=row["user_id"],
        tenant_id=row["tenant_id"],
        assigned_roles=frozenset(row["assigned_roles"] or ()),
        revoked=row["revoked"],
        expires_at=row["expires_at"],
        created_at=row["created_at"],
    )


class PostgresCredentialStore(CredentialStore):
    """Reads ``oauth_clients``, ``application_roles`` and ``user_role_assignments``."""

    def __init__(self, db: Database) -> None:
        self._db = db

    @beartype
    async def lookup_client(
        self, client_id: str, *, active_only: bool = True
    ) -> Client | None:
        row = await self._db.fetchrow(
            """
            SELECT id, client_id, client_secret, name, redirect_uris, grant_types,
                   default_scope, is_active, tenant_id
            FROM oauth_clients
            WHERE client_id = $1 AND (is_active = true OR NOT $2)
            """,
            client_id,
            active_only,
        )
        return _client_from_row(row) if row else None

    @beartype
    async def lookup_roles(self, application_id: str) -> list[Role]:
        rows = await self._db.fetch(
            """
            SELECT id, application_id, role_name, permissions, is_active
            FROM application_roles
            WHERE application_id = $1
            """,
            _as_uuid(application_id),
        )
        return [
            Role(
                id=str(row["id"]),
                application_id=str(row["application_id"]),
                role_name=row["role_name"],
                permissions=frozenset(row["permissions"] or ()),
                is_active=row["is_active"],
            )
            for row in rows
        ]

    @beartype
    async def lookup_role_assignments(
        self, user_id: str, application_id: str
    ) -> list[RoleAssignment]:
        rows = await self._db.fetch(
            """
            SELECT id, user_id, application_id, role_id, tenant_id,
                   expires_at, is_active
            FROM user_role_assignments
            WHERE user_id = $1 AND application_id = $2
            """,
            user_id,
            _as_uuid(application_id),
        )
        return [
            RoleAssignment(
                id=str(row["id"]),
                user_id=row["user_id"],
                application_id=str(row["application_id"]),
                role_id=str(row["role_id"]),
                tenant_id=_optional_str(row["tenant_id"]),
                expires_at=row["expires_at"],
                is_active=row["is_active"],
            )
            for row in rows
        ]


class PostgresTokenLedger(TokenLedger):
    """Reads and writes ``authorization_codes``, ``access_tokens`` and ``refresh_tokens``."""

    def __init__(self, db: Database) -> None:
        self._db = db

    @beartype
    async def insert_authorization_code(self, code: AuthorizationCode) -> None:
        await self._db.execute(
            """
            INSERT INTO authorization_codes (
                id, code, client_id, redirect_uri, scope, requested_roles,
                assigned_roles, used, expires_at, created_at
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
            """,
            _as_uuid(code.id),
            code.code,
            code.client_id,
            code.redirect_uri,
            code.scope,
            None if code.requested_roles is None else sorted(code.requested_roles),
            sorted(code.assigned_roles),
            code.used,
            code.expires_at,
            code.created_at,
        )

    @beartype
    async def find_authorization_code(
        self, code: str, client_id: str, redirect_uri: str, now: datetime
    ) -> AuthorizationCode | None:
        row = await self._db.fetchrow(
            f"""
            SELECT {_CODE_COLUMNS}
            FROM authorization_codes
            WHERE code = $1 AND client_id = $2 AND redirect_uri = $3
              AND used = false AND expires_at > $4
            """,
            code,
            client_id,
            redirect_uri,
            now,
        )
        return _code_from_row(row) if row else None

    @beartype
    async def redeem_authorization_code(
        self,
        code: str,
        client_id: str,
        redirect_uri: str,
        assigned_roles: frozenset[str],
        now: datetime,
    ) -> AuthorizationCode | None:
        row = await self._db.fetchrow(
            f"""
            UPDATE authorization_codes
            SET used = true, assigned_roles = $4
            WHERE code = $1 AND client_id = $2 AND redirect_uri = $3
              AND used = false AND expires_at > $5
            RETURNING {_CODE_COLUMNS}
            """,
            code,
            client_id,
            redirect_uri,
            sorted(assigned_roles),
            now,
        )
        return _code_from_row(row) if row else None

    @beartype
    async def store_token_pair(
        self, access_token: AccessToken, refresh_token: RefreshToken
    ) -> None:
        async with self._db.transaction() as conn:
            await conn.execute(
                """
                INSERT INTO access_tokens (
                    id, token, client_id, scope, user_id, tenant_id,
                    assigned_roles, revoked, expires_at, created_at
                ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
                """,
                _as_uuid(access_token.id),
                access_token.token,
                access_token.client_id,
                access_token.scope,
                access_token.user_id,
                access_token.tenant_id,
                sorted(access_token.assigned_roles),
                access_token.revoked,
                access_token.expires_at,
                access_token.created_at,
            )
            await conn.execute(
                """
                INSERT INTO refresh_tokens (
                    id, token, access_token_id, client_id, user_id,
                    revoked, expires_at, created_at
                ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                """,
                _as_uuid(refresh_token.id),
                refresh_token.token,
                _as_uuid(refresh_token.access_token_id),
                refresh_token.client_id,
                refresh_token.user_id,
                refresh_token.revoked,
                refresh_token.expires_at,
                refresh_token.created_at,
            )

    @beartype
    async def rotate_refresh_token(
        self, refresh_token: str, now: datetime
    ) -> AccessToken | None:
        async with self._db.transaction() as conn:
            access_token_id = await conn.fetchval(
                """
                UPDATE refresh_tokens
                SET revoked = true
                WHERE token = $1 AND revoked = false AND expires_at > $2
                RETURNING access_token_id
                """,
                refresh_token,
                now,
            )
            if access_token_id is None:
                return None

            row = await conn.fetchrow(
                f"""
                UPDATE access_tokens
                SET revoked = true
                WHERE id = $1
                RETURNING {_ACCESS_TOKEN_COLUMNS}
                """,
                access_token_id,
            )
            return _access_token_from_row(row) if row else None

    @beartype
    async def find_active_access_token(
        self, token: str, now: datetime
    ) -> AccessToken | None:
        row = await self._db.fetchrow(
            f"""
            SELECT {_ACCESS_TOKEN_COLUMNS}
            FROM access_tokens
            WHERE token = $1 AND revoked = false AND expires_at > $2
            """,
            token,
            now,
        )
        return _access_token_from_row(row) if row else None

    @beartype
    async def revoke_by_access_token(self, token: str) -> bool:
        async with self._db.transaction() as conn:
            access_token_id = await conn.fetchval(
                "UPDATE access_tokens SET revoked = true WHERE token = $1 RETURNING id",
                token,
            )
            if access_token_id is None:
                return False
            await conn.execute(
                "UPDATE refresh_tokens SET revoked = true WHERE access_token_id = $1",
                access_token_id,
            )
            return True

    @beartype
    async def revoke_by_refresh_token(self, token: str) -> bool:
        async with self._db.transaction() as conn:
            access_token_id = await conn.fetchval(
                "UPDATE refresh_tokens SET revoked = true WHERE token = $1 RETURNING access_token_id",
                token,
            )
            if access_token_id is None:
                return False
            await conn.execute(
                "UPDATE access_tokens SET revoked = true WHERE id = $1",
                access_token_id,
            )
            return True
