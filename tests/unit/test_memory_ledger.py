# TenantAuth - Multi-tenant OAuth 2.0 Authorization Server
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Unit tests for the in-memory token ledger."""

import asyncio
from datetime import timedelta

import pytest

from tenant_oauth.core.auth.oauth2.models import (
    AccessToken,
    AuthorizationCode,
    RefreshToken,
    utcnow,
)


def make_code(code: str = "c0de", **overrides) -> AuthorizationCode:
    now = utcnow()
    fields = {
        "id": f"row-{code}",
        "code": code,
        "client_id": "demo-client",
        "redirect_uri": "https://app.example.com/callback",
        "scope": "read",
        "expires_at": now + timedelta(minutes=10),
        "created_at": now,
    }
    fields.update(overrides)
    return AuthorizationCode(**fields)


def make_pair(suffix: str = "1", **refresh_overrides) -> tuple[AccessToken, RefreshToken]:
    now = utcnow()
    access = AccessToken(
        id=f"access-{suffix}",
        token=f"access-token-{suffix}",
        client_id="demo-client",
        scope="read",
        expires_at=now + timedelta(hours=1),
        created_at=now,
    )
    fields = {
        "id": f"refresh-{suffix}",
        "token": f"refresh-token-{suffix}",
        "access_token_id": access.id,
        "client_id": "demo-client",
        "expires_at": now + timedelta(days=30),
        "created_at": now,
    }
    fields.update(refresh_overrides)
    return access, RefreshToken(**fields)


class TestAuthorizationCodes:
    """Tests for code storage and redemption."""

    async def test_duplicate_code_rejected(self, ledger):
        await ledger.insert_authorization_code(make_code())

        with pytest.raises(ValueError):
            await ledger.insert_authorization_code(make_code())

    async def test_find_requires_matching_client_and_redirect(self, ledger):
        await ledger.insert_authorization_code(make_code())
        now = utcnow()

        assert await ledger.find_authorization_code(
            "c0de", "demo-client", "https://app.example.com/callback", now
        )
        assert (
            await ledger.find_authorization_code(
                "c0de", "other-client", "https://app.example.com/callback", now
            )
            is None
        )
        assert (
            await ledger.find_authorization_code(
                "c0de", "demo-client", "https://app.example.com/other", now
            )
            is None
        )

    async def test_redeem_marks_used_and_records_roles(self, ledger):
        await ledger.insert_authorization_code(make_code())

        redeemed = await ledger.redeem_authorization_code(
            "c0de",
            "demo-client",
            "https://app.example.com/callback",
            frozenset({"role-viewer"}),
            utcnow(),
        )

        assert redeemed.used is True
        assert redeemed.assigned_roles == {"role-viewer"}
        assert ledger.get_authorization_code("c0de").used is True

    async def test_concurrent_redeem_single_winner(self, ledger):
        """Test only one of many racing redemptions succeeds."""
        await ledger.insert_authorization_code(make_code())
        now = utcnow()

        results = await asyncio.gather(
            *(
                ledger.redeem_authorization_code(
                    "c0de",
                    "demo-client",
                    "https://app.example.com/callback",
                    frozenset(),
                    now,
                )
                for _ in range(25)
            )
        )

        assert sum(r is not None for r in results) == 1

    async def test_expired_code_not_redeemable(self, ledger):
        now = utcnow()
        await ledger.insert_authorization_code(
            make_code(expires_at=now - timedelta(seconds=1))
        )

        assert (
            await ledger.redeem_authorization_code(
                "c0de", "demo-client", "https://app.example.com/callback", frozenset(), now
            )
            is None
        )


class TestTokenPairs:
    """Tests for token pair storage, rotation and revocation."""

    async def test_rotate_revokes_both(self, ledger):
        access, refresh = make_pair()
        await ledger.store_token_pair(access, refresh)

        revoked = await ledger.rotate_refresh_token(refresh.token, utcnow())

        assert revoked.id == access.id
        assert revoked.revoked is True
        assert ledger.get_refresh_token(refresh.token).revoked is True
        assert await ledger.find_active_access_token(access.token, utcnow()) is None

    async def test_rotate_expired_refresh_token(self, ledger):
        access, refresh = make_pair(expires_at=utcnow() - timedelta(seconds=1))
        await ledger.store_token_pair(access, refresh)

        assert await ledger.rotate_refresh_token(refresh.token, utcnow()) is None
        assert ledger.get_access_token(access.token).revoked is False

    async def test_duplicate_token_value_rejected(self, ledger):
        access, refresh = make_pair()
        await ledger.store_token_pair(access, refresh)

        with pytest.raises(ValueError):
            await ledger.store_token_pair(*make_pair())

    async def test_revocation_only_touches_its_pair(self, ledger):
        first = make_pair("1")
        second = make_pair("2")
        await ledger.store_token_pair(*first)
        await ledger.store_token_pair(*second)

        assert await ledger.revoke_by_access_token(first[0].token) is True

        assert ledger.get_refresh_token(first[1].token).revoked is True
        assert ledger.get_access_token(second[0].token).revoked is False
        assert ledger.get_refresh_token(second[1].token).revoked is False

    async def test_revoke_unknown_token(self, ledger):
        assert await ledger.revoke_by_access_token("missing") is False
        assert await ledger.revoke_by_refresh_token("missing") is False

    async def test_rotate_consumes_refresh_token_without_access_row(self, ledger):
        access, refresh = make_pair()
        await ledger.store_token_pair(access, refresh)
        del ledger._access_tokens[access.token]

        assert await ledger.rotate_refresh_token(refresh.token, utcnow()) is None
        assert ledger.get_refresh_token(refresh.token).revoked is True
