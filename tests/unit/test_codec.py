# TenantAuth - Multi-tenant OAuth 2.0 Authorization Server
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Unit tests for bearer token signing and verification."""

from datetime import timedelta

import pytest
from jose import jwt  # type: ignore[import-untyped]

from tenant_oauth.core.auth.oauth2.codec import (
    AdminClaims,
    OAuthAccessClaims,
    TenantClaims,
    TokenCodec,
)
from tests.fixtures.test_data import TEST_JWT_SECRET


@pytest.fixture
def access_claims() -> OAuthAccessClaims:
    return OAuthAccessClaims(
        client_id="demo-client",
        scope="read",
        jti="token-row-1",
        user_id="user-1",
        tenant_id="tenant-a",
        roles=["role-admin"],
        permissions=["users:read", "users:write"],
    )


class TestTokenCodec:
    """Tests for TokenCodec."""

    def test_issue_then_verify_returns_access_claims(self, codec, access_claims):
        """Test a freshly issued access token verifies to the same claims."""
        token = codec.issue(access_claims, timedelta(hours=1))

        claims = codec.verify(token)

        assert isinstance(claims, OAuthAccessClaims)
        assert claims.client_id == "demo-client"
        assert claims.user_id == "user-1"
        assert claims.roles == ["role-admin"]
        assert claims.permissions == ["users:read", "users:write"]
        assert claims.exp - claims.iat == 3600

    def test_issue_omits_unset_claims(self, codec):
        """Test None-valued claims are not written into the payload."""
        token = codec.issue(
            OAuthAccessClaims(client_id="demo-client", scope="read"), timedelta(minutes=5)
        )

        payload = jwt.get_unverified_claims(token)

        assert payload["type"] == "access_token"
        assert "user_id" not in payload
        assert "roles" not in payload

    def test_admin_and_tenant_claims_are_discriminated(self, codec):
        """Test the type field selects the claim shape."""
        admin = codec.verify(
            codec.issue(
                AdminClaims(id="admin-1", username="root", is_admin=True),
                timedelta(hours=1),
            )
        )
        tenant = codec.verify(
            codec.issue(
                TenantClaims(
                    id="tu-1",
                    username="alice",
                    tenant_id="tenant-a",
                    tenant_name="Tenant A",
                ),
                timedelta(hours=1),
            )
        )

        assert isinstance(admin, AdminClaims)
        assert admin.is_admin is True
        assert isinstance(tenant, TenantClaims)
        assert tenant.tenant_name == "Tenant A"

    def test_verify_rejects_expired_token(self, codec, access_claims):
        """Test an expired token yields None."""
        token = codec.issue(access_claims, timedelta(seconds=-30))

        assert codec.verify(token) is None

    def test_verify_rejects_tampered_signature(self, codec, access_claims):
        """Test a token with an altered signature yields None."""
        token = codec.issue(access_claims, timedelta(hours=1))
        header, payload, signature = token.split(".")
        flipped = ("A" if signature[0] != "A" else "B") + signature[1:]

        assert codec.verify(f"{header}.{payload}.{flipped}") is None

    def test_verify_rejects_token_signed_with_other_secret(self, access_claims):
        """Test a token from a different signing secret yields None."""
        other = TokenCodec("another-secret-that-is-long-enough-0123456789")
        token = other.issue(access_claims, timedelta(hours=1))

        assert TokenCodec(TEST_JWT_SECRET).verify(token) is None

    @pytest.mark.parametrize(
        "payload",
        [
            {"client_id": "demo-client", "scope": "read"},
            {"type": "mystery", "client_id": "demo-client"},
            {"type": "admin", "username": "root"},
            {"type": "access_token", "client_id": "demo-client", "scope": "read", "x": 1},
        ],
    )
    def test_verify_rejects_unknown_payload_shapes(self, payload):
        """Test payloads without a known, well-formed type yield None."""
        token = jwt.encode({**payload, "exp": 4102444800}, TEST_JWT_SECRET, "HS256")

        assert TokenCodec(TEST_JWT_SECRET).verify(token) is None

    def test_verify_rejects_token_without_expiry(self):
        """Test tokens that never expire are not accepted."""
        token = jwt.encode(
            {"type": "access_token", "client_id": "demo-client", "scope": "read"},
            TEST_JWT_SECRET,
            "HS256",
        )

        assert TokenCodec(TEST_JWT_SECRET).verify(token) is None

    @pytest.mark.parametrize("garbage", ["", "not-a-jwt", "a.b.c"])
    def test_verify_rejects_garbage(self, codec, garbage):
        """Test malformed input yields None rather than raising."""
        assert codec.verify(garbage) is None

    def test_empty_secret_is_rejected(self):
        """Test the codec refuses to sign without a secret."""
        with pytest.raises(ValueError):
            TokenCodec("")
