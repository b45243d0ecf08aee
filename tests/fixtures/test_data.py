# TenantAuth - Multi-tenant OAuth 2.0 Authorization Server
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Fixture data shared by the unit and integration tests."""

from datetime import timedelta

from tenant_oauth.core.auth.oauth2.memory import InMemoryCredentialStore
from tenant_oauth.core.auth.oauth2.models import Client, Role, RoleAssignment, utcnow

TEST_JWT_SECRET = "test-jwt-secret-for-unit-tests-only-abcdefghijklmnop"
TEST_SECRET_KEY = "test-csrf-secret-key-for-unit-tests-only-0123456789"

APP_ID = "app-1"
OTHER_APP_ID = "app-2"
CLIENT_ID = "demo-client"
OTHER_CLIENT_ID = "other-client"
INACTIVE_CLIENT_ID = "retired-client"
REDIRECT_URI = "https://app.example.com/callback"
OTHER_REDIRECT_URI = "https://other.example.com/cb"

USER_ID = "user-1"
TENANT_A = "tenant-a"
TENANT_B = "tenant-b"


def seed_credentials(store: InMemoryCredentialStore) -> InMemoryCredentialStore:
    """Populate a credential store with the fixture applications and roles.

    ``user-1`` on ``app-1`` holds:

    * ``admin`` scoped to ``tenant-a``
    * ``viewer`` for every tenant
    * ``legacy`` for every tenant, but the role itself is inactive

    plus ``admin`` on ``app-2``, which must never leak into ``app-1`` tokens.
    """
    store.add_client(
        Client(
            id=APP_ID,
            client_id=CLIENT_ID,
            client_secret="demo-secret",
            name="Demo Application",
            redirect_uris=frozenset({REDIRECT_URI, "https://app.example.com/alt"}),
        )
    )
    store.add_client(
        Client(
            id=OTHER_APP_ID,
            client_id=OTHER_CLIENT_ID,
            client_secret="other-secret",
            name="Other Application",
            redirect_uris=frozenset({OTHER_REDIRECT_URI}),
            default_scope="read write",
        )
    )
    store.add_client(
        Client(
            id="app-3",
            client_id=INACTIVE_CLIENT_ID,
            client_secret="retired-secret",
            name="Retired Application",
            redirect_uris=frozenset({REDIRECT_URI}),
            is_active=False,
        )
    )

    store.add_role(
        Role(
            id="role-admin",
            application_id=APP_ID,
            role_name="admin",
            permissions=frozenset({"users:read", "users:write"}),
        )
    )
    store.add_role(
        Role(
            id="role-viewer",
            application_id=APP_ID,
            role_name="viewer",
            permissions=frozenset({"users:read"}),
        )
    )
    store.add_role(
        Role(
            id="role-legacy",
            application_id=APP_ID,
            role_name="legacy",
            permissions=frozenset({"legacy:all"}),
            is_active=False,
        )
    )
    store.add_role(
        Role(
            id="role-other-admin",
            application_id=OTHER_APP_ID,
            role_name="admin",
            permissions=frozenset({"billing:write"}),
        )
    )

    store.add_role_assignment(
        RoleAssignment(
            id="assign-1",
            user_id=USER_ID,
            application_id=APP_ID,
            role_id="role-admin",
            tenant_id=TENANT_A,
        )
    )
    store.add_role_assignment(
        RoleAssignment(
            id="assign-2", user_id=USER_ID, application_id=APP_ID, role_id="role-viewer"
        )
    )
    store.add_role_assignment(
        RoleAssignment(
            id="assign-3", user_id=USER_ID, application_id=APP_ID, role_id="role-legacy"
        )
    )
    store.add_role_assignment(
        RoleAssignment(
            id="assign-4",
            user_id=USER_ID,
            application_id=OTHER_APP_ID,
            role_id="role-other-admin",
        )
    )
    store.add_role_assignment(
        RoleAssignment(
            id="assign-5",
            user_id="user-expired",
            application_id=APP_ID,
            role_id="role-admin",
            expires_at=utcnow() - timedelta(days=1),
        )
    )
    store.add_role_assignment(
        RoleAssignment(
            id="assign-6",
            user_id="user-suspended",
            application_id=APP_ID,
            role_id="role-admin",
            is_active=False,
        )
    )
    return store
