# TenantAuth - Multi-tenant OAuth 2.0 Authorization Server
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Unit tests for role and permission resolution."""

from datetime import timedelta

import pytest

from tenant_oauth.core.auth.oauth2.models import Role, RoleAssignment, utcnow
from tenant_oauth.core.auth.oauth2.roles import RoleResolver, select_roles
from tests.fixtures.test_data import APP_ID, OTHER_APP_ID, TENANT_A, TENANT_B, USER_ID


@pytest.fixture
def resolver(credentials):
    return RoleResolver(credentials)


class TestRoleResolver:
    """Tests for RoleResolver against the seeded credential store."""

    async def test_tenant_scoped_and_global_roles(self, resolver):
        """Test a tenant-matched assignment and a global one both apply."""
        resolved = await resolver.resolve(USER_ID, APP_ID, TENANT_A)

        assert resolved.role_ids == {"role-admin", "role-viewer"}
        assert resolved.permissions == {"users:read", "users:write"}

    async def test_without_tenant_only_global_roles_apply(self, resolver):
        """Test tenant-scoped assignments are excluded when no tenant is given."""
        resolved = await resolver.resolve(USER_ID, APP_ID)

        assert resolved.role_ids == {"role-viewer"}
        assert resolved.permissions == {"users:read"}

    async def test_other_tenant_excludes_scoped_roles(self, resolver):
        """Test an assignment scoped to tenant A does not apply in tenant B."""
        resolved = await resolver.resolve(USER_ID, APP_ID, TENANT_B)

        assert resolved.role_ids == {"role-viewer"}

    async def test_role_name_filter(self, resolver):
        """Test only roles named in the filter are kept."""
        resolved = await resolver.resolve(
            USER_ID, APP_ID, TENANT_A, frozenset({"admin"})
        )

        assert resolved.role_ids == {"role-admin"}

    async def test_inactive_role_is_never_granted(self, resolver):
        """Test an assignment to an inactive role contributes nothing."""
        resolved = await resolver.resolve(
            USER_ID, APP_ID, TENANT_A, frozenset({"legacy"})
        )

        assert resolved.is_empty
        assert resolved.permissions == frozenset()

    async def test_roles_do_not_leak_across_applications(self, resolver):
        """Test the other application's admin role stays in that application."""
        resolved = await resolver.resolve(USER_ID, OTHER_APP_ID)

        assert resolved.role_ids == {"role-other-admin"}
        assert resolved.permissions == {"billing:write"}

    @pytest.mark.parametrize("user_id", ["user-expired", "user-suspended", "nobody"])
    async def test_expired_inactive_or_missing_assignments(self, resolver, user_id):
        """Test expired, inactive and absent assignments resolve to nothing."""
        resolved = await resolver.resolve(user_id, APP_ID, TENANT_A)

        assert resolved.is_empty


class TestSelectRoles:
    """Tests for the pure selection function."""

    def test_permissions_are_deduplicated(self):
        """Test overlapping permissions appear once in the union."""
        now = utcnow()
        roles = [
            Role(id="r1", application_id="a", role_name="one", permissions=frozenset({"p", "q"})),
            Role(id="r2", application_id="a", role_name="two", permissions=frozenset({"q", "s"})),
        ]
        assignments = [
            RoleAssignment(id="x1", user_id="u", application_id="a", role_id="r1"),
            RoleAssignment(id="x2", user_id="u", application_id="a", role_id="r2"),
        ]

        resolved = select_roles(
            assignments,
            roles,
            application_id="a",
            tenant_id=None,
            allowed_role_names=None,
            now=now,
        )

        assert resolved.permissions == {"p", "q", "s"}

    def test_assignment_expiring_now_is_excluded(self):
        """Test an assignment whose expiry equals now no longer counts."""
        now = utcnow()
        roles = [Role(id="r1", application_id="a", role_name="one")]
        assignments = [
            RoleAssignment(
                id="x1", user_id="u", application_id="a", role_id="r1", expires_at=now
            ),
            RoleAssignment(
                id="x2",
                user_id="u",
                application_id="a",
                role_id="r1",
                expires_at=now - timedelta(seconds=1),
            ),
        ]

        resolved = select_roles(
            assignments,
            roles,
            application_id="a",
            tenant_id=None,
            allowed_role_names=None,
            now=now,
        )

        assert resolved.is_empty

    def test_assignment_to_unknown_role_is_ignored(self):
        """Test a dangling role reference contributes nothing."""
        resolved = select_roles(
            [RoleAssignment(id="x1", user_id="u", application_id="a", role_id="gone")],
            [],
            application_id="a",
            tenant_id=None,
            allowed_role_names=None,
            now=utcnow(),
        )

        assert resolved.is_empty
