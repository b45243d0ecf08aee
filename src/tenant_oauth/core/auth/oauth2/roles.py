# TenantAuth - Multi-tenant OAuth 2.0 Authorization Server
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Role and permission resolution folded into tokens at grant time."""

from collections.abc import Iterable
from datetime import datetime

from beartype import beartype

from ...logging_utils import get_logger
from .models import ResolvedRoles, Role, RoleAssignment, utcnow
from .storage import CredentialStore

logger = get_logger(__name__)


@beartype
def select_roles(
    assignments: Iterable[RoleAssignment],
    roles: Iterable[Role],
    *,
    application_id: str,
    tenant_id: str | None,
    allowed_role_names: frozenset[str] | None,
    now: datetime,
) -> ResolvedRoles:
    """Pick the roles a user effectively holds for one application.

    An assignment counts when it is active, unexpired and tenant-matched. With
    ``tenant_id`` both that tenant's assignments and unscoped ones match;
    without it only unscoped assignments do. The role itself must be active,
    belong to ``application_id`` and, when a filter is given, be named in it.
    """
    roles_by_id = {
        role.id: role
        for role in roles
        if role.is_active and role.application_id == application_id
    }

    role_ids: set[str] = set()
    permissions: set[str] = set()
    for assignment in assignments:
        if not assignment.is_active or assignment.application_id != application_id:
            continue
        if assignment.expires_at is not None and assignment.expires_at <= now:
            continue
        if assignment.tenant_id is not None and assignment.tenant_id != tenant_id:
            continue

        role = roles_by_id.get(assignment.role_id)
        if role is None:
            continue
        if allowed_role_names is not None and role.role_name not in allowed_role_names:
            continue

        role_ids.add(role.id)
        permissions.update(role.permissions)

    return ResolvedRoles(role_ids=frozenset(role_ids), permissions=frozenset(permissions))


class RoleResolver:
    """Reads assignments and roles from the credential store and selects from them."""

    def __init__(self, store: CredentialStore) -> None:
        self._store = store

    @beartype
    async def resolve(
        self,
        user_id: str,
        application_id: str,
        tenant_id: str | None = None,
        allowed_role_names: frozenset[str] | None = None,
        *,
        now: datetime | None = None,
    ) -> ResolvedRoles:
        assignments = await self._store.lookup_role_assignments(user_id, application_id)
        if not assignments:
            return ResolvedRoles()

        roles = await self._store.lookup_roles(application_id)
        resolved = select_roles(
            assignments,
            roles,
            application_id=application_id,
            tenant_id=tenant_id,
            allowed_role_names=allowed_role_names,
            now=now or utcnow(),
        )
        logger.debug(
            "Resolved %d role(s) for application %s", len(resolved.role_ids), application_id
        )
        return resolved
