"""Initial OAuth2 schema.

Revision ID: 001
Revises:
Create Date: 2025-07-01

Creates the tables read by the credential store and written by the token
ledger:
1. tenants - tenant registry referenced by clients and role assignments
2. oauth_clients - registered client applications
3. application_roles / user_role_assignments - per-application RBAC
4. authorization_codes, access_tokens, refresh_tokens - the token ledger
"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        nullable=False,
        server_default=sa.text("gen_random_uuid()"),
    )


def _created_at_column() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("CURRENT_TIMESTAMP"),
    )


def upgrade() -> None:
    """Create OAuth2 tables."""
    op.execute("CREATE EXTENSION IF NOT EXISTS pgcrypto")

    op.create_table(
        "tenants",
        _id_column(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at_column(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_tenants")),
        sa.UniqueConstraint("name", name=op.f("uq_tenants_name")),
    )

    op.create_table(
        "oauth_clients",
        _id_column(),
        sa.Column("client_id", sa.String(255), nullable=False),
        sa.Column("client_secret", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column(
            "redirect_uris",
            postgresql.ARRAY(sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::text[]"),
            comment="Exact-match redirect URI allow-list",
        ),
        sa.Column(
            "grant_types",
            postgresql.ARRAY(sa.Text()),
            nullable=False,
            server_default=sa.text("'{authorization_code,refresh_token}'::text[]"),
        ),
        sa.Column("default_scope", sa.String(500), nullable=False, server_default="read"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=True),
        _created_at_column(),
        sa.ForeignKeyConstraint(
            ["tenant_id"],
            ["tenants.id"],
            name=op.f("fk_oauth_clients_tenant_id_tenants"),
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_oauth_clients")),
        sa.UniqueConstraint("client_id", name=op.f("uq_oauth_clients_client_id")),
    )

    op.create_table(
        "application_roles",
        _id_column(),
        sa.Column("application_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("role_name", sa.String(100), nullable=False),
        sa.Column(
            "permissions",
            postgresql.ARRAY(sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::text[]"),
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at_column(),
        sa.ForeignKeyConstraint(
            ["application_id"],
            ["oauth_clients.id"],
            name=op.f("fk_application_roles_application_id_oauth_clients"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_application_roles")),
        sa.UniqueConstraint(
            "application_id",
            "role_name",
            name=op.f("uq_application_roles_application_id_role_name"),
        ),
    )

    op.create_table(
        "user_role_assignments",
        _id_column(),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column("application_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("role_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "tenant_id",
            postgresql.UUID(as_uuid=True),
            nullable=True,
            comment="NULL means the assignment applies to every tenant",
        ),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at_column(),
        sa.ForeignKeyConstraint(
            ["application_id"],
            ["oauth_clients.id"],
            name=op.f("fk_user_role_assignments_application_id_oauth_clients"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["role_id"],
            ["application_roles.id"],
            name=op.f("fk_user_role_assignments_role_id_application_roles"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["tenant_id"],
            ["tenants.id"],
            name=op.f("fk_user_role_assignments_tenant_id_tenants"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_user_role_assignments")),
    )
    op.create_index(
        "ix_user_role_assignments_user_application",
        "user_role_assignments",
        ["user_id", "application_id"],
    )

    op.create_table(
        "authorization_codes",
        _id_column(),
        sa.Column("code", sa.String(128), nullable=False),
        sa.Column("client_id", sa.String(255), nullable=False),
        sa.Column("redirect_uri", sa.Text(), nullable=False),
        sa.Column("scope", sa.String(500), nullable=False),
        sa.Column(
            "requested_roles",
            postgresql.ARRAY(sa.Text()),
            nullable=True,
            comment="Role-name filter from the authorization request",
        ),
        sa.Column(
            "assigned_roles",
            postgresql.ARRAY(sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::text[]"),
            comment="Role ids resolved at redemption",
        ),
        sa.Column("used", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        _created_at_column(),
        sa.ForeignKeyConstraint(
            ["client_id"],
            ["oauth_clients.client_id"],
            name=op.f("fk_authorization_codes_client_id_oauth_clients"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_authorization_codes")),
        sa.UniqueConstraint("code", name=op.f("uq_authorization_codes_code")),
    )
    op.create_index(
        "ix_authorization_codes_unused",
        "authorization_codes",
        ["code", "client_id"],
        postgresql_where=sa.text("used = false"),
    )

    op.create_table(
        "access_tokens",
        _id_column(),
        sa.Column("token", sa.Text(), nullable=False),
        sa.Column("client_id", sa.String(255), nullable=False),
        sa.Column("scope", sa.String(500), nullable=False),
        sa.Column("user_id", sa.Text(), nullable=True),
        sa.Column("tenant_id", sa.Text(), nullable=True),
        sa.Column(
            "assigned_roles",
            postgresql.ARRAY(sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::text[]"),
        ),
        sa.Column("revoked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        _created_at_column(),
        sa.ForeignKeyConstraint(
            ["client_id"],
            ["oauth_clients.client_id"],
            name=op.f("fk_access_tokens_client_id_oauth_clients"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_access_tokens")),
        sa.UniqueConstraint("token", name=op.f("uq_access_tokens_token")),
    )
    op.create_index(
        "ix_access_tokens_active",
        "access_tokens",
        ["token"],
        postgresql_where=sa.text("revoked = false"),
    )

    op.create_table(
        "refresh_tokens",
        _id_column(),
        sa.Column("token", sa.String(128), nullable=False),
        sa.Column("access_token_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("client_id", sa.String(255), nullable=False),
        sa.Column("user_id", sa.Text(), nullable=True),
        sa.Column("revoked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        _created_at_column(),
        sa.ForeignKeyConstraint(
            ["access_token_id"],
            ["access_tokens.id"],
            name=op.f("fk_refresh_tokens_access_token_id_access_tokens"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["client_id"],
            ["oauth_clients.client_id"],
            name=op.f("fk_refresh_tokens_client_id_oauth_clients"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_refresh_tokens")),
        sa.UniqueConstraint("token", name=op.f("uq_refresh_tokens_token")),
    )
    op.create_index(
        "ix_refresh_tokens_access_token_id", "refresh_tokens", ["access_token_id"]
    )


def downgrade() -> None:
    """Drop OAuth2 tables."""
    op.drop_index("ix_refresh_tokens_access_token_id", table_name="refresh_tokens")
    op.drop_table("refresh_tokens")
    op.drop_index("ix_access_tokens_active", table_name="access_tokens")
    op.drop_table("access_tokens")
    op.drop_index("ix_authorization_codes_unused", table_name="authorization_codes")
    op.drop_table("authorization_codes")
    op.drop_index(
        "ix_user_role_assignments_user_application", table_name="user_role_assignments"
    )
    op.drop_table("user_role_assignments")
    op.drop_table("application_roles")
    op.drop_table("oauth_clients")
    op.drop_table("tenants")
