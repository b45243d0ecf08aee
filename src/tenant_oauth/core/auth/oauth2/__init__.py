# TenantAuth - Multi-tenant OAuth 2.0 Authorization Server
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""OAuth2 authorization server: grants, tokens, roles and storage."""

from .codec import AdminClaims, OAuthAccessClaims, TenantClaims, TokenCodec
from .errors import OAuth2Error
from .memory import InMemoryCredentialStore, InMemoryTokenLedger
from .postgres import PostgresCredentialStore, PostgresTokenLedger
from .roles import RoleResolver
from .server import OAuth2Server
from .storage import CredentialStore, TokenLedger

__all__ = [
    "OAuth2Server",
    "OAuth2Error",
    "TokenCodec",
    "OAuthAccessClaims",
    "AdminClaims",
    "TenantClaims",
    "RoleResolver",
    "CredentialStore",
    "TokenLedger",
    "InMemoryCredentialStore",
    "InMemoryTokenLedger",
    "PostgresCredentialStore",
    "PostgresTokenLedger",
]
