# TenantAuth - Multi-tenant OAuth 2.0 Authorization Server
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Test configuration and fixtures.

Seeds an in-memory credential store with two applications, their roles and a
handful of role assignments, and wires a grant engine over it.
"""

import os

# Settings require a signing secret; set it before anything loads settings.
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-for-the-test-suite-only-0123456789")

import pytest

from tenant_oauth.core.auth.oauth2 import (
    InMemoryCredentialStore,
    InMemoryTokenLedger,
    OAuth2Server,
    RoleResolver,
    TokenCodec,
)
from tenant_oauth.core.config import Settings, clear_settings_cache
from tests.fixtures.test_data import TEST_JWT_SECRET, TEST_SECRET_KEY, seed_credentials


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    """Keep the settings singleton from leaking between tests."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def settings() -> Settings:
    """Get test settings."""
    return Settings(
        jwt_secret=TEST_JWT_SECRET,
        secret_key=TEST_SECRET_KEY,
        storage_backend="memory",
        api_env="development",
    )


@pytest.fixture
def codec(settings: Settings) -> TokenCodec:
    return TokenCodec.from_settings(settings)


@pytest.fixture
def credentials() -> InMemoryCredentialStore:
    return seed_credentials(InMemoryCredentialStore())


@pytest.fixture
def ledger() -> InMemoryTokenLedger:
    return InMemoryTokenLedger()


@pytest.fixture
def oauth2_server(
    credentials: InMemoryCredentialStore,
    ledger: InMemoryTokenLedger,
    codec: TokenCodec,
    settings: Settings,
) -> OAuth2Server:
    """Create OAuth2 server instance over the seeded in-memory stores."""
    return OAuth2Server(
        credentials, ledger, codec, settings, resolver=RoleResolver(credentials)
    )
