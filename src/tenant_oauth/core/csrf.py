# TenantAuth - Multi-tenant OAuth 2.0 Authorization Server
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Double-submit CSRF protection for browser-facing token endpoints.

The browser holds a random secret in an httpOnly cookie; pages fetch a token
derived from it and echo the token back in the ``X-CSRF-Token`` header. A token
is ``<salt>-<signature>`` where the signature is an HMAC-SHA256 over
``<salt>-<secret>`` keyed with the application secret key, so a token is only
valid alongside the cookie it was minted for.
"""

import base64
import hashlib
import hmac
import secrets

from beartype import beartype

from .auth.oauth2.errors import CSRFError
from .config import Settings

CSRF_COOKIE_NAME = "csrf_secret"
CSRF_HEADER_NAME = "X-CSRF-Token"
CSRF_FORM_FIELD = "_csrf"

_SALT_BYTES = 8
_SECRET_BYTES = 18


class CSRFProtect:
    """Mints and checks CSRF tokens bound to a per-browser secret."""

    def __init__(self, secret_key: str, *, enabled: bool = True) -> None:
        if not secret_key:
            raise ValueError("CSRF secret key must not be empty")
        self._key = secret_key.encode()
        self.enabled = enabled

    @classmethod
    def from_settings(cls, settings: Settings) -> "CSRFProtect":
        return cls(settings.secret_key, enabled=settings.csrf_enabled)

    @staticmethod
    def new_secret() -> str:
        return secrets.token_urlsafe(_SECRET_BYTES)

    @beartype
    def create_token(self, secret: str) -> str:
        salt = secrets.token_hex(_SALT_BYTES)
        return f"{salt}-{self._sign(salt, secret)}"

    @beartype
    def verify(self, token: str | None, secret: str | None) -> None:
        """Raise :class:`CSRFError` unless ``token`` was minted for ``secret``."""
        if not self.enabled:
            return
        if not token:
            raise CSRFError("CSRF token is required", error="csrf_token_missing")
        if not secret:
            raise CSRFError("CSRF secret cookie is missing", error="csrf_secret_missing")

        salt, sep, signature = token.partition("-")
        if not sep or not salt or not signature:
            raise CSRFError("Invalid CSRF token")
        if not hmac.compare_digest(
            signature.encode(), self._sign(salt, secret).encode()
        ):
            raise CSRFError("Invalid CSRF token")

    def _sign(self, salt: str, secret: str) -> str:
        digest = hmac.new(self._key, f"{salt}-{secret}".encode(), hashlib.sha256).digest()
        return base64.urlsafe_b64encode(digest).rstrip(b"=").decode()
