# TenantAuth - Multi-tenant OAuth 2.0 Authorization Server
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""OAuth2 error taxonomy.

Each subclass fixes the RFC 6749 ``error`` code; the HTTP status defaults to
400 and is overridden where an endpoint answers differently (401 for an unknown
client on the token endpoint, 401 for a dead refresh token).
"""

from typing import Any

from beartype import beartype


class OAuth2Error(Exception):
    """OAuth2 specific errors."""

    error = "invalid_request"
    default_status_code = 400

    def __init__(
        self,
        error_description: str | None = None,
        *,
        error: str | None = None,
        status_code: int | None = None,
    ) -> None:
        """Initialize OAuth2 error."""
        if error is not None:
            self.error = error
        self.error_description = error_description
        self.status_code = status_code or self.default_status_code
        super().__init__(error_description or self.error)

    @beartype
    def to_dict(self) -> dict[str, Any]:
        """Convert to OAuth2 error response."""
        response: dict[str, Any] = {"error": self.error}
        if self.error_description:
            response["error_description"] = self.error_description
        return response

    def __repr__(self) -> str:
        return f"{type(self).__name__}(error={self.error!r}, status_code={self.status_code})"


class ValidationError(OAuth2Error):
    """A required parameter is missing or malformed."""

    error = "invalid_request"


class InvalidClient(OAuth2Error):
    """Unknown or inactive client."""

    error = "invalid_client"


class InvalidRedirectUri(OAuth2Error):
    """redirect_uri is not registered for the client."""

    error = "invalid_redirect_uri"


class InvalidGrant(OAuth2Error):
    """Code or refresh token not found, used, expired, revoked or mismatched."""

    error = "invalid_grant"


class InvalidRoles(OAuth2Error):
    """Requested roles do not exist or are inactive."""

    error = "invalid_roles"


class UnsupportedGrantType(OAuth2Error):
    error = "unsupported_grant_type"


class UnsupportedResponseType(OAuth2Error):
    error = "unsupported_response_type"


class ServerError(OAuth2Error):
    """Storage or signing failure. Never carries the underlying message."""

    error = "server_error"
    default_status_code = 500


class CSRFError(OAuth2Error):
    """CSRF token missing or not matching the browser's secret."""

    error = "invalid_csrf_token"
    default_status_code = 403


__all__ = [
    "CSRFError",
    "InvalidClient",
    "InvalidGrant",
    "InvalidRedirectUri",
    "InvalidRoles",
    "OAuth2Error",
    "ServerError",
    "UnsupportedGrantType",
    "UnsupportedResponseType",
    "ValidationError",
]
