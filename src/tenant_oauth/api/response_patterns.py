# TenantAuth - Multi-tenant OAuth 2.0 Authorization Server
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Result-to-HTTP response mapping for the OAuth2 endpoints."""

from typing import Any, TypeVar

from beartype import beartype
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..core.auth.oauth2.errors import OAuth2Error
from ..core.result_types import Result
from ..schemas.oauth import OAuth2ErrorResponse

T = TypeVar("T")

# RFC 6749 section 5.1: token responses must not be cached.
NO_STORE_HEADERS = {"Cache-Control": "no-store", "Pragma": "no-cache"}


@beartype
def oauth_error_response(error: OAuth2Error) -> JSONResponse:
    """Render an OAuth2 error as ``{error, error_description?}``."""
    body = OAuth2ErrorResponse.model_validate(error.to_dict())
    return JSONResponse(
        status_code=error.status_code, content=body.model_dump(exclude_none=True)
    )


class APIResponseHandler:
    """Maps grant engine results onto HTTP responses."""

    @staticmethod
    @beartype
    def from_result(
        result: Result[T, OAuth2Error],
        *,
        success_status: int = 200,
        headers: dict[str, str] | None = None,
    ) -> JSONResponse:
        """Convert Result[T, OAuth2Error] to a JSON response.

        Pydantic payloads are serialised without their unset optional fields.
        """
        if result.is_err():
            return oauth_error_response(result.unwrap_err())

        value = result.unwrap()
        content: Any = (
            value.model_dump(exclude_none=True) if isinstance(value, BaseModel) else value
        )
        return JSONResponse(status_code=success_status, content=content, headers=headers)


@beartype
def handle_result(
    result: Result[T, OAuth2Error],
    *,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Convenience function for standard result handling."""
    return APIResponseHandler.from_result(result, headers=headers)
