# TenantAuth - Multi-tenant OAuth 2.0 Authorization Server
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""FastAPI dependencies for the OAuth2 endpoints.

The grant engine and its collaborators are built once by the application
factory and kept on ``app.state``; these dependencies hand them to routes.
"""

import json
from typing import Annotated, Any, TypeVar

from beartype import beartype
from fastapi import Depends, Request
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..core.auth.oauth2 import OAuth2Server
from ..core.auth.oauth2.errors import ValidationError
from ..core.config import Settings
from ..core.csrf import CSRF_COOKIE_NAME, CSRF_FORM_FIELD, CSRF_HEADER_NAME, CSRFProtect

ModelT = TypeVar("ModelT", bound=BaseModel)


@beartype
def get_app_settings(request: Request) -> Settings:
    """Settings the running application was built with."""
    settings: Settings = request.app.state.settings
    return settings


@beartype
def get_oauth2_server(request: Request) -> OAuth2Server:
    """Get the shared OAuth2 server instance."""
    server: OAuth2Server = request.app.state.oauth2_server
    return server


@beartype
def get_csrf_protect(request: Request) -> CSRFProtect:
    csrf: CSRFProtect = request.app.state.csrf
    return csrf


@beartype
async def read_params(request: Request) -> dict[str, Any]:
    """Read request parameters from a JSON or form-encoded body.

    Raises:
        ValidationError: The body is not valid JSON or not a JSON object.
    """
    content_type = request.headers.get("content-type", "")

    if content_type.startswith("application/json"):
        body = await request.body()
        if not body:
            return {}
        try:
            data = json.loads(body)
        except json.JSONDecodeError as e:
            raise ValidationError("Request body is not valid JSON") from e
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")
        return data

    if content_type.startswith(
        ("application/x-www-form-urlencoded", "multipart/form-data")
    ):
        form = await request.form()
        return {key: value for key, value in form.items() if isinstance(value, str)}

    return {}


@beartype
def parse_params(model: type[ModelT], params: dict[str, Any]) -> ModelT:
    """Validate request parameters, reporting failures as ``invalid_request``."""
    try:
        return model.model_validate(params)
    except PydanticValidationError as e:
        fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
        raise ValidationError(
            "Malformed parameters: " + ", ".join(fields) if fields else "Malformed parameters"
        ) from e


@beartype
async def require_csrf_token(
    request: Request,
    params: Annotated[dict[str, Any], Depends(read_params)],
    csrf: Annotated[CSRFProtect, Depends(get_csrf_protect)],
) -> None:
    """Reject the request unless it carries a CSRF token matching its cookie.

    Raises:
        CSRFError: Token or cookie missing, or the token does not match.
    """
    token = request.headers.get(CSRF_HEADER_NAME) or params.get(CSRF_FORM_FIELD)
    csrf.verify(
        token if isinstance(token, str) else None,
        request.cookies.get(CSRF_COOKIE_NAME),
    )
