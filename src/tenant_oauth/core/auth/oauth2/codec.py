# TenantAuth - Multi-tenant OAuth 2.0 Authorization Server
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Bearer token signing and verification.

Tokens are HS256 JWTs produced with python-jose. The payload always carries an
explicit ``type`` discriminator, and :meth:`TokenCodec.verify` parses it into
exactly one of the claim shapes below:

* ``access_token`` - OAuth access tokens issued by the grant engine.
* ``admin`` - system administrator login tokens.
* ``tenant`` - tenant user login tokens.

Admin and tenant tokens are minted by the administration surface; the codec
only has to sign and recognise them.
"""

from datetime import timedelta
from typing import Annotated, Any, Literal, Union

from beartype import beartype
from jose import JWTError, jwt  # type: ignore[import-untyped]
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ...config import Settings
from ...logging_utils import get_logger
from .models import utcnow

logger = get_logger(__name__)


class _Claims(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_assignment=True,
        validate_default=True,
    )

    iat: int | None = Field(default=None, description="Issued-at (unix seconds)")
    exp: int | None = Field(default=None, description="Expiry (unix seconds)")


class OAuthAccessClaims(_Claims):
    type: Literal["access_token"] = "access_token"
    client_id: str
    scope: str
    jti: str | None = None
    user_id: str | None = None
    tenant_id: str | None = None
    roles: list[str] | None = None
    permissions: list[str] | None = None


class AdminClaims(_Claims):
    type: Literal["admin"] = "admin"
    id: str
    username: str
    is_admin: bool = False
    client_id: str | None = None


class TenantClaims(_Claims):
    type: Literal["tenant"] = "tenant"
    id: str
    username: str
    is_admin: bool = False
    tenant_id: str
    tenant_name: str | None = None
    client_id: str | None = None


TokenClaims = Annotated[
    Union[OAuthAccessClaims, AdminClaims, TenantClaims],
    Field(discriminator="type"),
]

_claims_adapter: TypeAdapter[Any] = TypeAdapter(TokenClaims)


class TokenCodec:
    """Signs and verifies bearer tokens with one process-wide secret."""

    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        if not secret:
            raise ValueError("Token signing secret must not be empty")
        self._secret = secret
        self._algorithm = algorithm

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenCodec":
        return cls(settings.jwt_secret, settings.jwt_algorithm)

    @beartype
    def issue(
        self,
        claims: OAuthAccessClaims | AdminClaims | TenantClaims,
        lifetime: timedelta,
    ) -> str:
        """Stamp ``iat``/``exp`` onto the claims and sign them."""
        now = utcnow()
        stamped = claims.model_copy(
            update={
                "iat": int(now.timestamp()),
                "exp": int((now + lifetime).timestamp()),
            }
        )
        payload = stamped.model_dump(exclude_none=True)
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    @beartype
    def verify(
        self, token: str
    ) -> OAuthAccessClaims | AdminClaims | TenantClaims | None:
        """Return the verified claims, or None for any defect.

        Bad signatures, malformed tokens, expired tokens, payloads without a
        known ``type`` and payloads that do not fit their declared shape all
        yield None.
        """
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except JWTError as e:
            logger.debug("Bearer token rejected: %s", e)
            return None

        if "exp" not in payload:
            return None

        try:
            return _claims_adapter.validate_python(payload)
        except PydanticValidationError:
            logger.debug("Bearer token payload has an unknown shape")
            return None
