"""
Access token validation.

Signature, lifetime and issuer/audience checks for locally issued JWTs.
Every failure raises an InvalidTokenError subclass; the reason is logged
here and never returned to the token presenter.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from joserfc import jwt as jose_jwt
from joserfc.errors import DecodeError, JoseError
from joserfc.jwk import OctKey
import structlog

from taskhub.core.exceptions import (
    BadSignatureError,
    InvalidTokenError,
    MalformedClaimsError,
    TokenExpiredError,
)

logger = structlog.get_logger()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TokenValidationResult:
    subject: str
    claims: dict
    issuer: str


class LocalJWTValidationStrategy:
    def __init__(
        self,
        secret_key: str,
        algorithm: str,
        issuer: str,
        audience: str,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._jwt_key = OctKey.import_key(secret_key)
        self._algorithm = algorithm
        self._issuer = issuer
        self._audience = audience
        self._clock = clock or utcnow

    def validate(self, token: str, token_type: str = "access") -> TokenValidationResult:
        try:
            # Only the configured HMAC algorithm is accepted; "none" and
            # asymmetric algorithms fail here.
            token_obj = jose_jwt.decode(token, self._jwt_key, algorithms=[self._algorithm])
        except DecodeError as exc:
            logger.warning("JWT could not be decoded", error=str(exc))
            raise MalformedClaimsError() from None
        except (JoseError, ValueError) as exc:
            logger.warning("JWT signature verification failed", error=str(exc))
            raise BadSignatureError() from None

        payload = dict(token_obj.claims)

        exp = payload.get("exp")
        if not isinstance(exp, int):
            logger.warning("Token missing expiry")
            raise MalformedClaimsError()
        if int(self._clock().timestamp()) >= exp:
            logger.warning("Token expired", subject=payload.get("sub"))
            raise TokenExpiredError()

        if payload.get("type") != token_type:
            logger.warning("Invalid token type", expected=token_type, actual=payload.get("type"))
            raise MalformedClaimsError()

        issuer = payload.get("iss")
        if issuer != self._issuer:
            logger.warning("Token issuer is not trusted", issuer=issuer, expected=self._issuer)
            raise InvalidTokenError()

        audience = payload.get("aud")
        audiences = audience if isinstance(audience, list) else [audience]
        if self._audience not in audiences:
            logger.warning("Token audience mismatch", audience=audience, expected=self._audience)
            raise InvalidTokenError()

        subject = payload.get("sub")
        if not subject:
            logger.warning("Token missing subject")
            raise MalformedClaimsError()

        logger.debug("Token verified successfully", subject=subject, issuer=issuer, type=token_type)
        return TokenValidationResult(subject=str(subject), claims=payload, issuer=issuer)
