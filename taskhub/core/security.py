"""
Security utilities: password hashing and the bearer credential codec
"""

from __future__ import annotations

import base64
import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from functools import lru_cache
from typing import Any, Callable, Iterable, Optional
from uuid import UUID

from joserfc import jwt as jose_jwt
from joserfc.jwk import OctKey
from pwdlib import PasswordHash
from pwdlib.hashers.bcrypt import BcryptHasher
import structlog

from taskhub.core.config import settings, JWT_CONFIG
from taskhub.core.exceptions import MalformedClaimsError
from taskhub.core.token_validator import LocalJWTValidationStrategy, utcnow

logger = structlog.get_logger()

# Password hashing context (pwdlib replaces abandoned passlib)
pwd_context = PasswordHash((BcryptHasher(rounds=settings.BCRYPT_ROUNDS),))

MIN_SECRET_KEY_BYTES = 32
REFRESH_TOKEN_BYTES = 64
PERMISSION_CLAIM = "permission"
TENANT_CLAIM = "tenant_id"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its hash

    Args:
        plain_password: Plain text password
        hashed_password: Hashed password from database

    Returns:
        True if password matches, False otherwise
    """
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except Exception as e:
        logger.error("Password verification error", error=str(e))
        return False


def get_password_hash(password: str) -> str:
    """
    Hash a password

    Args:
        password: Plain text password

    Returns:
        Hashed password
    """
    # Bcrypt has a 72 byte limit
    password_bytes = password.encode("utf-8")
    if len(password_bytes) > 72:
        password = password_bytes[:72].decode("utf-8", errors="ignore")
        logger.warning("Password truncated to 72 bytes for bcrypt")

    return pwd_context.hash(password)


@lru_cache(maxsize=1)
def dummy_password_hash() -> str:
    """Hash verified against when a login email is unknown, to keep timing uniform"""
    return get_password_hash(secrets.token_urlsafe(16))


def generate_refresh_token() -> str:
    """Opaque refresh value: 64 random bytes, base64 encoded"""
    return base64.b64encode(secrets.token_bytes(REFRESH_TOKEN_BYTES)).decode("ascii")


def hash_refresh_token(refresh_token: str) -> str:
    """Digest stored on the user row in place of the refresh value"""
    return hashlib.sha256(refresh_token.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class IssuedCredential:
    access_token: str
    refresh_token: str
    expires_at: datetime
    refresh_token_expires_at: datetime

    @property
    def refresh_token_hash(self) -> str:
        return hash_refresh_token(self.refresh_token)


@dataclass(frozen=True)
class VerifiedCredential:
    user_id: UUID
    tenant_id: UUID
    email: str
    permissions: frozenset[str]
    expires_at: datetime


class CredentialCodec:
    """
    Issues and verifies signed, time-limited access tokens.

    The signing key is read once at construction and never changes.
    Access tokens carry subject, tenant id, email, one permission entry
    per code, issued-at, expiry, issuer and audience.
    """

    def __init__(
        self,
        *,
        secret_key: str,
        issuer: str,
        audience: str,
        algorithm: str = "HS256",
        access_token_expire_minutes: int = 60,
        refresh_token_expire_days: int = 7,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        if not secret_key or len(secret_key.encode("utf-8")) < MIN_SECRET_KEY_BYTES:
            raise ValueError(f"Signing key must be at least {MIN_SECRET_KEY_BYTES} bytes")

        self._key = OctKey.import_key(secret_key)
        self._algorithm = algorithm
        self._issuer = issuer
        self._audience = audience
        self._clock = clock or utcnow
        self.access_token_lifetime = timedelta(minutes=access_token_expire_minutes)
        self.refresh_token_lifetime = timedelta(days=refresh_token_expire_days)
        self._validator = LocalJWTValidationStrategy(
            secret_key=secret_key,
            algorithm=algorithm,
            issuer=issuer,
            audience=audience,
            clock=self._clock,
        )

    @classmethod
    def from_settings(cls, config: dict[str, Any] = JWT_CONFIG) -> "CredentialCodec":
        return cls(**config)

    def now(self) -> datetime:
        return self._clock()

    def create_access_token(
        self,
        *,
        user_id: UUID,
        tenant_id: UUID,
        email: str,
        permissions: Iterable[str],
    ) -> tuple[str, datetime]:
        """
        Create a signed access token

        Returns:
            Encoded JWT and its expiry
        """
        issued_at = self.now()
        expires_at = issued_at + self.access_token_lifetime

        claims = {
            "sub": str(user_id),
            TENANT_CLAIM: str(tenant_id),
            "email": email,
            PERMISSION_CLAIM: sorted(set(permissions)),
            "type": "access",
            "iss": self._issuer,
            "aud": self._audience,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
            "jti": secrets.token_hex(16),
        }

        encoded = jose_jwt.encode({"alg": self._algorithm, "typ": "JWT"}, claims, self._key)
        logger.debug("Access token created", subject=str(user_id), expires=expires_at.isoformat())
        return encoded, expires_at

    def issue(self, user: Any, permissions: Iterable[str]) -> IssuedCredential:
        """Issue an access token plus a fresh refresh value for a user"""
        access_token, expires_at = self.create_access_token(
            user_id=user.id,
            tenant_id=user.tenant_id,
            email=user.email,
            permissions=permissions,
        )
        return IssuedCredential(
            access_token=access_token,
            refresh_token=generate_refresh_token(),
            expires_at=expires_at,
            refresh_token_expires_at=self.now() + self.refresh_token_lifetime,
        )

    def verify(self, token: str) -> VerifiedCredential:
        """
        Verify an access token and extract identity and permission claims

        Raises:
            TokenExpiredError: token is past its expiry
            BadSignatureError: tampered, wrong key or disallowed algorithm
            MalformedClaimsError: required claims absent or unparsable
            InvalidTokenError: issuer or audience mismatch
        """
        result = self._validator.validate(token, token_type="access")
        claims = result.claims

        try:
            user_id = UUID(result.subject)
            tenant_id = UUID(str(claims[TENANT_CLAIM]))
            email = claims["email"]
        except (KeyError, ValueError, TypeError):
            logger.warning("Token missing identity claims", subject=result.subject)
            raise MalformedClaimsError() from None

        return VerifiedCredential(
            user_id=user_id,
            tenant_id=tenant_id,
            email=email,
            permissions=_parse_permission_claim(claims.get(PERMISSION_CLAIM)),
            expires_at=datetime.fromtimestamp(claims["exp"], tz=self.now().tzinfo),
        )


def _parse_permission_claim(value: Any) -> frozenset[str]:
    # One entry per code; a single comma separated string is also accepted
    if value is None:
        return frozenset()
    if isinstance(value, str):
        return frozenset(part.strip() for part in value.split(",") if part.strip())
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return frozenset(value)
    raise MalformedClaimsError()


credential_codec = CredentialCodec.from_settings()
