# chirpy/auth/tokens.py
"""
Access token codec.

Access tokens are short-lived HS256 JWTs carrying only registered claims:
- iss: fixed service issuer (JWT_ISSUER, "chirpy" by default)
- sub: user UUID (canonical string form)
- iat / exp: integer seconds, UTC
- jti: random per token, so two tokens minted in the same second still differ

Validation is pure computation (signature + clock). Nothing here touches the
database, which is why logging out does not invalidate an access token that
was already handed out; it simply runs until `exp`.
"""
from __future__ import annotations

import secrets
import uuid
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from chirpy.auth.errors import InvalidTokenError, SigningError
from chirpy.core.config import settings

DEFAULT_ISSUER = "chirpy"
SIGNING_ALGORITHM = "HS256"
# Only the symmetric HMAC family is accepted on the way in. Anything else
# ("none", RS256 with our secret as a "public key", ...) is rejected up front.
HMAC_ALGORITHMS = ("HS256", "HS384", "HS512")

_DECODE_OPTIONS = {
    "verify_aud": False,
    "require_exp": True,
    "require_iat": True,
    "require_iss": True,
    "require_sub": True,
}


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


# -------------------------
# Issue
# -------------------------
def make_jwt(
    user_id: uuid.UUID,
    secret: str,
    expires_in: timedelta,
    *,
    issuer: str = DEFAULT_ISSUER,
    now: datetime | None = None,
) -> str:
    if not secret:
        raise SigningError("Signing secret is empty")

    issued_at = now or _now_utc()
    payload = {
        "iss": issuer,
        "sub": str(user_id),
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + expires_in).timestamp()),
        "jti": secrets.token_hex(16),
    }

    try:
        return jwt.encode(payload, secret, algorithm=SIGNING_ALGORITHM)
    except JWTError as e:
        raise SigningError(f"Failed to sign access token: {e}") from e


# -------------------------
# Validate
# -------------------------
def validate_jwt(token: str, secret: str, *, issuer: str = DEFAULT_ISSUER) -> uuid.UUID:
    """
    Validate an access token and return the subject user id.

    Checks, in order:
    - header `alg` is in the HMAC family
    - signature under `secret`
    - exp / iat / iss / sub present, exp not passed, iss matches
    - sub is a UUID

    Raises:
        InvalidTokenError: on any failure (no partial success)
    """
    if not token or not secret:
        raise InvalidTokenError("Missing token or secret")

    try:
        header = jwt.get_unverified_header(token)
    except JWTError as e:
        raise InvalidTokenError(f"Invalid token header: {e}") from e

    alg = header.get("alg")
    if alg not in HMAC_ALGORITHMS:
        raise InvalidTokenError(f"Unexpected signing algorithm: {alg}")

    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=list(HMAC_ALGORITHMS),
            issuer=issuer,
            options=_DECODE_OPTIONS,
        )
    except jwt.ExpiredSignatureError as e:
        raise InvalidTokenError("Token has expired") from e
    except jwt.JWTClaimsError as e:
        raise InvalidTokenError(f"Claims validation failed: {e}") from e
    except JWTError as e:
        raise InvalidTokenError(f"Signature verification failed: {e}") from e

    # Explicit issuer check on top of python-jose's.
    if claims.get("iss") != issuer:
        raise InvalidTokenError("Issuer mismatch")

    try:
        return uuid.UUID(str(claims["sub"]))
    except (KeyError, ValueError) as e:
        raise InvalidTokenError("Subject is not a valid user id") from e


class AccessTokenCodec:
    """
    Issuer/validator pair bound to configured secret, issuer and TTL.
    """

    def __init__(
        self,
        secret: str | None = None,
        *,
        issuer: str | None = None,
        ttl: timedelta | None = None,
    ) -> None:
        self.secret = secret if secret is not None else settings.JWT_SECRET
        self.issuer = issuer or settings.JWT_ISSUER
        self.ttl = ttl or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    def issue(self, user_id: uuid.UUID, *, now: datetime | None = None) -> str:
        return make_jwt(user_id, self.secret, self.ttl, issuer=self.issuer, now=now)

    def validate(self, token: str) -> uuid.UUID:
        return validate_jwt(token, self.secret, issuer=self.issuer)
