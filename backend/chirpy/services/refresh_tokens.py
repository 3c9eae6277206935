from __future__ import annotations

import logging
import secrets
import uuid
from datetime import datetime, timezone
from typing import Callable, Protocol

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import FlushError

from chirpy.auth.errors import ConflictError, EntropyError, NotFoundError, StoreUnavailableError
from chirpy.models.refresh_token import RefreshToken

logger = logging.getLogger(__name__)

REFRESH_TOKEN_BYTES = 32  # 256 bits
REFRESH_TOKEN_LENGTH = REFRESH_TOKEN_BYTES * 2  # hex-encoded


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _as_aware(value: datetime) -> datetime:
    # SQLite round-trips tz-aware datetimes as naive. Stored values are always UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def token_prefix(token: str) -> str:
    """Loggable prefix of a refresh token; never log the full value."""
    return token[:8]


# -----------------------------
# Token generation
# -----------------------------
def generate_refresh_token() -> str:
    """
    256 bits from the OS CSPRNG, hex-encoded to exactly 64 chars.
    """
    try:
        return secrets.token_bytes(REFRESH_TOKEN_BYTES).hex()
    except (OSError, NotImplementedError) as e:
        raise EntropyError(f"Random source unavailable: {e}") from e


# -----------------------------
# Store
# -----------------------------
class SessionStore(Protocol):
    def generate(self) -> str:
        ...

    def create(self, token: str, user_id: uuid.UUID, expires_at: datetime) -> RefreshToken:
        ...

    def lookup_active_owner(self, token: str) -> uuid.UUID:
        ...

    def revoke(self, token: str) -> None:
        ...

    def revoke_all_for_user(self, user_id: uuid.UUID) -> int:
        ...


class SqlAlchemyRefreshTokenStore:
    """
    Refresh tokens persisted in the `refresh_tokens` table.

    Each call is exactly one round trip plus commit. Nothing is retried: store
    failures roll back and surface as StoreUnavailableError.
    """

    def __init__(self, db: Session, *, now: Callable[[], datetime] = _now_utc) -> None:
        self.db = db
        self._now = now

    def generate(self) -> str:
        return generate_refresh_token()

    def create(self, token: str, user_id: uuid.UUID, expires_at: datetime) -> RefreshToken:
        now = self._now()
        rt = RefreshToken(
            token=token,
            user_id=user_id,
            created_at=now,
            updated_at=now,
            expires_at=expires_at,
            revoked_at=None,
        )
        try:
            self.db.add(rt)
            self.db.commit()
        except (IntegrityError, FlushError) as e:
            self.db.rollback()
            # Either a token collision or an unknown owner; both are hard failures.
            raise ConflictError("Refresh token could not be stored (duplicate token)") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreUnavailableError(f"Failed to store refresh token: {e}") from e
        return rt

    def _get(self, token: str) -> RefreshToken | None:
        try:
            return self.db.get(RefreshToken, token)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreUnavailableError(f"Failed to read refresh token: {e}") from e

    def lookup_active_owner(self, token: str) -> uuid.UUID:
        rt = self._get(token)
        if rt is None:
            raise NotFoundError("Refresh token not found")
        if rt.revoked_at is not None:
            raise NotFoundError("Refresh token not found")
        if _as_aware(rt.expires_at) <= self._now():
            raise NotFoundError("Refresh token not found")
        return rt.user_id

    def revoke(self, token: str) -> None:
        rt = self._get(token)
        if rt is None:
            raise NotFoundError("Refresh token not found")
        if rt.revoked_at is not None:
            # Keep the first revocation time for the audit trail.
            return

        now = self._now()
        rt.revoked_at = now
        rt.updated_at = now
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreUnavailableError(f"Failed to revoke refresh token: {e}") from e

    def revoke_all_for_user(self, user_id: uuid.UUID) -> int:
        now = self._now()
        try:
            count = (
                self.db.query(RefreshToken)
                .filter(RefreshToken.user_id == user_id)
                .filter(RefreshToken.revoked_at.is_(None))
                .update(
                    {RefreshToken.revoked_at: now, RefreshToken.updated_at: now},
                    synchronize_session=False,
                )
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreUnavailableError(f"Failed to revoke refresh tokens: {e}") from e

        logger.info("Revoked %d refresh token(s) for user %s", count, user_id)
        return count
