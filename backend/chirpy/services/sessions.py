# chirpy/services/sessions.py
"""
Session orchestration: login, refresh, revoke, password-change fan-out.

Composes three independent pieces:
- password hashing (chirpy.core.security)
- stateless access tokens (chirpy.auth.tokens.AccessTokenCodec)
- stateful refresh tokens (chirpy.services.refresh_tokens.SessionStore)

Refresh token lifecycle:
    ACTIVE -> REVOKED   explicit revoke, or password change (all tokens of the user)
    ACTIVE -> EXPIRED   evaluated lazily at lookup time, never swept

Refresh does NOT rotate the refresh token: the same value keeps minting access
tokens until it expires or is revoked. Rotation is a policy decision that has
not been taken yet.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable

from sqlalchemy.orm import Session

from chirpy.auth.errors import (
    AuthenticationFailedError,
    AuthInfrastructureError,
    MalformedCredentialError,
    NotFoundError,
)
from chirpy.auth.tokens import AccessTokenCodec
from chirpy.core.config import settings
from chirpy.core.security import dummy_verify, verify_and_update_password
from chirpy.models.user import User
from chirpy.services.refresh_tokens import (
    REFRESH_TOKEN_LENGTH,
    SessionStore,
    SqlAlchemyRefreshTokenStore,
    token_prefix,
)
from chirpy.services.users import get_user_by_email, replace_password_hash

logger = logging.getLogger(__name__)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class LoginResult:
    user: User
    access_token: str
    refresh_token: str
    refresh_expires_at: datetime


class SessionService:
    def __init__(
        self,
        db: Session,
        *,
        store: SessionStore | None = None,
        codec: AccessTokenCodec | None = None,
        refresh_ttl: timedelta | None = None,
        now: Callable[[], datetime] = _now_utc,
    ) -> None:
        self.db = db
        self._now = now
        self.store = store or SqlAlchemyRefreshTokenStore(db, now=now)
        self.codec = codec or AccessTokenCodec()
        self.refresh_ttl = refresh_ttl or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)

    # -----------------------------
    # Login
    # -----------------------------
    def login(self, email: str, password: str) -> LoginResult:
        """
        Verify credentials and issue an access token plus a fresh refresh token.
        A failure to store an upgraded hash is logged and does not fail the login.

        Raises:
            AuthenticationFailedError: unknown email or wrong password (same error)
            HashingError / SigningError / EntropyError / ConflictError / StoreUnavailableError
        """
        user = get_user_by_email(self.db, email)
        if user is None:
            dummy_verify(password)
            logger.info("Login rejected: unknown account")
            raise AuthenticationFailedError("Invalid email or password")

        user_id = user.id
        matched, new_hash = verify_and_update_password(password, user.hashed_password)
        if not matched:
            logger.info("Login rejected: wrong password for user %s", user_id)
            raise AuthenticationFailedError("Invalid email or password")

        if new_hash:
            # Best effort; the old hash still verifies, so login goes ahead.
            try:
                replace_password_hash(self.db, user, new_hash)
            except AuthInfrastructureError:
                logger.exception("Failed to store upgraded password hash for user %s", user_id)
            else:
                logger.info("Upgraded password hash parameters for user %s", user_id)

        now = self._now()
        access_token = self.codec.issue(user_id, now=now)

        refresh_token = self.store.generate()
        expires_at = now + self.refresh_ttl
        self.store.create(refresh_token, user_id, expires_at)

        logger.info(
            "Login ok for user %s: access token (%s) and refresh token %s... (%s)",
            user_id,
            self.codec.ttl,
            token_prefix(refresh_token),
            self.refresh_ttl,
        )
        return LoginResult(
            user=user,
            access_token=access_token,
            refresh_token=refresh_token,
            refresh_expires_at=expires_at,
        )

    # -----------------------------
    # Refresh
    # -----------------------------
    @staticmethod
    def _check_format(raw_token: str) -> None:
        # Cheap gate before touching the store.
        if not raw_token or len(raw_token) != REFRESH_TOKEN_LENGTH:
            raise MalformedCredentialError("Refresh token has the wrong length")

    def refresh(self, raw_token: str) -> str:
        """
        Exchange a usable refresh token for a new access token.

        Raises:
            MalformedCredentialError: wrong length
            NotFoundError: absent, revoked or expired
        """
        self._check_format(raw_token)

        try:
            user_id = self.store.lookup_active_owner(raw_token)
        except NotFoundError:
            logger.info("Refresh rejected: token %s... not usable", token_prefix(raw_token))
            raise

        access_token = self.codec.issue(user_id, now=self._now())
        logger.info("Issued new access token for user %s", user_id)
        return access_token

    # -----------------------------
    # Revoke
    # -----------------------------
    def revoke(self, raw_token: str) -> None:
        """
        Revoke one refresh token. Wrong shape and unknown tokens are silent no-ops
        so the response never says whether a token was valid.
        """
        try:
            self._check_format(raw_token)
        except MalformedCredentialError:
            logger.info("Revoke ignored: malformed refresh token")
            return

        try:
            self.store.revoke(raw_token)
        except NotFoundError:
            logger.warning("Revoke ignored: token %s... not found", token_prefix(raw_token))
            return

        logger.info("Revoked refresh token %s...", token_prefix(raw_token))

    # -----------------------------
    # Password change
    # -----------------------------
    def on_password_change(self, user_id: uuid.UUID) -> int:
        """
        Revoke every refresh token of the user. Best effort: a store failure is
        logged and swallowed so the password change itself still succeeds.
        """
        try:
            count = self.store.revoke_all_for_user(user_id)
        except AuthInfrastructureError:
            logger.exception("Failed to revoke refresh tokens for user %s after password change", user_id)
            return 0

        logger.info("Revoked all refresh tokens of user %s after password change", user_id)
        return count
