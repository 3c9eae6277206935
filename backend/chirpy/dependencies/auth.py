# chirpy/dependencies/auth.py
from __future__ import annotations

import logging

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from chirpy.auth.errors import AuthenticationFailedError
from chirpy.auth.headers import api_key_matches, get_api_key, get_bearer_token
from chirpy.auth.identity import AuthenticatedIdentity
from chirpy.auth.tokens import validate_jwt
from chirpy.core.config import settings
from chirpy.core.database import get_db
from chirpy.services.sessions import SessionService

logger = logging.getLogger(__name__)


def get_session_service(db: Session = Depends(get_db)) -> SessionService:
    return SessionService(db)


def get_bearer_credential(authorization: str | None = Header(None)) -> str:
    """
    Raw bearer credential (access JWT or refresh token) from the Authorization header.
    """
    return get_bearer_token(authorization)


def get_current_identity(token: str = Depends(get_bearer_credential)) -> AuthenticatedIdentity:
    """
    Validates:
      - Authorization: Bearer <token>
      - token algorithm + signature + iss + exp
    Returns:
      - AuthenticatedIdentity (user id only; no store lookup)
    """
    user_id = validate_jwt(token, settings.JWT_SECRET, issuer=settings.JWT_ISSUER)
    return AuthenticatedIdentity(user_id=user_id)


def require_polka_key(authorization: str | None = Header(None)) -> None:
    """
    Validates:
      - Authorization: ApiKey <key>
      - key equals POLKA_KEY (constant-time)
    """
    key = get_api_key(authorization)
    if not api_key_matches(key, settings.POLKA_KEY):
        logger.warning("Rejected webhook call with a wrong API key")
        raise AuthenticationFailedError("Invalid API key")
