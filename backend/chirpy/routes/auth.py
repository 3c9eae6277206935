# chirpy/routes/auth.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from chirpy.dependencies.auth import get_bearer_credential, get_session_service
from chirpy.schemas.auth import LoginIn, LoginOut, TokenOut
from chirpy.services.sessions import SessionService

router = APIRouter(prefix="/api", tags=["auth"])


@router.post("/login", response_model=LoginOut)
def login(payload: LoginIn, sessions: SessionService = Depends(get_session_service)):
    result = sessions.login(payload.email, payload.password)
    user = result.user
    return {
        "id": user.id,
        "email": user.email,
        "created_at": user.created_at,
        "updated_at": user.updated_at,
        "is_chirpy_red": user.is_chirpy_red,
        "token": result.access_token,
        "refresh_token": result.refresh_token,
    }


@router.post("/refresh", response_model=TokenOut)
def refresh(
    raw: str = Depends(get_bearer_credential),
    sessions: SessionService = Depends(get_session_service),
):
    """
    Exchange the refresh token in `Authorization: Bearer <token>` for a new
    access token. The refresh token itself stays valid.
    """
    return {"token": sessions.refresh(raw)}


@router.post("/revoke", status_code=status.HTTP_204_NO_CONTENT)
def revoke(
    raw: str = Depends(get_bearer_credential),
    sessions: SessionService = Depends(get_session_service),
):
    """
    Revoke the refresh token in the Authorization header. Always 204 once a
    bearer credential is present, whether or not the token existed.
    """
    sessions.revoke(raw)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
