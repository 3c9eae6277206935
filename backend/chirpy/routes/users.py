from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from chirpy.auth.errors import AuthenticationFailedError
from chirpy.auth.identity import AuthenticatedIdentity
from chirpy.core.database import get_db
from chirpy.dependencies.auth import get_current_identity, get_session_service
from chirpy.schemas.user import UserCreateIn, UserOut, UserUpdateIn
from chirpy.services.sessions import SessionService
from chirpy.services.users import EmailAlreadyRegisteredError, create_user, get_user_by_id, update_user

router = APIRouter(prefix="/api/users", tags=["users"])


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def register(payload: UserCreateIn, db: Session = Depends(get_db)):
    try:
        return create_user(db, payload.email, payload.password)
    except EmailAlreadyRegisteredError:
        raise HTTPException(status_code=409, detail="Email already registered")


@router.put("", response_model=UserOut)
def update_me(
    payload: UserUpdateIn,
    identity: AuthenticatedIdentity = Depends(get_current_identity),
    db: Session = Depends(get_db),
    sessions: SessionService = Depends(get_session_service),
):
    if not payload.email and not payload.password:
        raise HTTPException(status_code=400, detail="Provide an email or a password to update")

    user = get_user_by_id(db, identity.user_id)
    if user is None:
        # Token outlived its account; same rejection as any bad token.
        raise AuthenticationFailedError("Account no longer exists")

    try:
        user, password_changed = update_user(db, user, email=payload.email, password=payload.password)
    except EmailAlreadyRegisteredError:
        raise HTTPException(status_code=409, detail="Email already registered")

    # Forces re-login on every device; access tokens already out keep working until exp.
    if password_changed:
        sessions.on_password_change(user.id)

    return user
