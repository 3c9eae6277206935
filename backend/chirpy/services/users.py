# chirpy/services/users.py
"""
Credential store helpers.

Responsibilities:
- Creating accounts (only the argon2id hash is persisted)
- Lookup by email or id
- Email / password updates (caller decides what to do on password change)
"""
from __future__ import annotations

import logging
import uuid
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from chirpy.auth.errors import StoreUnavailableError
from chirpy.core.security import hash_password
from chirpy.models.user import User

logger = logging.getLogger(__name__)


class EmailAlreadyRegisteredError(Exception):
    """Raised when an email is already taken by another account."""

    pass


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """Look up a user by email address."""
    try:
        return db.query(User).filter(User.email == normalize_email(email)).first()
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreUnavailableError(f"Failed to read user: {e}") from e


def get_user_by_id(db: Session, user_id: uuid.UUID) -> Optional[User]:
    """Look up a user by primary key."""
    try:
        return db.get(User, user_id)
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreUnavailableError(f"Failed to read user: {e}") from e


def create_user(db: Session, email: str, password: str) -> User:
    """
    Create a new account.

    Raises:
        EmailAlreadyRegisteredError: if the email is taken
        HashingError: if the password cannot be hashed
    """
    normalized_email = normalize_email(email)
    if get_user_by_email(db, normalized_email) is not None:
        raise EmailAlreadyRegisteredError(normalized_email)

    user = User(email=normalized_email, hashed_password=hash_password(password))
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise EmailAlreadyRegisteredError(normalized_email) from e
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreUnavailableError(f"Failed to store user: {e}") from e
    db.refresh(user)

    logger.info("Created user id=%s", user.id)
    return user


def update_user(
    db: Session,
    user: User,
    *,
    email: str | None = None,
    password: str | None = None,
) -> tuple[User, bool]:
    """
    Update email and/or password. Returns (user, password_changed).

    A password change is a full replacement of the stored hash.
    """
    if email:
        normalized_email = normalize_email(email)
        if normalized_email != user.email:
            existing = get_user_by_email(db, normalized_email)
            if existing is not None and existing.id != user.id:
                raise EmailAlreadyRegisteredError(normalized_email)
            user.email = normalized_email

    password_changed = False
    if password:
        user.hashed_password = hash_password(password)
        password_changed = True

    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise EmailAlreadyRegisteredError(user.email) from e
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreUnavailableError(f"Failed to store user: {e}") from e
    db.refresh(user)

    logger.info("Updated user id=%s password_changed=%s", user.id, password_changed)
    return user, password_changed


def replace_password_hash(db: Session, user: User, new_hash: str) -> None:
    """Persist an upgraded hash produced at login (same password, newer parameters)."""
    user.hashed_password = new_hash
    db.add(user)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreUnavailableError(f"Failed to store upgraded password hash: {e}") from e


def upgrade_to_chirpy_red(db: Session, user: User) -> User:
    user.is_chirpy_red = True
    db.add(user)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreUnavailableError(f"Failed to upgrade user: {e}") from e
    db.refresh(user)
    logger.info("Upgraded user id=%s to Chirpy Red", user.id)
    return user
