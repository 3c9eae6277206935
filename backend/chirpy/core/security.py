# chirpy/core/security.py
from __future__ import annotations

from passlib.context import CryptContext
from passlib.exc import MissingBackendError, PasswordSizeError

from chirpy.auth.errors import HashingError
from chirpy.core.config import settings

# argon2id; hashes are PHC strings ($argon2id$v=19$m=..,t=..,p=..$salt$digest) so
# old hashes keep verifying after the cost parameters below change.
pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
    argon2__type="id",
    argon2__memory_cost=settings.ARGON2_MEMORY_COST,
    argon2__time_cost=settings.ARGON2_TIME_COST,
    argon2__parallelism=settings.ARGON2_PARALLELISM,
    argon2__digest_size=settings.ARGON2_DIGEST_SIZE,
)

# Throwaway hash for unknown-account logins, computed once with the live parameters.
_DUMMY_HASH = pwd_context.hash("chirpy-dummy-password")


# -------------------------
# Password hashing
# -------------------------
def hash_password(password: str) -> str:
    try:
        return pwd_context.hash(password)
    except (ValueError, MissingBackendError, OSError) as e:
        raise HashingError(f"Failed to hash password: {e}") from e


def verify_password(password: str, password_hash: str) -> bool:
    return verify_and_update_password(password, password_hash)[0]


def verify_and_update_password(password: str, password_hash: str) -> tuple[bool, str | None]:
    """
    Verify `password` against a stored hash.

    Returns (matched, replacement_hash). `replacement_hash` is set only when the
    password matched and the stored hash was produced with outdated parameters.

    Raises:
        HashingError: if `password_hash` is malformed or the backend fails
    """
    try:
        return pwd_context.verify_and_update(password, password_hash)
    except PasswordSizeError:
        # Oversized input can never match a stored hash.
        return False, None
    except (ValueError, TypeError, MissingBackendError) as e:
        raise HashingError(f"Failed to verify password: {e}") from e


def dummy_verify(password: str) -> None:
    """
    Burn one verification against a throwaway hash so an unknown account costs
    the same as a wrong password.
    """
    verify_password(password, _DUMMY_HASH)
