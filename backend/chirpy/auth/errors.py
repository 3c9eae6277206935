# chirpy/auth/errors.py
"""
Authentication error taxonomy.

Two disjoint families:
- AuthenticationRejectedError: the caller presented something we refuse
  (bad header shape, wrong password, bad access token, unusable refresh token).
  At the HTTP boundary every subclass collapses into the same 401 response;
  the concrete class is for logs only.
- AuthInfrastructureError: something on our side failed (hash backend,
  signer, entropy source, token store). Maps to a generic 500.
"""
from __future__ import annotations


class AuthError(Exception):
    """Base exception for the authentication subsystem."""

    pass


# ---------------------------------------------------------------------------
# Rejections (attacker-controllable)
# ---------------------------------------------------------------------------


class AuthenticationRejectedError(AuthError):
    """Base class for credential rejections."""

    pass


class MalformedCredentialError(AuthenticationRejectedError):
    """Raised when the Authorization header or a raw token has the wrong shape."""

    pass


class AuthenticationFailedError(AuthenticationRejectedError):
    """Raised for a wrong password or an unknown account (deliberately the same)."""

    pass


class InvalidTokenError(AuthenticationRejectedError):
    """Raised when an access token fails signature, algorithm, issuer, expiry or subject checks."""

    pass


class NotFoundError(AuthenticationRejectedError):
    """Raised when a refresh token is absent, revoked or expired (indistinguishable)."""

    pass


# ---------------------------------------------------------------------------
# Infrastructure failures
# ---------------------------------------------------------------------------


class AuthInfrastructureError(AuthError):
    """Base class for failures that are not caused by the caller's input."""

    pass


class HashingError(AuthInfrastructureError):
    """Raised when the password hash backend fails or a stored hash is malformed."""

    pass


class SigningError(AuthInfrastructureError):
    """Raised when an access token cannot be signed."""

    pass


class EntropyError(AuthInfrastructureError):
    """Raised when the OS random source is unavailable."""

    pass


class ConflictError(AuthInfrastructureError):
    """Raised when a generated refresh token collides with an existing row."""

    pass


class StoreUnavailableError(AuthInfrastructureError):
    """Raised when the token store cannot complete a round trip."""

    pass
