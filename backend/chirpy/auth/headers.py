# chirpy/auth/headers.py
"""
Authorization header parsing.

Two schemes share one wire shape, "<Scheme> <credential>":
- Bearer: access tokens (JWT) and refresh tokens (64 hex chars)
- ApiKey: service-to-service keys (opaque, compared by exact match)

Absent and malformed headers raise the same error on purpose.
"""
from __future__ import annotations

import hmac

from chirpy.auth.errors import MalformedCredentialError

BEARER_SCHEME = "bearer"
API_KEY_SCHEME = "apikey"


def _extract(header_value: str | None, scheme: str) -> str:
    if not header_value:
        raise MalformedCredentialError("Missing Authorization header")

    parts = header_value.split(" ")
    if len(parts) != 2 or parts[0].lower() != scheme or not parts[1]:
        raise MalformedCredentialError("Malformed Authorization header")

    return parts[1]


def get_bearer_token(header_value: str | None) -> str:
    return _extract(header_value, BEARER_SCHEME)


def get_api_key(header_value: str | None) -> str:
    return _extract(header_value, API_KEY_SCHEME)


def api_key_matches(presented: str, expected: str) -> bool:
    """
    Constant-time comparison of a presented API key against the configured one.
    An unconfigured (empty) key never matches.
    """
    if not expected:
        return False
    return hmac.compare_digest(presented.encode("utf-8"), expected.encode("utf-8"))
