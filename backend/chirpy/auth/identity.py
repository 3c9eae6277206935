# chirpy/auth/identity.py
"""
Authenticated identity handed to request handlers.

Produced by a successful access-token validation. It carries nothing but the
user id: no claims, no roles, nothing persisted.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass


@dataclass(frozen=True)
class AuthenticatedIdentity:
    user_id: uuid.UUID
