# chirpy/auth/__init__.py
"""
Authentication modules for Chirpy.

This package contains:
- errors.py: rejection vs infrastructure error taxonomy
- headers.py: Authorization header parsing (Bearer / ApiKey)
- tokens.py: stateless access token codec (HS256 JWT)
- identity.py: identity handed to request handlers
"""
from chirpy.auth.identity import AuthenticatedIdentity

__all__ = ["AuthenticatedIdentity"]
