"""FastAPI dependencies for bearer authentication."""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request

from src.auth.jwt import AuthContext
from src.auth.middleware import AUTH_CONTEXT_KEY, extract_bearer_token
from src.core.errors import AuthError


def get_optional_auth_context(request: Request) -> Optional[AuthContext]:
    return getattr(request.state, AUTH_CONTEXT_KEY, None)


def require_auth_context(
    request: Request,
    auth: Optional[AuthContext] = Depends(get_optional_auth_context),
) -> AuthContext:
    """Reject the request unless the middleware resolved a valid identity.

    The response never says whether the token's email is registered.
    """

    if auth is not None:
        return auth
    if extract_bearer_token(request) is None:
        raise AuthError("missing token")
    raise AuthError("invalid or expired token")
