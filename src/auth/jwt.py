"""JWT issue/verify primitives for user, claim and password-reset tokens."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional
import uuid

import jwt

from src.core.config import get_settings
from src.core.errors import AuthError


CLAIM_TOKEN_PURPOSE = "makerspace_claim"
PASSWORD_RESET_PURPOSE = "password_reset"


@dataclass(frozen=True)
class AuthContext:
    email: str
    subject: str
    purpose: Optional[str] = None
    user_id: Optional[str] = None
    claims: Mapping[str, Any] = field(default_factory=dict)


def create_access_token(
    email: str,
    *,
    purpose: Optional[str] = None,
    expires_in: Optional[int] = None,
    extra_claims: Optional[Mapping[str, Any]] = None,
) -> tuple[str, int]:
    """Sign a token for ``email``; returns the token and its lifetime in seconds."""

    settings = get_settings()
    if expires_in is None:
        expires_in = settings.access_token_exp_minutes * 60
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = dict(extra_claims or {})
    payload.update(
        {
            "sub": email,
            "email": email,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=expires_in)).timestamp()),
            "jti": uuid.uuid4().hex,
        }
    )
    if purpose:
        payload["purpose"] = purpose
    token = jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)
    return token, expires_in


def create_claim_token(email: str) -> tuple[str, int]:
    settings = get_settings()
    return create_access_token(
        email,
        purpose=CLAIM_TOKEN_PURPOSE,
        expires_in=settings.onboarding_token_exp_hours * 3600,
    )


def create_user_token(user_id: str, email: str) -> tuple[str, int]:
    return create_access_token(email, extra_claims={"uid": user_id})


def create_password_reset_token(user_id: str, email: str, fingerprint: str) -> tuple[str, int]:
    settings = get_settings()
    return create_access_token(
        email,
        purpose=PASSWORD_RESET_PURPOSE,
        expires_in=settings.password_reset_token_exp_minutes * 60,
        extra_claims={"uid": user_id, "pwf": fingerprint},
    )


def decode_access_token(token: str) -> AuthContext:
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "iat"]},
        )
    except jwt.PyJWTError as exc:
        raise AuthError("invalid or expired token") from exc

    email = str(payload.get("email") or payload.get("sub") or "").strip()
    if not email:
        raise AuthError("invalid or expired token")
    return AuthContext(
        email=email,
        subject=str(payload.get("sub", email)),
        purpose=payload.get("purpose"),
        user_id=payload.get("uid"),
        claims=payload,
    )
