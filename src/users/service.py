"""User account services: signup, login, token refresh and password reset."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.auth.jwt import PASSWORD_RESET_PURPOSE, AuthContext, create_password_reset_token, create_user_token, decode_access_token
from src.core.errors import AuthError, ConflictError, NotFoundError, ValidationError
from src.core.logger import get_logger
from src.core.metrics import record_user_auth
from src.storage.db import store_guard
from src.storage.models import USER_ROLE_INDIVIDUAL, User
from src.storage.security import hash_password, password_fingerprint, verify_password


logger = get_logger("makerhub.users")


@dataclass(frozen=True)
class AuthResult:
    user: User
    token: str
    expires_in: int


@dataclass(frozen=True)
class PasswordResetRequest:
    email: str
    token: str
    expires_in: int


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _find_by_email(session: Session, email: str) -> Optional[User]:
    return session.scalar(select(User).where(User.email == email))


def _issue(user: User) -> AuthResult:
    token, expires_in = create_user_token(user.id, user.email)
    return AuthResult(user=user, token=token, expires_in=expires_in)


def signup(
    session: Session,
    *,
    email: Optional[str],
    password: Optional[str],
    name: Optional[str],
    number: Optional[str],
    usertype: Iterable[str] = (),
    industry: Iterable[str] = (),
    purpose: Iterable[str] = (),
) -> AuthResult:
    """Create an account and sign the caller in. Every account starts as ``Individual``."""

    provided = {"email": email, "password": password, "name": name, "number": number}
    missing = [field_name for field_name, value in provided.items() if _blank(value)]
    if missing:
        record_user_auth(event="signup", outcome="invalid")
        raise ValidationError("Missing required fields", fields=missing)

    normalized = normalize_email(email)
    with store_guard(session, "signup"):
        if _find_by_email(session, normalized) is not None:
            record_user_auth(event="signup", outcome="conflict")
            raise ConflictError("User already exists", fields=["email"])

        user = User(
            email=normalized,
            password_hash=hash_password(password or ""),
            name=(name or "").strip(),
            number=(number or "").strip(),
            usertype=list(usertype),
            industry=list(industry),
            purpose=list(purpose),
            role=USER_ROLE_INDIVIDUAL,
        )
        session.add(user)
        try:
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            record_user_auth(event="signup", outcome="conflict")
            raise ConflictError("User already exists", fields=["email"]) from exc
        session.refresh(user)

    record_user_auth(event="signup", outcome="created")
    logger.info("user_signed_up", user_id=user.id)
    return _issue(user)


def login(session: Session, *, email: Optional[str], password: Optional[str]) -> AuthResult:
    if _blank(email) or not password:
        record_user_auth(event="login", outcome="invalid")
        raise ValidationError("Email and password are required", fields=["email", "password"])

    with store_guard(session, "login"):
        user = _find_by_email(session, normalize_email(email))
    if user is None or not verify_password(password, user.password_hash):
        record_user_auth(event="login", outcome="rejected")
        raise AuthError("Invalid credentials")

    record_user_auth(event="login", outcome="ok")
    logger.info("user_logged_in", user_id=user.id)
    return _issue(user)


def reauth(session: Session, identity: AuthContext) -> AuthResult:
    """Issue a fresh token for the account behind ``identity``."""

    with store_guard(session, "reauth"):
        if identity.user_id:
            user = session.get(User, identity.user_id)
        else:
            user = _find_by_email(session, normalize_email(identity.email))
    if user is None:
        raise NotFoundError("User not found")

    record_user_auth(event="reauth", outcome="ok")
    return _issue(user)


def find_contact_email(session: Session, *, email: Optional[str] = None, number: Optional[str] = None) -> str:
    user: Optional[User] = None
    with store_guard(session, "find_contact_email"):
        if not _blank(email):
            user = _find_by_email(session, normalize_email(email))
        elif not _blank(number):
            user = session.scalar(select(User).where(User.number == (number or "").strip()).limit(1))
    if user is None:
        raise NotFoundError("User not found")
    return user.email


def request_password_reset(session: Session, email: Optional[str]) -> PasswordResetRequest:
    if _blank(email):
        raise ValidationError("Email is required", fields=["email"])

    with store_guard(session, "request_password_reset"):
        user = _find_by_email(session, normalize_email(email))
    if user is None:
        raise NotFoundError("User not found")

    token, expires_in = create_password_reset_token(user.id, user.email, password_fingerprint(user.password_hash))
    record_user_auth(event="password_reset_requested", outcome="ok")
    logger.info("password_reset_requested", user_id=user.id)
    return PasswordResetRequest(email=user.email, token=token, expires_in=expires_in)


def reset_password(session: Session, *, token: Optional[str], new_password: Optional[str]) -> None:
    """Replace the password named by a reset token.

    The token carries a fingerprint of the hash it was issued against, so it
    stops matching as soon as the password changes.
    """

    if _blank(token) or not new_password:
        raise ValidationError("Token and new password are required", fields=["token", "newPassword"])

    try:
        context = decode_access_token((token or "").strip())
    except AuthError as exc:
        record_user_auth(event="password_reset", outcome="invalid_token")
        raise ValidationError("Invalid or expired reset token", fields=["token"]) from exc
    if context.purpose != PASSWORD_RESET_PURPOSE or not context.user_id:
        record_user_auth(event="password_reset", outcome="invalid_token")
        raise ValidationError("Invalid reset token", fields=["token"])

    with store_guard(session, "reset_password.lookup"):
        user = session.get(User, context.user_id)
    if user is None:
        raise NotFoundError("User not found")
    if context.claims.get("pwf") != password_fingerprint(user.password_hash):
        record_user_auth(event="password_reset", outcome="stale_token")
        raise ValidationError("Invalid or expired reset token", fields=["token"])

    with store_guard(session, "reset_password.write"):
        result = session.execute(
            update(User)
            .where(User.id == user.id, User.password_hash == user.password_hash)
            .values(password_hash=hash_password(new_password), updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            session.rollback()
            record_user_auth(event="password_reset", outcome="stale_token")
            raise ValidationError("Invalid or expired reset token", fields=["token"])
        session.commit()

    record_user_auth(event="password_reset", outcome="ok")
    logger.info("password_reset_completed", user_id=user.id)
