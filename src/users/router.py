"""User account API routes."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from src.auth.dependencies import require_auth_context
from src.auth.jwt import AuthContext
from src.schemas.user import (
    AuthResponse,
    ContactResponse,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    ResetPasswordRequest,
    SignupRequest,
    UserResponse,
)
from src.storage.db import get_session
from src.users.notifications import send_password_reset_link
from src.users.service import AuthResult, find_contact_email, login, reauth, request_password_reset, reset_password, signup


router = APIRouter(prefix="/users", tags=["users"])


def _auth_response(result: AuthResult) -> AuthResponse:
    return AuthResponse(user=UserResponse.model_validate(result.user), token=result.token)


@router.post("/signup", response_model=AuthResponse, status_code=201)
def signup_user(payload: SignupRequest, session: Session = Depends(get_session)) -> AuthResponse:
    result = signup(
        session,
        email=payload.email,
        password=payload.password,
        name=payload.name,
        number=payload.number,
        usertype=payload.usertype,
        industry=payload.industry,
        purpose=payload.purpose,
    )
    return _auth_response(result)


@router.post("/login", response_model=AuthResponse)
def login_user(payload: LoginRequest, session: Session = Depends(get_session)) -> AuthResponse:
    return _auth_response(login(session, email=payload.email, password=payload.password))


@router.get("/by-contact", response_model=ContactResponse)
def user_by_contact(
    email: Optional[str] = Query(default=None),
    number: Optional[str] = Query(default=None),
    session: Session = Depends(get_session),
) -> ContactResponse:
    return ContactResponse(email=find_contact_email(session, email=email, number=number))


@router.get("/reauth", response_model=AuthResponse)
def reauth_user(
    auth: AuthContext = Depends(require_auth_context),
    session: Session = Depends(get_session),
) -> AuthResponse:
    return _auth_response(reauth(session, auth))


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(
    payload: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
) -> MessageResponse:
    reset = request_password_reset(session, payload.email)
    background_tasks.add_task(send_password_reset_link, reset.email, reset.token)
    return MessageResponse(message="Password reset link sent to your email")


@router.post("/reset-password", response_model=MessageResponse)
def reset_user_password(payload: ResetPasswordRequest, session: Session = Depends(get_session)) -> MessageResponse:
    reset_password(session, token=payload.token, new_password=payload.new_password)
    return MessageResponse(message="Password updated successfully")
