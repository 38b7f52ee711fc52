"""Password-reset email."""

from __future__ import annotations

from typing import Optional

from src.core.config import get_settings
from src.integrations.email.delivery import build_public_link, deliver_email
from src.integrations.email.resend_client import ResendClient


def build_reset_link(token: str) -> str:
    return build_public_link(get_settings().password_reset_link_path, token)


def send_password_reset_link(email: str, token: str, *, client: Optional[ResendClient] = None) -> bool:
    minutes = get_settings().password_reset_token_exp_minutes
    text = (
        "You asked to reset your password. Use the link below:\n\n"
        f"{build_reset_link(token)}\n\n"
        f"The link expires in {minutes} minutes. If you did not ask for this, ignore this message."
    )
    return deliver_email(
        kind="password_reset",
        to=email,
        subject="Password reset request",
        text=text,
        client=client,
    )
