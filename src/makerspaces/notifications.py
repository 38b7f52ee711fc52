"""Onboarding claim-link email."""

from __future__ import annotations

from typing import Optional

from src.core.config import get_settings
from src.integrations.email.delivery import build_public_link, deliver_email
from src.integrations.email.resend_client import ResendClient


_SUBJECT = "Finish setting up your makerspace"


def build_claim_link(token: str) -> str:
    return build_public_link(get_settings().onboarding_link_path, token)


def _render_text(link: str, expires_in_hours: int) -> str:
    return (
        "Hello,\n\n"
        "Someone asked to list a makerspace with this email address.\n"
        f"Complete the profile within {expires_in_hours} hours using the link below:\n\n"
        f"{link}\n\n"
        "If this was not you, ignore this message."
    )


def send_onboarding_link(email: str, token: str, *, client: Optional[ResendClient] = None) -> bool:
    settings = get_settings()
    return deliver_email(
        kind="onboarding",
        to=email,
        subject=_SUBJECT,
        text=_render_text(build_claim_link(token), settings.onboarding_token_exp_hours),
        client=client,
    )
