"""Best-effort outbound email built on the Resend client.

Messages are sent after the request that triggered them has been answered,
so nothing here raises: every outcome is logged and counted instead.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import urlencode

from src.core.config import get_settings
from src.core.logger import get_logger
from src.core.metrics import record_email_delivery
from src.integrations.email.resend_client import EmailClientError, ResendClient, get_resend_client


logger = get_logger("makerhub.email")


def build_public_link(path: str, token: str) -> str:
    settings = get_settings()
    base_url = settings.app_public_base_url.rstrip("/")
    return f"{base_url}{path}?{urlencode({'token': token})}"


def deliver_email(
    *,
    kind: str,
    to: str,
    subject: str,
    text: str,
    client: Optional[ResendClient] = None,
) -> bool:
    """Send one message. Returns whether the provider accepted it."""

    settings = get_settings()
    resend = client or get_resend_client()
    if not resend.configured or not settings.email_from_address.strip():
        record_email_delivery(kind=kind, status="skipped")
        logger.info("email_skipped", kind=kind, reason="email_not_configured")
        return False

    try:
        response = resend.send_email(
            from_address=settings.email_from_address,
            to=to,
            subject=subject,
            text=text,
        )
    except EmailClientError as exc:
        record_email_delivery(kind=kind, status="failed")
        logger.warning("email_failed", kind=kind, error=str(exc))
        return False
    except Exception as exc:
        record_email_delivery(kind=kind, status="failed")
        logger.error("email_failed_unexpectedly", kind=kind, error=exc.__class__.__name__, exc_info=True)
        return False

    record_email_delivery(kind=kind, status="sent")
    logger.info("email_sent", kind=kind, provider_message_id=response.get("id"))
    return True
