"""Outbound email delivery (Resend)."""

from src.integrations.email.resend_client import EmailClientError, ResendClient, get_resend_client

__all__ = ["EmailClientError", "ResendClient", "get_resend_client"]
