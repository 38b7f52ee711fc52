"""Resend API client used to deliver onboarding links."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, Optional

import httpx

from src.core.config import get_settings


class EmailClientError(RuntimeError):
    """Raised when the email provider rejects or cannot take a message."""


class ResendClient:
    def __init__(
        self,
        *,
        api_key: str,
        base_url: str = "https://api.resend.com",
        timeout_seconds: int = 20,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._api_key = api_key.strip()
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = max(1, timeout_seconds)
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def send_email(
        self,
        *,
        from_address: str,
        to: str,
        subject: str,
        text: str,
        html: Optional[str] = None,
    ) -> Dict[str, Any]:
        if not self._api_key:
            raise EmailClientError("email_api_key_missing")
        if not to.strip():
            raise EmailClientError("email_recipient_missing")
        if not from_address.strip():
            raise EmailClientError("email_from_address_missing")

        payload: Dict[str, Any] = {
            "from": from_address.strip(),
            "to": [to.strip()],
            "subject": subject.strip(),
            "text": text,
        }
        if html:
            payload["html"] = html
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

        try:
            if self._client is not None:
                response = self._client.post(f"{self._base_url}/emails", headers=headers, json=payload)
            else:
                with httpx.Client(timeout=self._timeout_seconds) as client:
                    response = client.post(f"{self._base_url}/emails", headers=headers, json=payload)
        except httpx.HTTPError as exc:
            raise EmailClientError(f"email_provider_unreachable error={exc.__class__.__name__}") from exc

        if response.status_code < 200 or response.status_code >= 300:
            detail = response.text.strip()
            if len(detail) > 200:
                detail = detail[:200] + "..."
            raise EmailClientError(
                f"email_provider_request_failed status={response.status_code} detail={detail}"
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise EmailClientError("email_provider_invalid_json_response") from exc
        if not isinstance(body, dict):
            raise EmailClientError("email_provider_invalid_payload")
        return body


@lru_cache(maxsize=1)
def get_resend_client() -> ResendClient:
    settings = get_settings()
    return ResendClient(
        api_key=settings.email_api_key,
        base_url=settings.email_api_base_url,
        timeout_seconds=settings.email_api_timeout_seconds,
    )
