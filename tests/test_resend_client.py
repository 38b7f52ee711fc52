from __future__ import annotations

import json

import httpx
import pytest

from src.integrations.email.resend_client import EmailClientError, ResendClient


def _client_with(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def test_send_email_posts_payload_with_bearer_key() -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, json={"id": "email-123"})

    client = ResendClient(api_key="re_test", base_url="https://mail.test/", client=_client_with(handler))
    body = client.send_email(
        from_address="onboarding@makerhub.io",
        to=" owner@x.com ",
        subject="Finish setting up your makerspace",
        text="link",
    )

    assert body == {"id": "email-123"}
    request = captured[0]
    assert str(request.url) == "https://mail.test/emails"
    assert request.headers["authorization"] == "Bearer re_test"
    payload = json.loads(request.content)
    assert payload["to"] == ["owner@x.com"]
    assert payload["from"] == "onboarding@makerhub.io"
    assert "html" not in payload


def test_send_email_raises_on_provider_error() -> None:
    client = ResendClient(
        api_key="re_test",
        client=_client_with(lambda request: httpx.Response(422, text="invalid from address")),
    )
    with pytest.raises(EmailClientError, match="status=422"):
        client.send_email(from_address="x@makerhub.io", to="owner@x.com", subject="s", text="t")


def test_send_email_raises_when_provider_unreachable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = ResendClient(api_key="re_test", client=_client_with(handler))
    with pytest.raises(EmailClientError, match="unreachable"):
        client.send_email(from_address="x@makerhub.io", to="owner@x.com", subject="s", text="t")


def test_send_email_requires_api_key() -> None:
    client = ResendClient(api_key="  ")
    assert client.configured is False
    with pytest.raises(EmailClientError, match="email_api_key_missing"):
        client.send_email(from_address="x@makerhub.io", to="owner@x.com", subject="s", text="t")
