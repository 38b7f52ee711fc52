from __future__ import annotations

import httpx
from sqlalchemy import select

import src.integrations.email.delivery as delivery_module
from src.makerspaces.notifications import build_claim_link, send_onboarding_link
from src.makerspaces.service import begin_onboarding
from src.storage.models import Makerspace
from tests.conftest import FakeResendClient


def _configure_email(monkeypatch) -> None:
    monkeypatch.setenv("EMAIL_FROM_ADDRESS", "onboarding@makerhub.io")
    monkeypatch.setenv("APP_PUBLIC_BASE_URL", "https://makerhub.io/")


def test_claim_link_uses_public_base_url(monkeypatch) -> None:
    _configure_email(monkeypatch)
    assert build_claim_link("abc.def") == "https://makerhub.io/makerspace/claim?token=abc.def"


def test_send_onboarding_link_delivers_claim_link(monkeypatch) -> None:
    _configure_email(monkeypatch)
    fake_client = FakeResendClient()

    assert send_onboarding_link("owner@x.com", "tok-1", client=fake_client) is True

    call = fake_client.calls[0]
    assert call["to"] == "owner@x.com"
    assert call["from_address"] == "onboarding@makerhub.io"
    assert "https://makerhub.io/makerspace/claim?token=tok-1" in call["text"]


def test_send_onboarding_link_skips_when_email_is_not_configured() -> None:
    fake_client = FakeResendClient()
    assert send_onboarding_link("owner@x.com", "tok-1", client=fake_client) is False
    assert fake_client.calls == []


def test_send_onboarding_link_reports_provider_failure(monkeypatch) -> None:
    _configure_email(monkeypatch)
    assert send_onboarding_link("owner@x.com", "tok-1", client=FakeResendClient(fail=True)) is False


def test_send_onboarding_link_absorbs_unexpected_client_errors(monkeypatch) -> None:
    _configure_email(monkeypatch)
    broken = FakeResendClient(error=httpx.InvalidURL("bad email api base url"))
    assert send_onboarding_link("owner@x.com", "tok-1", client=broken) is False


def test_begin_onboarding_does_not_touch_the_mail_client(session, monkeypatch) -> None:
    _configure_email(monkeypatch)

    def _unexpected():
        raise AssertionError("onboarding must not send mail inline")

    monkeypatch.setattr(delivery_module, "get_resend_client", _unexpected)

    result = begin_onboarding(session, "owner@x.com")

    assert result.token


def test_onboard_route_sends_link_after_responding(client, monkeypatch) -> None:
    _configure_email(monkeypatch)
    fake_client = FakeResendClient()
    monkeypatch.setattr(delivery_module, "get_resend_client", lambda: fake_client)

    response = client.post("/makerspace/onboard", json={"email": "owner@x.com"})

    assert response.status_code == 201
    token = response.json()["token"]
    assert len(fake_client.calls) == 1
    assert token in fake_client.calls[0]["text"]


def test_onboard_route_returns_token_when_mail_client_crashes(client, session, monkeypatch) -> None:
    _configure_email(monkeypatch)
    monkeypatch.setattr(delivery_module, "get_resend_client", lambda: FakeResendClient(error=RuntimeError("boom")))

    response = client.post("/makerspace/onboard", json={"email": "owner@x.com"})

    assert response.status_code == 201
    token = response.json()["token"]
    row = session.scalar(select(Makerspace).where(Makerspace.email == "owner@x.com"))
    assert row is not None
    assert row.status == "pending"
    assert row.claim_token == token
    assert client.get(f"/makerspace/verify/{token}").json()["isValid"] is True
