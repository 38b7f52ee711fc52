from __future__ import annotations

import os
from typing import Any, Dict, Optional

os.environ.setdefault("SECRET_KEY", "makerhub-test-secret-key-0123456789abcdef")
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from src.core.config import get_settings  # noqa: E402
from src.integrations.email.resend_client import EmailClientError, get_resend_client  # noqa: E402
from src.schemas.makerspace import WEEKDAYS  # noqa: E402
from src.storage.db import Base, get_session, load_models  # noqa: E402


def build_sqlite_session_factory() -> sessionmaker:
    load_models()
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


def make_profile(**overrides: Any) -> Dict[str, Any]:
    profile: Dict[str, Any] = {
        "type": "Fab Lab",
        "usage": ["3D printing", "Laser cutting"],
        "name": "TechHub Makerspace",
        "description": "Community workshop with rapid prototyping tools.",
        "email": "hello@techhub.io",
        "number": "+91-20-5550-0100",
        "inChargeName": "Ada Lovelace",
        "websiteLink": "https://techhub.io",
        "timings": {day: "9:00 AM - 6:00 PM" for day in WEEKDAYS},
        "city": "Pune",
        "state": "Maharashtra",
        "address": "12 Workshop Lane",
        "zipcode": "411001",
        "country": "India",
        "organizationName": "TechHub Foundation",
        "organizationEmail": "org@techhub.io",
        "imageLinks": ["https://cdn.techhub.io/floor.jpg"],
        "logoImageLinks": [],
        "googleMapLink": "https://maps.example.com/techhub",
        "howToReach": ["Metro line 1, Civil Court station"],
        "amenities": ["Wi-Fi", "Parking"],
        "mentors": [
            {
                "name": "Grace Hopper",
                "designation": "Electronics mentor",
                "linkedin": "https://linkedin.com/in/grace",
                "image": "https://cdn.techhub.io/grace.jpg",
            }
        ],
        "instructions": "Closed shoes are mandatory on the shop floor.",
        "additionalInformation": "Open house every Friday.",
        "rating": 4.5,
    }
    profile.update(overrides)
    return profile


class FakeResendClient:
    configured = True

    def __init__(self, *, fail: bool = False, error: Optional[Exception] = None) -> None:
        self.calls: list[dict[str, Any]] = []
        self._fail = fail
        self._error = error

    def send_email(self, *, from_address: str, to: str, subject: str, text: str, html=None):
        if self._error is not None:
            raise self._error
        if self._fail:
            raise EmailClientError("email_provider_request_failed status=500 detail=down")
        self.calls.append({"from_address": from_address, "to": to, "subject": subject, "text": text})
        return {"id": f"email-{len(self.calls)}"}


@pytest.fixture(autouse=True)
def _reset_cached_settings():
    get_settings.cache_clear()
    get_resend_client.cache_clear()
    yield
    get_settings.cache_clear()
    get_resend_client.cache_clear()


@pytest.fixture()
def session_factory() -> sessionmaker:
    return build_sqlite_session_factory()


@pytest.fixture()
def session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(session_factory):
    import src.api.main as api_main

    def override_get_session():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    api_main.app.dependency_overrides[get_session] = override_get_session
    try:
        yield TestClient(api_main.app)
    finally:
        api_main.app.dependency_overrides.clear()
