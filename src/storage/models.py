"""SQLAlchemy ORM models for makerspaces and user accounts."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional
import uuid

from sqlalchemy import JSON, CheckConstraint, DateTime, Index, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from src.storage.db import Base


MAKERSPACE_STATUS_PENDING = "pending"
MAKERSPACE_STATUS_ACTIVE = "active"


def _uuid() -> str:
    return str(uuid.uuid4())


class Makerspace(Base):
    __tablename__ = "makerspaces"
    __table_args__ = (
        UniqueConstraint("claim_token", name="uq_makerspaces_claim_token"),
        CheckConstraint("status IN ('pending', 'active')", name="ck_makerspaces_status"),
        CheckConstraint(
            "(status = 'pending' AND claim_token IS NOT NULL AND profile IS NULL)"
            " OR (status = 'active' AND claim_token IS NULL AND profile IS NOT NULL)",
            name="ck_makerspaces_lifecycle_fields",
        ),
        Index("ix_makerspaces_email", "email", unique=True),
        Index("ix_makerspaces_status_city", "status", "city"),
        Index("ix_makerspaces_status_name", "status", "name"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=MAKERSPACE_STATUS_PENDING)
    claim_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    profile: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON(none_as_null=True), nullable=True)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    activated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


USER_ROLE_INDIVIDUAL = "Individual"


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        Index("ix_users_email", "email", unique=True),
        Index("ix_users_number", "number"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    number: Mapped[str] = mapped_column(String(64), nullable=False)
    usertype: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    industry: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    purpose: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    role: Mapped[str] = mapped_column(String(32), nullable=False, default=USER_ROLE_INDIVIDUAL)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
