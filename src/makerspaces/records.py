"""Lifecycle-specific views of a makerspace row.

A row is either a ``PendingRecord`` (has a claim token, no profile) or an
``ActiveRecord`` (has a profile, no token). Services hand these out instead of
the ORM object so callers cannot read a token off an active record.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Union

from src.storage.models import MAKERSPACE_STATUS_ACTIVE, MAKERSPACE_STATUS_PENDING, Makerspace


@dataclass(frozen=True)
class PendingRecord:
    id: str
    email: str
    claim_token: str
    created_at: Optional[datetime]

    status: str = MAKERSPACE_STATUS_PENDING


@dataclass(frozen=True)
class ActiveRecord:
    id: str
    email: str
    profile: dict[str, Any]
    created_at: Optional[datetime]
    activated_at: Optional[datetime]
    updated_at: Optional[datetime]

    status: str = MAKERSPACE_STATUS_ACTIVE

    def to_document(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "status": self.status,
            "profile": dict(self.profile),
            "createdAt": _isoformat(self.created_at),
            "activatedAt": _isoformat(self.activated_at),
            "updatedAt": _isoformat(self.updated_at),
        }


MakerspaceRecord = Union[PendingRecord, ActiveRecord]


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if isinstance(value, datetime) else None


def record_from_row(row: Makerspace) -> MakerspaceRecord:
    if row.status == MAKERSPACE_STATUS_PENDING:
        if not row.claim_token:  # pragma: no cover - blocked by the table check constraint
            raise ValueError(f"pending makerspace {row.id} has no claim token")
        return PendingRecord(
            id=row.id,
            email=row.email,
            claim_token=row.claim_token,
            created_at=row.created_at,
        )
    if row.status == MAKERSPACE_STATUS_ACTIVE:
        return ActiveRecord(
            id=row.id,
            email=row.email,
            profile=dict(row.profile or {}),
            created_at=row.created_at,
            activated_at=row.activated_at,
            updated_at=row.updated_at,
        )
    raise ValueError(f"unknown makerspace status: {row.status!r}")
