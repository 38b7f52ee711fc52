"""Makerspace onboarding, claim and directory application services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, cast

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.auth.jwt import AuthContext, create_claim_token, decode_access_token
from src.core.errors import AuthError, ConflictError, NotFoundError, PendingRegistrationNotFound, ValidationError
from src.core.logger import get_logger
from src.core.metrics import record_claim_verification, record_makerspace_finalized, record_onboarding_started
from src.makerspaces.records import ActiveRecord, PendingRecord, record_from_row
from src.makerspaces.validation import validate_profile
from src.storage.db import store_guard
from src.storage.models import MAKERSPACE_STATUS_ACTIVE, MAKERSPACE_STATUS_PENDING, Makerspace


logger = get_logger("makerhub.makerspaces")

RESERVED_PATCH_KEYS = frozenset({"id", "status", "claimToken"})


@dataclass(frozen=True)
class OnboardingResult:
    record: PendingRecord
    token: str
    expires_in: int


@dataclass(frozen=True)
class ClaimVerification:
    valid: bool
    email: Optional[str] = None


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def _find_by_email(session: Session, email: str) -> Optional[Makerspace]:
    return session.scalar(select(Makerspace).where(Makerspace.email == email))


def _find_pending(session: Session, email: str) -> Optional[Makerspace]:
    return session.scalar(
        select(Makerspace).where(
            Makerspace.email == email,
            Makerspace.status == MAKERSPACE_STATUS_PENDING,
        )
    )


def _find_active(session: Session, makerspace_id: str) -> Optional[Makerspace]:
    return session.scalar(
        select(Makerspace).where(
            Makerspace.id == makerspace_id,
            Makerspace.status == MAKERSPACE_STATUS_ACTIVE,
        )
    )


def _as_active(row: Makerspace) -> ActiveRecord:
    record = record_from_row(row)
    if not isinstance(record, ActiveRecord):  # pragma: no cover - callers filter on status
        raise NotFoundError("Makerspace not found")
    return record


def begin_onboarding(session: Session, email: Optional[str]) -> OnboardingResult:
    """Create the pending record for ``email`` and return its signed claim token.

    Any existing record blocks onboarding, including an active one. The unique
    constraint on ``email`` settles concurrent calls: the loser gets
    ``ConflictError`` from the failed insert. Sending the claim link is the
    caller's job.
    """

    normalized = normalize_email(email)
    if not normalized:
        raise ValidationError("Email is required", fields=["email"])

    with store_guard(session, "begin_onboarding"):
        if _find_by_email(session, normalized) is not None:
            record_onboarding_started(outcome="conflict")
            raise ConflictError("Makerspace with this email already exists", fields=["email"])

        token, expires_in = create_claim_token(normalized)
        row = Makerspace(email=normalized, status=MAKERSPACE_STATUS_PENDING, claim_token=token)
        session.add(row)
        try:
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            record_onboarding_started(outcome="conflict")
            raise ConflictError("Makerspace with this email already exists", fields=["email"]) from exc

        record = cast(PendingRecord, record_from_row(row))

    record_onboarding_started(outcome="created")
    logger.info(
        "makerspace_onboarding_started",
        makerspace_id=record.id,
        expires_in=expires_in,
    )
    return OnboardingResult(record=record, token=token, expires_in=expires_in)


def verify_claim(session: Session, token: Optional[str]) -> ClaimVerification:
    """Report whether ``token`` still claims a pending makerspace.

    The stored-token match and the signature/expiry check must both pass, so
    this agrees with the bearer gate used by finalization.
    """

    candidate = (token or "").strip()
    if not candidate:
        record_claim_verification(valid=False)
        return ClaimVerification(valid=False)

    with store_guard(session, "verify_claim"):
        row = session.scalar(
            select(Makerspace).where(
                Makerspace.claim_token == candidate,
                Makerspace.status == MAKERSPACE_STATUS_PENDING,
            )
        )
    if row is None:
        record_claim_verification(valid=False)
        return ClaimVerification(valid=False)

    try:
        context = decode_access_token(candidate)
    except AuthError:
        record_claim_verification(valid=False)
        logger.info("claim_token_rejected", makerspace_id=row.id, reason="signature_or_expiry")
        return ClaimVerification(valid=False)

    if normalize_email(context.email) != row.email:
        record_claim_verification(valid=False)
        logger.warning("claim_token_rejected", makerspace_id=row.id, reason="email_mismatch")
        return ClaimVerification(valid=False)

    record_claim_verification(valid=True)
    return ClaimVerification(valid=True, email=row.email)


def finalize_makerspace(session: Session, identity: AuthContext, payload: Any) -> ActiveRecord:
    """Turn the caller's pending record into an active makerspace.

    The email comes from the authenticated identity only. The transition is a
    single ``UPDATE`` filtered on ``status = 'pending'``; when it touches no
    row another request already finalized and this one fails.
    """

    email = normalize_email(identity.email)
    with store_guard(session, "finalize_makerspace.lookup"):
        pending = _find_pending(session, email)
    if pending is None:
        record_makerspace_finalized(outcome="no_pending")
        raise PendingRegistrationNotFound()

    try:
        profile = validate_profile(payload)
    except ValidationError:
        record_makerspace_finalized(outcome="invalid")
        raise

    now = datetime.now(timezone.utc)
    with store_guard(session, "finalize_makerspace.activate"):
        result = session.execute(
            update(Makerspace)
            .where(
                Makerspace.email == email,
                Makerspace.status == MAKERSPACE_STATUS_PENDING,
            )
            .values(
                status=MAKERSPACE_STATUS_ACTIVE,
                claim_token=None,
                profile=profile.to_document(),
                name=profile.name.strip(),
                city=profile.city.strip(),
                activated_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            session.rollback()
            record_makerspace_finalized(outcome="lost_race")
            raise PendingRegistrationNotFound()
        session.commit()
        row = session.get(Makerspace, pending.id, populate_existing=True)

    if row is None:  # pragma: no cover - the row was updated a statement ago
        raise PendingRegistrationNotFound()
    record_makerspace_finalized(outcome="activated")
    logger.info("makerspace_finalized", makerspace_id=row.id)
    return _as_active(row)


def get_makerspace(session: Session, makerspace_id: str) -> ActiveRecord:
    with store_guard(session, "get_makerspace"):
        row = _find_active(session, makerspace_id)
    if row is None:
        raise NotFoundError("Makerspace not found")
    return _as_active(row)


def get_makerspace_by_name(session: Session, name: str) -> ActiveRecord:
    wanted = (name or "").strip().lower()
    if not wanted:
        raise NotFoundError("Makerspace not found")
    with store_guard(session, "get_makerspace_by_name"):
        row = session.scalar(
            select(Makerspace)
            .where(
                Makerspace.status == MAKERSPACE_STATUS_ACTIVE,
                func.lower(Makerspace.name) == wanted,
            )
            .order_by(Makerspace.activated_at.asc())
            .limit(1)
        )
    if row is None:
        raise NotFoundError("Makerspace not found")
    return _as_active(row)


def list_makerspace_names_by_city(session: Session, city: str) -> list[str]:
    wanted = (city or "").strip().lower()
    names: list[str] = []
    if wanted:
        with store_guard(session, "list_makerspace_names_by_city"):
            names = list(
                session.scalars(
                    select(Makerspace.name)
                    .where(
                        Makerspace.status == MAKERSPACE_STATUS_ACTIVE,
                        func.lower(Makerspace.city) == wanted,
                    )
                    .order_by(Makerspace.name.asc())
                ).all()
            )
    if not names:
        raise NotFoundError("No makerspaces found in this city")
    return names


def _merge_profile_patch(current: Mapping[str, Any], patch: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(current)
    for key, value in patch.items():
        if key in RESERVED_PATCH_KEYS:
            continue
        if key == "timings" and isinstance(value, Mapping) and isinstance(merged.get("timings"), Mapping):
            merged["timings"] = {**merged["timings"], **value}
        else:
            merged[key] = value
    return merged


def update_makerspace(session: Session, makerspace_id: str, patch: Any) -> ActiveRecord:
    """Patch fields of an active profile; the merged result is re-validated."""

    if not isinstance(patch, Mapping):
        raise ValidationError("Update payload must be a JSON object")

    with store_guard(session, "update_makerspace.lookup"):
        row = _find_active(session, makerspace_id)
    if row is None:
        raise NotFoundError("Makerspace not found")

    profile = validate_profile(_merge_profile_patch(row.profile or {}, patch))

    now = datetime.now(timezone.utc)
    with store_guard(session, "update_makerspace.write"):
        result = session.execute(
            update(Makerspace)
            .where(
                Makerspace.id == makerspace_id,
                Makerspace.status == MAKERSPACE_STATUS_ACTIVE,
            )
            .values(
                profile=profile.to_document(),
                name=profile.name.strip(),
                city=profile.city.strip(),
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            session.rollback()
            raise NotFoundError("Makerspace not found")
        session.commit()
        refreshed = session.get(Makerspace, makerspace_id, populate_existing=True)

    if refreshed is None:  # pragma: no cover
        raise NotFoundError("Makerspace not found")
    logger.info("makerspace_updated", makerspace_id=makerspace_id, fields=sorted(set(patch) - RESERVED_PATCH_KEYS))
    return _as_active(refreshed)
