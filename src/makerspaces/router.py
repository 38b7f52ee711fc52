"""Makerspace onboarding and directory API routes."""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, BackgroundTasks, Body, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from src.auth.dependencies import require_auth_context
from src.auth.jwt import AuthContext
from src.makerspaces.notifications import send_onboarding_link
from src.makerspaces.service import (
    begin_onboarding,
    finalize_makerspace,
    get_makerspace,
    get_makerspace_by_name,
    list_makerspace_names_by_city,
    update_makerspace,
    verify_claim,
)
from src.schemas.makerspace import ClaimVerificationResponse, MakerspaceResponse, OnboardRequest, OnboardResponse
from src.storage.db import get_session


router = APIRouter(prefix="/makerspace", tags=["makerspace"])


@router.post("/onboard", response_model=OnboardResponse, status_code=201)
def onboard(
    payload: OnboardRequest,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
) -> OnboardResponse:
    result = begin_onboarding(session, payload.email)
    background_tasks.add_task(send_onboarding_link, result.record.email, result.token)
    return OnboardResponse(token=result.token)


@router.get("/verify/{token}", response_model=ClaimVerificationResponse)
def verify(token: str, session: Session = Depends(get_session)):
    verification = verify_claim(session, token)
    if not verification.valid:
        return JSONResponse(status_code=404, content={"isValid": False})
    return ClaimVerificationResponse(is_valid=True, email=verification.email)


@router.post("/", response_model=MakerspaceResponse, status_code=201)
def finalize(
    payload: Dict[str, Any] = Body(...),
    auth: AuthContext = Depends(require_auth_context),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    return finalize_makerspace(session, auth, payload).to_document()


@router.get("/by-name/{name}", response_model=MakerspaceResponse)
def by_name(name: str, session: Session = Depends(get_session)) -> Dict[str, Any]:
    return get_makerspace_by_name(session, name).to_document()


@router.get("/by-city/{city}", response_model=List[str])
def names_by_city(city: str, session: Session = Depends(get_session)) -> List[str]:
    return list_makerspace_names_by_city(session, city)


@router.get("/{makerspace_id}", response_model=MakerspaceResponse)
def by_id(makerspace_id: str, session: Session = Depends(get_session)) -> Dict[str, Any]:
    return get_makerspace(session, makerspace_id).to_document()


@router.put("/{makerspace_id}", response_model=MakerspaceResponse)
def update(
    makerspace_id: str,
    payload: Dict[str, Any] = Body(...),
    auth: AuthContext = Depends(require_auth_context),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    del auth
    return update_makerspace(session, makerspace_id, payload).to_document()
