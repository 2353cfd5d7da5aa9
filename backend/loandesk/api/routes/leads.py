from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from loandesk.api.deps import get_db
from loandesk.models import BankApplication, Lead, Profile, RentalStatus, SegmentType
from loandesk.schemas.leads import (
    LeadCreate,
    LeadDetail,
    LeadListItem,
    LeadListResponse,
    LeadStatusResponse,
)
from loandesk.services.phone import mask_mobile_number

router = APIRouter(prefix="/api/leads", tags=["leads"])

logger = logging.getLogger(__name__)

# Local part of an Indian mobile number, used to match regardless of country prefix
LOCAL_MOBILE_DIGITS = 10

LIKE_ESCAPE = "\\"


def _escape_like(term: str) -> str:
    """Make % and _ in a search term match literally."""
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def _enum_value(value) -> str | None:
    return value.value if value is not None else None


def _to_list_item(lead: Lead) -> LeadListItem:
    return LeadListItem(
        id=lead.id,
        full_name=lead.full_name,
        mobile_number=mask_mobile_number(lead.mobile_number),
        segment=_enum_value(lead.segment),
        lead_owner=lead.lead_owner,
        created_at=lead.created_at,
    )


def _to_detail(lead: Lead) -> LeadDetail:
    return LeadDetail(
        id=lead.id,
        first_name=lead.first_name,
        last_name=lead.last_name,
        mobile_number=lead.mobile_number,
        segment=_enum_value(lead.segment),
        lead_owner=lead.lead_owner,
        company_name=lead.company_name,
        net_salary=float(lead.net_salary) if lead.net_salary is not None else None,
        dob=lead.dob,
        personal_mail_id=lead.personal_mail_id,
        official_mail_id=lead.official_mail_id,
        current_resi_address=lead.current_resi_address,
        current_pin_code=lead.current_pin_code,
        rented_owned=_enum_value(lead.rented_owned),
        created_at=lead.created_at,
    )


def get_lead_or_404(lead_id: UUID, db: Session) -> Lead:
    lead = db.query(Lead).filter(Lead.id == lead_id).first()
    if lead is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")
    return lead


def _validate_segment(raw: str | None) -> SegmentType | None:
    if raw is None:
        return None
    try:
        return SegmentType(raw.strip().upper())
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid segment") from exc


@router.get("", response_model=LeadListResponse)
def list_leads(
    q: str | None = Query(default=None, description="Search by name or mobile number"),
    segment: str | None = Query(default=None, description="Filter by segment code"),
    skip: int = 0,
    limit: int = 50,
    db: Session = Depends(get_db),
) -> LeadListResponse:
    skip = max(0, skip)
    limit = max(1, min(100, limit))

    segment_filter = _validate_segment(segment)

    query = db.query(Lead)
    if segment_filter:
        query = query.filter(Lead.segment == segment_filter)
    if q and q.strip():
        pattern = f"%{_escape_like(q.strip())}%"
        query = query.filter(or_(
            Lead.first_name.ilike(pattern, escape=LIKE_ESCAPE),
            Lead.last_name.ilike(pattern, escape=LIKE_ESCAPE),
            Lead.mobile_number.like(pattern, escape=LIKE_ESCAPE),
        ))

    total = query.count()
    rows = query.order_by(Lead.created_at.desc(), Lead.id.desc()).offset(skip).limit(limit).all()

    return LeadListResponse(total=total, items=[_to_list_item(r) for r in rows])


@router.get("/status", response_model=LeadStatusResponse)
def lead_status_by_mobile(
    mobile: str = Query(..., min_length=4, description="Mobile number, with or without country code"),
    db: Session = Depends(get_db),
) -> LeadStatusResponse:
    digits = "".join(ch for ch in mobile if ch.isdigit())
    if not digits:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid mobile number")

    local = digits[-LOCAL_MOBILE_DIGITS:]
    lead = (
        db.query(Lead)
        .filter(Lead.mobile_number.like(f"%{local}"))
        .order_by(Lead.created_at.desc())
        .first()
    )
    if lead is None:
        return LeadStatusResponse(exists=False)

    latest = (
        db.query(BankApplication)
        .filter(BankApplication.lead_id == lead.id)
        .order_by(BankApplication.created_at.desc())
        .first()
    )
    return LeadStatusResponse(
        exists=True,
        lead_id=lead.id,
        lead_name=lead.full_name,
        lead_owner=lead.lead_owner,
        latest_stage=_enum_value(latest.lead_stage) if latest else None,
    )


@router.get("/{lead_id}", response_model=LeadDetail)
def get_lead(lead_id: UUID, db: Session = Depends(get_db)) -> LeadDetail:
    return _to_detail(get_lead_or_404(lead_id, db))


@router.post("", response_model=LeadDetail, status_code=status.HTTP_201_CREATED)
def create_lead(payload: LeadCreate, db: Session = Depends(get_db)) -> LeadDetail:
    if payload.lead_owner is not None:
        owner = db.query(Profile).filter(Profile.id == payload.lead_owner).first()
        if owner is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown lead owner")

    data = payload.model_dump()
    data["segment"] = SegmentType(payload.segment) if payload.segment else None
    data["rented_owned"] = RentalStatus(payload.rented_owned) if payload.rented_owned else None
    lead = Lead(**data)
    db.add(lead)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Lead could not be created") from exc
    db.refresh(lead)
    logger.info("Lead created", extra={"lead_id": str(lead.id)})
    return _to_detail(lead)


@router.delete("/{lead_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_lead(lead_id: UUID, db: Session = Depends(get_db)) -> None:
    lead = get_lead_or_404(lead_id, db)
    db.delete(lead)
    db.commit()
    logger.info("Lead deleted", extra={"lead_id": str(lead_id)})
