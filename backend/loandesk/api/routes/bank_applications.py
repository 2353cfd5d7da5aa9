from __future__ import annotations

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from loandesk.api.deps import get_db
from loandesk.api.routes.leads import get_lead_or_404
from loandesk.models import Bank, BankApplication, LeadStage
from loandesk.schemas.leads import (
    BankApplicationBase,
    BankApplicationCreate,
    BankApplicationOut,
    BankApplicationUpdate,
)

router = APIRouter(prefix="/api", tags=["bank-applications"])

logger = logging.getLogger(__name__)


def _to_out(application: BankApplication) -> BankApplicationOut:
    def _amount(value):
        return float(value) if value is not None else None

    return BankApplicationOut(
        id=application.id,
        lead_id=application.lead_id,
        bank_name=application.bank_name,
        loan_app_number=application.loan_app_number,
        applied_amount=_amount(application.applied_amount),
        approved_amount=_amount(application.approved_amount),
        lead_stage=application.lead_stage.value if application.lead_stage else None,
        login_date=application.login_date,
        disburse_date=application.disburse_date,
        created_at=application.created_at,
    )


def _ensure_bank_exists(bank_name: str, db: Session) -> None:
    if db.query(Bank).filter(Bank.name == bank_name).first() is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown bank: {bank_name}")


def _apply(application: BankApplication, payload: BankApplicationBase) -> None:
    application.bank_name = payload.bank_name
    application.loan_app_number = payload.loan_app_number
    application.applied_amount = payload.applied_amount
    application.approved_amount = payload.approved_amount
    application.lead_stage = LeadStage(payload.lead_stage)
    application.login_date = payload.login_date
    application.disburse_date = payload.disburse_date


def _commit(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Bank application conflicts with existing data") from exc


@router.get("/leads/{lead_id}/bank-applications", response_model=List[BankApplicationOut])
def list_bank_applications(lead_id: UUID, db: Session = Depends(get_db)) -> List[BankApplicationOut]:
    get_lead_or_404(lead_id, db)
    rows = (
        db.query(BankApplication)
        .filter(BankApplication.lead_id == lead_id)
        .order_by(BankApplication.created_at.desc())
        .all()
    )
    return [_to_out(r) for r in rows]


@router.post(
    "/leads/{lead_id}/bank-applications",
    response_model=BankApplicationOut,
    status_code=status.HTTP_201_CREATED,
)
def create_bank_application(
    lead_id: UUID,
    payload: BankApplicationCreate,
    db: Session = Depends(get_db),
) -> BankApplicationOut:
    get_lead_or_404(lead_id, db)
    _ensure_bank_exists(payload.bank_name, db)

    application = BankApplication(lead_id=lead_id)
    _apply(application, payload)
    db.add(application)
    _commit(db)
    db.refresh(application)
    logger.info(
        "Bank application created",
        extra={"lead_id": str(lead_id), "bank_name": payload.bank_name},
    )
    return _to_out(application)


@router.put("/bank-applications/{application_id}", response_model=BankApplicationOut)
def update_bank_application(
    application_id: UUID,
    payload: BankApplicationUpdate,
    db: Session = Depends(get_db),
) -> BankApplicationOut:
    application = db.query(BankApplication).filter(BankApplication.id == application_id).first()
    if application is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Bank application not found")
    _ensure_bank_exists(payload.bank_name, db)

    _apply(application, payload)
    _commit(db)
    db.refresh(application)
    return _to_out(application)
