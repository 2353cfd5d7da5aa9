from __future__ import annotations

import re
from datetime import date, datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

MOBILE_PATTERN = re.compile(r"^\+?\d{10,15}$")

SegmentCode = Literal["PL", "BL"]
LeadStageValue = Literal[
    "New",
    "Under Review",
    "Reject Review",
    "Reject",
    "Approved",
    "Disbursed",
    "documents_incomplete",
]


class LeadCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    mobile_number: str = Field(..., description="10-15 digits, optional leading +")
    segment: Optional[SegmentCode] = None
    lead_owner: Optional[UUID] = None
    company_name: Optional[str] = Field(default=None, max_length=200)
    net_salary: Optional[float] = Field(default=None, ge=0)
    dob: Optional[date] = None
    personal_mail_id: Optional[str] = Field(default=None, max_length=100)
    official_mail_id: Optional[str] = Field(default=None, max_length=100)
    current_resi_address: Optional[str] = None
    current_pin_code: Optional[str] = Field(default=None, max_length=10)
    rented_owned: Optional[Literal["Rented", "Owned"]] = None

    @field_validator("mobile_number")
    @classmethod
    def validate_mobile(cls, value: str) -> str:
        compact = "".join(value.split())
        if not MOBILE_PATTERN.match(compact):
            raise ValueError("mobile_number must contain 10 to 15 digits")
        return compact

    @field_validator("current_pin_code")
    @classmethod
    def validate_pin_code(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.isdigit():
            raise ValueError("current_pin_code must be numeric")
        return value


class LeadListItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    full_name: str
    mobile_number: Optional[str] = None  # masked
    segment: Optional[str] = None
    lead_owner: Optional[UUID] = None
    created_at: datetime


class LeadDetail(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    first_name: str
    last_name: Optional[str] = None
    mobile_number: str
    segment: Optional[str] = None
    lead_owner: Optional[UUID] = None
    company_name: Optional[str] = None
    net_salary: Optional[float] = None
    dob: Optional[date] = None
    personal_mail_id: Optional[str] = None
    official_mail_id: Optional[str] = None
    current_resi_address: Optional[str] = None
    current_pin_code: Optional[str] = None
    rented_owned: Optional[str] = None
    created_at: datetime


class LeadListResponse(BaseModel):
    total: int
    items: List[LeadListItem]


class LeadStatusResponse(BaseModel):
    """Lookup by mobile number, used before creating a duplicate lead."""
    exists: bool
    lead_id: Optional[UUID] = None
    lead_name: Optional[str] = None
    lead_owner: Optional[UUID] = None
    latest_stage: Optional[str] = None


class BankApplicationBase(BaseModel):
    bank_name: str = Field(..., min_length=1, max_length=100)
    loan_app_number: Optional[str] = Field(default=None, max_length=50)
    applied_amount: Optional[float] = Field(default=None, ge=0)
    approved_amount: Optional[float] = Field(default=None, ge=0)
    lead_stage: LeadStageValue = "New"
    login_date: Optional[date] = None
    disburse_date: Optional[date] = None

    @model_validator(mode="after")
    def check_disbursement(self):
        if self.lead_stage == "Disbursed" and self.disburse_date is None:
            raise ValueError("disburse_date is required when lead_stage is Disbursed")
        if self.disburse_date and self.login_date and self.disburse_date < self.login_date:
            raise ValueError("disburse_date cannot be before login_date")
        return self


class BankApplicationCreate(BankApplicationBase):
    pass


class BankApplicationUpdate(BankApplicationBase):
    pass


class BankApplicationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    lead_id: UUID
    bank_name: str
    loan_app_number: Optional[str] = None
    applied_amount: Optional[float] = None
    approved_amount: Optional[float] = None
    lead_stage: Optional[str] = None
    login_date: Optional[date] = None
    disburse_date: Optional[date] = None
    created_at: datetime
