# backend/loandesk/models/models.py
# pylint: disable=not-callable
import enum
import uuid

from sqlalchemy import (
    JSON, Boolean, Column, Date, DateTime, Enum, ForeignKey, Index, Numeric,
    String, Text, UniqueConstraint, Uuid, func, true
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from loandesk.db.base import Base

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")

# Chat sessions are keyed by the normalized phone number
SESSION_ID_MAX_LENGTH = 20


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class UserRole(str, enum.Enum):
    admin = "admin"
    backend = "backend"
    team_leader = "team_leader"
    agent = "agent"


class SegmentType(str, enum.Enum):
    PL = "PL"
    BL = "BL"


class RentalStatus(str, enum.Enum):
    rented = "Rented"
    owned = "Owned"


class LeadStage(str, enum.Enum):
    new = "New"
    under_review = "Under Review"
    reject_review = "Reject Review"
    reject = "Reject"
    approved = "Approved"
    disbursed = "Disbursed"
    documents_incomplete = "documents_incomplete"


class Profile(Base):
    """Application user; agents own leads."""
    __tablename__ = "profiles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(100), nullable=True)
    first_name = Column(String(50), nullable=True)
    last_name = Column(String(50), nullable=True)
    role = Column(Enum(UserRole, name="user_role"), nullable=True, server_default=UserRole.agent.value)
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    memberships = relationship("TeamMember", back_populates="user", cascade="all, delete-orphan")

    @property
    def full_name(self) -> str:
        parts = [self.first_name, self.last_name]
        return " ".join(p for p in parts if p) or (self.email or str(self.id))


class Team(Base):
    __tablename__ = "teams"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    members = relationship("TeamMember", back_populates="team", cascade="all, delete-orphan")


class TeamMember(Base):
    __tablename__ = "team_members"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    team_id = Column(Uuid, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # An agent belongs to at most one team
    __table_args__ = (
        UniqueConstraint("user_id", name="uq_team_members_user"),
    )

    team = relationship("Team", back_populates="members")
    user = relationship("Profile", back_populates="memberships")


class Bank(Base):
    __tablename__ = "banks"

    name = Column(String(100), primary_key=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class Lead(Base):
    __tablename__ = "leads"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=True)
    mobile_number = Column(String(20), nullable=False)
    segment = Column(Enum(SegmentType, name="segment_type"), nullable=True)
    lead_owner = Column(Uuid, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    company_name = Column(String(200), nullable=True)
    net_salary = Column(Numeric(14, 2), nullable=True)
    dob = Column(Date, nullable=True)
    personal_mail_id = Column(String(100), nullable=True)
    official_mail_id = Column(String(100), nullable=True)
    current_resi_address = Column(Text, nullable=True)
    current_pin_code = Column(String(10), nullable=True)
    rented_owned = Column(
        Enum(RentalStatus, name="rental_status", values_callable=_enum_values), nullable=True
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_leads_mobile_number", "mobile_number"),
    )

    owner = relationship("Profile")
    bank_applications = relationship(
        "BankApplication", back_populates="lead", cascade="all, delete-orphan"
    )

    @property
    def full_name(self) -> str:
        return " ".join(p for p in [self.first_name, self.last_name] if p)


class BankApplication(Base):
    __tablename__ = "bank_applications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    lead_id = Column(Uuid, ForeignKey("leads.id", ondelete="CASCADE"), nullable=False)
    bank_name = Column(String(100), ForeignKey("banks.name"), nullable=False)
    loan_app_number = Column(String(50), nullable=True)
    applied_amount = Column(Numeric(14, 2), nullable=True)
    approved_amount = Column(Numeric(14, 2), nullable=True)
    lead_stage = Column(
        Enum(LeadStage, name="lead_stage", values_callable=_enum_values),
        nullable=True,
        default=LeadStage.new,
    )
    login_date = Column(Date, nullable=True)
    disburse_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_bank_applications_disburse_date", "disburse_date"),
    )

    lead = relationship("Lead", back_populates="bank_applications")


class ChatMessage(Base):
    """WhatsApp conversation log, one row per message, keyed by phone session."""
    __tablename__ = "chat_messages"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    session_id = Column(String(SESSION_ID_MAX_LENGTH), nullable=False)
    message = Column(JSONType, nullable=False)  # {type, content, additional_kwargs, ...}
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_chat_messages_session_ts", "session_id", "timestamp"),
    )
