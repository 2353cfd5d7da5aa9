"""initial loandesk schema

Revision ID: 20261019_initial_schema
Revises:
Create Date: 2026-10-19

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "20261019_initial_schema"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role_enum = sa.Enum("admin", "backend", "team_leader", "agent", name="user_role")
segment_type_enum = sa.Enum("PL", "BL", name="segment_type")
rental_status_enum = sa.Enum("Rented", "Owned", name="rental_status")
lead_stage_enum = sa.Enum(
    "New",
    "Under Review",
    "Reject Review",
    "Reject",
    "Approved",
    "Disbursed",
    "documents_incomplete",
    name="lead_stage",
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(length=100), nullable=True),
        sa.Column("first_name", sa.String(length=50), nullable=True),
        sa.Column("last_name", sa.String(length=50), nullable=True),
        sa.Column("role", user_role_enum, nullable=True, server_default="agent"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_table(
        "teams",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False, unique=True),
        *_timestamps(),
    )
    op.create_table(
        "team_members",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("team_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["team_id"], ["teams.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", name="uq_team_members_user"),
    )
    op.create_table(
        "banks",
        sa.Column("name", sa.String(length=100), primary_key=True),
        *_timestamps(),
    )
    op.create_table(
        "leads",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=True),
        sa.Column("mobile_number", sa.String(length=20), nullable=False),
        sa.Column("segment", segment_type_enum, nullable=True),
        sa.Column("lead_owner", sa.Uuid(), nullable=True),
        sa.Column("company_name", sa.String(length=200), nullable=True),
        sa.Column("net_salary", sa.Numeric(14, 2), nullable=True),
        sa.Column("dob", sa.Date(), nullable=True),
        sa.Column("personal_mail_id", sa.String(length=100), nullable=True),
        sa.Column("official_mail_id", sa.String(length=100), nullable=True),
        sa.Column("current_resi_address", sa.Text(), nullable=True),
        sa.Column("current_pin_code", sa.String(length=10), nullable=True),
        sa.Column("rented_owned", rental_status_enum, nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["lead_owner"], ["profiles.id"], ondelete="SET NULL"),
    )
    op.create_index("ix_leads_mobile_number", "leads", ["mobile_number"])
    op.create_table(
        "bank_applications",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("lead_id", sa.Uuid(), nullable=False),
        sa.Column("bank_name", sa.String(length=100), nullable=False),
        sa.Column("loan_app_number", sa.String(length=50), nullable=True),
        sa.Column("applied_amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("approved_amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("lead_stage", lead_stage_enum, nullable=True),
        sa.Column("login_date", sa.Date(), nullable=True),
        sa.Column("disburse_date", sa.Date(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["lead_id"], ["leads.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["bank_name"], ["banks.name"]),
    )
    op.create_index("ix_bank_applications_disburse_date", "bank_applications", ["disburse_date"])
    op.create_table(
        "chat_messages",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("session_id", sa.String(length=20), nullable=False),
        sa.Column("message", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_chat_messages_session_ts", "chat_messages", ["session_id", "timestamp"])


def downgrade() -> None:
    op.drop_index("ix_chat_messages_session_ts", table_name="chat_messages")
    op.drop_table("chat_messages")
    op.drop_index("ix_bank_applications_disburse_date", table_name="bank_applications")
    op.drop_table("bank_applications")
    op.drop_index("ix_leads_mobile_number", table_name="leads")
    op.drop_table("leads")
    op.drop_table("banks")
    op.drop_table("team_members")
    op.drop_table("teams")
    op.drop_table("profiles")
    for enum in (lead_stage_enum, rental_status_enum, segment_type_enum, user_role_enum):
        enum.drop(op.get_bind(), checkfirst=True)
