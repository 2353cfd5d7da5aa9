"""
Pytest configuration and fixtures.

Provides shared fixtures for all tests including:
- In-memory SQLite database session
- Test client with the database dependency overridden
- Small factories for seeding profiles, teams, leads and applications
"""
import os

# Keep the app engine off PostgreSQL while tests import the package
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import date  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import loandesk.models  # noqa: E402,F401
from loandesk.api.deps import get_db  # noqa: E402
from loandesk.db.base import Base  # noqa: E402
from loandesk.main import app  # noqa: E402
from loandesk.models import (  # noqa: E402
    Bank,
    BankApplication,
    Lead,
    LeadStage,
    Profile,
    SegmentType,
    Team,
    TeamMember,
)


@pytest.fixture()
def db_engine():
    """Create a fresh in-memory database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def db_session(db_engine):
    """Create test database session."""
    session_factory = sessionmaker(bind=db_engine, autocommit=False, autoflush=False)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(db_session):
    """Test client sharing the test session with the app."""
    def _get_test_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_test_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


class Factory:
    """Seeds rows through the test session."""

    def __init__(self, session):
        self.session = session

    def _save(self, obj):
        self.session.add(obj)
        self.session.commit()
        self.session.refresh(obj)
        return obj

    def profile(self, first_name="Asha", last_name="Rao", email=None):
        return self._save(Profile(first_name=first_name, last_name=last_name, email=email))

    def team(self, name="North"):
        return self._save(Team(name=name))

    def membership(self, team, profile):
        return self._save(TeamMember(team_id=team.id, user_id=profile.id))

    def bank(self, name="HDFC"):
        return self._save(Bank(name=name))

    def lead(self, owner=None, segment="PL", mobile_number="9876543210", first_name="Ravi", last_name="Kumar"):
        return self._save(Lead(
            first_name=first_name,
            last_name=last_name,
            mobile_number=mobile_number,
            segment=SegmentType(segment) if segment else None,
            lead_owner=owner.id if owner is not None else None,
        ))

    def application(self, lead, bank, disburse_date=None, approved_amount=None, stage=LeadStage.disbursed):
        return self._save(BankApplication(
            lead_id=lead.id,
            bank_name=bank.name,
            approved_amount=Decimal(str(approved_amount)) if approved_amount is not None else None,
            lead_stage=stage,
            login_date=date(2025, 1, 1),
            disburse_date=disburse_date,
        ))


@pytest.fixture()
def factory(db_session):
    return Factory(db_session)
