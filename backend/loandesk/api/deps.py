from __future__ import annotations

from typing import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from loandesk.core.config import settings
from loandesk.db.session import SessionLocal
from loandesk.services.aggregation import AggregationProvider, SqlAggregationProvider
from loandesk.services.whatsapp_client import WhatsAppClient


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_aggregation_provider(db: Session = Depends(get_db)) -> AggregationProvider:
    """Data source for the performance comparison reports."""
    return SqlAggregationProvider(db)


def get_whatsapp_client() -> Generator[WhatsAppClient, None, None]:
    client = WhatsAppClient(settings)
    try:
        yield client
    finally:
        client.close()
