from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.orm import Session

from loandesk.api.deps import get_db, get_whatsapp_client
from loandesk.core.config import settings
from loandesk.schemas.performance import ErrorOut
from loandesk.schemas.whatsapp import (
    ChatMessageOut,
    ConversationOut,
    SaveMessageRequest,
    SaveMessageResult,
    SendDocumentRequest,
    SendResult,
    SendTextRequest,
    WebhookResult,
)
from loandesk.services import whatsapp_service
from loandesk.services.phone import normalize_phone_number
from loandesk.services.whatsapp_client import WhatsAppAPIError, WhatsAppClient, verify_webhook

router = APIRouter(prefix="/api/whatsapp", tags=["whatsapp"])

logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorOut},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorOut},
}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.get("/webhook", response_class=PlainTextResponse)
def verify_subscription(
    mode: Optional[str] = Query(default=None, alias="hub.mode"),
    token: Optional[str] = Query(default=None, alias="hub.verify_token"),
    challenge: Optional[str] = Query(default=None, alias="hub.challenge"),
):
    """Echo the challenge back when Meta verifies the webhook subscription."""
    if not mode or not token or not challenge:
        return _error(status.HTTP_400_BAD_REQUEST, "Missing required parameters")

    verified = verify_webhook(mode, token, challenge, settings.WHATSAPP_VERIFY_TOKEN)
    if verified is None:
        logger.warning("WhatsApp webhook verification failed", extra={"mode": mode})
        return _error(status.HTTP_403_FORBIDDEN, "Verification failed")
    return PlainTextResponse(verified)


@router.post("/webhook", response_model=WebhookResult, responses=ERROR_RESPONSES)
def receive_webhook(
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
):
    try:
        messages = whatsapp_service.extract_inbound_messages(payload)
        stored = whatsapp_service.store_inbound_messages(db, messages)
    except Exception:  # pylint: disable=broad-exception-caught
        db.rollback()
        logger.exception("Error in WhatsApp webhook handler")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")
    return WebhookResult(stored=stored)


@router.post("/send-direct", response_model=SendResult, responses=ERROR_RESPONSES)
def send_direct(
    payload: SendTextRequest,
    client: WhatsAppClient = Depends(get_whatsapp_client),
):
    """Send a text message straight through the Cloud API; nothing is logged to the chat table."""
    if not payload.phone_number or not payload.message:
        return _error(
            status.HTTP_400_BAD_REQUEST,
            "Missing required parameters: phoneNumber and message are required",
        )

    to = normalize_phone_number(payload.phone_number)
    try:
        result = client.send_text(to, payload.message)
    except WhatsAppAPIError as exc:
        logger.exception("Error sending direct WhatsApp message", extra={"status_code": exc.status_code})
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))
    return SendResult(result=result)


@router.post("/send-document", response_model=SendResult, responses=ERROR_RESPONSES)
def send_document(
    payload: SendDocumentRequest,
    client: WhatsAppClient = Depends(get_whatsapp_client),
):
    if not payload.phone_number or not payload.document_url:
        return _error(
            status.HTTP_400_BAD_REQUEST,
            "Missing required parameters: phoneNumber and documentUrl are required",
        )

    to = normalize_phone_number(payload.phone_number)
    try:
        result = client.send_document(to, payload.document_url, payload.caption, payload.filename)
    except WhatsAppAPIError as exc:
        logger.exception("Error sending WhatsApp document", extra={"status_code": exc.status_code})
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))
    return SendResult(result=result)


@router.post("/save-message", response_model=SaveMessageResult, responses=ERROR_RESPONSES)
def save_message(
    payload: SaveMessageRequest,
    db: Session = Depends(get_db),
):
    if not payload.session_id or not payload.message:
        return _error(
            status.HTTP_400_BAD_REQUEST,
            "Missing required parameters: session_id and message are required",
        )

    try:
        entry = whatsapp_service.save_chat_message(db, payload.session_id, payload.message, payload.timestamp)
    except Exception as exc:  # pylint: disable=broad-exception-caught
        db.rollback()
        logger.exception("Error saving chat message", extra={"session_id": payload.session_id})
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, f"Failed to save message: {exc}")
    return SaveMessageResult(data=[ChatMessageOut.model_validate(entry)])


@router.get("/conversations/{session_id}", response_model=ConversationOut)
def get_conversation(
    session_id: str,
    limit: int = 200,
    db: Session = Depends(get_db),
) -> ConversationOut:
    limit = max(1, min(500, limit))
    messages = whatsapp_service.list_conversation(db, session_id, limit=limit)
    return ConversationOut(
        session_id=session_id,
        messages=[ChatMessageOut.model_validate(m) for m in messages],
    )
