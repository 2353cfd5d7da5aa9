from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from loandesk.models import ChatMessage
from loandesk.models.models import SESSION_ID_MAX_LENGTH
from loandesk.services.phone import normalize_phone_number

logger = logging.getLogger(__name__)

DEFAULT_DOCUMENT_CAPTION = "Document received"

# Chat-log envelope type for messages from the customer
HUMAN = "human"


@dataclass(frozen=True)
class InboundMessage:
    session_id: str
    message: Dict[str, Any]


def build_chat_message(
    message_type: str,
    content: str,
    attachment: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    additional_kwargs: Dict[str, Any] = {}
    if attachment:
        additional_kwargs["attachment"] = attachment
    return {
        "type": message_type,
        "content": content,
        "tool_calls": [],
        "additional_kwargs": additional_kwargs,
        "response_metadata": {},
        "invalid_tool_calls": [],
    }


def _to_inbound(message: Any) -> Optional[InboundMessage]:
    """Convert one webhook message; None for unsupported or malformed ones."""
    if not isinstance(message, dict):
        return None
    sender = message.get("from")
    if not sender:
        return None

    kind = message.get("type")
    body = message.get(kind) if isinstance(kind, str) else None
    if not isinstance(body, dict):
        return None

    if kind == "text":
        envelope = build_chat_message(HUMAN, str(body.get("body") or ""))
    elif kind == "document":
        envelope = build_chat_message(
            HUMAN,
            body.get("caption") or DEFAULT_DOCUMENT_CAPTION,
            attachment={"url": body.get("url"), "type": "document"},
        )
    else:
        return None

    session_id = normalize_phone_number(str(sender))
    if len(session_id) > SESSION_ID_MAX_LENGTH:
        return None
    return InboundMessage(session_id=session_id, message=envelope)


def extract_inbound_messages(payload: Dict[str, Any]) -> List[InboundMessage]:
    """
    Fan a webhook payload out into chat-log messages.

    Only ``messages`` changes are considered; text and document messages are
    kept, every other message type is skipped. A malformed message is skipped
    on its own and never fails the rest of the delivery.
    """
    inbound: List[InboundMessage] = []
    for entry in payload.get("entry") or []:
        if not isinstance(entry, dict):
            continue
        for change in entry.get("changes") or []:
            if not isinstance(change, dict) or change.get("field") != "messages":
                continue
            value = change.get("value")
            if not isinstance(value, dict):
                continue
            for message in value.get("messages") or []:
                converted = _to_inbound(message)
                if converted is None:
                    message_type = message.get("type") if isinstance(message, dict) else type(message).__name__
                    logger.info("Skipping unsupported WhatsApp message", extra={"message_type": message_type})
                    continue
                inbound.append(converted)
    return inbound


def save_chat_message(
    db: Session,
    session_id: str,
    message: Dict[str, Any],
    timestamp: Optional[datetime] = None,
) -> ChatMessage:
    entry = ChatMessage(
        session_id=session_id,
        message=message,
        timestamp=timestamp or datetime.now(timezone.utc),
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def store_inbound_messages(db: Session, messages: Iterable[InboundMessage]) -> int:
    """Persist webhook messages in one transaction; returns how many were stored."""
    received_at = datetime.now(timezone.utc)
    stored = 0
    for inbound in messages:
        db.add(ChatMessage(session_id=inbound.session_id, message=inbound.message, timestamp=received_at))
        stored += 1
    if stored:
        db.commit()
    logger.info("Stored inbound WhatsApp messages", extra={"count": stored})
    return stored


def list_conversation(db: Session, session_id: str, limit: int = 200) -> List[ChatMessage]:
    return (
        db.query(ChatMessage)
        .filter(ChatMessage.session_id == session_id)
        .order_by(ChatMessage.timestamp.asc(), ChatMessage.id.asc())
        .limit(limit)
        .all()
    )
