"""
WhatsApp Cloud API client.

Thin wrapper over the Graph API ``/{phone_number_id}/messages`` endpoint. Errors
are raised as ``WhatsAppAPIError``; delivery and retries are left to WhatsApp.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import requests

from loandesk.core.config import Settings

logger = logging.getLogger(__name__)


class WhatsAppAPIError(Exception):
    """Raised when the Cloud API rejects a request or cannot be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


def verify_webhook(mode: str, token: str, challenge: str, verify_token: str) -> Optional[str]:
    """Return the challenge to echo back when the subscription request is ours."""
    if mode == "subscribe" and token == verify_token:
        return challenge
    return None


def _decode_body(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return {"raw": response.text}


class WhatsAppClient:
    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self._base_url = settings.WHATSAPP_API_BASE_URL.rstrip("/")
        self._version = settings.WHATSAPP_API_VERSION
        self._phone_number_id = settings.WHATSAPP_PHONE_NUMBER_ID
        self._access_token = settings.WHATSAPP_ACCESS_TOKEN
        self._timeout = settings.WHATSAPP_TIMEOUT_SECONDS
        self._session = session or requests.Session()

    @property
    def messages_url(self) -> str:
        return f"{self._base_url}/{self._version}/{self._phone_number_id}/messages"

    def close(self) -> None:
        self._session.close()

    def _post_message(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._access_token}",
        }
        try:
            response = self._session.post(
                self.messages_url,
                headers=headers,
                json=payload,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            logger.warning("WhatsApp API unreachable", extra={"error": str(exc)})
            raise WhatsAppAPIError(f"WhatsApp API request failed: {exc}") from exc

        body = _decode_body(response)
        if not response.ok:
            logger.warning(
                "WhatsApp API error",
                extra={"status_code": response.status_code, "message_type": payload.get("type")},
            )
            raise WhatsAppAPIError(
                f"WhatsApp API error: {json.dumps(body)}",
                status_code=response.status_code,
                body=body,
            )
        return body

    def send_text(self, to: str, text: str) -> Dict[str, Any]:
        return self._post_message({
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": to,
            "type": "text",
            "text": {"body": text},
        })

    def send_document(
        self,
        to: str,
        document_url: str,
        caption: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> Dict[str, Any]:
        if not document_url or not isinstance(document_url, str):
            raise WhatsAppAPIError("Invalid document URL provided")
        logger.info("Sending WhatsApp document", extra={"to": to, "document_filename": filename})
        return self._post_message({
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": to,
            "type": "document",
            "document": {
                "link": document_url,
                "caption": caption or "",
                "filename": filename or "document",
            },
        })
