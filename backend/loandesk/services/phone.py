"""Phone number helpers shared by leads and WhatsApp messaging."""
from __future__ import annotations

from typing import Optional

from loandesk.core.config import settings

MASK_PREFIX = "XXXXXX"
VISIBLE_DIGITS = 4


def normalize_phone_number(raw: str, country_code: Optional[str] = None) -> str:
    """
    Bring a phone number to WhatsApp's international form without '+'.

    "+919876543210" -> "919876543210", "919876543210" stays as is and
    "9876543210" -> "919876543210".
    """
    code = country_code if country_code is not None else settings.WHATSAPP_COUNTRY_CODE
    number = "".join((raw or "").split())
    if number.startswith("+"):
        return number[1:]
    if number.startswith(code):
        return number
    return f"{code}{number}"


def mask_mobile_number(mobile: Optional[str]) -> Optional[str]:
    """Hide all but the last four digits; short or empty values come back unchanged."""
    if not mobile or len(mobile) <= VISIBLE_DIGITS:
        return mobile
    return MASK_PREFIX + mobile[-VISIBLE_DIGITS:]
