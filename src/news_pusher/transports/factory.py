from __future__ import annotations

import logging
from typing import Optional

import requests

from ..config import Settings
from .base import MessageTransport
from .mock import MockTransport
from .twilio import TwilioWhatsAppTransport

logger = logging.getLogger(__name__)


def build_transport(settings: Settings, session: Optional[requests.Session] = None) -> MessageTransport:
    if settings.dry_run:
        logger.info("dry run enabled: messages will not be sent")
        return MockTransport()

    required = {
        "TWILIO_ACCOUNT_SID": settings.twilio_account_sid,
        "TWILIO_AUTH_TOKEN": settings.twilio_auth_token,
        "TWILIO_WHATSAPP_NUMBER": settings.twilio_whatsapp_number,
    }
    missing = [key for key, value in required.items() if not value]
    if missing:
        logger.warning("whatsapp transport not configured (missing %s); using mock transport", ", ".join(missing))
        return MockTransport()

    return TwilioWhatsAppTransport(
        account_sid=settings.twilio_account_sid or "",
        auth_token=settings.twilio_auth_token or "",
        from_number=settings.twilio_whatsapp_number or "",
        timeout_sec=settings.request_timeout_sec,
        api_base=settings.twilio_api_base,
        session=session,
    )
