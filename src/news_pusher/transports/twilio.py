from __future__ import annotations

from typing import Optional

import requests

from ..models import DeliveryResult
from .base import MessageTransport

DEFAULT_API_BASE = "https://api.twilio.com"


class TwilioWhatsAppTransport(MessageTransport):
    name = "twilio-whatsapp"

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        timeout_sec: float,
        api_base: str = DEFAULT_API_BASE,
        session: Optional[requests.Session] = None,
    ):
        sid = (account_sid or "").strip()
        token = (auth_token or "").strip()
        sender = (from_number or "").strip()
        if not sid:
            raise ValueError("TWILIO_ACCOUNT_SID is required for Twilio transport")
        if not token:
            raise ValueError("TWILIO_AUTH_TOKEN is required for Twilio transport")
        if not sender:
            raise ValueError("TWILIO_WHATSAPP_NUMBER is required for Twilio transport")
        base = (api_base or "").strip() or DEFAULT_API_BASE

        self.account_sid = sid
        self.auth_token = token
        self.from_number = sender
        self.timeout_sec = timeout_sec
        self.api_base = base.rstrip("/")
        self.session = session or requests.Session()

    @property
    def messages_url(self) -> str:
        return f"{self.api_base}/2010-04-01/Accounts/{self.account_sid}/Messages.json"

    def send(self, recipient: str, message: str) -> DeliveryResult:
        payload = {
            "From": f"whatsapp:{self.from_number}",
            "To": f"whatsapp:{recipient}",
            "Body": message,
        }
        try:
            response = self.session.post(
                self.messages_url,
                data=payload,
                auth=(self.account_sid, self.auth_token),
                timeout=self.timeout_sec,
            )
        except Exception as exc:
            return DeliveryResult(
                channel=self.name,
                success=False,
                error_message=f"HTTP request failed: {exc}",
            )

        return self._parse_response(response)

    def _parse_response(self, response: requests.Response) -> DeliveryResult:
        body: dict
        try:
            body = response.json()
        except Exception:
            body = {}
        if not isinstance(body, dict):
            body = {}

        excerpt = (response.text or "")[:400]
        if response.status_code >= 400:
            description = body.get("message") or f"HTTP {response.status_code}"
            code = body.get("code")
            return DeliveryResult(
                channel=self.name,
                success=False,
                error_message=f"Twilio error {code}: {description}" if code else f"Twilio error: {description}",
                response_excerpt=excerpt,
            )

        message_sid = body.get("sid")
        if not message_sid:
            return DeliveryResult(
                channel=self.name,
                success=False,
                error_message="Twilio response missing message sid",
                response_excerpt=excerpt,
            )

        return DeliveryResult(channel=self.name, success=True, response_excerpt=str(message_sid))
