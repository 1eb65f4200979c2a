from __future__ import annotations

import logging
from typing import Optional

from ..models import DeliveryResult
from .base import MessageTransport


class MockTransport(MessageTransport):
    """Stands in for an unconfigured transport; every send succeeds."""

    name = "mock"

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def send(self, recipient: str, message: str) -> DeliveryResult:
        preview = " ".join(message.split())[:50]
        self.logger.info("[mock] would send to %s: %s...", recipient, preview)
        return DeliveryResult(channel=self.name, success=True, response_excerpt="mock")
