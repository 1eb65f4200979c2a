"""Outbound message transports and factory."""

from .base import MessageTransport
from .factory import build_transport
from .mock import MockTransport
from .twilio import TwilioWhatsAppTransport

__all__ = ["MessageTransport", "MockTransport", "TwilioWhatsAppTransport", "build_transport"]
