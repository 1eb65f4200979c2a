"""Aggregate daily AI news from several sources and push it to WhatsApp subscribers."""

__version__ = "0.1.0"
