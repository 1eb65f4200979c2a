from __future__ import annotations

import html as html_lib
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional

import requests
from bs4 import BeautifulSoup

from ..message import truncate_text
from ..models import Article, SourceResult, utc_now

SUMMARY_MAX_CHARS = 200


class UnparseableTimestamp(ValueError):
    pass


def clean_text(value: object) -> str:
    if not isinstance(value, str):
        return ""
    text = html_lib.unescape(value)
    if "<" in text:
        text = BeautifulSoup(text, "html.parser").get_text(" ", strip=True)
    return " ".join(text.split())


def clean_summary(value: object) -> str:
    return truncate_text(clean_text(value), SUMMARY_MAX_CHARS)


def parse_datetime(value: Optional[str], default_tz=timezone.utc) -> Optional[datetime]:
    """Parse ISO-8601 or RFC 2822 text into an aware UTC datetime.

    Returns None for empty input and raises UnparseableTimestamp when text is
    present but matches neither format.
    """
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None

    iso_text = text[:-1] + "+00:00" if text.endswith("Z") else text
    try:
        parsed = datetime.fromisoformat(iso_text)
    except ValueError:
        try:
            parsed = parsedate_to_datetime(text)
        except (TypeError, ValueError, IndexError):
            raise UnparseableTimestamp(f"unparseable timestamp: {text!r}") from None
        if parsed is None:
            raise UnparseableTimestamp(f"unparseable timestamp: {text!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=default_tz)
    return parsed.astimezone(timezone.utc)


class SourceFetcher(ABC):
    name: str

    def __init__(
        self,
        url: str,
        timeout_sec: float = 10.0,
        limit: int = 10,
        session: Optional[requests.Session] = None,
        clock: Callable[[], datetime] = utc_now,
        logger: Optional[logging.Logger] = None,
    ):
        self.url = url
        self.timeout_sec = timeout_sec
        self.limit = limit
        self.session = session or requests.Session()
        self.clock = clock
        self.logger = logger or logging.getLogger(__name__)

    def fetch(self) -> SourceResult:
        try:
            articles = self.fetch_articles()
        except Exception as exc:
            reason = f"{type(exc).__name__}: {exc}"
            self.logger.warning("source fetch failed: source=%s error=%s", self.name, reason)
            return SourceResult.failed(self.name, reason)

        self.logger.info("source fetched: source=%s articles=%s", self.name, len(articles))
        return SourceResult.ok(self.name, articles)

    @abstractmethod
    def fetch_articles(self) -> list[Article]:
        raise NotImplementedError

    def _get(self, url: str, **kwargs) -> requests.Response:
        response = self.session.get(url, timeout=self.timeout_sec, **kwargs)
        response.raise_for_status()
        return response

    def _resolve_published_at(self, raw: Optional[str], fetched_at: datetime) -> datetime:
        published_at = parse_datetime(raw)
        return published_at if published_at is not None else fetched_at

    def _build_article(
        self,
        *,
        title: object,
        url: object,
        published_raw: Optional[str],
        fetched_at: datetime,
        summary: object = "",
        source_name: Optional[str] = None,
        image_url: Optional[str] = None,
        published_at: Optional[datetime] = None,
    ) -> Optional[Article]:
        clean_title = clean_text(title)
        clean_url = url.strip() if isinstance(url, str) else ""
        if not clean_title or not clean_url:
            return None

        if published_at is None:
            try:
                published_at = self._resolve_published_at(published_raw, fetched_at)
            except UnparseableTimestamp as exc:
                self.logger.debug("skipping item: source=%s url=%s reason=%s", self.name, clean_url, exc)
                return None

        return Article(
            title=clean_title,
            url=clean_url,
            source_name=source_name or self.name,
            published_at=published_at,
            summary=clean_summary(summary),
            image_url=image_url or None,
        )
