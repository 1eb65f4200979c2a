from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import feedparser

from ..models import Article
from .base import SourceFetcher


def _entry_image(entry) -> Optional[str]:
    for key in ("media_content", "media_thumbnail"):
        media = entry.get(key)
        if isinstance(media, list):
            for item in media:
                url = item.get("url") if isinstance(item, dict) else None
                if url:
                    return url
    return None


def entry_published_at(entry) -> Optional[datetime]:
    """UTC timestamp from feedparser's normalized ``*_parsed`` fields, if any."""
    parsed = entry.get("published_parsed") or entry.get("updated_parsed")
    if not parsed:
        return None
    return datetime(*parsed[:6], tzinfo=timezone.utc)


class RssFeedFetcher(SourceFetcher):
    """Reads the first ``limit`` entries of an RSS or Atom feed."""

    def __init__(self, url: str, name: str = "VentureBeat", **kwargs):
        kwargs.setdefault("limit", 5)
        super().__init__(url, **kwargs)
        self.name = name

    def fetch_articles(self) -> list[Article]:
        fetched_at = self.clock()
        content = self._get(self.url).content
        return self.extract_articles(content, fetched_at)

    def extract_articles(self, content, fetched_at) -> list[Article]:
        feed = feedparser.parse(content)
        entries = feed.entries or []
        if not entries and feed.get("bozo"):
            raise ValueError(f"malformed feed: {feed.get('bozo_exception')}")

        articles: list[Article] = []
        for entry in entries[: self.limit]:
            article = self._build_article(
                title=entry.get("title"),
                url=entry.get("link"),
                published_raw=entry.get("published") or entry.get("updated"),
                fetched_at=fetched_at,
                summary=entry.get("summary") or entry.get("description") or "",
                image_url=_entry_image(entry),
                published_at=entry_published_at(entry),
            )
            if article:
                articles.append(article)
        return articles
