from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from typing import Optional
from urllib.parse import urlsplit

from .fetchers.base import SourceFetcher
from .models import AggregatedFeed, Article, SourceResult, utc_now

DEFAULT_WINDOW_HOURS = 24
DEFAULT_MAX_ARTICLES = 20


def normalize_url(url: str) -> str:
    """Dedup key for an article link: scheme, ``www.``, fragment and trailing slash ignored."""
    text = (url or "").strip()
    parsed = urlsplit(text)
    if not parsed.netloc:
        return text.rstrip("/").lower()

    host = parsed.netloc.lower()
    if host.startswith("www."):
        host = host[4:]
    key = f"{host}{parsed.path.rstrip('/')}"
    if parsed.query:
        key = f"{key}?{parsed.query}"
    return key


def dedupe_articles(articles: Iterable[Article]) -> list[Article]:
    seen: set[str] = set()
    unique: list[Article] = []
    for article in articles:
        key = normalize_url(article.url)
        if key in seen:
            continue
        seen.add(key)
        unique.append(article)
    return unique


def aggregate(
    results: Sequence[SourceResult],
    now: datetime,
    window: timedelta = timedelta(hours=DEFAULT_WINDOW_HOURS),
    max_articles: int = DEFAULT_MAX_ARTICLES,
) -> list[Article]:
    oldest = now - window
    candidates = [
        article
        for result in results
        if result.success
        for article in result.articles
        if oldest <= article.published_at <= now
    ]
    # sorted() is stable with reverse=True, so equal timestamps keep discovery order.
    candidates = sorted(candidates, key=lambda item: item.published_at, reverse=True)
    return dedupe_articles(candidates)[: max(max_articles, 0)]


class Aggregator:
    def __init__(
        self,
        fetchers: Sequence[SourceFetcher],
        window_hours: int = DEFAULT_WINDOW_HOURS,
        max_articles: int = DEFAULT_MAX_ARTICLES,
        clock: Callable[[], datetime] = utc_now,
        logger: Optional[logging.Logger] = None,
    ):
        self.fetchers = list(fetchers)
        self.window = timedelta(hours=window_hours)
        self.max_articles = max_articles
        self.clock = clock
        self.logger = logger or logging.getLogger(__name__)

    def fetch_all(self) -> AggregatedFeed:
        results = self._fetch_concurrently()
        now = self.clock()

        failures = tuple(result for result in results if not result.success)
        for failure in failures:
            self.logger.warning("source skipped: source=%s error=%s", failure.source_name, failure.error)

        articles = aggregate(results, now, window=self.window, max_articles=self.max_articles)
        self.logger.info(
            "aggregated feed: sources=%s failed=%s raw=%s kept=%s",
            len(results),
            len(failures),
            sum(len(result.articles) for result in results),
            len(articles),
        )
        return AggregatedFeed(articles=tuple(articles), generated_at=now, failures=failures)

    def _fetch_concurrently(self) -> list[SourceResult]:
        if not self.fetchers:
            return []

        slots: list[Optional[SourceResult]] = [None] * len(self.fetchers)
        with ThreadPoolExecutor(max_workers=len(self.fetchers), thread_name_prefix="fetch") as pool:
            futures = [pool.submit(fetcher.fetch) for fetcher in self.fetchers]
            for index, (fetcher, future) in enumerate(zip(self.fetchers, futures)):
                try:
                    slots[index] = future.result()
                except Exception as exc:
                    self.logger.exception("fetcher raised: source=%s", getattr(fetcher, "name", index))
                    slots[index] = SourceResult.failed(
                        getattr(fetcher, "name", f"source-{index}"),
                        f"{type(exc).__name__}: {exc}",
                    )
        return [slot for slot in slots if slot is not None]
