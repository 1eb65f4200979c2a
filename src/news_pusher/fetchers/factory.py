from __future__ import annotations

from collections.abc import Callable

import requests

from ..config import Settings
from .base import SourceFetcher
from .html_listing import HtmlListingFetcher
from .newsapi import NewsApiFetcher
from .rss import RssFeedFetcher
from .wordpress import WordPressPostsFetcher


def _scraper_session(settings: Settings, session_factory: Callable[[], requests.Session]) -> requests.Session:
    session = session_factory()
    session.headers.update({"User-Agent": settings.request_user_agent})
    return session


def build_fetchers(
    settings: Settings,
    session_factory: Callable[[], requests.Session] = requests.Session,
) -> list[SourceFetcher]:
    """One session per fetcher; fetchers run on separate threads."""

    def common() -> dict[str, object]:
        return {"timeout_sec": settings.request_timeout_sec, "session": _scraper_session(settings, session_factory)}

    fetchers: list[SourceFetcher] = []

    if settings.wordpress_api_url:
        fetchers.append(
            WordPressPostsFetcher(
                settings.wordpress_api_url,
                name=settings.wordpress_source_name,
                limit=10,
                **common(),
            )
        )
    if settings.html_listing_url:
        fetchers.append(
            HtmlListingFetcher(
                settings.html_listing_url,
                name=settings.html_listing_source_name,
                limit=settings.html_listing_limit,
                **common(),
            )
        )
    if settings.rss_feed_url:
        fetchers.append(
            RssFeedFetcher(
                settings.rss_feed_url,
                name=settings.rss_source_name,
                limit=settings.rss_limit,
                **common(),
            )
        )
    if settings.news_api_endpoint:
        fetchers.append(
            NewsApiFetcher(
                settings.news_api_endpoint,
                api_key=settings.news_api_key,
                query=settings.news_api_query,
                limit=settings.news_api_page_size,
                **common(),
            )
        )
    return fetchers
