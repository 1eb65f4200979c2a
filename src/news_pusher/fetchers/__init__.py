"""Source fetchers and factory."""

from .base import SourceFetcher
from .factory import build_fetchers
from .html_listing import HtmlListingFetcher
from .newsapi import NewsApiFetcher
from .rss import RssFeedFetcher
from .wordpress import WordPressPostsFetcher

__all__ = [
    "HtmlListingFetcher",
    "NewsApiFetcher",
    "RssFeedFetcher",
    "SourceFetcher",
    "WordPressPostsFetcher",
    "build_fetchers",
]
