from __future__ import annotations

from typing import Optional

from ..models import Article
from .base import SourceFetcher


def _rendered(value: object) -> str:
    if isinstance(value, dict):
        rendered = value.get("rendered")
        return rendered if isinstance(rendered, str) else ""
    return value if isinstance(value, str) else ""


def _featured_image(post: dict) -> Optional[str]:
    embedded = post.get("_embedded")
    if not isinstance(embedded, dict):
        return None
    media = embedded.get("wp:featuredmedia")
    if not isinstance(media, list) or not media or not isinstance(media[0], dict):
        return None
    source_url = media[0].get("source_url")
    return source_url if isinstance(source_url, str) and source_url else None


class WordPressPostsFetcher(SourceFetcher):
    """Reads posts from a WordPress REST ``wp/v2/posts`` endpoint."""

    def __init__(self, url: str, name: str = "TechCrunch", **kwargs):
        super().__init__(url, **kwargs)
        self.name = name

    def fetch_articles(self) -> list[Article]:
        fetched_at = self.clock()
        payload = self._get(self.url).json()
        if not isinstance(payload, list):
            raise ValueError(f"expected a list of posts, got {type(payload).__name__}")

        articles: list[Article] = []
        for post in payload[: self.limit]:
            if not isinstance(post, dict):
                continue
            # date_gmt carries no offset but is UTC; plain date is site-local.
            published_raw = post.get("date_gmt") or post.get("date")
            article = self._build_article(
                title=_rendered(post.get("title")),
                url=post.get("link"),
                published_raw=published_raw,
                fetched_at=fetched_at,
                summary=_rendered(post.get("excerpt")),
                image_url=_featured_image(post),
            )
            if article:
                articles.append(article)
        return articles
