from __future__ import annotations

from typing import Optional

from ..models import Article
from .base import SourceFetcher

REMOVED_TITLE = "[Removed]"


class NewsApiFetcher(SourceFetcher):
    """Queries newsapi.org. Without an API key the source is skipped, not failed."""

    def __init__(
        self,
        url: str,
        api_key: Optional[str],
        query: str,
        name: str = "NewsAPI",
        **kwargs,
    ):
        super().__init__(url, **kwargs)
        self.name = name
        self.api_key = (api_key or "").strip() or None
        self.query = query

    def fetch_articles(self) -> list[Article]:
        if not self.api_key:
            self.logger.info("news api key not configured, skipping source=%s", self.name)
            return []

        fetched_at = self.clock()
        response = self._get(
            self.url,
            params={
                "q": self.query,
                "language": "en",
                "sortBy": "publishedAt",
                "pageSize": self.limit,
            },
            headers={"X-Api-Key": self.api_key},
        )
        body = response.json()
        if not isinstance(body, dict) or body.get("status") != "ok":
            message = body.get("message") if isinstance(body, dict) else None
            raise ValueError(f"NewsAPI error: {message or 'unexpected response'}")

        items = body.get("articles")
        if not isinstance(items, list):
            raise ValueError("NewsAPI response has no articles list")

        articles: list[Article] = []
        for item in items[: self.limit]:
            if not isinstance(item, dict) or item.get("title") == REMOVED_TITLE:
                continue
            source = item.get("source")
            source_name = source.get("name") if isinstance(source, dict) else None
            article = self._build_article(
                title=item.get("title"),
                url=item.get("url"),
                published_raw=item.get("publishedAt"),
                fetched_at=fetched_at,
                summary=item.get("description") or "",
                source_name=source_name or self.name,
                image_url=item.get("urlToImage"),
            )
            if article:
                articles.append(article)
        return articles
