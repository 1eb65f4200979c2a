from __future__ import annotations

from urllib.parse import urljoin

from bs4 import BeautifulSoup

from ..models import Article
from .base import SourceFetcher

TITLE_LINK_SELECTOR = "h2 a, h3 a"
EXCERPT_SELECTOR = ".excerpt, p"


class HtmlListingFetcher(SourceFetcher):
    """Scrapes the first ``limit`` ``<article>`` cards from a topic page."""

    def __init__(self, url: str, name: str = "MIT Technology Review", **kwargs):
        kwargs.setdefault("limit", 5)
        super().__init__(url, **kwargs)
        self.name = name

    def fetch_articles(self) -> list[Article]:
        fetched_at = self.clock()
        html = self._get(self.url).text
        return self.extract_articles(html, fetched_at)

    def extract_articles(self, html: str, fetched_at) -> list[Article]:
        soup = BeautifulSoup(html, "html.parser")
        articles: list[Article] = []

        for card in soup.find_all("article")[: self.limit]:
            link = card.select_one(TITLE_LINK_SELECTOR)
            if link is None:
                continue
            href = (link.get("href") or "").strip()
            excerpt = card.select_one(EXCERPT_SELECTOR)
            time_tag = card.find("time")

            article = self._build_article(
                title=link.get_text(" ", strip=True),
                url=urljoin(self.url, href) if href else "",
                published_raw=time_tag.get("datetime") if time_tag else None,
                fetched_at=fetched_at,
                summary=excerpt.get_text(" ", strip=True) if excerpt else "",
            )
            if article:
                articles.append(article)
        return articles
