from __future__ import annotations

from datetime import datetime, timedelta, timezone

from news_pusher.aggregator import Aggregator
from news_pusher.config import Settings
from news_pusher.dispatcher import Dispatcher
from news_pusher.models import Article, DeliveryResult, SourceResult
from news_pusher.pipeline import NewsPipeline
from news_pusher.roster import InMemoryRoster
from news_pusher.transports.base import MessageTransport

NOW = datetime(2026, 10, 16, 8, 0, 0, tzinfo=timezone.utc)


class FakeFetcher:
    def __init__(self, result: SourceResult):
        self.name = result.source_name
        self.result = result

    def fetch(self) -> SourceResult:
        return self.result


class CapturingTransport(MessageTransport):
    name = "capturing"

    def __init__(self):
        self.calls: list[tuple[str, str]] = []

    def send(self, recipient: str, message: str) -> DeliveryResult:
        self.calls.append((recipient, message))
        return DeliveryResult(channel=self.name, success=True, response_excerpt="SM1")


class CountingRoster(InMemoryRoster):
    def __init__(self, recipients=()):
        super().__init__(recipients)
        self.reads = 0

    def current_recipients(self) -> list[str]:
        self.reads += 1
        return super().current_recipients()


def _article(slug: str, hours_ago: float) -> Article:
    return Article(
        title=f"Story {slug}",
        url=f"https://news.example/{slug}",
        source_name="TechCrunch",
        published_at=NOW - timedelta(hours=hours_ago),
    )


def _pipeline(results: list[SourceResult], roster: InMemoryRoster, transport: MessageTransport) -> NewsPipeline:
    settings = Settings.from_mapping({"APP_URL": "https://news.example"})
    return NewsPipeline(
        settings=settings,
        aggregator=Aggregator([FakeFetcher(result) for result in results], clock=lambda: NOW),
        dispatcher=Dispatcher(transport, sleep=lambda _: None),
        roster=roster,
        clock=lambda: NOW,
    )


def test_run_once_sends_rendered_digest_to_every_subscriber() -> None:
    transport = CapturingTransport()
    roster = CountingRoster(["+15550001111", "+15550002222"])
    pipeline = _pipeline(
        [
            SourceResult.ok("one", [_article("a", 1), _article("b", 2)]),
            SourceResult.failed("two", "Timeout: slow"),
        ],
        roster,
        transport,
    )

    report = pipeline.run_once(trigger="manual")

    assert report.article_count == 2
    assert report.outcome.total == 2
    assert report.outcome.succeeded == 2
    assert report.trigger == "manual"
    assert roster.reads == 1
    assert [recipient for recipient, _ in transport.calls] == ["+15550001111", "+15550002222"]
    message = transport.calls[0][1]
    assert "1. *Story a*" in message
    assert "2. *Story b*" in message
    assert "https://news.example/unsubscribe" in message


def test_run_once_with_empty_feed_skips_dispatch() -> None:
    transport = CapturingTransport()
    roster = CountingRoster(["+15550001111"])
    pipeline = _pipeline([SourceResult.ok("one", [_article("old", 30)])], roster, transport)

    report = pipeline.run_once()

    assert report.article_count == 0
    assert report.outcome.total == 0
    assert transport.calls == []
    assert roster.reads == 0


def test_run_once_with_empty_roster_reports_zero_deliveries() -> None:
    transport = CapturingTransport()
    pipeline = _pipeline([SourceResult.ok("one", [_article("a", 1)])], InMemoryRoster(), transport)

    report = pipeline.run_once()

    assert report.article_count == 1
    assert (report.outcome.total, report.outcome.succeeded, report.outcome.failed) == (0, 0, 0)
    assert transport.calls == []


def test_run_once_reads_roster_fresh_each_run() -> None:
    transport = CapturingTransport()
    roster = CountingRoster(["+15550001111"])
    pipeline = _pipeline([SourceResult.ok("one", [_article("a", 1)])], roster, transport)

    pipeline.run_once()
    roster.add("+15550002222")
    report = pipeline.run_once()

    assert roster.reads == 2
    assert report.outcome.total == 2


def test_fetch_current_feed_does_not_dispatch() -> None:
    transport = CapturingTransport()
    pipeline = _pipeline([SourceResult.ok("one", [_article("a", 1)])], InMemoryRoster(["+15550001111"]), transport)

    feed = pipeline.fetch_current_feed()

    assert [article.title for article in feed.articles] == ["Story a"]
    assert transport.calls == []
