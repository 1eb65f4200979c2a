from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient

from news_pusher.api import build_app
from news_pusher.config import Settings
from news_pusher.models import AggregatedFeed, Article, DeliveryResult, DispatchOutcome, PushReport, SourceResult
from news_pusher.roster import InMemoryRoster
from news_pusher.scheduler import PushScheduler
from news_pusher.transports.base import MessageTransport

NOW = datetime(2026, 10, 16, 7, 0, 0, tzinfo=timezone.utc)


class CapturingTransport(MessageTransport):
    name = "capturing"

    def __init__(self, success: bool = True):
        self.success = success
        self.calls: list[tuple[str, str]] = []

    def send(self, recipient: str, message: str) -> DeliveryResult:
        self.calls.append((recipient, message))
        return DeliveryResult(
            channel=self.name,
            success=self.success,
            error_message=None if self.success else "send failed",
        )


class FakePipeline:
    def __init__(self, articles: int = 12, error: Exception | None = None):
        self.articles = tuple(
            Article(
                title=f"Story {idx}",
                url=f"https://news.example/{idx}",
                source_name="VentureBeat",
                published_at=NOW - timedelta(minutes=idx),
            )
            for idx in range(articles)
        )
        self.error = error
        self.block: threading.Event | None = None
        self.started = threading.Event()

    def fetch_current_feed(self) -> AggregatedFeed:
        return AggregatedFeed(
            articles=self.articles,
            generated_at=NOW,
            failures=(SourceResult.failed("TechCrunch", "Timeout: slow"),),
        )

    def run_once(self, trigger: str = "manual") -> PushReport:
        self.started.set()
        if self.block is not None:
            self.block.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return PushReport(
            trigger=trigger,
            started_at=NOW,
            finished_at=NOW,
            article_count=len(self.articles),
            outcome=DispatchOutcome(),
        )


def _client(pipeline: FakePipeline, roster: InMemoryRoster | None = None, transport=None):
    settings = Settings.from_mapping({})
    scheduler = PushScheduler(pipeline, clock=lambda: NOW)
    app = build_app(
        scheduler=scheduler,
        roster=roster if roster is not None else InMemoryRoster(),
        transport=transport or CapturingTransport(),
        settings=settings,
    )
    return TestClient(app), scheduler


def test_health_endpoints() -> None:
    client, _ = _client(FakePipeline())

    assert client.get("/health").json() == {"ok": True}
    body = client.get("/api/health").json()
    assert body["ok"] is True
    assert "timestamp" in body


def test_news_endpoint_caps_items_and_lists_failed_sources() -> None:
    client, _ = _client(FakePipeline(articles=12))

    body = client.get("/api/news").json()

    assert body["ok"] is True
    assert body["count"] == 10
    assert len(body["items"]) == 10
    assert body["items"][0]["title"] == "Story 0"
    assert body["items"][0]["source"] == "VentureBeat"
    assert body["failed_sources"] == ["TechCrunch"]


def test_subscribe_adds_number_and_sends_welcome() -> None:
    roster = InMemoryRoster()
    transport = CapturingTransport()
    client, _ = _client(FakePipeline(), roster=roster, transport=transport)

    response = client.post("/api/subscribe", json={"phone": "+15550001111"})

    assert response.status_code == 200
    assert response.json()["welcome_sent"] is True
    assert roster.current_recipients() == ["+15550001111"]
    assert transport.calls[0][0] == "+15550001111"
    assert "Welcome" in transport.calls[0][1]
    assert client.get("/api/subscribers/count").json() == {"ok": True, "count": 1}


def test_subscribe_keeps_number_when_welcome_fails() -> None:
    roster = InMemoryRoster()
    client, _ = _client(FakePipeline(), roster=roster, transport=CapturingTransport(success=False))

    response = client.post("/api/subscribe", json={"phone": "+15550001111"})

    assert response.status_code == 200
    assert response.json()["welcome_sent"] is False
    assert len(roster) == 1


def test_subscribe_rejects_missing_invalid_and_duplicate_numbers() -> None:
    client, _ = _client(FakePipeline(), roster=InMemoryRoster(["+15550001111"]))

    missing = client.post("/api/subscribe", json={})
    invalid = client.post("/api/subscribe", json={"phone": "12345"})
    duplicate = client.post("/api/subscribe", json={"phone": "+15550001111"})

    assert missing.status_code == 400
    assert missing.json() == {"ok": False, "error": "Phone number is required"}
    assert invalid.status_code == 400
    assert "E.164" in invalid.json()["error"]
    assert duplicate.status_code == 400
    assert duplicate.json()["error"] == "This number is already subscribed"


def test_unsubscribe_removes_number_or_returns_404() -> None:
    roster = InMemoryRoster(["+15550001111"])
    client, _ = _client(FakePipeline(), roster=roster)

    assert client.post("/api/unsubscribe", json={"phone": "+15550001111"}).status_code == 200
    missing = client.post("/api/unsubscribe", json={"phone": "+15550001111"})
    assert missing.status_code == 404
    assert missing.json()["ok"] is False
    assert len(roster) == 0


def test_push_now_returns_report() -> None:
    client, scheduler = _client(FakePipeline(articles=3))

    response = client.post("/api/push-now")

    assert response.status_code == 200
    report = response.json()["report"]
    assert report["article_count"] == 3
    assert report["total"] == 0
    assert scheduler.status().last_run_at == NOW


def test_push_now_returns_409_when_push_in_progress() -> None:
    pipeline = FakePipeline()
    pipeline.block = threading.Event()
    client, scheduler = _client(pipeline)
    worker = threading.Thread(target=scheduler.trigger_manual_push)
    worker.start()
    assert pipeline.started.wait(timeout=5)

    try:
        response = client.post("/api/push-now")
        status = client.get("/api/scheduler/status").json()["status"]
    finally:
        pipeline.block.set()
        worker.join(timeout=5)

    assert response.status_code == 409
    assert response.json() == {"ok": False, "error": "Push already in progress"}
    assert status["is_running"] is True


def test_push_now_returns_500_on_fault_and_releases_guard() -> None:
    client, scheduler = _client(FakePipeline(error=RuntimeError("roster unavailable")))

    response = client.post("/api/push-now")

    assert response.status_code == 500
    assert response.json()["error"] == "roster unavailable"
    assert scheduler.state.is_running is False


def test_scheduler_status_endpoint(host_timezone) -> None:
    host_timezone("UTC")
    client, _ = _client(FakePipeline())

    status = client.get("/api/scheduler/status").json()["status"]

    assert status == {
        "is_running": False,
        "last_run_at": None,
        "next_run_at": "2026-10-16T08:00:00+00:00",
        "daily_at": "08:00",
    }
