from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def local_now() -> datetime:
    return datetime.now().astimezone()


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class Article:
    title: str
    url: str
    source_name: str
    published_at: datetime
    summary: str = ""
    image_url: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.title or not self.title.strip():
            raise ValueError("article title is required")
        if not self.url or not self.url.strip():
            raise ValueError("article url is required")
        if self.published_at.tzinfo is None:
            raise ValueError("article published_at must be timezone-aware")

    def to_dict(self) -> dict[str, object]:
        return {
            "title": self.title,
            "summary": self.summary,
            "url": self.url,
            "source": self.source_name,
            "published_at": self.published_at.isoformat(),
            "image_url": self.image_url,
        }


@dataclass(frozen=True)
class SourceResult:
    source_name: str
    articles: tuple[Article, ...] = ()
    error: Optional[str] = None

    @classmethod
    def ok(cls, source_name: str, articles) -> "SourceResult":
        return cls(source_name=source_name, articles=tuple(articles))

    @classmethod
    def failed(cls, source_name: str, error: str) -> "SourceResult":
        return cls(source_name=source_name, error=error or "unknown error")

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class AggregatedFeed:
    articles: tuple[Article, ...]
    generated_at: datetime
    failures: tuple[SourceResult, ...] = ()

    def __len__(self) -> int:
        return len(self.articles)

    def __bool__(self) -> bool:
        return bool(self.articles)

    def limited(self, max_items: int) -> tuple[Article, ...]:
        return self.articles[: max(max_items, 0)]


@dataclass(frozen=True)
class DeliveryResult:
    channel: str
    success: bool
    error_message: Optional[str] = None
    response_excerpt: Optional[str] = None


@dataclass(frozen=True)
class RecipientOutcome:
    recipient: str
    success: bool
    detail: Optional[str] = None

    def to_dict(self) -> dict[str, object]:
        return {
            "recipient": self.recipient,
            "status": "success" if self.success else "failed",
            "detail": self.detail,
        }


@dataclass(frozen=True)
class DispatchOutcome:
    recipients: tuple[RecipientOutcome, ...] = ()

    @property
    def total(self) -> int:
        return len(self.recipients)

    @property
    def succeeded(self) -> int:
        return sum(1 for item in self.recipients if item.success)

    @property
    def failed(self) -> int:
        return self.total - self.succeeded

    def to_dict(self) -> dict[str, object]:
        return {
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "details": [item.to_dict() for item in self.recipients],
        }


@dataclass(frozen=True)
class PushReport:
    trigger: str
    started_at: datetime
    finished_at: datetime
    article_count: int
    outcome: DispatchOutcome = field(default_factory=DispatchOutcome)

    def to_dict(self) -> dict[str, object]:
        return {
            "trigger": self.trigger,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat(),
            "article_count": self.article_count,
            **self.outcome.to_dict(),
        }


@dataclass
class SchedulerState:
    is_running: bool = False
    last_run_at: Optional[datetime] = None


@dataclass(frozen=True)
class SchedulerStatus:
    is_running: bool
    last_run_at: Optional[datetime]
    next_run_at: datetime
    daily_at: str

    def to_dict(self) -> dict[str, object]:
        return {
            "is_running": self.is_running,
            "last_run_at": _iso(self.last_run_at),
            "next_run_at": self.next_run_at.isoformat(),
            "daily_at": self.daily_at,
        }
