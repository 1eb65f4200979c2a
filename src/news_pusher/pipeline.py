from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Optional

from .aggregator import Aggregator
from .config import Settings
from .dispatcher import Dispatcher
from .message import format_digest_message
from .models import AggregatedFeed, DispatchOutcome, PushReport, local_now
from .roster import RosterProvider


class NewsPipeline:
    def __init__(
        self,
        settings: Settings,
        aggregator: Aggregator,
        dispatcher: Dispatcher,
        roster: RosterProvider,
        clock: Callable[[], datetime] = local_now,
        logger: Optional[logging.Logger] = None,
    ):
        self.settings = settings
        self.aggregator = aggregator
        self.dispatcher = dispatcher
        self.roster = roster
        self.clock = clock
        self.logger = logger or logging.getLogger(__name__)

    def fetch_current_feed(self) -> AggregatedFeed:
        return self.aggregator.fetch_all()

    def render(self, feed: AggregatedFeed) -> str:
        return format_digest_message(
            feed.articles,
            now=self.clock(),
            app_url=self.settings.app_url,
            window_hours=self.settings.recency_window_hours,
            max_items=self.settings.display_max_articles,
        )

    def run_once(self, trigger: str = "manual") -> PushReport:
        started_at = self.clock()
        self.logger.info("push started: trigger=%s", trigger)

        feed = self.fetch_current_feed()
        if not feed:
            self.logger.info("no news to push today: trigger=%s failed_sources=%s", trigger, len(feed.failures))
            return PushReport(
                trigger=trigger,
                started_at=started_at,
                finished_at=self.clock(),
                article_count=0,
                outcome=DispatchOutcome(),
            )

        message = self.render(feed)
        recipients = self.roster.current_recipients()
        self.logger.info(
            "sending digest: articles=%s recipients=%s chars=%s",
            len(feed),
            len(recipients),
            len(message),
        )
        outcome = self.dispatcher.send_all(recipients, message)

        finished_at = self.clock()
        self.logger.info(
            "run complete: trigger=%s articles=%s total=%s succeeded=%s failed=%s elapsed=%.2fs",
            trigger,
            len(feed),
            outcome.total,
            outcome.succeeded,
            outcome.failed,
            (finished_at - started_at).total_seconds(),
        )
        return PushReport(
            trigger=trigger,
            started_at=started_at,
            finished_at=finished_at,
            article_count=len(feed),
            outcome=outcome,
        )
