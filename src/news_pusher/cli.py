from __future__ import annotations

import argparse
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import requests

from .aggregator import Aggregator
from .api import run_api_server
from .config import Settings
from .dispatcher import Dispatcher
from .fetchers import build_fetchers
from .models import PushReport
from .pipeline import NewsPipeline
from .roster import InMemoryRoster
from .scheduler import PushScheduler
from .transports import MessageTransport, build_transport


@dataclass
class Application:
    settings: Settings
    roster: InMemoryRoster
    transport: MessageTransport
    pipeline: NewsPipeline
    scheduler: PushScheduler


def _parse_daily_at(value: str) -> tuple[int, int]:
    text = value.strip()
    match = re.fullmatch(r"([01]?\d|2[0-3]):([0-5]\d)", text)
    if not match:
        raise argparse.ArgumentTypeError("daily time must be HH:MM (24-hour), e.g. 08:00")
    return int(match.group(1)), int(match.group(2))


def build_application(
    settings: Settings,
    *,
    session_factory: Callable[[], requests.Session] = requests.Session,
    extra_subscribers: tuple[str, ...] = (),
    logger: Optional[logging.Logger] = None,
) -> Application:
    roster = InMemoryRoster(dict.fromkeys(settings.subscribers + tuple(extra_subscribers)))
    transport = build_transport(settings, session=session_factory())
    aggregator = Aggregator(
        build_fetchers(settings, session_factory=session_factory),
        window_hours=settings.recency_window_hours,
        max_articles=settings.max_articles,
    )
    dispatcher = Dispatcher(
        transport,
        batch_size=settings.batch_size,
        batch_delay_sec=settings.batch_delay_sec,
    )
    pipeline = NewsPipeline(
        settings=settings,
        aggregator=aggregator,
        dispatcher=dispatcher,
        roster=roster,
        logger=logger,
    )
    scheduler = PushScheduler(
        pipeline,
        daily_hour=settings.daily_push_hour,
        daily_minute=settings.daily_push_minute,
        logger=logger,
    )
    return Application(
        settings=settings,
        roster=roster,
        transport=transport,
        pipeline=pipeline,
        scheduler=scheduler,
    )


def _log_report(logger: logging.Logger, report: PushReport) -> None:
    logger.info(
        "push report: trigger=%s articles=%s total=%s succeeded=%s failed=%s",
        report.trigger,
        report.article_count,
        report.outcome.total,
        report.outcome.succeeded,
        report.outcome.failed,
    )


def _parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Daily AI news digest delivered over WhatsApp")
    parser.add_argument("--config-file", default="config.ini", help="Path to config.ini file")
    parser.add_argument("--env-file", default=".env", help="Path to .env file")
    parser.add_argument("--dry-run", action="store_true", help="Run pipeline without sending messages")
    parser.add_argument(
        "--daily-at",
        type=_parse_daily_at,
        default=None,
        metavar="HH:MM",
        help="Override the daily push time (local), e.g. 08:00",
    )
    parser.add_argument(
        "--subscriber",
        action="append",
        default=[],
        metavar="PHONE",
        help="Add an E.164 subscriber to the roster (repeatable)",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--daily", action="store_true", help="Run the daily scheduler in the foreground")
    mode.add_argument("--serve", action="store_true", help="Serve the HTTP API with the daily scheduler")
    mode.add_argument("--show-feed", action="store_true", help="Print the current digest without sending")
    parser.add_argument("--api-host", default="127.0.0.1", help="HTTP API bind host")
    parser.add_argument("--api-port", type=int, default=8000, help="HTTP API bind port")
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> None:
    args = _parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger = logging.getLogger("news_pusher")

    try:
        settings = Settings.from_files(
            config_file=Path(args.config_file),
            env_file=Path(args.env_file),
        )
    except ValueError as exc:
        raise SystemExit(f"Invalid configuration: {exc}") from exc
    if args.dry_run:
        settings.dry_run = True
    if args.daily_at is not None:
        settings.daily_push_hour, settings.daily_push_minute = args.daily_at

    try:
        app = build_application(settings, extra_subscribers=tuple(args.subscriber))
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc

    if args.show_feed:
        feed = app.pipeline.fetch_current_feed()
        print(app.pipeline.render(feed))
        return

    if args.serve:
        run_api_server(
            scheduler=app.scheduler,
            roster=app.roster,
            transport=app.transport,
            settings=settings,
            host=args.api_host,
            port=args.api_port,
            logger=logging.getLogger("news_pusher.api"),
        )
        return

    if args.daily:
        try:
            app.scheduler.run_forever()
        except KeyboardInterrupt:
            logger.info("interrupted, exiting")
        return

    report = app.scheduler.trigger_manual_push()
    _log_report(logger, report)


if __name__ == "__main__":
    main()
