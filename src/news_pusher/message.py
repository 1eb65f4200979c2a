from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from .models import Article

DEFAULT_HEADING = "Daily AI News Update"
SIGN_OFF = "AI News Pusher"


def truncate_text(text: str, max_chars: int) -> str:
    if len(text) <= max_chars:
        return text
    return text[: max_chars - 3].rstrip() + "..."


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def format_time_ago(published_at: datetime, now: datetime) -> str:
    elapsed = max((now - published_at).total_seconds(), 0.0)
    hours = elapsed / 3600
    if hours < 1:
        return f"{int(elapsed // 60)} min ago"
    if hours < 24:
        return f"{_plural(int(hours), 'hour')} ago"
    return f"{_plural(int(hours // 24), 'day')} ago"


def format_date_line(now: datetime) -> str:
    return f"{now:%A}, {now:%B} {now.day}, {now.year}"


def format_empty_message(window_hours: int = 24) -> str:
    return (
        f"No AI news articles found in the last {window_hours} hours.\n\n"
        "Check back tomorrow for the latest updates!"
    )


def format_digest_message(
    articles: Sequence[Article],
    *,
    now: datetime,
    app_url: str,
    window_hours: int = 24,
    max_items: int = 10,
    title_limit: int = 80,
    heading: str = DEFAULT_HEADING,
) -> str:
    shown = list(articles)[: max(max_items, 0)]
    if not shown:
        return format_empty_message(window_hours)

    lines = [
        f"*{heading}*",
        "",
        format_date_line(now),
        f"*{_plural(len(shown), 'article')} from the last {window_hours} hours*",
        "",
        "_Tip: Click links to read full articles_",
        "",
    ]
    for idx, article in enumerate(shown, start=1):
        title = truncate_text(" ".join(article.title.split()), title_limit)
        lines.append(f"{idx}. *{title}*")
        lines.append(f"{article.source_name} • {format_time_ago(article.published_at, now)}")
        lines.append(article.url)
        lines.append("")

    lines.append("---")
    lines.append(f"*{SIGN_OFF}*")
    lines.append(f"To unsubscribe, visit: {app_url.rstrip('/')}/unsubscribe")
    return "\n".join(lines)


def format_welcome_message(daily_at: str) -> str:
    return (
        f"Welcome to {SIGN_OFF}!\n\n"
        f"You'll receive daily AI news updates every morning at {daily_at}.\n\n"
        "Stay tuned for the latest artificial intelligence developments!"
    )
