from __future__ import annotations

import configparser
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/123.0.0.0 Safari/537.36"
)
DEFAULT_WORDPRESS_API_URL = (
    "https://techcrunch.com/wp-json/wp/v2/posts?categories=149264&per_page=10&_embed=1"
)
DEFAULT_HTML_LISTING_URL = "https://www.technologyreview.com/topic/artificial-intelligence"
DEFAULT_RSS_FEED_URL = "https://venturebeat.com/category/ai/feed/"
DEFAULT_NEWS_API_ENDPOINT = "https://newsapi.org/v2/everything"
DEFAULT_NEWS_API_QUERY = "artificial intelligence OR AI OR machine learning"
DEFAULT_TWILIO_API_BASE = "https://api.twilio.com"
DEFAULT_APP_URL = "https://your-app-url.com"


def _as_bool(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_ini(path: Path) -> dict[str, str]:
    if not path.exists():
        return {}

    parser = configparser.ConfigParser()
    parser.optionxform = str
    parser.read(path, encoding="utf-8")

    values: dict[str, str] = {}
    for key, value in parser.defaults().items():
        values[key.upper()] = value
    for section in parser.sections():
        for key, value in parser.items(section):
            values[key.upper()] = value
    return values


def _parse_dotenv(path: Path) -> dict[str, str]:
    if not path.exists():
        return {}

    values: dict[str, str] = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip()
        if (
            len(value) >= 2
            and value[0] == value[-1]
            and value[0] in {"'", '"'}
        ):
            value = value[1:-1]

        if key:
            values[key.upper()] = value
    return values


def _pick(
    values: Mapping[str, str],
    key: str,
    default: Optional[str] = None,
) -> Optional[str]:
    value = values.get(key)
    if value is None:
        return default
    return str(value)


def _pick_str(values: Mapping[str, str], key: str, default: str = "") -> str:
    return (_pick(values, key, default) or "").strip()


def _pick_optional(values: Mapping[str, str], key: str) -> Optional[str]:
    return (_pick(values, key) or "").strip() or None


def _pick_int(values: Mapping[str, str], key: str, default: int) -> int:
    raw = (_pick(values, key) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {raw!r}") from None


def _pick_float(values: Mapping[str, str], key: str, default: float) -> float:
    raw = (_pick(values, key) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{key} must be a number, got {raw!r}") from None


def _split_csv(value: Optional[str]) -> tuple[str, ...]:
    raw = (value or "").strip()
    if not raw:
        return ()
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass
class Settings:
    request_timeout_sec: float
    request_user_agent: str

    wordpress_api_url: str
    wordpress_source_name: str
    html_listing_url: str
    html_listing_source_name: str
    html_listing_limit: int
    rss_feed_url: str
    rss_source_name: str
    rss_limit: int
    news_api_key: Optional[str]
    news_api_endpoint: str
    news_api_query: str
    news_api_page_size: int

    recency_window_hours: int
    max_articles: int
    display_max_articles: int

    daily_push_hour: int
    daily_push_minute: int
    batch_size: int
    batch_delay_ms: int

    twilio_account_sid: Optional[str]
    twilio_auth_token: Optional[str]
    twilio_whatsapp_number: Optional[str]
    twilio_api_base: str

    app_url: str
    subscribers: tuple[str, ...]
    api_cors_origins: tuple[str, ...]
    dry_run: bool

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, str]) -> "Settings":
        values = {key.upper(): str(value) for key, value in mapping.items() if value is not None}
        settings = cls(
            request_timeout_sec=_pick_float(values, "REQUEST_TIMEOUT_SEC", 10.0),
            request_user_agent=_pick_str(values, "REQUEST_USER_AGENT", DEFAULT_USER_AGENT),
            wordpress_api_url=_pick_str(values, "WORDPRESS_API_URL", DEFAULT_WORDPRESS_API_URL),
            wordpress_source_name=_pick_str(values, "WORDPRESS_SOURCE_NAME", "TechCrunch"),
            html_listing_url=_pick_str(values, "HTML_LISTING_URL", DEFAULT_HTML_LISTING_URL),
            html_listing_source_name=_pick_str(values, "HTML_LISTING_SOURCE_NAME", "MIT Technology Review"),
            html_listing_limit=_pick_int(values, "HTML_LISTING_LIMIT", 5),
            rss_feed_url=_pick_str(values, "RSS_FEED_URL", DEFAULT_RSS_FEED_URL),
            rss_source_name=_pick_str(values, "RSS_SOURCE_NAME", "VentureBeat"),
            rss_limit=_pick_int(values, "RSS_LIMIT", 5),
            news_api_key=_pick_optional(values, "NEWS_API_KEY"),
            news_api_endpoint=_pick_str(values, "NEWS_API_ENDPOINT", DEFAULT_NEWS_API_ENDPOINT),
            news_api_query=_pick_str(values, "NEWS_API_QUERY", DEFAULT_NEWS_API_QUERY),
            news_api_page_size=_pick_int(values, "NEWS_API_PAGE_SIZE", 10),
            recency_window_hours=_pick_int(values, "RECENCY_WINDOW_HOURS", 24),
            max_articles=_pick_int(values, "MAX_ARTICLES", 20),
            display_max_articles=_pick_int(values, "DISPLAY_MAX_ARTICLES", 10),
            daily_push_hour=_pick_int(values, "DAILY_PUSH_HOUR", 8),
            daily_push_minute=_pick_int(values, "DAILY_PUSH_MINUTE", 0),
            batch_size=_pick_int(values, "BATCH_SIZE", 10),
            batch_delay_ms=_pick_int(values, "BATCH_DELAY_MS", 1000),
            twilio_account_sid=_pick_optional(values, "TWILIO_ACCOUNT_SID"),
            twilio_auth_token=_pick_optional(values, "TWILIO_AUTH_TOKEN"),
            twilio_whatsapp_number=_pick_optional(values, "TWILIO_WHATSAPP_NUMBER"),
            twilio_api_base=_pick_str(values, "TWILIO_API_BASE", DEFAULT_TWILIO_API_BASE),
            app_url=_pick_str(values, "APP_URL", DEFAULT_APP_URL).rstrip("/"),
            subscribers=_split_csv(_pick(values, "SUBSCRIBERS")),
            api_cors_origins=_split_csv(_pick(values, "API_CORS_ORIGINS")),
            dry_run=_as_bool(_pick(values, "DRY_RUN", "false"), default=False),
        )
        settings.validate()
        return settings

    @classmethod
    def from_files(
        cls,
        *,
        config_file: Path | str = "config.ini",
        env_file: Path | str = ".env",
        base_env: Optional[Mapping[str, str]] = None,
    ) -> "Settings":
        merged_values: dict[str, str] = {}
        merged_values.update(_parse_ini(Path(config_file)))
        merged_values.update(_parse_dotenv(Path(env_file)))
        if base_env is None:
            base_env = os.environ
        for key, value in base_env.items():
            if value is not None:
                merged_values[key.upper()] = str(value)
        return cls.from_mapping(merged_values)

    @property
    def batch_delay_sec(self) -> float:
        return self.batch_delay_ms / 1000.0

    @property
    def daily_at(self) -> str:
        return f"{self.daily_push_hour:02d}:{self.daily_push_minute:02d}"

    def validate(self) -> None:
        if not 0 <= self.daily_push_hour <= 23:
            raise ValueError("DAILY_PUSH_HOUR must be in [0, 23]")
        if not 0 <= self.daily_push_minute <= 59:
            raise ValueError("DAILY_PUSH_MINUTE must be in [0, 59]")
        if self.batch_size < 1:
            raise ValueError("BATCH_SIZE must be a positive integer")
        if self.batch_delay_ms < 0:
            raise ValueError("BATCH_DELAY_MS must not be negative")
        if self.recency_window_hours < 1:
            raise ValueError("RECENCY_WINDOW_HOURS must be a positive integer")
        if self.max_articles < 1:
            raise ValueError("MAX_ARTICLES must be a positive integer")
        if self.display_max_articles < 1:
            raise ValueError("DISPLAY_MAX_ARTICLES must be a positive integer")
        if self.request_timeout_sec <= 0:
            raise ValueError("REQUEST_TIMEOUT_SEC must be positive")
