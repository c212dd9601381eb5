"""Configuration management for the blog feed relay."""

import os
from dataclasses import dataclass, field
from urllib.parse import urlparse

from .models import FallbackLink

DEFAULT_FEED_URL = "https://juyeongpark.tistory.com/rss"

# Shown in place of posts when the feed cannot be loaded
DEFAULT_FALLBACK_LINKS = [
    FallbackLink("Blog home", "https://juyeongpark.tistory.com"),
    FallbackLink("Development", "https://juyeongpark.tistory.com/category/Development"),
    FallbackLink("Algorithm", "https://juyeongpark.tistory.com/category/Algorithm"),
    FallbackLink("Retrospective", "https://juyeongpark.tistory.com/category/Retrospective"),
]

CACHE_BACKENDS = ("memory", "file", "dynamodb", "none")


@dataclass
class FeedConfig:
    """Configuration for fetching and normalizing the feed."""

    url: str = DEFAULT_FEED_URL
    timeout: float = 10.0
    max_posts: int = 5
    locale: str = "ko-KR"
    timezone: str = "Asia/Seoul"


@dataclass
class CacheConfig:
    """Configuration for the post cache."""

    backend: str = "memory"
    ttl_seconds: int = 3600
    file_path: str = ".blog_feed_cache.json"
    dynamodb_table: str = "blog-feed-cache"
    aws_region: str = "us-east-1"


@dataclass
class RelayConfig:
    """Configuration for the relay endpoint."""

    feed: FeedConfig = field(default_factory=FeedConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    fallback_links: list[FallbackLink] = field(
        default_factory=lambda: list(DEFAULT_FALLBACK_LINKS)
    )


class Config:
    """Main configuration manager."""

    def __init__(self):
        """Initialize configuration from environment variables."""
        self.feed_url = os.getenv("BLOG_FEED_URL", DEFAULT_FEED_URL).strip()
        self.timeout = _env_float("BLOG_FEED_TIMEOUT", 10.0)
        self.max_posts = min(max(_env_int("BLOG_FEED_MAX_POSTS", 5), 1), 5)
        self.locale = os.getenv("BLOG_DISPLAY_LOCALE", "ko-KR")
        self.timezone = os.getenv("BLOG_DISPLAY_TIMEZONE", "Asia/Seoul")
        self.cache_backend = os.getenv("BLOG_CACHE_BACKEND", "memory").lower()
        self.cache_ttl_seconds = _env_int("BLOG_CACHE_TTL_SECONDS", 3600)
        self.cache_file = os.getenv("BLOG_CACHE_FILE", ".blog_feed_cache.json")
        self.dynamodb_table = os.getenv("DYNAMODB_TABLE", "blog-feed-cache")
        self.aws_region = os.getenv(
            "CURRENT_AWS_REGION", os.getenv("AWS_DEFAULT_REGION", "us-east-1")
        )
        self.log_level = os.getenv("LOG_LEVEL", "INFO")

        if not self.feed_url:
            raise ValueError("BLOG_FEED_URL cannot be empty")
        if urlparse(self.feed_url).scheme not in ("http", "https"):
            raise ValueError(
                f"BLOG_FEED_URL must be an http(s) URL, got {self.feed_url!r}"
            )
        if self.timeout <= 0:
            raise ValueError("BLOG_FEED_TIMEOUT must be positive")
        if self.cache_ttl_seconds < 0:
            raise ValueError("BLOG_CACHE_TTL_SECONDS cannot be negative")
        if self.cache_backend not in CACHE_BACKENDS:
            raise ValueError(
                f"Invalid BLOG_CACHE_BACKEND {self.cache_backend!r}, "
                f"expected one of {', '.join(CACHE_BACKENDS)}"
            )

    def get_feed_config(self) -> FeedConfig:
        """Get feed configuration."""
        return FeedConfig(
            url=self.feed_url,
            timeout=self.timeout,
            max_posts=self.max_posts,
            locale=self.locale,
            timezone=self.timezone,
        )

    def get_cache_config(self) -> CacheConfig:
        """Get cache configuration."""
        return CacheConfig(
            backend=self.cache_backend,
            ttl_seconds=self.cache_ttl_seconds,
            file_path=self.cache_file,
            dynamodb_table=self.dynamodb_table,
            aws_region=self.aws_region,
        )

    def get_relay_config(self) -> RelayConfig:
        """Get the full relay configuration."""
        return RelayConfig(
            feed=self.get_feed_config(), cache=self.get_cache_config()
        )


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")
