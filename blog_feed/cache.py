"""Time-based post cache for the blog feed relay."""

import json
import os
import time
from datetime import timedelta
from pathlib import Path
from typing import Callable, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .errors import StorageUnavailable
from .logging_config import create_execution_logger
from .models import Post, PostCache

POSTS_KEY = "blogPosts"
FETCHED_AT_KEY = "blogPostsTime"

DEFAULT_TTL = timedelta(hours=1)
MAX_CACHED_POSTS = 5


class KeyValueStorage(Protocol):
    """Persistent string key-value store the cache is written to."""

    def is_available(self) -> bool: ...

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...


class MemoryStorage:
    """Process-local storage. Survives warm Lambda invocations only."""

    def __init__(self):
        self._items: dict[str, str] = {}

    def is_available(self) -> bool:
        return True

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value


class FileStorage:
    """Storage backed by a single JSON object on disk."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def is_available(self) -> bool:
        directory = self.path.parent
        if self.path.exists():
            return os.access(self.path, os.R_OK | os.W_OK)
        return directory.is_dir() and os.access(directory, os.W_OK)

    def get_item(self, key: str) -> str | None:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        try:
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False)
        except OSError as e:
            raise StorageUnavailable(f"Cannot write cache file {self.path}: {e}") from e

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise StorageUnavailable(f"Cannot read cache file {self.path}: {e}") from e
        except json.JSONDecodeError:
            # Corrupt file is rewritten on the next put
            return {}
        return data if isinstance(data, dict) else {}


class DynamoDBStorage:
    """Storage backed by a DynamoDB table keyed by `cache_key`."""

    def __init__(self, table_name: str, aws_region: str = "us-east-1"):
        self.table_name = table_name
        self.aws_region = aws_region
        self.dynamodb = boto3.resource("dynamodb", region_name=aws_region)
        self.table = self.dynamodb.Table(table_name)

    def is_available(self) -> bool:
        try:
            return self.table.table_status in ("ACTIVE", "UPDATING")
        except (ClientError, BotoCoreError):
            return False

    def get_item(self, key: str) -> str | None:
        try:
            response = self.table.get_item(Key={"cache_key": key})
        except (ClientError, BotoCoreError) as e:
            raise StorageUnavailable(f"Cannot read {key} from {self.table_name}: {e}") from e
        item = response.get("Item")
        if not item:
            return None
        value = item.get("value")
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        try:
            self.table.put_item(Item={"cache_key": key, "value": value})
        except (ClientError, BotoCoreError) as e:
            raise StorageUnavailable(f"Cannot write {key} to {self.table_name}: {e}") from e


class PostCacheStore:
    """Serves normalized posts from storage while they are fresh."""

    def __init__(
        self,
        storage: KeyValueStorage | None,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], float] = time.time,
        execution_id: str | None = None,
    ):
        """Initialize the cache.

        Args:
            storage: Backing store, or None when persistence is unavailable
            ttl: Freshness window
            clock: Returns the current epoch time in seconds
            execution_id: Execution ID for logging context
        """
        self.storage = storage
        self.ttl = ttl
        self.clock = clock
        self.logger = create_execution_logger("post_cache", execution_id)

    def now_ms(self) -> int:
        return int(self.clock() * 1000)

    def get(self, now: int | None = None) -> PostCache | None:
        """Return the cached entry if it is still fresh, else None.

        Args:
            now: Current epoch milliseconds, defaults to the clock
        """
        if not self._storage_available():
            return None

        now = self.now_ms() if now is None else now
        try:
            raw_posts = self.storage.get_item(POSTS_KEY)
            raw_fetched_at = self.storage.get_item(FETCHED_AT_KEY)
        except StorageUnavailable as e:
            self.logger.warning(f"Cache read failed, treating as miss: {e}", error=str(e))
            return None

        if raw_posts is None or raw_fetched_at is None:
            self.logger.debug("Cache miss: no entry")
            return None

        try:
            fetched_at = int(raw_fetched_at)
            posts = tuple(Post.from_dict(data) for data in json.loads(raw_posts))
        except (ValueError, KeyError, TypeError) as e:
            self.logger.warning(f"Discarding corrupt cache entry: {e}", error=str(e))
            return None

        if len(posts) > MAX_CACHED_POSTS:
            self.logger.warning(
                "Discarding oversized cache entry", posts_count=len(posts)
            )
            return None

        age_ms = now - fetched_at
        if age_ms >= self.ttl.total_seconds() * 1000:
            self.logger.info("Cache miss: entry expired", age_ms=age_ms)
            return None

        self.logger.info("Cache hit", age_ms=age_ms, posts_count=len(posts))
        return PostCache(posts=posts, fetched_at=fetched_at)

    def put(self, posts: list[Post], now: int | None = None) -> PostCache:
        """Store posts with the current time, overwriting any prior entry.

        Args:
            posts: Normalized posts, at most 5
            now: Current epoch milliseconds, defaults to the clock

        Returns:
            The entry that was written (or would have been, if storage is down)
        """
        if len(posts) > MAX_CACHED_POSTS:
            raise ValueError(
                f"Cannot cache {len(posts)} posts, limit is {MAX_CACHED_POSTS}"
            )

        entry = PostCache(
            posts=tuple(posts),
            fetched_at=self.now_ms() if now is None else now,
        )
        if not self._storage_available():
            return entry

        try:
            self.storage.set_item(
                POSTS_KEY,
                json.dumps([post.to_dict() for post in entry.posts], ensure_ascii=False),
            )
            self.storage.set_item(FETCHED_AT_KEY, str(entry.fetched_at))
        except StorageUnavailable as e:
            self.logger.warning(f"Cache write skipped: {e}", error=str(e))
            return entry

        self.logger.info(
            "Stored posts in cache",
            posts_count=len(entry.posts),
            fetched_at=entry.fetched_at,
        )
        return entry

    def _storage_available(self) -> bool:
        if self.storage is None:
            self.logger.debug("No cache storage configured")
            return False
        if not self.storage.is_available():
            self.logger.warning("Cache storage unavailable, treating as miss")
            return False
        return True


def create_storage(
    backend: str,
    file_path: str = ".blog_feed_cache.json",
    table_name: str = "blog-feed-cache",
    aws_region: str = "us-east-1",
) -> KeyValueStorage | None:
    """Build the storage backend named by configuration."""
    if backend == "memory":
        return MemoryStorage()
    if backend == "file":
        return FileStorage(file_path)
    if backend == "dynamodb":
        return DynamoDBStorage(table_name, aws_region)
    if backend == "none":
        return None
    raise ValueError(f"Unknown cache backend: {backend}")
