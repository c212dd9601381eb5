"""RSS feed fetching and parsing for the blog feed relay."""

import io
from urllib.parse import urlparse

import feedparser
import requests
from feedparser.exceptions import (
    CharacterEncodingOverride,
    NonXMLContentType,
)

from .errors import FetchFailed, NetworkError, ParseFailed
from .logging_config import create_execution_logger
from .models import FeedItem

MAX_ITEMS = 5

# bozo exceptions that do not mean the document is broken
_BENIGN_BOZO = (CharacterEncodingOverride, NonXMLContentType)


class FeedFetcher:
    """Downloads the raw feed document."""

    def __init__(self, timeout: float = 10.0, execution_id: str | None = None):
        """Initialize FeedFetcher with configuration.

        Args:
            timeout: HTTP request timeout in seconds
            execution_id: Execution ID for logging context
        """
        self.timeout = timeout
        self.logger = create_execution_logger("feed_fetcher", execution_id)
        self.session = requests.Session()
        self.session.headers.update(
            {
                "User-Agent": "Blog-Feed-Relay/1.0",
                "Cache-Control": "no-cache",
            }
        )

        self.logger.info("FeedFetcher initialized", timeout=timeout)

    def fetch(self, feed_url: str) -> bytes:
        """Download a feed with a single GET request.

        Args:
            feed_url: URL of the RSS feed

        Returns:
            Raw response body

        Raises:
            FetchFailed: If the server answers with a non-2xx status
            NetworkError: If the URL is not http(s) or the request
                cannot be completed
        """
        parsed_url = urlparse(feed_url)
        if parsed_url.scheme not in ("http", "https"):
            error_msg = f"Feed URL must use HTTP or HTTPS: {feed_url}"
            self.logger.error(error_msg, feed_url=feed_url, scheme=parsed_url.scheme)
            raise NetworkError(error_msg)

        self.logger.info("Downloading feed content", feed_url=feed_url)
        try:
            response = self.session.get(feed_url, timeout=self.timeout)
        except requests.RequestException as e:
            self.logger.error(
                f"Failed to download feed {feed_url}: {e}",
                feed_url=feed_url,
                error=str(e),
            )
            raise NetworkError(f"Failed to download feed {feed_url}: {e}") from e

        if not 200 <= response.status_code < 300:
            self.logger.error(
                f"Feed request returned HTTP {response.status_code}",
                feed_url=feed_url,
                status_code=response.status_code,
            )
            raise FetchFailed(response.status_code, feed_url)

        self.logger.info(
            "Feed downloaded successfully",
            feed_url=feed_url,
            status_code=response.status_code,
            content_length=len(response.content),
        )
        return response.content


class FeedParser:
    """Converts a raw RSS document into FeedItems using feedparser."""

    def __init__(self, max_items: int = MAX_ITEMS, execution_id: str | None = None):
        self.max_items = max_items
        self.logger = create_execution_logger("feed_parser", execution_id)

    def parse(self, content: bytes | str) -> list[FeedItem]:
        """Parse a feed document.

        Args:
            content: Raw RSS/XML payload

        Returns:
            At most max_items FeedItems in feed order

        Raises:
            ParseFailed: If the document is malformed, has no items,
                or an item lacks title, link or publish date
        """
        if isinstance(content, str):
            content = content.encode("utf-8")
        feed = feedparser.parse(io.BytesIO(content))

        if feed.bozo:
            bozo_exception = feed.get("bozo_exception")
            if not isinstance(bozo_exception, _BENIGN_BOZO):
                self.logger.error(
                    f"Malformed feed document: {bozo_exception}",
                    bozo_exception=str(bozo_exception),
                )
                raise ParseFailed(f"Malformed feed document: {bozo_exception}")
            self.logger.warning(
                f"Feed parsing warning: {bozo_exception}",
                bozo_exception=str(bozo_exception),
            )

        if not feed.entries:
            self.logger.error("Feed contains no items")
            raise ParseFailed("Feed contains no items")

        items = [
            self.to_feed_item(entry, index)
            for index, entry in enumerate(feed.entries[: self.max_items])
        ]

        self.logger.info(
            "Successfully parsed feed",
            items_count=len(items),
            total_entries=len(feed.entries),
        )
        return items

    def to_feed_item(self, entry: dict, index: int = 0) -> FeedItem:
        """Map a feedparser entry into a FeedItem.

        Raises:
            ParseFailed: If a required field is missing or empty
        """
        fields = {
            "title": entry.get("title"),
            "link": entry.get("link"),
            "published": entry.get("published") or entry.get("updated"),
        }
        missing = [name for name, value in fields.items() if not value]
        if missing:
            raise ParseFailed(
                f"Item {index} is missing required fields: {', '.join(missing)}"
            )

        description = entry.get("summary") or entry.get("description") or ""

        return FeedItem(
            title=fields["title"].strip(),
            link=fields["link"].strip(),
            published=fields["published"].strip(),
            description=description,
        )
