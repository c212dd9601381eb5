"""Error taxonomy for the blog feed relay."""


class BlogFeedError(Exception):
    """Base class for feed retrieval errors."""


class NetworkError(BlogFeedError):
    """Transport failure while downloading the feed."""


class FetchFailed(BlogFeedError):
    """Upstream answered with a non-success HTTP status."""

    def __init__(self, status_code: int, url: str = ""):
        self.status_code = status_code
        self.url = url
        super().__init__(f"Feed request failed with HTTP {status_code}: {url}")


class ParseFailed(BlogFeedError):
    """Feed payload is malformed or lacks the expected structure."""


class InvalidDate(BlogFeedError):
    """Publish timestamp could not be parsed."""

    def __init__(self, value: str | None):
        self.value = value
        super().__init__(f"Unparseable publish date: {value!r}")


class StorageUnavailable(BlogFeedError):
    """Persistent cache cannot be accessed. Treated as a cache miss."""
