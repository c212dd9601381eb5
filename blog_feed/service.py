"""Fetch, parse, normalize and cache pipeline for the blog panel."""

from .cache import PostCacheStore
from .errors import BlogFeedError
from .logging_config import create_execution_logger
from .models import FallbackLink, FeedResult, FeedState
from .normalize import PostNormalizer
from .rss import FeedFetcher, FeedParser


class BlogFeedService:
    """Loads recent blog posts, serving from cache while fresh."""

    def __init__(
        self,
        feed_url: str,
        fetcher: FeedFetcher,
        parser: FeedParser,
        normalizer: PostNormalizer,
        cache: PostCacheStore | None = None,
        fallback_links: list[FallbackLink] | None = None,
        execution_id: str | None = None,
    ):
        self.feed_url = feed_url
        self.fetcher = fetcher
        self.parser = parser
        self.normalizer = normalizer
        self.cache = cache
        self.fallback_links = list(fallback_links or [])
        self.logger = create_execution_logger("blog_feed_service", execution_id)

    def load(self) -> FeedResult:
        """Load posts for display.

        Feed errors never escape: they collapse into an ERROR result carrying
        the fallback links. Details are logged only.

        Returns:
            FeedResult in SUCCESS or ERROR state
        """
        if self.cache is not None:
            cached = self.cache.get()
            if cached is not None:
                result = FeedResult(
                    state=FeedState.SUCCESS,
                    posts=list(cached.posts),
                    from_cache=True,
                )
                self.logger.log_feed_result(
                    self.feed_url, result.state.value, len(result.posts)
                )
                return result

        try:
            content = self.fetcher.fetch(self.feed_url)
            items = self.parser.parse(content)
            posts = self.normalizer.normalize_items(items)
        except BlogFeedError as e:
            self.logger.error(
                f"Blog feed unavailable: {e}",
                feed_url=self.feed_url,
                error_type=type(e).__name__,
                error=str(e),
            )
            return FeedResult(
                state=FeedState.ERROR,
                fallback_links=list(self.fallback_links),
                error=type(e).__name__,
            )

        if self.cache is not None:
            self.cache.put(posts)

        self.logger.log_feed_result(self.feed_url, FeedState.SUCCESS.value, len(posts))
        return FeedResult(state=FeedState.SUCCESS, posts=posts)
