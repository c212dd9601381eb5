"""Post normalization for the blog feed relay."""

from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from bs4 import BeautifulSoup
from dateutil import parser as date_parser

from .errors import InvalidDate
from .models import FeedItem, Post

MAX_POSTS = 5
DESCRIPTION_LIMIT = 100
ELLIPSIS = "..."

# Two distinct fill-ins for date parts the value leaves out; a part that
# differs between the two parses was never in the value
_DEFAULT_DATES = (datetime(2000, 1, 1), datetime(2001, 2, 2))

# Short date representations, as rendered by browsers for each locale
LOCALE_DATE_FORMATS = {
    "ko-KR": "{year}. {month}. {day}.",
    "en-US": "{month}/{day}/{year}",
    "en-GB": "{day:02d}/{month:02d}/{year}",
    "ja-JP": "{year}/{month}/{day}",
}


def _date_parts(value: datetime) -> tuple[int, int, int]:
    return value.year, value.month, value.day


class PostNormalizer:
    """Turns raw feed items into display-ready posts."""

    def __init__(
        self,
        locale: str = "ko-KR",
        timezone: str = "Asia/Seoul",
        max_posts: int = MAX_POSTS,
    ):
        """Initialize the normalizer.

        Args:
            locale: Locale whose short date format is used for pubDate
            timezone: IANA timezone that aware dates are converted to
            max_posts: Maximum number of posts kept

        Raises:
            ValueError: If the locale or timezone is unknown
        """
        if locale not in LOCALE_DATE_FORMATS:
            raise ValueError(
                f"Unsupported locale {locale!r}, "
                f"expected one of {', '.join(LOCALE_DATE_FORMATS)}"
            )
        try:
            self.tz = ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone {timezone!r}") from e

        self.locale = locale
        self.date_format = LOCALE_DATE_FORMATS[locale]
        self.max_posts = min(max_posts, MAX_POSTS)

    def normalize_items(self, items: list[FeedItem]) -> list[Post]:
        """Normalize the first max_posts items, preserving feed order.

        Raises:
            InvalidDate: If any kept item has an unparseable date
        """
        return [self.normalize_item(item) for item in items[: self.max_posts]]

    def normalize_item(self, item: FeedItem) -> Post:
        """Normalize a single feed item into a Post."""
        description = self.truncate_description(
            self.clean_html_content(item.description)
        )
        return Post(
            title=item.title,
            link=item.link,
            pub_date=self.format_pub_date(item.published),
            description=description,
        )

    def format_pub_date(self, value: str | None) -> str:
        """Format a feed date string as the locale's short date.

        Raises:
            InvalidDate: If the value cannot be parsed, lacks a year, month
                or day, or falls outside the representable range
        """
        if not value or not value.strip():
            raise InvalidDate(value)

        try:
            first, second = (
                date_parser.parse(value, default=default) for default in _DEFAULT_DATES
            )
            if _date_parts(first) != _date_parts(second):
                raise InvalidDate(value)
            published = self._to_display_time(first)
        except (ValueError, OverflowError, TypeError) as e:
            raise InvalidDate(value) from e
        return self.date_format.format(
            year=published.year, month=published.month, day=published.day
        )

    def _to_display_time(self, published: datetime) -> datetime:
        # Naive timestamps are taken as already being display-local
        if published.tzinfo is None:
            return published
        return published.astimezone(self.tz)

    @staticmethod
    def clean_html_content(content: str | None) -> str:
        """Remove HTML tags from content and normalize whitespace.

        Args:
            content: Raw content that may contain HTML

        Returns:
            Clean text content without HTML tags
        """
        if not content:
            return ""

        if "<" not in content and ">" not in content and "&" not in content:
            return " ".join(content.split())

        soup = BeautifulSoup(content, "html.parser")

        for script in soup(["script", "style"]):
            script.decompose()

        text = soup.get_text(separator=" ")

        # Stray brackets, including ones decoded from &lt; and &gt;
        text = text.replace("<", "").replace(">", "")

        return " ".join(text.split())

    @staticmethod
    def truncate_description(text: str, limit: int = DESCRIPTION_LIMIT) -> str:
        """Cut text to limit characters, appending an ellipsis when cut."""
        if len(text) <= limit:
            return text
        return text[:limit].rstrip() + ELLIPSIS
