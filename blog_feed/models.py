"""Data models for the blog feed relay."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


@dataclass
class FeedItem:
    """Represents a single raw item from the upstream RSS feed."""

    title: str
    link: str
    published: str
    description: str = ""


@dataclass(frozen=True)
class Post:
    """Represents a normalized blog post ready for display."""

    title: str
    link: str
    pub_date: str  # Short date in the display locale
    description: str  # Plain text, max 100 chars plus ellipsis

    def to_dict(self) -> dict[str, str]:
        """Convert to the JSON shape served by the relay and stored in cache."""
        return {
            "title": self.title,
            "link": self.link,
            "pubDate": self.pub_date,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Post":
        """Build a Post from its JSON shape.

        Raises:
            KeyError: If a field is missing
            TypeError: If data is not a mapping
        """
        return cls(
            title=str(data["title"]),
            link=str(data["link"]),
            pub_date=str(data["pubDate"]),
            description=str(data["description"]),
        )


@dataclass(frozen=True)
class PostCache:
    """Cached posts together with the epoch-millisecond fetch time."""

    posts: tuple[Post, ...]
    fetched_at: int


@dataclass(frozen=True)
class FallbackLink:
    """Static link rendered when the feed is unavailable."""

    label: str
    url: str


class FeedState(Enum):
    """Presentation-facing state of the blog panel."""

    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class FeedResult:
    """Outcome of a feed load handed to the renderer."""

    state: FeedState
    posts: list[Post] = field(default_factory=list)
    fallback_links: list[FallbackLink] = field(default_factory=list)
    from_cache: bool = False
    error: str | None = None  # Error category only, never details

    @classmethod
    def loading(cls) -> "FeedResult":
        """Initial state shown as a skeleton placeholder."""
        return cls(state=FeedState.LOADING)
