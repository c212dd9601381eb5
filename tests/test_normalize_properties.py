"""Property-based tests for the Post Normalizer."""

from datetime import datetime

from hypothesis import given
from hypothesis import strategies as st

from blog_feed.models import FeedItem
from blog_feed.normalize import DESCRIPTION_LIMIT, ELLIPSIS, PostNormalizer

rfc822_dates = st.datetimes(
    min_value=datetime(1995, 1, 1), max_value=datetime(2099, 12, 31)
).map(lambda dt: dt.strftime("%a, %d %b %Y %H:%M:%S +0000"))


def feed_items(description=st.text(max_size=400)):
    return st.builds(
        FeedItem,
        title=st.text(min_size=1, max_size=80),
        link=st.just("https://juyeongpark.tistory.com/1"),
        published=rfc822_dates,
        description=description,
    )


class TestPostNormalizerProperties:
    """Property-based tests for PostNormalizer."""

    @given(feed_items())
    def test_description_bounded_and_markup_free_property(self, item):
        """
        For all Posts the description holds at most 100 characters plus an
        optional ellipsis, and no markup characters.
        """
        post = PostNormalizer().normalize_item(item)

        assert "<" not in post.description
        assert ">" not in post.description
        if post.description.endswith(ELLIPSIS):
            assert len(post.description) <= DESCRIPTION_LIMIT + len(ELLIPSIS)
        else:
            assert len(post.description) <= DESCRIPTION_LIMIT

    @given(
        feed_items(
            description=st.lists(
                st.sampled_from(["<p>", "</p>", "<b>word</b>", " text ", "<br/>", "&amp;"]),
                max_size=60,
            ).map("".join)
        )
    )
    def test_html_heavy_description_property(self, item):
        post = PostNormalizer().normalize_item(item)

        assert "<" not in post.description
        assert ">" not in post.description
        assert "&amp;" not in post.description

    @given(feed_items())
    def test_normalize_is_idempotent_property(self, item):
        """Normalizing the same raw item twice yields identical Posts."""
        normalizer = PostNormalizer()

        assert normalizer.normalize_item(item) == normalizer.normalize_item(item)

    @given(st.lists(feed_items(), max_size=10))
    def test_post_count_property(self, items):
        posts = PostNormalizer().normalize_items(items)

        assert len(posts) == min(5, len(items))
        assert [post.title for post in posts] == [item.title for item in items[:5]]
