"""Unit tests for the Post Normalizer."""

import pytest

from blog_feed.errors import InvalidDate
from blog_feed.models import FeedItem, Post
from blog_feed.normalize import PostNormalizer


def make_item(title: str = "A", description: str = "", published: str | None = None):
    return FeedItem(
        title=title,
        link=f"https://juyeongpark.tistory.com/{title}",
        published=published or "Mon, 15 Jan 2024 10:00:00 +0900",
        description=description,
    )


class TestPostNormalizerUnit:
    """Unit tests for PostNormalizer."""

    def setup_method(self):
        self.normalizer = PostNormalizer()

    def test_normalize_item_specific(self):
        """Markup is stripped without a truncation marker for short text."""
        item = make_item(description="<p>Hello <b>World</b></p>")

        post = self.normalizer.normalize_item(item)

        assert post == Post(
            title="A",
            link="https://juyeongpark.tistory.com/A",
            pub_date="2024. 1. 15.",
            description="Hello World",
        )

    def test_keeps_first_five_items(self):
        items = [make_item(title) for title in "ABCDEFG"]

        posts = self.normalizer.normalize_items(items)

        assert [post.title for post in posts] == ["A", "B", "C", "D", "E"]

    def test_fewer_than_five_items(self):
        posts = self.normalizer.normalize_items([make_item("A"), make_item("B")])

        assert [post.title for post in posts] == ["A", "B"]

    def test_truncation_appends_ellipsis(self):
        description = "<p>" + "x" * 150 + "</p>"

        post = self.normalizer.normalize_item(make_item(description=description))

        assert post.description == "x" * 100 + "..."

    def test_exactly_limit_is_not_truncated(self):
        post = self.normalizer.normalize_item(make_item(description="y" * 100))

        assert post.description == "y" * 100

    def test_truncation_trims_trailing_space(self):
        text = "a" * 99 + " " + "b" * 20

        assert PostNormalizer.truncate_description(text) == "a" * 99 + "..."

    def test_html_cleaning_specific_cases(self):
        """Test HTML cleaning with specific problematic cases."""
        test_cases = [
            ("<p>Simple paragraph</p>", "Simple paragraph"),
            ("<div><h1>Title</h1><p>Content</p></div>", "Title Content"),
            ("<script>alert('xss')</script><p>Safe content</p>", "Safe content"),
            ("<style>body{color:red}</style><p>Styled content</p>", "Styled content"),
            ("Plain text without HTML", "Plain text without HTML"),
            ("<p>Multiple  \n\n  spaces   and\tlines</p>", "Multiple spaces and lines"),
            ("1 &lt; 2 &amp;&amp; 3 &gt; 2", "1 2 && 3 2"),
            ("<p>Fish &amp; Chips</p>", "Fish & Chips"),
        ]

        for html_input, expected_output in test_cases:
            result = PostNormalizer.clean_html_content(html_input)
            assert result == expected_output, f"Failed for input: {html_input}"

    def test_empty_and_none_content_handling(self):
        assert PostNormalizer.clean_html_content("") == ""
        assert PostNormalizer.clean_html_content(None) == ""
        assert PostNormalizer.clean_html_content("   ") == ""
        assert PostNormalizer.clean_html_content("<div></div>") == ""
        assert PostNormalizer.clean_html_content("<p><br/></p>") == ""

    def test_date_converted_to_display_timezone(self):
        """An evening GMT timestamp falls on the next day in Seoul."""
        assert (
            self.normalizer.format_pub_date("Sun, 14 Jan 2024 20:00:00 GMT")
            == "2024. 1. 15."
        )

    def test_naive_date_kept_as_local(self):
        assert self.normalizer.format_pub_date("2024-03-09 23:30:00") == "2024. 3. 9."

    def test_iso_date(self):
        assert self.normalizer.format_pub_date("2023-12-31T16:00:00Z") == "2024. 1. 1."

    @pytest.mark.parametrize(
        "locale,expected",
        [
            ("ko-KR", "2024. 1. 5."),
            ("en-US", "1/5/2024"),
            ("en-GB", "05/01/2024"),
            ("ja-JP", "2024/1/5"),
        ],
    )
    def test_locale_formats(self, locale, expected):
        normalizer = PostNormalizer(locale=locale, timezone="UTC")

        assert normalizer.format_pub_date("Fri, 05 Jan 2024 12:00:00 +0000") == expected

    @pytest.mark.parametrize("value", ["not a date", "", "   ", None])
    def test_invalid_date_raises(self, value):
        """Unparseable dates never render as placeholder text."""
        with pytest.raises(InvalidDate):
            self.normalizer.format_pub_date(value)

    @pytest.mark.parametrize("value", ["2023", "May", "March 2024", "15 Jan", "10:00"])
    def test_partial_date_raises(self, value):
        """Missing date parts are never filled in from today."""
        with pytest.raises(InvalidDate) as exc_info:
            self.normalizer.format_pub_date(value)

        assert exc_info.value.value == value

    def test_out_of_range_date_raises(self):
        """Conversion past the last representable year is an invalid date."""
        with pytest.raises(InvalidDate):
            self.normalizer.format_pub_date("9999-12-31T23:00:00-12:00")

    def test_full_date_without_weekday(self):
        assert self.normalizer.format_pub_date("15 Jan 2024 10:00:00 +0900") == (
            "2024. 1. 15."
        )

    def test_invalid_date_aborts_whole_batch(self):
        items = [make_item("A"), make_item("B", published="garbage"), make_item("C")]

        with pytest.raises(InvalidDate) as exc_info:
            self.normalizer.normalize_items(items)

        assert exc_info.value.value == "garbage"

    def test_unknown_locale_rejected(self):
        with pytest.raises(ValueError, match="Unsupported locale"):
            PostNormalizer(locale="xx-XX")

    def test_unknown_timezone_rejected(self):
        with pytest.raises(ValueError, match="Unknown timezone"):
            PostNormalizer(timezone="Mars/Olympus_Mons")

    def test_max_posts_never_exceeds_five(self):
        normalizer = PostNormalizer(max_posts=10)
        items = [make_item(title) for title in "ABCDEFG"]

        assert len(normalizer.normalize_items(items)) == 5
