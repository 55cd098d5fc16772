"""Tests for the image title mini-language."""
import pytest
from richdoc.title import format_size_suffix, parse_title_attribute, split_size_suffix


class TestParseTitleAttribute:

    def test_layout_and_size(self):
        attributes = parse_title_attribute("left-50 =100x200")
        assert attributes.layout_class == "left-50"
        assert attributes.width == 100
        assert attributes.height == 200
        assert attributes.title == " "

    @pytest.mark.parametrize("title", [None, ""])
    def test_empty(self, title):
        assert parse_title_attribute(title).as_attrs() == {
            "layout_class": None,
            "title": None,
            "width": None,
            "height": None,
        }

    def test_layout_only(self):
        attributes = parse_title_attribute("right-50")
        assert attributes.layout_class == "right-50"
        assert attributes.title == ""
        assert attributes.width is None

    def test_free_title_kept_verbatim(self):
        attributes = parse_title_attribute("  A caption  ")
        assert attributes.layout_class is None
        assert attributes.title == "  A caption  "

    def test_title_and_size(self):
        attributes = parse_title_attribute("A caption =640x480")
        assert attributes.title == "A caption "
        assert (attributes.width, attributes.height) == (640, 480)

    def test_width_only(self):
        attributes = parse_title_attribute("full-width =100x")
        assert attributes.layout_class == "full-width"
        assert (attributes.width, attributes.height) == (100, None)

    def test_height_only(self):
        attributes = parse_title_attribute(" =x200")
        assert (attributes.width, attributes.height) == (None, 200)
        assert attributes.title == " "

    def test_later_layout_token_wins(self):
        attributes = parse_title_attribute("right-50 left-50")
        assert attributes.layout_class == "left-50"
        assert attributes.title == " "

    def test_only_first_occurrence_removed(self):
        attributes = parse_title_attribute("right-50 right-50")
        assert attributes.layout_class == "right-50"
        assert attributes.title == " right-50"

    @pytest.mark.parametrize("title", ["a =10y20", "a =1x2b", "a = 10x20", "ratio 16x9"])
    def test_malformed_size_stays_in_title(self, title):
        attributes = parse_title_attribute(title)
        assert attributes.width is None
        assert attributes.height is None
        assert attributes.title == title


class TestSizeSuffix:

    def test_split(self):
        assert split_size_suffix("x =10x20") == ("x ", 10, 20)
        assert split_size_suffix("=x") == ("", None, None)
        assert split_size_suffix("no size") is None

    def test_format(self):
        assert format_size_suffix(10, 20) == " =10x20"
        assert format_size_suffix(10, None) == " =10x"
        assert format_size_suffix(None, 20) == " =x20"
        assert format_size_suffix(None, None) == ""

    def test_format_then_parse(self):
        attributes = parse_title_attribute("caption" + format_size_suffix(0, 7))
        assert (attributes.width, attributes.height) == (0, 7)
