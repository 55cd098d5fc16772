"""Tests for HTML import and export."""
import pytest
from bs4 import BeautifulSoup
from richdoc import DomParser, DomSerializer, build_schema
from richdoc.urls import sanitize_url


@pytest.fixture
def schema():
    return build_schema()


def images(doc):
    return [node for node, _ in doc.descendants() if node.type.name == "image"]


class TestImport:

    def test_container_precedence(self, schema):
        doc = DomParser(schema).parse('<div class="image image-right-50"><img src="a.png" width="10" height="20"></div>')
        [image] = images(doc)
        assert image.attrs["layout_class"] == "right-50"
        assert image.attrs["width"] == 10
        assert image.attrs["height"] == 20
        assert image.attrs["src"] == "a.png"

    def test_bare_img(self, schema):
        doc = DomParser(schema).parse('<img src="b.png">')
        [image] = images(doc)
        assert image.attrs["src"] == "b.png"
        assert image.attrs["layout_class"] is None

    def test_inline_image_wrapped_in_paragraph(self, schema):
        doc = DomParser(schema).parse('<img src="b.png" alt="B" title="T">')
        assert doc.child(0).type.name == "paragraph"
        assert dict(doc.child(0).child(0).attrs) == {
            "src": "b.png",
            "alt": "B",
            "width": None,
            "height": None,
            "layout_class": None,
            "title": "T",
        }

    def test_dimensions_from_leading_digits(self, schema):
        [image] = images(DomParser(schema).parse('<img src="a.png" width="640px" height="auto">'))
        assert image.attrs["width"] == 640
        assert image.attrs["height"] is None

    def test_unknown_layout_class_ignored(self, schema):
        [image] = images(DomParser(schema).parse('<div class="image image-centered"><img src="a.png"></div>'))
        assert image.attrs["layout_class"] is None

    def test_container_without_img_falls_through(self, schema):
        doc = DomParser(schema).parse('<div class="image"><span>just text</span></div>')
        assert images(doc) == []
        assert doc.child(0).text_content == "just text"

    def test_marks_and_dropped_content(self, schema):
        doc = DomParser(schema).parse("<p>Hello <b>bold</b> <script>alert(1)</script>world</p>")
        paragraph = doc.child(0)
        assert paragraph.text_content == "Hello bold world"
        assert paragraph.child(1).marks == ("strong",)

    def test_nested_marks(self, schema):
        paragraph = DomParser(schema).parse("<p><em><strong>x</strong></em></p>").child(0)
        assert paragraph.child(0).marks == ("strong", "em")

    def test_whitespace_collapsed_and_trimmed(self, schema):
        doc = DomParser(schema).parse("\n  <p>  a \n\t b  </p>\n  <p>c</p>\n")
        assert [child.text_content for child in doc.content] == ["a b", "c"]

    def test_hard_break(self, schema):
        paragraph = DomParser(schema).parse("<p>a<br>b</p>").child(0)
        assert [child.type.name for child in paragraph.content] == ["text", "hard_break", "text"]

    def test_nested_paragraphs_flattened(self, schema):
        soup = BeautifulSoup("<p>a</p>", "html.parser")
        inner = soup.new_tag("p")
        inner.string = "b"
        soup.p.append(inner)
        doc = DomParser(schema).parse(soup)
        assert doc.child_count == 1
        assert doc.child(0).text_content == "ab"

    def test_empty_input(self, schema):
        doc = DomParser(schema).parse("")
        assert doc.child_count == 1
        assert doc.child(0).child_count == 0

    def test_accepts_parsed_soup(self, schema):
        soup = BeautifulSoup("<p>x</p>", "html.parser")
        assert DomParser(schema).parse(soup).child(0).text_content == "x"


class TestExport:

    def test_image_shape(self, schema):
        image = schema.construct("image", {"src": "a.png", "alt": "A", "layout_class": "left-50", "width": 10})
        doc = schema.construct("doc", content=[schema.construct("paragraph", content=[image])])
        soup = BeautifulSoup(DomSerializer(schema).to_html(doc), "html.parser")
        container = soup.find("div")
        assert container["class"] == ["image", "image-left-50"]
        img = container.find("img")
        assert img["src"] == "a.png"
        assert img["alt"] == "A"
        assert img["width"] == "10"
        assert not img.has_attr("height")
        assert not img.has_attr("title")
        assert container.find("p")["class"] == ["caption"]

    def test_centered_image_has_plain_class(self, schema):
        image = schema.construct("image", {"src": "a.png"})
        soup = DomSerializer(schema).serialize(schema.construct("paragraph", content=[image]))
        assert soup.find("div")["class"] == ["image"]

    def test_unsafe_src_sanitized(self, schema):
        image = schema.construct("image", {"src": "javascript:alert(1)"})
        soup = DomSerializer(schema).serialize(schema.construct("paragraph", content=[image]))
        assert soup.find("img")["src"] == "#"

    def test_text_and_marks(self, schema):
        doc = schema.construct("doc", content=[schema.construct("paragraph", content=[
            schema.text("a "), schema.text("b", ["strong", "em"]), schema.construct("hard_break"), schema.text("<c>"),
        ])])
        assert DomSerializer(schema).to_html(doc) == "<p>a <strong><em>b</em></strong><br/>&lt;c&gt;</p>"

    def test_export_then_import(self, schema):
        attrs = {"src": "a.png", "alt": "A", "title": "T", "layout_class": "full-width", "width": 3, "height": 4}
        image = schema.construct("image", attrs)
        doc = schema.construct("doc", content=[schema.construct("paragraph", content=[schema.text("x"), image])])
        html = DomSerializer(schema).to_html(doc)
        [imported] = images(DomParser(schema).parse(html))
        assert dict(imported.attrs) == attrs


class TestSanitizeUrl:

    @pytest.mark.parametrize("url", ["javascript:alert(1)", " JavaScript:x", "java\nscript:x", "vbscript:x", "data:text/html;base64,xx"])
    def test_unsafe(self, url):
        assert sanitize_url(url) == "#"

    @pytest.mark.parametrize("url", ["a.png", "https://example.com/a.png", "data:image/png;base64,xx", ""])
    def test_safe(self, url):
        assert sanitize_url(url) == url
