"""Tests for the schema registry and node construction."""
import pytest
from richdoc import build_schema
from richdoc.model import (
    DuplicateTypeError,
    InvalidAttributeError,
    InvalidContentError,
    NodeTypeSpec,
    Schema,
    UnknownTypeError,
)


def make_doc(schema):
    image = schema.construct("image", {"src": "a.png"})
    return schema.construct("doc", content=[
        schema.construct("paragraph", content=[schema.text("ab"), image]),
        schema.construct("paragraph", content=[schema.text("cd")]),
    ])


class TestRegistry:

    def test_register_and_resolve(self):
        schema = Schema()
        node_type = schema.register("doc", NodeTypeSpec(content="block*"))
        assert schema.resolve("doc") is node_type
        assert schema.list_types() == ["doc"]

    def test_duplicate_registration(self):
        schema = Schema()
        schema.register("doc", NodeTypeSpec(content="block*"))
        with pytest.raises(DuplicateTypeError):
            schema.register("doc", NodeTypeSpec())

    def test_mark_and_node_share_namespace(self):
        schema = build_schema()
        with pytest.raises(DuplicateTypeError):
            schema.register("strong", NodeTypeSpec())

    def test_unknown_type(self):
        schema = build_schema()
        with pytest.raises(UnknownTypeError):
            schema.resolve("video")
        with pytest.raises(KeyError):
            schema.construct("video")
        assert schema.get("video") is None

    def test_default_schema_types(self):
        schema = build_schema()
        assert schema.list_types() == ["doc", "paragraph", "text", "image", "hard_break"]
        assert [mark.name for mark in schema.mark_types] == ["strong", "em"]
        assert schema.default_textblock.name == "paragraph"

    def test_collected_capabilities(self):
        schema = build_schema()
        commands = schema.commands()
        for name in ("resize", "align_right", "align_left", "align_full_width", "align_center",
                     "insert_image", "delete_image", "download_image"):
            assert name in commands
        assert [rule.name for rule in schema.input_rules()] == ["image_shorthand"]
        assert [(node_type.name, rule.tag) for node_type, rule in schema.dom_rules()] == [
            ("paragraph", "p"),
            ("image", "div"),
            ("image", "img"),
            ("hard_break", "br"),
        ]


class TestAttributes:

    def test_defaults_filled(self):
        schema = build_schema()
        image = schema.construct("image")
        assert dict(image.attrs) == {
            "src": "",
            "alt": None,
            "width": None,
            "height": None,
            "layout_class": None,
            "title": None,
        }

    def test_attrs_are_read_only(self):
        image = build_schema().construct("image", {"src": "a.png"})
        with pytest.raises(TypeError):
            image.attrs["src"] = "b.png"

    def test_unknown_attribute(self):
        with pytest.raises(InvalidAttributeError):
            build_schema().construct("image", {"caption": "x"})

    @pytest.mark.parametrize("attrs", [
        {"width": -1},
        {"height": "20"},
        {"width": True},
        {"width": 1.5},
        {"layout_class": "center"},
        {"src": None},
        {"alt": 3},
    ])
    def test_invalid_values(self, attrs):
        with pytest.raises(InvalidAttributeError):
            build_schema().construct("image", attrs)

    def test_invalid_attribute_is_value_error(self):
        with pytest.raises(ValueError):
            build_schema().construct("image", {"width": -5})

    def test_valid_values(self):
        image = build_schema().construct("image", {
            "src": "a.png",
            "width": 0,
            "height": 480,
            "layout_class": "full-width",
            "title": "",
        })
        assert image.attrs["width"] == 0
        assert image.attrs["layout_class"] == "full-width"


class TestContent:

    def test_paragraph_not_allowed_in_paragraph(self):
        schema = build_schema()
        with pytest.raises(InvalidContentError):
            schema.construct("paragraph", content=[schema.construct("paragraph")])

    def test_doc_requires_a_block(self):
        with pytest.raises(InvalidContentError):
            build_schema().construct("doc")

    def test_text_at_block_level(self):
        schema = build_schema()
        with pytest.raises(InvalidContentError):
            schema.construct("doc", content=[schema.text("loose")])

    def test_image_allows_no_marks(self):
        schema = build_schema()
        with pytest.raises(InvalidContentError):
            schema.construct("image", content=[schema.text("caption", ["strong"])])

    def test_paragraph_allows_marks(self):
        schema = build_schema()
        paragraph = schema.construct("paragraph", content=[schema.text("bold", ["strong"])])
        assert paragraph.child(0).marks == ("strong",)

    def test_empty_text(self):
        with pytest.raises(InvalidContentError):
            build_schema().text("")

    def test_adjacent_text_merged(self):
        schema = build_schema()
        paragraph = schema.construct("paragraph", content=[
            schema.text("a"), schema.text("b"), schema.text("c", ["em"]),
        ])
        assert paragraph.child_count == 2
        assert paragraph.child(0).text == "ab"

    def test_marks_sorted_by_rank(self):
        schema = build_schema()
        assert schema.text("x", ["em", "strong"]).marks == ("strong", "em")


class TestPositions:

    def test_sizes(self):
        schema = build_schema()
        doc = make_doc(schema)
        paragraph = doc.child(0)
        assert paragraph.child(0).node_size == 2
        assert paragraph.child(1).node_size == 2
        assert schema.construct("hard_break").node_size == 1
        assert paragraph.node_size == 6
        assert doc.content_size == 10

    def test_node_at(self):
        doc = make_doc(build_schema())
        assert doc.node_at(0).type.name == "paragraph"
        assert doc.node_at(3).type.name == "image"
        assert doc.node_at(6).type.name == "paragraph"
        assert doc.node_at(2) is None
        assert doc.node_at(99) is None

    def test_resolve(self):
        doc = make_doc(build_schema())
        rpos = doc.resolve(8)
        assert rpos.depth == 1
        assert rpos.parent.text_content == "cd"
        assert rpos.parent_offset == 1
        assert rpos.start() == 7
        assert rpos.end() == 9
        assert rpos.before() == 6

    def test_text_between_renders_leaves(self):
        doc = make_doc(build_schema())
        assert doc.child(0).text_between(0, 4) == "ab\ufffc"

    def test_replace_is_copy_on_write(self):
        schema = build_schema()
        doc = make_doc(schema)
        updated = doc.replace(1, 1, [schema.text("x")])
        assert doc.child(0).text_content == "ab"
        assert updated.child(0).text_content == "xab"
        assert updated.child(1) is doc.child(1)
