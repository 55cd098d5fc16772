"""Tests for the image commands and the Editor command surface."""
import pytest
from richdoc import (
    Editor,
    EditorState,
    InvalidAttributeError,
    NodeSelection,
    TextSelection,
    UnknownCommandError,
    build_schema,
)
from richdoc.commands import set_layout


IMAGE_POS = 3


def make_editor(**image_attrs):
    # <p>ab<image/></p>
    schema = build_schema()
    image = schema.construct("image", {"src": "a.png", **image_attrs})
    doc = schema.construct("doc", content=[schema.construct("paragraph", content=[schema.text("ab"), image])])
    return Editor(EditorState.create(schema, doc))


def image_attrs(editor):
    return dict(editor.doc.node_at(IMAGE_POS).attrs)


class TestAlign:

    @pytest.mark.parametrize("method, layout", [
        ("align_right", "right-50"),
        ("align_left", "left-50"),
        ("align_full_width", "full-width"),
    ])
    def test_align_sets_layout_and_clears_title(self, method, layout):
        editor = make_editor(title="Caption")
        editor.select_node(IMAGE_POS)
        assert getattr(editor, method)() is True
        attrs = image_attrs(editor)
        assert attrs["layout_class"] == layout
        assert attrs["title"] is None
        assert isinstance(editor.state.selection, NodeSelection)
        assert editor.state.selection.pos == IMAGE_POS

    def test_align_center_idempotent(self):
        editor = make_editor(layout_class="right-50", title="kept")
        editor.select_node(IMAGE_POS)
        assert editor.align_center()
        once = image_attrs(editor)
        assert editor.align_center()
        assert image_attrs(editor) == once
        assert once["layout_class"] is None
        assert once["title"] == "kept"

    def test_command_without_dispatch_only_checks(self):
        editor = make_editor()
        editor.select_node(IMAGE_POS)
        before = editor.doc
        command = set_layout(editor.state.schema.resolve("image"), "left-50")
        assert command(editor.state) is True
        assert editor.doc is before
        assert editor.can("align_left")


class TestResize:

    def test_resize(self):
        editor = make_editor(layout_class="left-50")
        editor.select_node(IMAGE_POS)
        assert editor.resize(640, 480)
        attrs = image_attrs(editor)
        assert (attrs["width"], attrs["height"]) == (640, 480)
        assert attrs["layout_class"] == "left-50"
        assert editor.state.selection.node.attrs["width"] == 640

    def test_resize_clears_size(self):
        editor = make_editor(width=10, height=20)
        editor.select_node(IMAGE_POS)
        assert editor.resize(None, None)
        assert image_attrs(editor)["width"] is None

    def test_resize_rejects_invalid_size(self):
        editor = make_editor()
        editor.select_node(IMAGE_POS)
        with pytest.raises(InvalidAttributeError):
            editor.resize(-1, 10)

    def test_can_resize_matches_run(self):
        editor = make_editor()
        editor.select_node(IMAGE_POS)
        before = editor.doc
        assert editor.can("resize", -1, 1) is False
        assert editor.can("resize", 1, 1) is True
        assert editor.doc is before


class TestPreconditions:

    @pytest.mark.parametrize("method, args", [
        ("align_right", ()),
        ("align_left", ()),
        ("align_full_width", ()),
        ("align_center", ()),
        ("resize", (10, 10)),
        ("delete_image", ()),
    ])
    def test_text_selection_refused(self, method, args):
        editor = make_editor()
        editor.select_text(1, 3)
        before = editor.doc
        assert getattr(editor, method)(*args) is False
        assert editor.doc is before

    def test_node_selection_of_other_type_refused(self):
        editor = make_editor()
        editor.select_node(0)
        before = editor.doc
        assert editor.align_right() is False
        assert editor.can("resize", 1, 1) is False
        assert editor.doc is before

    def test_unknown_command(self):
        editor = make_editor()
        with pytest.raises(UnknownCommandError):
            editor.run("rotate")


class TestInsertDelete:

    def test_insert_image_selects_it(self):
        editor = make_editor()
        editor.select_text(1)
        assert editor.insert_image(src="b.png", alt="B")
        paragraph = editor.doc.child(0)
        assert [child.type.name for child in paragraph.content] == ["image", "text", "image"]
        assert paragraph.child(0).attrs["src"] == "b.png"
        assert editor.state.selection == NodeSelection.create(editor.doc, 1)

    def test_insert_replaces_selected_text(self):
        editor = make_editor()
        editor.select_text(1, 3)
        assert editor.insert_image(src="b.png")
        assert editor.doc.child(0).text_content == ""
        assert editor.doc.child(0).child_count == 2

    def test_insert_at_block_level_refused(self):
        editor = make_editor()
        editor.select_node(0)
        before = editor.doc
        assert editor.insert_image(src="b.png") is False
        assert editor.doc is before

    def test_delete_image(self):
        editor = make_editor()
        editor.select_node(IMAGE_POS)
        assert editor.delete_image()
        assert [child.type.name for child in editor.doc.child(0).content] == ["text"]
        assert editor.state.selection == TextSelection(IMAGE_POS, IMAGE_POS)


class TestHistory:

    def test_undo_redo(self):
        editor = make_editor()
        original = editor.doc
        editor.select_node(IMAGE_POS)
        editor.align_right()
        aligned = editor.doc
        assert editor.undo()
        assert editor.doc is original
        assert editor.redo()
        assert editor.doc is aligned
        assert not editor.redo()

    def test_selection_changes_are_not_history(self):
        editor = make_editor()
        editor.select_node(IMAGE_POS)
        assert not editor.undo()

    def test_new_change_clears_redo(self):
        editor = make_editor()
        editor.select_node(IMAGE_POS)
        editor.align_right()
        editor.undo()
        editor.align_left()
        assert not editor.redo()
        assert image_attrs(editor)["layout_class"] == "left-50"
