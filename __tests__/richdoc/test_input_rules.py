"""Tests for the image shorthand input rule."""
import pytest
from richdoc import Editor, EditorState, build_schema, match_image_shorthand, run_input_rules
from richdoc.nodes import SIMPLE_IMAGE


def empty_editor(schema=None):
    return Editor(EditorState.create(schema or build_schema()))


class TestMatchImageShorthand:

    def test_straight_quotes(self):
        match = match_image_shorthand('![Lorem](image.jpg "left-50")')
        assert (match.alt, match.src, match.title) == ("Lorem", "image.jpg", "left-50")
        assert match.text == '![Lorem](image.jpg "left-50")'

    def test_curly_quotes(self):
        match = match_image_shorthand("![a](b.png “right-50 =10x20”)")
        assert (match.alt, match.src, match.title) == ("a", "b.png", "right-50 =10x20")

    def test_without_title(self):
        match = match_image_shorthand("see ![](b.png)")
        assert (match.alt, match.src, match.title) == ("", "b.png", None)
        assert match.text == "![](b.png)"

    def test_last_opening_wins(self):
        match = match_image_shorthand("![a](x.png) ![b](y.png)")
        assert match.src == "y.png"

    @pytest.mark.parametrize("text", [
        "plain text)",
        '![a](b.png "x")y',
        "![a[b]](c.png)",
        "![a](b]c.png)",
        "![a] (b.png)",
        '![a](b.png "x"y")',
        "![a](b.png) c)",
        "![a](b\ufffc.png)",
    ])
    def test_no_match(self, text):
        assert match_image_shorthand(text) is None


class TestTyping:

    def test_shorthand_becomes_image(self):
        editor = empty_editor()
        editor.type_text('![Lorem](image.jpg "left-50")')
        paragraph = editor.doc.child(0)
        assert [child.type.name for child in paragraph.content] == ["image"]
        attrs = paragraph.child(0).attrs
        assert attrs["src"] == "image.jpg"
        assert attrs["alt"] == "Lorem"
        assert attrs["layout_class"] == "left-50"
        assert editor.state.selection.empty
        assert editor.state.selection.start == 3

    def test_converts_on_closing_parenthesis_only(self):
        editor = empty_editor()
        editor.type_text('![Lorem](image.jpg "left-50"')
        assert editor.doc.child(0).text_content == '![Lorem](image.jpg "left-50"'
        editor.type_text(")")
        assert editor.doc.child(0).child(0).type.name == "image"

    def test_text_before_is_kept(self):
        editor = empty_editor()
        editor.type_text("see ![Cat](cat.png “ =100x”) ok")
        paragraph = editor.doc.child(0)
        assert [child.type.name for child in paragraph.content] == ["text", "image", "text"]
        assert paragraph.child(0).text == "see "
        assert paragraph.child(1).attrs["width"] == 100
        assert paragraph.child(2).text == " ok"

    def test_undo_restores_typed_text(self):
        editor = empty_editor()
        editor.type_text("![](a.png)")
        editor.undo()
        assert editor.doc.child(0).text_content == "![](a.png"

    def test_simple_image_has_no_shorthand(self):
        editor = empty_editor(build_schema(image=SIMPLE_IMAGE))
        editor.type_text("![](a.png)")
        assert editor.doc.child(0).text_content == "![](a.png)"


class TestRunInputRules:

    def test_outside_textblock(self):
        editor = empty_editor()
        assert run_input_rules(editor.state, editor.input_rules, 0, 0, ")") is None
        assert editor.handle_text_input(0, 0, ")") is False

    def test_match_limited_to_window(self):
        schema = build_schema()
        doc = schema.construct("doc", content=[
            schema.construct("paragraph", content=[schema.text("![a](b.png")]),
        ])
        state = EditorState.create(schema, doc)
        rules = schema.input_rules()
        assert run_input_rules(state, rules, 11, 11, ")", max_match=3) is None
        tr = run_input_rules(state, rules, 11, 11, ")")
        assert tr.meta["input_rule"] == "image_shorthand"
        assert tr.doc.child(0).child(0).attrs["src"] == "b.png"
