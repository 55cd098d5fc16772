"""
Markdown import and export.

MarkdownParser - Builds a document from the markdown-it-py token stream.
MarkdownSerializer - Writes a document back to Markdown.

The parser keeps a stack of open nodes:
- `<token>_open` → push a frame for the node type whose rule names the token
- content tokens → append nodes to the top frame
- `<token>_close` → build the node from the frame and append it to its parent

Parsing is lenient: unknown tokens never raise. Unknown open/close pairs
are transparent, inline content that lands at block level is wrapped in the
schema's default textblock, raw HTML is dropped.
"""

from __future__ import annotations
import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

from markdown_it import MarkdownIt
from markdown_it.token import Token

from .config import get_settings
from .model.node import Node
from .model.schema import InvalidContentError, MarkdownRule, NodeType

if TYPE_CHECKING:
    from .model.schema import Schema


logger = logging.getLogger(__name__)


# =============================================================================
# Escaping
# =============================================================================

_ESCAPE_RE = re.compile(r"[`*\\~\[\]_&]")
_LINE_START_RE = re.compile(r"^(\s*)([#>+-])")
_ORDERED_LIST_RE = re.compile(r"^(\s*\d+)\.(\s|$)")


def escape_markdown(text: str, start_of_line: bool = False) -> str:
    """
    Backslash-escape Markdown syntax characters in `text`.

    Block-level markers (`#`, `>`, `-`, `+`, `1.`) are escaped at the start of
    every line after a newline, and on the first line when `start_of_line`.
    """
    text = _ESCAPE_RE.sub(lambda m: "\\" + m.group(0), text)
    lines = text.split("\n")
    for i, line in enumerate(lines):
        if i == 0 and not start_of_line:
            continue
        line = _LINE_START_RE.sub(r"\1\\\2", line)
        lines[i] = _ORDERED_LIST_RE.sub(r"\1\\.\2", line)
    return "\n".join(lines)


_BARE_DESTINATION_RE = re.compile(r"[A-Za-z0-9._~:/?#@!$%*+,;=-]*")


def escape_link_destination(url: str) -> str:
    """
    Write `url` as a link destination that parses back to the same string.

    Plain URLs are written bare. Anything else goes in angle brackets with
    `\\`, `<`, `>` and `&` backslash-escaped. Destinations cannot hold newlines.
    """
    if _BARE_DESTINATION_RE.fullmatch(url):
        return url
    escaped = re.sub(r"[\\<>&]", lambda m: "\\" + m.group(0), url.replace("\n", ""))
    return f"<{escaped}>"


# =============================================================================
# Parser
# =============================================================================

@dataclass
class _Frame:
    type: NodeType
    attrs: dict[str, Any] = field(default_factory=dict)
    content: list[Node] = field(default_factory=list)
    implicit: bool = False


def _clean_attrs(attrs: dict[str, Any] | None) -> dict[str, Any]:
    """Drop missing values so the schema fills in defaults."""
    return {name: value for name, value in (attrs or {}).items() if value is not None}


def _rule_attrs(rule: MarkdownRule, token: Token) -> dict[str, Any]:
    return _clean_attrs(rule.get_attrs(token) if rule.get_attrs else None)


def inline_text(tokens: list[Token] | None) -> str:
    """Plain text of an inline token list (e.g. the children of an image token)."""
    parts = []
    for token in tokens or []:
        if token.type in ("text", "text_special", "code_inline"):
            parts.append(token.content)
        elif token.type in ("softbreak", "hardbreak"):
            parts.append("\n")
        elif token.children:
            parts.append(inline_text(token.children))
    return "".join(parts)


class _ParseState:

    def __init__(self, schema: "Schema", handlers: dict[str, Callable[[_ParseState, Token], None]]):
        self.schema = schema
        self.handlers = handlers
        self.stack: list[_Frame] = [_Frame(schema.top_node_type)]
        self.marks: list[str] = []

    @property
    def top(self) -> _Frame:
        return self.stack[-1]

    def parse_tokens(self, tokens: list[Token]) -> None:
        for token in tokens:
            handler = self.handlers.get(token.type)
            if handler is not None:
                handler(self, token)
            elif not token.type.endswith(("_open", "_close")):
                logger.debug("dropping unsupported markdown token %s", token.type)

    # -------------------------------------------------------------------------
    # Content
    # -------------------------------------------------------------------------

    def push(self, node: Node) -> None:
        if node.is_inline:
            if not self.top.type.is_textblock:
                self.stack.append(_Frame(self.schema.default_textblock, implicit=True))
        else:
            self.close_implicit()
        self.top.content.append(node)

    def add_text(self, text: str) -> None:
        if text:
            self.push(self.schema.text(text, self.marks))

    def add_node(self, node_type: NodeType, attrs: dict[str, Any]) -> None:
        self.push(node_type.create(attrs))

    def open_mark(self, mark: str) -> None:
        self.marks.append(mark)

    def close_mark(self, mark: str) -> None:
        if mark in self.marks:
            self.marks.remove(mark)

    # -------------------------------------------------------------------------
    # Nodes
    # -------------------------------------------------------------------------

    def open_node(self, node_type: NodeType, attrs: dict[str, Any]) -> None:
        self.close_implicit()
        self.stack.append(_Frame(node_type, attrs))

    def close_node(self) -> None:
        self.close_implicit()
        if len(self.stack) > 1:
            self._pop()

    def close_implicit(self) -> None:
        while self.top.implicit:
            self._pop()

    def _pop(self) -> None:
        frame = self.stack.pop()
        try:
            node = frame.type.create(frame.attrs, frame.content)
        except InvalidContentError:
            logger.debug("unwrapping invalid %s content", frame.type.name)
            for child in frame.content:
                self.push(child)
            return
        self.push(node)

    def finish(self) -> Node:
        while len(self.stack) > 1:
            self._pop()
        root = self.stack[0]
        if not root.content:
            root.content.append(self.schema.default_textblock.create())
        return root.type.create(root.attrs, root.content)


def default_tokenizer() -> MarkdownIt:
    """
    The tokenizer used when MarkdownParser is given none.

    Link destinations are kept exactly as written: no percent-encoding and no
    scheme filtering. Unsafe URLs are neutralized by sanitize_url on DOM output.
    """
    md = MarkdownIt(get_settings().markdown_preset, {"html": False})
    md.normalizeLink = lambda url: url
    md.validateLink = lambda url: True
    return md


class MarkdownParser:
    """
    Builds documents from Markdown using a markdown-it-py tokenizer.

    Token handlers are derived from the schema: each node type's MarkdownRule
    and each mark's markdown_token.

    Example:
        parser = MarkdownParser(schema)
        doc = parser.parse('![Lorem](image.jpg "left-50 =100x200")')
    """

    def __init__(self, schema: "Schema", tokenizer: MarkdownIt | None = None):
        self.schema = schema
        self.tokenizer = tokenizer or default_tokenizer()
        self.handlers = self._build_handlers()

    def _build_handlers(self) -> dict[str, Callable[[_ParseState, Token], None]]:
        handlers: dict[str, Callable[[_ParseState, Token], None]] = {}

        for node_type in self.schema.node_types:
            rule = node_type.spec.markdown
            if rule is None:
                continue
            if rule.kind == "block":
                handlers[f"{rule.token}_open"] = lambda state, token, nt=node_type, r=rule: state.open_node(nt, _rule_attrs(r, token))
                handlers[f"{rule.token}_close"] = lambda state, token: state.close_node()
            else:
                handlers[rule.token] = lambda state, token, nt=node_type, r=rule: state.add_node(nt, _rule_attrs(r, token))

        for mark_type in self.schema.mark_types:
            token_name = mark_type.spec.markdown_token
            if token_name is None:
                continue
            handlers[f"{token_name}_open"] = lambda state, token, m=mark_type.name: state.open_mark(m)
            handlers[f"{token_name}_close"] = lambda state, token, m=mark_type.name: state.close_mark(m)

        handlers.setdefault("inline", lambda state, token: state.parse_tokens(token.children or []))
        handlers.setdefault("text", lambda state, token: state.add_text(token.content))
        handlers.setdefault("text_special", lambda state, token: state.add_text(token.content))
        handlers.setdefault("code_inline", lambda state, token: state.add_text(token.content))
        handlers.setdefault("softbreak", lambda state, token: state.add_text("\n"))
        handlers.setdefault("fence", self._add_code_block)
        handlers.setdefault("code_block", self._add_code_block)
        return handlers

    def _add_code_block(self, state: _ParseState, token: Token) -> None:
        state.close_implicit()
        state.open_node(self.schema.default_textblock, {})
        state.add_text(token.content.rstrip("\n"))
        state.close_node()

    def parse(self, text: str) -> Node:
        state = _ParseState(self.schema, self.handlers)
        state.parse_tokens(self.tokenizer.parse(text))
        return state.finish()


# =============================================================================
# Serializer
# =============================================================================

class MarkdownSerializerState:
    """Output buffer handed to each node type's `to_markdown`."""

    def __init__(self, schema: "Schema"):
        self.schema = schema
        self.parts: list[str] = []

    def write(self, text: str) -> None:
        self.parts.append(text)

    def esc(self, text: str, start_of_line: bool = False) -> str:
        return escape_markdown(text, start_of_line)

    def esc_title(self, text: str) -> str:
        """Escape text placed inside a double-quoted link title."""
        return self.esc(text).replace('"', '\\"')

    def esc_url(self, url: str) -> str:
        return escape_link_destination(url)

    def render(self, node: Node) -> None:
        if node.is_text:
            self.write(self.esc(node.text))
            return
        serializer = node.type.spec.to_markdown
        if serializer is None:
            logger.debug("no markdown serializer for %s, writing content only", node.type.name)
            if node.type.is_textblock:
                self.render_inline(node)
            else:
                self.render_blocks(node)
            return
        serializer(self, node)

    def render_blocks(self, parent: Node) -> None:
        for index, child in enumerate(parent.content):
            if index:
                self.write("\n\n")
            self.render(child)

    def render_inline(self, parent: Node) -> None:
        active: list[str] = []
        for index, child in enumerate(parent.content):
            marks = list(child.marks)
            keep = 0
            while keep < min(len(active), len(marks)) and active[keep] == marks[keep]:
                keep += 1
            for mark in reversed(active[keep:]):
                self.write(self.schema.resolve_mark(mark).spec.markdown_close)
            for mark in marks[keep:]:
                self.write(self.schema.resolve_mark(mark).spec.markdown_open)
            active = marks
            if child.is_text:
                self.write(self.esc(child.text, start_of_line=index == 0))
            else:
                self.render(child)
        for mark in reversed(active):
            self.write(self.schema.resolve_mark(mark).spec.markdown_close)

    @property
    def output(self) -> str:
        return "".join(self.parts)


class MarkdownSerializer:
    """
    Writes documents as Markdown.

    Example:
        MarkdownSerializer(schema).serialize(doc)
    """

    def __init__(self, schema: "Schema"):
        self.schema = schema

    def serialize(self, node: Node) -> str:
        state = MarkdownSerializerState(self.schema)
        state.render(node)
        return state.output
