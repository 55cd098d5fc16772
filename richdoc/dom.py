"""
HTML import and export.

DomParser - Builds a document from HTML with BeautifulSoup.
DomSerializer - Renders a document to HTML.

Import walks the element tree. For every element the registered DomRules
are tried in schema order; the first rule that matches (and whose
`get_attrs` does not decline) decides the node type. Elements named by a
mark's `parse_dom` add that mark to the text below them. Any other element
is transparent: its children are parsed in its place.

Export uses each node type's `to_dom`, which returns a nested tuple:

    ("div", {"class": "image"}, ("img", {"src": "a.png"}), ("p", 0))

The first item is the tag name, an optional dict holds attributes (None
values are skipped) and the `0` marks where the node's children go.
"""

from __future__ import annotations
import logging
import re
from typing import TYPE_CHECKING, Any, Sequence

from bs4 import BeautifulSoup
from bs4.element import NavigableString, PageElement, Tag

from .model.node import Node
from .model.schema import DomRule, InvalidContentError, NodeType

if TYPE_CHECKING:
    from .model.schema import Schema


logger = logging.getLogger(__name__)


_IGNORED_TAGS = frozenset({"script", "style", "head", "template", "title", "meta", "link", "noscript"})
_WHITESPACE_RE = re.compile(r"[ \t\n\r\f]+")


def _clean_attrs(attrs: dict[str, Any]) -> dict[str, Any]:
    return {name: value for name, value in attrs.items() if value is not None}


def _trim(nodes: Sequence[Node]) -> list[Node]:
    """Strip collapsed whitespace at the edges of an inline run."""
    nodes = list(nodes)
    while nodes and nodes[0].is_text:
        text = nodes[0].text.lstrip(" ")
        if text:
            nodes[0] = nodes[0].with_text(text)
            break
        nodes.pop(0)
    while nodes and nodes[-1].is_text:
        text = nodes[-1].text.rstrip(" ")
        if text:
            nodes[-1] = nodes[-1].with_text(text)
            break
        nodes.pop()
    return nodes


def _flatten_inline(nodes: Sequence[Node]) -> list[Node]:
    """Replace block nodes by their inline descendants."""
    result: list[Node] = []
    for node in nodes:
        if node.is_inline:
            result.append(node)
        else:
            result.extend(_flatten_inline(node.content))
    return result


# =============================================================================
# Parser
# =============================================================================

class DomParser:
    """
    Builds documents from HTML.

    Example:
        doc = DomParser(schema).parse('<div class="image image-right-50"><img src="a.png"></div>')
    """

    def __init__(self, schema: "Schema"):
        self.schema = schema
        self.rules = schema.dom_rules()
        self.mark_tags = {tag: mark.name for mark in schema.mark_types for tag in mark.spec.parse_dom}

    def parse(self, source: str | Tag) -> Node:
        root = BeautifulSoup(source, "html.parser") if isinstance(source, str) else source
        blocks = self._wrap_blocks(self._parse_children(root, ()))
        if not blocks:
            blocks = [self.schema.default_textblock.create()]
        return self.schema.top_node_type.create(content=blocks)

    def match_rule(self, element: Tag) -> tuple[NodeType, DomRule, dict[str, Any]] | None:
        for node_type, rule in self.rules:
            if not rule.matches(element):
                continue
            attrs = rule.extract(element)
            if attrs is None:
                logger.debug("rule %s for %s declined <%s>", rule.tag, node_type.name, element.name)
                continue
            return node_type, rule, attrs
        return None

    def _parse_children(self, element: Tag, marks: tuple[str, ...]) -> list[Node]:
        nodes: list[Node] = []
        for child in element.children:
            if isinstance(child, Tag):
                nodes.extend(self._parse_element(child, marks))
            elif type(child) is NavigableString:
                text = _WHITESPACE_RE.sub(" ", str(child))
                if text:
                    nodes.append(self.schema.text(text, marks))
        return nodes

    def _parse_element(self, element: Tag, marks: tuple[str, ...]) -> list[Node]:
        if element.name in _IGNORED_TAGS:
            return []
        matched = self.match_rule(element)
        if matched is not None:
            node_type, rule, attrs = matched
            content: list[Node] = []
            if not rule.ignore_content and not node_type.is_leaf:
                content = self._parse_children(element, marks if node_type.is_inline else ())
            node = self._build(node_type, _clean_attrs(attrs), content)
            return [node] if node is not None else []
        mark = self.mark_tags.get(element.name)
        if mark is not None and mark not in marks:
            return self._parse_children(element, (*marks, mark))
        return self._parse_children(element, marks)

    def _build(self, node_type: NodeType, attrs: dict[str, Any], content: list[Node]) -> Node | None:
        if node_type.is_textblock:
            content = _trim(_flatten_inline(content))
        elif not node_type.is_inline:
            content = self._wrap_blocks(content)
        try:
            return node_type.create(attrs, content)
        except InvalidContentError:
            pass
        try:
            logger.debug("dropping invalid content of <%s>", node_type.name)
            return node_type.create(attrs)
        except InvalidContentError:
            logger.debug("dropping %s: it cannot be empty", node_type.name)
            return None

    def _wrap_blocks(self, nodes: Sequence[Node]) -> list[Node]:
        """Wrap runs of inline nodes at block level in the default textblock."""
        blocks: list[Node] = []
        pending: list[Node] = []

        def flush() -> None:
            inline = _trim(pending)
            if inline:
                blocks.append(self.schema.default_textblock.create(content=inline))
            pending.clear()

        for node in nodes:
            if node.is_inline:
                pending.append(node)
            else:
                flush()
                blocks.append(node)
        flush()
        return blocks


# =============================================================================
# Serializer
# =============================================================================

def render_spec(soup: BeautifulSoup, spec: tuple) -> tuple[Tag, Tag | None]:
    """Build the element for a `to_dom` tuple. Returns (element, content hole)."""
    name, *rest = spec
    attrs: dict[str, str] = {}
    if rest and isinstance(rest[0], dict):
        attrs = {key: str(value) for key, value in rest.pop(0).items() if value is not None}
    element = soup.new_tag(name, attrs=attrs)
    hole = None
    for child in rest:
        if isinstance(child, int) and child == 0:
            hole = element
            continue
        child_element, child_hole = render_spec(soup, child)
        element.append(child_element)
        if child_hole is not None:
            hole = child_hole
    return element, hole


class DomSerializer:
    """
    Renders documents to HTML.

    Example:
        DomSerializer(schema).to_html(doc)
    """

    def __init__(self, schema: "Schema"):
        self.schema = schema

    def serialize(self, node: Node) -> BeautifulSoup:
        soup = BeautifulSoup("", "html.parser")
        if node.type is self.schema.top_node_type:
            for child in node.content:
                soup.append(self.render(soup, child))
        else:
            soup.append(self.render(soup, node))
        return soup

    def render(self, soup: BeautifulSoup, node: Node) -> PageElement:
        if node.is_text:
            element: PageElement = soup.new_string(node.text)
            for mark in reversed(node.marks):
                tag = soup.new_tag(self.schema.resolve_mark(mark).spec.to_dom or "span")
                tag.append(element)
                element = tag
            return element
        to_dom = node.type.spec.to_dom
        if to_dom is None:
            logger.debug("no DOM serializer for %s, rendering a div", node.type.name)
            element = hole = soup.new_tag("div")
        else:
            element, hole = render_spec(soup, to_dom(node))
        if hole is not None:
            for child in node.content:
                hole.append(self.render(soup, child))
        return element

    def to_html(self, node: Node) -> str:
        return str(self.serialize(node))
