"""
Node - Immutable tree node with integer positions.

A document is a tree of Nodes. Every node is immutable: operations that
"change" a node return a new node and leave the original untouched, so any
previous document version remains valid (and can be kept for undo).

Positions:
    - A text node occupies len(text) positions.
    - A leaf node (no allowed content) occupies 1 position.
    - Any other node occupies content_size + 2 positions (open + close).
    - Positions inside a node's content start at 0.

Usage:
    doc = schema.construct("doc", content=[
        schema.construct("paragraph", content=[schema.text("Hello")]),
    ])
    doc.node_at(0)          # -> the paragraph
    doc.resolve(3).parent   # -> the paragraph
"""

from __future__ import annotations
from dataclasses import dataclass
from functools import cached_property
from typing import TYPE_CHECKING, Any, Iterator, Mapping, Sequence

if TYPE_CHECKING:
    from .schema import NodeType
    from .path import ResolvedPos


LEAF_TEXT = "\ufffc"


class ReplaceError(ValueError):
    """A replace range is out of bounds or cuts through a non-text node."""
    pass


@dataclass(frozen=True)
class Node:
    """
    Tree node.

    Attributes:
        type: The NodeType this node belongs to
        attrs: Fully populated, read-only attribute mapping
        content: Child nodes
        marks: Mark names applied to this node, in schema order
        text: Text for text nodes, None otherwise
    """
    type: "NodeType"
    attrs: Mapping[str, Any]
    content: tuple[Node, ...] = ()
    marks: tuple[str, ...] = ()
    text: str | None = None

    def __hash__(self) -> int:
        return hash((self.type.name, self.text, self.marks, self.content, tuple(self.attrs.items())))

    # =========================================================================
    # Basic Properties
    # =========================================================================

    @property
    def is_text(self) -> bool:
        return self.type.is_text

    @property
    def is_inline(self) -> bool:
        return self.type.is_inline

    @property
    def is_block(self) -> bool:
        return self.type.is_block

    @property
    def is_leaf(self) -> bool:
        return self.type.is_leaf

    @property
    def is_atom(self) -> bool:
        return self.type.is_atom

    @property
    def is_textblock(self) -> bool:
        return self.type.is_textblock

    @cached_property
    def content_size(self) -> int:
        return sum(child.node_size for child in self.content)

    @property
    def node_size(self) -> int:
        if self.text is not None:
            return len(self.text)
        if self.is_leaf:
            return 1
        return self.content_size + 2

    @property
    def child_count(self) -> int:
        return len(self.content)

    def child(self, index: int) -> Node:
        try:
            return self.content[index]
        except IndexError:
            raise IndexError(f"{self!r} has no child at index {index}")

    @property
    def text_content(self) -> str:
        if self.text is not None:
            return self.text
        return "".join(child.text_content for child in self.content)

    # =========================================================================
    # Traversal
    # =========================================================================

    def iter_children(self) -> Iterator[tuple[Node, int]]:
        """Yield (child, offset) pairs, offsets relative to this node's content."""
        offset = 0
        for child in self.content:
            yield child, offset
            offset += child.node_size

    def descendants(self) -> Iterator[tuple[Node, int]]:
        """Depth-first (node, absolute position) pairs for everything under this node."""
        for child, offset in self.iter_children():
            yield child, offset
            for node, pos in child.descendants():
                yield node, offset + 1 + pos

    def find_index(self, pos: int) -> tuple[int, int]:
        """
        Find the child containing content position `pos`.

        Returns (index, offset) where offset is the start of that child.
        A position on a boundary belongs to the child that starts there.
        """
        if pos < 0 or pos > self.content_size:
            raise ReplaceError(f"Position {pos} outside of {self.type.name} content (size {self.content_size})")
        for index, (child, offset) in enumerate(self.iter_children()):
            if offset + child.node_size > pos:
                return index, offset
        return len(self.content), self.content_size

    def node_at(self, pos: int) -> Node | None:
        """The node starting exactly at `pos`, or None."""
        if pos < 0 or pos > self.content_size:
            return None
        node = self
        while True:
            index, offset = node.find_index(pos)
            if index >= node.child_count:
                return None
            child = node.content[index]
            if offset == pos:
                return child
            if child.is_text or child.is_leaf:
                return None
            pos -= offset + 1
            node = child

    def resolve(self, pos: int) -> "ResolvedPos":
        from .path import ResolvedPos
        return ResolvedPos.resolve(self, pos)

    def text_between(self, start: int, end: int, leaf_text: str = LEAF_TEXT) -> str:
        """Text of the content between two positions; inline leaves render as `leaf_text`."""
        parts: list[str] = []
        for child, offset in self.iter_children():
            child_end = offset + child.node_size
            if child_end <= start or offset >= end:
                continue
            if child.is_text:
                parts.append(child.text[max(0, start - offset):end - offset])
            elif child.is_leaf or child.is_inline:
                parts.append(leaf_text)
            else:
                parts.append(child.text_between(max(0, start - offset - 1), min(child.content_size, end - offset - 1), leaf_text))
        return "".join(parts)

    # =========================================================================
    # Copy-on-write operations
    # =========================================================================

    def copy(self, content: Sequence[Node] | None = None) -> Node:
        """Same type, attrs and marks with new (validated) content."""
        return self.type.create(self.attrs, self.content if content is None else content, self.marks)

    def with_text(self, text: str) -> Node:
        return self.type.schema.text(text, self.marks)

    def mark(self, marks: Sequence[str]) -> Node:
        if self.is_text:
            return self.type.schema.text(self.text, marks)
        return self.type.create(self.attrs, self.content, marks)

    def cut(self, start: int, end: int) -> tuple[Node, ...]:
        """Children between two content positions. Text nodes are sliced."""
        result: list[Node] = []
        for child, offset in self.iter_children():
            child_end = offset + child.node_size
            if child_end <= start or offset >= end:
                continue
            if child.is_text:
                text = child.text[max(0, start - offset):end - offset]
                if text:
                    result.append(child.with_text(text))
            elif start <= offset and child_end <= end:
                result.append(child)
            else:
                raise ReplaceError(f"Range {start}-{end} cuts through {child.type.name} at {offset}")
        return tuple(result)

    def replace(self, start: int, end: int, nodes: Sequence[Node]) -> Node:
        """
        Replace the content between `start` and `end` with `nodes`.

        Both positions must lie in the same parent. The replacement is
        validated against that parent's content expression.
        """
        if start > end:
            raise ReplaceError(f"Invalid range {start}-{end}")
        index, offset = self.find_index(start)
        if end > self.content_size:
            raise ReplaceError(f"Position {end} outside of {self.type.name} content (size {self.content_size})")
        if index < self.child_count:
            child = self.content[index]
            if not child.is_text and not child.is_leaf and offset < start and end < offset + child.node_size:
                inner = child.replace(start - offset - 1, end - offset - 1, nodes)
                return self.copy(self.content[:index] + (inner,) + self.content[index + 1:])
        return self.copy(self.cut(0, start) + tuple(nodes) + self.cut(end, self.content_size))

    def __repr__(self) -> str:
        if self.text is not None:
            marks = f", marks={list(self.marks)}" if self.marks else ""
            return f"Node(text={self.text!r}{marks})"
        attrs = {k: v for k, v in self.attrs.items() if v is not None}
        parts = [self.type.name]
        if attrs:
            parts.append(repr(attrs))
        if self.content:
            parts.append(f"{len(self.content)} children")
        return f"Node({', '.join(parts)})"
