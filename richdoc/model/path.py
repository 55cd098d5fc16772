"""
ResolvedPos - A document position resolved against a specific tree.

An integer position is only meaningful together with the document it was
computed for. Resolving it yields the chain of ancestors from the root down
to the innermost node whose content contains the position.

Like every other value in the model, a ResolvedPos is an immutable snapshot
of one document version.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .node import Node


@dataclass(frozen=True)
class ResolvedPos:
    """
    Immutable snapshot of a position's place in the tree.

    Attributes:
        pos: The absolute position
        path: One (node, index, content_start) entry per depth, root first.
              `index` is the child index the position points at inside
              `node`, `content_start` is the absolute position where
              `node`'s content begins.
        parent_offset: Offset of the position inside the innermost node

    Example:
        doc:  <p>ab</p><p>cd</p>
        rpos = doc.resolve(6)       # inside the second paragraph
        rpos.depth                  # 1
        rpos.parent.type.name       # "paragraph"
        rpos.parent_offset          # 1
        rpos.start()                # 5
    """

    pos: int
    path: tuple[tuple["Node", int, int], ...]
    parent_offset: int

    @classmethod
    def resolve(cls, doc: "Node", pos: int) -> ResolvedPos:
        if pos < 0 or pos > doc.content_size:
            raise ValueError(f"Position {pos} out of range (document size {doc.content_size})")
        path: list[tuple["Node", int, int]] = []
        node = doc
        start = 0
        offset_in_node = pos
        while True:
            index, offset = node.find_index(offset_in_node)
            path.append((node, index, start))
            remainder = offset_in_node - offset
            if remainder == 0:
                break
            child = node.content[index]
            if child.is_text or child.is_leaf:
                break
            node = child
            start = start + offset + 1
            offset_in_node = remainder - 1
        return cls(pos=pos, path=tuple(path), parent_offset=offset_in_node)

    # -------------------------------------------------------------------------
    # Depth accessors
    # -------------------------------------------------------------------------

    @property
    def depth(self) -> int:
        return len(self.path) - 1

    def _depth(self, depth: int | None) -> int:
        if depth is None:
            return self.depth
        if depth < 0:
            return self.depth + depth
        return depth

    @property
    def parent(self) -> "Node":
        return self.path[-1][0]

    @property
    def doc(self) -> "Node":
        return self.path[0][0]

    def node(self, depth: int | None = None) -> "Node":
        return self.path[self._depth(depth)][0]

    def index(self, depth: int | None = None) -> int:
        return self.path[self._depth(depth)][1]

    def start(self, depth: int | None = None) -> int:
        """Absolute position where the content of the node at `depth` starts."""
        return self.path[self._depth(depth)][2]

    def end(self, depth: int | None = None) -> int:
        d = self._depth(depth)
        return self.path[d][2] + self.path[d][0].content_size

    def before(self, depth: int | None = None) -> int:
        """Absolute position directly before the node at `depth`."""
        d = self._depth(depth)
        if d == 0:
            raise ValueError("There is no position before the top-level node")
        return self.start(d) - 1

    # -------------------------------------------------------------------------
    # Neighbours
    # -------------------------------------------------------------------------

    @property
    def text_offset(self) -> int:
        """Offset into the text node the position points into (0 when between nodes)."""
        index = self.index()
        if index >= self.parent.child_count:
            return 0
        offset = sum(child.node_size for child in self.parent.content[:index])
        return self.parent_offset - offset

    @property
    def node_after(self) -> "Node | None":
        index = self.index()
        if index >= self.parent.child_count:
            return None
        child = self.parent.content[index]
        if self.text_offset:
            return child.with_text(child.text[self.text_offset:])
        return child

    @property
    def node_before(self) -> "Node | None":
        index = self.index()
        text_offset = self.text_offset
        if text_offset:
            child = self.parent.content[index]
            return child.with_text(child.text[:text_offset])
        if index == 0:
            return None
        return self.parent.content[index - 1]

    def __repr__(self) -> str:
        names = "/".join(node.type.name for node, _, _ in self.path)
        return f"ResolvedPos({self.pos}, {names}:{self.parent_offset})"
