"""
Steps - Atomic, replayable document changes.

A Step turns one document version into the next. Steps never modify their
input; `apply` returns a new root node. Each step also knows how positions
move across it (`map`), which is how selections are carried from the old
document to the new one.

Two step kinds cover every mutation the editor performs:
- ReplaceStep: replace a range inside one parent with new nodes
- SetNodeMarkupStep: replace the attributes of the node at a position
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping

from .model.node import Node, ReplaceError
from .model.schema import SchemaError


class StepError(Exception):
    """A step could not be applied to the given document."""
    pass


class Step(ABC):

    @abstractmethod
    def apply(self, doc: Node) -> Node:
        """Return the document with this step applied. Raises StepError."""
        ...

    def map(self, pos: int, assoc: int = 1) -> int:
        """Map a position in the old document to the new document."""
        return pos

    def deletes(self, start: int, end: int) -> bool:
        """True if the range [start, end) of the old document is removed or replaced."""
        return False


@dataclass(frozen=True)
class ReplaceStep(Step):
    """
    Replace [start, end) with `nodes`.

    Attributes:
        start: Start of the replaced range
        end: End of the replaced range
        nodes: Replacement nodes (may be empty for a deletion)
    """
    start: int
    end: int
    nodes: tuple[Node, ...] = ()

    @property
    def size(self) -> int:
        return sum(node.node_size for node in self.nodes)

    def apply(self, doc: Node) -> Node:
        try:
            return doc.replace(self.start, self.end, self.nodes)
        except (ReplaceError, SchemaError) as e:
            raise StepError(f"Cannot replace {self.start}-{self.end}: {e}") from e

    def map(self, pos: int, assoc: int = 1) -> int:
        if pos < self.start or (pos == self.start and assoc < 0):
            return pos
        if pos > self.end or (pos == self.end and assoc > 0 and self.end > self.start):
            return pos - (self.end - self.start) + self.size
        return self.start if assoc < 0 else self.start + self.size

    def deletes(self, start: int, end: int) -> bool:
        return self.start < end and self.end > start


@dataclass(frozen=True)
class SetNodeMarkupStep(Step):
    """Replace the attributes of the (non-text) node starting at `pos`."""
    pos: int
    attrs: Mapping[str, Any]

    def apply(self, doc: Node) -> Node:
        node = doc.node_at(self.pos)
        if node is None or node.is_text:
            raise StepError(f"No node at position {self.pos}")
        # attribute validation errors propagate as-is
        updated = node.type.create(self.attrs, node.content, node.marks)
        try:
            return doc.replace(self.pos, self.pos + node.node_size, [updated])
        except (ReplaceError, SchemaError) as e:
            raise StepError(f"Cannot update node at {self.pos}: {e}") from e
