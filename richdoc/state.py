"""
EditorState, Selection and Transaction.

An EditorState is an immutable (document, selection) pair. It is never
patched in place: a Transaction records steps against the state's document
and `EditorState.apply` produces the next state in one piece.

Usage:
    state = EditorState.create(schema, doc)
    tr = state.tr
    tr.set_node_markup(pos, {**node.attrs, "width": 200})
    state = state.apply(tr)
"""

from __future__ import annotations
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Mapping, Sequence

from .model.node import Node
from .transform import ReplaceStep, SetNodeMarkupStep, Step

if TYPE_CHECKING:
    from .model.schema import Schema


logger = logging.getLogger(__name__)


class SelectionError(ValueError):
    """A selection does not point at a valid place in its document."""
    pass


class TransactionError(Exception):
    """A transaction was built against a document that is no longer current."""
    pass


# =============================================================================
# Selections
# =============================================================================

class Selection(ABC):
    """A reference into one specific document version."""

    @property
    @abstractmethod
    def start(self) -> int:
        ...

    @property
    @abstractmethod
    def end(self) -> int:
        ...

    @property
    def empty(self) -> bool:
        return self.start == self.end

    @abstractmethod
    def map(self, doc: Node, step: Step) -> Selection:
        """Carry the selection across `step`, resolved against the new `doc`."""
        ...

    @abstractmethod
    def rebind(self, doc: Node) -> Selection:
        """Re-create this selection against `doc`, validating it."""
        ...


@dataclass(frozen=True)
class TextSelection(Selection):
    """A text range [start, end). Collapsed (a caret) when start == end."""
    anchor: int
    head: int

    @classmethod
    def create(cls, doc: Node, start: int, end: int | None = None) -> TextSelection:
        end = start if end is None else end
        for pos in (start, end):
            if pos < 0 or pos > doc.content_size:
                raise SelectionError(f"Position {pos} out of range (document size {doc.content_size})")
        return cls(anchor=start, head=end)

    @classmethod
    def at_start(cls, doc: Node) -> TextSelection:
        for node, pos in doc.descendants():
            if node.is_textblock:
                return cls(anchor=pos + 1, head=pos + 1)
        return cls(anchor=0, head=0)

    @property
    def start(self) -> int:
        return min(self.anchor, self.head)

    @property
    def end(self) -> int:
        return max(self.anchor, self.head)

    def map(self, doc: Node, step: Step) -> Selection:
        return TextSelection.create(doc, step.map(self.anchor), step.map(self.head))

    def rebind(self, doc: Node) -> Selection:
        return TextSelection.create(doc, self.anchor, self.head)


@dataclass(frozen=True)
class NodeSelection(Selection):
    """A selection of the single node starting at `pos`."""
    pos: int
    node: Node = field(compare=False)

    @classmethod
    def create(cls, doc: Node, pos: int) -> NodeSelection:
        node = doc.node_at(pos)
        if node is None or node.is_text:
            raise SelectionError(f"No selectable node at position {pos}")
        return cls(pos=pos, node=node)

    @property
    def start(self) -> int:
        return self.pos

    @property
    def end(self) -> int:
        return self.pos + self.node.node_size

    def map(self, doc: Node, step: Step) -> Selection:
        if step.deletes(self.start, self.end):
            return TextSelection.create(doc, step.map(self.start, -1))
        return NodeSelection.create(doc, step.map(self.start))

    def rebind(self, doc: Node) -> Selection:
        return NodeSelection.create(doc, self.pos)


# =============================================================================
# Transaction
# =============================================================================

class Transaction:
    """
    An ordered list of steps built against one base document.

    Attributes:
        before: The document the transaction started from (never modified)
        doc: The document after all steps so far
        steps: Applied steps, in order
        meta: Free-form metadata (e.g. which input rule produced it)
    """

    def __init__(self, state: EditorState):
        self.before: Node = state.doc
        self.doc: Node = state.doc
        self.steps: list[Step] = []
        self.meta: dict[str, Any] = {}
        self._selection: Selection = state.selection
        self._schema = state.schema

    @property
    def selection(self) -> Selection:
        return self._selection

    @property
    def doc_changed(self) -> bool:
        return bool(self.steps)

    def step(self, step: Step) -> Transaction:
        doc = step.apply(self.doc)
        self.steps.append(step)
        self._selection = self._selection.map(doc, step)
        self.doc = doc
        return self

    def set_selection(self, selection: Selection) -> Transaction:
        self._selection = selection.rebind(self.doc)
        return self

    # -------------------------------------------------------------------------
    # Step helpers
    # -------------------------------------------------------------------------

    def replace_with(self, start: int, end: int, nodes: Node | Sequence[Node]) -> Transaction:
        if isinstance(nodes, Node):
            nodes = [nodes]
        return self.step(ReplaceStep(start, end, tuple(nodes)))

    def insert(self, pos: int, nodes: Node | Sequence[Node]) -> Transaction:
        return self.replace_with(pos, pos, nodes)

    def delete(self, start: int, end: int) -> Transaction:
        return self.replace_with(start, end, ())

    def insert_text(self, text: str, start: int | None = None, end: int | None = None, marks: Sequence[str] | None = None) -> Transaction:
        start = self._selection.start if start is None else start
        end = start if end is None else end
        if not text:
            return self.delete(start, end)
        return self.replace_with(start, end, self._schema.text(text, marks))

    def set_node_markup(self, pos: int, attrs: Mapping[str, Any]) -> Transaction:
        return self.step(SetNodeMarkupStep(pos, dict(attrs)))


# =============================================================================
# EditorState
# =============================================================================

@dataclass(frozen=True)
class EditorState:
    """Immutable (document, selection) pair."""
    schema: "Schema"
    doc: Node
    selection: Selection

    @classmethod
    def create(cls, schema: "Schema", doc: Node | None = None, selection: Selection | None = None) -> EditorState:
        if doc is None:
            doc = schema.top_node_type.create(content=[schema.default_textblock.create()])
        if selection is None:
            selection = TextSelection.at_start(doc)
        return cls(schema=schema, doc=doc, selection=selection.rebind(doc))

    @property
    def tr(self) -> Transaction:
        return Transaction(self)

    def apply(self, tr: Transaction) -> EditorState:
        if tr.before is not self.doc:
            raise TransactionError("Transaction was built against a different document version")
        logger.debug("applying transaction with %d step(s)", len(tr.steps))
        return EditorState(schema=self.schema, doc=tr.doc, selection=tr.selection)
