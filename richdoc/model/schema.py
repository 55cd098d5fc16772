"""
Schema - Registry of node and mark types.

A Schema declares, per node type, its attributes (default + validator),
its content expression, the marks it allows on its children, its parse
rules and its serializers. Nodes are only ever created through a Schema,
which guarantees two invariants:

1. Every node has a fully populated attribute map (defaults filled in).
2. A node's children always satisfy its content expression.

Example:
    schema = Schema()
    schema.register("doc", NodeTypeSpec(content="block+"))
    schema.register("paragraph", NodeTypeSpec(content="inline*", group="block"))
    schema.register("text", NodeTypeSpec(group="inline"))

    doc = schema.construct("doc", content=[
        schema.construct("paragraph", content=[schema.text("hi")]),
    ])
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from functools import cached_property
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Literal, Mapping, Sequence

from pydantic import TypeAdapter, ValidationError

from .content import EMPTY, parse_content_expression
from .node import Node

if TYPE_CHECKING:
    from bs4.element import Tag
    from markdown_it.token import Token


logger = logging.getLogger(__name__)


# =============================================================================
# Errors
# =============================================================================

class SchemaError(Exception):
    """Base class for schema definition and construction errors."""
    pass


class DuplicateTypeError(SchemaError):
    pass


class UnknownTypeError(SchemaError, KeyError):
    pass


class InvalidAttributeError(SchemaError, ValueError):
    pass


class InvalidContentError(SchemaError, ValueError):
    pass


# =============================================================================
# Specs
# =============================================================================

@dataclass(frozen=True)
class AttributeSpec:
    """
    Definition of one node attribute.

    Attributes:
        default: Value used when the attribute is not supplied
        type: Type annotation checked with pydantic in strict mode
        validator: Extra predicate run after the type check
        required: If True there is no default and a value must be supplied
    """
    default: Any = None
    type: Any = Any
    validator: Callable[[Any], bool] | None = None
    required: bool = False

    @cached_property
    def _adapter(self) -> TypeAdapter:
        return TypeAdapter(self.type)

    def validate(self, name: str, value: Any) -> Any:
        try:
            value = self._adapter.validate_python(value, strict=True)
        except ValidationError as e:
            raise InvalidAttributeError(f"Invalid value {value!r} for attribute {name!r}: {e.errors()[0]['msg']}") from e
        if self.validator is not None and not self.validator(value):
            raise InvalidAttributeError(f"Invalid value {value!r} for attribute {name!r}")
        return value


@dataclass(frozen=True)
class MarkdownRule:
    """
    How a markdown-it token maps to a node type.

    kind="block": `<token>_open` / `<token>_close` open and close a node.
    kind="node":  a single `<token>` token builds a node without content.
    """
    token: str
    kind: Literal["block", "node"] = "block"
    get_attrs: Callable[["Token"], dict[str, Any]] | None = None


@dataclass(frozen=True)
class DomRule:
    """
    How an element maps to a node type.

    `get_attrs` returning None or False means the rule does not match after
    all, and the next rule is tried.
    """
    tag: str
    predicate: Callable[["Tag"], bool] | None = None
    get_attrs: Callable[["Tag"], dict[str, Any] | None | Literal[False]] | None = None
    ignore_content: bool = False

    def matches(self, element: "Tag") -> bool:
        if element.name != self.tag:
            return False
        return self.predicate is None or self.predicate(element)

    def extract(self, element: "Tag") -> dict[str, Any] | None:
        if self.get_attrs is None:
            return {}
        return self.get_attrs(element) or None


@dataclass(frozen=True)
class NodeTypeSpec:
    """
    Descriptor of a node type, composed from capabilities.

    Parsable:     markdown, parse_dom
    Serializable: to_markdown, to_dom
    Commandable:  commands, input_rules
    """
    attrs: Mapping[str, AttributeSpec] = field(default_factory=dict)
    content: str = ""
    marks: str | None = None
    group: str | None = None
    inline: bool = False
    atom: bool = False
    markdown: MarkdownRule | None = None
    parse_dom: tuple[DomRule, ...] = ()
    to_markdown: Callable[..., None] | None = None
    to_dom: Callable[[Node], tuple] | None = None
    commands: Callable[["NodeType"], dict[str, Callable[..., Any]]] | None = None
    input_rules: Callable[["NodeType"], list[Any]] | None = None


@dataclass(frozen=True)
class MarkSpec:
    """
    Descriptor of a mark type.

    Attributes:
        markdown_token: markdown-it token prefix (`<token>_open` / `<token>_close`)
        markdown_open: Delimiter written before marked text
        markdown_close: Delimiter written after marked text
        parse_dom: Element names that apply this mark
        to_dom: Element name used when rendering
    """
    markdown_token: str | None = None
    markdown_open: str = ""
    markdown_close: str = ""
    parse_dom: tuple[str, ...] = ()
    to_dom: str | None = None


# =============================================================================
# Types
# =============================================================================

class MarkType:

    def __init__(self, name: str, spec: MarkSpec, schema: Schema, rank: int):
        self.name = name
        self.spec = spec
        self.schema = schema
        self.rank = rank

    def __repr__(self) -> str:
        return f"MarkType({self.name!r})"


class NodeType:
    """A registered node type bound to its schema."""

    def __init__(self, name: str, spec: NodeTypeSpec, schema: Schema):
        self.name = name
        self.spec = spec
        self.schema = schema
        self.groups: tuple[str, ...] = tuple(spec.group.split()) if spec.group else ()
        self.content_expr = parse_content_expression(spec.content)

    # -------------------------------------------------------------------------
    # Classification
    # -------------------------------------------------------------------------

    def is_named(self, name: str) -> bool:
        return name == self.name or name in self.groups

    @property
    def is_text(self) -> bool:
        return self.name == "text"

    @property
    def is_inline(self) -> bool:
        return self.spec.inline or self.is_text

    @property
    def is_block(self) -> bool:
        return not self.is_inline

    @property
    def is_leaf(self) -> bool:
        return self.content_expr is EMPTY

    @property
    def is_atom(self) -> bool:
        return self.spec.atom or self.is_leaf

    @property
    def is_textblock(self) -> bool:
        if not self.is_block or self.is_leaf:
            return False
        text_type = self.schema.get("text")
        return text_type is not None and self.content_expr.matches([text_type])

    def allows_mark(self, mark: str) -> bool:
        marks = self.spec.marks
        if marks is None:
            return self.is_textblock
        if marks == "_":
            return True
        return mark in marks.split()

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    def compute_attrs(self, raw: Mapping[str, Any] | None) -> Mapping[str, Any]:
        raw = dict(raw or {})
        unknown = set(raw) - set(self.spec.attrs)
        if unknown:
            raise InvalidAttributeError(f"Unknown attribute(s) {sorted(unknown)} for node type {self.name!r}")
        attrs: dict[str, Any] = {}
        for name, attr_spec in self.spec.attrs.items():
            if name in raw:
                attrs[name] = attr_spec.validate(name, raw[name])
            elif attr_spec.required:
                raise InvalidAttributeError(f"Missing required attribute {name!r} for node type {self.name!r}")
            else:
                attrs[name] = attr_spec.default
        return MappingProxyType(attrs)

    def check_content(self, content: Sequence[Node]) -> None:
        if not self.content_expr.matches([child.type for child in content]):
            names = " ".join(child.type.name for child in content) or "(empty)"
            raise InvalidContentError(f"Invalid content for {self.name!r}: {names} (expected {self.spec.content or 'nothing'!r})")
        for child in content:
            for mark in child.marks:
                if not self.allows_mark(mark):
                    raise InvalidContentError(f"Mark {mark!r} is not allowed inside {self.name!r}")

    def create(
        self,
        attrs: Mapping[str, Any] | None = None,
        content: Sequence[Node] | None = None,
        marks: Sequence[str] | None = None,
    ) -> Node:
        if self.is_text:
            raise InvalidContentError("Text nodes are created with Schema.text()")
        children = _join_text(content or ())
        self.check_content(children)
        return Node(
            type=self,
            attrs=self.compute_attrs(attrs),
            content=children,
            marks=self.schema.normalize_marks(marks),
        )

    def __repr__(self) -> str:
        return f"NodeType({self.name!r})"


def _join_text(content: Sequence[Node]) -> tuple[Node, ...]:
    """Merge adjacent text nodes that carry the same marks."""
    result: list[Node] = []
    for child in content:
        if result and child.is_text and result[-1].is_text and result[-1].marks == child.marks:
            result[-1] = result[-1].with_text(result[-1].text + child.text)
        else:
            result.append(child)
    return tuple(result)


# =============================================================================
# Schema
# =============================================================================

class Schema:
    """
    Registry of node types and mark types.

    Types resolve by name. Registration order matters: it is the order in
    which DOM parse rules are tried and the rank used to order marks.
    """

    def __init__(self, top_node: str = "doc"):
        self.top_node = top_node
        self._nodes: dict[str, NodeType] = {}
        self._marks: dict[str, MarkType] = {}

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def register(self, name: str, spec: NodeTypeSpec) -> NodeType:
        if name in self._nodes or name in self._marks:
            raise DuplicateTypeError(f"Type {name!r} is already registered")
        node_type = NodeType(name, spec, self)
        self._nodes[name] = node_type
        logger.debug("registered node type %s", name)
        return node_type

    def register_mark(self, name: str, spec: MarkSpec) -> MarkType:
        if name in self._nodes or name in self._marks:
            raise DuplicateTypeError(f"Type {name!r} is already registered")
        mark_type = MarkType(name, spec, self, rank=len(self._marks))
        self._marks[name] = mark_type
        return mark_type

    def resolve(self, name: str) -> NodeType:
        try:
            return self._nodes[name]
        except KeyError:
            raise UnknownTypeError(f"Unknown node type {name!r}") from None

    def resolve_mark(self, name: str) -> MarkType:
        try:
            return self._marks[name]
        except KeyError:
            raise UnknownTypeError(f"Unknown mark type {name!r}") from None

    def get(self, name: str) -> NodeType | None:
        return self._nodes.get(name)

    def list_types(self) -> list[str]:
        return list(self._nodes.keys())

    @property
    def node_types(self) -> list[NodeType]:
        return list(self._nodes.values())

    @property
    def mark_types(self) -> list[MarkType]:
        return list(self._marks.values())

    @property
    def top_node_type(self) -> NodeType:
        return self.resolve(self.top_node)

    @property
    def default_textblock(self) -> NodeType:
        """First registered textblock type, used to wrap stray inline content."""
        for node_type in self._nodes.values():
            if node_type.is_textblock:
                return node_type
        raise UnknownTypeError("Schema has no textblock type")

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    def construct(
        self,
        name: str,
        attrs: Mapping[str, Any] | None = None,
        content: Sequence[Node] | None = None,
        marks: Sequence[str] | None = None,
    ) -> Node:
        return self.resolve(name).create(attrs, content, marks)

    def text(self, text: str, marks: Sequence[str] | None = None) -> Node:
        if not text:
            raise InvalidContentError("Empty text nodes are not allowed")
        return Node(type=self.resolve("text"), attrs=MappingProxyType({}), marks=self.normalize_marks(marks), text=text)

    def normalize_marks(self, marks: Sequence[str] | None) -> tuple[str, ...]:
        if not marks:
            return ()
        ranked = {self.resolve_mark(mark).rank: mark for mark in marks}
        return tuple(ranked[rank] for rank in sorted(ranked))

    # -------------------------------------------------------------------------
    # Capabilities collected from the registered descriptors
    # -------------------------------------------------------------------------

    def commands(self) -> dict[str, Callable[..., Any]]:
        commands: dict[str, Callable[..., Any]] = {}
        for node_type in self._nodes.values():
            if node_type.spec.commands is not None:
                commands.update(node_type.spec.commands(node_type))
        return commands

    def input_rules(self) -> list[Any]:
        rules: list[Any] = []
        for node_type in self._nodes.values():
            if node_type.spec.input_rules is not None:
                rules.extend(node_type.spec.input_rules(node_type))
        return rules

    def dom_rules(self) -> list[tuple[NodeType, DomRule]]:
        return [(node_type, rule) for node_type in self._nodes.values() for rule in node_type.spec.parse_dom]
