"""
Capabilities a node type descriptor is composed from.

    Parsable      how the type is recognised in Markdown and HTML
    Serializable  how it is written back out
    Commandable   which commands and input rules it contributes

A NodeDescriptor holds the structural fields and one of each capability,
so a richer variant of a type can swap a single capability and keep the
rest:

    rich = dataclasses.replace(simple, serializable=RICH_OUTPUT)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Mapping

from ..model.schema import AttributeSpec, DomRule, MarkdownRule, NodeTypeSpec

if TYPE_CHECKING:
    from ..model.node import Node
    from ..model.schema import NodeType


@dataclass(frozen=True)
class Parsable:
    markdown: MarkdownRule | None = None
    parse_dom: tuple[DomRule, ...] = ()


@dataclass(frozen=True)
class Serializable:
    to_markdown: Callable[..., None] | None = None
    to_dom: Callable[["Node"], tuple] | None = None


@dataclass(frozen=True)
class Commandable:
    commands: Callable[["NodeType"], dict[str, Callable[..., Any]]] | None = None
    input_rules: Callable[["NodeType"], list[Any]] | None = None

    def extend(self, other: Commandable) -> Commandable:
        """Commands and input rules of both, `other` winning on name clashes."""
        return Commandable(
            commands=_merge_commands(self.commands, other.commands),
            input_rules=_merge_rules(self.input_rules, other.input_rules),
        )


def _merge_commands(first, second):
    if first is None or second is None:
        return first or second
    return lambda node_type: {**first(node_type), **second(node_type)}


def _merge_rules(first, second):
    if first is None or second is None:
        return first or second
    return lambda node_type: [*first(node_type), *second(node_type)]


@dataclass(frozen=True)
class NodeDescriptor:
    """Structure plus capabilities; `spec` flattens it for the Schema."""
    attrs: Mapping[str, AttributeSpec] = field(default_factory=dict)
    content: str = ""
    marks: str | None = None
    group: str | None = None
    inline: bool = False
    atom: bool = False
    parsable: Parsable = Parsable()
    serializable: Serializable = Serializable()
    commandable: Commandable = Commandable()

    @property
    def spec(self) -> NodeTypeSpec:
        return NodeTypeSpec(
            attrs=self.attrs,
            content=self.content,
            marks=self.marks,
            group=self.group,
            inline=self.inline,
            atom=self.atom,
            markdown=self.parsable.markdown,
            parse_dom=self.parsable.parse_dom,
            to_markdown=self.serializable.to_markdown,
            to_dom=self.serializable.to_dom,
            commands=self.commandable.commands,
            input_rules=self.commandable.input_rules,
        )
