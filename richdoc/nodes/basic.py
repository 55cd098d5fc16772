"""Document, paragraph, text and hard break, plus the strong and em marks."""

from __future__ import annotations

from ..model.schema import DomRule, MarkdownRule, MarkSpec
from .base import NodeDescriptor, Parsable, Serializable


def _paragraph_to_markdown(state, node) -> None:
    state.render_inline(node)


def _doc_to_markdown(state, node) -> None:
    state.render_blocks(node)


def _hard_break_to_markdown(state, node) -> None:
    state.write("\\\n")


DOC = NodeDescriptor(
    content="block+",
    serializable=Serializable(to_markdown=_doc_to_markdown),
)

PARAGRAPH = NodeDescriptor(
    content="inline*",
    group="block",
    parsable=Parsable(markdown=MarkdownRule("paragraph"), parse_dom=(DomRule("p"),)),
    serializable=Serializable(to_markdown=_paragraph_to_markdown, to_dom=lambda node: ("p", 0)),
)

TEXT = NodeDescriptor(group="inline")

HARD_BREAK = NodeDescriptor(
    group="inline",
    inline=True,
    parsable=Parsable(markdown=MarkdownRule("hardbreak", kind="node"), parse_dom=(DomRule("br"),)),
    serializable=Serializable(to_markdown=_hard_break_to_markdown, to_dom=lambda node: ("br",)),
)


STRONG = MarkSpec(
    markdown_token="strong",
    markdown_open="**",
    markdown_close="**",
    parse_dom=("strong", "b"),
    to_dom="strong",
)

EM = MarkSpec(
    markdown_token="em",
    markdown_open="*",
    markdown_close="*",
    parse_dom=("em", "i"),
    to_dom="em",
)
