"""
Content expressions - grammar over child node types.

A content expression describes which sequences of children a node type
accepts. Examples:

    "block+"            one or more nodes of the "block" group
    "inline*"           any number of inline nodes
    "text*"             zero or more text nodes
    "heading (paragraph | image)*"

Grammar:
    expr   := seq ('|' seq)*
    seq    := term*
    term   := atom ('*' | '+' | '?')?
    atom   := NAME | '(' expr ')'

NAME matches either a node type name or a group name. Names are resolved
lazily at match time, so an expression may mention types that are registered
after the owning type.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from .schema import NodeType


class ContentExpressionError(ValueError):
    """Malformed content expression."""
    pass


# =============================================================================
# Expression nodes
# =============================================================================

class ContentExpr:
    """Base expression. `ends` returns every index where a match can stop."""

    def ends(self, types: Sequence["NodeType"], start: int) -> set[int]:
        raise NotImplementedError

    def matches(self, types: Sequence["NodeType"]) -> bool:
        return len(types) in self.ends(types, 0)


@dataclass(frozen=True)
class Name(ContentExpr):
    name: str

    def ends(self, types, start):
        if start < len(types) and types[start].is_named(self.name):
            return {start + 1}
        return set()

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Seq(ContentExpr):
    items: tuple[ContentExpr, ...]

    def ends(self, types, start):
        positions = {start}
        for item in self.items:
            positions = {end for pos in positions for end in item.ends(types, pos)}
            if not positions:
                break
        return positions

    def __str__(self) -> str:
        return " ".join(str(i) for i in self.items)


@dataclass(frozen=True)
class Choice(ContentExpr):
    options: tuple[ContentExpr, ...]

    def ends(self, types, start):
        return {end for option in self.options for end in option.ends(types, start)}

    def __str__(self) -> str:
        return "(" + " | ".join(str(o) for o in self.options) + ")"


@dataclass(frozen=True)
class Repeat(ContentExpr):
    expr: ContentExpr
    min: int
    max: int | None

    def ends(self, types, start):
        results = {start} if self.min == 0 else set()
        seen = {start}
        frontier = {start}
        count = 0
        while frontier:
            found = {end for pos in frontier for end in self.expr.ends(types, pos)}
            count += 1
            if count >= self.min:
                results |= found
            if self.max is not None and count >= self.max:
                break
            frontier = found - seen
            seen |= found
        return results

    def __str__(self) -> str:
        suffix = {(0, None): "*", (1, None): "+", (0, 1): "?"}[(self.min, self.max)]
        return f"{self.expr}{suffix}"


EMPTY = Seq(())


# =============================================================================
# Parser
# =============================================================================

_QUANTIFIERS = {"*": (0, None), "+": (1, None), "?": (0, 1)}


def _tokenize(source: str) -> list[str]:
    tokens: list[str] = []
    i = 0
    while i < len(source):
        ch = source[i]
        if ch.isspace():
            i += 1
        elif ch in "()|*+?":
            tokens.append(ch)
            i += 1
        elif ch.isalnum() or ch == "_":
            j = i
            while j < len(source) and (source[j].isalnum() or source[j] == "_"):
                j += 1
            tokens.append(source[i:j])
            i = j
        else:
            raise ContentExpressionError(f"Unexpected character {ch!r} in content expression {source!r}")
    return tokens


class _Parser:

    def __init__(self, source: str):
        self.source = source
        self.tokens = _tokenize(source)
        self.pos = 0

    def peek(self) -> str | None:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def take(self) -> str:
        token = self.tokens[self.pos]
        self.pos += 1
        return token

    def parse(self) -> ContentExpr:
        expr = self.parse_choice()
        if self.peek() is not None:
            raise ContentExpressionError(f"Unexpected {self.peek()!r} in content expression {self.source!r}")
        return expr

    def parse_choice(self) -> ContentExpr:
        options = [self.parse_seq()]
        while self.peek() == "|":
            self.take()
            options.append(self.parse_seq())
        return options[0] if len(options) == 1 else Choice(tuple(options))

    def parse_seq(self) -> ContentExpr:
        items = []
        while self.peek() not in (None, ")", "|"):
            items.append(self.parse_term())
        return items[0] if len(items) == 1 else Seq(tuple(items))

    def parse_term(self) -> ContentExpr:
        token = self.take()
        if token == "(":
            atom = self.parse_choice()
            if self.peek() != ")":
                raise ContentExpressionError(f"Missing ')' in content expression {self.source!r}")
            self.take()
        elif token in _QUANTIFIERS or token in ")|":
            raise ContentExpressionError(f"Unexpected {token!r} in content expression {self.source!r}")
        else:
            atom = Name(token)
        if self.peek() in _QUANTIFIERS:
            low, high = _QUANTIFIERS[self.take()]
            atom = Repeat(atom, low, high)
        return atom


def parse_content_expression(source: str) -> ContentExpr:
    """Compile a content expression string. An empty string accepts no children."""
    if not source.strip():
        return EMPTY
    return _Parser(source).parse()
