"""
Input rules - Turn typed shorthand into nodes.

Before typed text is inserted, the text of the current textblock up to the
caret, plus the new text, is offered to each rule. The first rule whose
matcher recognizes the end of that text builds a Transaction that replaces
the matched range; the typed text itself is then not inserted.

Usage:
    tr = run_input_rules(state, schema.input_rules(), start, end, ")")
    if tr is not None:
        state = state.apply(tr)
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Callable, Protocol, Sequence

from .config import get_settings
from .model.node import LEAF_TEXT
from .state import EditorState, Transaction


logger = logging.getLogger(__name__)


class RuleMatch(Protocol):
    text: str


@dataclass(frozen=True)
class InputRule:
    """
    Attributes:
        name: Used in logs and stored in the transaction meta
        match: Recognizes the shorthand at the end of the text before the caret
        handler: Builds the replacing transaction, or returns None to decline
    """
    name: str
    match: Callable[[str], RuleMatch | None]
    handler: Callable[[EditorState, RuleMatch, int, int], Transaction | None]


def run_input_rules(
    state: EditorState,
    rules: Sequence[InputRule],
    start: int,
    end: int,
    text: str,
    max_match: int | None = None,
) -> Transaction | None:
    """
    Offer `text`, about to replace [start, end), to `rules`.

    Only fires inside a textblock, with both ends in the same one.
    """
    if not rules:
        return None
    resolved = state.doc.resolve(start)
    parent = resolved.parent
    if not parent.is_textblock or end > resolved.end():
        return None
    max_match = get_settings().input_rule_max_match if max_match is None else max_match
    offset = resolved.parent_offset
    text_before = parent.text_between(max(0, offset - max_match), offset) + text

    for rule in rules:
        match = rule.match(text_before)
        if match is None:
            continue
        match_start = start - (len(match.text) - len(text))
        tr = rule.handler(state, match, match_start, end)
        if tr is None:
            continue
        tr.meta["input_rule"] = rule.name
        logger.debug("input rule %s replaced %d-%d", rule.name, match_start, end)
        return tr
    return None


# =============================================================================
# Image shorthand
# =============================================================================

_OPEN_QUOTES = "\"“"
_CLOSE_QUOTES = "\"”"


@dataclass(frozen=True)
class ImageShorthand:
    """A typed `![alt](src "title")`."""
    text: str
    alt: str
    src: str
    title: str | None = None


def match_image_shorthand(text: str) -> ImageShorthand | None:
    """
    Recognize `![alt](src "title")` at the end of `text`.

    Alt and title may not contain brackets; the title is optional and may be
    wrapped in straight or curly quotes.

    >>> match_image_shorthand('see ![Lorem](image.jpg "left-50")').src
    'image.jpg'
    """
    if not text.endswith(")"):
        return None
    start = text.rfind("![")
    if start == -1:
        return None
    matched = text[start:]
    if LEAF_TEXT in matched:
        return None
    alt, sep, rest = matched[2:-1].partition("](")
    if not sep or "[" in alt or "]" in alt or "[" in rest or "]" in rest:
        return None

    stop = len(rest)
    for index, char in enumerate(rest):
        if char in _OPEN_QUOTES or char == ")":
            stop = index
            break
    src, title = rest[:stop], rest[stop:]
    if ")" in title:
        return None
    if title and title[0] in _OPEN_QUOTES:
        title = title[1:]
    if title and title[-1] in _CLOSE_QUOTES:
        title = title[:-1]
    if any(char in _CLOSE_QUOTES for char in title):
        return None
    return ImageShorthand(text=matched, alt=alt, src=src.strip(), title=title or None)
