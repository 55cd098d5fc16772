"""
Title attribute mini-language.

Markdown image titles carry layout and size information alongside a free
title:

    ![alt](src "right-50")              layout only
    ![alt](src "A caption =640x480")    title + size
    ![alt](src "left-50 =100x")         layout + width only
    ![alt](src " =x200")                height only

Decoding, applied left to right on the remaining string:
1. Each reserved layout token present as a substring is recorded and its
   first occurrence removed (later tokens in LAYOUT_CLASSES win).
2. A trailing size suffix `=<width>?x<height>?` is parsed and removed.
3. Whatever remains is the title, verbatim.
"""

from __future__ import annotations
from typing import Any

from pydantic import BaseModel


LAYOUT_CLASSES: tuple[str, ...] = ("right-50", "left-50", "full-width")

_DIGITS = frozenset("0123456789")


class TitleAttributes(BaseModel):
    """Attributes decoded from an image title."""
    layout_class: str | None = None
    title: str | None = None
    width: int | None = None
    height: int | None = None

    def as_attrs(self) -> dict[str, Any]:
        return self.model_dump()


def _parse_number(digits: str) -> int | None:
    return int(digits) if digits else None


def split_size_suffix(text: str) -> tuple[str, int | None, int | None] | None:
    """
    Split a trailing `=<width>?x<height>?` suffix off `text`.

    Returns (rest, width, height), or None when there is no such suffix.
    """
    eq = text.rfind("=")
    if eq == -1:
        return None
    width, sep, height = text[eq + 1:].partition("x")
    if not sep:
        return None
    if not set(width) <= _DIGITS or not set(height) <= _DIGITS:
        return None
    return text[:eq], _parse_number(width), _parse_number(height)


def parse_title_attribute(title: str | None) -> TitleAttributes:
    """
    Decode layout, size and free title from an image title.

    Total: never raises. Unrecognised size fragments stay part of the title.

    >>> parse_title_attribute("left-50 =100x200")
    TitleAttributes(layout_class='left-50', title=' ', width=100, height=200)
    """
    attributes = TitleAttributes()
    if not title:
        return attributes

    remaining = title
    for layout_class in LAYOUT_CLASSES:
        if layout_class in remaining:
            attributes.layout_class = layout_class
            remaining = remaining.replace(layout_class, "", 1)

    size = split_size_suffix(remaining)
    if size is not None:
        remaining, attributes.width, attributes.height = size

    attributes.title = remaining
    return attributes


def format_size_suffix(width: int | None, height: int | None) -> str:
    """Inverse of the size suffix: ` =<width>x<height>`, empty when neither is set."""
    if width is None and height is None:
        return ""
    return f" ={'' if width is None else width}x{'' if height is None else height}"
