"""
Image - Inline media node.

Two descriptors are built here. SIMPLE_IMAGE knows only `src` and `alt`:
`![alt](src)` in Markdown, a bare `<img>` in HTML, plus insert, delete and
download. IMAGE extends it with layout and size, stored in the Markdown
title (see richdoc.title), and with alignment, resize and the typed
`![alt](src "title")` shorthand.

Attributes of IMAGE:
    src:          Resource URL
    alt:          Alternative text
    width:        Width in pixels
    height:       Height in pixels
    layout_class: One of LAYOUT_CLASSES, or None for centered
    title:        Free title text
"""

from __future__ import annotations
import dataclasses
import logging
import re
from typing import Any, Literal

from bs4.element import Tag
from markdown_it.token import Token

from .. import commands
from ..input_rules import ImageShorthand, InputRule, match_image_shorthand
from ..markdown import inline_text
from ..model.schema import AttributeSpec, DomRule, MarkdownRule
from ..state import EditorState, Transaction
from ..title import LAYOUT_CLASSES, format_size_suffix, parse_title_attribute
from ..transform import StepError
from ..urls import sanitize_url
from .base import Commandable, NodeDescriptor, Parsable, Serializable


logger = logging.getLogger(__name__)


LayoutClass = Literal["right-50", "left-50", "full-width"]


def _non_negative(value: int | None) -> bool:
    return value is None or value >= 0


SIMPLE_IMAGE_ATTRS = {
    "src": AttributeSpec(default="", type=str),
    "alt": AttributeSpec(type=str | None),
}

IMAGE_ATTRS = {
    **SIMPLE_IMAGE_ATTRS,
    "width": AttributeSpec(type=int | None, validator=_non_negative),
    "height": AttributeSpec(type=int | None, validator=_non_negative),
    "layout_class": AttributeSpec(type=LayoutClass | None),
    "title": AttributeSpec(type=str | None),
}


# =============================================================================
# Parsing
# =============================================================================

def _markdown_src_alt(token: Token) -> dict[str, Any]:
    return {
        "src": token.attrGet("src"),
        "alt": inline_text(token.children) or None,
    }


def _markdown_attrs(token: Token) -> dict[str, Any]:
    title = token.attrGet("title")
    return {
        **_markdown_src_alt(token),
        **parse_title_attribute(str(title) if title is not None else None).as_attrs(),
    }


_DIMENSION_RE = re.compile(r"\s*(\d+)")


def _parse_dimension(value: str | None) -> int | None:
    match = _DIMENSION_RE.match(value or "")
    return int(match.group(1)) if match else None


def _classes(element: Tag) -> list[str]:
    classes = element.get("class") or []
    return classes.split() if isinstance(classes, str) else list(classes)


def _img_src_alt(img: Tag) -> dict[str, Any]:
    return {"src": img.get("src"), "alt": img.get("alt")}


def _img_attrs(img: Tag) -> dict[str, Any]:
    return {
        **_img_src_alt(img),
        "title": img.get("title"),
        "width": _parse_dimension(img.get("width")),
        "height": _parse_dimension(img.get("height")),
    }


def _layout_from_classes(classes: list[str]) -> str | None:
    for class_name in classes:
        if class_name.startswith("image-") and class_name[len("image-"):] in LAYOUT_CLASSES:
            return class_name[len("image-"):]
    return None


def _container_attrs(element: Tag) -> dict[str, Any] | None:
    img = element.find("img")
    if img is None:
        return None
    return {**_img_attrs(img), "layout_class": _layout_from_classes(_classes(element))}


SIMPLE_PARSING = Parsable(
    markdown=MarkdownRule("image", kind="node", get_attrs=_markdown_src_alt),
    parse_dom=(DomRule("img", get_attrs=_img_src_alt, ignore_content=True),),
)

PARSING = Parsable(
    markdown=MarkdownRule("image", kind="node", get_attrs=_markdown_attrs),
    parse_dom=(
        DomRule("div", predicate=lambda element: "image" in _classes(element), get_attrs=_container_attrs, ignore_content=True),
        DomRule("img", get_attrs=_img_attrs, ignore_content=True),
    ),
)


# =============================================================================
# Serialization
# =============================================================================

def _markdown_image(state, attrs) -> str:
    alt = (attrs["alt"] or "").replace("\n", "")
    return f"![{state.esc(alt)}]({state.esc_url(attrs['src'] or '')}"


def simple_image_to_markdown(state, node) -> None:
    state.write(_markdown_image(state, node.attrs) + ")")


def image_to_markdown(state, node) -> None:
    """
    Layout wins over the free title; the size suffix follows whichever is
    written, or stands alone.

    A free title is written verbatim, so one that contains a layout class or
    ends in `=NxM` reads back as that layout or size.
    """
    attrs = node.attrs
    markdown = _markdown_image(state, attrs)
    size = format_size_suffix(attrs["width"], attrs["height"])
    if attrs["layout_class"]:
        markdown += f' "{state.esc_title(attrs["layout_class"])}{size}"'
    elif attrs["title"]:
        markdown += f' "{state.esc_title(attrs["title"])}{size}"'
    elif size:
        markdown += f' "{size}"'
    state.write(markdown + ")")


def simple_image_to_dom(node) -> tuple:
    return ("img", {"src": sanitize_url(node.attrs["src"]), "alt": node.attrs["alt"]})


def image_to_dom(node) -> tuple:
    attrs = node.attrs
    class_name = f"image image-{attrs['layout_class']}" if attrs["layout_class"] else "image"
    return (
        "div", {"class": class_name},
        ("img", {
            "src": sanitize_url(attrs["src"]),
            "alt": attrs["alt"],
            "title": attrs["title"],
            "width": attrs["width"],
            "height": attrs["height"],
        }),
        ("p", {"class": "caption"}, 0),
    )


SIMPLE_SERIALIZATION = Serializable(to_markdown=simple_image_to_markdown, to_dom=simple_image_to_dom)
SERIALIZATION = Serializable(to_markdown=image_to_markdown, to_dom=image_to_dom)


# =============================================================================
# Commands and input rules
# =============================================================================

def _simple_commands(node_type) -> dict[str, Any]:
    return {
        "insert_image": lambda **attrs: commands.insert_node(node_type, attrs),
        "delete_image": lambda: commands.delete_selected_node(node_type),
        "download_image": lambda fetcher, exporter: commands.download_node(node_type, fetcher, exporter),
    }


def _layout_commands(node_type) -> dict[str, Any]:
    return {
        "resize": lambda width, height: commands.resize(node_type, width, height),
        "align_right": lambda: commands.set_layout(node_type, "right-50"),
        "align_left": lambda: commands.set_layout(node_type, "left-50"),
        "align_full_width": lambda: commands.set_layout(node_type, "full-width"),
        "align_center": lambda: commands.set_layout(node_type, None),
    }


def _shorthand_rules(node_type) -> list[InputRule]:

    def handler(state: EditorState, match: ImageShorthand, start: int, end: int) -> Transaction | None:
        attrs = {"src": match.src, "alt": match.alt or None, **parse_title_attribute(match.title).as_attrs()}
        attrs = {name: value for name, value in attrs.items() if value is not None}
        try:
            return state.tr.replace_with(start, end, node_type.create(attrs))
        except StepError as e:
            logger.debug("image shorthand at %d-%d rejected: %s", start, end, e)
            return None

    return [InputRule(name="image_shorthand", match=match_image_shorthand, handler=handler)]


SIMPLE_COMMANDS = Commandable(commands=_simple_commands)
LAYOUT_COMMANDS = Commandable(commands=_layout_commands, input_rules=_shorthand_rules)


# =============================================================================
# Descriptors
# =============================================================================

SIMPLE_IMAGE = NodeDescriptor(
    attrs=SIMPLE_IMAGE_ATTRS,
    content="text*",
    marks="",
    group="inline",
    inline=True,
    parsable=SIMPLE_PARSING,
    serializable=SIMPLE_SERIALIZATION,
    commandable=SIMPLE_COMMANDS,
)

IMAGE = dataclasses.replace(
    SIMPLE_IMAGE,
    attrs=IMAGE_ATTRS,
    parsable=PARSING,
    serializable=SERIALIZATION,
    commandable=SIMPLE_COMMANDS.extend(LAYOUT_COMMANDS),
)
