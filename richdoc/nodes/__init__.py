"""
Node type descriptors and the default schema.

    doc          block+
    paragraph    inline*           (group block)
    text                           (group inline)
    image        text*, no marks   (group inline, see image.py)
    hard_break   leaf              (group inline)

Marks: strong, em.
"""

from ..model.schema import Schema
from .base import Commandable, NodeDescriptor, Parsable, Serializable
from .basic import DOC, EM, HARD_BREAK, PARAGRAPH, STRONG, TEXT
from .image import IMAGE, SIMPLE_IMAGE


def build_schema(image: NodeDescriptor = IMAGE) -> Schema:
    """The default schema. Pass SIMPLE_IMAGE for images without layout or size."""
    schema = Schema(top_node="doc")
    schema.register("doc", DOC.spec)
    schema.register("paragraph", PARAGRAPH.spec)
    schema.register("text", TEXT.spec)
    schema.register("image", image.spec)
    schema.register("hard_break", HARD_BREAK.spec)
    schema.register_mark("strong", STRONG)
    schema.register_mark("em", EM)
    return schema


__all__ = [
    "build_schema",
    "NodeDescriptor",
    "Parsable",
    "Serializable",
    "Commandable",
    "IMAGE",
    "SIMPLE_IMAGE",
]
