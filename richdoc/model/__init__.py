"""
Document model.

This module provides:
- Node: Immutable tree node with integer positions
- ResolvedPos: A position resolved against one document version
- Schema: Registry of node and mark types
- NodeTypeSpec / MarkSpec / AttributeSpec: Type descriptors
- MarkdownRule / DomRule: Parse rules attached to node types
- parse_content_expression: Content expression grammar
"""

from .content import ContentExpressionError, parse_content_expression
from .node import LEAF_TEXT, Node, ReplaceError
from .path import ResolvedPos
from .schema import (
    AttributeSpec,
    DomRule,
    DuplicateTypeError,
    InvalidAttributeError,
    InvalidContentError,
    MarkdownRule,
    MarkSpec,
    MarkType,
    NodeType,
    NodeTypeSpec,
    Schema,
    SchemaError,
    UnknownTypeError,
)

__all__ = [
    "Node",
    "ResolvedPos",
    "Schema",
    "NodeType",
    "NodeTypeSpec",
    "MarkType",
    "MarkSpec",
    "AttributeSpec",
    "MarkdownRule",
    "DomRule",
    "SchemaError",
    "DuplicateTypeError",
    "UnknownTypeError",
    "InvalidAttributeError",
    "InvalidContentError",
    "ReplaceError",
    "ContentExpressionError",
    "parse_content_expression",
    "LEAF_TEXT",
]
