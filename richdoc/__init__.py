"""
richdoc - Schema-driven rich document model with Markdown and HTML I/O.

This package provides:
- Schema / Node: Immutable document tree validated by a schema
- build_schema: Default schema (doc, paragraph, text, image, hard_break)
- MarkdownParser / MarkdownSerializer: Markdown import and export
- DomParser / DomSerializer: HTML import and export
- EditorState / Transaction / NodeSelection / TextSelection: Transactional editing
- Editor: Command surface with undo history and input rules
- parse_title_attribute: Layout and size mini-language of image titles
"""

from .commands import UnknownCommandError
from .config import Settings, get_settings, reset_settings
from .dom import DomParser, DomSerializer
from .editor import Editor
from .input_rules import InputRule, match_image_shorthand, run_input_rules
from .markdown import MarkdownParser, MarkdownSerializer, escape_link_destination, escape_markdown
from .model import (
    DuplicateTypeError,
    InvalidAttributeError,
    InvalidContentError,
    Node,
    Schema,
    SchemaError,
    UnknownTypeError,
)
from .nodes import build_schema
from .resources import (
    FetchedResource,
    FileSystemExporter,
    HttpResourceFetcher,
    ResourceDownloadError,
)
from .state import EditorState, NodeSelection, SelectionError, TextSelection, Transaction, TransactionError
from .title import LAYOUT_CLASSES, TitleAttributes, parse_title_attribute
from .transform import StepError

__all__ = [
    "Schema",
    "Node",
    "build_schema",
    "MarkdownParser",
    "MarkdownSerializer",
    "escape_link_destination",
    "escape_markdown",
    "DomParser",
    "DomSerializer",
    "EditorState",
    "Transaction",
    "NodeSelection",
    "TextSelection",
    "Editor",
    "InputRule",
    "run_input_rules",
    "match_image_shorthand",
    "parse_title_attribute",
    "TitleAttributes",
    "LAYOUT_CLASSES",
    "FetchedResource",
    "HttpResourceFetcher",
    "FileSystemExporter",
    "Settings",
    "get_settings",
    "reset_settings",
    "SchemaError",
    "DuplicateTypeError",
    "UnknownTypeError",
    "InvalidAttributeError",
    "InvalidContentError",
    "StepError",
    "SelectionError",
    "TransactionError",
    "UnknownCommandError",
    "ResourceDownloadError",
]
