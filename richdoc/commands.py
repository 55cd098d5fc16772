"""
Commands - Named, transactional mutations of an EditorState.

A command is a plain callable:

    command(state, dispatch=None) -> bool

It returns False, and dispatches nothing, when it does not apply to the
current state. When it applies and `dispatch` is given, it builds exactly
one Transaction and passes it to `dispatch`. Called without `dispatch` it
only reports whether it would apply.

Node type descriptors expose command *factories* (see NodeTypeSpec.commands)
that bind their node type and arguments and return such callables.
"""

from __future__ import annotations
import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Mapping

from .model.schema import InvalidAttributeError
from .resources import ResourceDownloadError, download_resource
from .state import EditorState, NodeSelection, Transaction
from .transform import StepError

if TYPE_CHECKING:
    from .model.schema import NodeType
    from .resources import ResourceExporter, ResourceFetcher


logger = logging.getLogger(__name__)


Dispatch = Callable[[Transaction], None]
Command = Callable[[EditorState, "Dispatch | None"], bool]
AsyncCommand = Callable[[EditorState, "Dispatch | None"], Awaitable[bool]]


class UnknownCommandError(KeyError):
    pass


def selected_node(state: EditorState, node_type: "NodeType | None" = None) -> NodeSelection | None:
    """The current NodeSelection if it selects a node of `node_type`."""
    selection = state.selection
    if not isinstance(selection, NodeSelection):
        return None
    if node_type is not None and selection.node.type is not node_type:
        return None
    return selection


# =============================================================================
# Attribute commands
# =============================================================================

def set_node_attrs(node_type: "NodeType", **changes: Any) -> Command:
    """Update attributes of the selected `node_type` node and keep it selected."""

    def command(state: EditorState, dispatch: Dispatch | None = None) -> bool:
        selection = selected_node(state, node_type)
        if selection is None:
            logger.debug("refusing to update %s: no %s node selected", sorted(changes), node_type.name)
            return False
        attrs = {**selection.node.attrs, **changes}
        if dispatch is None:
            try:
                node_type.compute_attrs(attrs)
            except InvalidAttributeError as e:
                logger.debug("refusing to update %s: %s", sorted(changes), e)
                return False
            return True
        tr = state.tr.set_node_markup(selection.pos, attrs)
        tr.set_selection(NodeSelection.create(tr.doc, selection.pos))
        dispatch(tr)
        return True

    return command


def resize(node_type: "NodeType", width: int | None, height: int | None) -> Command:
    return set_node_attrs(node_type, width=width, height=height)


def set_layout(node_type: "NodeType", layout_class: str | None) -> Command:
    """Set the layout class. A layout replaces the free title, so setting one clears it."""
    if layout_class is None:
        return set_node_attrs(node_type, layout_class=None)
    return set_node_attrs(node_type, layout_class=layout_class, title=None)


# =============================================================================
# Structural commands
# =============================================================================

def insert_node(node_type: "NodeType", attrs: Mapping[str, Any] | None = None) -> Command:
    """Replace the selection with a new `node_type` node and select it."""

    def command(state: EditorState, dispatch: Dispatch | None = None) -> bool:
        node = node_type.create(attrs)
        start = state.selection.start
        tr = state.tr
        try:
            tr.replace_with(start, state.selection.end, node)
        except StepError as e:
            logger.debug("cannot insert %s at %d: %s", node_type.name, start, e)
            return False
        if dispatch is not None:
            tr.set_selection(NodeSelection.create(tr.doc, start))
            dispatch(tr)
        return True

    return command


def delete_selected_node(node_type: "NodeType") -> Command:

    def command(state: EditorState, dispatch: Dispatch | None = None) -> bool:
        selection = selected_node(state, node_type)
        if selection is None:
            return False
        tr = state.tr
        try:
            tr.delete(selection.start, selection.end)
        except StepError as e:
            logger.debug("cannot delete %s at %d: %s", node_type.name, selection.start, e)
            return False
        if dispatch is not None:
            dispatch(tr)
        return True

    return command


# =============================================================================
# Resource export
# =============================================================================

def download_node(node_type: "NodeType", fetcher: "ResourceFetcher", exporter: "ResourceExporter") -> AsyncCommand:
    """
    Fetch the resource behind the selected node and hand it to `exporter`.

    Never dispatches: the document is not touched. A failed fetch or save
    raises ResourceDownloadError.
    """

    async def command(state: EditorState, dispatch: Dispatch | None = None) -> bool:
        selection = selected_node(state, node_type)
        if selection is None:
            logger.debug("refusing to download: no %s node selected", node_type.name)
            return False
        try:
            location = await download_resource(selection.node, fetcher, exporter)
        except ResourceDownloadError:
            logger.exception("download of %s failed", selection.node.attrs.get("src"))
            raise
        logger.info("saved %s to %s", selection.node.attrs.get("src"), location)
        return True

    return command
