"""
Editor - Owns the current EditorState and its history.

Every change goes through `dispatch`, which applies a Transaction and
records the previous state for undo. Named commands come from the node
types registered in the schema.

Usage:
    editor = Editor(EditorState.create(build_schema(), doc))
    editor.select_node(pos)
    editor.align_right()
    editor.resize(640, 480)
    await editor.download_resource()
    editor.undo()
"""

from __future__ import annotations
import logging
from typing import Any, Sequence

from .commands import UnknownCommandError
from .input_rules import InputRule, run_input_rules
from .resources import FileSystemExporter, HttpResourceFetcher, ResourceExporter, ResourceFetcher
from .state import EditorState, NodeSelection, Selection, TextSelection, Transaction


logger = logging.getLogger(__name__)


class Editor:

    def __init__(
        self,
        state: EditorState,
        fetcher: ResourceFetcher | None = None,
        exporter: ResourceExporter | None = None,
        input_rules: Sequence[InputRule] | None = None,
    ):
        self._state = state
        self.fetcher = fetcher
        self.exporter = exporter
        self.input_rules = list(state.schema.input_rules()) if input_rules is None else list(input_rules)
        self.commands = state.schema.commands()
        self._undo: list[EditorState] = []
        self._redo: list[EditorState] = []

    @property
    def state(self) -> EditorState:
        return self._state

    @property
    def doc(self):
        return self._state.doc

    # =========================================================================
    # Dispatch and history
    # =========================================================================

    def dispatch(self, tr: Transaction) -> None:
        new_state = self._state.apply(tr)
        if tr.doc_changed:
            self._undo.append(self._state)
            self._redo.clear()
        self._state = new_state

    def undo(self) -> bool:
        if not self._undo:
            return False
        self._redo.append(self._state)
        self._state = self._undo.pop()
        return True

    def redo(self) -> bool:
        if not self._redo:
            return False
        self._undo.append(self._state)
        self._state = self._redo.pop()
        return True

    # =========================================================================
    # Selection
    # =========================================================================

    def set_selection(self, selection: Selection) -> None:
        self.dispatch(self._state.tr.set_selection(selection))

    def select_node(self, pos: int) -> None:
        self.set_selection(NodeSelection.create(self._state.doc, pos))

    def select_text(self, start: int, end: int | None = None) -> None:
        self.set_selection(TextSelection.create(self._state.doc, start, end))

    # =========================================================================
    # Commands
    # =========================================================================

    def _command(self, name: str, *args: Any, **kwargs: Any):
        factory = self.commands.get(name)
        if factory is None:
            raise UnknownCommandError(f"Unknown command {name!r}")
        return factory(*args, **kwargs)

    def run(self, name: str, *args: Any, **kwargs: Any):
        """Run a named command against the current state. Returns its result."""
        logger.debug("running %s", name)
        return self._command(name, *args, **kwargs)(self._state, self.dispatch)

    def can(self, name: str, *args: Any, **kwargs: Any) -> bool:
        """Whether the command would apply, without dispatching anything."""
        return self._command(name, *args, **kwargs)(self._state, None)

    def resize(self, width: int | None, height: int | None) -> bool:
        return self.run("resize", width, height)

    def align_right(self) -> bool:
        return self.run("align_right")

    def align_left(self) -> bool:
        return self.run("align_left")

    def align_full_width(self) -> bool:
        return self.run("align_full_width")

    def align_center(self) -> bool:
        return self.run("align_center")

    def insert_image(self, **attrs: Any) -> bool:
        return self.run("insert_image", **attrs)

    def delete_image(self) -> bool:
        return self.run("delete_image")

    async def download_resource(self) -> bool:
        fetcher = self.fetcher or HttpResourceFetcher()
        exporter = self.exporter or FileSystemExporter()
        return await self.run("download_image", fetcher, exporter)

    # =========================================================================
    # Typing
    # =========================================================================

    def handle_text_input(self, start: int, end: int, text: str) -> bool:
        """Give input rules a chance to consume `text`. True if one did."""
        tr = run_input_rules(self._state, self.input_rules, start, end, text)
        if tr is None:
            return False
        self.dispatch(tr)
        return True

    def type_text(self, text: str) -> None:
        """Type `text` one character at a time at the selection."""
        for char in text:
            selection = self._state.selection
            if self.handle_text_input(selection.start, selection.end, char):
                continue
            self.dispatch(self._state.tr.insert_text(char, selection.start, selection.end))
