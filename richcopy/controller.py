"""
DocumentController: owns the current model and wires commands to the surface.

Two write paths meet here:

    set_value(doc)  → render → replace the surface
    exec(command)   → mutate the surface → sync_from_surface() → model

The surface is authoritative between those calls; the model is a snapshot
that only ``sync_from_surface`` refreshes. Both value boundaries deep-copy.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Dict, Optional, Union

from richcopy import schema
from richcopy.commands import CommandEngine
from richcopy.config import EditorSettings
from richcopy.parser import parse_surface
from richcopy.renderer import render
from richcopy.schema import Document
from richcopy.surface.selection import Point, Selection
from richcopy.surface.tree import EditableSurface

logger = logging.getLogger(__name__)


class DocumentController:

    def __init__(self, surface: Optional[EditableSurface] = None, settings: Optional[EditorSettings] = None) -> None:
        self.surface = surface or EditableSurface(settings=settings)
        self.engine = CommandEngine(self.surface)
        self._doc: Document = schema.empty_document()
        self._commands: Dict[str, Callable[[], Any]] = {
            "bold": lambda: self.engine.toggle_mark("bold"),
            "italic": lambda: self.engine.toggle_mark("italic"),
            "underline": lambda: self.engine.toggle_mark("underline"),
            "h1": lambda: self.engine.set_block("heading", {"level": 1}),
            "h2": lambda: self.engine.set_block("heading", {"level": 2}),
            "p": lambda: self.engine.set_block("paragraph"),
            "quote": lambda: self.engine.set_block("quote"),
            "code": lambda: self.engine.set_block("code"),
            "ul": lambda: self.engine.set_list(False),
            "ol": lambda: self.engine.set_list(True),
            "hr": lambda: self.engine.insert_hr(),
        }
        if surface is not None and self.surface.root.contents:
            self.sync_from_surface()
        else:
            self.surface.load_markup(render(self._doc))

    @property
    def commands(self):
        return tuple(self._commands)

    # ── Value boundary ───────────────────────────────────────────────

    def get_value(self) -> Document:
        """Independent copy of the current model."""
        return self._doc.model_copy(deep=True)

    def set_value(self, doc: Union[Document, Dict[str, Any]]) -> None:
        """Install a copy of ``doc`` and re-render the surface from it.

        Parameters
        ----------
        doc : Document or dict
            A model instance, or its wire-format dict (validated here).
        """
        if isinstance(doc, Document):
            value = doc.model_copy(deep=True)
        else:
            value = Document.model_validate(copy.deepcopy(doc))
        if not value.children:
            value = schema.empty_document()
        self._doc = value
        self.surface.load_markup(render(value))
        logger.debug(f"Installed document with {len(value.children)} blocks")

    # ── Surface → model ──────────────────────────────────────────────

    def sync_from_surface(self) -> Document:
        self._doc = parse_surface(self.surface.root)
        return self._doc

    def on_input(self) -> Document:
        """Direct content edit on the surface; re-derive the model."""
        return self.sync_from_surface()

    # ── Commands ─────────────────────────────────────────────────────

    def exec(self, command: str) -> bool:
        """Run a named formatting command at the current selection.

        Returns ``False`` when nothing ran (no selection, unknown command).
        """
        action = self._commands.get(command)
        if action is None:
            logger.warning(f"Unknown command {command!r}")
            return False
        return self._run(command, action)

    def _run(self, name: str, action: Callable[[], Any]) -> bool:
        if self.surface.selection is None:
            logger.debug(f"Command {name!r} ignored: no selection")
            return False
        action()
        self.sync_from_surface()
        return True

    def line_break(self) -> bool:
        return self._run("line_break", self.engine.insert_line_break)

    def insert_table(self, rows: Any = 2, cols: Any = 2) -> bool:
        return self._run("insert_table", lambda: self.engine.insert_table(rows, cols))

    def insert_image(self, src: str) -> bool:
        return self._run("insert_image", lambda: self.engine.insert_image(src))

    def insert_embed(self, url: str) -> bool:
        """Insert a frame for ``url`` after the current block and re-derive the model."""
        return self._run("insert_embed", lambda: self.engine.insert_embed(url))

    def select(self, anchor: Point, focus: Optional[Point] = None) -> Selection:
        return self.surface.select(anchor, focus)

    @property
    def selection(self) -> Optional[Selection]:
        return self.surface.selection

    @property
    def markup(self) -> str:
        return self.surface.markup
