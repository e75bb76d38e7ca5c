"""
The editable surface: a live BeautifulSoup tree the user mutates directly.

The surface is rooted at ``<div class="rte-editor" contenteditable="true">``.
Its direct children are the document's blocks. A ``Selection`` (see
``richcopy.surface.selection``) addresses positions in it by child-index
paths, so nothing here depends on a browser or any other host API.
"""

from __future__ import annotations

import logging
from typing import List, NamedTuple, Optional, Tuple

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PageElement, PreformattedString

from richcopy.config import EditorSettings, get_settings
from richcopy.surface.selection import Point, Selection

logger = logging.getLogger(__name__)

ROOT_MARKUP = '<div class="rte-editor" contenteditable="true"></div>'


class Position(NamedTuple):
    """A resolved boundary: a live node plus an offset into it."""
    node: PageElement
    offset: int


def is_text(node: object) -> bool:
    """True for text runs; comments, doctypes and CDATA do not count."""
    return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)


def node_length(node: PageElement) -> int:
    if is_text(node):
        return len(node)
    if isinstance(node, Tag):
        return len(node.contents)
    return 0


def text_content(node: PageElement) -> str:
    """Rendered text of a node; ``<br>`` contributes a newline."""
    if is_text(node):
        return str(node)
    if not isinstance(node, Tag):
        return ""
    if node.name == "br":
        return "\n"
    return "".join(text_content(child) for child in node.children)


class EditableSurface:
    """Mutable surface tree plus the current selection."""

    def __init__(self, markup: str = "", settings: Optional[EditorSettings] = None) -> None:
        self.settings = settings or get_settings()
        self.soup = BeautifulSoup(ROOT_MARKUP, self.settings.html_parser)
        self.root: Tag = self.soup.find("div", class_="rte-editor")
        self.selection: Optional[Selection] = None
        if markup:
            self.load_markup(markup)

    # ── Content ──────────────────────────────────────────────────────

    def load_markup(self, markup: str) -> None:
        """Replace the whole surface with ``markup``. Drops the selection."""
        self.root.clear()
        fragment = BeautifulSoup(markup, self.settings.html_parser)
        container = fragment.body if fragment.body else fragment
        for child in list(container.contents):
            self.root.append(child)
        self.selection = None
        logger.debug(f"Surface loaded with {len(self.root.contents)} top-level nodes")

    @property
    def markup(self) -> str:
        return self.root.decode_contents()

    def new_tag(self, name: str, **attrs: str) -> Tag:
        return self.soup.new_tag(name, attrs=attrs)

    def clone_shallow(self, tag: Tag) -> Tag:
        attrs = {k: list(v) if isinstance(v, list) else v for k, v in tag.attrs.items()}
        return self.soup.new_tag(tag.name, attrs=attrs)

    # ── Addressing ───────────────────────────────────────────────────

    def lineage(self, node: Optional[PageElement]) -> Optional[List[PageElement]]:
        """``[node, parent, ..., root]``, or ``None`` when ``node`` is outside the surface."""
        chain = []
        while node is not None:
            chain.append(node)
            if node is self.root:
                return chain
            node = node.parent
        return None

    def node_at(self, path: Tuple[int, ...]) -> Optional[PageElement]:
        node: PageElement = self.root
        for index in path:
            if not isinstance(node, Tag) or not 0 <= index < len(node.contents):
                return None
            node = node.contents[index]
        return node

    def path_of(self, node: PageElement) -> Optional[Tuple[int, ...]]:
        chain = self.lineage(node)
        if chain is None:
            return None
        path = []
        for child in chain[:-1]:
            path.append(child.parent.index(child))
        return tuple(reversed(path))

    def resolve(self, point: Point) -> Optional[Position]:
        """Live node and clamped offset for ``point``, or ``None`` if the path is stale."""
        node = self.node_at(point.path)
        if node is None:
            return None
        return Position(node, max(0, min(point.offset, node_length(node))))

    # ── Selection helpers ────────────────────────────────────────────

    def select(self, anchor: Point, focus: Optional[Point] = None) -> Selection:
        self.selection = Selection(anchor=anchor, focus=focus or anchor)
        return self.selection

    def place_caret_after(self, node: PageElement) -> None:
        parent = node.parent
        self.selection = Selection.caret(self.path_of(parent), parent.index(node) + 1)

    def place_caret_inside(self, block: PageElement) -> None:
        """Caret at the end of ``block``; inside its first text run when it starts with one."""
        target = block
        if isinstance(block, Tag) and block.contents and is_text(block.contents[0]):
            target = block.contents[0]
        self.selection = Selection.caret(self.path_of(target), node_length(target))
