"""
Selection-scoped structural commands on the editable surface.

Commands mutate the surface only; the model is re-derived afterwards by the
caller (see ``DocumentController``). Missing selections and missing current
blocks are not errors: the command simply does nothing.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from bs4 import NavigableString, Tag
from bs4.element import PageElement

from richcopy.embeds import resolve_embed
from richcopy.renderer import style_value
from richcopy.surface.ranges import block_segments, delete_range, insert_node, wrap_range
from richcopy.surface.tree import EditableSurface, Position, is_text, text_content

logger = logging.getLogger(__name__)

MARK_TAGS = {"bold": "b", "italic": "i", "underline": "u"}

# Caret placeholder inside an otherwise empty mark wrapper or table cell.
PLACEHOLDER = "\u200b"

_BLOCK_TAGS = {"quote": "blockquote", "paragraph": "p"}

DEFAULT_TABLE_SIZE = 2


def _count(value: Any, default: int = DEFAULT_TABLE_SIZE) -> int:
    try:
        number = int(value) or default
    except (TypeError, ValueError):
        number = default
    return max(1, number)


class CommandEngine:
    """Applies formatting commands to ``surface`` at its current selection."""

    def __init__(self, surface: EditableSurface) -> None:
        self.surface = surface

    def _ordered_range(self) -> Optional[tuple]:
        selection = self.surface.selection
        if selection is None:
            return None
        start = self.surface.resolve(selection.start)
        end = self.surface.resolve(selection.end)
        if start is None or end is None:
            logger.debug("Selection points outside the surface")
            return None
        return start, end

    def _inline_position(self, position: Position) -> Position:
        """``position`` with a block around it.

        Bare text sitting directly under the root is moved into a new
        paragraph, and a boundary on the root itself gets an empty paragraph,
        so inline elements never land between blocks.
        """
        node, offset = position
        root = self.surface.root
        if node is root:
            block = self.surface.new_tag("p")
            root.insert(offset, block)
            return Position(block, 0)
        if is_text(node) and node.parent is root:
            block = self.surface.new_tag("p")
            node.replace_with(block)
            block.append(node)
        return position

    def get_current_block(self) -> Optional[PageElement]:
        """The direct child of the surface root that holds the selection anchor."""
        selection = self.surface.selection
        if selection is None:
            return None
        node = self.surface.node_at(selection.anchor.path)
        root = self.surface.root
        while node is not None and node is not root:
            if node.parent is root:
                return node
            node = node.parent
        return None

    # ── Inline ───────────────────────────────────────────────────────

    def toggle_mark(self, mark: str) -> Optional[Tag]:
        """Wrap the selected range in the mark's element.

        A collapsed selection gets an empty placeholder wrapper at the caret.
        Ranges that cross blocks are wrapped block by block. The caret ends up
        right after the last wrapper inserted.
        """
        tag_name = MARK_TAGS.get(mark)
        if tag_name is None:
            logger.warning(f"Unknown mark {mark!r}")
            return None
        bounds = self._ordered_range()
        if bounds is None:
            return None
        start, end = bounds

        if self.surface.selection.collapsed:
            wrapper = self.surface.new_tag(tag_name)
            wrapper.append(NavigableString(PLACEHOLDER))
            insert_node(self.surface, self._inline_position(start), wrapper)
            self.surface.place_caret_after(wrapper)
            return wrapper

        last = None
        for seg_start, seg_end in block_segments(self.surface, start, end):
            seg_start = self._inline_position(seg_start)
            seg_end = self._inline_position(seg_end)
            wrapped = wrap_range(self.surface, seg_start, seg_end, self.surface.new_tag(tag_name))
            if wrapped is not None:
                last = wrapped
        if last is not None:
            self.surface.place_caret_after(last)
        return last

    def insert_line_break(self) -> Optional[Tag]:
        """Replace the selection with a ``<br>`` and put the caret after it."""
        bounds = self._ordered_range()
        if bounds is None:
            return None
        start, end = bounds
        if not self.surface.selection.collapsed:
            start = delete_range(self.surface, start, end)
        line_break = insert_node(self.surface, self._inline_position(start), self.surface.new_tag("br"))
        self.surface.place_caret_after(line_break)
        return line_break

    # ── Block ────────────────────────────────────────────────────────

    def set_block(self, block_type: str, attrs: Optional[Dict[str, Any]] = None) -> Optional[Tag]:
        """Replace the current block with a ``block_type`` element holding the same content."""
        attrs = attrs or {}
        block = self.get_current_block()
        if block is None:
            logger.debug(f"set_block({block_type!r}) without a current block")
            return None

        if block_type == "code":
            element = self.surface.new_tag("pre")
            inner = self.surface.new_tag("code")
            inner.string = text_content(block)
            element.append(inner)
        else:
            if block_type == "heading":
                try:
                    level = int(attrs.get("level", 1))
                except (TypeError, ValueError):
                    level = 1
                element = self.surface.new_tag(f"h{min(6, max(1, level))}")
            else:
                element = self.surface.new_tag(_BLOCK_TAGS.get(block_type, "p"))
            self._move_contents(block, element)

        style = style_value(attrs)
        if style:
            element["style"] = style
        block.replace_with(element)
        self.surface.place_caret_inside(element)
        return element

    def set_list(self, ordered: bool) -> Optional[Tag]:
        """Replace the current block with a new one-item list.

        Each call builds a fresh list; an adjacent list is never extended.
        """
        block = self.get_current_block()
        if block is None:
            logger.debug("set_list without a current block")
            return None
        container = self.surface.new_tag("ol" if ordered else "ul")
        item = self.surface.new_tag("li")
        self._move_contents(block, item)
        container.append(item)
        block.replace_with(container)
        self.surface.place_caret_inside(item)
        return container

    def insert_hr(self) -> Optional[Tag]:
        block = self.get_current_block()
        if block is None:
            logger.debug("insert_hr without a current block")
            return None
        rule = self.surface.new_tag("hr")
        block.insert_after(rule)
        return rule

    # ── Inserted blocks ──────────────────────────────────────────────

    def _insert_block(self, element: Tag) -> Optional[Tag]:
        """Put ``element`` after the current block and the caret after it.

        With the caret directly on the root, ``element`` goes in at the caret.
        """
        bounds = self._ordered_range()
        if bounds is None:
            logger.debug(f"Cannot insert <{element.name}> without a selection")
            return None
        block = self.get_current_block()
        if block is not None:
            block.insert_after(element)
        else:
            start = bounds[0]
            root = self.surface.root
            root.insert(start.offset if start.node is root else len(root.contents), element)
        self.surface.place_caret_after(element)
        return element

    def insert_table(self, rows: Any = DEFAULT_TABLE_SIZE, cols: Any = DEFAULT_TABLE_SIZE) -> Optional[Tag]:
        """Insert a ``rows`` x ``cols`` table of placeholder cells (at least 1 x 1)."""
        table = self.surface.new_tag("table")
        for _ in range(_count(rows)):
            row = self.surface.new_tag("tr")
            for _ in range(_count(cols)):
                cell = self.surface.new_tag("td")
                cell.append(NavigableString(PLACEHOLDER))
                row.append(cell)
            table.append(row)
        return self._insert_block(table)

    def insert_image(self, src: Optional[str]) -> Optional[Tag]:
        if not src:
            logger.debug("insert_image without a source")
            return None
        return self._insert_block(self.surface.new_tag("img", src=src))

    def insert_embed(self, url: Optional[str]) -> Optional[Tag]:
        """Insert a frame for ``url``; known video hosts get their player URL."""
        if not url:
            logger.debug("insert_embed without a URL")
            return None
        frame = resolve_embed(url, self.surface.settings.embed_sandbox)
        attrs = {"src": frame.src}
        if frame.width:
            attrs["width"] = frame.width
        if frame.height:
            attrs["height"] = frame.height
        if frame.allow_fullscreen:
            attrs["frameborder"] = "0"
            attrs["allowfullscreen"] = ""
        if frame.sandbox:
            attrs["sandbox"] = frame.sandbox
        return self._insert_block(self.surface.new_tag("iframe", **attrs))

    @staticmethod
    def _move_contents(source: PageElement, target: Tag) -> None:
        if is_text(source):
            target.append(NavigableString(str(source)))
            return
        if isinstance(source, Tag):
            for child in list(source.contents):
                target.append(child)
