"""
Re-derive a Document from the editable surface.

Every call is a full re-derivation over the surface root's direct children;
nothing is diffed against a previous model. Element dispatch goes through
``_BLOCK_PARSERS``. Elements without an entry become unsupported blocks that
keep their outer markup, so nothing typed into the surface is silently lost.
Placeholders the renderer emits for unknown model nodes are read back into
the same unsupported block, payload included.

Inline parsing inspects only the immediate child element of a block: a
``<b>`` wrapping an ``<i>`` yields one bold text leaf, and the inner italic
is not reconstructed.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, Dict, List, Optional

from bs4 import Tag
from bs4.element import PageElement

from richcopy import schema
from richcopy.config import EditorSettings
from richcopy.renderer import PAYLOAD_ATTR, PLACEHOLDER_ATTR
from richcopy.schema import Document
from richcopy.surface.tree import EditableSurface, is_text, text_content

logger = logging.getLogger(__name__)

MARK_BY_TAG = {"b": "bold", "i": "italic", "u": "underline"}

_STYLE_PATTERNS = {
    "align": re.compile(r"text-align\s*:\s*([^;]+)"),
    "padding": re.compile(r"(?<![a-z-])padding\s*:\s*([^;]+)"),
    "margin": re.compile(r"(?<![a-z-])margin\s*:\s*([^;]+)"),
    "border": re.compile(r"(?<![a-z-])border\s*:\s*([^;]+)"),
}

_TABLE_SECTIONS = ("thead", "tbody", "tfoot")


def _extract_inline_styles(tag: Tag) -> Dict[str, Any]:
    """Pull presentation properties out of an inline ``style`` declaration."""
    props: Dict[str, Any] = {}
    style = tag.get("style", "")
    if not style:
        return props
    for key, pattern in _STYLE_PATTERNS.items():
        m = pattern.search(style)
        if m:
            props[key] = m.group(1).strip()
    return props


# ── Inline content ───────────────────────────────────────────────────

def parse_inline(element: Tag) -> List[Any]:
    """Inline leaves for the direct children of ``element``.

    An element with no inline children yields a single empty text leaf, the
    same default the factories use.
    """
    out: List[Any] = []
    for child in element.children:
        if is_text(child):
            out.append(schema.text(str(child)))
        elif not isinstance(child, Tag):
            continue
        elif child.name == "br":
            out.append(schema.br())
        else:
            marks = {}
            mark = MARK_BY_TAG.get(child.name)
            if mark:
                marks[mark] = True
            out.append(schema.text(text_content(child), marks))
    return out or [schema.text("")]


# ── Block parsers ────────────────────────────────────────────────────

def _parse_paragraph(tag: Tag) -> Any:
    return schema.paragraph(parse_inline(tag), _extract_inline_styles(tag))


def _parse_heading(tag: Tag) -> Any:
    return schema.heading(int(tag.name[1]), parse_inline(tag), _extract_inline_styles(tag))


def _parse_quote(tag: Tag) -> Any:
    return schema.quote(parse_inline(tag), _extract_inline_styles(tag))


def _parse_code(tag: Tag) -> Any:
    return schema.code(text_content(tag), _extract_inline_styles(tag))


def _parse_hr(tag: Tag) -> Any:
    return schema.hr(_extract_inline_styles(tag))


def _parse_list(tag: Tag) -> Any:
    items = []
    for child in tag.children:
        if isinstance(child, Tag) and child.name == "li":
            items.append(schema.paragraph(parse_inline(child)))
        elif isinstance(child, Tag) or (is_text(child) and child.strip()):
            logger.debug(f"Skipping stray {getattr(child, 'name', None) or 'text'} inside <{tag.name}>")
    return schema.list_(tag.name == "ol", items, _extract_inline_styles(tag))


def _table_rows(tag: Tag) -> List[Tag]:
    rows = []
    for child in tag.children:
        if not isinstance(child, Tag):
            continue
        if child.name == "tr":
            rows.append(child)
        elif child.name in _TABLE_SECTIONS:
            rows.extend(c for c in child.children if isinstance(c, Tag) and c.name == "tr")
        else:
            logger.debug(f"Skipping stray <{child.name}> inside <table>")
    return rows


def _parse_table(tag: Tag) -> Any:
    rows = []
    for row in _table_rows(tag):
        cells = [
            parse_inline(cell)
            for cell in row.children
            if isinstance(cell, Tag) and cell.name in ("td", "th")
        ]
        rows.append(cells)
    return schema.table(rows, _extract_inline_styles(tag))


def _parse_image(tag: Tag) -> Any:
    return schema.image(tag.get("src"), _extract_inline_styles(tag))


def _parse_embed(tag: Tag) -> Any:
    return schema.embed(tag.get("src"), _extract_inline_styles(tag))


def _parse_placeholder(tag: Tag) -> Any:
    """Unknown model node parked in a ``div[data-unsupported]`` placeholder."""
    source_type = tag.get(PLACEHOLDER_ATTR)
    if source_type is None:
        return _unsupported_markup(tag)
    data = None
    payload = tag.get(PAYLOAD_ATTR)
    if payload:
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            logger.warning(f"Dropping unreadable payload of {source_type!r} placeholder: {e}")
    return schema.unsupported(source_type=source_type, data=data)


def _unsupported_markup(tag: Tag) -> Any:
    logger.warning(f"Unrecognised <{tag.name}> on the surface; keeping it as an unsupported block")
    return schema.unsupported(markup=str(tag), tag=tag.name)


_BLOCK_PARSERS: Dict[str, Callable[[Tag], Any]] = {
    "p": _parse_paragraph,
    "h1": _parse_heading,
    "h2": _parse_heading,
    "h3": _parse_heading,
    "h4": _parse_heading,
    "h5": _parse_heading,
    "h6": _parse_heading,
    "blockquote": _parse_quote,
    "pre": _parse_code,
    "hr": _parse_hr,
    "ul": _parse_list,
    "ol": _parse_list,
    "table": _parse_table,
    "img": _parse_image,
    "iframe": _parse_embed,
    "div": _parse_placeholder,
}


def parse_block(node: PageElement) -> Optional[Any]:
    """Block node for one direct child of the surface root, or ``None`` to skip it."""
    if is_text(node):
        if not node.strip():
            return None
        return schema.paragraph([schema.text(str(node))])
    if not isinstance(node, Tag):
        return None

    parser = _BLOCK_PARSERS.get(node.name)
    if parser is None:
        return _unsupported_markup(node)
    return parser(node)


def parse_surface(root: Tag) -> Document:
    children = []
    for node in root.children:
        block = parse_block(node)
        if block is not None:
            children.append(block)
    logger.debug(f"Re-derived {len(children)} blocks from the surface")
    return schema.document(children)


def parse_markup(markup: str, settings: Optional[EditorSettings] = None) -> Document:
    """Load ``markup`` into a fresh surface and parse it."""
    surface = EditableSurface(markup, settings=settings)
    return parse_surface(surface.root)
