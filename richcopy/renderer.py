"""
Render a Document into HTML markup.

The output is a pure function of the model: the same document always renders
to byte-identical markup. Block dispatch goes through ``_BLOCK_RENDERERS``,
which is checked at import time to cover every block variant of the schema.
"""

from __future__ import annotations

import html
import json
import logging
from typing import Any, Callable, Dict, List, Optional

from richcopy.config import get_settings
from richcopy.embeds import resolve_embed
from richcopy.schema import (
    BLOCK_TYPES,
    BlockAttrs,
    BrNode,
    CodeBlock,
    Document,
    EmbedBlock,
    Heading,
    HrBlock,
    ImageBlock,
    ListBlock,
    Paragraph,
    Quote,
    TableBlock,
    TextNode,
    UnsupportedBlock,
)

logger = logging.getLogger(__name__)

# Outermost first.
MARK_TAGS = (("bold", "b"), ("italic", "i"), ("underline", "u"))

# Placeholder for model nodes of unknown type; the raw node rides along as JSON.
PLACEHOLDER_ATTR = "data-unsupported"
PAYLOAD_ATTR = "data-unsupported-payload"

_STYLE_KEYS = (("align", "text-align"), ("padding", "padding"), ("margin", "margin"), ("border", "border"))


def escape_text(value: str) -> str:
    """Escape the three reserved markup characters ``&``, ``<`` and ``>``."""
    return html.escape(value, quote=False)


def _attr(value: Any) -> str:
    return html.escape(str(value), quote=True)


def style_value(attrs: Any) -> str:
    """CSS declaration list for presentation attrs, in the fixed order align, padding, margin, border.

    ``attrs`` may be an attrs model or a plain mapping.
    """
    if attrs is None:
        return ""
    parts = []
    for key, css_name in _STYLE_KEYS:
        value = attrs.get(key) if isinstance(attrs, dict) else getattr(attrs, key, None)
        if value:
            parts.append(f"{css_name}:{value}")
    return ";".join(parts)


def style_declaration(attrs: Optional[BlockAttrs]) -> str:
    """`` style="k:v;k:v"`` for the opening tag, or ``""`` when no property is set."""
    value = style_value(attrs)
    if not value:
        return ""
    return f' style="{_attr(value)}"'


def render_inline(children: List[Any]) -> str:
    out = []
    for leaf in children:
        if isinstance(leaf, TextNode):
            chunk = escape_text(leaf.text or "")
            marks = leaf.marks
            for mark, tag in reversed(MARK_TAGS):
                if marks is not None and getattr(marks, mark, None):
                    chunk = f"<{tag}>{chunk}</{tag}>"
            out.append(chunk)
        elif isinstance(leaf, BrNode):
            out.append("<br />")
        else:
            logger.warning(f"Skipping unknown inline node: {leaf!r}")
    return "".join(out)


def _heading_level(heading: Heading) -> int:
    try:
        level = int(heading.attrs.level or 1)
    except (TypeError, ValueError):
        return 1
    return min(6, max(1, level))


# ── Per-type renderers ───────────────────────────────────────────────

def _render_paragraph(node: Paragraph) -> str:
    return f"<p{style_declaration(node.attrs)}>{render_inline(node.children)}</p>"


def _render_heading(node: Heading) -> str:
    level = _heading_level(node)
    return f"<h{level}{style_declaration(node.attrs)}>{render_inline(node.children)}</h{level}>"


def _render_quote(node: Quote) -> str:
    return f"<blockquote{style_declaration(node.attrs)}>{render_inline(node.children)}</blockquote>"


def _render_list(node: ListBlock) -> str:
    tag = "ol" if node.attrs.ordered else "ul"
    items = "".join(f"<li>{render_inline(item.children)}</li>" for item in node.children)
    return f"<{tag}{style_declaration(node.attrs)}>{items}</{tag}>"


def _render_code(node: CodeBlock) -> str:
    content = node.children[0].text if node.children else ""
    return f"<pre{style_declaration(node.attrs)}><code>{escape_text(content or '')}</code></pre>"


def _render_table(node: TableBlock) -> str:
    rows = []
    for row in node.children:
        cells = "".join(f"<td>{render_inline(cell)}</td>" for cell in row)
        rows.append(f"<tr>{cells}</tr>")
    return f"<table{style_declaration(node.attrs)}>{''.join(rows)}</table>"


def _render_hr(node: HrBlock) -> str:
    return f"<hr{style_declaration(node.attrs)} />"


def _render_image(node: ImageBlock) -> str:
    return f'<img src="{_attr(node.attrs.src or "")}"{style_declaration(node.attrs)} />'


def _render_embed(node: EmbedBlock) -> str:
    frame = resolve_embed(node.attrs.src or "", get_settings().embed_sandbox)
    extra = ""
    if frame.width:
        extra += f' width="{_attr(frame.width)}"'
    if frame.height:
        extra += f' height="{_attr(frame.height)}"'
    if frame.allow_fullscreen:
        extra += ' frameborder="0" allowfullscreen'
    if frame.sandbox:
        extra += f' sandbox="{_attr(frame.sandbox)}"'
    return f'<iframe src="{_attr(frame.src)}"{style_declaration(node.attrs)}{extra}></iframe>'


def _render_unsupported(node: UnsupportedBlock) -> str:
    if node.markup:
        logger.warning(f"Passing through unsupported <{node.attrs.tag}> markup unchanged")
        return node.markup
    source_type = node.attrs.source_type or "unknown"
    logger.warning(f"No renderer for node type {source_type!r}; emitting a placeholder")
    payload = ""
    if node.data is not None:
        packed = json.dumps(node.data, separators=(",", ":"), ensure_ascii=False, default=str)
        payload = f' {PAYLOAD_ATTR}="{_attr(packed)}"'
    return f'<div {PLACEHOLDER_ATTR}="{_attr(source_type)}"{payload}></div>'


_BLOCK_RENDERERS: Dict[type, Callable[[Any], str]] = {
    Paragraph: _render_paragraph,
    Heading: _render_heading,
    Quote: _render_quote,
    ListBlock: _render_list,
    CodeBlock: _render_code,
    TableBlock: _render_table,
    HrBlock: _render_hr,
    ImageBlock: _render_image,
    EmbedBlock: _render_embed,
    UnsupportedBlock: _render_unsupported,
}

_missing = set(BLOCK_TYPES) - set(_BLOCK_RENDERERS)
if _missing:
    raise RuntimeError(f"Block types without a renderer: {sorted(t.__name__ for t in _missing)}")


def render_block(node: Any) -> str:
    renderer = _BLOCK_RENDERERS.get(type(node))
    if renderer is None:
        # Only reachable for objects that bypassed the schema entirely.
        logger.warning(f"Cannot render {type(node).__name__}; emitting a placeholder")
        return f'<div {PLACEHOLDER_ATTR}="{_attr(getattr(node, "type", "unknown"))}"></div>'
    return renderer(node)


def render(doc: Document) -> str:
    """Render every block of ``doc`` in order and concatenate the markup."""
    return "".join(render_block(block) for block in doc.children)
