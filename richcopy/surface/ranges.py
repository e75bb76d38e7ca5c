"""
Range mutations on the editable surface.

Boundaries are first pinned with throwaway marker elements (splitting text
runs where needed); everything strictly between the two markers is then
moved out. Ancestors that are only partly inside the range are split: the
selected half moves out inside a shallow clone and the rest stays in place.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from bs4 import Tag
from bs4.element import PageElement

from richcopy.surface.tree import EditableSurface, Position, is_text, node_length

logger = logging.getLogger(__name__)

MARKER_TAG = "rte-range-marker"

# Containers whose children are blocks in their own right; a mark wrapper
# must never be inserted directly into one of these.
STRUCTURAL_TAGS = frozenset({"ul", "ol", "table", "thead", "tbody", "tfoot", "tr"})
NON_TEXT_TAGS = frozenset({"hr", "img", "iframe", "br"})


def common_ancestor(a: PageElement, b: PageElement) -> Optional[PageElement]:
    seen = set()
    node = a
    while node is not None:
        seen.add(id(node))
        node = node.parent
    node = b
    while node is not None:
        if id(node) in seen:
            return node
        node = node.parent
    return None


def child_toward(ancestor: PageElement, node: PageElement) -> PageElement:
    """The child of ``ancestor`` that is, or contains, ``node``."""
    while node.parent is not ancestor:
        node = node.parent
    return node


# ── Markers ──────────────────────────────────────────────────────────

def _place_marker(surface: EditableSurface, position: Position) -> Tuple[Tag, PageElement]:
    """Insert a marker at ``position``.

    Returns the marker and the node now holding the text before the boundary
    (the left half when a text run had to be split).
    """
    marker = surface.new_tag(MARKER_TAG)
    node, offset = position
    if is_text(node):
        parent = node.parent
        index = parent.index(node)
        if offset <= 0:
            parent.insert(index, marker)
            return marker, node
        if offset >= len(node):
            parent.insert(index + 1, marker)
            return marker, node
        left = type(node)(node[:offset])
        right = type(node)(node[offset:])
        node.replace_with(left)
        parent.insert(index + 1, marker)
        parent.insert(index + 2, right)
        return marker, left
    node.insert(min(offset, len(node.contents)), marker)
    return marker, node


def _place_markers(surface: EditableSurface, start: Position, end: Position) -> Tuple[Tag, Tag]:
    # End first: inserting at the later boundary never shifts the earlier one.
    end_marker, end_left = _place_marker(surface, end)
    if start.node is end.node and is_text(start.node):
        start = Position(end_left, start.offset)
    start_marker, _ = _place_marker(surface, start)
    return start_marker, end_marker


def _split_after(surface: EditableSurface, node: Tag, marker: Tag) -> Optional[Tag]:
    clone = surface.clone_shallow(node)
    child = child_toward(node, marker)
    if child is not marker:
        inner = _split_after(surface, child, marker)
        if inner is not None:
            clone.append(inner)
    for sibling in list(child.next_siblings):
        clone.append(sibling)
    return clone if clone.contents else None


def _split_before(surface: EditableSurface, node: Tag, marker: Tag) -> Optional[Tag]:
    clone = surface.clone_shallow(node)
    child = child_toward(node, marker)
    for sibling in reversed(list(child.previous_siblings)):
        clone.append(sibling)
    if child is not marker:
        inner = _split_before(surface, child, marker)
        if inner is not None:
            clone.append(inner)
    return clone if clone.contents else None


def _extract_between(surface: EditableSurface, start_marker: Tag, end_marker: Tag) -> Tuple[List[PageElement], PageElement]:
    """Move out everything between the markers.

    Returns the extracted nodes in document order and the node before which
    they used to start (the range's collapse point).
    """
    container = common_ancestor(start_marker, end_marker)
    first = child_toward(container, start_marker)
    last = child_toward(container, end_marker)

    fragment: List[PageElement] = []
    if first is not start_marker:
        head = _split_after(surface, first, start_marker)
        if head is not None:
            fragment.append(head)

    middle = []
    for sibling in first.next_siblings:
        if sibling is last:
            break
        middle.append(sibling)
    for sibling in middle:
        fragment.append(sibling.extract())

    if last is not end_marker:
        tail = _split_before(surface, last, end_marker)
        if tail is not None:
            fragment.append(tail)
    return fragment, last


# ═══════════════════════════════════════════════════════════════════════
#  Public operations
# ═══════════════════════════════════════════════════════════════════════

def wrap_range(surface: EditableSurface, start: Position, end: Position, wrapper: Tag) -> Optional[Tag]:
    """Extract ``[start, end)`` into ``wrapper`` and insert it where the range began.

    Returns ``None`` (and leaves ``wrapper`` detached) when the range held nothing.
    """
    start_marker, end_marker = _place_markers(surface, start, end)
    fragment, collapse_point = _extract_between(surface, start_marker, end_marker)
    if fragment:
        for node in fragment:
            wrapper.append(node)
        collapse_point.insert_before(wrapper)
    start_marker.extract()
    end_marker.extract()
    return wrapper if fragment else None


def delete_range(surface: EditableSurface, start: Position, end: Position) -> Position:
    """Remove ``[start, end)`` and return the collapsed position left behind."""
    start_marker, end_marker = _place_markers(surface, start, end)
    _, collapse_point = _extract_between(surface, start_marker, end_marker)
    start_marker.extract()
    parent = collapse_point.parent
    index = parent.index(collapse_point)
    end_marker.extract()
    return Position(parent, index)


def insert_node(surface: EditableSurface, position: Position, node: PageElement) -> PageElement:
    marker, _ = _place_marker(surface, position)
    marker.replace_with(node)
    return node


def block_segments(surface: EditableSurface, start: Position, end: Position) -> List[Tuple[Position, Position]]:
    """Split ``[start, end)`` so that no piece crosses a block boundary.

    Blocks are the direct children of the surface root, and the items, rows
    and cells of lists and tables. Horizontal rules, images, frames and line
    breaks sitting between blocks are skipped.
    """
    container = common_ancestor(start.node, end.node)
    structural = container is surface.root or (
        isinstance(container, Tag) and container.name in STRUCTURAL_TAGS
    )
    if not structural:
        return [(start, end)]

    if start.node is container:
        first, start_inside = start.offset, False
    else:
        first, start_inside = container.index(child_toward(container, start.node)), True
    if end.node is container:
        last, end_inside = end.offset - 1, False
    else:
        last, end_inside = container.index(child_toward(container, end.node)), True

    segments: List[Tuple[Position, Position]] = []
    children = list(container.contents)
    for index in range(first, last + 1):
        child = children[index]
        if isinstance(child, Tag):
            if child.name in NON_TEXT_TAGS:
                continue
        elif not is_text(child):
            continue
        seg_start = start if (index == first and start_inside) else Position(child, 0)
        seg_end = end if (index == last and end_inside) else Position(child, node_length(child))
        if seg_start.node is seg_end.node and seg_start.offset >= seg_end.offset:
            continue
        segments.extend(block_segments(surface, seg_start, seg_end))
    return segments
