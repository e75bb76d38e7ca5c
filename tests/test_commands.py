"""
Tests for the selection-scoped command engine.
"""

from __future__ import annotations

from richcopy import schema
from richcopy.commands import PLACEHOLDER, CommandEngine
from richcopy.parser import parse_surface
from richcopy.surface.selection import Point, Selection
from richcopy.surface.tree import EditableSurface


def _engine(markup: str, anchor, focus=None):
    surface = EditableSurface(markup)
    if anchor is not None:
        surface.select(Point(path=anchor[0], offset=anchor[1]), Point(path=focus[0], offset=focus[1]) if focus else None)
    return surface, CommandEngine(surface)


class TestCurrentBlock:

    def test_walks_up_to_root_child(self):
        surface, engine = _engine("<p>a</p><ul><li><b>x</b></li></ul>", ((1, 0, 0, 0), 0))
        assert engine.get_current_block() is surface.root.contents[1]

    def test_none_without_selection(self):
        _, engine = _engine("<p>a</p>", None)
        assert engine.get_current_block() is None

    def test_none_at_root(self):
        _, engine = _engine("<p>a</p>", ((), 0))
        assert engine.get_current_block() is None


class TestToggleMark:

    def test_collapsed_inserts_placeholder(self):
        surface, engine = _engine("<p>Hello world</p>", ((0, 0), 5))
        engine.toggle_mark("bold")
        assert surface.markup == f"<p>Hello<b>{PLACEHOLDER}</b> world</p>"
        assert surface.selection == Selection.caret((0,), 2)

    def test_wraps_range_and_collapses_after(self):
        surface, engine = _engine("<p>Hello world</p>", ((0, 0), 6), ((0, 0), 11))
        engine.toggle_mark("italic")
        assert surface.markup == "<p>Hello <i>world</i></p>"
        assert surface.selection == Selection.caret((0,), 2)

    def test_backwards_range(self):
        surface, engine = _engine("<p>Hello world</p>", ((0, 0), 5), ((0, 0), 0))
        engine.toggle_mark("underline")
        assert surface.markup == "<p><u>Hello</u> world</p>"

    def test_range_across_blocks_is_wrapped_per_block(self):
        surface, engine = _engine("<p>ab</p><p>cd</p>", ((0, 0), 1), ((1, 0), 1))
        engine.toggle_mark("bold")
        assert surface.markup == "<p>a<b>b</b></p><p><b>c</b>d</p>"
        assert surface.selection == Selection.caret((1,), 1)
        doc = parse_surface(surface.root)
        assert [b.type for b in doc.children] == ["paragraph", "paragraph"]

    def test_range_across_list_items(self):
        surface, engine = _engine("<ul><li>ab</li><li>cd</li></ul>", ((0, 0, 0), 0), ((0, 1, 0), 2))
        engine.toggle_mark("bold")
        assert surface.markup == "<ul><li><b>ab</b></li><li><b>cd</b></li></ul>"

    def test_no_selection_is_a_noop(self):
        surface, engine = _engine("<p>a</p>", None)
        assert engine.toggle_mark("bold") is None
        assert surface.markup == "<p>a</p>"

    def test_unknown_mark(self, caplog):
        surface, engine = _engine("<p>a</p>", ((0, 0), 0), ((0, 0), 1))
        assert engine.toggle_mark("strike") is None
        assert surface.markup == "<p>a</p>"
        assert "Unknown mark" in caplog.text

    def test_toggle_always_wraps(self):
        surface, engine = _engine("<p><b>a</b></p>", ((0, 0, 0), 0), ((0, 0, 0), 1))
        engine.toggle_mark("bold")
        assert surface.markup == "<p><b><b>a</b></b></p>"


class TestSetBlock:

    def test_paragraph_to_heading(self):
        surface, engine = _engine("<p>Hello <b>world</b></p>", ((0, 0), 0))
        engine.set_block("heading", {"level": 2})
        assert surface.markup == "<h2>Hello <b>world</b></h2>"
        assert surface.selection == Selection.caret((0, 0), 6)

    def test_heading_level_is_clamped(self):
        surface, engine = _engine("<p>x</p>", ((0, 0), 0))
        engine.set_block("heading", {"level": 9})
        assert surface.markup == "<h6>x</h6>"

    def test_quote_and_paragraph(self):
        surface, engine = _engine("<h1>x</h1>", ((0, 0), 1))
        engine.set_block("quote")
        assert surface.markup == "<blockquote>x</blockquote>"
        engine.set_block("paragraph")
        assert surface.markup == "<p>x</p>"

    def test_code_keeps_text_only(self):
        surface, engine = _engine("<p>a &lt; <b>b</b></p>", ((0, 0), 0))
        engine.set_block("code")
        assert surface.markup == "<pre><code>a &lt; b</code></pre>"
        block = parse_surface(surface.root).children[0]
        assert block.children[0].text == "a < b"

    def test_presentation_attrs_become_style(self):
        surface, engine = _engine("<p>x</p>", ((0, 0), 0))
        engine.set_block("paragraph", {"align": "center", "border": "1px solid"})
        assert surface.markup == '<p style="text-align:center;border:1px solid">x</p>'

    def test_without_current_block(self):
        surface, engine = _engine("<p>x</p>", None)
        assert engine.set_block("heading", {"level": 1}) is None
        assert surface.markup == "<p>x</p>"


class TestListsAndRules:

    def test_set_list(self):
        surface, engine = _engine("<p>item</p>", ((0, 0), 2))
        engine.set_list(True)
        assert surface.markup == "<ol><li>item</li></ol>"
        assert surface.selection == Selection.caret((0, 0, 0), 4)

    def test_set_list_never_merges(self):
        surface, engine = _engine("<ul><li>a</li></ul><p>b</p>", ((1, 0), 0))
        engine.set_list(False)
        doc = parse_surface(surface.root)
        assert [b.type for b in doc.children] == ["list", "list"]

    def test_insert_hr_after_current_block(self):
        surface, engine = _engine("<p>a</p><p>b</p>", ((0, 0), 0))
        engine.insert_hr()
        doc = parse_surface(surface.root)
        assert [b.type for b in doc.children] == ["paragraph", "hr", "paragraph"]

    def test_insert_hr_without_block(self):
        _, engine = _engine("<p>a</p>", None)
        assert engine.insert_hr() is None


class TestLineBreak:

    def test_inserts_break_at_caret(self):
        surface, engine = _engine("<p>abcd</p>", ((0, 0), 2))
        engine.insert_line_break()
        leaves = parse_surface(surface.root).children[0].children
        assert [leaf.type for leaf in leaves] == ["text", "br", "text"]
        assert surface.selection == Selection.caret((0,), 2)

    def test_replaces_selected_text(self):
        surface, engine = _engine("<p>abcd</p>", ((0, 0), 1), ((0, 0), 3))
        engine.insert_line_break()
        leaves = parse_surface(surface.root).children[0].children
        assert [getattr(leaf, "text", None) for leaf in leaves] == ["a", None, "d"]


class TestBareRootText:

    def test_mark_over_bare_text_makes_a_paragraph(self):
        surface, engine = _engine("typed<p>b</p>", ((0,), 0), ((0,), 5))
        engine.toggle_mark("bold")
        assert surface.markup == "<p><b>typed</b></p><p>b</p>"
        assert surface.selection == Selection.caret((0,), 1)
        doc = parse_surface(surface.root)
        assert [b.type for b in doc.children] == ["paragraph", "paragraph"]
        assert doc.children[0].children[0].marks.bold is True

    def test_placeholder_in_bare_text(self):
        surface, engine = _engine("typed", ((0,), 2))
        engine.toggle_mark("italic")
        assert surface.markup == f"<p>ty<i>{PLACEHOLDER}</i>ped</p>"

    def test_range_from_bare_text_into_a_block(self):
        surface, engine = _engine("ab<p>cd</p>", ((0,), 1), ((1, 0), 1))
        engine.toggle_mark("underline")
        assert surface.markup == "<p>a<u>b</u></p><p><u>c</u>d</p>"

    def test_line_break_at_root_caret(self):
        surface, engine = _engine("<p>a</p>", ((), 0))
        engine.insert_line_break()
        doc = parse_surface(surface.root)
        assert [b.type for b in doc.children] == ["paragraph", "paragraph"]
        assert doc.children[0].children[0].type == "br"


class TestInsertBlocks:

    def test_insert_table(self):
        surface, engine = _engine("<p>a</p><p>b</p>", ((0, 0), 0))
        engine.insert_table(2, 3)
        doc = parse_surface(surface.root)
        assert [b.type for b in doc.children] == ["paragraph", "table", "paragraph"]
        table = doc.children[1]
        assert len(table.children) == 2
        assert all(len(row) == 3 for row in table.children)
        assert table.children[0][0][0].text == PLACEHOLDER
        assert surface.selection == Selection.caret((), 2)

    def test_table_size_is_at_least_one(self):
        surface, engine = _engine("<p>a</p>", ((0, 0), 0))
        engine.insert_table(-3, 1)
        assert parse_surface(surface.root).children[1].children == [[[schema.text(PLACEHOLDER)]]]

    def test_table_size_defaults(self):
        surface, engine = _engine("<p>a</p>", ((0, 0), 0))
        engine.insert_table(0, "many")
        table = parse_surface(surface.root).children[1]
        assert [len(row) for row in table.children] == [2, 2]

    def test_insert_image(self):
        surface, engine = _engine("<p>a</p><p>b</p>", ((0, 0), 1))
        engine.insert_image("pic.png")
        doc = parse_surface(surface.root)
        assert doc.children[1] == schema.image("pic.png")
        assert surface.selection == Selection.caret((), 2)

    def test_insert_image_without_source(self):
        surface, engine = _engine("<p>a</p>", ((0, 0), 0))
        assert engine.insert_image("") is None
        assert surface.markup == "<p>a</p>"

    def test_insert_at_root_caret(self):
        surface, engine = _engine("<p>a</p><p>b</p>", ((), 1))
        engine.insert_image("pic.png")
        assert [b.type for b in parse_surface(surface.root).children] == ["paragraph", "image", "paragraph"]

    def test_insert_embed_for_video_host(self):
        surface, engine = _engine("<p>a</p>", ((0, 0), 0))
        frame = engine.insert_embed("https://www.youtube.com/watch?v=abc")
        assert frame["src"] == "https://www.youtube.com/embed/abc"
        assert frame.has_attr("allowfullscreen")
        assert not frame.has_attr("sandbox")
        assert parse_surface(surface.root).children[1] == schema.embed("https://www.youtube.com/embed/abc")

    def test_insert_embed_for_other_host_is_sandboxed(self):
        surface, engine = _engine("<p>a</p>", ((0, 0), 0))
        frame = engine.insert_embed("https://example.com/widget")
        assert frame["src"] == "https://example.com/widget"
        assert frame["sandbox"] == surface.settings.embed_sandbox

    def test_insert_without_selection(self):
        surface, engine = _engine("<p>a</p>", None)
        assert engine.insert_table() is None
        assert engine.insert_embed("https://example.com") is None
        assert surface.markup == "<p>a</p>"
