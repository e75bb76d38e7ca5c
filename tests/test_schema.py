"""
Tests for the document schema and its node factories.

Tests:
1. Factory defaults (empty paragraph, empty document)
2. Wire format and round trip through the pydantic models
3. Unknown node types are preserved, not dropped
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from richcopy import schema
from richcopy.schema import Document, Heading, Paragraph, UnsupportedBlock


class TestFactories:

    def test_empty_document_is_one_empty_paragraph(self):
        doc = schema.document([])
        assert len(doc.children) == 1
        assert isinstance(doc.children[0], Paragraph)
        assert doc.children[0].children[0].text == ""
        assert doc == schema.empty_document()

    def test_document_header(self):
        doc = schema.empty_document()
        assert doc.type == "doc"
        assert doc.version == 1

    def test_version_cannot_be_reassigned(self):
        doc = schema.empty_document()
        with pytest.raises(ValidationError):
            doc.version = 2

    def test_heading_level_in_attrs_wins(self):
        h = schema.heading(1, [schema.text("T")], {"level": 3, "align": "center"})
        assert h.attrs.level == 3
        assert h.attrs.align == "center"

    def test_factories_never_raise_on_odd_input(self):
        h = schema.heading(42)
        assert h.attrs.level == 42
        img = schema.image()
        assert img.attrs.src is None

    def test_code_holds_one_text_leaf(self):
        block = schema.code("x = 1")
        assert len(block.children) == 1
        assert block.children[0].text == "x = 1"

    def test_list_ordered_flag(self):
        lst = schema.list_(True, [schema.paragraph([schema.text("a")])])
        assert lst.attrs.ordered is True
        assert len(lst.children) == 1

    def test_extra_attrs_pass_through(self):
        p = schema.paragraph(attrs={"data-id": "7"})
        assert p.attrs.model_dump(exclude_none=True) == {"data-id": "7"}


class TestWireFormat:

    def test_absent_marks_are_omitted(self):
        doc = schema.document([schema.paragraph([schema.text("Hi")])])
        data = doc.to_dict()
        assert data["type"] == "doc"
        assert data["version"] == 1
        assert data["children"][0] == {
            "type": "paragraph",
            "attrs": {},
            "children": [{"type": "text", "text": "Hi", "marks": {}}],
        }

    def test_dict_round_trip(self):
        doc = schema.document([
            schema.heading(2, [schema.text("Title", {"bold": True})]),
            schema.paragraph([schema.text("a"), schema.br(), schema.text("b")], {"align": "right"}),
            schema.list_(False, [schema.paragraph([schema.text("one")]), schema.paragraph([schema.text("two")])]),
            schema.code("print(1)"),
            schema.table([[[schema.text("c1")], [schema.text("c2")]]]),
            schema.hr(),
            schema.image("pic.png"),
            schema.embed("https://example.com/widget"),
        ])
        assert Document.from_dict(doc.to_dict()) == doc

    def test_json_output(self):
        doc = schema.document([schema.paragraph([schema.text("x")])])
        assert '"type":"doc"' in doc.to_json()
        assert "\n" in doc.to_json(indent=2)

    def test_discriminated_union_picks_variant(self):
        doc = Document.model_validate({
            "type": "doc",
            "children": [{"type": "heading", "attrs": {"level": 2}, "children": []}],
        })
        assert isinstance(doc.children[0], Heading)
        assert doc.children[0].attrs.level == 2


class TestUnknownNodes:

    def test_unknown_block_type_is_kept(self, caplog):
        payload = {"type": "video", "attrs": {"src": "clip.mp4"}}
        doc = Document.model_validate({"type": "doc", "children": [payload]})
        block = doc.children[0]
        assert isinstance(block, UnsupportedBlock)
        assert block.attrs.source_type == "video"
        assert block.data == payload
        assert "Unknown block type" in caplog.text

    def test_bad_inline_node_is_rejected(self):
        with pytest.raises(ValidationError):
            Document.model_validate({
                "type": "doc",
                "children": [{"type": "paragraph", "children": [{"type": "emoji"}]}],
            })
