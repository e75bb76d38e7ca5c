"""
Pydantic v2 models for the rich-text document schema (version 1).

The document is a typed node tree:

    doc → blocks → inline leaves (text / br)

Every node variant carries a ``Literal`` ``type`` tag, so Block and Inline
content are closed discriminated unions. The factory functions at the bottom
of this module always return a node, even with no arguments; they build nodes
with ``model_construct`` and therefore pass malformed optional attributes
through untouched. Use ``richcopy.validation.validate_document`` to check a
tree before trusting it.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


# ── Inline leaves ────────────────────────────────────────────────────

class Marks(BaseModel):
    """Boolean text styles. An absent mark means false."""
    bold: Optional[bool] = Field(default=None, strict=True)
    italic: Optional[bool] = Field(default=None, strict=True)
    underline: Optional[bool] = Field(default=None, strict=True)

    model_config = ConfigDict(extra="forbid")


class TextNode(BaseModel):
    type: Literal["text"] = "text"
    text: str = Field(default="", strict=True)
    marks: Marks = Field(default_factory=Marks)

    model_config = ConfigDict(extra="forbid")


class BrNode(BaseModel):
    type: Literal["br"] = "br"

    model_config = ConfigDict(extra="forbid")


InlineNode = Annotated[Union[TextNode, BrNode], Field(discriminator="type")]


# ── Attributes ───────────────────────────────────────────────────────

class BlockAttrs(BaseModel):
    """Presentation properties shared by every block. Unknown keys pass through."""
    align: Optional[str] = None
    padding: Optional[str] = None
    margin: Optional[str] = None
    border: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class HeadingAttrs(BlockAttrs):
    level: int = Field(default=1, strict=True)


class ListAttrs(BlockAttrs):
    ordered: bool = Field(default=False, strict=True)


class MediaAttrs(BlockAttrs):
    src: Optional[str] = None


class UnsupportedAttrs(BlockAttrs):
    tag: Optional[str] = Field(default=None, description="Surface element name, when parsed from markup")
    source_type: Optional[str] = Field(default=None, description="Model node type, when loaded from JSON")


# ── Blocks ───────────────────────────────────────────────────────────

class Paragraph(BaseModel):
    type: Literal["paragraph"] = "paragraph"
    attrs: BlockAttrs = Field(default_factory=BlockAttrs)
    children: List[InlineNode] = Field(default_factory=list)


class Heading(BaseModel):
    type: Literal["heading"] = "heading"
    attrs: HeadingAttrs = Field(default_factory=HeadingAttrs)
    children: List[InlineNode] = Field(default_factory=list)


class Quote(BaseModel):
    type: Literal["quote"] = "quote"
    attrs: BlockAttrs = Field(default_factory=BlockAttrs)
    children: List[InlineNode] = Field(default_factory=list)


class CodeBlock(BaseModel):
    """Preformatted code. Holds exactly one unmarked text leaf."""
    type: Literal["code"] = "code"
    attrs: BlockAttrs = Field(default_factory=BlockAttrs)
    children: List[TextNode] = Field(default_factory=list)


class ListBlock(BaseModel):
    """Ordered or unordered list; each child paragraph is one list item."""
    type: Literal["list"] = "list"
    attrs: ListAttrs = Field(default_factory=ListAttrs)
    children: List[Paragraph] = Field(default_factory=list)


class TableBlock(BaseModel):
    """Rows of cells, each cell an inline-content array."""
    type: Literal["table"] = "table"
    attrs: BlockAttrs = Field(default_factory=BlockAttrs)
    children: List[List[List[InlineNode]]] = Field(default_factory=list)


class HrBlock(BaseModel):
    type: Literal["hr"] = "hr"
    attrs: BlockAttrs = Field(default_factory=BlockAttrs)


class ImageBlock(BaseModel):
    type: Literal["image"] = "image"
    attrs: MediaAttrs = Field(default_factory=MediaAttrs)


class EmbedBlock(BaseModel):
    type: Literal["embed"] = "embed"
    attrs: MediaAttrs = Field(default_factory=MediaAttrs)


class UnsupportedBlock(BaseModel):
    """Content the schema does not understand, preserved instead of dropped.

    ``markup`` holds the outer markup of a surface element the parser did not
    recognise; ``data`` holds the raw payload of a model node with an unknown
    ``type``.
    """
    type: Literal["unsupported"] = "unsupported"
    attrs: UnsupportedAttrs = Field(default_factory=UnsupportedAttrs)
    markup: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


BLOCK_TYPES = (
    Paragraph,
    Heading,
    Quote,
    CodeBlock,
    ListBlock,
    TableBlock,
    HrBlock,
    ImageBlock,
    EmbedBlock,
    UnsupportedBlock,
)

BlockNode = Annotated[
    Union[
        Paragraph,
        Heading,
        Quote,
        CodeBlock,
        ListBlock,
        TableBlock,
        HrBlock,
        ImageBlock,
        EmbedBlock,
        UnsupportedBlock,
    ],
    Field(discriminator="type"),
]

KNOWN_BLOCK_TYPES = frozenset(model.model_fields["type"].default for model in BLOCK_TYPES)


# ── Root document ────────────────────────────────────────────────────

class Document(BaseModel):
    """Root container. ``version`` is fixed at creation."""
    type: Literal["doc"] = "doc"
    version: int = Field(default=SCHEMA_VERSION, frozen=True)
    children: List[BlockNode] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _preserve_unknown_blocks(cls, data: Any) -> Any:
        """Wrap block payloads with an unknown ``type`` into unsupported blocks."""
        if not isinstance(data, dict):
            return data
        children = data.get("children")
        if not isinstance(children, list):
            return data

        wrapped = []
        for child in children:
            child_type = child.get("type") if isinstance(child, dict) else None
            if isinstance(child, dict) and child_type not in KNOWN_BLOCK_TYPES:
                logger.warning(f"Unknown block type {child_type!r}; keeping it as an unsupported block")
                child = {
                    "type": "unsupported",
                    "attrs": {"source_type": str(child_type)},
                    "data": child,
                }
            wrapped.append(child)
        return {**data, "children": wrapped}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Document":
        return cls.model_validate(data)

    def to_dict(self) -> Dict[str, Any]:
        """Wire-format dict: ``None`` fields are omitted, so absent marks mean false."""
        return self.model_dump(exclude_none=True, warnings=False)

    def to_json(self, indent: Optional[int] = None) -> str:
        return self.model_dump_json(exclude_none=True, indent=indent, warnings=False)


# ═══════════════════════════════════════════════════════════════════════
#  Node factories
# ═══════════════════════════════════════════════════════════════════════

def _attrs(model: type, values: Any = None, **fixed: Any) -> BlockAttrs:
    if isinstance(values, BaseModel):
        values = values.model_dump(exclude_none=True, warnings=False)
    merged = {**fixed, **(values or {})}
    return model.model_construct(**merged)


def _marks(values: Any = None) -> Marks:
    if isinstance(values, Marks):
        return values.model_copy()
    return Marks.model_construct(**(values or {}))


def _inline(children: Optional[List[Any]]) -> List[Any]:
    return [text("")] if children is None else list(children)


def text(value: str = "", marks: Any = None) -> TextNode:
    return TextNode.model_construct(text=value, marks=_marks(marks))


def br() -> BrNode:
    return BrNode.model_construct()


def paragraph(children: Optional[List[Any]] = None, attrs: Any = None) -> Paragraph:
    return Paragraph.model_construct(attrs=_attrs(BlockAttrs, attrs), children=_inline(children))


def heading(level: Any = 1, children: Optional[List[Any]] = None, attrs: Any = None) -> Heading:
    """Heading block. A ``level`` key inside ``attrs`` wins over ``level``."""
    return Heading.model_construct(
        attrs=_attrs(HeadingAttrs, attrs, level=level),
        children=_inline(children),
    )


def quote(children: Optional[List[Any]] = None, attrs: Any = None) -> Quote:
    return Quote.model_construct(attrs=_attrs(BlockAttrs, attrs), children=_inline(children))


def code(text_content: str = "", attrs: Any = None) -> CodeBlock:
    return CodeBlock.model_construct(attrs=_attrs(BlockAttrs, attrs), children=[text(text_content)])


def list_(ordered: bool = False, items: Optional[List[Any]] = None, attrs: Any = None) -> ListBlock:
    return ListBlock.model_construct(
        attrs=_attrs(ListAttrs, attrs, ordered=ordered),
        children=list(items or []),
    )


def table(rows: Optional[List[Any]] = None, attrs: Any = None) -> TableBlock:
    return TableBlock.model_construct(attrs=_attrs(BlockAttrs, attrs), children=list(rows or []))


def hr(attrs: Any = None) -> HrBlock:
    return HrBlock.model_construct(attrs=_attrs(BlockAttrs, attrs))


def image(src: Optional[str] = None, attrs: Any = None) -> ImageBlock:
    return ImageBlock.model_construct(attrs=_attrs(MediaAttrs, attrs, src=src))


def embed(src: Optional[str] = None, attrs: Any = None) -> EmbedBlock:
    return EmbedBlock.model_construct(attrs=_attrs(MediaAttrs, attrs, src=src))


def unsupported(
    markup: Optional[str] = None,
    tag: Optional[str] = None,
    source_type: Optional[str] = None,
    data: Optional[Dict[str, Any]] = None,
) -> UnsupportedBlock:
    return UnsupportedBlock.model_construct(
        attrs=_attrs(UnsupportedAttrs, None, tag=tag, source_type=source_type),
        markup=markup,
        data=data,
    )


def document(children: Optional[List[Any]] = None) -> Document:
    """Document root; an empty ``children`` list becomes one empty paragraph."""
    return Document.model_construct(children=list(children) if children else [paragraph()])


def empty_document() -> Document:
    return document()
