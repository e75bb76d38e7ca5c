"""
Validation pass for documents.

The factories in ``richcopy.schema`` never fail, so nothing stops a caller
from building a heading at level 9 or an image without a source. This module
checks a document (model or wire-format dict) and reports every problem as a
structured issue instead of raising.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Literal, Union

from pydantic import BaseModel, Field, ValidationError

from richcopy.schema import (
    SCHEMA_VERSION,
    CodeBlock,
    Document,
    EmbedBlock,
    Heading,
    ImageBlock,
    UnsupportedBlock,
)

logger = logging.getLogger(__name__)


class ValidationIssue(BaseModel):
    path: str = Field(description="Dotted location, e.g. 'children.2.attrs.level'")
    message: str
    severity: Literal["error", "warning"] = "error"


class ValidationReport(BaseModel):
    issues: List[ValidationIssue] = Field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not any(issue.severity == "error" for issue in self.issues)

    @property
    def errors(self) -> List[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == "error"]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == "warning"]


def _loc(parts: Any) -> str:
    return ".".join(str(p) for p in parts)


def _check_blocks(doc: Document, issues: List[ValidationIssue]) -> None:
    if doc.version != SCHEMA_VERSION:
        issues.append(ValidationIssue(path="version", message=f"Unsupported schema version {doc.version}"))
    if not doc.children:
        issues.append(ValidationIssue(path="children", message="A document needs at least one block"))

    for i, block in enumerate(doc.children):
        where = f"children.{i}"
        extra = block.attrs.__pydantic_extra__ or {}
        if "level" in extra:
            issues.append(ValidationIssue(path=f"{where}.attrs.level", message="Only headings carry a level"))

        if isinstance(block, Heading):
            if not 1 <= block.attrs.level <= 6:
                issues.append(ValidationIssue(
                    path=f"{where}.attrs.level",
                    message=f"Heading level must be between 1 and 6, got {block.attrs.level}",
                ))
        elif isinstance(block, CodeBlock):
            if len(block.children) != 1:
                issues.append(ValidationIssue(
                    path=f"{where}.children",
                    message=f"Code blocks hold exactly one text leaf, found {len(block.children)}",
                ))
            for j, leaf in enumerate(block.children):
                if leaf.marks.model_dump(exclude_none=True):
                    issues.append(ValidationIssue(
                        path=f"{where}.children.{j}.marks",
                        message="Code text cannot carry marks",
                    ))
        elif isinstance(block, (ImageBlock, EmbedBlock)):
            if not block.attrs.src:
                issues.append(ValidationIssue(path=f"{where}.attrs.src", message=f"{block.type} requires a src"))
        elif isinstance(block, UnsupportedBlock):
            kind = block.attrs.source_type or block.attrs.tag or "unknown"
            issues.append(ValidationIssue(
                path=where,
                message=f"Unsupported content ({kind}) is preserved but cannot be edited",
                severity="warning",
            ))


def validate_document(value: Union[Document, Dict[str, Any]]) -> ValidationReport:
    """Validate ``value`` against the schema and check the tree invariants."""
    data = value.model_dump(warnings=False) if isinstance(value, Document) else value
    issues: List[ValidationIssue] = []

    try:
        doc = Document.model_validate(data)
    except ValidationError as e:
        for err in e.errors():
            issues.append(ValidationIssue(path=_loc(err["loc"]), message=err["msg"]))
        logger.debug(f"Document failed schema validation with {len(issues)} issues")
        return ValidationReport(issues=issues)

    _check_blocks(doc, issues)
    return ValidationReport(issues=issues)
