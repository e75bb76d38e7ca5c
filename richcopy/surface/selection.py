"""
Selection value types.

A ``Point`` addresses a boundary inside the editable surface by a path of
child indexes from the surface root plus an offset. The offset is a character
offset when the path ends at a text run, and a child index when it ends at an
element (the position before that child).
"""

from __future__ import annotations

from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field


class Point(BaseModel):
    path: Tuple[int, ...] = Field(default_factory=tuple)
    offset: int = 0

    model_config = ConfigDict(frozen=True)

    @property
    def key(self) -> Tuple[int, ...]:
        """Sort key in document order.

        A boundary before child ``i`` of a node is a prefix of every key
        inside child ``i``, so plain tuple ordering does the right thing.
        """
        return self.path + (self.offset,)


class Selection(BaseModel):
    """Anchor is where the selection started, focus where it ended."""
    anchor: Point
    focus: Point

    model_config = ConfigDict(frozen=True)

    @classmethod
    def caret(cls, path: Tuple[int, ...], offset: int = 0) -> "Selection":
        point = Point(path=tuple(path), offset=offset)
        return cls(anchor=point, focus=point)

    @classmethod
    def span(
        cls,
        anchor_path: Tuple[int, ...],
        anchor_offset: int,
        focus_path: Tuple[int, ...],
        focus_offset: int,
    ) -> "Selection":
        return cls(
            anchor=Point(path=tuple(anchor_path), offset=anchor_offset),
            focus=Point(path=tuple(focus_path), offset=focus_offset),
        )

    @property
    def collapsed(self) -> bool:
        return self.anchor == self.focus

    @property
    def start(self) -> Point:
        return self.anchor if self.anchor.key <= self.focus.key else self.focus

    @property
    def end(self) -> Point:
        return self.focus if self.anchor.key <= self.focus.key else self.anchor
