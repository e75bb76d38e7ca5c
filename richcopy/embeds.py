"""
Embed host resolution.

Known video hosts are rewritten to their player URLs and rendered as regular
frames; anything else is rendered inside a sandboxed frame. Resolution is
idempotent: a player URL resolves to itself.
"""

from __future__ import annotations

import re
from typing import Optional

from pydantic import BaseModel

_YOUTUBE_RE = re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/embed/)([a-zA-Z0-9_-]+)")
_VIMEO_RE = re.compile(r"vimeo\.com/(?:video/)?(\d+)")


class EmbedFrame(BaseModel):
    """Frame attributes for one embed node."""
    src: str
    width: Optional[str] = None
    height: Optional[str] = None
    sandbox: Optional[str] = None
    allow_fullscreen: bool = False


def resolve_embed(url: str, sandbox: str) -> EmbedFrame:
    yt = _YOUTUBE_RE.search(url)
    if yt:
        return EmbedFrame(
            src=f"https://www.youtube.com/embed/{yt.group(1)}",
            width="560",
            height="315",
            allow_fullscreen=True,
        )

    vimeo = _VIMEO_RE.search(url)
    if vimeo:
        return EmbedFrame(
            src=f"https://player.vimeo.com/video/{vimeo.group(1)}",
            width="560",
            height="315",
            allow_fullscreen=True,
        )

    return EmbedFrame(src=url, sandbox=sandbox)
