"""
Runtime settings for the editor core.

Values come from the environment (optionally seeded from a ``.env`` file):

    RICHCOPY_HTML_PARSER   BeautifulSoup tree builder for surface markup
    RICHCOPY_EMBED_SANDBOX sandbox tokens for frames from unrecognised hosts
    RICHCOPY_LOG_LEVEL     default logging level for the CLI
"""

from __future__ import annotations

import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_EMBED_SANDBOX = "allow-scripts allow-same-origin allow-popups allow-forms"


class EditorSettings(BaseModel):
    html_parser: str = Field(default="html.parser", description="BeautifulSoup features string")
    embed_sandbox: str = Field(default=DEFAULT_EMBED_SANDBOX, description="iframe sandbox tokens")
    log_level: str = Field(default="INFO")

    @classmethod
    def from_env(cls) -> "EditorSettings":
        load_dotenv()
        return cls(
            html_parser=os.environ.get("RICHCOPY_HTML_PARSER", "html.parser"),
            embed_sandbox=os.environ.get("RICHCOPY_EMBED_SANDBOX", DEFAULT_EMBED_SANDBOX),
            log_level=os.environ.get("RICHCOPY_LOG_LEVEL", "INFO").upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> EditorSettings:
    """Process-wide settings, read once."""
    return EditorSettings.from_env()
