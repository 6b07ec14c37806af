"""Markdown rendering for outbound chat messages.

Prompts and replies are written in Markdown (``**bold**`` around the name
being asked about). Chat clients that accept HTML get the rendered fragment
alongside the raw text.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from markdown_it import MarkdownIt


@dataclass(slots=True)
class MarkdownMessageRenderer:
    """Converts markdown message text into HTML fragments."""

    enable_html: bool = False
    _markdown: MarkdownIt = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._markdown = MarkdownIt("commonmark", {"html": self.enable_html}).enable("strikethrough")

    def render_inline(self, markdown_text: str) -> str:
        """Render without the surrounding paragraph, for one-line chat messages."""

        sanitized = markdown_text.strip()
        if not sanitized:
            return ""
        return self._markdown.renderInline(sanitized)


renderer = MarkdownMessageRenderer()
