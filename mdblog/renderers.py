"""Markdown rendering for mdblog.

Key classes:
- MarkdownRenderer: Renders Markdown to HTML with syntax highlighting.
- _HighlightRenderer: mistune renderer that adds heading anchors and
  Pygments-highlighted code blocks.
"""

from __future__ import annotations

import logging
import re

import mistune
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

logger = logging.getLogger(__name__)

DEFAULT_STYLE = "dracula"
FALLBACK_STYLE = "default"
MARKDOWN_PLUGINS = ["strikethrough", "footnotes", "table", "url"]


def _generate_heading_id(text: str) -> str:
    """Generate a URL-friendly ID from heading text.

    Args:
        text: The heading text.

    Returns:
        URL-friendly slug suitable for anchor links.
    """
    slug = re.sub(r"<[^>]+>", "", text).lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[-\s]+", "-", slug)
    return slug.strip("-")


def _resolve_style(name: str) -> str:
    """Return ``name`` if Pygments knows the style, else the fallback style."""
    try:
        get_style_by_name(name)
    except ClassNotFound:
        logger.warning(
            "Unknown highlight style %r; falling back to %r", name, FALLBACK_STYLE
        )
        return FALLBACK_STYLE
    return name


class _HighlightRenderer(mistune.HTMLRenderer):
    """mistune renderer with heading anchors and syntax highlighting.

    Attributes:
        formatter: Pygments formatter shared by every code block of a document.
    """

    def __init__(self, formatter: HtmlFormatter):
        super().__init__(escape=False)
        self.formatter = formatter
        self._heading_id_counts: dict[str, int] = {}
        self._used_heading_ids: set[str] = set()

    def heading(self, text: str, level: int, **attrs) -> str:
        """Render a heading with an auto-generated, de-duplicated ID."""
        base_id = _generate_heading_id(text) or "section"
        heading_id = base_id
        # a suffixed id may already belong to a literal heading such as "Foo 1"
        while heading_id in self._used_heading_ids:
            count = self._heading_id_counts.get(base_id, 0) + 1
            self._heading_id_counts[base_id] = count
            heading_id = f"{base_id}-{count}"
        self._used_heading_ids.add(heading_id)
        return f'<h{level} id="{heading_id}">{text}</h{level}>\n'

    def block_code(self, code: str, info: str | None = None) -> str:
        """Render a code block with Pygments syntax highlighting.

        Args:
            code: The code content.
            info: Info string of the fence; its first word names the language.

        Returns:
            HTML string with highlighted code, or an escaped ``<pre>`` block
            when the language is missing or unknown.
        """
        lang = info.split()[0] if info and info.strip() else ""
        if lang:
            try:
                lexer = get_lexer_by_name(lang, stripall=True)
            except ClassNotFound:
                logger.debug("No lexer for %r; rendering plain code block", lang)
            else:
                return highlight(code, lexer, self.formatter)
        escaped = mistune.escape(code)
        lang_class = f' class="language-{mistune.escape(lang)}"' if lang else ""
        return f"<pre><code{lang_class}>{escaped}</code></pre>\n"


class MarkdownRenderer:
    """Renders Markdown content to HTML.

    Attributes:
        style: Name of the Pygments style used for code blocks.
    """

    def __init__(self, style: str = DEFAULT_STYLE):
        self.style = _resolve_style(style)

    def _formatter(self) -> HtmlFormatter:
        return HtmlFormatter(style=self.style, cssclass="highlight")

    def render(self, content: str) -> str:
        """Render Markdown content to HTML.

        Args:
            content: Markdown source content, without front matter.

        Returns:
            Rendered HTML.
        """
        renderer = _HighlightRenderer(self._formatter())
        markdown = mistune.create_markdown(renderer=renderer, plugins=MARKDOWN_PLUGINS)
        return markdown(content)

    def css(self) -> str:
        """Return Pygments CSS rules for the ``.highlight`` class."""
        return self._formatter().get_style_defs(".highlight")
