"""Content renderers for Marquee.

This module contains implementations of the ContentRenderer protocol.
Post bodies are Markdown, rendered with mistune and highlighted with
Pygments.

Key classes:
- MarkdownRenderer: Renders Markdown to HTML with syntax highlighting.
- RendererRegistry: Picks a renderer for a source file.
"""

from __future__ import annotations

import re
from pathlib import Path

import mistune
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .html_utils import escape_html
from .utils import is_markdown

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


def _rewrite_image_path(src: str, folder: str) -> str:
    """Rewrite relative image sources to point into the assets directory.

    Args:
        src: Original image source.
        folder: Folder containing the post, relative to the content root.

    Returns:
        Rewritten image source path.
    """
    if src.startswith(("http://", "https://", "//", "/", "data:")):
        return src
    prefix = Path(folder) if folder else Path()
    normalized = (prefix / src).as_posix()
    return f"/assets/images/{normalized}"


class _HighlightRenderer(mistune.HTMLRenderer):
    """Markdown renderer with heading anchors, image rewriting and highlighting.

    Attributes:
        folder: Folder containing the post being rendered.
        headings: Heading objects collected during rendering.
    """

    def __init__(self, folder: str):
        super().__init__(escape=False)
        self.folder = folder
        self.headings: list = []
        self._heading_id_counts: dict[str, int] = {}

    def heading(self, text: str, level: int, **attrs) -> str:
        """Render a heading with a unique id and record it for the TOC."""
        from .content import Heading

        base_id = _generate_heading_id(text) or "section"
        if base_id in self._heading_id_counts:
            self._heading_id_counts[base_id] += 1
            heading_id = f"{base_id}-{self._heading_id_counts[base_id]}"
        else:
            self._heading_id_counts[base_id] = 0
            heading_id = base_id

        self.headings.append(Heading(id=heading_id, text=text, level=level))
        return f'<h{level} id="{heading_id}">{text}</h{level}>\n'

    def image(self, text: str, url: str | None = None, title: str | None = None):
        src = _rewrite_image_path(url or "", self.folder)
        return super().image(text, src, title)

    def block_code(self, code: str, info: str | None = None) -> str:
        """Render a fenced code block, highlighted when the language is known.

        Args:
            code: The code content.
            info: Language identifier (e.g., 'jsx', 'json').

        Returns:
            HTML string with highlighted code.
        """
        lang = info.split()[0] if info else ""
        if lang:
            try:
                lexer = get_lexer_by_name(lang, stripall=True)
            except ClassNotFound:
                lexer = None
            if lexer is not None:
                formatter = HtmlFormatter(nowrap=False, cssclass="highlight")
                return highlight(code, lexer, formatter)
        lang_class = f' class="language-{lang}"' if lang else ""
        return f"<pre><code{lang_class}>{escape_html(code)}</code></pre>\n"


class MarkdownRenderer:
    """Renders Markdown content to HTML.

    Converts Markdown to HTML with syntax highlighting and collects
    headings for a table of contents.
    """

    @property
    def source_type(self) -> str:
        return "markdown"

    def can_render(self, path: Path) -> bool:
        return is_markdown(path)

    def render(self, content: str, folder: str) -> tuple[str, list]:
        """Render Markdown content to HTML.

        Args:
            content: Markdown source content.
            folder: Folder containing the post.

        Returns:
            Tuple of (rendered HTML, list of Heading objects).
        """
        renderer = _HighlightRenderer(folder)
        markdown = mistune.create_markdown(renderer=renderer, plugins=MARKDOWN_PLUGINS)
        html = markdown(content)
        return html, renderer.headings


class RendererRegistry:
    """Registry for content renderers.

    New renderers can be registered without modifying existing code.
    """

    def __init__(self):
        self._renderers: list = []
        self.register(MarkdownRenderer())

    def register(self, renderer) -> None:
        """Register a new renderer. Later registrations are checked first.

        Args:
            renderer: A ContentRenderer implementation.
        """
        self._renderers.insert(0, renderer)

    def get_renderer(self, path: Path):
        """Get the appropriate renderer for a file.

        Args:
            path: Path to the source file.

        Returns:
            The first renderer that can handle the file, or None.
        """
        for renderer in self._renderers:
            if renderer.can_render(path):
                return renderer
        return None


# Default renderer registry instance
default_renderer_registry = RendererRegistry()
