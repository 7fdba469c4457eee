"""HTML utility functions for Marquee.

This module provides HTML string helpers: escaping, root URL joining and
absolutizing root-relative links in rendered pages.

Functions:
    escape_html: Escape special HTML characters in a string.
    absolutize_html_urls: Convert root-relative URLs to absolute in HTML.
    join_root_url: Join a base URL with a path.
"""

from __future__ import annotations

import re

_URL_ATTR_RE = re.compile(
    r'(?P<prefix>\b(?:href|src|action)=["\'])(?P<url>[^"\']+)(?P<suffix>["\'])'
)

# URL prefixes that should not be modified
_URL_SKIP_PREFIXES = (
    "http://",
    "https://",
    "//",
    "mailto:",
    "tel:",
    "#",
    "javascript:",
)


def escape_html(text: str) -> str:
    """Escape special HTML characters in a string.

    Args:
        text: The string to escape.

    Returns:
        The escaped string, safe for inclusion in HTML or XML text nodes.

    Examples:
        >>> escape_html('Tom & Jerry <3')
        'Tom &amp; Jerry &lt;3'
    """
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def join_root_url(root_url: str, path: str) -> str:
    """Join a root URL and a path, avoiding double slashes.

    Examples:
        >>> join_root_url('https://example.com/', 'blog')
        'https://example.com/blog'
    """
    if not root_url:
        return path
    base = root_url.rstrip("/")
    suffix = path if path.startswith("/") else f"/{path}"
    return f"{base}{suffix}"


def absolutize_html_urls(html: str, root_url: str) -> str:
    """Rewrite root-relative URLs in HTML to absolute URLs.

    Processes href, src and action attributes. External URLs, anchors,
    mailto/tel links and javascript: URLs are left unchanged.

    Args:
        html: HTML content to process.
        root_url: Base URL to prepend to relative paths.

    Returns:
        HTML with relative URLs converted to absolute.
    """
    if not root_url:
        return html

    def repl(match: re.Match) -> str:
        url = match.group("url")
        if not url or url.startswith(_URL_SKIP_PREFIXES):
            return match.group(0)
        absolute = join_root_url(root_url, url)
        return f"{match.group('prefix')}{absolute}{match.group('suffix')}"

    return _URL_ATTR_RE.sub(repl, html)
