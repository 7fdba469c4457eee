"""Utility functions for Marquee.

This module contains small helpers used throughout the Marquee codebase:
string processing, route path handling, date parsing and directory cleanup.

Key functions:
    slugify: Convert a title or filename to a URL slug.
    normalize_path: Canonicalize a route path for lookups.
    parse_date: Coerce a front-matter date value to a datetime.
    first_paragraph: Extract a short plain-text description.
    is_markdown: Check if a path is a Markdown file.
    is_internal_path: Check if a path should be skipped during discovery.
    ensure_clean_dir: Ensure a directory exists and is empty.

Note:
    HTML-related utilities (escape_html, absolutize_html_urls, join_root_url)
    live in html_utils.py and are re-exported here.
"""

from __future__ import annotations

import re
import shutil
from datetime import date, datetime, timezone
from pathlib import Path

from .html_utils import absolutize_html_urls, escape_html, join_root_url  # noqa: F401


def slugify(name: str) -> str:
    """Convert a title or filename stem to a slug, dropping a date prefix.

    Args:
        name: Title or filename stem.

    Returns:
        URL-friendly slug.

    Examples:
        >>> slugify("Building browser extensions with React")
        'building-browser-extensions-with-react'

        >>> slugify("2019-01-10-hello-world")
        'hello-world'
    """
    cleaned = name
    if "-" in cleaned:
        parts = cleaned.split("-")
        if len(parts) >= 4 and all(p.isdigit() for p in parts[:3]):
            cleaned = "-".join(parts[3:])
    cleaned = re.sub(r"[^a-zA-Z0-9]+", "-", cleaned)
    cleaned = cleaned.strip("-").lower()
    return cleaned or "index"


def normalize_path(path: str) -> str:
    """Canonicalize a route path.

    Leading and trailing slashes are collapsed so that ``blog/post``,
    ``/blog/post`` and ``/blog/post/`` all address the same route.

    Args:
        path: Route path as authored or requested.

    Returns:
        Path with exactly one leading slash and no trailing slash,
        or ``/`` for the root.
    """
    stripped = path.strip().strip("/")
    stripped = re.sub(r"/{2,}", "/", stripped)
    return f"/{stripped}" if stripped else "/"


def parse_date(value: object) -> datetime:
    """Coerce a front-matter date into a datetime.

    PyYAML already turns unquoted ISO dates into ``date`` or ``datetime``
    objects; quoted values arrive as strings and are parsed here.

    Args:
        value: A date, datetime or ISO-8601 string.

    Returns:
        Naive datetime. Values with a UTC offset are converted to UTC
        and the offset dropped.

    Raises:
        ValueError: If the value can't be interpreted as a date.
    """
    if isinstance(value, datetime):
        return _naive_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return _naive_utc(datetime.fromisoformat(text))
    raise ValueError(f"unsupported date value: {value!r}")


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def first_paragraph(text: str, limit: int = 160) -> str:
    """Extract and clean the first prose paragraph from Markdown.

    Skips headings, images, code fences and horizontal rules, strips
    HTML tags and link syntax, collapses whitespace and truncates.

    Args:
        text: Markdown content to extract from.
        limit: Maximum character length of result.

    Returns:
        Cleaned first paragraph, truncated to limit characters.
    """
    paragraphs = [p.strip() for p in text.split("\n\n") if p.strip()]
    for para in paragraphs:
        if para.startswith(("#", "![", "```", "---", "<")):
            continue
        para = re.sub(r"<[^>]+>", "", para)
        para = re.sub(r"!?\[([^\]]*)\]\([^)]*\)", r"\1", para)
        para = para.replace("`", "")
        collapsed = " ".join(para.split())
        return collapsed[:limit]
    return ""


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    If the directory exists, removes all contents. Creates the
    directory if it doesn't exist.

    Args:
        path: Directory path to clean or create.
    """
    if path.exists():
        shutil.rmtree(str(path), ignore_errors=True)
        if path.exists():
            # Fallback for stubborn directories
            for item in path.rglob("*"):
                if item.is_file():
                    item.unlink()
            for item in sorted(
                [p for p in path.rglob("*") if p.is_dir()], reverse=True
            ):
                item.rmdir()
            path.rmdir()
    path.mkdir(parents=True, exist_ok=True)


def is_internal_path(path: Path) -> bool:
    """Check if a path is internal (contains components starting with _).

    Internal paths hold drafts and partials that are never published.

    Args:
        path: Path to check.

    Returns:
        True if any path component starts with underscore.
    """
    return any(part.startswith("_") for part in path.parts)


def is_markdown(path: Path) -> bool:
    """Check if a path is a Markdown file.

    Args:
        path: Path to check.

    Returns:
        True if the file has .md extension (case-insensitive).
    """
    return path.suffix.lower() == ".md"
