"""Metadata extractors for Marquee.

This module contains implementations of the MetadataExtractor protocol.
Each extractor handles one kind of metadata and the composite merges
their results.

Key classes:
- FrontmatterExtractor: Splits YAML front-matter from the Markdown body.
- PostFieldsExtractor: Validates and normalizes the required post fields.
- DescriptionExtractor: Extracts a short description from the body.
- CompositeMetadataExtractor: Runs extractors in order and merges results.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import yaml

from .utils import first_paragraph, normalize_path, parse_date

FRONTMATTER_RE = re.compile(r"^---\s*\n(.*?)\n---\s*(?:\n|$)", re.DOTALL)

REQUIRED_FIELDS = ("path", "date", "title", "type", "version")

# Recognized post types and the layout each one renders with.
POST_TYPES = {
    "full": "post",
    "summary": "summary",
}

# URLs served by site pages rather than posts.
RESERVED_PATHS = frozenset({"/", "/blog"})


class ContentSchemaError(Exception):
    """A content document has invalid or missing front-matter.

    Attributes:
        source_path: Path to the offending document.
        message: Human-readable error message.
    """

    def __init__(self, source_path: Path, message: str):
        self.source_path = source_path
        self.message = message
        super().__init__(f"{source_path}: {message}")


def extract_frontmatter(text: str) -> tuple[dict[str, Any] | None, str]:
    """Split YAML front-matter from content.

    Args:
        text: Raw file content.

    Returns:
        Tuple of (front-matter dict, remaining body). The dict is None when
        the document has no front-matter block.

    Raises:
        yaml.YAMLError: If the front-matter block is not valid YAML.
    """
    match = FRONTMATTER_RE.match(text)
    if not match:
        return None, text
    data = yaml.safe_load(match.group(1))
    if data is None:
        data = {}
    return data, text[match.end() :]


class FrontmatterExtractor:
    """Extracts YAML front-matter from content.

    Parses the block between the leading ``---`` markers. Every post needs
    one, so a missing or malformed block is a schema error.
    """

    def extract(self, content: str, path: Path) -> dict[str, Any]:
        try:
            frontmatter, body = extract_frontmatter(content)
        except yaml.YAMLError as exc:
            raise ContentSchemaError(path, f"invalid front-matter: {exc}") from exc
        if frontmatter is None:
            raise ContentSchemaError(path, "missing front-matter block")
        if not isinstance(frontmatter, dict):
            raise ContentSchemaError(path, "front-matter must be a mapping")
        return {"frontmatter": frontmatter, "body": body}


class PostFieldsExtractor:
    """Validates and normalizes the required post fields.

    Reads the front-matter produced by FrontmatterExtractor, so it must run
    after it inside a composite.
    """

    def __init__(self, post_types: dict[str, str] | None = None):
        self.post_types = post_types if post_types is not None else POST_TYPES

    def extract(self, content: str, path: Path) -> dict[str, Any]:
        # Works standalone too, for callers that only want validation.
        frontmatter = FrontmatterExtractor().extract(content, path)["frontmatter"]
        return self.validate(frontmatter, path)

    def validate(self, frontmatter: dict[str, Any], path: Path) -> dict[str, Any]:
        """Validate front-matter fields.

        Args:
            frontmatter: Parsed front-matter mapping.
            path: Path to the source file, for error reporting.

        Returns:
            Dictionary with normalized path, date, title, type, version
            and the layout the type renders with.

        Raises:
            ContentSchemaError: If a field is missing or invalid.
        """
        missing = [
            name for name in REQUIRED_FIELDS if frontmatter.get(name) is None
        ]
        if missing:
            raise ContentSchemaError(
                path, f"missing required field(s): {', '.join(missing)}"
            )

        route = str(frontmatter["path"])
        if not route.startswith("/"):
            raise ContentSchemaError(path, f"path must start with '/': {route!r}")
        segments = route.split("/")
        if "." in segments or ".." in segments:
            raise ContentSchemaError(
                path, f"path must not contain '.' or '..' segments: {route!r}"
            )
        route = normalize_path(route)
        if route in RESERVED_PATHS:
            raise ContentSchemaError(
                path, f"path {route!r} is reserved for a site page"
            )

        try:
            date = parse_date(frontmatter["date"])
        except ValueError as exc:
            raise ContentSchemaError(path, f"invalid date: {exc}") from exc

        post_type = str(frontmatter["type"])
        if post_type not in self.post_types:
            known = ", ".join(sorted(self.post_types))
            raise ContentSchemaError(
                path, f"unknown type {post_type!r} (expected one of: {known})"
            )

        return {
            "path": route,
            "date": date,
            "title": str(frontmatter["title"]),
            "type": post_type,
            "version": str(frontmatter["version"]),
            "layout": self.post_types[post_type],
        }


class DescriptionExtractor:
    """Extracts a short description from the Markdown body."""

    def extract(self, content: str, path: Path) -> dict[str, Any]:
        _, body = extract_frontmatter(content)
        return {"description": first_paragraph(body)}


class CompositeMetadataExtractor:
    """Combines multiple metadata extractors.

    Runs every extractor on the content and merges their results. Later
    extractors override earlier ones.
    """

    def __init__(self, extractors: list | None = None):
        if extractors is None:
            self._extractors = [
                FrontmatterExtractor(),
                PostFieldsExtractor(),
                DescriptionExtractor(),
            ]
        else:
            self._extractors = list(extractors)

    def add_extractor(self, extractor) -> None:
        """Add an extractor to the composite.

        Args:
            extractor: A MetadataExtractor implementation.
        """
        self._extractors.append(extractor)

    def extract(self, content: str, path: Path) -> dict[str, Any]:
        """Extract all metadata from content.

        Args:
            content: Source content.
            path: Path to the source file.

        Returns:
            Dictionary with all extracted metadata.

        Raises:
            ContentSchemaError: If any extractor rejects the document.
        """
        result: dict[str, Any] = {}
        for extractor in self._extractors:
            result.update(extractor.extract(content, path))
        return result


# Default composite extractor instance
default_metadata_extractor = CompositeMetadataExtractor()
