"""Content processing for Marquee.

This module loads blog post documents and turns them into Post objects.
A post is a Markdown file with a YAML front-matter block declaring its
path, date, title, type and version.

Key classes:
- Post: Immutable record for one published blog post.
- Heading: A heading extracted from the body for TOC generation.
- FileContentLoader: Discovers post documents under the content directory.
- DefaultPostBuilder: Builds a Post from one document.
- ContentProcessor: Loads every document, strictly or leniently.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from .extractors import (
    POST_TYPES,
    REQUIRED_FIELDS,
    CompositeMetadataExtractor,
    ContentSchemaError,
    default_metadata_extractor,
)
from .protocols import ContentLoader, PostBuilder
from .renderers import RendererRegistry, _rewrite_image_path, default_renderer_registry
from .utils import is_internal_path, is_markdown

__all__ = [
    "POST_TYPES",
    "REQUIRED_FIELDS",
    "ContentProcessor",
    "ContentSchemaError",
    "DefaultPostBuilder",
    "FileContentLoader",
    "Heading",
    "LoadResult",
    "Post",
]

IMAGE_SRC_RE = re.compile(r'<img\s+[^>]*src="([^"]+)"', re.IGNORECASE)


@dataclass(frozen=True)
class Heading:
    """A heading extracted from post content.

    Attributes:
        id: Anchor ID for the heading.
        text: The text content of the heading.
        level: Heading level (1-6).
    """

    id: str
    text: str
    level: int


@dataclass(frozen=True)
class Post:
    """A published blog post.

    Attributes:
        path: Unique URL path; the post's identity.
        date: Publication date.
        title: Display title.
        type: Post type, selects the layout.
        version: Informational version string, or "none".
        body: Markdown body without front-matter.
        content: Rendered HTML body.
        description: Short plain-text summary from the first paragraph.
        source: Path to the source document.
        toc: Headings for the table of contents.
        layout: Layout name; resolved from POST_TYPES when left empty.
        frontmatter: The raw front-matter mapping, extra keys included.
    """

    path: str
    date: datetime
    title: str
    type: str
    version: str
    body: str
    content: str = ""
    description: str = ""
    source: Path | None = None
    toc: tuple[Heading, ...] = ()
    layout: str = ""
    frontmatter: dict[str, Any] = field(
        default_factory=dict, compare=False, hash=False, repr=False
    )

    def __post_init__(self):
        if not self.layout:
            if self.type not in POST_TYPES:
                raise ValueError(f"no layout for post type {self.type!r}")
            object.__setattr__(self, "layout", POST_TYPES[self.type])

    @property
    def url(self) -> str:
        return self.path


@dataclass
class LoadResult:
    """Outcome of loading a content directory.

    Attributes:
        posts: Posts that loaded cleanly, in discovery order.
        errors: Schema errors for documents that were excluded.
    """

    posts: list[Post]
    errors: list[ContentSchemaError] = field(default_factory=list)


class FileContentLoader:
    """Discovers post documents in a content directory.

    Markdown files are listed in sorted path order. Files and folders whose
    names start with an underscore are drafts or partials and are skipped.
    """

    def __init__(self, content_dir: Path):
        self.content_dir = content_dir

    def iter_files(self) -> list[Path]:
        if not self.content_dir.exists():
            return []
        files: list[Path] = []
        for path in sorted(self.content_dir.rglob("*")):
            if path.is_dir() or not is_markdown(path):
                continue
            if is_internal_path(path.relative_to(self.content_dir)):
                continue
            files.append(path)
        return files


class DefaultPostBuilder:
    """Builds Post objects from source files.

    Coordinates the metadata extractor and the body renderer.

    Attributes:
        content_dir: Root of the content directory.
        renderer_registry: Registry of body renderers.
        metadata_extractor: Composite metadata extractor.
    """

    def __init__(
        self,
        content_dir: Path,
        renderer_registry: RendererRegistry | None = None,
        metadata_extractor: CompositeMetadataExtractor | None = None,
    ):
        self.content_dir = content_dir
        self.renderer_registry = renderer_registry or default_renderer_registry
        self.metadata_extractor = metadata_extractor or default_metadata_extractor

    def build(self, path: Path) -> Post:
        """Build a Post from a source file.

        Args:
            path: Path to the source file.

        Returns:
            Post object.

        Raises:
            ContentSchemaError: If the front-matter is missing or invalid.
        """
        rel = path.relative_to(self.content_dir)
        folder = rel.parent.as_posix() if rel.parent != Path(".") else ""
        raw = path.read_text(encoding="utf-8")

        metadata = self.metadata_extractor.extract(raw, path)
        body = metadata.get("body", raw)

        renderer = self.renderer_registry.get_renderer(path)
        if renderer is None:
            content, toc = body, []
        else:
            content, toc = renderer.render(body, folder)
        content = self._rewrite_inline_images(content, folder)

        return Post(
            path=metadata["path"],
            date=metadata["date"],
            title=metadata["title"],
            type=metadata["type"],
            version=metadata["version"],
            body=body,
            content=content,
            description=metadata.get("description", ""),
            source=path,
            toc=tuple(toc),
            layout=metadata.get("layout", ""),
            frontmatter=metadata.get("frontmatter", {}),
        )

    def _rewrite_inline_images(self, html: str, folder: str) -> str:
        """Rewrite relative sources of raw <img> tags left in the body."""

        def repl(match: re.Match) -> str:
            src = match.group(1)
            rewritten = _rewrite_image_path(src, folder)
            return match.group(0).replace(src, rewritten)

        return IMAGE_SRC_RE.sub(repl, html)


class ContentProcessor:
    """Loads every post document in a content directory.

    Attributes:
        content_dir: Directory containing post documents.
    """

    def __init__(
        self,
        content_dir: Path,
        content_loader: ContentLoader | None = None,
        post_builder: PostBuilder | None = None,
    ):
        self.content_dir = content_dir
        self._content_loader = content_loader or FileContentLoader(content_dir)
        self._post_builder = post_builder or DefaultPostBuilder(content_dir)

    def load(self, strict: bool = True) -> LoadResult:
        """Load all documents and build Post objects.

        Args:
            strict: Abort on the first schema error when True; otherwise
                exclude the offending document and record the error.

        Returns:
            LoadResult with the loaded posts and any collected errors.

        Raises:
            ContentSchemaError: In strict mode, for the first invalid document.
        """
        result = LoadResult(posts=[])
        for path in self._content_loader.iter_files():
            try:
                post = self._post_builder.build(path)
            except ContentSchemaError as exc:
                if strict:
                    raise
                result.errors.append(exc)
                continue
            result.posts.append(post)
        return result
