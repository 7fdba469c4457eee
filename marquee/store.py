"""Read-only post store for Marquee.

The store is built once from the content directory and never mutated.
It answers two questions for the rendering host: which posts exist, and
which post lives at a given path.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from types import MappingProxyType

from .content import ContentProcessor, ContentSchemaError, Post
from .utils import normalize_path


class DuplicatePathError(Exception):
    """Two content documents declare the same path.

    Attributes:
        path: The contested route path.
        sources: Source files of the conflicting documents.
    """

    def __init__(self, path: str, sources: tuple[Path | None, ...]):
        self.path = path
        self.sources = sources
        listed = ", ".join(str(s) for s in sources)
        super().__init__(f"duplicate post path {path!r} in: {listed}")


class PostStore(Mapping[str, Post]):
    """Immutable mapping from route path to Post.

    Iteration order is discovery order. ``get`` and ``in`` normalize the
    path, so ``/blog/post/`` finds ``/blog/post``.
    """

    def __init__(
        self,
        posts: Iterable[Post],
        errors: Iterable[ContentSchemaError] = (),
    ):
        table: dict[str, Post] = {}
        for post in posts:
            key = normalize_path(post.path)
            if key in table:
                raise DuplicatePathError(key, (table[key].source, post.source))
            table[key] = post
        self._posts = MappingProxyType(table)
        self.errors: tuple[ContentSchemaError, ...] = tuple(errors)

    @classmethod
    def from_directory(cls, content_dir: Path, strict: bool = True) -> PostStore:
        """Load every post under a content directory.

        Args:
            content_dir: Directory holding Markdown post documents.
            strict: Fail on the first invalid document when True; otherwise
                skip invalid documents and keep their errors on ``errors``.

        Raises:
            ContentSchemaError: In strict mode, for an invalid document.
            DuplicatePathError: If two documents share a path.
        """
        result = ContentProcessor(content_dir).load(strict=strict)
        return cls(result.posts, result.errors)

    def posts(self) -> Iterator[Post]:
        """Return a fresh iterator over every post, in discovery order."""
        return iter(self._posts.values())

    def get(self, path: str, default: Post | None = None) -> Post | None:
        """Look up a post by path.

        Returns:
            The matching Post, or ``default`` when no post has that path.
        """
        return self._posts.get(normalize_path(path), default)

    def __getitem__(self, path: str) -> Post:
        return self._posts[normalize_path(path)]

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and normalize_path(path) in self._posts

    def __iter__(self) -> Iterator[str]:
        return iter(self._posts)

    def __len__(self) -> int:
        return len(self._posts)

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"PostStore({len(self._posts)} posts)"
