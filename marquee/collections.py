from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence

from .content import Post


class PostCollection(Sequence[Post]):
    """Lightweight helper for working with lists of Posts in templates and code."""

    def __init__(self, posts: Iterable[Post]):
        self._posts = list(posts)
        # Newest-first order is requested by every listing; compute it once.
        self._sorted_cache: PostCollection | None = None

    def __iter__(self) -> Iterator[Post]:
        return iter(self._posts)

    def __len__(self) -> int:
        return len(self._posts)

    def __getitem__(self, item):
        return self._posts[item]

    def of_type(self, post_type: str) -> PostCollection:
        return PostCollection(p for p in self._posts if p.type == post_type)

    def sorted(self, reverse: bool = True) -> PostCollection:
        """Sort posts by date, then by path.

        Args:
            reverse: If True (default), newest first. If False, oldest first.

        Returns:
            A new PostCollection with sorted posts.
        """
        if reverse and self._sorted_cache is not None:
            return self._sorted_cache
        ordered = PostCollection(
            sorted(self._posts, key=lambda p: (p.date, p.path), reverse=reverse)
        )
        if reverse:
            self._sorted_cache = ordered
        return ordered

    def latest(self, count: int = 5) -> PostCollection:
        return PostCollection(self.sorted()[:count])

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"PostCollection({len(self._posts)} posts)"
