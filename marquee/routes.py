"""Route resolution for Marquee.

The router is the rendering host's view of the site: it knows every URL
the site serves and turns a URL into a rendered response. Post URLs are
resolved through the PostStore; a lookup miss becomes a 404 response
instead of an exception, so one bad link never stops other pages from
rendering.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass

from .store import DuplicatePathError, PostStore
from .templates import TemplateEngine
from .utils import normalize_path

BLOG_URL = "/blog"
NOT_FOUND_LAYOUT = "404"


@dataclass(frozen=True)
class Response:
    """A rendered route.

    Attributes:
        url: Normalized URL that was requested.
        status: HTTP-style status code (200 or 404).
        body: Rendered HTML.
    """

    url: str
    status: int
    body: str

    @property
    def ok(self) -> bool:
        return self.status == 200


class Router:
    """Maps URLs to rendered pages.

    Static pages (the landing page and the blog index) are registered by
    URL; every post in the store is served at its own path. A page and a
    post may not share a URL.

    Attributes:
        store: Source of blog posts.
        engine: Template engine used for rendering.
    """

    def __init__(self, store: PostStore, engine: TemplateEngine):
        self.store = store
        self.engine = engine
        self._pages: dict[str, Callable[[], str]] = {
            "/": lambda: engine.render_layout("index", {"page_title": ""}),
            BLOG_URL: lambda: engine.render_layout(
                "blog", {"page_title": "Blog"}
            ),
        }
        for url in self._pages:
            self._check_free(url)

    def add_page(self, url: str, render: Callable[[], str]) -> None:
        """Register an extra static page.

        Raises:
            DuplicatePathError: If a post already lives at that URL.
        """
        key = normalize_path(url)
        self._check_free(key)
        self._pages[key] = render

    def _check_free(self, url: str) -> None:
        post = self.store.get(url)
        if post is not None:
            raise DuplicatePathError(url, (post.source,))

    def routes(self) -> Iterator[str]:
        """Yield every URL the site serves: static pages first, then posts."""
        yield from self._pages
        for post in self.store.posts():
            yield post.path

    def render(self, url: str) -> Response:
        """Render the page at a URL.

        Args:
            url: Requested URL; trailing slashes are ignored.

        Returns:
            A 200 response for known URLs, otherwise the 404 page.
        """
        key = normalize_path(url)
        page = self._pages.get(key)
        if page is not None:
            return Response(key, 200, page())
        post = self.store.get(key)
        if post is None:
            return self.render_not_found(key)
        return Response(key, 200, self.engine.render_post(post))

    def render_not_found(self, url: str = "/404") -> Response:
        body = self.engine.render_layout(
            NOT_FOUND_LAYOUT, {"page_title": "Page not found", "requested_url": url}
        )
        return Response(url, 404, body)
