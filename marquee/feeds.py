"""Feed generation for Marquee.

Generates sitemap.xml and an RSS feed from the built site. Feed generation
is kept separate from build orchestration; new formats are added by
registering another FeedGenerator.

Classes:
    FeedGenerator: Base class for feed generators.
    SitemapGenerator: Generates sitemap.xml files.
    RSSGenerator: Generates RSS feed files.
    FeedRegistry: Registry for managing feed generators.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .html_utils import escape_html

if TYPE_CHECKING:
    from .content import Post

RFC822 = "%a, %d %b %Y %H:%M:%S +0000"


class FeedGenerator(ABC):
    """Base class for feed generators."""

    @property
    @abstractmethod
    def filename(self) -> str:
        """Output filename, such as 'sitemap.xml'."""
        ...

    @abstractmethod
    def generate(
        self, urls: list[str], posts: list[Post], data: dict[str, Any]
    ) -> str | None:
        """Generate feed content.

        Args:
            urls: Every URL the site serves.
            posts: Every published post.
            data: Site data containing the base ``url``.

        Returns:
            Feed content, or None when the feed can't be generated
            (e.g. no base URL configured).
        """
        ...

    def write(
        self, output_dir: Path, urls: list[str], posts: list[Post], data: dict[str, Any]
    ) -> bool:
        """Generate and write the feed. Returns False if it was skipped."""
        content = self.generate(urls, posts, data)
        if content is None:
            return False
        (output_dir / self.filename).write_text(content, encoding="utf-8")
        return True


def _base_url(data: dict[str, Any]) -> str:
    return str(data.get("url", "")).rstrip("/")


class SitemapGenerator(FeedGenerator):
    """Generates sitemap.xml listing every route.

    Post routes carry their publication date as ``lastmod``.
    """

    @property
    def filename(self) -> str:
        return "sitemap.xml"

    def generate(self, urls, posts, data):
        base_url = _base_url(data)
        if not base_url:
            return None
        dates = {post.path: post.date for post in posts}
        lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
        ]
        for url in urls:
            loc = escape_html(f"{base_url}{url}")
            if url in dates:
                lastmod = dates[url].strftime("%Y-%m-%d")
                lines.append(f"  <url><loc>{loc}</loc><lastmod>{lastmod}</lastmod></url>")
            else:
                lines.append(f"  <url><loc>{loc}</loc></url>")
        lines.append("</urlset>")
        return "\n".join(lines)


class RSSGenerator(FeedGenerator):
    """Generates an RSS 2.0 feed of posts, newest first.

    Uses 'title' from site data for the channel title.
    """

    @property
    def filename(self) -> str:
        return "rss.xml"

    def generate(self, urls, posts, data):
        base_url = _base_url(data)
        if not base_url:
            return None
        title = escape_html(str(data.get("title", "Marquee Blog")))

        items = []
        for post in sorted(posts, key=lambda p: p.date, reverse=True):
            link = escape_html(f"{base_url}{post.path}")
            description = escape_html(post.description or post.title)
            items.append(
                f"<item><title>{escape_html(post.title)}</title><link>{link}</link>"
                f"<guid>{link}</guid><description>{description}</description>"
                f"<pubDate>{post.date.strftime(RFC822)}</pubDate></item>"
            )

        build_date = datetime.now(timezone.utc).strftime(RFC822)
        rss = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<rss version="2.0"><channel>',
            f"<title>{title}</title>",
            f"<link>{escape_html(base_url)}</link>",
            f"<description>{title}</description>",
            f"<lastBuildDate>{build_date}</lastBuildDate>",
        ]
        rss.extend(items)
        rss.append("</channel></rss>")
        return "\n".join(rss)


class FeedRegistry:
    """Registry for managing feed generators."""

    def __init__(self) -> None:
        self._generators: list[FeedGenerator] = []

    def register(self, generator: FeedGenerator) -> None:
        self._generators.append(generator)

    def generate_all(
        self,
        output_dir: Path,
        urls: Iterable[str],
        posts: Iterable[Post],
        data: dict[str, Any],
    ) -> list[str]:
        """Generate all registered feeds.

        Returns:
            Filenames that were written.
        """
        url_list = list(urls)
        post_list = list(posts)
        generated = []
        for generator in self._generators:
            if generator.write(output_dir, url_list, post_list, data):
                generated.append(generator.filename)
        return generated


def create_default_feed_registry() -> FeedRegistry:
    """Create a registry with the sitemap and RSS generators."""
    registry = FeedRegistry()
    registry.register(SitemapGenerator())
    registry.register(RSSGenerator())
    return registry
