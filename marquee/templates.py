"""Template rendering engine for Marquee.

This module uses Jinja2 to render layouts for posts, listing pages and
component-backed pages like the landing page.

Key class:
- TemplateEngine: Loads layouts and provides the shared template context.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

from jinja2 import (
    ChoiceLoader,
    Environment,
    FileSystemLoader,
    PackageLoader,
    TemplateNotFound,
    select_autoescape,
)
from markupsafe import Markup
from pygments.formatters import HtmlFormatter

from .collections import PostCollection
from .content import Heading, Post
from .html_utils import escape_html, join_root_url
from .protocols import Component

__all__ = ["TemplateEngine", "render_toc"]

LAYOUT_SUFFIXES = (".html.jinja", ".jinja", ".html")


def render_toc(post: Post) -> Markup:
    """Render a post's table of contents as nested HTML lists.

    Args:
        post: Post whose headings to render.

    Returns:
        Markup-safe HTML string, or empty Markup if the post has no headings.
    """
    if not post.toc:
        return Markup("")
    return _render_toc_from_headings(post.toc)


def _render_toc_from_headings(headings: Iterable[Heading]) -> Markup:
    html_parts: list[str] = []
    level_stack: list[int] = []

    for heading in headings:
        level = heading.level

        while level_stack and level_stack[-1] > level:
            level_stack.pop()
            html_parts.append("</li></ul>")

        if level_stack and level_stack[-1] == level:
            html_parts.append("</li>")
        elif not level_stack or level > level_stack[-1]:  # pragma: no branch
            html_parts.append("<ul>")
            level_stack.append(level)

        html_parts.append(
            f'<li><a href="#{escape_html(heading.id)}">{escape_html(heading.text)}</a>'
        )

    while level_stack:
        level_stack.pop()
        html_parts.append("</li></ul>")

    return Markup("".join(html_parts))


class TemplateEngine:
    """Template rendering engine using Jinja2.

    Layouts are looked up in the project's ``layouts`` directory first and
    then in the defaults shipped with the package, so a project overrides a
    layout by creating a file with the same name.

    Attributes:
        data: Global site data.
        env: Jinja2 environment.
        posts: Collection of all posts.
        components: Components mountable from templates by name.
    """

    def __init__(
        self,
        data: dict[str, Any],
        layouts_dir: Path | None = None,
        root_url: str | None = None,
    ):
        """Initialize the template engine.

        Args:
            data: Global site data.
            layouts_dir: Optional project directory with layout overrides.
            root_url: Optional base URL for links.
        """
        self.data = data
        self.root_url = root_url or data.get("root_url") or ""
        loaders = []
        if layouts_dir is not None:
            loaders.append(FileSystemLoader(str(layouts_dir)))
        loaders.append(PackageLoader("marquee", "layouts"))
        self.env = Environment(
            loader=ChoiceLoader(loaders),
            autoescape=select_autoescape(["html", "xml", "jinja"]),
            enable_async=False,
        )
        self.posts = PostCollection([])
        self.components: dict[str, Component] = {}
        self._install_globals()

    def _install_globals(self) -> None:
        self.env.globals["data"] = self.data
        self.env.globals["posts"] = self.posts
        self.env.globals["url_for"] = self._url_for
        self.env.globals["pygments_css"] = self._pygments_css
        self.env.globals["render_toc"] = render_toc
        self.env.globals["component"] = self._component

    @staticmethod
    def _pygments_css() -> str:
        return HtmlFormatter().get_style_defs(".highlight")

    def register_component(self, name: str, component: Component) -> None:
        """Make a component mountable from templates as ``component(name)``."""
        self.components[name] = component

    def _component(self, name: str) -> Markup:
        try:
            component = self.components[name]
        except KeyError:
            raise KeyError(f"unknown component: {name!r}") from None
        return component.render().to_html()

    def update_collections(self, posts: Iterable[Post]) -> None:
        """Replace the post collection exposed to templates."""
        self.posts = PostCollection(posts)
        self.env.globals["posts"] = self.posts

    def _url_for(self, path: str) -> str:
        """Generate a URL for a path, applying root_url if configured."""
        if path.startswith(("http://", "https://", "//")):
            return path
        path = path if path.startswith("/") else f"/{path}"
        if self.root_url:
            return join_root_url(self.root_url, path)
        return path

    def render_post(self, post: Post) -> str:
        """Render a post with the layout for its type.

        Args:
            post: Post to render.

        Returns:
            Rendered HTML string.
        """
        return self.render_layout(
            post.layout,
            {"post": post, "page_title": post.title, "page_content": Markup(post.content)},
        )

    def render_layout(self, layout: str, context: dict[str, Any]) -> str:
        """Render a named layout with extra context.

        Args:
            layout: Layout name without suffix (e.g. "index", "post").
            context: Variables for the template, merged over the globals.

        Returns:
            Rendered HTML string.
        """
        template = self._resolve_layout_template(layout)
        return template.render(**context)

    def _resolve_layout_template(self, layout: str):
        """Find a layout template, falling back to ``default``.

        Args:
            layout: Layout name to resolve.

        Returns:
            Jinja2 Template object.
        """
        names = [layout] if layout == "default" else [layout, "default"]
        for name in names:
            for suffix in LAYOUT_SUFFIXES:
                try:
                    return self.env.get_template(f"{name}{suffix}")
                except TemplateNotFound:
                    continue
        print(f"Layout {layout!r} not found; rendering content only.")
        return self.env.from_string("{{ page_content }}")

    def render_string(self, template: str, context: dict[str, Any]) -> str:
        """Render a template string.

        Args:
            template: Template string to render.
            context: Variables to make available in the template.

        Returns:
            Rendered string.
        """
        return self.env.from_string(template).render(**context)
