"""Presentational components for Marquee.

Components render to a small immutable element tree rather than straight
to strings, so pages can be inspected structurally and serialized once.
The landing page mounts the Lead section, which embeds the install button.

Key classes:
- Element: Immutable node in a rendered tree.
- InstallButton: The install call-to-action control.
- LeadSection: Static copy for the landing page hero.
- Lead: The hero section component.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from markupsafe import Markup, escape

from .protocols import Component

LEAD_DESCRIPTION = "Finish your code reviews faster"
SUB_DESCRIPTION = "Enhanced git diffs with symbol lookup and code-aware navigation"

DEFAULT_INSTALL_URL = "#install"
DEFAULT_INSTALL_LABEL = "Install"

_VOID_TAGS = frozenset({"br", "hr", "img", "input", "link", "meta"})


@dataclass(frozen=True)
class Element:
    """A node in a rendered component tree.

    Attributes:
        tag: HTML tag name.
        attrs: Attribute pairs, in output order.
        children: Child elements and text nodes.
    """

    tag: str
    attrs: tuple[tuple[str, str], ...] = ()
    children: tuple[Element | str, ...] = ()

    def get(self, name: str, default: str | None = None) -> str | None:
        for key, value in self.attrs:
            if key == name:
                return value
        return default

    @property
    def classes(self) -> list[str]:
        return (self.get("class") or "").split()

    @property
    def text(self) -> str:
        """Concatenated text of this element and its descendants."""
        parts: list[str] = []
        for child in self.children:
            parts.append(child if isinstance(child, str) else child.text)
        return "".join(parts)

    def iter(self) -> Iterator[Element]:
        """Walk this element and its descendants depth-first."""
        yield self
        for child in self.children:
            if isinstance(child, Element):
                yield from child.iter()

    def find_all(
        self, tag: str | None = None, class_name: str | None = None
    ) -> list[Element]:
        """Find descendant elements (self included) by tag and/or class."""
        return [
            node
            for node in self.iter()
            if (tag is None or node.tag == tag)
            and (class_name is None or class_name in node.classes)
        ]

    def to_html(self) -> Markup:
        """Serialize the tree to HTML, escaping text and attribute values."""
        attrs = "".join(f' {key}="{escape(value)}"' for key, value in self.attrs)
        if self.tag in _VOID_TAGS:
            return Markup(f"<{self.tag}{attrs}>")
        inner = "".join(
            str(escape(child)) if isinstance(child, str) else str(child.to_html())
            for child in self.children
        )
        return Markup(f"<{self.tag}{attrs}>{inner}</{self.tag}>")


def h(tag: str, *children: Element | str, **attrs: str) -> Element:
    """Build an Element.

    Keyword names map to attributes; a trailing underscore is dropped
    (``class_`` becomes ``class``) and other underscores become dashes.

    Examples:
        >>> h("h2", "Hello", class_="title").to_html()
        Markup('<h2 class="title">Hello</h2>')
    """
    pairs = tuple(
        (key.rstrip("_").replace("_", "-"), str(value)) for key, value in attrs.items()
    )
    return Element(tag, pairs, tuple(children))


class InstallButton:
    """The install call-to-action.

    The Lead embeds this control without knowing anything about it
    besides its render method.
    """

    def __init__(self, href: str = DEFAULT_INSTALL_URL, label: str = DEFAULT_INSTALL_LABEL):
        self.href = href
        self.label = label

    def render(self) -> Element:
        return h(
            "a",
            self.label,
            class_="btn install-button",
            href=self.href,
            role="button",
            data_action="install",
        )


@dataclass(frozen=True)
class LeadSection:
    """Static copy for the landing page hero.

    Attributes:
        headline: Main headline.
        subheading: Supporting line under the headline.
        action: The embedded call-to-action control.
    """

    headline: str
    subheading: str
    action: Component = field(default_factory=InstallButton, compare=False)


LEAD = LeadSection(headline=LEAD_DESCRIPTION, subheading=SUB_DESCRIPTION)


class Lead:
    """Landing page hero: headline, subheading and the install button."""

    def __init__(self, section: LeadSection = LEAD):
        self.section = section

    def render(self) -> Element:
        return h(
            "div",
            h(
                "div",
                h("h2", self.section.headline),
                h("h4", self.section.subheading),
                h("div", self.section.action.render(), class_="lead-button"),
                class_="container",
            ),
            class_="lead-container",
        )
