"""Protocol definitions for Marquee.

This module defines the interfaces shared between the content pipeline,
the components and the rendering host. Implementations can be swapped in
tests or extended without touching the code that consumes them.
"""

from __future__ import annotations

from abc import abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .components import Element
    from .content import Heading, Post


@runtime_checkable
class Component(Protocol):
    """Protocol for presentational components.

    A component takes no input at render time and produces an element tree.
    """

    @abstractmethod
    def render(self) -> Element:
        """Render the component.

        Returns:
            Root Element of the rendered tree.
        """
        ...


@runtime_checkable
class ContentRenderer(Protocol):
    """Protocol for rendering a post body to HTML."""

    @abstractmethod
    def can_render(self, path: Path) -> bool:
        """Check if this renderer can handle the given file.

        Args:
            path: Path to the source file.

        Returns:
            True if this renderer can process the file.
        """
        ...

    @abstractmethod
    def render(self, content: str, folder: str) -> tuple[str, list[Heading]]:
        """Render content to HTML.

        Args:
            content: Source content to render.
            folder: Folder containing the document (for relative images).

        Returns:
            Tuple of (rendered HTML, list of headings for TOC).
        """
        ...


@runtime_checkable
class MetadataExtractor(Protocol):
    """Protocol for extracting metadata from a content document."""

    @abstractmethod
    def extract(self, content: str, path: Path) -> dict[str, Any]:
        """Extract metadata from content.

        Args:
            content: Source content.
            path: Path to the source file.

        Returns:
            Dictionary of extracted metadata.
        """
        ...


@runtime_checkable
class ContentLoader(Protocol):
    """Protocol for discovering content documents."""

    @abstractmethod
    def iter_files(self) -> list[Path]:
        """List all content documents in discovery order."""
        ...


@runtime_checkable
class PostBuilder(Protocol):
    """Protocol for building Post objects from documents."""

    @abstractmethod
    def build(self, path: Path) -> Post:
        """Build a Post from a source file.

        Raises:
            ContentSchemaError: If the document's front-matter is invalid.
        """
        ...
