"""Site building for Marquee.

Loads configuration and site data, builds the post store, renders every
route through the router and writes the output directory.

Key functions:
- build_site: Build the entire site.
- load_config: Load site configuration from marquee.yaml.
- load_data: Load site data from YAML files in the data directory.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from jinja2 import TemplateSyntaxError

from .components import LEAD, InstallButton, Lead, LeadSection
from .feeds import create_default_feed_registry
from .routes import Router
from .store import PostStore
from .templates import TemplateEngine
from .utils import absolutize_html_urls, ensure_clean_dir


class BuildError(Exception):
    """Error while rendering a route.

    Attributes:
        url: Route that failed to render.
        message: Human-readable error message.
        source_path: Source document for post routes, if any.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        url: str,
        message: str,
        source_path: Path | None = None,
        original_error: Exception | None = None,
    ):
        self.url = url
        self.message = message
        self.source_path = source_path
        self.original_error = original_error
        super().__init__(f"{url}: {message}")


DEFAULT_CONFIG = {
    "content_dir": "content",
    "output_dir": "output",
    "port": 4000,
    "root_url": "",
    "strict": True,
    "install_url": "#install",
}


@dataclass
class BuildResult:
    """Result of a site build.

    Attributes:
        store: The post store the site was built from.
        urls: Every URL that was written.
        output_dir: Directory where the site was built.
        data: Global site data dictionary.
        feeds: Feed files that were generated.
    """

    store: PostStore
    urls: list[str]
    output_dir: Path
    data: dict[str, Any]
    feeds: list[str]


def load_config(project_root: Path) -> dict[str, Any]:
    """Load site configuration from marquee.yaml.

    Args:
        project_root: Root directory of the project.

    Returns:
        Configuration values, with defaults applied.
    """
    config_path = project_root / "marquee.yaml"
    config = DEFAULT_CONFIG.copy()
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
        if isinstance(loaded, dict):
            config.update(loaded)
    return config


def load_data(project_root: Path) -> dict[str, Any]:
    """Load site data from YAML files in the data directory.

    ``site.yaml`` is merged into the top level; any other file is exposed
    under its stem (``data/nav.yaml`` becomes ``data["nav"]``).

    Args:
        project_root: Root directory of the project.

    Returns:
        Dictionary containing merged data from all YAML files.
    """
    data_dir = project_root / "data"
    data: dict[str, Any] = {}
    if not data_dir.exists():
        return data
    for path in sorted(data_dir.glob("*.yaml")):
        with open(path, encoding="utf-8") as f:
            payload = yaml.safe_load(f)
        if payload is None:
            continue
        if path.name == "site.yaml":
            if isinstance(payload, dict):
                data.update(payload)
        else:
            data[path.stem] = payload
    return data


def load_store(project_root: Path, strict: bool | None = None) -> PostStore:
    """Build the post store for a project.

    Args:
        project_root: Root directory of the project.
        strict: Overrides the ``strict`` config value when given.

    Raises:
        ContentSchemaError: In strict mode, for an invalid document.
        DuplicatePathError: If two documents share a path.
    """
    config = load_config(project_root)
    if strict is None:
        strict = bool(config.get("strict", True))
    content_dir = project_root / config.get("content_dir", "content")
    return PostStore.from_directory(content_dir, strict=strict)


def create_engine(
    project_root: Path, store: PostStore, data: dict[str, Any], config: dict[str, Any]
) -> TemplateEngine:
    """Create a template engine with the site's posts and components."""
    layouts_dir = project_root / "layouts"
    engine = TemplateEngine(
        data,
        layouts_dir=layouts_dir if layouts_dir.exists() else None,
        root_url=str(config.get("root_url") or ""),
    )
    engine.update_collections(store.posts())
    button = InstallButton(href=str(config.get("install_url") or "#install"))
    engine.register_component(
        "lead", Lead(LeadSection(LEAD.headline, LEAD.subheading, button))
    )
    return engine


def build_site(
    project_root: Path,
    strict: bool | None = None,
    root_url: str | None = None,
    clean_output: bool = True,
    output_dir_override: Path | None = None,
) -> BuildResult:
    """Build the entire static site.

    Args:
        project_root: Root directory of the project.
        strict: Overrides the ``strict`` config value when given.
        root_url: Optional base URL to absolutize links with.
        clean_output: Whether to wipe the output directory before building.
        output_dir_override: Write here instead of the configured output_dir.

    Returns:
        BuildResult describing what was written.

    Raises:
        ContentSchemaError: In strict mode, for an invalid document.
        DuplicatePathError: If two documents share a path.
        BuildError: If a route fails to render.
    """
    config = load_config(project_root)
    if root_url is not None:
        config["root_url"] = root_url
    output_dir = output_dir_override or (
        project_root / config.get("output_dir", "output")
    )

    store = load_store(project_root, strict=strict)
    data = load_data(project_root)
    resolved_root = str(config.get("root_url") or "")
    if resolved_root:
        data.setdefault("root_url", resolved_root)
    engine = create_engine(project_root, store, data, config)
    router = Router(store, engine)

    if clean_output:
        ensure_clean_dir(output_dir)
    else:
        output_dir.mkdir(parents=True, exist_ok=True)

    urls: list[str] = []
    for url in router.routes():
        post = store.get(url)
        try:
            response = router.render(url)
        except TemplateSyntaxError as exc:
            raise BuildError(
                url,
                f"Template syntax error on line {exc.lineno}: {exc.message}",
                post.source if post else None,
                exc,
            ) from exc
        except Exception as exc:
            raise BuildError(
                url,
                _format_error_message(exc),
                post.source if post else None,
                exc,
            ) from exc
        _write_page(output_dir, url, _finalize(response.body, resolved_root))
        urls.append(url)

    not_found = router.render_not_found()
    (output_dir / "404.html").write_text(
        _finalize(not_found.body, resolved_root), encoding="utf-8"
    )

    feeds = create_default_feed_registry().generate_all(
        output_dir, urls, store.posts(), data
    )
    return BuildResult(
        store=store, urls=urls, output_dir=output_dir, data=data, feeds=feeds
    )


def _finalize(html: str, root_url: str) -> str:
    return absolutize_html_urls(html, root_url) if root_url else html


def _format_error_message(exc: Exception) -> str:
    """Format an exception into a user-friendly error message."""
    error_type = type(exc).__name__
    error_msg = str(exc)
    if error_type == "UndefinedError":
        return f"Undefined variable: {error_msg}"
    if error_type == "TemplateNotFound":
        return f"Template not found: {error_msg}"
    return f"{error_type}: {error_msg}"


def _write_page(output_dir: Path, url: str, rendered: str) -> None:
    """Write a rendered route to ``<output>/<url>/index.html``."""
    target_dir = output_dir / url.strip("/")
    target_dir.mkdir(parents=True, exist_ok=True)
    with open(target_dir / "index.html", "w", encoding="utf-8") as f:
        f.write(rendered)
