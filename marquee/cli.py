"""Command-line interface for Marquee.

This module defines the CLI commands using Click.

Commands:
- build: Build the site into the output directory.
- check: Validate content and list the posts that would be published.
- serve: Run the development server with live reload.
- post: Create a new blog post interactively.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import click
import questionary
import yaml

from . import __version__
from .content import POST_TYPES, ContentSchemaError
from .store import DuplicatePathError
from .utils import slugify

BLOG_PREFIX = "/blog/"


@click.group()
@click.version_option(version=__version__, prog_name="marquee")
def cli():
    """Marquee site builder."""


def _strict_option(func):
    return click.option(
        "--lenient",
        is_flag=True,
        help="Skip posts with invalid front-matter instead of failing",
    )(func)


def _report_failure(
    exc: Exception, project_root: Path, heading: str = "Build failed:"
) -> None:
    """Print a failure with file context and exit with status 1."""
    source = getattr(exc, "source_path", None)
    message = getattr(exc, "message", str(exc))
    click.echo(click.style(heading, fg="red", bold=True), err=True)
    if source is not None:
        try:
            source = source.relative_to(project_root)
        except ValueError:
            pass
        click.echo(click.style(f"  File: {source}", fg="yellow"), err=True)
    url = getattr(exc, "url", None)
    if url is not None:
        click.echo(click.style(f"  Route: {url}", fg="yellow"), err=True)
    click.echo(click.style(f"  Error: {message}", fg="white"), err=True)
    raise SystemExit(1)


def _report_skipped(store, project_root: Path) -> None:
    for error in store.errors:
        try:
            source = error.source_path.relative_to(project_root)
        except ValueError:
            source = error.source_path
        click.echo(
            click.style(f"Skipped {source}: {error.message}", fg="yellow"), err=True
        )


@cli.command()
@_strict_option
@click.option("--root-url", default=None, help="Absolutize links against this URL")
def build(lenient: bool, root_url: str | None):
    """Build the site into the output directory."""
    project_root = Path.cwd()
    from .build import BuildError, build_site

    try:
        result = build_site(
            project_root, strict=False if lenient else None, root_url=root_url
        )
    except (BuildError, ContentSchemaError, DuplicatePathError) as exc:
        _report_failure(exc, project_root)
    _report_skipped(result.store, project_root)
    click.echo(
        f"Built {len(result.urls)} pages ({len(result.store)} posts) "
        f"into {result.output_dir}"
    )


@cli.command()
@_strict_option
def check(lenient: bool):
    """Validate content and list the posts that would be published."""
    project_root = Path.cwd()
    from .build import load_store

    try:
        store = load_store(project_root, strict=False if lenient else None)
    except (ContentSchemaError, DuplicatePathError) as exc:
        _report_failure(exc, project_root)
    for post in store.posts():
        click.echo(f"{post.path}  {post.date:%Y-%m-%d}  [{post.type}]  {post.title}")
    _report_skipped(store, project_root)
    click.echo(f"{len(store)} posts OK")
    if store.errors:
        raise SystemExit(1)


@cli.command()
@_strict_option
@click.option(
    "--port",
    type=int,
    required=False,
    help="Port to run the dev server (overrides marquee.yaml)",
)
@click.option(
    "--ws-port",
    type=int,
    required=False,
    help="Port for the live reload websocket server (overrides marquee.yaml ws_port)",
)
def serve(lenient: bool, port: int | None, ws_port: int | None):
    """Run dev server with live reload."""
    project_root = Path.cwd()
    from .server import DevServer

    server = DevServer(project_root, http_port=port, ws_port=ws_port)
    server.start(strict=False if lenient else None)


@cli.command()
def post():
    """Create a new blog post interactively."""
    project_root = Path.cwd()
    from .build import load_config, load_store

    config = load_config(project_root)
    content_dir = project_root / config.get("content_dir", "content")

    title = questionary.text(
        "Title:",
        validate=lambda x: len(x.strip()) > 0 or "Title cannot be empty",
        style=_questionary_style(),
    ).ask()
    if title is None:
        raise click.Abort()
    title = title.strip()

    slug = questionary.text(
        "Slug:", default=slugify(title), style=_questionary_style()
    ).ask()
    if slug is None:
        raise click.Abort()
    slug = slugify(slug)

    post_type = questionary.select(
        "Type:", choices=sorted(POST_TYPES), default="full", style=_questionary_style()
    ).ask()
    if post_type is None:
        raise click.Abort()

    route = f"{BLOG_PREFIX}{slug}"
    try:
        store = load_store(project_root, strict=False)
    except DuplicatePathError as exc:
        _report_failure(exc, project_root, heading="Cannot create post:")
    if route in store:
        raise click.ClickException(
            f"A post already uses {route}: {store[route].source}"
        )
    target_path = content_dir / "blog" / f"{slug}.md"
    if target_path.exists():
        raise click.ClickException(
            f"File already exists: {target_path.relative_to(project_root)}"
        )

    frontmatter = {
        "path": route,
        "date": datetime.now().strftime("%Y-%m-%d"),
        "title": title,
        "type": post_type,
        "version": "none",
    }
    header = yaml.safe_dump(frontmatter, sort_keys=False, allow_unicode=True)
    target_path.parent.mkdir(parents=True, exist_ok=True)
    target_path.write_text(f"---\n{header}---\n\n", encoding="utf-8")
    click.echo(f"Created {target_path.relative_to(project_root)}")


def _questionary_style():
    """Return consistent questionary style."""
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
            ("pointer", "fg:cyan bold"),
            ("highlighted", "fg:cyan bold"),
            ("selected", "fg:cyan"),
        ]
    )


def main():
    """Entry point for the CLI application."""
    cli()
