"""Command-line interface for mdblog.

This module defines the CLI commands using the Click framework.

Commands:
- new: Scaffold a new blog project.
- serve: Run the blog server.
- posts: List posts, newest first.
- md: Create a new post file interactively.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

import click
import questionary

from . import __version__
from .config import load_config, resolve_dir
from .utils import MARKDOWN_SUFFIX, is_valid_slug, titleize

# Path to the project skeleton copied by `mdblog new`
_SCAFFOLD_DIR = Path(__file__).parent / "scaffold"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(verbose: bool = False) -> None:
    """Configure the root logger for CLI runs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
    )


@click.group()
@click.version_option(version=__version__, prog_name="mdblog")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """mdblog Markdown blog server."""
    setup_logging(verbose)


@cli.command()
@click.argument("name")
def new(name: str):
    """Scaffold a new blog project."""
    target = Path(name).resolve()
    if target.exists() and any(target.iterdir()):
        raise click.ClickException(
            f"Refusing to initialize into non-empty directory: {target}"
        )
    _scaffold(target)
    click.echo(f"New blog created at {target}")


@cli.command()
@click.option("--host", required=False, help="Address to bind (overrides mdblog.yaml)")
@click.option(
    "--port",
    type=int,
    required=False,
    help="Port to run the server on (overrides mdblog.yaml)",
)
def serve(host: str | None, port: int | None):
    """Run the blog server."""
    project_root = Path.cwd()
    from .server import BlogServer

    server = BlogServer(project_root, host=host, port=port)
    server.start()


@cli.command()
def posts():
    """List posts, newest first."""
    project_root = Path.cwd()
    from .content import ContentError
    from .server import BlogApp

    loader = BlogApp(project_root).new_loader()
    try:
        loaded = loader.load_posts()
    except FileNotFoundError as exc:
        raise click.ClickException(str(exc)) from None
    except ContentError as exc:
        click.echo(click.style("Loading posts failed:", fg="red", bold=True), err=True)
        click.echo(click.style(f"  File: {exc.source_path}", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
        raise SystemExit(1) from None
    for post in loaded:
        click.echo(f"{post.date:%Y-%m-%d %H:%M}  {post.slug}  {post.title}")
    click.echo(f"{len(loaded)} posts")


@cli.command()
def md():
    """Create a new post file interactively."""
    project_root = Path.cwd()
    config = load_config(project_root)
    posts_dir = resolve_dir(project_root, config, "posts_dir")

    if not posts_dir.exists():
        raise click.ClickException(
            f"No posts directory found at {posts_dir}. "
            "Run this command from an mdblog project root."
        )

    name = questionary.text(
        "Slug (without .md extension):",
        validate=lambda x: is_valid_slug(x.strip()) or "Enter a plain file name",
        style=_questionary_style(),
    ).ask()

    if name is None:
        raise click.Abort()

    slug = name.strip()
    target_path = posts_dir / f"{slug}{MARKDOWN_SUFFIX}"
    if target_path.exists():
        raise click.ClickException(f"A post with slug '{slug}' already exists")

    target_path.write_text(
        f"Write the first paragraph of {titleize(slug)} here.\n", encoding="utf-8"
    )
    click.echo(f"Created {target_path}")


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


def _scaffold(root: Path) -> None:
    """Copy the project skeleton into ``root``.

    Args:
        root: Root directory for the new project.
    """
    for src_path in _SCAFFOLD_DIR.rglob("*"):
        if src_path.is_dir():
            continue
        rel_path = src_path.relative_to(_SCAFFOLD_DIR)
        dest_path = root / rel_path
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src_path, dest_path)
