"""Post loading for mdblog.

This module turns Markdown files into Post records. Every call reads the
filesystem again; nothing is cached between requests.

Key classes:
- Post: Dataclass representing one blog post.
- PostLoader: Lists posts in a directory and looks up single posts by slug.
- ContentError, PostNotFoundError, ConversionError: Errors raised while
  loading content.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from markupsafe import Markup

from .extractors import FrontmatterError, extract_frontmatter
from .renderers import MarkdownRenderer
from .utils import (
    MARKDOWN_SUFFIX,
    is_markdown,
    is_valid_slug,
    slug_from_filename,
    titleize,
)

logger = logging.getLogger(__name__)


class ContentError(Exception):
    """Error while loading content, with file context.

    Attributes:
        source_path: Path to the file that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")


class PostNotFoundError(ContentError):
    """Raised when no Markdown file exists for a slug."""


class ConversionError(ContentError):
    """Raised when a Markdown file cannot be converted to HTML."""


@dataclass
class Post:
    """Represents a blog post.

    Attributes:
        title: Title derived from the slug.
        slug: Filename without extension.
        date: Last-modified time of the source file.
        content: Rendered HTML, safe to insert into templates.
        path: Path to the source file.
        frontmatter: Parsed metadata block, empty when the file has none.
    """

    title: str
    slug: str
    date: datetime
    content: Markup
    path: Path
    frontmatter: dict[str, Any] = field(default_factory=dict)


class PostLoader:
    """Loads posts from a directory of Markdown files.

    Attributes:
        posts_dir: Directory holding the post files.
        renderer: Markdown renderer used for conversion.
        skip_invalid: Log and skip posts that fail to convert instead of
            failing the whole listing.
    """

    def __init__(
        self,
        posts_dir: Path,
        renderer: MarkdownRenderer | None = None,
        skip_invalid: bool = False,
    ):
        self.posts_dir = posts_dir
        self.renderer = renderer or MarkdownRenderer()
        self.skip_invalid = skip_invalid

    def iter_files(self) -> list[Path]:
        """Return the Markdown files directly inside the posts directory.

        Raises:
            FileNotFoundError: If the posts directory does not exist.
        """
        if not self.posts_dir.is_dir():
            raise FileNotFoundError(f"Expected posts directory at {self.posts_dir}")
        return [
            path
            for path in sorted(self.posts_dir.glob(f"*{MARKDOWN_SUFFIX}"))
            if path.is_file() and is_markdown(path)
        ]

    def load_posts(self) -> list[Post]:
        """Load every post, newest first.

        Posts with the same modification time keep their filename order.

        Returns:
            List of Post objects sorted by date, descending.

        Raises:
            FileNotFoundError: If the posts directory does not exist.
            OSError: If a file cannot be read.
            ConversionError: If a file cannot be converted and skip_invalid
                is off. No partial listing is returned.
        """
        posts: list[Post] = []
        for path in self.iter_files():
            try:
                post = self._build_post(path)
            except ConversionError as exc:
                if not self.skip_invalid:
                    raise
                logger.warning("Skipping %s: %s", exc.source_path, exc.message)
                continue
            posts.append(post)
        posts.sort(key=lambda p: p.date, reverse=True)
        logger.debug("Loaded %d posts from %s", len(posts), self.posts_dir)
        return posts

    def load_post(self, slug: str) -> Post:
        """Load a single post by slug.

        Args:
            slug: Filename of the post without extension.

        Returns:
            The Post object.

        Raises:
            PostNotFoundError: If the slug is malformed or has no file.
            ConversionError: If the file cannot be converted.
        """
        path = self.posts_dir / f"{slug}{MARKDOWN_SUFFIX}"
        if not is_valid_slug(slug):
            raise PostNotFoundError(path, f"invalid slug {slug!r}")
        try:
            exists = path.is_file()
        except OSError as exc:
            # e.g. ENAMETOOLONG for slugs past the filesystem's name limit
            raise PostNotFoundError(path, f"no post named {slug!r}", exc) from exc
        if not exists:
            raise PostNotFoundError(path, f"no post named {slug!r}")
        return self._build_post(path)

    def render_markdown_file(self, path: Path) -> tuple[Markup, dict[str, Any]]:
        """Read a Markdown file, strip its front matter and convert it.

        Args:
            path: Markdown file to convert.

        Returns:
            Tuple of (rendered HTML, front matter dict).

        Raises:
            OSError: If the file cannot be read.
            ConversionError: If the front matter or Markdown is malformed.
        """
        try:
            raw = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise ConversionError(path, "file is not valid UTF-8", exc) from exc
        try:
            frontmatter, body = extract_frontmatter(raw)
        except FrontmatterError as exc:
            raise ConversionError(path, str(exc), exc) from exc
        try:
            html = self.renderer.render(body)
        except Exception as exc:
            raise ConversionError(
                path, f"{type(exc).__name__}: {exc}", exc
            ) from exc
        return Markup(html), frontmatter

    def _build_post(self, path: Path) -> Post:
        """Build a Post object from a source file."""
        slug = slug_from_filename(path.name)
        date = datetime.fromtimestamp(path.stat().st_mtime)
        content, frontmatter = self.render_markdown_file(path)
        return Post(
            title=titleize(slug),
            slug=slug,
            date=date,
            content=content,
            path=path,
            frontmatter=frontmatter,
        )
