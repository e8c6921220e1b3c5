"""Utility functions for mdblog.

Key functions:
    slug_from_filename: Derive a post slug from its filename.
    titleize: Convert filenames to human-readable titles.
    is_valid_slug: Check that a slug names a file directly inside a directory.
    is_markdown: Check if a path is a Markdown file.
"""

from __future__ import annotations

import re
from pathlib import Path

MARKDOWN_SUFFIX = ".md"

_SEPARATOR_RE = re.compile(r"[\s\-_]+")


def slug_from_filename(filename: str) -> str:
    """Return the filename without its extension.

    The slug is kept verbatim so that ``<dir>/<slug>.md`` always points back
    at the source file.

    Examples:
        >>> slug_from_filename("my-first_post.md")
        'my-first_post'
    """
    return Path(filename).stem


def titleize(filename: str) -> str:
    """Convert a filename or slug to a human-readable title.

    Replaces hyphens, underscores and whitespace with single spaces and
    capitalizes each word.

    Args:
        filename: Filename with or without extension.

    Returns:
        Human-readable title string.

    Examples:
        >>> titleize("my-first_post.md")
        'My First Post'

        >>> titleize("getting-started")
        'Getting Started'
    """
    base = filename
    if base.lower().endswith(MARKDOWN_SUFFIX):
        base = base[: -len(MARKDOWN_SUFFIX)]
    words = _SEPARATOR_RE.split(base)
    return " ".join(word.capitalize() for word in words if word) or "Untitled"


def is_valid_slug(slug: str) -> bool:
    """Check that a slug is a bare filename stem.

    Rejects empty slugs, hidden names and anything containing a path
    separator, so a lookup can never leave its directory.
    """
    if not slug or slug.startswith("."):
        return False
    if "/" in slug or "\\" in slug or "\x00" in slug:
        return False
    return True


def is_markdown(path: Path) -> bool:
    """Check if a path is a Markdown file.

    Args:
        path: Path to check.

    Returns:
        True if the file has the .md extension.
    """
    return path.suffix == MARKDOWN_SUFFIX
