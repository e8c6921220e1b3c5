"""Front matter extraction for mdblog.

A Markdown file may start with a metadata block. Three formats are recognised:
- YAML between ``---`` lines,
- TOML between ``+++`` lines,
- JSON between ``;;;`` lines, or a bare JSON object whose ``{`` and ``}``
  stand alone on the first and closing lines.

The block is removed before conversion so it never reaches the HTML output.
"""

from __future__ import annotations

import json
import re
import tomllib
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import yaml


class FrontmatterError(ValueError):
    """Raised when a metadata block is present but cannot be parsed."""


def _load_yaml(block: str) -> Any:
    try:
        return yaml.safe_load(block)
    except yaml.YAMLError as exc:
        raise FrontmatterError(f"invalid YAML in front matter: {exc}") from exc


def _load_toml(block: str) -> Any:
    try:
        return tomllib.loads(block)
    except tomllib.TOMLDecodeError as exc:
        raise FrontmatterError(f"invalid TOML in front matter: {exc}") from exc


def _load_json(block: str) -> Any:
    if not block.strip():
        return None
    try:
        return json.loads(block)
    except json.JSONDecodeError as exc:
        raise FrontmatterError(f"invalid JSON in front matter: {exc}") from exc


@dataclass(frozen=True)
class FrontmatterFormat:
    """A metadata block format.

    Attributes:
        name: Human-readable format name.
        opening: Delimiter line that opens the block.
        closing: Delimiter line that closes the block.
        load: Parser for the block text.
        keep_delimiters: Pass the delimiter lines to the parser too (bare JSON).
    """

    name: str
    opening: str
    closing: str
    load: Callable[[str], Any]
    keep_delimiters: bool = False

    @property
    def opening_re(self) -> re.Pattern:
        return re.compile(rf"\A{re.escape(self.opening)}[ \t]*\r?\n")

    @property
    def block_re(self) -> re.Pattern:
        return re.compile(
            rf"\A{re.escape(self.opening)}[ \t]*\r?\n(.*?)"
            rf"^{re.escape(self.closing)}[ \t]*(?:\r?\n|\Z)",
            re.DOTALL | re.MULTILINE,
        )


FORMATS = [
    FrontmatterFormat("YAML", "---", "---", _load_yaml),
    FrontmatterFormat("TOML", "+++", "+++", _load_toml),
    FrontmatterFormat("JSON", ";;;", ";;;", _load_json),
    FrontmatterFormat("JSON", "{", "}", _load_json, keep_delimiters=True),
]


def extract_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Split front matter from the rest of a Markdown document.

    Args:
        text: Raw file content.

    Returns:
        Tuple of (frontmatter dict, remaining content). Documents that do not
        open with a known delimiter line come back unchanged with an empty
        dict.

    Raises:
        FrontmatterError: If the block is unterminated, cannot be parsed,
            or does not hold a mapping.
    """
    for fmt in FORMATS:
        if fmt.opening_re.match(text):
            break
    else:
        return {}, text

    match = fmt.block_re.match(text)
    if not match:
        raise FrontmatterError(
            f"{fmt.name} front matter block is not terminated by '{fmt.closing}'"
        )
    block = match.group(1)
    if fmt.keep_delimiters:
        block = f"{fmt.opening}\n{block}{fmt.closing}"
    data = fmt.load(block)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise FrontmatterError(
            f"front matter must be a mapping, got {type(data).__name__}"
        )
    return data, text[match.end() :]
