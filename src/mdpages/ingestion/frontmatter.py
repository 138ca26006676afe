"""Front matter parsing and Markdown rendering.

A document is a line of three dashes, a YAML block, a second line of three
dashes and then the Markdown body. Documents without that boundary keep an
empty attribute mapping and an empty body.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, Tuple

import markdown
import yaml

from mdpages.models import Record, RecordMeta

FRONT_MATTER_PATTERN = re.compile(
    r"\A\s*---[ \t]*\r?\n(?:(.*?)\r?\n)??---[ \t]*(?:\r?\n|\Z)(.*)\Z",
    re.DOTALL,
)

MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "sane_lists"]


class FrontMatterError(ValueError):
    """Raised when a front matter block cannot be read as a YAML mapping."""

    def __init__(self, message: str, location: str | None = None) -> None:
        self.location = location
        if location:
            message = f"{location}: {message}"
        super().__init__(message)


def parse_front_matter(raw: str, location: str | None = None) -> Tuple[Dict[str, Any], str]:
    """Split ``raw`` into its attribute mapping and body text."""
    match = FRONT_MATTER_PATTERN.match(raw)
    if match is None:
        # TODO: keep the whole text as the body once templates stop relying
        # on documents without front matter rendering as empty.
        return {}, ""

    block, body = match.group(1) or "", match.group(2) or ""
    try:
        attributes = yaml.safe_load(block)
    except yaml.YAMLError as exc:
        raise FrontMatterError(f"invalid front matter: {exc}", location) from exc

    if attributes is None:
        attributes = {}
    if not isinstance(attributes, dict):
        raise FrontMatterError(
            f"front matter must be a mapping, got {type(attributes).__name__}", location
        )
    return attributes, body


def render_markdown(text: str) -> str:
    if not text:
        return ""
    return markdown.markdown(text, extensions=MARKDOWN_EXTENSIONS)


def parse_document(raw: str, location: Path | str) -> Record:
    """Build a record from the raw contents of one source file."""
    path = Path(location)
    attributes, body = parse_front_matter(raw, str(path))
    return Record(
        meta=RecordMeta(location=str(path), extension=path.suffix, handle=path.stem),
        attributes=attributes,
        original=raw,
        content_text=body,
        content_html=render_markdown(body),
    )
