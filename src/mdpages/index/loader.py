"""Markdown datasource: read a directory of documents and query it."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, List, Mapping, Tuple

from mdpages.config import DEFAULT_EXTENSION
from mdpages.index.query import run_query
from mdpages.ingestion.frontmatter import parse_document
from mdpages.models import QuerySpec, Record, ResultEnvelope
from mdpages.utils.files import iter_source_paths, read_source

LOGGER = logging.getLogger(__name__)


def read_all(paths: List[Path]) -> List[Tuple[Path, str]]:
    """Read every path concurrently and wait for all of them.

    The first failing read is re-raised once the pool has drained, so callers
    either get every file or an exception.
    """
    if not paths:
        return []
    with ThreadPoolExecutor() as executor:
        return list(executor.map(read_source, paths))


class MarkdownSource:
    """Datasource backed by a directory of Markdown files with front matter."""

    def __init__(self, source_path: Path, extension: str = DEFAULT_EXTENSION) -> None:
        self.source_path = Path(source_path)
        self.extension = extension.lstrip(".") or DEFAULT_EXTENSION

    @classmethod
    def from_schema(cls, schema: Mapping[str, Any]) -> Tuple["MarkdownSource", QuerySpec]:
        """Build a source and its default query from a datasource schema.

        The schema carries ``source: {path, extension}`` next to the query keys
        (``sort``, ``search``, ``filter``, ``fields``, ``count``, ``page``).
        """
        source = schema.get("source") or {}
        if "path" not in source:
            raise ValueError("datasource schema is missing source.path")
        extension = source.get("extension") or DEFAULT_EXTENSION
        return cls(Path(source["path"]), extension), QuerySpec.from_schema(schema)

    def read_records(self) -> List[Record]:
        paths = list(iter_source_paths(self.source_path, self.extension))
        LOGGER.debug("Reading %d .%s files from %s", len(paths), self.extension, self.source_path)
        return [parse_document(raw, path) for path, raw in read_all(paths)]

    def load(self, query: QuerySpec | None = None) -> ResultEnvelope:
        """Load, parse and query every matching file in the source directory."""
        records = self.read_records()
        envelope = run_query(records, query or QuerySpec())
        LOGGER.info(
            "Loaded %d records from %s, returning %d",
            len(records),
            self.source_path,
            len(envelope.results),
        )
        return envelope
