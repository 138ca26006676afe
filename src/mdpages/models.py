"""Core mdpages data models."""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

SORT_DIRECTIONS = (1, -1)

_LEADING_INT = re.compile(r"^\s*([-+]?\d+)")


def normalize_sort(sort: Any) -> Dict[str, int]:
    """Keep only sort entries whose direction is exactly 1 or -1."""
    if not isinstance(sort, Mapping):
        return {}
    return {
        str(name): direction
        for name, direction in sort.items()
        if not isinstance(direction, bool) and direction in SORT_DIRECTIONS
    }


def parse_int(value: Any) -> Optional[int]:
    """Read an integer the lenient way query strings and schemas supply them.

    ``"10"``, ``"10 per page"`` and ``10.7`` all give ``10``; anything without
    leading digits gives ``None``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


@dataclass(frozen=True, slots=True)
class RecordMeta:
    """Where a record came from."""

    location: str
    extension: str
    handle: str


@dataclass(frozen=True, slots=True)
class Record:
    """One parsed source document plus its rendered body."""

    meta: RecordMeta
    attributes: Dict[str, Any]
    original: str
    content_text: str
    content_html: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "meta": {
                "location": self.meta.location,
                "extension": self.meta.extension,
                "handle": self.meta.handle,
            },
            "attributes": copy.deepcopy(self.attributes),
            "original": self.original,
            "content_text": self.content_text,
            "content_html": self.content_html,
        }


@dataclass(frozen=True, slots=True)
class QuerySpec:
    """Per-request query options for a datasource load."""

    sort: Dict[str, int] = field(default_factory=dict)
    search: Optional[Dict[str, Any]] = None
    filter: Optional[Dict[str, Any]] = None
    fields: List[str] = field(default_factory=list)
    count: Optional[int] = None
    page: int = 1

    def __post_init__(self) -> None:
        object.__setattr__(self, "sort", normalize_sort(self.sort))
        object.__setattr__(self, "fields", list(self.fields or []))

    @classmethod
    def from_schema(cls, schema: Mapping[str, Any]) -> "QuerySpec":
        """Build a query from a datasource schema mapping."""
        fields = schema.get("fields") or []
        if isinstance(fields, str):
            fields = [name.strip() for name in fields.split(",") if name.strip()]
        return cls(
            sort=schema.get("sort") or {},
            search=schema.get("search") or None,
            filter=schema.get("filter") or None,
            fields=list(fields),
            count=parse_int(schema.get("count")),
            page=parse_int(schema.get("page")) or 1,
        )


@dataclass(frozen=True, slots=True)
class PaginationMetadata:
    """Page/limit/total derived figures for the current page."""

    page: int
    limit: int
    offset: int
    total_count: int
    total_pages: int
    next_page: Optional[int] = None
    prev_page: Optional[int] = None

    def to_dict(self) -> Dict[str, int]:
        data = {
            "page": self.page,
            "limit": self.limit,
            "offset": self.offset,
            "totalCount": self.total_count,
            "totalPages": self.total_pages,
        }
        if self.next_page is not None:
            data["nextPage"] = self.next_page
        if self.prev_page is not None:
            data["prevPage"] = self.prev_page
        return data


ResultItem = Union[Record, Dict[str, Any]]


@dataclass(slots=True)
class ResultEnvelope:
    """Final output of a datasource load."""

    results: List[ResultItem]
    metadata: Optional[PaginationMetadata] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "results": [
                item.to_dict() if isinstance(item, Record) else item for item in self.results
            ],
            "metadata": self.metadata.to_dict() if self.metadata is not None else None,
        }
