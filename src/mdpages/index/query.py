"""Search, filter, sort, paginate and project a collection of records."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from dateutil import parser as date_parser

from mdpages.index.pagination import build_pagination_metadata
from mdpages.models import QuerySpec, Record, ResultEnvelope

LOGGER = logging.getLogger(__name__)


def _values_equal(left: Any, right: Any) -> bool:
    # True == 1 in Python; predicates treat booleans as their own type.
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return left == right


def matches(data: Mapping[str, Any], predicate: Mapping[str, Any]) -> bool:
    """Return True when every key of ``predicate`` is present in ``data`` with an equal value."""
    for key, expected in predicate.items():
        if key not in data or not _values_equal(data[key], expected):
            return False
    return True


def apply_search(records: Sequence[Record], search: Mapping[str, Any]) -> List[Record]:
    """Keep records whose top-level fields match ``search``."""
    return [record for record in records if matches(record.to_dict(), search)]


def apply_filter(records: Sequence[Record], predicate: Mapping[str, Any]) -> List[Record]:
    """Keep records whose attributes match ``predicate``."""
    return [record for record in records if matches(record.attributes, predicate)]


class KeyKind(Enum):
    DATE = "date"
    NUMBER = "number"
    TEXT = "text"
    MISSING = "missing"


# Dates and numbers share a rank so they compare by numeric value.
_RANK = {KeyKind.DATE: 0, KeyKind.NUMBER: 0, KeyKind.TEXT: 1, KeyKind.MISSING: 2}

# Fills the parts a partial date string leaves out, e.g. "March 2020".
_DATE_DEFAULT = datetime(2000, 1, 1)


@dataclass(frozen=True, slots=True)
class SortKey:
    """Comparison key for one attribute value.

    Numeric kinds sort before text, and missing values sort last when
    ascending. Mixed non-scalar values fall back to their text form, so the
    order is best-effort rather than a strict total order.
    """

    kind: KeyKind
    value: float | str = 0

    def __lt__(self, other: "SortKey") -> bool:
        rank, other_rank = _RANK[self.kind], _RANK[other.kind]
        if rank != other_rank:
            return rank < other_rank
        return self.value < other.value


def _as_timestamp(value: date) -> float:
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()


def sort_key(value: Any) -> SortKey:
    """Classify an attribute value for sorting."""
    if value is None:
        return SortKey(KeyKind.MISSING)
    if isinstance(value, date):
        return SortKey(KeyKind.DATE, _as_timestamp(value))
    if isinstance(value, (int, float)):
        return SortKey(KeyKind.NUMBER, float(value))
    if isinstance(value, str):
        try:
            parsed = date_parser.parse(value, default=_DATE_DEFAULT)
        except (ValueError, OverflowError):
            return SortKey(KeyKind.TEXT, value)
        return SortKey(KeyKind.DATE, _as_timestamp(parsed))
    return SortKey(KeyKind.TEXT, str(value))


def sort_records(records: Sequence[Record], sort: Mapping[str, int]) -> List[Record]:
    """Sort by each field in turn, reversing the whole sequence for ``-1``.

    Every field re-sorts the full sequence, so the last declared field
    decides the final order and earlier fields only break its ties.
    """
    ordered = list(records)
    for field_name, direction in sort.items():
        ordered.sort(key=lambda record: sort_key(record.attributes.get(field_name)))
        if direction == -1:
            ordered.reverse()
    return ordered


def paginate(records: Sequence[Any], page: int, count: int) -> List[Any]:
    offset = (page - 1) * count
    return list(records[offset : offset + count])


def _lookup(data: Any, segments: Sequence[str]) -> Tuple[bool, Any]:
    current = data
    for segment in segments:
        if not isinstance(current, Mapping) or segment not in current:
            return False, None
        current = current[segment]
    return True, current


def _assign(target: Dict[str, Any], segments: Sequence[str], value: Any) -> None:
    for segment in segments[:-1]:
        target = target.setdefault(segment, {})
    target[segments[-1]] = value


def project_fields(record: Record, fields: Sequence[str]) -> Dict[str, Any]:
    """Reduce ``record`` to the requested, possibly dotted, field paths.

    Paths that do not start with a top-level record key are looked up in the
    record's attributes. Missing fields are left out.
    """
    data = record.to_dict()
    projected: Dict[str, Any] = {}
    for path in fields:
        segments = [segment for segment in path.split(".") if segment]
        if not segments:
            continue
        source = data if segments[0] in data else data["attributes"]
        found, value = _lookup(source, segments)
        if found:
            _assign(projected, segments, value)
    return projected


def run_query(records: Sequence[Record], query: QuerySpec) -> ResultEnvelope:
    """Apply search, filter, sort, pagination and projection in that order."""
    selected = list(records)

    if query.search:
        selected = apply_search(selected, query.search)

    if query.filter:
        selected = apply_filter(selected, query.filter)

    post_count = len(selected)

    if query.sort:
        selected = sort_records(selected, query.sort)

    metadata = None
    if query.page and query.count and query.count > 0:
        page = max(query.page, 1)
        selected = paginate(selected, page, query.count)
        metadata = build_pagination_metadata(page, query.count, post_count)

    LOGGER.debug(
        "Query kept %d of %d records (%d on this page)", post_count, len(records), len(selected)
    )

    if query.fields:
        return ResultEnvelope(
            results=[project_fields(record, query.fields) for record in selected],
            metadata=metadata,
        )
    return ResultEnvelope(results=list(selected), metadata=metadata)
