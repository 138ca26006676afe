"""Pagination metadata for a sliced result set."""

from __future__ import annotations

import math

from mdpages.models import PaginationMetadata


def build_pagination_metadata(page: int, limit: int, total_count: int) -> PaginationMetadata:
    if limit <= 0:
        raise ValueError(f"limit must be positive, got {limit}")
    page = max(page, 1)
    total_pages = math.ceil(total_count / limit)
    return PaginationMetadata(
        page=page,
        limit=limit,
        offset=(page - 1) * limit,
        total_count=total_count,
        total_pages=total_pages,
        next_page=page + 1 if page < total_pages else None,
        prev_page=page - 1 if page > 1 else None,
    )
