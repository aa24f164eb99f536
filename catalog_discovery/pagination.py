"""Page slicing with navigation metadata."""
from __future__ import annotations

import math
from typing import Optional, Sequence

from . import config
from .models import CatalogRecord, CatalogValidationError, Page, PageMeta


def validate_page_params(page: int, limit: int) -> None:
    if isinstance(page, bool) or not isinstance(page, int) or page < 1:
        raise CatalogValidationError("invalid_pagination", "page", f"page must be an integer >= 1, got {page!r}")
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise CatalogValidationError("invalid_pagination", "limit", f"limit must be an integer >= 1, got {limit!r}")


def paginate(
    records: Sequence[CatalogRecord],
    page: int = 1,
    limit: Optional[int] = None,
) -> Page:
    """Return one page of ``records``.

    A page past the end is a valid empty page, not an error.
    """
    if limit is None:
        limit = config.DEFAULT_PAGE_SIZE
    validate_page_params(page, limit)

    total = len(records)
    total_pages = math.ceil(total / limit)
    start = (page - 1) * limit
    items = list(records[start:start + limit])

    return Page(
        items=items,
        meta=PageMeta(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        ),
    )
