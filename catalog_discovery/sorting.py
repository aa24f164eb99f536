"""Record ordering by named sort keys.

Python's sort is stable, including with ``reverse=True``, so records with
equal keys always keep their input order.
"""
from __future__ import annotations

import unicodedata
from typing import Any, Callable, Dict, Iterable, List, Tuple, Union

from .models import CatalogRecord, SortKey, coerce_enum

DEFAULT_SORT = SortKey.CREATED_DESC


def safe_float(value: Any) -> float:
    try:
        return float(value)
    except Exception:
        return 0.0


def text_sort_key(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text or "")
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


def _ts(value) -> float:
    return value.timestamp() if value is not None else 0.0


def flag_first_sort_key(flag: bool, record: CatalogRecord) -> Tuple[int, float]:
    return (0 if flag else 1, -_ts(record.created_at))


# (key function, reverse)
_SORTS: Dict[SortKey, Tuple[Callable[[CatalogRecord], Any], bool]] = {
    SortKey.TITLE_ASC: (lambda r: text_sort_key(r.title), False),
    SortKey.TITLE_DESC: (lambda r: text_sort_key(r.title), True),
    SortKey.PROJECT_DATE_ASC: (lambda r: _ts(r.project_start), False),
    SortKey.PROJECT_DATE_DESC: (lambda r: _ts(r.project_start), True),
    SortKey.CREATED_ASC: (lambda r: _ts(r.created_at), False),
    SortKey.CREATED_DESC: (lambda r: _ts(r.created_at), True),
    SortKey.UPDATED_ASC: (lambda r: _ts(r.updated_at), False),
    SortKey.UPDATED_DESC: (lambda r: _ts(r.updated_at), True),
    SortKey.VIEW_COUNT_ASC: (lambda r: safe_float(r.view_count), False),
    SortKey.VIEW_COUNT_DESC: (lambda r: safe_float(r.view_count), True),
    SortKey.INVESTMENT_ASC: (lambda r: safe_float(r.scale.investment), False),
    SortKey.INVESTMENT_DESC: (lambda r: safe_float(r.scale.investment), True),
    SortKey.AREA_ASC: (lambda r: safe_float(r.scale.screen_area), False),
    SortKey.AREA_DESC: (lambda r: safe_float(r.scale.screen_area), True),
    SortKey.FEATURED: (lambda r: flag_first_sort_key(r.is_featured, r), False),
    SortKey.SHOWCASE: (lambda r: flag_first_sort_key(r.is_showcase, r), False),
}


def resolve_sort_key(sort_by: Union[SortKey, str, None]) -> SortKey:
    if sort_by is None or sort_by == "":
        return DEFAULT_SORT
    return coerce_enum(SortKey, sort_by, "sort_by")


def sort_records(
    records: Iterable[CatalogRecord],
    sort_by: Union[SortKey, str, None] = None,
) -> List[CatalogRecord]:
    key, reverse = _SORTS[resolve_sort_key(sort_by)]
    return sorted(records, key=key, reverse=reverse)
