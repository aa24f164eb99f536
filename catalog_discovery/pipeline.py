"""Query orchestration: filter, then rank or sort, then paginate."""
from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from . import config
from .clustering import cluster_records
from .facets import FacetStats, compute_stats
from .filtering import apply_filters
from .models import (
    CatalogQuery,
    CatalogRecord,
    ClusterResult,
    FilterCriteria,
    QueryResult,
)
from .pagination import paginate, validate_page_params
from .search import normalize_query, rank
from .sorting import resolve_sort_key, sort_records

logger = logging.getLogger(__name__)


@dataclass
class DiscoveryResult:
    result: QueryResult
    stats: Optional[FacetStats] = None
    clusters: Optional[ClusterResult] = None


def structural_criteria(query: CatalogQuery) -> FilterCriteria:
    """Criteria to apply before ranking.

    The coarse substring ``search`` criterion is dropped when a ranked search
    will run, since ranking applies its own relevance floor.
    """
    criteria = query.filters or FilterCriteria()
    if normalize_query(query.search_query) and criteria.search:
        criteria = dataclasses.replace(criteria, search=None)
    return criteria


def execute_query(records: Iterable[CatalogRecord], query: Optional[CatalogQuery] = None) -> QueryResult:
    result, _ = _run_query(records, query or CatalogQuery())
    return result


def _run_query(
    records: Iterable[CatalogRecord], query: CatalogQuery
) -> Tuple[QueryResult, List[CatalogRecord]]:
    """Page the query and also return every match, in filter (or relevance) order."""
    limit = query.limit if query.limit is not None else config.DEFAULT_PAGE_SIZE
    # Reject bad input before doing any work.
    validate_page_params(query.page, limit)
    sort_key = resolve_sort_key(query.sort_by)

    records = list(records)
    filtered = apply_filters(records, structural_criteria(query))
    logger.debug("Filter stage: %d -> %d records", len(records), len(filtered))

    scores = None
    if normalize_query(query.search_query):
        matches = rank(filtered, query.search_query)
        ordered = matching = [m.record for m in matches]
        scores = {m.record.id: m.score for m in matches}
        logger.debug("Search stage: %d matches for %r", len(ordered), query.search_query)
    else:
        matching = filtered
        ordered = sort_records(filtered, sort_key)

    page = paginate(ordered, query.page, limit)
    logger.info(
        "Query returned page %d/%d (%d of %d matching records)",
        page.meta.page,
        page.meta.total_pages,
        len(page.items),
        page.meta.total,
    )
    result = QueryResult(
        items=page.items,
        meta=page.meta,
        filters=query.filters,
        sort_by=None if scores is not None else sort_key,
        search_query=query.search_query,
        scores={r.id: scores[r.id] for r in page.items} if scores is not None else None,
    )
    return result, matching


def discover(
    records: Iterable[CatalogRecord],
    query: Optional[CatalogQuery] = None,
    include_stats: bool = True,
    zoom_level: Optional[float] = None,
) -> DiscoveryResult:
    """Run a query and describe the full matching set alongside the page.

    Facet stats and clusters cover every matching record, not just the page.
    """
    result, matching = _run_query(records, query or CatalogQuery())

    return DiscoveryResult(
        result=result,
        stats=compute_stats(matching) if include_stats else None,
        clusters=cluster_records(matching, zoom_level) if zoom_level is not None else None,
    )
