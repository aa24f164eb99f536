"""Relevance-ranked free-text search and autocomplete suggestions."""
from __future__ import annotations

import re
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from . import config
from .models import CatalogRecord, CatalogValidationError, SearchMatch, Suggestion
from .similarity import array_field_score, field_score

_FIELD_SCORERS: Dict[str, Callable[[CatalogRecord, str, bool], float]] = {
    "title": lambda r, q, fuzzy: field_score(r.title, q, fuzzy),
    "summary": lambda r, q, fuzzy: field_score(r.summary, q, fuzzy),
    "description": lambda r, q, fuzzy: field_score(r.description, q, fuzzy),
    "customer": lambda r, q, fuzzy: field_score(r.customer_name, q, fuzzy),
    "tags": lambda r, q, fuzzy: array_field_score(r.tags, q, fuzzy),
    "features": lambda r, q, fuzzy: array_field_score(r.features, q, fuzzy),
    "solutions": lambda r, q, fuzzy: array_field_score(r.solutions, q, fuzzy),
}


def normalize_query(query: Optional[str]) -> str:
    return (query or "").lower().strip()


def _resolve_fields(fields: Optional[Sequence[str]]) -> List[str]:
    if fields is None:
        fields = config.DEFAULT_SEARCH_FIELDS
    resolved = list(fields)
    if not resolved:
        raise CatalogValidationError("invalid_enum", "fields", "at least one search field is required")
    unknown = [f for f in resolved if f not in _FIELD_SCORERS]
    if unknown:
        raise CatalogValidationError(
            "invalid_enum", "fields", f"unknown search fields: {', '.join(unknown)}"
        )
    return resolved


def score_record(
    record: CatalogRecord,
    term: str,
    fields: Sequence[str],
    fuzzy: bool = True,
) -> float:
    weights = config.SEARCH_FIELD_WEIGHTS
    total = 0.0
    for name in fields:
        total += _FIELD_SCORERS[name](record, term, fuzzy) * weights[name]
    return min(total / len(fields), 1.0)


def rank(
    records: Iterable[CatalogRecord],
    query: str,
    fields: Optional[Sequence[str]] = None,
    fuzzy: bool = True,
    min_score: Optional[float] = None,
) -> List[SearchMatch]:
    term = normalize_query(query)
    if not term:
        return []
    resolved = _resolve_fields(fields)
    floor = config.SEARCH_MIN_SCORE if min_score is None else min_score

    matches: List[SearchMatch] = []
    for record in records:
        score = score_record(record, term, resolved, fuzzy)
        if score >= floor:
            matches.append(SearchMatch(record=record, score=score))

    matches.sort(key=lambda m: -m.score)
    return matches


def _slug(text: str) -> str:
    return re.sub(r"\s+", "-", text.lower())


def _count_matching(values: Iterable[str], term: str) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for value in values:
        if value and term in value.lower():
            counts[value] = counts.get(value, 0) + 1
    return counts


def suggest(
    records: Iterable[CatalogRecord],
    query: str,
    limit: Optional[int] = None,
) -> List[Suggestion]:
    term = normalize_query(query)
    if len(term) < config.SUGGESTION_MIN_QUERY_LENGTH:
        return []
    if limit is None:
        limit = config.SUGGESTION_LIMIT
    records = list(records)

    suggestions: List[Suggestion] = []
    for record in records:
        if term in record.title.lower():
            suggestions.append(
                Suggestion(type="case", id=record.id, text=record.title, description=record.customer_name)
            )

    customers = _count_matching((r.customer_name for r in records), term)
    for name, count in customers.items():
        suggestions.append(Suggestion(type="customer", id=_slug(name), text=name, count=count))

    locations = _count_matching(
        (f"{r.location.city}, {r.location.country}" for r in records), term
    )
    for text, count in locations.items():
        suggestions.append(Suggestion(type="location", id=_slug(text), text=text, count=count))

    tags = _count_matching((tag for r in records for tag in r.tags), term)
    for tag, count in tags.items():
        suggestions.append(Suggestion(type="tag", id=tag, text=tag, count=count))

    type_order = config.SUGGESTION_TYPE_ORDER
    suggestions.sort(
        key=lambda s: (
            0 if s.text.lower() == term else 1,
            type_order.get(s.type, len(type_order) + 1),
            -(s.count or 0),
        )
    )
    return suggestions[: max(0, limit)]
