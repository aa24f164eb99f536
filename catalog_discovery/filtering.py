"""Structured filtering of catalog records.

Every populated criterion narrows the set (AND across criteria). Within a
multi-valued criterion any listed value is accepted (OR), and tags/features
match when the record carries at least one requested value.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Tuple

from .geo import record_distance_km, validate_coordinates
from .models import (
    CaseStatus,
    CatalogRecord,
    DateField,
    FilterCriteria,
    IndustryType,
    MultiValue,
    ProjectType,
    as_utc,
    coerce_enum,
)

logger = logging.getLogger(__name__)

Predicate = Callable[[CatalogRecord], bool]


def as_values(value: MultiValue) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(value)


def record_date(record: CatalogRecord, date_field: DateField) -> datetime:
    return as_utc(_raw_record_date(record, date_field))


def _raw_record_date(record: CatalogRecord, date_field: DateField) -> datetime:
    if date_field == DateField.PROJECT_START:
        return record.project_start
    if date_field == DateField.PROJECT_END:
        return record.project_end
    if date_field == DateField.UPDATED_AT:
        return record.updated_at
    if date_field == DateField.PUBLISHED_AT:
        return record.published_at or record.created_at
    return record.created_at


def record_search_text(record: CatalogRecord) -> List[str]:
    return [
        record.title,
        record.summary,
        record.description,
        record.customer_name,
        *record.tags,
        *record.features,
        *record.solutions,
    ]


def matches_search(record: CatalogRecord, term: str) -> bool:
    term = term.lower().strip()
    if not term:
        return True
    return any(term in (text or "").lower() for text in record_search_text(record))


def build_predicates(criteria: FilterCriteria) -> List[Tuple[str, Predicate]]:
    """Translate criteria into named predicates, validating closed-set values up front."""
    predicates: List[Tuple[str, Predicate]] = []

    project_types = {coerce_enum(ProjectType, v, "project_type") for v in as_values(criteria.project_type)}
    if project_types:
        predicates.append(("project_type", lambda r: r.project_type in project_types))

    industries = {coerce_enum(IndustryType, v, "industry") for v in as_values(criteria.industry)}
    if industries:
        predicates.append(("industry", lambda r: r.industry in industries))

    statuses = {coerce_enum(CaseStatus, v, "status") for v in as_values(criteria.status)}
    if statuses:
        predicates.append(("status", lambda r: r.status in statuses))

    countries = set(as_values(criteria.country))
    if countries:
        predicates.append(("country", lambda r: r.location.country in countries))

    regions = set(as_values(criteria.region))
    if regions:
        predicates.append(
            ("region", lambda r: bool(r.location.region) and r.location.region in regions)
        )

    cities = set(as_values(criteria.city))
    if cities:
        predicates.append(("city", lambda r: r.location.city in cities))

    tags = set(as_values(criteria.tags))
    if tags:
        predicates.append(("tags", lambda r: any(t in tags for t in r.tags)))

    features = set(as_values(criteria.features))
    if features:
        predicates.append(("features", lambda r: any(f in features for f in r.features)))

    if criteria.is_featured is not None:
        wanted_featured = bool(criteria.is_featured)
        predicates.append(("is_featured", lambda r: r.is_featured == wanted_featured))

    if criteria.is_showcase is not None:
        wanted_showcase = bool(criteria.is_showcase)
        predicates.append(("is_showcase", lambda r: r.is_showcase == wanted_showcase))

    if criteria.min_area is not None:
        min_area = criteria.min_area
        predicates.append(("min_area", lambda r: (r.scale.screen_area or 0) >= min_area))
    if criteria.max_area is not None:
        max_area = criteria.max_area
        predicates.append(("max_area", lambda r: (r.scale.screen_area or 0) <= max_area))

    # Records without an investment figure never satisfy an investment bound.
    if criteria.min_investment is not None:
        min_inv = criteria.min_investment
        predicates.append(
            ("min_investment", lambda r: bool(r.scale.investment) and r.scale.investment >= min_inv)
        )
    if criteria.max_investment is not None:
        max_inv = criteria.max_investment
        predicates.append(
            ("max_investment", lambda r: bool(r.scale.investment) and r.scale.investment <= max_inv)
        )

    if criteria.date_range is not None:
        date_range = criteria.date_range
        predicates.append(
            (
                "date_range",
                lambda r: date_range.start <= record_date(r, date_range.field) <= date_range.end,
            )
        )

    if criteria.search and criteria.search.strip():
        term = criteria.search
        predicates.append(("search", lambda r: matches_search(r, term)))

    if criteria.has_video is not None:
        wanted_video = bool(criteria.has_video)
        predicates.append(("has_video", lambda r: bool(r.videos) == wanted_video))

    if criteria.has_testimonial is not None:
        wanted_testimonial = bool(criteria.has_testimonial)
        predicates.append(("has_testimonial", lambda r: bool(r.testimonials) == wanted_testimonial))

    if criteria.min_rating is not None:
        min_rating = criteria.min_rating
        predicates.append(("min_rating", lambda r: r.average_rating >= min_rating))

    if criteria.near is not None:
        near = criteria.near
        validate_coordinates(near.latitude, near.longitude, "near")
        predicates.append(
            (
                "near",
                lambda r: record_distance_km(r, near.latitude, near.longitude) <= near.radius_km,
            )
        )

    return predicates


def apply_filters(
    records: Iterable[CatalogRecord],
    criteria: Optional[FilterCriteria] = None,
) -> List[CatalogRecord]:
    records = list(records)
    if criteria is None:
        return records

    predicates = build_predicates(criteria)
    if not predicates:
        return records

    filtered = [r for r in records if all(check(r) for _, check in predicates)]
    logger.debug(
        "Filters %s kept %d of %d records",
        ",".join(name for name, _ in predicates),
        len(filtered),
        len(records),
    )
    return filtered
