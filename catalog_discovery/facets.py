"""Facet counts and value ranges for building filter UIs."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from . import config
from .models import (
    INDUSTRY_LABELS,
    PROJECT_TYPE_LABELS,
    CaseStatus,
    CatalogRecord,
    IndustryType,
    ProjectType,
)


@dataclass
class FacetCount:
    value: str
    count: int
    label: Optional[str] = None


@dataclass
class NumericRange:
    min: float = 0
    max: float = 0


@dataclass
class InvestmentRange(NumericRange):
    currencies: List[str] = field(default_factory=list)


@dataclass
class ViewedRecord:
    id: str
    title: str
    views: int


@dataclass
class FacetStats:
    total: int = 0
    published: int = 0
    featured: int = 0
    showcase: int = 0
    project_types: List[FacetCount] = field(default_factory=list)
    industries: List[FacetCount] = field(default_factory=list)
    countries: List[FacetCount] = field(default_factory=list)
    tags: List[FacetCount] = field(default_factory=list)
    features: List[FacetCount] = field(default_factory=list)
    year_range: NumericRange = field(default_factory=NumericRange)
    investment_range: InvestmentRange = field(default_factory=InvestmentRange)
    area_range: NumericRange = field(default_factory=NumericRange)
    total_views: int = 0
    average_views: float = 0.0
    top_viewed: List[ViewedRecord] = field(default_factory=list)


def _bump(counts: Dict[Any, int], key: Any) -> None:
    counts[key] = counts.get(key, 0) + 1


def _by_count_desc(counts: Dict[str, int]) -> List[FacetCount]:
    # sorted() keeps first-seen order among equal counts
    ordered = sorted(counts.items(), key=lambda item: -item[1])
    return [FacetCount(value=k, count=v) for k, v in ordered]


def _range(values: List[float]) -> Tuple[float, float]:
    if not values:
        return 0, 0
    return min(values), max(values)


def compute_stats(records: Iterable[CatalogRecord]) -> FacetStats:
    records = list(records)

    type_counts: Dict[ProjectType, int] = {}
    industry_counts: Dict[IndustryType, int] = {}
    country_counts: Dict[str, int] = {}
    tag_counts: Dict[str, int] = {}
    feature_counts: Dict[str, int] = {}
    years: List[float] = []
    investments: List[float] = []
    areas: List[float] = []
    currencies: List[str] = []

    for record in records:
        _bump(type_counts, record.project_type)
        _bump(industry_counts, record.industry)
        _bump(country_counts, record.location.country)
        for tag in record.tags:
            _bump(tag_counts, tag)
        for feature in record.features:
            _bump(feature_counts, feature)

        years.append(record.project_start.year)
        if record.scale.investment:
            investments.append(record.scale.investment)
            currency = record.scale.currency
            if currency and currency not in currencies:
                currencies.append(currency)
        areas.append(record.scale.screen_area or 0)

    year_min, year_max = _range(years)
    inv_min, inv_max = _range(investments)
    area_min, area_max = _range(areas)

    total_views = sum(r.view_count for r in records)
    top_viewed = sorted(records, key=lambda r: -r.view_count)[: config.TOP_VIEWED_LIMIT]

    return FacetStats(
        total=len(records),
        published=sum(1 for r in records if r.status == CaseStatus.PUBLISHED),
        featured=sum(1 for r in records if r.is_featured),
        showcase=sum(1 for r in records if r.is_showcase),
        project_types=[
            FacetCount(value=k.value, count=v, label=PROJECT_TYPE_LABELS[k])
            for k, v in type_counts.items()
        ],
        industries=[
            FacetCount(value=k.value, count=v, label=INDUSTRY_LABELS[k])
            for k, v in industry_counts.items()
        ],
        countries=[FacetCount(value=k, count=v) for k, v in country_counts.items()],
        tags=_by_count_desc(tag_counts),
        features=_by_count_desc(feature_counts),
        year_range=NumericRange(min=int(year_min), max=int(year_max)),
        investment_range=InvestmentRange(min=inv_min, max=inv_max, currencies=currencies),
        area_range=NumericRange(min=area_min, max=area_max),
        total_views=total_views,
        average_views=(total_views / len(records)) if records else 0.0,
        top_viewed=[ViewedRecord(id=r.id, title=r.title, views=r.view_count) for r in top_viewed],
    )
