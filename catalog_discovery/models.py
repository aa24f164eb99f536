"""Catalog records, query criteria and result shapes."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type, TypeVar, Union


class CatalogValidationError(ValueError):
    """Caller supplied a value the engine refuses to interpret."""

    def __init__(self, kind: str, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.kind = kind
        self.field = field
        self.message = message

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.kind, "field": self.field, "message": self.message}


class ProjectType(str, Enum):
    INDOOR_FIXED = "indoor_fixed"
    OUTDOOR_ADVERTISING = "outdoor_advertising"
    RENTAL_EVENT = "rental_event"
    BROADCAST_STUDIO = "broadcast_studio"
    RETAIL_DISPLAY = "retail_display"
    SPORTS_VENUE = "sports_venue"
    TRANSPORTATION = "transportation"
    CORPORATE = "corporate"
    EDUCATION = "education"
    HEALTHCARE = "healthcare"
    GOVERNMENT = "government"
    ENTERTAINMENT = "entertainment"
    OTHER = "other"


class IndustryType(str, Enum):
    ADVERTISING = "advertising"
    RETAIL = "retail"
    SPORTS = "sports"
    ENTERTAINMENT = "entertainment"
    EDUCATION = "education"
    HEALTHCARE = "healthcare"
    GOVERNMENT = "government"
    TRANSPORTATION = "transportation"
    HOSPITALITY = "hospitality"
    CORPORATE = "corporate"
    BROADCAST = "broadcast"
    EVENTS = "events"
    RELIGIOUS = "religious"
    OTHER = "other"


class CaseStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class DateField(str, Enum):
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
    PROJECT_START = "project_start"
    PROJECT_END = "project_end"
    PUBLISHED_AT = "published_at"


class SortKey(str, Enum):
    TITLE_ASC = "title_asc"
    TITLE_DESC = "title_desc"
    PROJECT_DATE_ASC = "project_date_asc"
    PROJECT_DATE_DESC = "project_date_desc"
    CREATED_ASC = "created_asc"
    CREATED_DESC = "created_desc"
    UPDATED_ASC = "updated_asc"
    UPDATED_DESC = "updated_desc"
    VIEW_COUNT_ASC = "view_count_asc"
    VIEW_COUNT_DESC = "view_count_desc"
    INVESTMENT_ASC = "investment_asc"
    INVESTMENT_DESC = "investment_desc"
    AREA_ASC = "area_asc"
    AREA_DESC = "area_desc"
    FEATURED = "featured"
    SHOWCASE = "showcase"


PROJECT_TYPE_LABELS: Dict[ProjectType, str] = {
    ProjectType.INDOOR_FIXED: "Indoor Fixed",
    ProjectType.OUTDOOR_ADVERTISING: "Outdoor Advertising",
    ProjectType.RENTAL_EVENT: "Rental & Event",
    ProjectType.BROADCAST_STUDIO: "Broadcast Studio",
    ProjectType.RETAIL_DISPLAY: "Retail Display",
    ProjectType.SPORTS_VENUE: "Sports Venue",
    ProjectType.TRANSPORTATION: "Transportation",
    ProjectType.CORPORATE: "Corporate",
    ProjectType.EDUCATION: "Education",
    ProjectType.HEALTHCARE: "Healthcare",
    ProjectType.GOVERNMENT: "Government",
    ProjectType.ENTERTAINMENT: "Entertainment",
    ProjectType.OTHER: "Other",
}

INDUSTRY_LABELS: Dict[IndustryType, str] = {
    IndustryType.ADVERTISING: "Advertising",
    IndustryType.RETAIL: "Retail",
    IndustryType.SPORTS: "Sports",
    IndustryType.ENTERTAINMENT: "Entertainment",
    IndustryType.EDUCATION: "Education",
    IndustryType.HEALTHCARE: "Healthcare",
    IndustryType.GOVERNMENT: "Government",
    IndustryType.TRANSPORTATION: "Transportation",
    IndustryType.HOSPITALITY: "Hospitality",
    IndustryType.CORPORATE: "Corporate",
    IndustryType.BROADCAST: "Broadcast",
    IndustryType.EVENTS: "Events",
    IndustryType.RELIGIOUS: "Religious",
    IndustryType.OTHER: "Other",
}


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


E = TypeVar("E", bound=Enum)


def coerce_enum(enum_cls: Type[E], value: Any, field_name: str) -> E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise CatalogValidationError(
            "invalid_enum", field_name, f"unknown value {value!r} (expected one of: {allowed})"
        ) from None


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float
    city: str
    country: str
    region: Optional[str] = None
    address: Optional[str] = None


@dataclass(frozen=True)
class Scale:
    screen_area: float = 0.0
    screen_count: int = 0
    pixel_count: int = 0
    investment: Optional[float] = None
    currency: Optional[str] = None


@dataclass(frozen=True)
class Testimonial:
    customer_name: str
    quote: str = ""
    rating: Optional[int] = None


@dataclass(frozen=True)
class CatalogRecord:
    id: str
    slug: str
    title: str
    summary: str
    description: str
    project_type: ProjectType
    industry: IndustryType
    status: CaseStatus
    customer_name: str
    location: Location
    scale: Scale
    created_at: datetime
    updated_at: datetime
    project_start: datetime
    project_end: datetime
    published_at: Optional[datetime] = None
    tags: Tuple[str, ...] = ()
    features: Tuple[str, ...] = ()
    solutions: Tuple[str, ...] = ()
    videos: Tuple[str, ...] = ()
    images: Tuple[str, ...] = ()
    testimonials: Tuple[Testimonial, ...] = ()
    is_featured: bool = False
    is_showcase: bool = False
    view_count: int = 0
    share_count: int = 0

    @property
    def average_rating(self) -> float:
        if not self.testimonials:
            return 0.0
        return sum(t.rating or 0 for t in self.testimonials) / len(self.testimonials)


@dataclass(frozen=True)
class DateRange:
    start: datetime
    end: datetime
    field: DateField = DateField.CREATED_AT

    def __post_init__(self) -> None:
        object.__setattr__(self, "field", coerce_enum(DateField, self.field, "date_range.field"))
        object.__setattr__(self, "start", as_utc(self.start))
        object.__setattr__(self, "end", as_utc(self.end))
        if self.start > self.end:
            raise CatalogValidationError(
                "invalid_date_range", "date_range", "start must not be after end"
            )


@dataclass(frozen=True)
class RadiusFilter:
    latitude: float
    longitude: float
    radius_km: float


MultiValue = Union[str, Sequence[str], None]


@dataclass(frozen=True)
class FilterCriteria:
    """Sparse filter set. ``None`` on any field means the field is unconstrained."""

    project_type: MultiValue = None
    industry: MultiValue = None
    status: MultiValue = None
    country: MultiValue = None
    region: MultiValue = None
    city: MultiValue = None
    tags: MultiValue = None
    features: MultiValue = None
    is_featured: Optional[bool] = None
    is_showcase: Optional[bool] = None
    min_area: Optional[float] = None
    max_area: Optional[float] = None
    min_investment: Optional[float] = None
    max_investment: Optional[float] = None
    date_range: Optional[DateRange] = None
    search: Optional[str] = None
    has_video: Optional[bool] = None
    has_testimonial: Optional[bool] = None
    min_rating: Optional[float] = None
    near: Optional[RadiusFilter] = None


@dataclass(frozen=True)
class CatalogQuery:
    filters: FilterCriteria = field(default_factory=FilterCriteria)
    search_query: Optional[str] = None
    sort_by: Optional[SortKey] = None
    page: int = 1
    limit: Optional[int] = None


@dataclass(frozen=True)
class PageMeta:
    page: int
    limit: int
    total: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool


@dataclass
class Page:
    items: List[CatalogRecord]
    meta: PageMeta


@dataclass
class SearchMatch:
    record: CatalogRecord
    score: float


@dataclass
class Suggestion:
    type: str
    id: str
    text: str
    description: Optional[str] = None
    count: Optional[int] = None


@dataclass
class QueryResult:
    items: List[CatalogRecord]
    meta: PageMeta
    filters: Optional[FilterCriteria] = None
    sort_by: Optional[SortKey] = None
    search_query: Optional[str] = None
    scores: Optional[Dict[str, float]] = None


@dataclass
class BoundingBox:
    north: float
    south: float
    east: float
    west: float
    center_latitude: float
    center_longitude: float


@dataclass
class GeoCluster:
    id: str
    latitude: float
    longitude: float
    count: int
    records: List[CatalogRecord]


@dataclass
class ClusterResult:
    clusters: List[GeoCluster]
    singles: List[CatalogRecord]
    radius_km: float


@dataclass
class MapPoint:
    id: str
    title: str
    customer: str
    latitude: float
    longitude: float
    project_type: ProjectType
    industry: IndustryType
    screen_area: float
    investment: Optional[float]
    currency: Optional[str]
    thumbnail: str
    is_featured: bool
    is_showcase: bool
