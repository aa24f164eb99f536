"""Decoding of catalog feed payloads and query strings."""
from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from . import config
from .geo import validate_coordinates
from .models import (
    CaseStatus,
    CatalogQuery,
    CatalogRecord,
    CatalogValidationError,
    DateField,
    DateRange,
    FilterCriteria,
    IndustryType,
    Location,
    ProjectType,
    RadiusFilter,
    Scale,
    Testimonial,
    as_utc,
    coerce_enum,
)

logger = logging.getLogger(__name__)

_DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_datetime(value: Any, field: str) -> datetime:
    """Parse an ISO-8601 timestamp. Naive values are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise CatalogValidationError(
                "invalid_parameter", field, f"not an ISO-8601 date: {value!r}"
            ) from None
    return as_utc(parsed)


def _optional_datetime(value: Any, field: str) -> Optional[datetime]:
    if value in (None, ""):
        return None
    return parse_datetime(value, field)


# --- Feed payloads ---


def extract_feed_items(payload: Any) -> List[Dict[str, Any]]:
    """Pull the list of case entries out of any of the envelope shapes the feed uses."""
    if isinstance(payload, list):
        return payload
    if not isinstance(payload, dict):
        return []
    data = payload.get("data", payload)
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in ("cases", "items", "records"):
            items = data.get(key)
            if isinstance(items, list):
                return items
    return []


def _urls(entries: Any) -> Tuple[str, ...]:
    urls: List[str] = []
    for entry in entries or []:
        if isinstance(entry, str):
            urls.append(entry)
        elif isinstance(entry, dict) and entry.get("url"):
            urls.append(entry["url"])
    return tuple(urls)


def _strings(values: Any) -> Tuple[str, ...]:
    return tuple(str(v) for v in (values or []) if v not in (None, ""))


def parse_record(item: Dict[str, Any]) -> CatalogRecord:
    record_id = str(item["id"])

    customer = item.get("customer") or {}
    customer_name = customer.get("name") if isinstance(customer, dict) else customer
    if not customer_name:
        customer_name = item.get("customerName", "")

    loc = item.get("location") or {}
    location = Location(
        latitude=float(loc["latitude"]),
        longitude=float(loc["longitude"]),
        city=loc.get("city", ""),
        country=loc.get("country", ""),
        region=loc.get("state") or loc.get("region"),
        address=loc.get("address"),
    )
    validate_coordinates(location.latitude, location.longitude, "location")

    scale_raw = item.get("projectScale") or {}
    investment = scale_raw.get("totalInvestment")
    scale = Scale(
        screen_area=float(scale_raw.get("totalScreenArea") or 0),
        screen_count=int(scale_raw.get("numberOfScreens") or 0),
        pixel_count=int(scale_raw.get("totalPixels") or 0),
        investment=float(investment) if investment is not None else None,
        currency=scale_raw.get("currency"),
    )

    testimonials = tuple(
        Testimonial(
            customer_name=t.get("customerName", ""),
            quote=t.get("quote", ""),
            rating=int(t["rating"]) if t.get("rating") is not None else None,
        )
        for t in item.get("testimonials") or []
        if isinstance(t, dict)
    )

    created_at = parse_datetime(item["createdAt"], "createdAt")
    project_start = _optional_datetime(item.get("projectStartDate"), "projectStartDate") or created_at

    return CatalogRecord(
        id=record_id,
        slug=item.get("slug") or record_id,
        title=item.get("title", ""),
        summary=item.get("summary", ""),
        description=item.get("fullDescription") or item.get("description", ""),
        project_type=coerce_enum(ProjectType, item.get("projectType", "other"), "projectType"),
        industry=coerce_enum(IndustryType, item.get("industry", "other"), "industry"),
        status=coerce_enum(CaseStatus, item.get("status", "published"), "status"),
        customer_name=customer_name,
        location=location,
        scale=scale,
        created_at=created_at,
        updated_at=_optional_datetime(item.get("updatedAt"), "updatedAt") or created_at,
        project_start=project_start,
        project_end=_optional_datetime(item.get("projectEndDate"), "projectEndDate") or project_start,
        published_at=_optional_datetime(item.get("publishedAt"), "publishedAt"),
        tags=_strings(item.get("tags")),
        features=_strings(item.get("features")),
        solutions=_strings(item.get("solutions")),
        videos=_urls(item.get("videos")),
        images=_urls(item.get("images")),
        testimonials=testimonials,
        is_featured=bool(item.get("isFeatured", False)),
        is_showcase=bool(item.get("isShowcase", False)),
        view_count=int(item.get("viewCount") or 0),
        share_count=int(item.get("shareCount") or 0),
    )


def parse_catalog_records(payload: Any) -> List[CatalogRecord]:
    records: List[CatalogRecord] = []
    skipped = 0
    for index, item in enumerate(extract_feed_items(payload)):
        if not isinstance(item, dict) or not item.get("id"):
            logger.warning("Skipping catalog entry %d: missing id", index)
            skipped += 1
            continue
        try:
            records.append(parse_record(item))
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Skipping catalog entry %s: %s", item.get("id"), exc)
            skipped += 1
    if skipped:
        logger.info("Parsed %d catalog records (%d skipped)", len(records), skipped)
    return records


# --- Query strings ---

ParamValue = Union[str, Iterable[str]]

_MULTI_PARAMS = {
    "projectType": "project_type",
    "industry": "industry",
    "status": "status",
    "country": "country",
    "region": "region",
    "city": "city",
    "tags": "tags",
    "features": "features",
}
_BOOL_PARAMS = {
    "isFeatured": "is_featured",
    "isShowcase": "is_showcase",
    "hasVideo": "has_video",
    "hasTestimonial": "has_testimonial",
}
_FLOAT_PARAMS = {
    "minArea": "min_area",
    "maxArea": "max_area",
    "minInvestment": "min_investment",
    "maxInvestment": "max_investment",
    "minRating": "min_rating",
}
_DATE_FIELD_ALIASES = {
    "createdAt": DateField.CREATED_AT,
    "updatedAt": DateField.UPDATED_AT,
    "projectStartDate": DateField.PROJECT_START,
    "projectEndDate": DateField.PROJECT_END,
    "publishedAt": DateField.PUBLISHED_AT,
}
_TRUE = {"true", "1", "yes"}
_FALSE = {"false", "0", "no"}
_BRACKET_RE = re.compile(r"^filters\[(\w+)\]$")


def _param_name(key: str) -> str:
    match = _BRACKET_RE.match(key)
    return match.group(1) if match else key


def _collect(params: Mapping[str, ParamValue]) -> Dict[str, List[str]]:
    collected: Dict[str, List[str]] = {}
    for key, raw in params.items():
        values = [raw] if isinstance(raw, str) else list(raw)
        bucket = collected.setdefault(_param_name(key), [])
        for value in values:
            bucket.extend(part.strip() for part in str(value).split(",") if part.strip())
    return collected


def _single(values: List[str], name: str) -> str:
    if len(values) != 1:
        raise CatalogValidationError("invalid_parameter", name, "expected a single value")
    return values[0]


def _raw_text(params: Mapping[str, ParamValue], name: str) -> Optional[str]:
    # Free text keeps its commas.
    for key, raw in params.items():
        if _param_name(key) == name:
            text = raw if isinstance(raw, str) else " ".join(raw)
            return text.strip() or None
    return None


def _parse_bool(value: str, name: str) -> bool:
    lowered = value.lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise CatalogValidationError("invalid_parameter", name, f"not a boolean: {value!r}")


def _parse_float(value: str, name: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise CatalogValidationError("invalid_parameter", name, f"not a number: {value!r}") from None


def _parse_int(value: str, name: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise CatalogValidationError("invalid_parameter", name, f"not an integer: {value!r}") from None


def _parse_date_range(collected: Dict[str, List[str]]) -> Optional[DateRange]:
    start_raw = collected.get("dateStart")
    end_raw = collected.get("dateEnd")
    field_raw = collected.get("dateField")
    if not start_raw and not end_raw:
        if field_raw:
            raise CatalogValidationError("invalid_parameter", "dateField", "dateStart and dateEnd are required")
        return None
    if not start_raw or not end_raw:
        raise CatalogValidationError("invalid_parameter", "dateRange", "dateStart and dateEnd must be given together")

    start = parse_datetime(_single(start_raw, "dateStart"), "dateStart")
    end_text = _single(end_raw, "dateEnd")
    end = parse_datetime(end_text, "dateEnd")
    if _DATE_ONLY_RE.match(end_text):
        # A bare end date covers the whole day.
        end = end + timedelta(days=1) - timedelta(microseconds=1)

    date_field: Union[DateField, str] = DateField.CREATED_AT
    if field_raw:
        name = _single(field_raw, "dateField")
        date_field = _DATE_FIELD_ALIASES.get(name, name)
    return DateRange(start=start, end=end, field=date_field)


def _parse_near(collected: Dict[str, List[str]]) -> Optional[RadiusFilter]:
    keys = ("lat", "lon", "radiusKm")
    present = [k for k in keys if collected.get(k)]
    if not present:
        return None
    if len(present) != len(keys):
        raise CatalogValidationError("invalid_parameter", "near", "lat, lon and radiusKm must be given together")
    lat = _parse_float(_single(collected["lat"], "lat"), "lat")
    lon = _parse_float(_single(collected["lon"], "lon"), "lon")
    radius = _parse_float(_single(collected["radiusKm"], "radiusKm"), "radiusKm")
    if radius < 0:
        raise CatalogValidationError("invalid_parameter", "radiusKm", "radius must not be negative")
    return RadiusFilter(latitude=lat, longitude=lon, radius_km=radius)


def parse_query_params(params: Mapping[str, ParamValue]) -> CatalogQuery:
    """Build a query from URL parameters.

    Both ``projectType=a,b`` and ``filters[projectType]=a&filters[projectType]=b``
    forms are accepted. Unknown parameters are ignored.
    """
    collected = _collect(params)
    criteria: Dict[str, Any] = {}

    for param, name in _MULTI_PARAMS.items():
        values = collected.get(param)
        if values:
            criteria[name] = tuple(values)
    for param, name in _BOOL_PARAMS.items():
        values = collected.get(param)
        if values:
            criteria[name] = _parse_bool(_single(values, param), param)
    for param, name in _FLOAT_PARAMS.items():
        values = collected.get(param)
        if values:
            criteria[name] = _parse_float(_single(values, param), param)

    search = _raw_text(params, "search")
    if search:
        criteria["search"] = search
    date_range = _parse_date_range(collected)
    if date_range is not None:
        criteria["date_range"] = date_range
    near = _parse_near(collected)
    if near is not None:
        criteria["near"] = near

    page = 1
    if collected.get("page"):
        page = _parse_int(_single(collected["page"], "page"), "page")
    limit = None
    if collected.get("limit"):
        limit = min(_parse_int(_single(collected["limit"], "limit"), "limit"), config.MAX_PAGE_SIZE)

    sort_values = collected.get("sort") or collected.get("sortBy")
    sort_by = _single(sort_values, "sort") if sort_values else None

    search_query = _raw_text(params, "q")

    return CatalogQuery(
        filters=FilterCriteria(**criteria),
        search_query=search_query,
        sort_by=sort_by,
        page=page,
        limit=limit,
    )
