"""Response envelopes, serialization and output writers."""
from __future__ import annotations

import csv
import dataclasses
import json
import os
import tempfile
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, TextIO

from . import config
from .facets import FacetStats
from .models import (
    CatalogRecord,
    CatalogValidationError,
    ClusterResult,
    FilterCriteria,
    QueryResult,
    Suggestion,
)


def ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def _fsync_dir(path: str) -> None:
    try:
        dir_fd = os.open(path, os.O_DIRECTORY)
    except OSError:
        return
    try:
        os.fsync(dir_fd)
    except OSError:
        pass
    finally:
        os.close(dir_fd)


@contextmanager
def atomic_writer(
    path: str,
    mode: str = "w",
    encoding: str = "utf-8",
    newline: Optional[str] = None,
) -> Iterator[TextIO]:
    """Write to a temp file beside ``path`` and rename it into place on success."""
    dir_path = os.path.dirname(path) or "."
    base = os.path.basename(path)
    fd, tmp_path = tempfile.mkstemp(prefix=f".{base}.", suffix=".tmp", dir=dir_path)
    try:
        with os.fdopen(fd, mode, encoding=encoding, newline=newline) as f:
            yield f
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
        _fsync_dir(dir_path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def write_json_object(path: str, payload: Any) -> None:
    with atomic_writer(path, mode="w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)


# --- Serialization ---


def to_jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return to_jsonable(dataclasses.asdict(value))
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def record_to_dict(record: CatalogRecord) -> Dict[str, Any]:
    loc = record.location
    scale = record.scale
    return {
        "id": record.id,
        "slug": record.slug,
        "title": record.title,
        "summary": record.summary,
        "projectType": record.project_type.value,
        "industry": record.industry.value,
        "status": record.status.value,
        "customer": {"name": record.customer_name},
        "location": {
            "latitude": loc.latitude,
            "longitude": loc.longitude,
            "city": loc.city,
            "state": loc.region,
            "country": loc.country,
        },
        "projectScale": {
            "totalScreenArea": scale.screen_area,
            "numberOfScreens": scale.screen_count,
            "totalPixels": scale.pixel_count,
            "totalInvestment": scale.investment,
            "currency": scale.currency,
        },
        "tags": list(record.tags),
        "features": list(record.features),
        "isFeatured": record.is_featured,
        "isShowcase": record.is_showcase,
        "viewCount": record.view_count,
        "shareCount": record.share_count,
        "averageRating": record.average_rating,
        "projectStartDate": _iso(record.project_start),
        "projectEndDate": _iso(record.project_end),
        "createdAt": _iso(record.created_at),
        "updatedAt": _iso(record.updated_at),
        "publishedAt": _iso(record.published_at),
    }


def criteria_to_dict(criteria: Optional[FilterCriteria]) -> Dict[str, Any]:
    """Populated criteria only."""
    if criteria is None:
        return {}
    return {
        f.name: to_jsonable(getattr(criteria, f.name))
        for f in dataclasses.fields(criteria)
        if getattr(criteria, f.name) is not None
    }


def query_result_to_dict(result: QueryResult) -> Dict[str, Any]:
    meta = result.meta
    items = []
    for record in result.items:
        item = record_to_dict(record)
        if result.scores is not None:
            item["score"] = round(result.scores.get(record.id, 0.0), 6)
        items.append(item)
    return {
        "items": items,
        "pagination": {
            "page": meta.page,
            "limit": meta.limit,
            "total": meta.total,
            "totalPages": meta.total_pages,
            "hasNextPage": meta.has_next_page,
            "hasPrevPage": meta.has_prev_page,
        },
        "filters": criteria_to_dict(result.filters),
        "sortBy": to_jsonable(result.sort_by),
        "searchQuery": result.search_query,
    }


def stats_to_dict(stats: FacetStats) -> Dict[str, Any]:
    return {
        "total": stats.total,
        "published": stats.published,
        "featured": stats.featured,
        "showcase": stats.showcase,
        "projectTypes": to_jsonable(stats.project_types),
        "industries": to_jsonable(stats.industries),
        "countries": to_jsonable(stats.countries),
        "tags": to_jsonable(stats.tags),
        "features": to_jsonable(stats.features),
        "yearRange": to_jsonable(stats.year_range),
        "investmentRange": to_jsonable(stats.investment_range),
        "areaRange": to_jsonable(stats.area_range),
        "totalViews": stats.total_views,
        "averageViews": stats.average_views,
        "topViewed": to_jsonable(stats.top_viewed),
    }


def clusters_to_dict(result: ClusterResult) -> Dict[str, Any]:
    return {
        "radiusKm": result.radius_km,
        "clusters": [
            {
                "id": c.id,
                "latitude": c.latitude,
                "longitude": c.longitude,
                "count": c.count,
                "caseIds": [r.id for r in c.records],
            }
            for c in result.clusters
        ],
        "singles": [
            {
                "id": r.id,
                "title": r.title,
                "latitude": r.location.latitude,
                "longitude": r.location.longitude,
            }
            for r in result.singles
        ],
    }


def suggestions_to_list(suggestions: Iterable[Suggestion]) -> List[Dict[str, Any]]:
    out = []
    for s in suggestions:
        entry: Dict[str, Any] = {"type": s.type, "id": s.id, "text": s.text}
        if s.description is not None:
            entry["description"] = s.description
        if s.count is not None:
            entry["count"] = s.count
        out.append(entry)
    return out


# --- Envelopes ---


def _meta(request_id: Optional[str]) -> Dict[str, Any]:
    return {
        "timestamp": utc_now_iso(),
        "requestId": request_id or uuid.uuid4().hex,
        "version": config.API_VERSION,
    }


def success_envelope(data: Any, request_id: Optional[str] = None) -> Dict[str, Any]:
    return {"success": True, "data": data, "meta": _meta(request_id)}


def error_envelope(exc: BaseException, request_id: Optional[str] = None) -> Dict[str, Any]:
    if isinstance(exc, CatalogValidationError):
        error = {
            "code": exc.kind.upper(),
            "message": exc.message,
            "details": exc.to_dict(),
        }
    else:
        error = {"code": "INTERNAL_ERROR", "message": str(exc) or type(exc).__name__, "details": None}
    return {"success": False, "error": error, "meta": _meta(request_id)}


# --- CSV ---

RESULT_FIELDS = [
    "id",
    "title",
    "customer",
    "project_type",
    "industry",
    "status",
    "city",
    "region",
    "country",
    "latitude",
    "longitude",
    "screen_area",
    "investment",
    "currency",
    "view_count",
    "is_featured",
    "is_showcase",
    "tags",
    "score",
]


def write_results_csv(
    path: str,
    records: Iterable[CatalogRecord],
    scores: Optional[Dict[str, float]] = None,
) -> None:
    with atomic_writer(path, mode="w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=RESULT_FIELDS)
        writer.writeheader()
        for r in records:
            writer.writerow(
                {
                    "id": r.id,
                    "title": r.title,
                    "customer": r.customer_name,
                    "project_type": r.project_type.value,
                    "industry": r.industry.value,
                    "status": r.status.value,
                    "city": r.location.city,
                    "region": r.location.region or "",
                    "country": r.location.country,
                    "latitude": r.location.latitude,
                    "longitude": r.location.longitude,
                    "screen_area": r.scale.screen_area,
                    "investment": r.scale.investment if r.scale.investment is not None else "",
                    "currency": r.scale.currency or "",
                    "view_count": r.view_count,
                    "is_featured": r.is_featured,
                    "is_showcase": r.is_showcase,
                    "tags": json.dumps(list(r.tags), ensure_ascii=False),
                    "score": round(scores[r.id], 6) if scores and r.id in scores else "",
                }
            )
