import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from catalog_discovery.models import (
    CaseStatus,
    CatalogRecord,
    IndustryType,
    Location,
    ProjectType,
    Scale,
)

FIXTURES = Path(__file__).parent / "fixtures"

_LOCATION_KEYS = {"latitude", "longitude", "city", "country", "region", "address"}
_SCALE_KEYS = {"screen_area", "screen_count", "pixel_count", "investment", "currency"}


def build_record(record_id="case-1", **overrides):
    location = {"latitude": 40.7128, "longitude": -74.006, "city": "New York", "country": "United States"}
    scale = {}
    for key in list(overrides):
        if key in _LOCATION_KEYS:
            location[key] = overrides.pop(key)
        elif key in _SCALE_KEYS:
            scale[key] = overrides.pop(key)

    created = overrides.pop("created_at", datetime(2024, 1, 1, tzinfo=timezone.utc))
    fields = {
        "id": record_id,
        "slug": record_id,
        "title": f"Record {record_id}",
        "summary": "",
        "description": "",
        "project_type": ProjectType.OTHER,
        "industry": IndustryType.OTHER,
        "status": CaseStatus.PUBLISHED,
        "customer_name": "Acme Corp",
        "location": Location(**location),
        "scale": Scale(**scale),
        "created_at": created,
        "updated_at": created,
        "project_start": created,
        "project_end": created,
    }
    fields.update(overrides)
    return CatalogRecord(**fields)


@pytest.fixture
def make_record():
    return build_record


@pytest.fixture
def catalog_payload():
    with open(FIXTURES / "catalog.json", "r", encoding="utf-8") as f:
        return json.load(f)
