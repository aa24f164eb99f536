"""Engine configuration.

Loads overrides from engine_config.json when available, falling back to
sensible defaults. Keep tunable query constants centralized here.
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Dict, List, Optional

_REPO_ROOT = Path(__file__).resolve().parent.parent

API_VERSION = "1.0"

# --- Pagination ---

DEFAULT_PAGE_SIZE = 12
MAX_PAGE_SIZE = 100

# --- Search ---

SEARCH_MIN_SCORE = 0.1
FUZZY_SIMILARITY_THRESHOLD = 0.6
FUZZY_SCORE_FACTOR = 0.6
SUBSTRING_SCORE_FACTOR = 0.8

SEARCH_FIELD_WEIGHTS: Dict[str, float] = {
    "title": 3.0,
    "summary": 2.0,
    "description": 1.5,
    "customer": 2.0,
    "tags": 1.5,
    "features": 1.5,
    "solutions": 1.0,
}
DEFAULT_SEARCH_FIELDS: List[str] = ["title", "summary", "description", "customer", "tags", "features"]

SUGGESTION_MIN_QUERY_LENGTH = 2
SUGGESTION_LIMIT = 5
SUGGESTION_TYPE_ORDER: Dict[str, int] = {
    "case": 1,
    "customer": 2,
    "location": 3,
    "industry": 4,
    "tag": 5,
}

# --- Geo / map ---

EARTH_RADIUS_KM = 6371.0
DEFAULT_ZOOM_LEVEL = 10
CLUSTER_BASE_KM = 20.0
CLUSTER_MIN_KM = 1.0
PLACEHOLDER_IMAGE = "/images/placeholder-case.jpg"

# --- Facets ---

TOP_VIEWED_LIMIT = 5

# --- Catalog feed ---

CATALOG_FEED_URL = os.environ.get("CATALOG_FEED_URL", "")
CATALOG_FEED_PAGE_SIZE = 100
CATALOG_FEED_MAX_PAGES = 50
CATALOG_SNAPSHOT_MAX_AGE_SECONDS = 15 * 60

# --- HTTP ---

HTTP_TIMEOUT_SECONDS = 20
HTTP_RETRY_MAX = 5
HTTP_BACKOFF_BASE = 0.5
HTTP_BACKOFF_MAX = 8.0

# --- Cache and outputs ---

CACHE_DB_PATH = "cache.db"
OUTPUT_DIR = "out"

_FLOAT_KEYS = {
    "search_min_score": "SEARCH_MIN_SCORE",
    "fuzzy_similarity_threshold": "FUZZY_SIMILARITY_THRESHOLD",
    "cluster_base_km": "CLUSTER_BASE_KM",
    "cluster_min_km": "CLUSTER_MIN_KM",
}
_INT_KEYS = {
    "default_page_size": "DEFAULT_PAGE_SIZE",
    "max_page_size": "MAX_PAGE_SIZE",
    "suggestion_limit": "SUGGESTION_LIMIT",
    "default_zoom_level": "DEFAULT_ZOOM_LEVEL",
    "feed_page_size": "CATALOG_FEED_PAGE_SIZE",
    "feed_max_pages": "CATALOG_FEED_MAX_PAGES",
    "snapshot_max_age_seconds": "CATALOG_SNAPSHOT_MAX_AGE_SECONDS",
}


def load_engine_config(path: Optional[str] = None) -> bool:
    """Load engine configuration from a JSON file.

    Updates module-level globals with values from the config file.
    Returns True if config was loaded, False if file not found.
    """
    if path is None:
        path = str(_REPO_ROOT / "engine_config.json")

    config_path = Path(path)
    if not config_path.exists():
        return False

    with open(config_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    globals_ref = globals()

    for key, name in _FLOAT_KEYS.items():
        if data.get(key) is not None:
            globals_ref[name] = float(data[key])
    for key, name in _INT_KEYS.items():
        if data.get(key) is not None:
            globals_ref[name] = int(data[key])

    weights = data.get("search_field_weights", {})
    if weights:
        merged = dict(globals_ref["SEARCH_FIELD_WEIGHTS"])
        merged.update({k: float(v) for k, v in weights.items()})
        globals_ref["SEARCH_FIELD_WEIGHTS"] = merged

    fields = data.get("search_fields", [])
    if fields:
        globals_ref["DEFAULT_SEARCH_FIELDS"] = list(fields)

    feed_url = data.get("catalog_feed_url")
    if feed_url:
        globals_ref["CATALOG_FEED_URL"] = str(feed_url)

    return True
