"""Catalog loading from a JSON file or the paginated catalog feed."""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from . import config
from .cache import SnapshotCache, make_request_cache_key
from .http import FetchMetrics, HttpClient
from .models import CatalogRecord
from .parsing import extract_feed_items, parse_catalog_records

logger = logging.getLogger(__name__)


def load_catalog_file(path: str) -> List[CatalogRecord]:
    with open(path, "r", encoding="utf-8") as f:
        payload = json.load(f)
    records = parse_catalog_records(payload)
    logger.info("Loaded %d catalog records from %s", len(records), path)
    return records


def _pagination_block(payload: Any) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        return {}
    for container in (payload, payload.get("data"), payload.get("meta")):
        if isinstance(container, dict) and isinstance(container.get("pagination"), dict):
            return container["pagination"]
    return {}


def has_next_page(payload: Any, page: int, item_count: int, page_size: int) -> bool:
    pagination = _pagination_block(payload)
    if "hasNextPage" in pagination:
        return bool(pagination["hasNextPage"])
    if pagination.get("totalPages") is not None:
        return page < int(pagination["totalPages"])
    # Feeds without pagination metadata end on a short page.
    return item_count >= page_size


class CatalogClient:
    def __init__(
        self,
        http_client: HttpClient,
        cache: Optional[SnapshotCache] = None,
        no_cache: bool = False,
        refresh: bool = False,
        page_size: Optional[int] = None,
        max_pages: Optional[int] = None,
        max_age_seconds: Optional[float] = None,
        metrics: Optional[FetchMetrics] = None,
    ) -> None:
        self.http = http_client
        self.cache = cache
        self.no_cache = no_cache or cache is None
        self.refresh = refresh
        self.page_size = page_size or config.CATALOG_FEED_PAGE_SIZE
        self.max_pages = max_pages or config.CATALOG_FEED_MAX_PAGES
        self.max_age_seconds = (
            max_age_seconds if max_age_seconds is not None else config.CATALOG_SNAPSHOT_MAX_AGE_SECONDS
        )
        self.metrics = metrics

    def fetch_page(self, url: str, page: int) -> Any:
        params = {"page": page, "limit": self.page_size}
        key = make_request_cache_key(url, params)
        if not self.no_cache and not self.refresh:
            cached = self.cache.get_snapshot(key, self.max_age_seconds)
            if cached is not None:
                logger.debug("Snapshot cache hit for %s page %d", url, page)
                if self.metrics is not None:
                    self.metrics.cache_hits += 1
                return cached

        logger.info("Fetching catalog page %d from %s", page, url)
        response = self.http.get_json(url, params=params)
        if not self.no_cache:
            self.cache.set_snapshot(key, url, response)
        return response

    def fetch_records(self, url: str) -> List[CatalogRecord]:
        """Walk the feed page by page and return every distinct record.

        A record id seen on an earlier page wins over later repeats.
        """
        records: List[CatalogRecord] = []
        seen_ids = set()
        for page in range(1, self.max_pages + 1):
            payload = self.fetch_page(url, page)
            items = extract_feed_items(payload)
            for record in parse_catalog_records(payload):
                if record.id in seen_ids:
                    continue
                seen_ids.add(record.id)
                records.append(record)
            if not items or not has_next_page(payload, page, len(items), self.page_size):
                break
        else:
            logger.warning("Stopped after %d feed pages; catalog may be truncated", self.max_pages)

        if self.metrics is not None:
            self.metrics.records_loaded += len(records)
        logger.info("Loaded %d catalog records from %s", len(records), url)
        return records
