"""CLI entrypoint."""
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv as _load_dotenv

from catalog_discovery import config
from catalog_discovery.cache import SnapshotCache
from catalog_discovery.catalog_client import CatalogClient, load_catalog_file
from catalog_discovery.http import FetchMetrics, HttpClient
from catalog_discovery.models import CatalogQuery, CatalogRecord, CatalogValidationError
from catalog_discovery.parsing import parse_query_params
from catalog_discovery.pipeline import discover
from catalog_discovery.reporting import (
    clusters_to_dict,
    ensure_dir,
    error_envelope,
    query_result_to_dict,
    stats_to_dict,
    success_envelope,
    suggestions_to_list,
    write_json_object,
    write_results_csv,
)
from catalog_discovery.search import suggest

logger = logging.getLogger("run")

# CLI option -> query-string parameter
_PARAM_OPTIONS = {
    "project_type": "projectType",
    "industry": "industry",
    "status": "status",
    "country": "country",
    "region": "region",
    "city": "city",
    "tags": "tags",
    "features": "features",
    "min_area": "minArea",
    "max_area": "maxArea",
    "min_investment": "minInvestment",
    "max_investment": "maxInvestment",
    "min_rating": "minRating",
    "date_start": "dateStart",
    "date_end": "dateEnd",
    "date_field": "dateField",
    "search": "search",
    "lat": "lat",
    "lon": "lon",
    "radius_km": "radiusKm",
    "q": "q",
    "sort": "sort",
    "page": "page",
    "limit": "limit",
}
_FLAG_OPTIONS = {
    "featured": "isFeatured",
    "showcase": "isShowcase",
    "has_video": "hasVideo",
    "has_testimonial": "hasTestimonial",
}


def _repo_root() -> Path:
    return Path(__file__).resolve().parent


def load_env(path: str = ".env", root_dir: Optional[Path] = None) -> None:
    """Optionally load a repo-root .env file without overriding real env vars."""
    root = Path(root_dir) if root_dir else _repo_root()
    env_path = (root / path).resolve()
    if not env_path.exists():
        return
    _load_dotenv(dotenv_path=env_path, override=False)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Search, filter and map a catalog of case studies")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--catalog", type=str, default=None, help="Path to a catalog JSON file")
    source.add_argument("--catalog-url", type=str, default=None, help="Catalog feed URL (default: $CATALOG_FEED_URL)")
    parser.add_argument("--config", type=str, default=None, help="Engine config JSON (default: engine_config.json)")
    parser.add_argument("--preflight", action="store_true", help="Check inputs without querying")

    filters = parser.add_argument_group("filters (comma-separated values match any)")
    filters.add_argument("--project-type", type=str, default=None)
    filters.add_argument("--industry", type=str, default=None)
    filters.add_argument("--status", type=str, default=None)
    filters.add_argument("--country", type=str, default=None)
    filters.add_argument("--region", type=str, default=None)
    filters.add_argument("--city", type=str, default=None)
    filters.add_argument("--tags", type=str, default=None)
    filters.add_argument("--features", type=str, default=None)
    filters.add_argument("--featured", action="store_true", help="Only featured cases")
    filters.add_argument("--showcase", action="store_true", help="Only showcase cases")
    filters.add_argument("--has-video", action="store_true")
    filters.add_argument("--has-testimonial", action="store_true")
    filters.add_argument("--min-area", type=str, default=None)
    filters.add_argument("--max-area", type=str, default=None)
    filters.add_argument("--min-investment", type=str, default=None)
    filters.add_argument("--max-investment", type=str, default=None)
    filters.add_argument("--min-rating", type=str, default=None)
    filters.add_argument("--date-start", type=str, default=None, help="ISO date")
    filters.add_argument("--date-end", type=str, default=None, help="ISO date, inclusive")
    filters.add_argument(
        "--date-field",
        type=str,
        default=None,
        help="createdAt, updatedAt, projectStartDate, projectEndDate or publishedAt",
    )
    filters.add_argument("--search", type=str, default=None, help="Plain substring filter")
    filters.add_argument("--lat", type=str, default=None)
    filters.add_argument("--lon", type=str, default=None)
    filters.add_argument("--radius-km", type=str, default=None)

    parser.add_argument("--q", type=str, default=None, help="Ranked free-text search")
    parser.add_argument("--sort", type=str, default=None, help="Sort key, e.g. title_asc (ignored with --q)")
    parser.add_argument("--page", type=str, default=None)
    parser.add_argument("--limit", type=str, default=None)
    parser.add_argument("--zoom", type=float, default=None, help="Cluster matching cases at this zoom level")
    parser.add_argument("--facets", action="store_true", help="Write facets.json for the matching set")
    parser.add_argument("--suggest", type=str, default=None, help="Write autocomplete suggestions for this text")

    parser.add_argument("--out", type=str, default=config.OUTPUT_DIR)
    parser.add_argument("--cache-path", type=str, default=config.CACHE_DB_PATH)
    parser.add_argument("--no-cache", action="store_true")
    parser.add_argument("--refresh", action="store_true", help="Bypass snapshot cache reads")
    return parser.parse_args(argv)


def build_query(args: argparse.Namespace) -> CatalogQuery:
    params: Dict[str, str] = {}
    for option, param in _PARAM_OPTIONS.items():
        value = getattr(args, option)
        if value is not None:
            params[param] = value
    for option, param in _FLAG_OPTIONS.items():
        if getattr(args, option):
            params[param] = "true"
    return parse_query_params(params)


def catalog_url(args: argparse.Namespace) -> str:
    return args.catalog_url or os.environ.get("CATALOG_FEED_URL") or config.CATALOG_FEED_URL


def load_records(args: argparse.Namespace, metrics: FetchMetrics) -> List[CatalogRecord]:
    if args.catalog:
        return load_catalog_file(args.catalog)

    url = catalog_url(args)
    if not url:
        raise ValueError("No catalog source: pass --catalog, --catalog-url or set CATALOG_FEED_URL")

    http = HttpClient(
        api_token=os.environ.get("CATALOG_API_TOKEN") or None,
        timeout=config.HTTP_TIMEOUT_SECONDS,
        retry_max=config.HTTP_RETRY_MAX,
        backoff_base=config.HTTP_BACKOFF_BASE,
        backoff_max=config.HTTP_BACKOFF_MAX,
        metrics=metrics,
    )
    cache = None if args.no_cache else SnapshotCache(args.cache_path)
    try:
        client = CatalogClient(
            http,
            cache=cache,
            no_cache=args.no_cache,
            refresh=args.refresh,
            metrics=metrics,
        )
        return client.fetch_records(url)
    finally:
        if cache is not None:
            cache.close()


def run_preflight(args: argparse.Namespace) -> int:
    ok = True
    print("Preflight:")
    try:
        build_query(args)
        print("- query parameters: ok")
    except CatalogValidationError as exc:
        print(f"- query parameters: {exc}")
        ok = False

    if args.catalog:
        path = Path(args.catalog)
        readable = path.exists() and os.access(path, os.R_OK)
        print(f"- catalog file: {path} (exists={path.exists()}, readable={readable})")
        ok = ok and readable
    else:
        url = catalog_url(args)
        print(f"- catalog feed url set: {bool(url)}")
        ok = ok and bool(url)

    out_dir = Path(args.out)
    out_parent = out_dir if out_dir.exists() else out_dir.parent
    writable = os.access(out_parent, os.W_OK)
    print(f"- output dir: {out_dir} (writable={writable})")
    ok = ok and writable
    return 0 if ok else 1


def main(argv: Optional[List[str]] = None) -> int:
    load_env()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    args = parse_args(argv)
    if config.load_engine_config(args.config):
        logger.info("Loaded engine config overrides")

    if args.preflight:
        return run_preflight(args)

    try:
        query = build_query(args)
    except CatalogValidationError as exc:
        print(json.dumps(error_envelope(exc), ensure_ascii=False, indent=2), file=sys.stderr)
        return 2

    metrics = FetchMetrics()
    try:
        records = load_records(args, metrics)
        discovery = discover(records, query, include_stats=args.facets, zoom_level=args.zoom)
    except CatalogValidationError as exc:
        print(json.dumps(error_envelope(exc), ensure_ascii=False, indent=2), file=sys.stderr)
        return 2
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    result = discovery.result
    ensure_dir(args.out)
    out = Path(args.out)
    write_json_object(str(out / "results.json"), success_envelope(query_result_to_dict(result)))
    write_results_csv(str(out / "results.csv"), result.items, result.scores)
    written = ["results.json", "results.csv"]
    if discovery.stats is not None:
        write_json_object(str(out / "facets.json"), success_envelope(stats_to_dict(discovery.stats)))
        written.append("facets.json")
    if discovery.clusters is not None:
        write_json_object(str(out / "clusters.json"), success_envelope(clusters_to_dict(discovery.clusters)))
        written.append("clusters.json")
    if args.suggest is not None:
        suggestions = suggestions_to_list(suggest(records, args.suggest))
        write_json_object(str(out / "suggestions.json"), success_envelope(suggestions))
        written.append("suggestions.json")

    meta = result.meta
    if not args.catalog:
        logger.info("Feed: %s", metrics.summary())
    print(
        f"Done. Page {meta.page}/{meta.total_pages} with {len(result.items)} of {meta.total} "
        f"matching cases. Wrote {', '.join(written)} to {args.out}"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
