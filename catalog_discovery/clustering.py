"""Map clustering and map point projection.

Clustering is a single greedy pass in input order; clusters are never merged
afterwards, so membership depends on record order.
"""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Set

from . import config
from .geo import distance_km
from .models import CatalogRecord, ClusterResult, GeoCluster, MapPoint

logger = logging.getLogger(__name__)


def cluster_radius_km(zoom_level: float) -> float:
    return max(config.CLUSTER_MIN_KM, config.CLUSTER_BASE_KM - zoom_level)


def cluster_records(
    records: Iterable[CatalogRecord],
    zoom_level: Optional[float] = None,
) -> ClusterResult:
    if zoom_level is None:
        zoom_level = config.DEFAULT_ZOOM_LEVEL
    records = list(records)
    radius = cluster_radius_km(zoom_level)

    clusters: List[GeoCluster] = []
    singles: List[CatalogRecord] = []
    processed: Set[int] = set()

    for i, seed in enumerate(records):
        if i in processed:
            continue
        nearby = [
            j
            for j, other in enumerate(records)
            if j != i
            and j not in processed
            and distance_km(
                seed.location.latitude,
                seed.location.longitude,
                other.location.latitude,
                other.location.longitude,
            )
            <= radius
        ]
        if not nearby:
            singles.append(seed)
            processed.add(i)
            continue

        members = [seed] + [records[j] for j in nearby]
        clusters.append(
            GeoCluster(
                id=f"cluster-{seed.id}",
                latitude=sum(m.location.latitude for m in members) / len(members),
                longitude=sum(m.location.longitude for m in members) / len(members),
                count=len(members),
                records=members,
            )
        )
        processed.add(i)
        processed.update(nearby)

    logger.debug(
        "Clustered %d records at zoom %s (radius %.1f km): %d clusters, %d singles",
        len(records), zoom_level, radius, len(clusters), len(singles),
    )
    return ClusterResult(clusters=clusters, singles=singles, radius_km=radius)


def to_map_points(records: Iterable[CatalogRecord]) -> List[MapPoint]:
    points = []
    for r in records:
        points.append(
            MapPoint(
                id=r.id,
                title=r.title,
                customer=r.customer_name,
                latitude=r.location.latitude,
                longitude=r.location.longitude,
                project_type=r.project_type,
                industry=r.industry,
                screen_area=r.scale.screen_area,
                investment=r.scale.investment,
                currency=r.scale.currency,
                thumbnail=r.images[0] if r.images else config.PLACEHOLDER_IMAGE,
                is_featured=r.is_featured,
                is_showcase=r.is_showcase,
            )
        )
    return points
