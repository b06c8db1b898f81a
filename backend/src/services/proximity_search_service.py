"""Geohash-indexed proximity search over places."""

import logging
import math
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from boto3.dynamodb.conditions import Key
from pydantic import ValidationError

from models.place import Place
from utils.constants import (
    GEOHASH_PREFIX_INDEX,
    GEOHASH_PREFIX_LENGTH,
    PLACES_TABLE,
    SEARCH_CONCURRENCY,
)
from utils.exceptions import InvalidArgument, SearchFailed
from utils.geo_utils import (
    GEOHASH_CELL_SIZE_KM,
    get_geohashes_for_radius,
    haversine_distance,
    validate_coordinates,
)
from utils.storage import Storage

logger = logging.getLogger(__name__)

# Searches slower than this are logged at WARNING level
SLOW_SEARCH_MS = 1000


def geohash_cell_condition(cell: str):
    """Key condition matching every place whose geohash starts with cell."""
    if len(cell) < GEOHASH_PREFIX_LENGTH:
        raise ValueError(
            f"Cell {cell!r} is coarser than the index prefix length "
            f"{GEOHASH_PREFIX_LENGTH}"
        )
    return Key("geohash_prefix").eq(cell[:GEOHASH_PREFIX_LENGTH]) & Key(
        "geohash"
    ).begins_with(cell)


def _item_coordinate(item: dict[str, Any]) -> tuple[float, float] | None:
    location = item.get("location")
    if not isinstance(location, dict):
        return None
    latitude = location.get("latitude")
    longitude = location.get("longitude")
    if latitude is None or longitude is None:
        return None
    return float(latitude), float(longitude)


class ProximitySearchService:
    """Answers "all places within radius r of a point".

    The search runs in two phases. First one index lookup per candidate
    geohash cell (the cell containing the point plus its 8 neighbors, at a
    precision matched to the radius). Then exact haversine filtering of the
    candidates. Lookups run in parallel; if any fails the whole search fails.
    The lookup pool lives as long as the service, so worker threads (and the
    per-thread DynamoDB resources they hold) are reused across searches.
    Call close() to release it.
    """

    def __init__(
        self,
        storage: Storage,
        table_name: str = PLACES_TABLE,
        index_name: str = GEOHASH_PREFIX_INDEX,
        max_workers: int = SEARCH_CONCURRENCY,
    ):
        self.storage = storage
        self.table_name = table_name
        self.index_name = index_name
        self.max_workers = max(1, max_workers)
        self._executor = ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="geohash-lookup"
        )

    def close(self) -> None:
        """Shut down the lookup pool, waiting for running lookups."""
        self._executor.shutdown(wait=True, cancel_futures=True)

    def find_nearby(
        self, latitude: float, longitude: float, radius_km: float
    ) -> list[Place]:
        """
        Find places within a radius of a point, nearest first.

        Args:
            latitude: Query latitude in degrees
            longitude: Query longitude in degrees
            radius_km: Search radius in kilometers, must be positive

        Returns:
            Places with ``distance`` set, sorted by ascending distance. Places
            at equal distance keep the order the lookups returned them in.

        Raises:
            InvalidArgument: Coordinates out of range or non-positive radius
            SearchFailed: Any candidate cell lookup failed
        """
        validate_coordinates(latitude, longitude)
        if (
            not isinstance(radius_km, (int, float))
            or isinstance(radius_km, bool)
            or not math.isfinite(radius_km)
            or radius_km <= 0
        ):
            raise InvalidArgument(
                f"Radius must be a positive number of km, got {radius_km!r}"
            )

        start = time.monotonic()

        precision, cells = get_geohashes_for_radius(latitude, longitude, radius_km)
        logger.debug(
            "Searching %d cells at precision %d (~%s km) for radius %.2fkm: %s",
            len(cells),
            precision,
            GEOHASH_CELL_SIZE_KM[precision],
            radius_km,
            ",".join(cells),
        )

        candidates = self._dedupe(self._query_cells(cells))

        nearby = []
        for item in candidates:
            coord = _item_coordinate(item)
            if not coord:
                continue

            distance = haversine_distance(latitude, longitude, coord[0], coord[1])
            if distance > radius_km:
                continue

            try:
                place = Place(**item)
            except ValidationError as e:
                logger.warning(
                    "Skipping malformed place %s in search results: %s",
                    item.get("id"),
                    e,
                )
                continue

            place.distance = distance
            nearby.append(place)

        nearby.sort(key=lambda p: p.distance)

        duration_ms = (time.monotonic() - start) * 1000
        if duration_ms > SLOW_SEARCH_MS:
            logger.warning(
                "[SLOW] nearby search (%.4f, %.4f) r=%.2fkm took %.0fms",
                latitude,
                longitude,
                radius_km,
                duration_ms,
            )
        logger.info(
            "Found %d places from %d candidates in %.0fms",
            len(nearby),
            len(candidates),
            duration_ms,
        )

        return nearby

    def _query_cell(self, cell: str) -> list[dict[str, Any]]:
        return self.storage.query_by_index(
            self.table_name, self.index_name, geohash_cell_condition(cell)
        )

    def _query_cells(self, cells: list[str]) -> list[dict[str, Any]]:
        """Look up every cell concurrently. Results keep the order of cells."""
        futures = [(cell, self._executor.submit(self._query_cell, cell)) for cell in cells]

        results = []
        for cell, future in futures:
            try:
                results.extend(future.result())
            except Exception as e:
                for _, pending in futures:
                    pending.cancel()
                logger.error("Lookup for geohash cell %s failed: %s", cell, e)
                raise SearchFailed(
                    f"Failed to fetch nearby places: lookup for cell {cell} "
                    f"failed: {e}"
                ) from e

        return results

    @staticmethod
    def _dedupe(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
        seen_ids = set()
        unique = []
        for item in items:
            place_id = item.get("id")
            if place_id is not None:
                if place_id in seen_ids:
                    continue
                seen_ids.add(place_id)
            unique.append(item)
        return unique
