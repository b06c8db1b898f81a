"""Place management service."""

import logging
import uuid
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from models.place import Place, PlaceCreate, PlaceUpdate
from services.proximity_search_service import ProximitySearchService
from utils.cache import PointLookupCache
from utils.constants import FULL_PRECISION, GEOHASH_PREFIX_LENGTH, PLACES_TABLE
from utils.exceptions import InvalidArgument, StorageError
from utils.geo_utils import encode_geohash
from utils.storage import Storage

logger = logging.getLogger(__name__)


def assign_geohash(place: Place) -> Place:
    """Recompute the stored geohash and index prefix from the location."""
    place.geohash = encode_geohash(
        place.location.latitude, place.location.longitude, FULL_PRECISION
    )
    place.geohash_prefix = place.geohash[:GEOHASH_PREFIX_LENGTH]
    return place


class PlaceService:
    """Service for managing places to work.

    Every write invalidates the cached entry for the place, so reads never
    serve data a write has superseded.
    """

    def __init__(
        self,
        storage: Storage,
        cache: PointLookupCache,
        table_name: str = PLACES_TABLE,
        search_service: ProximitySearchService | None = None,
    ):
        self.storage = storage
        self.cache = cache
        self.table_name = table_name
        self.search_service = search_service or ProximitySearchService(
            storage, table_name=table_name
        )

    def get_all_places(self) -> list[Place]:
        """Get all places, sorted by name. Full table scan."""
        places = []
        for item in self.storage.scan(self.table_name):
            try:
                places.append(Place(**item))
            except ValidationError as e:
                logger.warning("Skipping malformed place %s: %s", item.get("id"), e)

        return sorted(places, key=lambda p: p.name)

    def close(self) -> None:
        """Release the search service's lookup pool."""
        self.search_service.close()

    def _fetch_place(self, place_id: str) -> Place | None:
        item = self.storage.get(self.table_name, {"id": place_id})
        if not item:
            return None
        try:
            return Place(**item)
        except ValidationError as e:
            logger.error("Stored place %s is malformed: %s", place_id, e)
            raise StorageError(f"Stored place {place_id} is malformed: {e}") from e

    def get_place(self, place_id: str) -> Place | None:
        """Get a place by ID through the lookup cache.

        Raises:
            StorageError: If the read fails or the stored item is malformed
        """
        place = self.cache.get(place_id, self._fetch_place)
        # Callers get their own copy so the cached entry cannot be mutated
        return place.model_copy(deep=True) if place else None

    def create_place(
        self, data: PlaceCreate | dict[str, Any], created_by: str | None = None
    ) -> Place:
        """
        Create a new place with a generated ID and geohash.

        Args:
            data: Place payload
            created_by: ID of the user adding the place

        Returns:
            The stored place

        Raises:
            InvalidArgument: If the payload fails validation
        """
        try:
            payload = data if isinstance(data, PlaceCreate) else PlaceCreate(**data)
            now = datetime.now(UTC).isoformat()
            place = Place(
                id=str(uuid.uuid4()),
                created_by=created_by,
                created_at=now,
                updated_at=now,
                **payload.model_dump(),
            )
        except ValidationError as e:
            raise InvalidArgument(f"Invalid place data: {e}") from e

        assign_geohash(place)
        self.storage.put(self.table_name, place.to_item())
        self.cache.invalidate(place.id)

        logger.info("Created place %s (%s) at %s", place.id, place.name, place.geohash)
        return place

    def update_place(
        self, place_id: str, data: PlaceUpdate | dict[str, Any]
    ) -> Place | None:
        """
        Update an existing place.

        Amenities and attributes are merged over the stored values; other
        fields are replaced when present. The geohash is recomputed.

        Returns:
            The updated place, or None if it does not exist

        Raises:
            InvalidArgument: If the update or the merged place fails validation
        """
        try:
            update = data if isinstance(data, PlaceUpdate) else PlaceUpdate(**data)
        except ValidationError as e:
            raise InvalidArgument(f"Invalid place update: {e}") from e

        # Writes always start from the stored item, never the cache
        existing = self._fetch_place(place_id)
        if not existing:
            return None

        changes = update.model_dump(exclude_unset=True)
        amenities = changes.pop("amenities", None) or {}
        attributes = changes.pop("attributes", None) or {}

        merged = existing.model_dump(exclude={"distance"})
        merged.update(changes)
        merged["amenities"] = {**merged["amenities"], **amenities}
        merged["attributes"] = {**merged["attributes"], **attributes}
        merged["id"] = place_id
        merged["updated_at"] = datetime.now(UTC).isoformat()

        try:
            place = Place(**merged)
        except ValidationError as e:
            raise InvalidArgument(f"Invalid place data: {e}") from e

        assign_geohash(place)
        self.storage.put(self.table_name, place.to_item())
        self.cache.invalidate(place_id)

        return place

    def delete_place(self, place_id: str) -> bool:
        """Delete a place. Returns False if it does not exist."""
        if not self.storage.get(self.table_name, {"id": place_id}):
            return False

        self.storage.delete(self.table_name, {"id": place_id})
        self.cache.invalidate(place_id)

        logger.info("Deleted place %s", place_id)
        return True

    def find_nearby(
        self, latitude: float, longitude: float, radius_km: float
    ) -> list[Place]:
        """Places within radius_km of the point, nearest first."""
        return self.search_service.find_nearby(latitude, longitude, radius_km)

    def backfill_geohashes(self) -> dict[str, Any]:
        """
        Rewrite every place whose stored geohash does not match its location.

        Run after changing FULL_PRECISION or GEOHASH_PREFIX_LENGTH, or to
        repair items written without a geohash.

        Returns:
            Dict with backfill statistics
        """
        stats = {
            "total_places": 0,
            "updated": 0,
            "already_current": 0,
            "skipped_invalid": 0,
            "errors": 0,
        }

        for item in self.storage.scan(self.table_name):
            stats["total_places"] += 1
            try:
                place = Place(**item)
            except ValidationError as e:
                logger.warning("Cannot backfill malformed place %s: %s", item.get("id"), e)
                stats["skipped_invalid"] += 1
                continue

            stored = (place.geohash, place.geohash_prefix)
            assign_geohash(place)
            if stored == (place.geohash, place.geohash_prefix):
                stats["already_current"] += 1
                continue

            try:
                self.storage.put(self.table_name, place.to_item())
            except StorageError as e:
                logger.error("Failed to backfill geohash for %s: %s", place.id, e)
                stats["errors"] += 1
                continue

            self.cache.invalidate(place.id)
            stats["updated"] += 1

        logger.info("Geohash backfill completed: %s", stats)
        return stats
