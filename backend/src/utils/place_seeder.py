"""Place data seeder for populating local development data."""

import json
import logging
from pathlib import Path
from typing import Any

from services.place_service import PlaceService
from utils.exceptions import InvalidArgument, StorageError

logger = logging.getLogger(__name__)

DEFAULT_SEED_FILE = Path(__file__).parent / "data" / "places.json"


class PlaceSeeder:
    """Seeds places into storage, skipping ones already present.

    A place counts as present when a stored place has the same name and
    address (ignoring case and surrounding whitespace).
    """

    def __init__(self, place_service: PlaceService):
        """Initialize the seeder with a place service."""
        self.place_service = place_service

    def seed_from_file(self, path: Path | str = DEFAULT_SEED_FILE) -> dict[str, Any]:
        """Seed places from a JSON file holding a list of place payloads."""
        with open(path, encoding="utf-8") as f:
            places = json.load(f)
        if not isinstance(places, list):
            raise InvalidArgument(f"Seed file {path} must contain a JSON list")
        return self.seed(places)

    def seed(self, places: list[dict[str, Any]]) -> dict[str, Any]:
        """
        Create every place that is not already stored.

        Returns:
            Dictionary with seeding results and statistics.
        """
        logger.info("Starting place data seeding (%d places)...", len(places))

        results = {
            "places_created": 0,
            "places_skipped": 0,
            "errors": [],
            "created_places": [],
        }

        existing = {
            self._identity(p.name, p.address)
            for p in self.place_service.get_all_places()
        }

        for place_data in places:
            identity = self._identity(
                place_data.get("name", ""), place_data.get("address", "")
            )
            if identity in existing:
                logger.info("Place %r already exists, skipping", place_data.get("name"))
                results["places_skipped"] += 1
                continue

            try:
                created = self.place_service.create_place(place_data)
            except (InvalidArgument, StorageError) as e:
                error_msg = f"Failed to create place {place_data.get('name')!r}: {e}"
                logger.error(error_msg)
                results["errors"].append(error_msg)
                continue

            existing.add(identity)
            results["places_created"] += 1
            results["created_places"].append(created.id)

        logger.info(
            "Place seeding completed. Created: %d, Skipped: %d, Errors: %d",
            results["places_created"],
            results["places_skipped"],
            len(results["errors"]),
        )
        return results

    @staticmethod
    def _identity(name: str, address: str) -> tuple[str, str]:
        return (name.strip().lower(), address.strip().lower())
