"""Services for the Workbru place directory backend."""

from .place_service import PlaceService
from .proximity_search_service import ProximitySearchService

__all__ = [
    "PlaceService",
    "ProximitySearchService",
]
