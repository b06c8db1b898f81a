"""Data models for the Workbru place directory."""

from .place import (
    Amenities,
    Capacity,
    Location,
    NoiseLevel,
    OpeningHours,
    ParkingType,
    Place,
    PlaceAttributes,
    PlaceCreate,
    PlaceUpdate,
    Weekday,
)

__all__ = [
    "Place",
    "PlaceCreate",
    "PlaceUpdate",
    "Location",
    "Amenities",
    "PlaceAttributes",
    "OpeningHours",
    "ParkingType",
    "Capacity",
    "NoiseLevel",
    "Weekday",
]
