"""Place data models."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ParkingType(str, Enum):
    """Parking available at a place."""

    NONE = "none"
    STREET = "street"
    LOT = "lot"
    GARAGE = "garage"
    VALET = "valet"


class Capacity(str, Enum):
    """Rough seating capacity."""

    EXTRA_SMALL = "extra-small"
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class NoiseLevel(str, Enum):
    """Typical noise level."""

    QUIET = "quiet"
    MODERATE = "moderate"
    LOUD = "loud"


class Weekday(str, Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"


class Location(BaseModel):
    """Geographic coordinates of a place."""

    latitude: float = Field(
        ..., ge=-90, le=90, allow_inf_nan=False, description="Latitude coordinate"
    )
    longitude: float = Field(
        ..., ge=-180, le=180, allow_inf_nan=False, description="Longitude coordinate"
    )


class Amenities(BaseModel):
    """What a place offers to people working there."""

    wifi: bool = False
    coffee: bool = False
    outlets: bool = False
    seating: bool = False
    food: bool = False
    meeting_rooms: bool = False


class PlaceAttributes(BaseModel):
    """Descriptive ratings and properties of a place."""

    parking: ParkingType = ParkingType.NONE
    capacity: Capacity | None = None
    noise_level: NoiseLevel
    seating_comfort: float | None = Field(None, ge=1, le=5)
    rating: float | None = Field(None, ge=0, le=5)
    open_late: bool = False
    coffee_rating: float | None = Field(None, ge=1, le=5)

    model_config = ConfigDict(use_enum_values=True)


class OpeningHours(BaseModel):
    day: Weekday
    open: str = Field(..., description="Opening time, e.g. '09:00'")
    close: str = Field(..., description="Closing time, e.g. '17:00'")

    model_config = ConfigDict(use_enum_values=True)


class PlaceCreate(BaseModel):
    """Payload for creating a place."""

    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=1000)
    address: str = Field(..., min_length=1)
    location: Location
    amenities: Amenities = Field(default_factory=Amenities)
    attributes: PlaceAttributes
    opening_hours: list[OpeningHours] = Field(default_factory=list)
    photos: list[str] = Field(default_factory=list)
    google_place_id: str | None = None


class PlaceUpdate(BaseModel):
    """Partial update for a place.

    Amenities and attributes are merged field by field over the stored values.
    """

    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=1000)
    address: str | None = Field(None, min_length=1)
    location: Location | None = None
    amenities: dict[str, Any] | None = None
    attributes: dict[str, Any] | None = None
    opening_hours: list[OpeningHours] | None = None
    photos: list[str] | None = None
    google_place_id: str | None = None


class Place(BaseModel):
    """A place to work: cafe, coworking space, library.

    Unknown attributes read from storage are kept and written back untouched.
    """

    id: str = Field(..., description="Unique identifier for the place")
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=1000)
    address: str = Field(..., min_length=1)
    location: Location
    geohash: str | None = Field(
        None, description="Full precision geohash of location"
    )
    geohash_prefix: str | None = Field(
        None, description="Partition key of the geohash index"
    )
    distance: float | None = Field(
        None, description="Km from the query point, search results only"
    )
    amenities: Amenities = Field(default_factory=Amenities)
    attributes: PlaceAttributes
    opening_hours: list[OpeningHours] = Field(default_factory=list)
    photos: list[str] = Field(default_factory=list)
    google_place_id: str | None = None
    created_by: str | None = Field(None, description="User who added the place")
    created_at: str | None = Field(None, description="ISO timestamp of creation")
    updated_at: str | None = Field(None, description="ISO timestamp of last update")

    model_config = ConfigDict(extra="allow")

    def to_item(self) -> dict[str, Any]:
        """Storage representation. The query-scoped distance is never stored."""
        return self.model_dump(mode="json", exclude={"distance"}, exclude_none=True)
