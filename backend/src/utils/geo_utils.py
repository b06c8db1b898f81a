"""Geographic utility functions for geohashing, bounding boxes and distances."""

import math
from typing import NamedTuple

from utils.constants import FULL_PRECISION
from utils.exceptions import InvalidArgument

# Earth's radius in kilometers
EARTH_RADIUS_KM = 6371.0

# Degree lengths used for bounding boxes
KM_PER_DEGREE_LAT = 110.574
KM_PER_DEGREE_LNG_AT_EQUATOR = 111.320

# Geohash base32 alphabet (standard geohash encoding, excludes a, i, l, o)
GEOHASH_ALPHABET = "0123456789bcdefghjkmnpqrstuvwxyz"
GEOHASH_DECODE_MAP = {c: i for i, c in enumerate(GEOHASH_ALPHABET)}

MIN_PRECISION = 1
MAX_PRECISION = 12

# Approximate cell size per precision level. select_precision() relies on
# levels 3-7.
GEOHASH_CELL_SIZE_KM = {
    1: 5000.0,
    2: 1250.0,
    3: 156.0,
    4: 39.0,
    5: 4.9,
    6: 1.2,
    7: 0.15,
    8: 0.038,
    9: 0.0048,
}

# (lat_dir, lon_dir) in N, NE, E, SE, S, SW, W, NW order
NEIGHBOR_DIRECTIONS = [
    (1, 0),
    (1, 1),
    (0, 1),
    (-1, 1),
    (-1, 0),
    (-1, -1),
    (0, -1),
    (1, -1),
]


class BoundingBox(NamedTuple):
    """Axis-aligned lat/lng rectangle, in degrees."""

    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    @property
    def center(self) -> tuple[float, float]:
        return (
            (self.min_lat + self.max_lat) / 2,
            (self.min_lng + self.max_lng) / 2,
        )

    def contains(self, latitude: float, longitude: float) -> bool:
        return (
            self.min_lat <= latitude <= self.max_lat
            and self.min_lng <= longitude <= self.max_lng
        )


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_coordinates(latitude: float, longitude: float) -> None:
    """Raise InvalidArgument unless both values are finite and in range."""
    if not _is_number(latitude) or not math.isfinite(latitude):
        raise InvalidArgument(f"Latitude must be a finite number, got {latitude!r}")
    if not _is_number(longitude) or not math.isfinite(longitude):
        raise InvalidArgument(
            f"Longitude must be a finite number, got {longitude!r}"
        )
    if not -90.0 <= latitude <= 90.0:
        raise InvalidArgument(f"Latitude {latitude} is outside [-90, 90]")
    if not -180.0 <= longitude <= 180.0:
        raise InvalidArgument(f"Longitude {longitude} is outside [-180, 180]")


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate the great-circle distance between two points on Earth.

    Uses the haversine formula to calculate the shortest distance over
    the earth's surface between two points.

    Args:
        lat1: Latitude of first point in degrees
        lon1: Longitude of first point in degrees
        lat2: Latitude of second point in degrees
        lon2: Longitude of second point in degrees

    Returns:
        Distance in kilometers, rounded to 2 decimal places
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_lat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return round(EARTH_RADIUS_KM * c, 2)


def bounding_box(lat: float, lon: float, radius_km: float) -> BoundingBox:
    """
    Calculate a bounding box covering a radius around a point.

    Longitude degrees shrink by cos(latitude) toward the poles. At the poles
    the longitude span is capped at 180 degrees either side, i.e. global.

    Args:
        lat: Center latitude in degrees
        lon: Center longitude in degrees
        radius_km: Radius in kilometers

    Returns:
        BoundingBox(min_lat, max_lat, min_lng, max_lng) in degrees
    """
    km_per_degree_lon = KM_PER_DEGREE_LNG_AT_EQUATOR * math.cos(math.radians(lat))

    delta_lat = radius_km / KM_PER_DEGREE_LAT
    delta_lon = radius_km / km_per_degree_lon if km_per_degree_lon > 0 else 180.0
    delta_lon = min(delta_lon, 180.0)

    return BoundingBox(
        min_lat=lat - delta_lat,
        max_lat=lat + delta_lat,
        min_lng=lon - delta_lon,
        max_lng=lon + delta_lon,
    )


def select_precision(box: BoundingBox) -> int:
    """
    Pick the coarsest geohash precision that still resolves the box.

    The span is the larger of the box's latitude and longitude extents:
        >= 10 degrees     -> 3 (~156 km cells)
        (2.5, 10)         -> 4 (~39 km)
        (0.5, 2.5]        -> 5 (~4.9 km)
        (0.05, 0.5]       -> 6 (~1.2 km)
        <= 0.05           -> 7 (~0.15 km)
    """
    span = max(box.max_lat - box.min_lat, box.max_lng - box.min_lng)

    if span >= 10:
        return 3
    if span > 2.5:
        return 4
    if span > 0.5:
        return 5
    if span > 0.05:
        return 6
    return 7


def encode_geohash(
    latitude: float, longitude: float, precision: int = FULL_PRECISION
) -> str:
    """
    Encode lat/lon to geohash string.

    Precision levels and approximate cell sizes:
        3: ~156 km
        4: ~39 km
        5: ~4.9 km
        6: ~1.2 km
        7: ~0.15 km
        9: ~4.8 m (stored on places)

    Args:
        latitude: Latitude in degrees (-90 to 90)
        longitude: Longitude in degrees (-180 to 180)
        precision: Number of characters in the geohash, 1 to 12

    Returns:
        Geohash string of specified precision

    Raises:
        InvalidArgument: If coordinates or precision are out of range
    """
    validate_coordinates(latitude, longitude)
    if (
        not isinstance(precision, int)
        or isinstance(precision, bool)
        or not MIN_PRECISION <= precision <= MAX_PRECISION
    ):
        raise InvalidArgument(
            f"Precision must be an integer in [{MIN_PRECISION}, {MAX_PRECISION}], "
            f"got {precision!r}"
        )

    lat_range = [-90.0, 90.0]
    lon_range = [-180.0, 180.0]

    geohash = []
    bits = 0
    bit_count = 0
    is_longitude = True

    while len(geohash) < precision:
        if is_longitude:
            mid = (lon_range[0] + lon_range[1]) / 2
            if longitude >= mid:
                bits = (bits << 1) | 1
                lon_range[0] = mid
            else:
                bits = bits << 1
                lon_range[1] = mid
        else:
            mid = (lat_range[0] + lat_range[1]) / 2
            if latitude >= mid:
                bits = (bits << 1) | 1
                lat_range[0] = mid
            else:
                bits = bits << 1
                lat_range[1] = mid

        is_longitude = not is_longitude
        bit_count += 1

        if bit_count == 5:
            geohash.append(GEOHASH_ALPHABET[bits])
            bits = 0
            bit_count = 0

    return "".join(geohash)


def decode_geohash_bounds(geohash: str) -> BoundingBox:
    """
    Decode a geohash to the exact bounds of its cell.

    Raises:
        InvalidArgument: If the geohash is empty or has characters outside
            the base32 alphabet
    """
    if not geohash:
        raise InvalidArgument("Geohash must not be empty")

    lat_range = [-90.0, 90.0]
    lon_range = [-180.0, 180.0]
    is_longitude = True

    for char in geohash.lower():
        if char not in GEOHASH_DECODE_MAP:
            raise InvalidArgument(f"Invalid geohash character {char!r} in {geohash!r}")

        bits = GEOHASH_DECODE_MAP[char]

        for i in range(4, -1, -1):
            bit = (bits >> i) & 1
            if is_longitude:
                mid = (lon_range[0] + lon_range[1]) / 2
                if bit:
                    lon_range[0] = mid
                else:
                    lon_range[1] = mid
            else:
                mid = (lat_range[0] + lat_range[1]) / 2
                if bit:
                    lat_range[0] = mid
                else:
                    lat_range[1] = mid
            is_longitude = not is_longitude

    return BoundingBox(lat_range[0], lat_range[1], lon_range[0], lon_range[1])


def decode_geohash(geohash: str) -> tuple[float, float]:
    """Decode geohash to the (latitude, longitude) center of its cell."""
    return decode_geohash_bounds(geohash).center


def get_neighboring_geohashes(geohash: str) -> list[str]:
    """
    Get the 8 geohashes of equal precision surrounding a cell.

    Steps exactly one cell width from the cell center in each direction and
    re-encodes. Longitude wraps across the 180th meridian. A cell touching a
    pole has nothing beyond it, so those directions fall back to the cell's
    own row and repeat the cell or its east/west neighbor.

    Args:
        geohash: The center geohash

    Returns:
        List of 8 geohash strings (N, NE, E, SE, S, SW, W, NW)
    """
    precision = len(geohash)
    box = decode_geohash_bounds(geohash)
    lat_delta = box.max_lat - box.min_lat
    lon_delta = box.max_lng - box.min_lng
    center_lat, center_lon = box.center

    neighbors = []
    for lat_dir, lon_dir in NEIGHBOR_DIRECTIONS:
        neighbor_lat = center_lat + (lat_dir * lat_delta)
        if not -90.0 < neighbor_lat < 90.0:
            neighbor_lat = center_lat

        neighbor_lon = center_lon + (lon_dir * lon_delta)
        if neighbor_lon > 180.0:
            neighbor_lon -= 360.0
        elif neighbor_lon < -180.0:
            neighbor_lon += 360.0

        neighbors.append(encode_geohash(neighbor_lat, neighbor_lon, precision))

    return neighbors


def get_geohashes_for_radius(
    latitude: float, longitude: float, radius_km: float
) -> tuple[int, list[str]]:
    """
    Get the candidate cells that may contain points within a radius.

    Args:
        latitude: Center latitude
        longitude: Center longitude
        radius_km: Search radius in kilometers

    Returns:
        Tuple of (precision, unique geohash cells), center cell first
    """
    precision = select_precision(bounding_box(latitude, longitude, radius_km))
    center_hash = encode_geohash(latitude, longitude, precision)
    neighbors = get_neighboring_geohashes(center_hash)

    # Preserve order, remove cells repeated near the poles
    return precision, list(dict.fromkeys([center_hash] + neighbors))
