"""Utility modules for the Workbru backend."""

# Import leaf modules only; PlaceSeeder depends on services and would be circular.
# Import it directly when needed: from utils.place_seeder import PlaceSeeder
from .geo_utils import (
    BoundingBox,
    bounding_box,
    decode_geohash,
    encode_geohash,
    get_neighboring_geohashes,
    haversine_distance,
    select_precision,
)

__all__ = [
    "BoundingBox",
    "bounding_box",
    "decode_geohash",
    "encode_geohash",
    "get_neighboring_geohashes",
    "haversine_distance",
    "select_precision",
]
