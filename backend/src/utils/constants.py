"""Shared constants and environment configuration for the Workbru backend."""

import os

ENVIRONMENT = os.environ.get("ENVIRONMENT", "dev")
PLACES_TABLE = os.environ.get("PLACES_TABLE", f"workbru-places-{ENVIRONMENT}")
AWS_REGION = os.environ.get("AWS_REGION_NAME", "us-east-1")

# Local in-memory store unless running in production
USE_LOCAL_DB = (
    os.environ.get("USE_LOCAL_DB", str(ENVIRONMENT != "production")).lower()
    == "true"
)

# Read-through cache for single place lookups
PLACE_CACHE_TTL_SECONDS = float(os.environ.get("PLACE_CACHE_TTL_SECONDS", "60"))
PLACE_CACHE_MAXSIZE = int(os.environ.get("PLACE_CACHE_MAXSIZE", "5000"))
PLACE_CACHE_KEY_PREFIX = "place:"

# Max parallel index lookups per proximity search (center + 8 neighbors)
SEARCH_CONCURRENCY = int(os.environ.get("SEARCH_CONCURRENCY", "9"))

# Stored geohash precision (~4.8m cells)
FULL_PRECISION = 9

# Partition key of the geohash index is the first 3 characters of the geohash.
# Must not exceed the coarsest precision chosen by select_precision().
GEOHASH_PREFIX_LENGTH = 3
GEOHASH_PREFIX_INDEX = "GeohashPrefixIndex"
