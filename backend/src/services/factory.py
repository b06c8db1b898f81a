"""Process-wide construction of storage, cache and place services.

Lazy-initialized so that tests can swap environments (e.g. moto's mock_aws)
and call reset_services() between runs.
"""

import logging

from services.place_service import PlaceService
from utils.cache import PointLookupCache
from utils.constants import (
    AWS_REGION,
    ENVIRONMENT,
    PLACE_CACHE_MAXSIZE,
    PLACE_CACHE_TTL_SECONDS,
    PLACES_TABLE,
    USE_LOCAL_DB,
)
from utils.storage import DynamoDBStorage, InMemoryStorage, Storage

logger = logging.getLogger(__name__)

_storage = None
_place_cache = None
_place_service = None


def reset_services():
    """Reset all lazy-initialized services. Useful for testing."""
    global _storage, _place_cache, _place_service
    if _place_service is not None:
        _place_service.close()
    _storage = None
    _place_cache = None
    _place_service = None


def get_storage() -> Storage:
    global _storage
    if _storage is None:
        if USE_LOCAL_DB:
            logger.info("[DB] %s environment: using local in-memory storage", ENVIRONMENT)
            _storage = InMemoryStorage()
        else:
            logger.info("[DB] %s environment: using DynamoDB in %s", ENVIRONMENT, AWS_REGION)
            _storage = DynamoDBStorage(region_name=AWS_REGION)
    return _storage


def get_place_cache() -> PointLookupCache:
    global _place_cache
    if _place_cache is None:
        _place_cache = PointLookupCache(
            ttl_seconds=PLACE_CACHE_TTL_SECONDS, maxsize=PLACE_CACHE_MAXSIZE
        )
    return _place_cache


def get_place_service() -> PlaceService:
    global _place_service
    if _place_service is None:
        _place_service = PlaceService(
            get_storage(), get_place_cache(), table_name=PLACES_TABLE
        )
    return _place_service
