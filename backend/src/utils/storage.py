"""Key-value storage backends for place data.

Both backends take key conditions built with boto3's ``Key`` helper, e.g.
``Key("geohash_prefix").eq("9q8") & Key("geohash").begins_with("9q8yy")``.
"""

import copy
import logging
import threading
from typing import Any, Protocol

import boto3
from boto3.dynamodb.conditions import ConditionBase
from botocore.exceptions import ClientError

from utils.constants import AWS_REGION
from utils.dynamodb_utils import (
    parse_from_dynamodb,
    parse_items_from_dynamodb,
    prepare_for_dynamodb,
)
from utils.exceptions import StorageError

logger = logging.getLogger(__name__)


class Storage(Protocol):
    """Capabilities the place services need from a store."""

    def get(self, table: str, key: dict[str, Any]) -> dict[str, Any] | None: ...

    def put(self, table: str, item: dict[str, Any]) -> None: ...

    def delete(self, table: str, key: dict[str, Any]) -> None: ...

    def query_by_index(
        self, table: str, index_name: str, key_condition: ConditionBase
    ) -> list[dict[str, Any]]: ...

    def scan(self, table: str) -> list[dict[str, Any]]: ...


def matches_key_condition(item: dict[str, Any], condition: ConditionBase) -> bool:
    """Evaluate an equality / begins_with / AND key condition against an item."""
    expression = condition.get_expression()
    operator = expression["operator"]
    values = expression["values"]

    if operator == "AND":
        return all(matches_key_condition(item, part) for part in values)

    attribute, expected = values[0].name, values[1]
    if attribute not in item:
        return False
    actual = item[attribute]

    if operator == "=":
        return actual == expected
    if operator == "begins_with":
        return isinstance(actual, str) and actual.startswith(expected)
    raise StorageError(f"Unsupported key condition operator: {operator}")


class InMemoryStorage:
    """Thread-safe in-process store for local development and tests.

    Items are copied on the way in and out, like a real store. Index queries
    filter the whole table; items missing an indexed attribute never match,
    as with a sparse secondary index.
    """

    def __init__(self, key_attribute: str = "id"):
        self.key_attribute = key_attribute
        self._tables: dict[str, dict[Any, dict[str, Any]]] = {}
        self._lock = threading.RLock()

    def _table(self, table: str) -> dict[Any, dict[str, Any]]:
        return self._tables.setdefault(table, {})

    def _key_value(self, key: dict[str, Any]) -> Any:
        try:
            return key[self.key_attribute]
        except KeyError:
            raise StorageError(
                f"Key is missing required attribute {self.key_attribute!r}"
            ) from None

    def get(self, table: str, key: dict[str, Any]) -> dict[str, Any] | None:
        with self._lock:
            item = self._table(table).get(self._key_value(key))
            return copy.deepcopy(item) if item is not None else None

    def put(self, table: str, item: dict[str, Any]) -> None:
        with self._lock:
            self._table(table)[self._key_value(item)] = copy.deepcopy(item)

    def delete(self, table: str, key: dict[str, Any]) -> None:
        with self._lock:
            self._table(table).pop(self._key_value(key), None)

    def query_by_index(
        self, table: str, index_name: str, key_condition: ConditionBase
    ) -> list[dict[str, Any]]:
        with self._lock:
            return [
                copy.deepcopy(item)
                for item in self._table(table).values()
                if matches_key_condition(item, key_condition)
            ]

    def scan(self, table: str) -> list[dict[str, Any]]:
        with self._lock:
            return [copy.deepcopy(item) for item in self._table(table).values()]

    def clear_all(self) -> None:
        with self._lock:
            self._tables.clear()


class DynamoDBStorage:
    """DynamoDB-backed store.

    boto3 resources are not thread-safe, so each thread gets its own.
    Query and scan follow LastEvaluatedKey until every page is read.
    """

    def __init__(self, region_name: str = AWS_REGION):
        self.region_name = region_name
        self._local = threading.local()

    def _resource(self):
        resource = getattr(self._local, "resource", None)
        if resource is None:
            session = boto3.session.Session()
            resource = session.resource("dynamodb", region_name=self.region_name)
            self._local.resource = resource
        return resource

    def _table(self, table: str):
        return self._resource().Table(table)

    def get(self, table: str, key: dict[str, Any]) -> dict[str, Any] | None:
        try:
            response = self._table(table).get_item(Key=key)
        except ClientError as e:
            logger.error("Error getting item from %s: %s", table, e)
            raise StorageError(f"DynamoDB get failed: {e}") from e

        item = response.get("Item")
        return parse_from_dynamodb(item) if item else None

    def put(self, table: str, item: dict[str, Any]) -> None:
        try:
            self._table(table).put_item(Item=prepare_for_dynamodb(item))
        except ClientError as e:
            logger.error("Error putting item into %s: %s", table, e)
            raise StorageError(f"DynamoDB put failed: {e}") from e

    def delete(self, table: str, key: dict[str, Any]) -> None:
        try:
            self._table(table).delete_item(Key=key)
        except ClientError as e:
            logger.error("Error deleting item from %s: %s", table, e)
            raise StorageError(f"DynamoDB delete failed: {e}") from e

    def query_by_index(
        self, table: str, index_name: str, key_condition: ConditionBase
    ) -> list[dict[str, Any]]:
        dynamodb_table = self._table(table)
        kwargs = {"IndexName": index_name, "KeyConditionExpression": key_condition}
        items = []
        try:
            response = dynamodb_table.query(**kwargs)
            items.extend(response.get("Items", []))
            while "LastEvaluatedKey" in response:
                response = dynamodb_table.query(
                    ExclusiveStartKey=response["LastEvaluatedKey"], **kwargs
                )
                items.extend(response.get("Items", []))
        except ClientError as e:
            logger.error("Error querying %s on %s: %s", index_name, table, e)
            raise StorageError(f"DynamoDB query failed: {e}") from e

        return parse_items_from_dynamodb(items)

    def scan(self, table: str) -> list[dict[str, Any]]:
        dynamodb_table = self._table(table)
        items = []
        try:
            response = dynamodb_table.scan()
            items.extend(response.get("Items", []))
            while "LastEvaluatedKey" in response:
                response = dynamodb_table.scan(
                    ExclusiveStartKey=response["LastEvaluatedKey"]
                )
                items.extend(response.get("Items", []))
        except ClientError as e:
            logger.error("Error scanning %s: %s", table, e)
            raise StorageError(f"DynamoDB scan failed: {e}") from e

        return parse_items_from_dynamodb(items)
