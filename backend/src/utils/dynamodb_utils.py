"""DynamoDB type conversion utilities.

DynamoDB stores numbers as Decimal types, while place models use float/int.
Floats are converted through their shortest repr so a stored coordinate
reads back as the identical float, which keeps stored geohashes consistent
with stored locations.
"""

from decimal import Decimal
from typing import Any


def decimal_to_python(obj: Any) -> Any:
    """
    Recursively convert DynamoDB Decimal values to int (whole numbers) or float.

    Args:
        obj: Any object that may contain Decimal values

    Returns:
        The object with all Decimal values converted
    """
    if isinstance(obj, Decimal):
        return int(obj) if obj % 1 == 0 else float(obj)
    if isinstance(obj, dict):
        return {key: decimal_to_python(value) for key, value in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [decimal_to_python(item) for item in obj]
    return obj


def python_to_decimal(obj: Any) -> Any:
    """
    Recursively convert float/int values to Decimal, dropping None attributes.

    Booleans are left alone (bool is a subclass of int).

    Args:
        obj: Any object that may contain float/int values

    Returns:
        The object ready for the DynamoDB resource serializer
    """
    if isinstance(obj, bool):
        return obj
    if isinstance(obj, (int, float)):
        return Decimal(repr(obj))
    if isinstance(obj, dict):
        return {
            key: python_to_decimal(value)
            for key, value in obj.items()
            if value is not None
        }
    if isinstance(obj, (list, tuple)):
        return [python_to_decimal(item) for item in obj]
    return obj


def prepare_for_dynamodb(item: dict[str, Any]) -> dict[str, Any]:
    """Prepare a Python dictionary for storage in DynamoDB."""
    return python_to_decimal(item)


def parse_from_dynamodb(item: dict[str, Any]) -> dict[str, Any]:
    """Parse a DynamoDB item to Python-native types."""
    return decimal_to_python(item)


def parse_items_from_dynamodb(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Parse a list of DynamoDB items to Python-native types."""
    return [parse_from_dynamodb(item) for item in items]
