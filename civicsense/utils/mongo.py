from datetime import datetime
from enum import Enum

from bson import ObjectId


def serialize_mongo(obj):
    """
    Recursively convert MongoDB objects to JSON-safe values
    """
    if isinstance(obj, ObjectId):
        return str(obj)

    if isinstance(obj, datetime):
        return obj.isoformat()

    if isinstance(obj, Enum):
        return obj.value

    if isinstance(obj, list):
        return [serialize_mongo(i) for i in obj]

    if isinstance(obj, dict):
        return {k: serialize_mongo(v) for k, v in obj.items()}

    return obj


def to_mongo(obj):
    """
    Recursively prepare model dumps for BSON: enums become their values,
    datetimes stay native.
    """
    if isinstance(obj, Enum):
        return obj.value

    if isinstance(obj, list):
        return [to_mongo(i) for i in obj]

    if isinstance(obj, dict):
        return {k: to_mongo(v) for k, v in obj.items()}

    return obj


def from_mongo(doc: dict) -> dict:
    """Replace ``_id`` with a string ``id``."""
    doc = dict(doc)
    doc["id"] = str(doc.pop("_id"))
    return doc
