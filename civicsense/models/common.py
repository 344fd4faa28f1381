# civicsense/models/common.py
from __future__ import annotations

from datetime import datetime, timezone

from bson import ObjectId
from pydantic import BaseModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_oid(x: str | None) -> ObjectId | None:
    if not x:
        return None
    x = x.strip()
    if not ObjectId.is_valid(x):
        return None
    return ObjectId(x)


class CivicBaseModel(BaseModel):
    class Config:
        populate_by_name = True
        use_enum_values = False
        validate_assignment = True
