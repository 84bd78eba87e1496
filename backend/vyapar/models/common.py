# FILE: backend/vyapar/models/common.py
# Shared types for MongoDB integration.
# 1. PyObjectId validates strings into bson.ObjectId and serializes back to str for JSON.
# 2. ensure_utc normalizes naive datetimes returned by pymongo.

from bson import ObjectId
from datetime import datetime, timezone
from pydantic import BeforeValidator, PlainSerializer, WithJsonSchema
from typing import Annotated, Any, Optional

def validate_object_id(v: Any) -> ObjectId:
    if isinstance(v, ObjectId):
        return v
    if ObjectId.is_valid(v):
        return ObjectId(v)
    raise ValueError("Invalid ObjectId")

PyObjectId = Annotated[
    ObjectId,
    BeforeValidator(validate_object_id),
    PlainSerializer(lambda v: str(v), return_type=str, when_used="json"),
    WithJsonSchema({"type": "string"}),
]

def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """pymongo hands back naive UTC datetimes; attach the zone so comparisons work."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def to_object_id(value: str) -> Optional[ObjectId]:
    return ObjectId(value) if ObjectId.is_valid(value) else None
