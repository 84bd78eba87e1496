from enum import Enum
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional
from datetime import datetime
from .common import PyObjectId

class TargetType(str, Enum):
    GLOBAL = "global"
    AREA = "area"
    PINCODE = "pincode"

class AnnouncementCreate(BaseModel):
    message: str = Field(..., min_length=3, max_length=500)
    target_type: TargetType = TargetType.GLOBAL
    target_value: str = ""
    is_active: bool = True
    video_url: Optional[str] = None

class AnnouncementUpdate(BaseModel):
    message: Optional[str] = Field(default=None, min_length=3, max_length=500)
    target_type: Optional[TargetType] = None
    target_value: Optional[str] = None
    is_active: Optional[bool] = None
    video_url: Optional[str] = None

    @field_validator('message', 'target_type', 'target_value', 'is_active')
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("field cannot be null; omit it to keep the current value")
        return v

class AnnouncementOut(AnnouncementCreate):
    id: PyObjectId = Field(alias="_id", serialization_alias="id")
    created_at: datetime

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

class PlatformConfig(BaseModel):
    announcement: Optional[str] = None
    is_maintenance: bool = False
    last_updated: Optional[datetime] = None
