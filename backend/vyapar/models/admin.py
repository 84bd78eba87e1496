# FILE: backend/vyapar/models/admin.py
# Admin-side request and view models.

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, Any
from datetime import datetime
from bson import ObjectId

from .user import UserRole

class UserRoleUpdate(BaseModel):
    role: UserRole

class PremiumToggle(BaseModel):
    active: bool

class VerificationToggle(BaseModel):
    is_verified: bool

class UserAdminView(BaseModel):
    id: str = Field(..., alias='_id', serialization_alias='id')
    name: str
    email: EmailStr
    role: UserRole
    phone: Optional[str] = None
    city: Optional[str] = None
    pincode: Optional[str] = None
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None
    order_count: int = 0

    @field_validator('id', mode='before')
    @classmethod
    def convert_objectid_to_str(cls, v: Any) -> str:
        if isinstance(v, ObjectId):
            return str(v)
        return v

    model_config = {"from_attributes": True, "populate_by_name": True}
