# FILE: backend/vyapar/models/user.py
# LOCALVYAPAR - USER MODEL
# 1. Roles are a closed enum; dashboards and guards dispatch on it.
# 2. Structured address fields feed order placement and targeted announcements.

from enum import Enum
from pydantic import BaseModel, Field, EmailStr, ConfigDict, field_validator
from typing import List, Optional
from datetime import datetime
from .common import PyObjectId, utcnow

class UserRole(str, Enum):
    CUSTOMER = "customer"
    BUSINESS = "business"
    DELIVERY = "delivery-boy"
    ADMIN = "admin"
    MODERATOR = "moderator"

    @property
    def is_staff(self) -> bool:
        return self in (UserRole.ADMIN, UserRole.MODERATOR)

# Roles a visitor may pick at signup. Staff roles are granted by an admin.
SELF_SERVICE_ROLES = (UserRole.CUSTOMER, UserRole.BUSINESS, UserRole.DELIVERY)

class AddressFields(BaseModel):
    house_no: Optional[str] = None
    street: Optional[str] = None
    landmark: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    country: Optional[str] = "India"

class UserBase(AddressFields):
    name: str = Field(..., min_length=2, max_length=80)
    email: EmailStr
    role: UserRole = UserRole.CUSTOMER
    phone: Optional[str] = None
    photo_url: Optional[str] = None
    favorites: List[str] = Field(default_factory=list)
    area_code: Optional[str] = None
    delivery_id: Optional[str] = None

# Model for creating a new user (Registration)
class UserCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=80)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: UserRole = UserRole.CUSTOMER

# Fields the owner may change on their own profile
class ProfileUpdate(AddressFields):
    name: Optional[str] = Field(default=None, min_length=2, max_length=80)
    phone: Optional[str] = Field(default=None, max_length=20)
    country: Optional[str] = None
    area_code: Optional[str] = Field(default=None, max_length=10)

    # Omit 'name' to keep it; it cannot be cleared
    @field_validator('name')
    @classmethod
    def name_not_null(cls, v: Optional[str]) -> str:
        if v is None:
            raise ValueError("name cannot be null")
        return v

# Model stored in DB (includes hashed password)
class UserInDB(UserBase):
    id: PyObjectId = Field(alias="_id")
    hashed_password: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None
    last_login: Optional[datetime] = None

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    @property
    def full_address(self) -> str:
        parts = [self.house_no, self.street, self.landmark, self.city]
        head = ", ".join(p for p in parts if p)
        tail = " - ".join(p for p in [self.state, self.pincode] if p)
        return ", ".join(p for p in [head, tail] if p)

# Model for returning user data (Exclude password)
class UserOut(UserBase):
    id: PyObjectId = Field(alias="_id", serialization_alias="id")
    created_at: datetime
    last_login: Optional[datetime] = None

    model_config = ConfigDict(
        populate_by_name=True,
        from_attributes=True,
        arbitrary_types_allowed=True,
    )

class PublicProfile(BaseModel):
    id: str
    name: str
    role: UserRole
    photo_url: Optional[str] = None
    city: Optional[str] = None
    area_code: Optional[str] = None
    is_staff: bool = False

# Model for Login Request
class UserLogin(BaseModel):
    email: EmailStr
    password: str
