# FILE: backend/vyapar/models/business.py
# LOCALVYAPAR - BUSINESS ENTITY
# 1. One listing per owner ('owner_id' is unique).
# 2. Premium is a time-bounded entitlement: is_paid + premium_status + premium_until.

from enum import Enum
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional
from datetime import datetime
from .common import PyObjectId

class BusinessCategory(str, Enum):
    FOOD = "Food"
    GROCERIES = "Groceries"
    RETAIL = "Retail"
    ELECTRONICS = "Electronics"
    REPAIRS = "Repairs"
    SERVICES = "Services"
    BEAUTY = "Beauty"
    HEALTH = "Health"
    EDUCATION = "Education"
    AUTOMOBILE = "Automobile"
    GIFTS = "Gifts"
    HOME_DECOR = "Home Decor"
    CLOTHING = "Clothing"
    JEWELRY = "Jewelry"
    HARDWARE = "Hardware"
    PHARMACY = "Pharmacy"
    STATIONERY = "Stationery"
    ADVOCATE = "Advocate"
    LOHA_WELDING = "Loha Welding"
    BIKE_SEAT_COVER = "Bike Seat Cover"
    BIKE_REPAIR = "Bike Repair"
    CAR_REPAIR = "Car Repair"
    CAR_PAINTER = "Car Painter"
    OTHERS = "Others"

class PremiumStatus(str, Enum):
    ACTIVE = "active"
    PENDING = "pending"
    EXPIRED = "expired"
    NONE = "none"

class LeadChannel(str, Enum):
    CALL = "call"
    WHATSAPP = "whatsapp"

class ShopAddress(BaseModel):
    street: str = ""
    landmark: str = ""
    city: str = ""
    state: str = ""
    region: str = "India"
    pincode: str = ""

    def compose(self) -> str:
        return f"{self.street}, {self.landmark}, {self.city}, {self.state}, {self.region} - {self.pincode}"

class BusinessProfileUpdate(BaseModel):
    shop_name: str = Field(..., min_length=2, max_length=120)
    category: BusinessCategory
    description: Optional[str] = Field(default=None, max_length=1000)
    contact_number: str = Field(..., min_length=6, max_length=20)
    address: ShopAddress
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    area_code: Optional[str] = None
    opening_time: Optional[str] = Field(default=None, pattern=r"^\d{2}:\d{2}$")
    closing_time: Optional[str] = Field(default=None, pattern=r"^\d{2}:\d{2}$")
    upi_id: Optional[str] = None

class BusinessInDB(BaseModel):
    id: PyObjectId = Field(alias="_id")
    owner_id: str
    shop_name: str = ""
    category: Optional[BusinessCategory] = None
    description: Optional[str] = None
    address: str = ""
    pincode: Optional[str] = None
    area_code: Optional[str] = None
    contact_number: str = ""
    whatsapp_link: str = ""
    image_url: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_verified: bool = False
    is_paid: bool = False
    premium_status: PremiumStatus = PremiumStatus.NONE
    premium_until: Optional[datetime] = None
    last_transaction_id: Optional[str] = None
    views: int = 0
    call_count: int = 0
    whatsapp_count: int = 0
    rating: float = 0.0
    review_count: int = 0
    opening_time: Optional[str] = None
    closing_time: Optional[str] = None
    upi_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

class BusinessOut(BusinessInDB):
    id: PyObjectId = Field(alias="_id", serialization_alias="id")
    is_premium: bool = False
    is_open: bool = True
    distance_km: Optional[float] = None

class BusinessListing(BaseModel):
    items: List[BusinessOut]
    radius_km: float
    radius_filter_active: bool
    notice: Optional[str] = None

class LeadEvent(BaseModel):
    channel: LeadChannel

class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(default="", max_length=1000)

class ReviewOut(BaseModel):
    id: PyObjectId = Field(alias="_id", serialization_alias="id")
    business_id: str
    user_id: str
    user_name: str
    user_photo_url: Optional[str] = None
    rating: int
    comment: str = ""
    created_at: datetime

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)
