# FILE: backend/vyapar/models/order.py
# LOCALVYAPAR - ORDER ENTITY
# 1. Rider fields stay null until an order is claimed.
# 2. Proof photos are compressed JPEG data URLs, null until captured.

from enum import Enum
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime
from .common import PyObjectId

class OrderStatus(str, Enum):
    PENDING = "pending"
    ASSIGNED = "assigned"
    PICKED_UP = "picked-up"
    OUT_FOR_DELIVERY = "out-for-delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

class OrderCreate(BaseModel):
    product_id: str

class OrderInDB(BaseModel):
    id: PyObjectId = Field(alias="_id")
    display_order_id: str
    customer_id: str
    customer_name: str
    customer_delivery_id: Optional[str] = None
    customer_phone: Optional[str] = None
    address: str
    business_id: str
    shop_name: str
    shop_phone: Optional[str] = None
    shop_address: Optional[str] = None
    product_id: str
    product_title: str
    price: float
    delivery_boy_id: Optional[str] = None
    delivery_boy_name: Optional[str] = None
    delivery_boy_phone: Optional[str] = None
    status: OrderStatus = OrderStatus.PENDING
    pickup_photo: Optional[str] = None
    delivery_photo: Optional[str] = None
    assigned_at: Optional[datetime] = None
    picked_up_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

class OrderOut(OrderInDB):
    id: PyObjectId = Field(alias="_id", serialization_alias="id")
    stage_index: int = -1
    progress: Optional[float] = None
