# FILE: backend/vyapar/models/dashboard.py
# View state for each role dashboard. Every model carries its role so clients can switch on it.

from pydantic import BaseModel, Field
from typing import Annotated, Dict, List, Literal, Optional, Union

from .business import BusinessOut
from .order import OrderOut
from .product import ProductOut

class CustomerDashboard(BaseModel):
    role: Literal["customer"] = "customer"
    delivery_id: Optional[str] = None
    orders: List[OrderOut] = Field(default_factory=list)
    active_order_count: int = 0
    delivered_order_count: int = 0
    favorites: List[BusinessOut] = Field(default_factory=list)

class BusinessDashboard(BaseModel):
    role: Literal["business"] = "business"
    business: Optional[BusinessOut] = None
    is_premium: bool = False
    products: List[ProductOut] = Field(default_factory=list)
    product_counts: Dict[str, int] = Field(default_factory=dict)
    views: int = 0
    leads: Dict[str, int] = Field(default_factory=dict)
    shop_orders: List[OrderOut] = Field(default_factory=list)

class DeliveryDashboard(BaseModel):
    role: Literal["delivery-boy"] = "delivery-boy"
    available_orders: List[OrderOut] = Field(default_factory=list)
    active_deliveries: List[OrderOut] = Field(default_factory=list)
    completed_deliveries: List[OrderOut] = Field(default_factory=list)
    earnings: int = 0
    can_claim: bool = False

class AdminDashboard(BaseModel):
    role: Literal["admin"] = "admin"
    total_businesses: int = 0
    total_users: int = 0
    total_products: int = 0
    pending_products: List[ProductOut] = Field(default_factory=list)
    premium_revenue_estimate: float = 0.0
    category_histogram: Dict[str, int] = Field(default_factory=dict)
    role_histogram: Dict[str, int] = Field(default_factory=dict)

class ModeratorDashboard(BaseModel):
    role: Literal["moderator"] = "moderator"
    pending_products: List[ProductOut] = Field(default_factory=list)
    product_counts: Dict[str, int] = Field(default_factory=dict)

DashboardView = Annotated[
    Union[CustomerDashboard, BusinessDashboard, DeliveryDashboard, AdminDashboard, ModeratorDashboard],
    Field(discriminator="role"),
]
