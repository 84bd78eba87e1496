# FILE: backend/vyapar/models/product.py
# Products enter moderation as 'pending'; only admin/moderator change the status.

from enum import Enum
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime
from .common import PyObjectId

class ProductStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

class ProductBadge(str, Enum):
    BEST_SELLER = "best-seller"
    NEW = "new"
    LIMITED = "limited"
    SALE = "sale"

class ProductCreate(BaseModel):
    title: str = Field(..., min_length=2, max_length=120)
    price: float = Field(..., gt=0)
    description: str = Field(default="", max_length=1000)
    image_url: Optional[str] = None
    badge: Optional[ProductBadge] = None

class ModerationDecision(BaseModel):
    status: ProductStatus

class ProductInDB(BaseModel):
    id: PyObjectId = Field(alias="_id")
    business_id: str
    title: str
    price: float
    description: str = ""
    image_url: Optional[str] = None
    status: ProductStatus = ProductStatus.PENDING
    badge: Optional[ProductBadge] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

class ProductOut(ProductInDB):
    id: PyObjectId = Field(alias="_id", serialization_alias="id")
